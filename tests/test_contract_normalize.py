import datetime as dt
import unittest

from flexcal.normalize import calendar_from_dict, calendar_to_dict, chain_behavior_from_legacy
from flexcal.validate import CalendarValidationError


def _doc() -> dict:
    return {
        "id": "cal-1",
        "name": "2025-2026 School Year",
        "startDate": "2025-08-04T00:00:00.000Z",
        "includeWeekends": False,
        "includeExceptions": True,
        "layers": [
            {"key": "reference", "name": "Reference", "chainBehavior": "linked", "kind": "standard"},
            {"key": "progress", "name": "Progress", "respectsGlobalExceptions": False},
            {"key": "holidays", "name": "Holidays", "kind": "exception"},
        ],
        "scheduledItems": [
            {"id": "r1", "date": "2025-08-04", "layerKey": "reference", "sequenceIndex": 1, "title": "Lesson 1"},
            {
                "id": "r2",
                "date": "2025-08-05T00:00:00.000Z",
                "layerKey": "reference",
                "sequenceIndex": 2,
                "title": "Lesson 2 (Part 1/2)",
                "metadata": {"subject": "math"},
                "splitGroupId": "g1",
                "splitIndex": 1,
                "splitTotal": 2,
            },
            {
                "id": "r3",
                "date": "2025-08-06",
                "layerKey": "reference",
                "sequenceIndex": 3,
                "title": "Lesson 2 (Part 2/2)",
                "splitGroupId": "g1",
                "splitIndex": 2,
                "splitTotal": 2,
            },
            {
                "id": "h1",
                "date": "2025-08-15",
                "layerKey": "holidays",
                "sequenceIndex": 1,
                "title": "Break",
                "targetLayerKeys": ["progress"],
            },
        ],
    }


class TestNormalizeContract(unittest.TestCase):
    def test_document_maps_to_model(self) -> None:
        cal = calendar_from_dict(_doc())
        self.assertEqual(cal.start_date, dt.date(2025, 8, 4))
        self.assertTrue(cal.include_exceptions)
        self.assertEqual([layer.key for layer in cal.layers], ["reference", "progress", "holidays"])
        self.assertFalse(cal.layer("progress").respects_global_exceptions)
        self.assertEqual(cal.layer("progress").chain_behavior, "linked")
        self.assertEqual(cal.item("r2").date, dt.date(2025, 8, 5))
        self.assertEqual(cal.item("r2").metadata, {"subject": "math"})
        self.assertEqual(cal.item("h1").target_layer_keys, ("progress",))
        self.assertEqual((cal.item("r3").split_index, cal.item("r3").split_total), (2, 2))

    def test_document_round_trip(self) -> None:
        cal = calendar_from_dict(_doc())
        self.assertEqual(calendar_from_dict(calendar_to_dict(cal)), cal)
        out = calendar_to_dict(cal)
        self.assertEqual(out["scheduledItems"][1]["date"], "2025-08-05")
        self.assertNotIn("splitGroupId", out["scheduledItems"][0])

    def test_legacy_document_is_normalized(self) -> None:
        legacy = {
            "_id": "legacy-1",
            "name": "Abeka",
            "startDate": "2025-08-04",
            "includeHolidays": True,
            "groupings": [
                {"key": "abeka", "name": "Abeka", "autoShift": True},
                {"key": "extras", "name": "Extras", "autoShift": False},
            ],
            "days": [
                {
                    "_id": "d1",
                    "date": "2025-08-04T00:00:00.000Z",
                    "groupingKey": "abeka",
                    "groupingSequence": 1,
                    "label": "Day 1",
                    "events": [{"title": "Abeka Lesson 1"}],
                },
                {"_id": "d2", "date": "2025-08-05", "groupingKey": "extras", "groupingSequence": 1, "label": "Day 1"},
            ],
        }
        cal = calendar_from_dict(legacy)
        self.assertEqual(cal.id, "legacy-1")
        self.assertTrue(cal.include_exceptions)
        self.assertEqual(cal.layer("abeka").chain_behavior, "linked")
        self.assertEqual(cal.layer("extras").chain_behavior, "independent")
        self.assertEqual(cal.item("d1").title, "Abeka Lesson 1")
        self.assertEqual(cal.item("d2").title, "Day 1")
        self.assertEqual(cal.item("d2").layer_key, "extras")

    def test_chain_behavior_mapping(self) -> None:
        self.assertEqual(chain_behavior_from_legacy(None, None), "linked")
        self.assertEqual(chain_behavior_from_legacy(None, False), "independent")
        self.assertEqual(chain_behavior_from_legacy("independent", True), "independent")
        with self.assertRaises(CalendarValidationError):
            chain_behavior_from_legacy("sometimes", None)

    def test_bad_documents_raise(self) -> None:
        bad_kind = _doc()
        bad_kind["layers"][0]["kind"] = "holiday"
        bad_date = _doc()
        bad_date["scheduledItems"][0]["date"] = "next tuesday"
        bad_seq = _doc()
        bad_seq["scheduledItems"][0]["sequenceIndex"] = "1"
        dangling = _doc()
        dangling["scheduledItems"][0]["layerKey"] = "ghost"
        for name, doc in (("kind", bad_kind), ("date", bad_date), ("seq", bad_seq), ("dangling", dangling)):
            with self.subTest(name=name):
                with self.assertRaises(CalendarValidationError):
                    calendar_from_dict(doc)

    def test_validation_can_be_skipped(self) -> None:
        dangling = _doc()
        dangling["scheduledItems"][0]["layerKey"] = "ghost"
        cal = calendar_from_dict(dangling, validate=False)
        self.assertEqual(cal.item("r1").layer_key, "ghost")

    def test_non_mapping_document_raises_type_error(self) -> None:
        with self.assertRaises(TypeError):
            calendar_from_dict([])  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main(verbosity=2)
