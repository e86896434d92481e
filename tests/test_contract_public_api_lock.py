from __future__ import annotations

import datetime as dt
import json
import unittest
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
FIXTURE = REPO_ROOT / "tests" / "fixtures" / "calendar_fixture.json"


class TestPublicApiLockContract(unittest.TestCase):
    def test_api_module_exports_are_present(self) -> None:
        import flexcal.api as api

        self.assertTrue(hasattr(api, "__all__"))
        self.assertIsInstance(api.__all__, (list, tuple))
        self.assertGreaterEqual(len(api.__all__), 3)

        for name in api.__all__:
            self.assertIsInstance(name, str)
            self.assertTrue(hasattr(api, name), f"flexcal.api missing public name: {name}")
            obj = getattr(api, name)
            self.assertIsNotNone(obj, f"flexcal.api {name} is None")

    def test_package_reexports_match_api_all(self) -> None:
        import flexcal
        import flexcal.api as api

        for name in api.__all__:
            self.assertTrue(hasattr(flexcal, name), f"flexcal package does not re-export: {name}")
            self.assertIs(getattr(flexcal, name), getattr(api, name), f"flexcal.{name} must be same object as flexcal.api.{name}")


class TestApplyRequestContract(unittest.TestCase):
    def setUp(self) -> None:
        from flexcal.api import calendar_from_dict

        self.cal = calendar_from_dict(json.loads(FIXTURE.read_text(encoding="utf-8")))

    def test_shift_request_matches_direct_call(self) -> None:
        from flexcal.api import apply_request, shift

        via_request = apply_request(self.cal, "shift", {"scheduledItemId": "r2", "shiftByDays": 3})
        self.assertEqual(via_request, shift(self.cal, "r2", 3))
        self.assertEqual(via_request.item("r3").date, dt.date(2025, 8, 11))

    def test_legacy_shift_keys(self) -> None:
        from flexcal.api import apply_request

        out = apply_request(self.cal, "shift", {"dayId": "p1", "deltaDays": 1, "layerKeys": ["progress"]})
        self.assertEqual(out.item("p1").date, dt.date(2025, 8, 5))

    def test_split_then_unsplit_requests(self) -> None:
        from flexcal.api import apply_request

        once = apply_request(self.cal, "split", {"itemId": "r2", "parts": 2})
        self.assertEqual(once.item("r2").split_total, 2)
        self.assertEqual(apply_request(once, "unsplit", {"itemId": "r2"}), self.cal)

    def test_exception_lookup_helper(self) -> None:
        from flexcal.api import build_exception_lookup

        lookup = build_exception_lookup(self.cal)
        self.assertEqual(lookup.global_keys, frozenset({"2025-08-15"}))
        self.assertEqual(lookup.per_layer, {"progress": frozenset({"2025-08-13"})})

    def test_layer_keys_must_be_a_list_of_strings(self) -> None:
        from flexcal.api import apply_request

        ok = apply_request(self.cal, "shift", {"scheduledItemId": "r2", "shiftByDays": 1, "layerKeys": ["reference"]})
        self.assertEqual(ok.item("r2").date, dt.date(2025, 8, 6))
        for bad in ("reference", {"reference": True}, ["reference", ""], [3]):
            with self.subTest(layer_keys=bad):
                with self.assertRaises(ValueError):
                    apply_request(self.cal, "shift", {"scheduledItemId": "r2", "shiftByDays": 1, "layerKeys": bad})
        with self.assertRaises(ValueError):
            apply_request(self.cal, "settle", {"layerKeys": "progress"})

    def test_dump_json_sorts_keys_on_request(self) -> None:
        from flexcal.api import dump_json

        doc = {"perLayer": {}, "global": ["2025-08-15"]}
        self.assertEqual(json.loads(dump_json(doc)), doc)
        text = dump_json(doc, sort_keys=True)
        self.assertTrue(text.endswith("\n"))
        self.assertLess(text.index("global"), text.index("perLayer"))
        self.assertLess(dump_json(doc).index("perLayer"), dump_json(doc).index("global"))

    def test_bad_requests_raise(self) -> None:
        from flexcal.api import apply_request

        with self.assertRaises(ValueError):
            apply_request(self.cal, "shift", {"shiftByDays": 1})
        with self.assertRaises(ValueError):
            apply_request(self.cal, "shift", {"scheduledItemId": "r1", "shiftByDays": "1"})
        with self.assertRaises(ValueError):
            apply_request(self.cal, "teleport", {})


if __name__ == "__main__":
    unittest.main(verbosity=2)
