import json
import tempfile
import unittest
from pathlib import Path

from backend.event_model import OwnerType, TargetRole
from backend.planning import FilterContext, PlanningPreferences
from backend.state_store import StateStore, VIEW_KEY
from backend.views import AgendaRange, ViewType


class TestStateStore(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = Path(self.tmpdir.name) / "nested" / "state.json"
        self.store = StateStore(self.path)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_missing_file_gives_defaults(self):
        self.assertEqual(self.store.load_preferences(), PlanningPreferences())
        self.assertIsNone(self.store.get("anything"))

    def test_preferences_round_trip(self):
        prefs = PlanningPreferences(
            view=ViewType.MONTH,
            filter_context=FilterContext(OwnerType.CLAS, "clas-9"),
            role_filter=frozenset({TargetRole.DIRECTOR, TargetRole.ANIMATOR}),
            agenda_range=AgendaRange.MONTHS_3,
        )
        self.store.save_preferences(prefs)
        self.assertEqual(StateStore(self.path).load_preferences(), prefs)

        with open(self.path) as f:
            stored = json.load(f)
        self.assertEqual(stored["planning-role-filter"], ["animator", "director"])

    def test_other_keys_survive_preference_saves(self):
        self.store.set("main-window-geometry", "abc")
        self.store.save_preferences(PlanningPreferences())
        self.assertEqual(self.store.get("main-window-geometry"), "abc")

    def test_unset_context_keeps_stored_one(self):
        context = FilterContext(OwnerType.PERSONAL, "u-1")
        self.store.save_preferences(PlanningPreferences(filter_context=context))
        self.store.save_preferences(PlanningPreferences())
        self.assertEqual(self.store.load_preferences().filter_context, context)

    def test_corrupt_file_gives_defaults(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json")
        self.assertEqual(self.store.load_preferences(), PlanningPreferences())

    def test_invalid_values_fall_back(self):
        self.store.update({
            VIEW_KEY: "year",
            "planning-filter-context": {"type": "team"},
            "planning-role-filter": ["parent"],
            "planning-agenda-range": "1y",
        })
        self.assertEqual(self.store.load_preferences(), PlanningPreferences())


if __name__ == "__main__":
    unittest.main(verbosity=2)
