import itertools
import unittest
from datetime import date, time as dt_time

from backend.config import ColorsConfig, LabelsConfig
from backend.event_model import AccountType, Actor, Event, InvalidEventError, TargetRole
from backend.permissions import (
    can_delete, can_edit, can_view, display_color, event_permissions,
    get_permission_denied_reason, role_label,
)
from backend.timezone_utils import localize_day_time, set_timezone


A = TargetRole.ANIMATOR
C = TargetRole.COORDINATOR
D = TargetRole.DIRECTOR

ALL_ROLE_SETS = [
    frozenset(combo)
    for n in range(1, 4)
    for combo in itertools.combinations([A, C, D], n)
]


def _event(roles, created_by="u-coord") -> Event:
    day = date(2024, 1, 15)
    return Event(
        id="e1", title="Réunion",
        start_time=localize_day_time(day, dt_time(9)),
        end_time=localize_day_time(day, dt_time(10)),
        target_roles=frozenset(roles),
        created_by=created_by,
    )


class TestDisplayColor(unittest.TestCase):
    def test_priority_director_coordinator_animator(self):
        colors = ColorsConfig()
        self.assertEqual(display_color({A}, colors), colors.animator)
        self.assertEqual(display_color({A, C}, colors), colors.coordinator)
        self.assertEqual(display_color({A, C, D}, colors), colors.director)
        self.assertEqual(display_color({C, D}, colors), colors.director)

    def test_total_over_every_role_set(self):
        actors = [Actor(role, "someone") for role in AccountType]
        for roles in ALL_ROLE_SETS:
            self.assertTrue(display_color(roles).startswith("#"))
            for actor in actors:
                self.assertIsInstance(can_view(_event(roles), actor), bool)

    def test_empty_role_set_falls_back_to_animator_color(self):
        colors = ColorsConfig()
        self.assertEqual(display_color(frozenset(), colors), colors.animator)
        with self.assertRaises(InvalidEventError):
            Event(id="x", title="x", start_time=localize_day_time(date(2024, 1, 15), dt_time(9)),
                  end_time=localize_day_time(date(2024, 1, 15), dt_time(10)), target_roles=frozenset())

    def test_role_label(self):
        labels = LabelsConfig()
        self.assertEqual(role_label({A, C, D}, labels), labels.role_all)
        self.assertEqual(role_label({D, A}, labels), f"{labels.role_animator}, {labels.role_director}")


class TestEditPermissions(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")

    def test_animator_denied_on_coordinator_event(self):
        event = _event({C, D}, created_by="u-coord")
        animator = Actor(AccountType.ANIMATOR, "u-anim")

        self.assertFalse(can_edit(event, animator))
        self.assertFalse(can_delete(event, animator))
        reason = get_permission_denied_reason(event, animator)
        self.assertTrue(reason)
        self.assertIn("Coordinators and Directors", reason)

    def test_animator_edits_own_animator_event(self):
        animator = Actor(AccountType.ANIMATOR, "u-anim")
        event = _event({A}, created_by="u-anim")

        self.assertTrue(can_edit(event, animator))
        self.assertTrue(can_delete(event, animator))
        self.assertIsNone(get_permission_denied_reason(event, animator))

    def test_animator_asymmetry(self):
        animator = Actor(AccountType.ANIMATOR, "u-anim")
        for roles in ALL_ROLE_SETS:
            for creator in ("u-anim", "someone-else"):
                event = _event(roles, created_by=creator)
                allowed = creator == "u-anim" and roles == frozenset({A})
                self.assertEqual(can_edit(event, animator), allowed)
                self.assertEqual(can_delete(event, animator), allowed)

    def test_not_creator_reason(self):
        animator = Actor(AccountType.ANIMATOR, "u-anim")
        reason = get_permission_denied_reason(_event({A}, created_by="other"), animator)
        self.assertEqual(reason, LabelsConfig().denied_not_creator)

    def test_staff_can_edit_everything(self):
        for role in (AccountType.ADMIN, AccountType.COORDINATOR, AccountType.DIRECTOR):
            actor = Actor(role, "staff")
            for roles in ALL_ROLE_SETS:
                self.assertTrue(can_edit(_event(roles, created_by="x"), actor))

    def test_no_actor_is_denied(self):
        event = _event({A})
        self.assertFalse(can_view(event, None))
        self.assertFalse(can_edit(event, None))
        self.assertEqual(get_permission_denied_reason(event, None), LabelsConfig().denied_generic)


class TestVisibility(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")

    def test_targeted_creator_and_admin_can_view(self):
        event = _event({C}, created_by="u-anim")
        self.assertTrue(can_view(event, Actor(AccountType.COORDINATOR, "c")))
        self.assertTrue(can_view(event, Actor(AccountType.ANIMATOR, "u-anim")))
        self.assertTrue(can_view(event, Actor(AccountType.ADMIN, "root")))
        self.assertFalse(can_view(event, Actor(AccountType.ANIMATOR, "other")))
        self.assertFalse(can_view(event, Actor(AccountType.DIRECTOR, "d")))

    def test_event_permissions_bundle(self):
        permissions = event_permissions(_event({C, D}), Actor(AccountType.ANIMATOR, "u-anim"))
        self.assertFalse(permissions.can_view)
        self.assertFalse(permissions.can_edit)
        self.assertFalse(permissions.can_add_participants)
        self.assertIsNotNone(permissions.denied_reason)


if __name__ == "__main__":
    unittest.main(verbosity=2)
