import unittest
from datetime import date, datetime, time as dt_time

from backend.event_model import AccountType, Actor, Event, OwnerType, TargetRole
from backend.planning import (
    DialogMode, FilterContext, PlanningController, PlanningPreferences,
)
from backend.timezone_utils import localize_day_time, set_timezone
from backend.views import (
    AgendaRange, AgendaViewModel, DayViewModel, MonthViewModel, RenderContext,
    ViewType, WeekViewModel,
)


TODAY = date(2024, 1, 17)  # Wednesday


def _local(day: date, hour: int, minute: int = 0) -> datetime:
    return localize_day_time(day, dt_time(hour, minute))


def _event(event_id, roles=(TargetRole.ANIMATOR,), owner=(OwnerType.PERSONAL, "u-1"),
           created_by=None, day=TODAY) -> Event:
    return Event(
        id=event_id, title=event_id,
        start_time=_local(day, 9), end_time=_local(day, 10),
        target_roles=frozenset(roles),
        owner_type=owner[0], owner_id=owner[1], created_by=created_by,
    )


def _controller(role=AccountType.COORDINATOR, user_id="u-1", **prefs) -> PlanningController:
    context = RenderContext(actor=Actor(role, user_id))
    return PlanningController(context, TODAY, PlanningPreferences(**prefs))


class TestNavigation(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")

    def test_week_steps_by_seven_days(self):
        controller = _controller(view=ViewType.WEEK)
        controller.go_next()
        self.assertEqual(controller.current_date, date(2024, 1, 24))
        controller.go_previous()
        controller.go_previous()
        self.assertEqual(controller.current_date, date(2024, 1, 10))

    def test_day_and_month_steps(self):
        controller = _controller(view=ViewType.DAY)
        controller.go_previous()
        self.assertEqual(controller.current_date, date(2024, 1, 16))

        controller.set_view(ViewType.MONTH)
        controller.go_to_date(date(2024, 1, 31))
        controller.go_next()
        self.assertEqual(controller.current_date, date(2024, 2, 29))

    def test_go_today(self):
        controller = _controller()
        controller.go_to_date(date(2030, 5, 1))
        controller.go_today(TODAY)
        self.assertEqual(controller.current_date, TODAY)


class TestFetchRange(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")

    def test_week_range_covers_whole_week(self):
        fetch = _controller(view=ViewType.WEEK).fetch_range()
        self.assertEqual(fetch.start, _local(date(2024, 1, 15), 0))
        self.assertEqual(fetch.end, localize_day_time(date(2024, 1, 21), dt_time.max))

    def test_month_range_covers_grid(self):
        fetch = _controller(view=ViewType.MONTH).fetch_range()
        self.assertEqual(fetch.start, _local(date(2024, 1, 1), 0))
        self.assertEqual(fetch.end.date(), date(2024, 2, 4))

    def test_day_range(self):
        fetch = _controller(view=ViewType.DAY).fetch_range()
        self.assertEqual(fetch.start.date(), TODAY)
        self.assertEqual(fetch.end.date(), TODAY)

    def test_agenda_range_is_open_ended(self):
        controller = _controller(view=ViewType.AGENDA)
        controller.go_to_date(date(2024, 3, 1))
        fetch = controller.fetch_range(today=TODAY)
        self.assertEqual(fetch.start, _local(TODAY, 0))
        self.assertIsNone(fetch.end)


class TestVisibleEvents(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")

    def test_filter_context_keeps_matching_owner(self):
        controller = _controller(
            role=AccountType.ADMIN,
            filter_context=FilterContext(OwnerType.CLAS, "clas-9"),
        )
        controller.set_events([
            _event("mine"),
            _event("center", owner=(OwnerType.CLAS, "clas-9")),
            _event("other-center", owner=(OwnerType.CLAS, "clas-2")),
        ])
        self.assertEqual([e.id for e in controller.visible_events()], ["center"])

    def test_role_filter(self):
        controller = _controller(role=AccountType.ADMIN)
        controller.set_events([
            _event("a"),
            _event("d", roles=(TargetRole.DIRECTOR,)),
            _event("ad", roles=(TargetRole.ANIMATOR, TargetRole.DIRECTOR)),
        ])
        controller.set_role_filter([TargetRole.DIRECTOR])
        self.assertEqual([e.id for e in controller.visible_events()], ["d", "ad"])

        controller.set_role_filter([])
        self.assertEqual(len(controller.visible_events()), 3)

    def test_visibility_by_actor_role(self):
        controller = _controller(role=AccountType.ANIMATOR, user_id="u-anim")
        controller.set_events([
            _event("for-animators"),
            _event("for-directors", roles=(TargetRole.DIRECTOR,)),
            _event("own-note", roles=(TargetRole.DIRECTOR,), created_by="u-anim"),
        ])
        self.assertEqual([e.id for e in controller.visible_events()], ["for-animators", "own-note"])

    def test_no_signed_in_user_sees_nothing(self):
        controller = PlanningController(RenderContext(actor=None), TODAY)
        event = _event("a")
        controller.set_events([event])

        self.assertEqual(controller.visible_events(), [])
        self.assertTrue(controller.render(1024, _local(TODAY, 10)).is_empty)
        self.assertEqual(controller.on_event_click(event).mode, DialogMode.VIEW)

    def test_set_events_snapshot(self):
        controller = _controller()
        events = [_event("a", roles=(TargetRole.COORDINATOR,))]
        controller.set_events(events)
        events.append(_event("b", roles=(TargetRole.COORDINATOR,)))
        self.assertEqual(len(controller.events), 1)


class TestRender(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")
        self.now = _local(TODAY, 10)

    def test_render_dispatches_on_view(self):
        controller = _controller()
        expected = {
            ViewType.DAY: DayViewModel,
            ViewType.WEEK: WeekViewModel,
            ViewType.MONTH: MonthViewModel,
            ViewType.AGENDA: AgendaViewModel,
        }
        for view, model_type in expected.items():
            controller.set_view(view)
            self.assertIsInstance(controller.render(1024, self.now), model_type)

    def test_agenda_uses_range_and_query(self):
        controller = _controller(view=ViewType.AGENDA, agenda_range=AgendaRange.DAYS_7)
        controller.set_events([
            _event("soon", roles=(TargetRole.COORDINATOR,)),
            _event("later", roles=(TargetRole.COORDINATOR,), day=date(2024, 2, 20)),
        ])
        model = controller.render(1024, self.now)
        self.assertEqual(model.event_count, 1)

        controller.set_agenda_range(AgendaRange.ALL)
        controller.set_agenda_query("LATER")
        model = controller.render(1024, self.now)
        self.assertEqual([i.event.id for g in model.groups for i in g.items], ["later"])

    def test_day_events(self):
        controller = _controller()
        controller.set_events([_event("a", roles=(TargetRole.COORDINATOR,))])
        self.assertEqual([e.id for e in controller.day_events(TODAY)], ["a"])
        self.assertEqual(controller.day_events(date(2024, 1, 18)), [])


class TestInteraction(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")

    def test_editor_gets_edit_dialog(self):
        request = _controller().on_event_click(_event("a"))
        self.assertEqual(request.mode, DialogMode.EDIT)
        self.assertFalse(request.read_only)
        self.assertIsNone(request.denied_reason)

    def test_animator_gets_read_only_dialog(self):
        controller = _controller(role=AccountType.ANIMATOR, user_id="u-anim")
        event = _event("x", roles=(TargetRole.ANIMATOR, TargetRole.DIRECTOR), created_by="u-anim")
        request = controller.on_event_click(event)
        self.assertEqual(request.mode, DialogMode.VIEW)
        self.assertTrue(request.read_only)
        self.assertIn("Directors", request.denied_reason)

    def test_time_slot_click_prefills_start(self):
        request = _controller().on_time_slot_click(TODAY, 14)
        self.assertEqual(request.mode, DialogMode.CREATE)
        self.assertIsNone(request.event)
        self.assertEqual(request.initial_start, _local(TODAY, 14))

    def test_day_click_starts_at_midnight(self):
        request = _controller().on_day_click(TODAY)
        self.assertEqual(request.initial_start, _local(TODAY, 0))


class TestFilterContext(unittest.TestCase):
    def test_dict_round_trip(self):
        context = FilterContext(OwnerType.CLAS, "clas-9")
        self.assertEqual(context.to_dict(), {'type': 'clas', 'id': 'clas-9'})
        self.assertEqual(FilterContext.from_dict(context.to_dict()), context)


if __name__ == "__main__":
    unittest.main(verbosity=2)
