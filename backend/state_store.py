"""
JSON state file for planning preferences and window state.

Missing or unreadable state falls back to defaults; the planning screen
must always be able to start.
"""

import json
from pathlib import Path
from typing import Any

from .debug_log import warn_print
from .event_model import TargetRole
from .planning import FilterContext, PlanningPreferences
from .views import AgendaRange, ViewType


VIEW_KEY = "planning-view"
FILTER_CONTEXT_KEY = "planning-filter-context"
ROLE_FILTER_KEY = "planning-role-filter"
AGENDA_RANGE_KEY = "planning-agenda-range"


class StateStore:
    """Key-value store backed by one JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r') as f:
                state = json.load(f)
        except (OSError, ValueError) as e:
            warn_print("STATE", f"Error loading state from {self.path}: {e}")
            return {}
        return state if isinstance(state, dict) else {}

    def _write(self, state: dict):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w') as f:
                json.dump(state, f, indent=2)
        except OSError as e:
            warn_print("STATE", f"Error saving state to {self.path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any):
        state = self._read()
        state[key] = value
        self._write(state)

    def update(self, values: dict):
        state = self._read()
        state.update(values)
        self._write(state)

    # --- planning preferences ---

    def load_preferences(self) -> PlanningPreferences:
        state = self._read()
        defaults = PlanningPreferences()

        try:
            view = ViewType(state.get(VIEW_KEY, defaults.view.value))
        except ValueError:
            view = defaults.view

        filter_context = None
        raw_context = state.get(FILTER_CONTEXT_KEY)
        if isinstance(raw_context, dict):
            try:
                filter_context = FilterContext.from_dict(raw_context)
            except (KeyError, ValueError):
                warn_print("STATE", f"Ignoring invalid filter context: {raw_context!r}")

        try:
            role_filter = frozenset(TargetRole(r) for r in state.get(ROLE_FILTER_KEY, []))
        except (TypeError, ValueError):
            role_filter = frozenset()

        try:
            agenda_range = AgendaRange(state.get(AGENDA_RANGE_KEY, defaults.agenda_range.value))
        except ValueError:
            agenda_range = defaults.agenda_range

        return PlanningPreferences(
            view=view,
            filter_context=filter_context,
            role_filter=role_filter,
            agenda_range=agenda_range,
        )

    def save_preferences(self, preferences: PlanningPreferences):
        values = {
            VIEW_KEY: preferences.view.value,
            ROLE_FILTER_KEY: sorted(r.value for r in preferences.role_filter),
            AGENDA_RANGE_KEY: preferences.agenda_range.value,
        }
        # An unset context keeps the last stored one
        if preferences.filter_context is not None:
            values[FILTER_CONTEXT_KEY] = preferences.filter_context.to_dict()
        self.update(values)
