"""
CLAS Planning Backend Module

This module provides the scheduling core and its collaborators:
- Configuration parsing (config.py)
- Event data model (event_model.py)
- Per-day segment splitting (segments.py)
- Overlap column packing (overlap_layout.py)
- Time-to-position mapping (geometry.py)
- Role colors and event permissions (permissions.py)
- Day/Week/Month/Agenda render models (views.py)
- Planning session controller (planning.py)
- REST data access (event_client.py) and email notifications (notifications.py)

The Qt-based network worker is imported directly by the GUI so that the
core stays importable without PySide6.
"""

from .config import Config
from .event_model import Actor, AccountType, Event, EventSegment, EventStatus, OwnerType, TargetRole
from .planning import PlanningController, PlanningPreferences, FilterContext
from .views import AgendaRange, BadgeTier, RenderContext, ViewType
from .event_client import EventClient, EventClientError
from .notifications import NotificationDispatcher, NotificationError

__all__ = [
    'Config',
    'Actor',
    'AccountType',
    'Event',
    'EventSegment',
    'EventStatus',
    'OwnerType',
    'TargetRole',
    'PlanningController',
    'PlanningPreferences',
    'FilterContext',
    'AgendaRange',
    'BadgeTier',
    'RenderContext',
    'ViewType',
    'EventClient',
    'EventClientError',
    'NotificationDispatcher',
    'NotificationError',
]
