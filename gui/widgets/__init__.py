"""
CLAS Planning GUI Widgets

Custom widgets drawing the planning render models.
"""

from .event_widget import EventWidget
from .calendar_widget import CalendarWidget, DayView, WeekView, MonthView, AgendaView

__all__ = ['EventWidget', 'CalendarWidget', 'DayView', 'WeekView', 'MonthView', 'AgendaView']
