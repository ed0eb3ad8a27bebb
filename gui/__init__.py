"""
CLAS Planning GUI Module

PySide6-based graphical interface for the planning application.
"""

from .main_window import MainWindow
from .event_dialog import EventDialog, DayEventsDialog

__all__ = ['MainWindow', 'EventDialog', 'DayEventsDialog']
