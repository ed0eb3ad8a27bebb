"""
Event Dialog for creating, editing and viewing planning events.

This is an independent window (not a modal dialog). Users without edit
rights get a read-only detail panel explaining why, never an error.
Saving and deleting are reported as requests; the main window runs them
in the background and notifies participants.
"""

import base64
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QFormLayout,
    QLineEdit, QTextEdit, QDateTimeEdit, QCheckBox,
    QComboBox, QPushButton, QLabel, QListWidget, QListWidgetItem,
    QMessageBox, QFrame, QScrollArea
)
from PySide6.QtCore import Qt, Signal, QDateTime
from PySide6.QtGui import QCloseEvent, QFontMetrics

from backend.config import Config
from backend.date_utils import format_date_long, format_duration, format_time_range
from backend.event_model import Actor, Event, EventStatus, OwnerType, Participant
from backend.permissions import ROLE_ORDER, can_edit, display_color, role_label, single_role_label
from backend.planning import DialogMode, EventDialogRequest, FilterContext
from backend.segments import split_event_into_segments
from backend.state_store import StateStore
from backend.timezone_utils import localize_naive, to_local_datetime
from backend.views import segment_time_label
from .widgets.event_widget import EventWidget

GEOMETRY_KEY = "event-dialog-geometry"


def _status_label(status: EventStatus, labels) -> str:
    return getattr(labels, f"status_{status.value}")


class EventDialog(QWidget):
    """Independent window for one event: create, edit or read-only view."""

    # Args: (event: Event, participant_ids: list[str] | None)
    save_requested = Signal(object, object)
    delete_requested = Signal(object)
    closed = Signal()

    def __init__(self, request: EventDialogRequest, config: Config, actor: Optional[Actor],
                 state_store: StateStore, filter_context: Optional[FilterContext] = None,
                 parent=None):
        super().__init__(parent)
        self.request = request
        self.config = config
        self.labels = config.labels
        self.actor = actor
        self.state_store = state_store
        self.filter_context = filter_context
        self.event = request.event
        self.is_new = request.mode == DialogMode.CREATE
        self._participants: list[Participant] = []

        self._setup_window()
        if request.read_only:
            self._setup_readonly_ui()
        else:
            self._setup_ui()
            self._populate_data()

    def _setup_window(self):
        if self.is_new:
            self.setWindowTitle(self.labels.dialog_new_event)
        elif self.request.read_only:
            self.setWindowTitle(f"{self.labels.dialog_view_event}: {self.event.title}")
        else:
            self.setWindowTitle(f"{self.labels.dialog_edit_event}: {self.event.title}")
        self.setWindowFlags(Qt.Window)
        self.setAttribute(Qt.WA_DeleteOnClose)
        self.setMinimumSize(400, 420)

        geometry = self.state_store.get(GEOMETRY_KEY)
        if geometry:
            self.restoreGeometry(base64.b64decode(geometry))
        else:
            self.resize(500, 600)

    # --- read-only panel ---

    def _setup_readonly_ui(self):
        layout = QVBoxLayout(self)
        layout.setSpacing(8)
        layout.setContentsMargins(8, 8, 8, 8)

        colors = self.config.colors
        notice = QLabel(f"{self.labels.readonly_notice}\n{self.request.denied_reason or ''}".strip())
        notice.setWordWrap(True)
        notice.setStyleSheet(
            f"background: {colors.readonly_notice_background}; "
            f"padding: 8px; border-radius: 4px; "
            f"color: {colors.readonly_notice_text};"
        )
        layout.addWidget(notice)

        event = self.event
        form = QFormLayout()
        form.setSpacing(8)

        title = QLabel(event.title)
        title.setStyleSheet(f"font-weight: bold; color: {display_color(event.target_roles, colors)};")
        title.setWordWrap(True)
        form.addRow(self.labels.field_title, title)

        when = format_date_long(event.start_time, self.config.localization)
        if event.all_day:
            when = f"{when} · {self.labels.all_day}"
        else:
            when = (f"{when} · {format_time_range(event.start_time, event.end_time)}"
                    f" ({format_duration(event.start_time, event.end_time)})")
        form.addRow(self.labels.field_start, QLabel(when))

        if event.location:
            form.addRow(self.labels.field_location, QLabel(event.location))
        form.addRow(self.labels.field_status, QLabel(_status_label(event.status, self.labels)))
        form.addRow(self.labels.field_roles, QLabel(role_label(event.target_roles, self.labels)))

        if event.description:
            description = QLabel(event.description)
            description.setWordWrap(True)
            description.setTextFormat(Qt.PlainText)
            form.addRow(self.labels.field_description, description)

        self._participants_label = QLabel("")
        self._participants_label.setWordWrap(True)
        form.addRow(self.labels.field_participants, self._participants_label)

        layout.addLayout(form)
        layout.addStretch()

        button_layout = QHBoxLayout()
        button_layout.addStretch()
        close_btn = QPushButton(self.labels.button_close)
        close_btn.clicked.connect(self.close)
        close_btn.setDefault(True)
        button_layout.addWidget(close_btn)
        layout.addLayout(button_layout)

    # --- editable form ---

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setSpacing(8)
        layout.setContentsMargins(8, 8, 8, 8)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        scroll.setFrameStyle(QFrame.NoFrame)

        scroll_content = QWidget()
        content_layout = QVBoxLayout(scroll_content)
        content_layout.setSpacing(8)
        content_layout.setContentsMargins(0, 0, 0, 0)

        form = QFormLayout()
        form.setSpacing(8)

        self._title_edit = QLineEdit()
        self._title_edit.setPlaceholderText("Event title")
        form.addRow(self.labels.field_title, self._title_edit)

        self._all_day_check = QCheckBox(self.labels.checkbox_allday)
        self._all_day_check.stateChanged.connect(self._on_all_day_changed)
        form.addRow("", self._all_day_check)

        self._start_edit = QDateTimeEdit()
        self._start_edit.setCalendarPopup(True)
        self._start_edit.setDisplayFormat("yyyy-MM-dd HH:mm")
        self._start_edit.dateTimeChanged.connect(self._on_start_changed)
        form.addRow(self.labels.field_start, self._start_edit)

        self._end_edit = QDateTimeEdit()
        self._end_edit.setCalendarPopup(True)
        self._end_edit.setDisplayFormat("yyyy-MM-dd HH:mm")
        form.addRow(self.labels.field_end, self._end_edit)

        self._location_edit = QLineEdit()
        self._location_edit.setPlaceholderText("Location (optional)")
        form.addRow(self.labels.field_location, self._location_edit)

        self._status_combo = QComboBox()
        for status in EventStatus:
            self._status_combo.addItem(_status_label(status, self.labels), status)
        form.addRow(self.labels.field_status, self._status_combo)

        roles_layout = QHBoxLayout()
        self._role_checks = {}
        for role in ROLE_ORDER:
            check = QCheckBox(single_role_label(role, self.labels))
            roles_layout.addWidget(check)
            self._role_checks[role] = check
        roles_layout.addStretch()
        form.addRow(self.labels.field_roles, roles_layout)

        self._description_edit = QTextEdit()
        self._description_edit.setPlaceholderText("Description (optional)")
        fm = QFontMetrics(self._description_edit.font())
        self._description_edit.setMinimumHeight(fm.height() * 5 + 10)
        form.addRow(self.labels.field_description, self._description_edit)

        # Unchecking a participant removes them when saving
        self._participants_list = QListWidget()
        self._participants_list.setMaximumHeight(fm.height() * 6 + 10)
        form.addRow(self.labels.field_participants, self._participants_list)

        content_layout.addLayout(form)
        scroll.setWidget(scroll_content)
        layout.addWidget(scroll, 1)

        button_layout = QHBoxLayout()
        permissions = self.request.permissions
        if not self.is_new and permissions is not None and permissions.can_delete:
            delete_btn = QPushButton(self.labels.button_delete)
            delete_btn.setStyleSheet("background: #dc2626; color: white;")
            delete_btn.clicked.connect(self._on_delete)
            button_layout.addWidget(delete_btn)

        button_layout.addStretch()

        cancel_btn = QPushButton(self.labels.button_cancel)
        cancel_btn.clicked.connect(self.close)
        button_layout.addWidget(cancel_btn)

        save_btn = QPushButton(self.labels.button_save)
        save_btn.clicked.connect(self._on_save)
        save_btn.setDefault(True)
        button_layout.addWidget(save_btn)

        layout.addLayout(button_layout)

    def _populate_data(self):
        if self.event:
            event = self.event
            self._title_edit.setText(event.title)
            self._location_edit.setText(event.location or "")
            self._description_edit.setText(event.description or "")
            self._all_day_check.setChecked(event.all_day)
            self._start_edit.setDateTime(QDateTime(to_local_datetime(event.start_time).replace(tzinfo=None)))
            self._end_edit.setDateTime(QDateTime(to_local_datetime(event.end_time).replace(tzinfo=None)))
            self._status_combo.setCurrentIndex(list(EventStatus).index(event.status))
            for role, check in self._role_checks.items():
                check.setChecked(role in event.target_roles)
        else:
            start = to_local_datetime(self.request.initial_start or datetime.now()).replace(tzinfo=None)
            minutes = (start.minute // 30) * 30
            start = start.replace(minute=minutes, second=0, microsecond=0)
            self._start_edit.setDateTime(QDateTime(start))
            self._end_edit.setDateTime(QDateTime(start + timedelta(hours=1)))
            for check in self._role_checks.values():
                check.setChecked(False)
            next(iter(self._role_checks.values())).setChecked(True)

    def set_participants(self, participants: list[Participant]):
        """Show the event's participants once they are loaded."""
        self._participants = list(participants)
        if self.request.read_only:
            names = ", ".join(p.display_name for p in self._participants)
            self._participants_label.setText(names or "-")
            return

        self._participants_list.clear()
        can_change = self.request.permissions is None or self.request.permissions.can_add_participants
        for participant in self._participants:
            item = QListWidgetItem(participant.display_name)
            item.setData(Qt.UserRole, participant.profile_id)
            if can_change:
                item.setFlags(item.flags() | Qt.ItemIsUserCheckable)
            item.setCheckState(Qt.Checked)
            self._participants_list.addItem(item)

    def _selected_participant_ids(self) -> Optional[list[str]]:
        if not self._participants:
            return None
        ids = []
        for i in range(self._participants_list.count()):
            item = self._participants_list.item(i)
            if item.checkState() == Qt.Checked:
                ids.append(item.data(Qt.UserRole))
        if len(ids) == len(self._participants):
            return None
        return ids

    def _on_all_day_changed(self, state: int):
        is_all_day = self._all_day_check.isChecked()
        fmt = "yyyy-MM-dd" if is_all_day else "yyyy-MM-dd HH:mm"
        self._start_edit.setDisplayFormat(fmt)
        self._end_edit.setDisplayFormat(fmt)

    def _on_start_changed(self, dt: QDateTime):
        if self._end_edit.dateTime() <= dt:
            if self._all_day_check.isChecked():
                self._end_edit.setDateTime(dt.addDays(1))
            else:
                self._end_edit.setDateTime(dt.addSecs(3600))

    def _owner(self) -> tuple[OwnerType, Optional[str]]:
        if self.filter_context is not None:
            return self.filter_context.type, self.filter_context.id
        return OwnerType.PERSONAL, self.actor.user_id if self.actor else None

    def _on_save(self):
        title = self._title_edit.text().strip()
        if not title:
            QMessageBox.warning(self, "Validation Error", "Please enter an event title.")
            self._title_edit.setFocus()
            return

        roles = frozenset(role for role, check in self._role_checks.items() if check.isChecked())
        if not roles:
            QMessageBox.warning(self, "Validation Error", "Select at least one role.")
            return

        all_day = self._all_day_check.isChecked()
        start_local = self._start_edit.dateTime().toPython()
        end_local = self._end_edit.dateTime().toPython()
        if all_day:
            start_local = start_local.replace(hour=0, minute=0, second=0, microsecond=0)
            end_local = end_local.replace(hour=23, minute=59, second=59, microsecond=0)

        if end_local <= start_local:
            QMessageBox.warning(self, "Validation Error", "End time must be after start time.")
            return

        fields = dict(
            title=title,
            start_time=localize_naive(start_local),
            end_time=localize_naive(end_local),
            target_roles=roles,
            description=self._description_edit.toPlainText().strip() or None,
            location=self._location_edit.text().strip() or None,
            all_day=all_day,
            status=self._status_combo.currentData(),
        )

        if self.is_new:
            owner_type, owner_id = self._owner()
            event = Event(
                id="",
                owner_type=owner_type,
                owner_id=owner_id,
                created_by=self.actor.user_id if self.actor else None,
                **fields,
            )
            self.save_requested.emit(event, [])
        else:
            self.save_requested.emit(replace(self.event, **fields), self._selected_participant_ids())
        self.close()

    def _on_delete(self):
        result = QMessageBox.question(self, "Delete Event",
            f"Are you sure you want to delete '{self.event.title}'?",
            QMessageBox.Yes | QMessageBox.No, QMessageBox.No)
        if result != QMessageBox.Yes:
            return
        self.delete_requested.emit(self.event)
        self.close()

    def closeEvent(self, close_event: QCloseEvent):
        self.state_store.set(GEOMETRY_KEY, base64.b64encode(self.saveGeometry().data()).decode('utf-8'))
        self.closed.emit()
        super().closeEvent(close_event)


class DayEventsDialog(QWidget):
    """Every event of one day, opened from a month cell."""

    event_clicked = Signal(object)
    create_requested = Signal(object)  # date

    def __init__(self, day, events: list[Event], config: Config, actor: Optional[Actor], parent=None):
        super().__init__(parent)
        self.day = day
        self.events = events
        self.config = config
        self._count_labels: dict[str, QLabel] = {}

        self.setWindowTitle(format_date_long(day, config.localization))
        self.setWindowFlags(Qt.Window)
        self.setAttribute(Qt.WA_DeleteOnClose)
        self.resize(420, 480)
        self._setup_ui(actor)

    def _setup_ui(self, actor: Optional[Actor]):
        labels = self.config.labels
        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        content = QWidget()
        content_layout = QVBoxLayout(content)
        content_layout.setSpacing(4)

        if not self.events:
            empty = QLabel(labels.no_events)
            empty.setAlignment(Qt.AlignCenter)
            empty.setStyleSheet("color: #888; padding: 24px;")
            content_layout.addWidget(empty)

        for event in self.events:
            segments = split_event_into_segments(event, [self.day])
            time_label = (segment_time_label(segments[0], labels) if segments
                          else format_time_range(event.start_time, event.end_time))
            widget = EventWidget(
                event, display_color(event.target_roles, self.config.colors), time_label,
                can_edit(event, actor), subtitle=role_label(event.target_roles, labels),
            )
            widget.clicked.connect(self.event_clicked.emit)
            content_layout.addWidget(widget)

            count_label = QLabel("")
            count_label.setStyleSheet("color: #666; padding-left: 8px;")
            content_layout.addWidget(count_label)
            self._count_labels[event.id] = count_label

        content_layout.addStretch()
        scroll.setWidget(content)
        layout.addWidget(scroll, 1)

        button_layout = QHBoxLayout()
        new_btn = QPushButton(labels.button_new_event)
        new_btn.clicked.connect(lambda: self.create_requested.emit(self.day))
        button_layout.addWidget(new_btn)
        button_layout.addStretch()
        close_btn = QPushButton(labels.button_close)
        close_btn.clicked.connect(self.close)
        button_layout.addWidget(close_btn)
        layout.addLayout(button_layout)

    def set_participant_counts(self, counts: dict[str, int]):
        for event_id, label in self._count_labels.items():
            label.setText(self.config.labels.participants_count.format(counts.get(event_id, 0)))
