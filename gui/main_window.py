"""
Main Window for CLAS Planning.

The primary application window with the planning views, a sidebar for the
calendar context and role filter, and navigation.
"""

import base64
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QToolBar, QPushButton, QLabel, QComboBox,
    QScrollArea, QCheckBox, QFrame, QFileDialog,
    QSplitter, QStatusBar, QMessageBox, QSizePolicy
)
from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtGui import QCloseEvent, QFont, QFontMetrics, QKeySequence, QShortcut

from backend.config import Config
from backend.date_utils import format_date_long, format_month_title
from backend.debug_log import debug_print
from backend.event_client import EventClient
from backend.event_model import Actor, Event, OwnerType, TargetRole
from backend.ics_export import export_to_file
from backend.network_worker import get_network_worker
from backend.notifications import (
    NotificationDispatcher, create_event_and_notify, delete_event_and_notify,
    update_event_and_notify,
)
from backend.permissions import ROLE_ORDER, role_color, single_role_label
from backend.planning import (
    DialogMode, EventDialogRequest, FetchRange, FilterContext, PlanningController,
)
from backend.state_store import StateStore
from backend.timezone_utils import now_local
from backend.views import AgendaRange, RenderContext, ViewType

from .widgets.calendar_widget import (
    CalendarWidget, set_colors_config, set_labels_config, set_localization_config,
)
from .event_dialog import DayEventsDialog, EventDialog

GEOMETRY_KEY = "geometry"
SPLITTER_KEY = "splitter-sizes"
SCROLL_KEY = "scroll-position"

FETCH_OPERATION = "fetch-events"


def _debug_print(msg: str):
    debug_print("UI", msg)


class ColorBox(QFrame):
    """A small square showing one role color."""

    def __init__(self, color: str, parent=None):
        super().__init__(parent)
        fm = QFontMetrics(self.font())
        size = max(fm.height(), 16)
        self.setFixedSize(size, size)
        self.setStyleSheet(f"background-color: {color}; border-radius: 3px; border: 1px solid #999999;")


class PlanningSidebar(QWidget):
    """Sidebar with the calendar context selector, role filter and color legend."""

    context_changed = Signal(object)  # FilterContext or None
    roles_changed = Signal(object)    # frozenset of TargetRole

    def __init__(self, config: Config, actor: Optional[Actor], parent=None):
        super().__init__(parent)
        self.config = config
        self.actor = actor
        self._role_checks: dict[TargetRole, QCheckBox] = {}
        self._setup_ui()

    def _header(self, text: str) -> QLabel:
        header = QLabel(text)
        font = header.font()
        font.setBold(True)
        header.setFont(font)
        return header

    def _setup_ui(self):
        labels = self.config.labels
        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(4)

        layout.addWidget(self._header(labels.sidebar_context))
        self._context_combo = QComboBox()
        self._context_combo.addItem(labels.role_all, None)
        if self.actor is not None and self.actor.user_id:
            self._context_combo.addItem(
                labels.sidebar_personal, FilterContext(OwnerType.PERSONAL, self.actor.user_id))
        if self.config.general.clas_id:
            self._context_combo.addItem(
                labels.sidebar_clas, FilterContext(OwnerType.CLAS, self.config.general.clas_id))
        self._context_combo.currentIndexChanged.connect(
            lambda i: self.context_changed.emit(self._context_combo.itemData(i)))
        layout.addWidget(self._context_combo)

        sep = QFrame()
        sep.setFrameStyle(QFrame.HLine | QFrame.Sunken)
        layout.addWidget(sep)

        layout.addWidget(self._header(labels.sidebar_roles))
        for role in ROLE_ORDER:
            row = QHBoxLayout()
            row.setSpacing(8)
            row.addWidget(ColorBox(role_color(role, self.config.colors)))
            check = QCheckBox(single_role_label(role, labels))
            check.toggled.connect(self._on_role_toggled)
            row.addWidget(check, 1)
            layout.addLayout(row)
            self._role_checks[role] = check

        sep = QFrame()
        sep.setFrameStyle(QFrame.HLine | QFrame.Sunken)
        layout.addWidget(sep)

        layout.addWidget(self._header(labels.sidebar_legend))
        for role in reversed(ROLE_ORDER):
            row = QHBoxLayout()
            row.setSpacing(8)
            row.addWidget(ColorBox(role_color(role, self.config.colors)))
            row.addWidget(QLabel(single_role_label(role, labels)), 1)
            layout.addLayout(row)
        legend_note = QLabel(labels.readonly_notice)
        legend_note.setStyleSheet("color: #666;")
        layout.addWidget(legend_note)

        layout.addStretch()

    def _on_role_toggled(self, checked: bool):
        self.roles_changed.emit(frozenset(
            role for role, check in self._role_checks.items() if check.isChecked()
        ))

    def set_state(self, filter_context: Optional[FilterContext], roles: frozenset):
        """Show persisted preferences without re-emitting them."""
        self._context_combo.blockSignals(True)
        for i in range(self._context_combo.count()):
            if self._context_combo.itemData(i) == filter_context:
                self._context_combo.setCurrentIndex(i)
                break
        self._context_combo.blockSignals(False)

        for role, check in self._role_checks.items():
            check.blockSignals(True)
            check.setChecked(role in roles)
            check.blockSignals(False)


class MainWindow(QMainWindow):
    """
    Main application window.

    Contains:
    - Toolbar with navigation, view switching, new event, reload and export
    - Sidebar with calendar context, role filter and legend
    - Main planning view (day/week/month/agenda)
    """

    VIEWS = [ViewType.DAY, ViewType.WEEK, ViewType.MONTH, ViewType.AGENDA]

    def __init__(self, config: Config, actor: Optional[Actor], client: EventClient,
                 dispatcher: NotificationDispatcher, parent=None):
        super().__init__(parent)
        self.config = config
        self.actor = actor
        self.client = client
        self.dispatcher = dispatcher
        self.state_store = StateStore(config.state_file)

        set_localization_config(config.localization)
        set_colors_config(config.colors)
        set_labels_config(config.labels)

        self.controller = PlanningController(
            RenderContext.from_config(config, actor),
            today=now_local().date(),
            preferences=self.state_store.load_preferences(),
        )

        self._worker = get_network_worker()
        self._worker.operation_finished.connect(self._on_operation_finished)
        self._worker.operation_error.connect(self._on_operation_error)
        self._pending_fetch: Optional[FetchRange] = None
        self._open_dialogs: list[QWidget] = []

        # Keeps the current-time line and the "today" markers fresh
        self._clock_timer = QTimer(self)
        self._clock_timer.timeout.connect(self._render)
        self._clock_timer.start(60000)

        self._setup_window()
        self._setup_ui()
        self._setup_toolbar()
        self._setup_shortcuts()
        self._setup_statusbar()

        self._sidebar.set_state(self.controller.preferences.filter_context,
                                self.controller.preferences.role_filter)
        self._sync_view_combo()
        self._render()
        self._refresh_events()
        QTimer.singleShot(300, self._restore_scroll_position)

    def _setup_window(self):
        """Configure main window properties."""
        self.setWindowTitle(self.config.labels.window_title)
        self.setMinimumSize(480, 480)

        geometry = self.state_store.get(GEOMETRY_KEY)
        if geometry:
            self.restoreGeometry(base64.b64decode(geometry))
        else:
            self.resize(1200, 800)

    def _setup_shortcuts(self):
        QShortcut(QKeySequence("Ctrl+Left"), self).activated.connect(self._on_previous)
        QShortcut(QKeySequence("Ctrl+Right"), self).activated.connect(self._on_next)
        QShortcut(QKeySequence("Ctrl+T"), self).activated.connect(self._on_today)
        QShortcut(QKeySequence("Ctrl+N"), self).activated.connect(self._on_new_event)
        QShortcut(QKeySequence("F5"), self).activated.connect(self._refresh_events)

    def _setup_ui(self):
        """Set up the main UI layout."""
        self._splitter = QSplitter(Qt.Horizontal)

        sidebar_scroll = QScrollArea()
        sidebar_scroll.setWidgetResizable(True)
        sidebar_scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        sidebar_scroll.setMinimumWidth(50)
        sidebar_scroll.setMaximumWidth(400)

        self._sidebar = PlanningSidebar(self.config, self.actor)
        self._sidebar.context_changed.connect(self._on_context_changed)
        self._sidebar.roles_changed.connect(self._on_roles_changed)
        sidebar_scroll.setWidget(self._sidebar)
        self._splitter.addWidget(sidebar_scroll)

        self._calendar_widget = CalendarWidget()
        self._calendar_widget.event_clicked.connect(self._on_event_clicked)
        self._calendar_widget.time_slot_clicked.connect(self._on_time_slot_clicked)
        self._calendar_widget.day_clicked.connect(self._on_day_clicked)
        self._calendar_widget.agenda_range_changed.connect(self._on_agenda_range_changed)
        self._calendar_widget.agenda_query_changed.connect(self._on_agenda_query_changed)
        self._splitter.addWidget(self._calendar_widget)

        self._splitter.setSizes([200, 1000])
        sizes = self.state_store.get(SPLITTER_KEY)
        if isinstance(sizes, list) and len(sizes) == 2:
            self._splitter.setSizes(sizes)

        self.setCentralWidget(self._splitter)

    def _setup_toolbar(self):
        """Set up the navigation toolbar."""
        labels = self.config.labels
        toolbar = QToolBar("Navigation")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)
        if toolbar.layout():
            toolbar.layout().setContentsMargins(8, 12, 8, 8)

        self._date_label = QLabel()
        date_font = QFont(self._date_label.font())
        date_font.setBold(True)
        self._date_label.setFont(date_font)
        self._date_label.setMinimumWidth(200)
        toolbar.addWidget(self._date_label)

        toolbar.addSeparator()

        self._view_combo = QComboBox()
        for view, text in zip(self.VIEWS, [labels.view_day, labels.view_week,
                                            labels.view_month, labels.view_agenda]):
            self._view_combo.addItem(text, view)
        self._view_combo.currentIndexChanged.connect(self._on_view_combo_changed)
        toolbar.addWidget(self._view_combo)

        toolbar.addSeparator()

        self._prev_btn = QPushButton(labels.button_prev)
        self._prev_btn.setToolTip("Previous")
        self._prev_btn.clicked.connect(self._on_previous)
        toolbar.addWidget(self._prev_btn)

        self._today_btn = QPushButton(labels.button_today)
        self._today_btn.clicked.connect(self._on_today)
        toolbar.addWidget(self._today_btn)

        self._next_btn = QPushButton(labels.button_next)
        self._next_btn.setToolTip("Next")
        self._next_btn.clicked.connect(self._on_next)
        toolbar.addWidget(self._next_btn)

        left_spacer = QWidget()
        left_spacer.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)
        toolbar.addWidget(left_spacer)

        self._new_event_btn = QPushButton(labels.button_new_event)
        self._new_event_btn.clicked.connect(self._on_new_event)
        toolbar.addWidget(self._new_event_btn)

        right_spacer = QWidget()
        right_spacer.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)
        toolbar.addWidget(right_spacer)

        self._reload_btn = QPushButton(labels.button_reload)
        self._reload_btn.setToolTip("Reload events from the server")
        self._reload_btn.clicked.connect(self._refresh_events)
        toolbar.addWidget(self._reload_btn)

        self._export_btn = QPushButton(labels.button_export)
        self._export_btn.setToolTip("Export the visible events as an iCalendar file")
        self._export_btn.clicked.connect(self._on_export)
        toolbar.addWidget(self._export_btn)

    def _setup_statusbar(self):
        self._statusbar = QStatusBar()
        self.setStatusBar(self._statusbar)
        self._statusbar.showMessage("Ready")

    # --- state ---

    def _save_state(self):
        self.state_store.save_preferences(self.controller.preferences)
        self.state_store.update({
            GEOMETRY_KEY: base64.b64encode(self.saveGeometry().data()).decode('utf-8'),
            SPLITTER_KEY: self._splitter.sizes(),
            SCROLL_KEY: self._calendar_widget.get_scroll_position(),
        })

    def _restore_scroll_position(self):
        position = self.state_store.get(SCROLL_KEY, 0)
        if isinstance(position, int):
            self._calendar_widget.set_scroll_position(position)

    def _sync_view_combo(self):
        self._view_combo.blockSignals(True)
        self._view_combo.setCurrentIndex(self.VIEWS.index(self.controller.view))
        self._view_combo.blockSignals(False)

    # --- rendering ---

    def _render(self):
        """Rebuild the current view from the event snapshot."""
        model = self.controller.render(self._calendar_widget.width(), now_local())
        self._calendar_widget.set_model(model)
        self._update_date_label()

    def _update_date_label(self):
        controller = self.controller
        localization = self.config.localization
        if controller.view == ViewType.DAY:
            text = format_date_long(controller.current_date, localization)
        elif controller.view == ViewType.AGENDA:
            text = self.config.labels.view_agenda
        else:
            text = format_month_title(controller.current_date, localization)
        self._date_label.setText(text)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        # Narrow windows switch the week grid to three days
        if self.controller.view == ViewType.WEEK and getattr(self, "_date_label", None) is not None:
            self._render()

    # --- data ---

    def _refresh_events(self):
        """Fetch the events the current view needs in the background."""
        fetch_range = self.controller.fetch_range(now_local().date())
        if fetch_range == self._pending_fetch and self._worker.is_pending(FETCH_OPERATION):
            return
        self._pending_fetch = fetch_range
        filter_context = self.controller.preferences.filter_context
        self._statusbar.showMessage("Loading events...")
        _debug_print(f"Fetching {fetch_range.start} .. {fetch_range.end}")
        self._worker.submit(
            FETCH_OPERATION, self._fetch_job, fetch_range,
            filter_context.type if filter_context else None,
            filter_context.id if filter_context else None,
            supersede=True,
        )

    def _fetch_job(self, fetch_range: FetchRange, owner_type, owner_id):
        events = self.client.fetch_events(fetch_range.start, fetch_range.end, owner_type, owner_id)
        return fetch_range, events

    def _on_operation_finished(self, operation_id: str, result: object):
        if operation_id == FETCH_OPERATION:
            fetch_range, events = result
            if fetch_range != self._pending_fetch:
                _debug_print("Dropping stale fetch result")
                return
            self.controller.set_events(events)
            self._render()
            self._statusbar.showMessage(f"Loaded {len(events)} events", 3000)
        elif operation_id.startswith("mutation-"):
            self._statusbar.showMessage(self._dispatch_message(result), 5000)
            self._refresh_events()
        elif operation_id.startswith("participants-"):
            dialog, participants = result
            if dialog in self._open_dialogs:
                dialog.set_participants(participants)
        elif operation_id == "participant-counts":
            dialog, counts = result
            if dialog in self._open_dialogs:
                dialog.set_participant_counts(counts)

    def _on_operation_error(self, operation_id: str, error_message: str):
        if operation_id == FETCH_OPERATION:
            self._statusbar.showMessage(f"Failed to load events: {error_message}")
        elif operation_id.startswith("mutation-"):
            self._statusbar.showMessage(f"Save failed: {error_message}")
            QMessageBox.critical(self, "Error", error_message)
            self._refresh_events()
        else:
            self._statusbar.showMessage(error_message, 5000)

    def _dispatch_message(self, result) -> str:
        if result is None or not self.dispatcher.enabled:
            return "Saved"
        if result.failed:
            return f"Saved; {result.failed} notification(s) failed"
        return f"Saved; {result.sent} notification(s) sent"

    # --- navigation ---

    def _navigated(self):
        self._render()
        self._refresh_events()

    def _on_previous(self):
        self.controller.go_previous()
        self._navigated()

    def _on_next(self):
        self.controller.go_next()
        self._navigated()

    def _on_today(self):
        self.controller.go_today(now_local().date())
        self._navigated()

    def _on_view_combo_changed(self, index: int):
        self.controller.set_view(self._view_combo.itemData(index))
        self._navigated()

    def _on_context_changed(self, filter_context: Optional[FilterContext]):
        self.controller.set_filter_context(filter_context)
        self._pending_fetch = None
        self._navigated()

    def _on_roles_changed(self, roles: frozenset):
        self.controller.set_role_filter(roles)
        self._render()

    def _on_agenda_range_changed(self, agenda_range: AgendaRange):
        self.controller.set_agenda_range(agenda_range)
        self._render()

    def _on_agenda_query_changed(self, query: str):
        self.controller.set_agenda_query(query)
        self._render()

    # --- dialogs ---

    def _on_event_clicked(self, event: Event):
        self._open_event_dialog(self.controller.on_event_click(event))

    def _on_time_slot_clicked(self, day, hour: int):
        self._open_event_dialog(self.controller.on_time_slot_click(day, hour))

    def _on_day_clicked(self, day):
        dialog = DayEventsDialog(day, self.controller.day_events(day), self.config, self.actor)
        dialog.event_clicked.connect(self._on_event_clicked)
        dialog.create_requested.connect(
            lambda d: self._open_event_dialog(self.controller.on_day_click(d)))
        self._show_dialog(dialog)
        if dialog.events:
            ids = [e.id for e in dialog.events]
            self._worker.submit("participant-counts",
                                lambda: (dialog, self.client.get_participant_counts(ids)))

    def _on_new_event(self):
        self._open_event_dialog(self.controller.on_create_event(now_local()))

    def _open_event_dialog(self, request: EventDialogRequest):
        dialog = EventDialog(request, self.config, self.actor, self.state_store,
                             filter_context=self.controller.preferences.filter_context)
        dialog.save_requested.connect(self._on_save_requested)
        dialog.delete_requested.connect(self._on_delete_requested)
        self._show_dialog(dialog)

        if request.mode != DialogMode.CREATE:
            event_id = request.event.id
            self._worker.submit(f"participants-{event_id}",
                                lambda: (dialog, self.client.get_event_participants(event_id)))

    def _show_dialog(self, dialog: QWidget):
        self._open_dialogs.append(dialog)
        dialog.destroyed.connect(lambda _=None, d=dialog: self._forget_dialog(d))
        dialog.show()
        dialog.raise_()
        dialog.activateWindow()

    def _forget_dialog(self, dialog: QWidget):
        if dialog in self._open_dialogs:
            self._open_dialogs.remove(dialog)

    def _author_name(self) -> str:
        return self.config.general.user_name or (self.actor.user_id if self.actor else "")

    def _on_save_requested(self, event: Event, participant_ids):
        self._statusbar.showMessage(f"Saving '{event.title}'...")
        if event.id:
            self._worker.submit(
                self._worker.next_operation_id("mutation"),
                lambda: update_event_and_notify(self.client, self.dispatcher, event,
                                                participant_ids, self._author_name())[1],
            )
        else:
            self._worker.submit(
                self._worker.next_operation_id("mutation"),
                lambda: create_event_and_notify(self.client, self.dispatcher, event,
                                                participant_ids or [], self._author_name())[1],
            )

    def _on_delete_requested(self, event: Event):
        self._statusbar.showMessage(f"Deleting '{event.title}'...")
        self._worker.submit(
            self._worker.next_operation_id("mutation"),
            lambda: delete_event_and_notify(self.client, self.dispatcher, event, self._author_name()),
        )

    def _on_export(self):
        path, _ = QFileDialog.getSaveFileName(
            self, "Export events", "planning.ics", "iCalendar (*.ics)")
        if not path:
            return
        events = self.controller.visible_events()
        try:
            export_to_file(events, path, self.config.labels.window_title)
        except OSError as e:
            QMessageBox.critical(self, "Error", f"Could not export events:\n{e}")
            return
        self._statusbar.showMessage(f"Exported {len(events)} events to {path}", 3000)

    def closeEvent(self, event: QCloseEvent):
        """Handle window close."""
        for dialog in self._open_dialogs[:]:
            dialog.close()
        self._save_state()
        super().closeEvent(event)
