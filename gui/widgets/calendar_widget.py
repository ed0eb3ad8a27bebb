"""
Calendar Widget with Day, Week, Month and Agenda views.

The views draw render models built by `backend.views`; they never decide
where an event goes or who may edit it. Clicks are reported upward as
signals carrying dates and original events.
"""

from datetime import date
from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGridLayout, QLabel, QLineEdit,
    QScrollArea, QFrame, QSizePolicy, QStackedWidget, QTabBar
)
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QFontMetrics, QMouseEvent

from backend.config import ColorsConfig, LabelsConfig, LocalizationConfig
from backend.geometry import TimeAxis, Unit
from backend.views import (
    AgendaRange, AgendaViewModel, BadgeTier, DayColumn, DayViewModel,
    MonthCell, MonthViewModel, ViewType, WeekViewModel,
)
from .event_widget import EventWidget, get_contrasting_text_color


# Module-level configs (set by MainWindow at startup)
_colors_config: ColorsConfig = ColorsConfig()
_labels_config: LabelsConfig = LabelsConfig()
_localization_config: LocalizationConfig = LocalizationConfig()

# Pixel height of one hour in the percent-based day grid
DAY_VIEW_HOUR_HEIGHT = 48

_BADGE_COLORS = {
    BadgeTier.SECONDARY: "#e5e7eb",
    BadgeTier.DEFAULT: "#1f2937",
    BadgeTier.DESTRUCTIVE: "#dc2626",
}


def set_colors_config(config: ColorsConfig):
    global _colors_config
    _colors_config = config


def set_labels_config(config: LabelsConfig):
    global _labels_config
    _labels_config = config


def set_localization_config(config: LocalizationConfig):
    global _localization_config
    _localization_config = config


def _get_time_column_width() -> int:
    fm = QFontMetrics(QLabel().font())
    return fm.horizontalAdvance("00:00") + 16


def _clear_layout(layout):
    while layout.count():
        item = layout.takeAt(0)
        widget = item.widget()
        if widget is not None:
            widget.deleteLater()


def _empty_label() -> QLabel:
    label = QLabel(_labels_config.no_events)
    label.setAlignment(Qt.AlignCenter)
    label.setStyleSheet("color: #888; padding: 12px;")
    label.hide()
    return label


class DayColumnWidget(QWidget):
    """
    A single day column with absolute positioning for event segments.

    Pixel axes give the column a fixed height; percent axes stretch the
    column and scale every position to its current height.
    """

    slot_clicked = Signal(object, int)  # date, hour
    event_clicked = Signal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._column: Optional[DayColumn] = None
        self._axis: Optional[TimeAxis] = None
        self._event_widgets: list[EventWidget] = []
        self._hour_lines: list[QFrame] = []
        self._compact = False

        self.setCursor(Qt.PointingHandCursor)
        self.setAttribute(Qt.WA_StyledBackground, True)

        self._time_indicator = QFrame(self)
        self._time_indicator.setFrameStyle(QFrame.HLine | QFrame.Plain)
        self._time_indicator.setStyleSheet(f"background-color: {_colors_config.current_time_line};")
        self._time_indicator.setFixedHeight(2)
        self._time_indicator.hide()

    def set_column(self, column: DayColumn, axis: TimeAxis, compact: bool = False):
        self._column = column
        self._axis = axis
        self._compact = compact

        if axis.unit == Unit.PIXELS:
            self.setFixedHeight(int(axis.total_height))
        else:
            self.setMinimumHeight(len(axis.hours()) * DAY_VIEW_HOUR_HEIGHT)
            self.setMaximumHeight(16777215)

        background = _colors_config.today_highlight_background if column.is_today else "white"
        self.setStyleSheet(f"DayColumnWidget {{ background-color: {background}; border-left: 1px solid #e0e0e0; }}")

        self._build_hour_lines()
        self._build_event_widgets()
        self._position_children()

    def _build_hour_lines(self):
        for line in self._hour_lines:
            line.deleteLater()
        self._hour_lines.clear()
        for _ in self._axis.hours()[1:]:
            line = QFrame(self)
            line.setFrameStyle(QFrame.HLine | QFrame.Plain)
            line.setStyleSheet("background-color: #e5e7eb;")
            line.lower()
            self._hour_lines.append(line)

    def _build_event_widgets(self):
        for widget in self._event_widgets:
            widget.deleteLater()
        self._event_widgets.clear()

        for item in self._column.items:
            widget = EventWidget(
                item.event, item.color, item.time_label, item.editable,
                compact=self._compact or item.position.height < 2 * self._hour_pixels() / 3,
                parent=self,
            )
            widget.clicked.connect(self.event_clicked.emit)
            widget.show()
            self._event_widgets.append(widget)

    def _hour_pixels(self) -> float:
        if self._axis is None:
            return 0.0
        if self._axis.unit == Unit.PIXELS:
            return self._axis.unit_height
        return self.height() / len(self._axis.hours())

    def _to_pixels(self, value: float) -> int:
        if self._axis.unit == Unit.PIXELS:
            return int(value)
        return int(value * self.height() / self._axis.total_height)

    def _position_children(self):
        if self._column is None:
            return

        hour_px = self._hour_pixels()
        for i, line in enumerate(self._hour_lines, start=1):
            line.setGeometry(0, int(i * hour_px), self.width(), 1)

        available_width = self.width() - 4
        for widget, item in zip(self._event_widgets, self._column.items):
            y = self._to_pixels(item.position.top)
            height = max(self._to_pixels(item.position.height), 4)
            x = 2 + int(available_width * item.placement.left / 100)
            width = max(int(available_width * item.placement.width / 100) - 1, 4)
            widget.setGeometry(x, y + 1, width, height - 2)

        if self._column.now_offset is not None:
            self._time_indicator.setGeometry(0, self._to_pixels(self._column.now_offset), self.width(), 2)
            self._time_indicator.show()
            self._time_indicator.raise_()
        else:
            self._time_indicator.hide()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._position_children()

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton and self._column is not None:
            hour_px = self._hour_pixels()
            offset = int(event.position().y() / hour_px) if hour_px else 0
            hour = max(0, min(23, self._axis.start_hour + offset))
            self.slot_clicked.emit(self._column.day, hour)
        super().mousePressEvent(event)


class TimeLabelsWidget(QWidget):
    """Hour labels aligned with the hour lines of a day column."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setFixedWidth(_get_time_column_width())
        self._labels: list[QLabel] = []
        self._axis: Optional[TimeAxis] = None

    def set_axis(self, axis: TimeAxis):
        self._axis = axis
        for label in self._labels:
            label.deleteLater()
        self._labels.clear()
        for hour in axis.hours():
            label = QLabel(f"{hour:02d}:00", self)
            label.setAlignment(Qt.AlignRight | Qt.AlignTop)
            label.setStyleSheet("color: #666; padding-right: 4px;")
            label.show()
            self._labels.append(label)
        if axis.unit == Unit.PIXELS:
            self.setFixedHeight(int(axis.total_height))
        else:
            self.setMinimumHeight(len(axis.hours()) * DAY_VIEW_HOUR_HEIGHT)
            self.setMaximumHeight(16777215)
        self._position_labels()

    def _position_labels(self):
        if not self._labels:
            return
        hour_px = self.height() / len(self._labels)
        for i, label in enumerate(self._labels):
            label.setGeometry(0, int(i * hour_px), self.width(), label.sizeHint().height())

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._position_labels()


class DayView(QWidget):
    """Single day over 24 hours."""

    slot_clicked = Signal(object, int)
    event_clicked = Signal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._setup_ui()

    def _setup_ui(self):
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        self._title = QLabel()
        self._title.setAlignment(Qt.AlignCenter)
        self._title.setStyleSheet("font-weight: bold; padding: 8px;")
        main_layout.addWidget(self._title)

        self._empty_label = _empty_label()
        main_layout.addWidget(self._empty_label)

        content = QWidget()
        content_layout = QHBoxLayout(content)
        content_layout.setContentsMargins(0, 0, 0, 0)
        content_layout.setSpacing(0)

        self._time_labels = TimeLabelsWidget()
        content_layout.addWidget(self._time_labels)

        self._day_column = DayColumnWidget()
        self._day_column.slot_clicked.connect(self.slot_clicked.emit)
        self._day_column.event_clicked.connect(self.event_clicked.emit)
        content_layout.addWidget(self._day_column, 1)

        self._scroll = QScrollArea()
        self._scroll.setWidgetResizable(True)
        self._scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self._scroll.setWidget(content)
        main_layout.addWidget(self._scroll, 1)

    def set_model(self, model: DayViewModel):
        self._title.setText(model.title)
        self._time_labels.set_axis(model.axis)
        self._day_column.set_column(model.column, model.axis)
        self._empty_label.setVisible(model.is_empty)


class WeekView(QWidget):
    """Week grid: seven day columns, or three on narrow windows."""

    slot_clicked = Signal(object, int)
    event_clicked = Signal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._header_labels: list[QLabel] = []
        self._day_columns: list[DayColumnWidget] = []
        self._setup_ui()

    def _setup_ui(self):
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        from PySide6.QtWidgets import QApplication, QStyle
        scrollbar_width = QApplication.style().pixelMetric(QStyle.PM_ScrollBarExtent)
        time_col_width = _get_time_column_width()

        header = QWidget()
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(time_col_width, 0, scrollbar_width, 0)
        header_layout.setSpacing(0)

        content = QWidget()
        content_layout = QHBoxLayout(content)
        content_layout.setContentsMargins(0, 0, 0, 0)
        content_layout.setSpacing(0)

        self._time_labels = TimeLabelsWidget()
        content_layout.addWidget(self._time_labels)

        for _ in range(7):
            label = QLabel()
            label.setAlignment(Qt.AlignCenter)
            header_layout.addWidget(label, 1)
            self._header_labels.append(label)

            col = DayColumnWidget()
            col.slot_clicked.connect(self.slot_clicked.emit)
            col.event_clicked.connect(self.event_clicked.emit)
            content_layout.addWidget(col, 1)
            self._day_columns.append(col)

        main_layout.addWidget(header)

        self._empty_label = _empty_label()
        main_layout.addWidget(self._empty_label)

        self._scroll = QScrollArea()
        self._scroll.setWidgetResizable(True)
        self._scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self._scroll.setWidget(content)
        main_layout.addWidget(self._scroll, 1)

    def set_model(self, model: WeekViewModel):
        self._time_labels.set_axis(model.axis)

        for i, (label, col) in enumerate(zip(self._header_labels, self._day_columns)):
            if i >= len(model.columns):
                label.hide()
                col.hide()
                continue

            column = model.columns[i]
            day_name = _localization_config.get_day_name(column.day.weekday())
            label.setText(f"{day_name} {column.day.day}")
            if column.is_today:
                label.setStyleSheet(f"font-weight: bold; padding: 8px; background: {_colors_config.today_highlight_background};")
            else:
                label.setStyleSheet("font-weight: bold; padding: 8px;")
            label.show()

            col.set_column(column, model.axis, compact=model.compact)
            col.show()

        self._empty_label.setVisible(model.is_empty)

    def get_scroll_position(self) -> int:
        return self._scroll.verticalScrollBar().value()

    def set_scroll_position(self, position: int):
        self._scroll.verticalScrollBar().setValue(position)


class MonthDayCell(QFrame):
    """Single day cell in month view: day number and an event-count badge."""

    clicked = Signal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._cell: Optional[MonthCell] = None
        self._setup_ui()

    @property
    def date(self) -> Optional[date]:
        return self._cell.day if self._cell else None

    def _setup_ui(self):
        self.setFrameStyle(QFrame.Box | QFrame.Plain)
        fm = QFontMetrics(self.font())
        self.setMinimumSize(max(fm.horizontalAdvance("00") + 16, 60), max(2 * fm.height() + 12, 60))
        self.setCursor(Qt.PointingHandCursor)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.setSpacing(2)

        self._day_label = QLabel()
        self._day_label.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        layout.addWidget(self._day_label)

        self._badge = QLabel()
        self._badge.setAlignment(Qt.AlignCenter)
        self._badge.setSizePolicy(QSizePolicy.Maximum, QSizePolicy.Maximum)
        layout.addWidget(self._badge, 0, Qt.AlignRight | Qt.AlignBottom)
        layout.addStretch()

    def set_cell(self, cell: MonthCell):
        self._cell = cell
        self._day_label.setText(str(cell.day.day))

        if cell.is_today:
            self._day_label.setStyleSheet("font-weight: bold; color: #1d4ed8;")
        elif not cell.in_current_month:
            self._day_label.setStyleSheet("color: #9ca3af;")
        else:
            self._day_label.setStyleSheet("")

        if cell.is_today:
            bg = _colors_config.today_highlight_background
        elif not cell.in_current_month or cell.is_weekend:
            bg = _colors_config.month_cell_other
        else:
            bg = "white"
        self.setStyleSheet(f"MonthDayCell {{ background-color: {bg}; border: 1px solid #e0e0e0; }}")

        tier = cell.tier
        if tier == BadgeTier.NONE:
            self._badge.hide()
            return
        badge_bg = _BADGE_COLORS[tier]
        self._badge.setText(str(cell.count))
        self._badge.setToolTip(tier.label)
        self._badge.setStyleSheet(
            f"background: {badge_bg}; color: {get_contrasting_text_color(badge_bg)};"
            " border-radius: 8px; padding: 1px 6px; font-weight: bold;"
        )
        self._badge.show()

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton and self._cell is not None:
            self.clicked.emit(self._cell.day)
        super().mousePressEvent(event)


class MonthView(QWidget):
    """Month grid of whole weeks."""

    day_clicked = Signal(object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._cells: list[MonthDayCell] = []
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self._title = QLabel()
        self._title.setAlignment(Qt.AlignCenter)
        self._title.setStyleSheet("font-weight: bold; padding: 8px;")
        layout.addWidget(self._title)

        header = QWidget()
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(0, 0, 0, 0)
        header_layout.setSpacing(1)
        for i in range(7):
            label = QLabel(_localization_config.get_day_name(i))
            label.setAlignment(Qt.AlignCenter)
            label.setStyleSheet("font-weight: bold; padding: 8px;")
            header_layout.addWidget(label, 1)
        layout.addWidget(header)

        self._empty_label = _empty_label()
        layout.addWidget(self._empty_label)

        grid_widget = QWidget()
        self._grid_layout = QGridLayout(grid_widget)
        self._grid_layout.setContentsMargins(0, 0, 0, 0)
        self._grid_layout.setSpacing(1)
        for col in range(7):
            self._grid_layout.setColumnStretch(col, 1)

        for row in range(6):
            for col in range(7):
                cell = MonthDayCell()
                cell.clicked.connect(self.day_clicked.emit)
                self._grid_layout.addWidget(cell, row, col)
                self._cells.append(cell)

        layout.addWidget(grid_widget, 1)

    def set_model(self, model: MonthViewModel):
        self._title.setText(model.title)
        for i, cell_widget in enumerate(self._cells):
            if i < len(model.cells):
                cell_widget.set_cell(model.cells[i])
                cell_widget.show()
            else:
                cell_widget.hide()
        self._empty_label.setVisible(model.is_empty)


class AgendaView(QWidget):
    """Upcoming events grouped by day, with a range selector and text search."""

    event_clicked = Signal(object)
    range_changed = Signal(object)   # AgendaRange
    query_changed = Signal(str)

    RANGES = [AgendaRange.DAYS_7, AgendaRange.DAYS_30, AgendaRange.MONTHS_3, AgendaRange.ALL]

    def __init__(self, parent=None):
        super().__init__(parent)
        self._setup_ui()

    def _setup_ui(self):
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(4)

        controls = QHBoxLayout()
        controls.setContentsMargins(8, 8, 8, 0)

        self._range_tabs = QTabBar()
        for agenda_range in self.RANGES:
            self._range_tabs.addTab(getattr(_labels_config, f"agenda_{agenda_range.value}"))
        self._range_tabs.currentChanged.connect(lambda i: self.range_changed.emit(self.RANGES[i]))
        controls.addWidget(self._range_tabs)
        controls.addStretch()

        self._search = QLineEdit()
        self._search.setPlaceholderText("🔍")
        self._search.setClearButtonEnabled(True)
        self._search.textChanged.connect(self.query_changed.emit)
        controls.addWidget(self._search)
        main_layout.addLayout(controls)

        self._scroll = QScrollArea()
        self._scroll.setWidgetResizable(True)
        self._scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)

        self._content = QWidget()
        self._content_layout = QVBoxLayout(self._content)
        self._content_layout.setContentsMargins(8, 8, 8, 8)
        self._content_layout.setSpacing(4)
        self._scroll.setWidget(self._content)
        main_layout.addWidget(self._scroll, 1)

    def set_range(self, agenda_range: AgendaRange):
        self._range_tabs.blockSignals(True)
        self._range_tabs.setCurrentIndex(self.RANGES.index(agenda_range))
        self._range_tabs.blockSignals(False)

    def set_model(self, model: AgendaViewModel):
        self.set_range(model.range)
        _clear_layout(self._content_layout)

        if model.is_empty:
            text = _labels_config.no_events
            if model.query:
                text = f"{text}\n{_labels_config.no_events_search}"
            label = QLabel(text)
            label.setAlignment(Qt.AlignCenter)
            label.setStyleSheet("color: #888; padding: 24px;")
            self._content_layout.addWidget(label)
            self._content_layout.addStretch()
            return

        for group in model.groups:
            header = QLabel(group.header)
            header.setStyleSheet("font-weight: bold; padding: 8px 0 2px 0; border-bottom: 1px solid #e0e0e0;")
            self._content_layout.addWidget(header)
            for item in group.items:
                widget = EventWidget(item.event, item.color, item.time_label, item.editable,
                                     subtitle=item.roles_label)
                widget.clicked.connect(self.event_clicked.emit)
                self._content_layout.addWidget(widget)
        self._content_layout.addStretch()


class CalendarWidget(QWidget):
    """Main calendar widget with switchable views."""

    event_clicked = Signal(object)
    time_slot_clicked = Signal(object, int)  # date, hour
    day_clicked = Signal(object)
    agenda_range_changed = Signal(object)
    agenda_query_changed = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._current_view = ViewType.WEEK
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._stack = QStackedWidget()

        self._day_view = DayView()
        self._week_view = WeekView()
        self._month_view = MonthView()
        self._agenda_view = AgendaView()

        for view in [self._day_view, self._week_view]:
            view.slot_clicked.connect(self.time_slot_clicked.emit)
            view.event_clicked.connect(self.event_clicked.emit)

        self._month_view.day_clicked.connect(self.day_clicked.emit)

        self._agenda_view.event_clicked.connect(self.event_clicked.emit)
        self._agenda_view.range_changed.connect(self.agenda_range_changed.emit)
        self._agenda_view.query_changed.connect(self.agenda_query_changed.emit)

        self._stack.addWidget(self._day_view)
        self._stack.addWidget(self._week_view)
        self._stack.addWidget(self._month_view)
        self._stack.addWidget(self._agenda_view)
        layout.addWidget(self._stack)

    def get_current_view(self) -> ViewType:
        return self._current_view

    def set_model(self, model):
        """Show the view matching the render model and draw it."""
        if isinstance(model, DayViewModel):
            self._current_view = ViewType.DAY
            self._day_view.set_model(model)
            self._stack.setCurrentWidget(self._day_view)
        elif isinstance(model, WeekViewModel):
            self._current_view = ViewType.WEEK
            self._week_view.set_model(model)
            self._stack.setCurrentWidget(self._week_view)
        elif isinstance(model, MonthViewModel):
            self._current_view = ViewType.MONTH
            self._month_view.set_model(model)
            self._stack.setCurrentWidget(self._month_view)
        elif isinstance(model, AgendaViewModel):
            self._current_view = ViewType.AGENDA
            self._agenda_view.set_model(model)
            self._stack.setCurrentWidget(self._agenda_view)
        else:
            raise TypeError(f"Unknown render model: {type(model).__name__}")

    def get_scroll_position(self) -> int:
        return self._week_view.get_scroll_position()

    def set_scroll_position(self, position: int):
        self._week_view.set_scroll_position(position)
