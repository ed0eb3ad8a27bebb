"""
Event Widget for displaying individual planning events.

Shows event blocks in the time grids and the agenda list, colored by the
event's highest-priority target role.
"""

from PySide6.QtWidgets import QWidget, QLabel, QVBoxLayout, QHBoxLayout, QFrame, QSizePolicy
from PySide6.QtCore import Qt, Signal, QSize, QPointF
from PySide6.QtGui import QColor, QFont, QMouseEvent, QPainter, QPolygonF, QBrush, QFontMetrics

from backend.event_model import Event, EventStatus


def get_contrasting_text_color(bg_color: str) -> str:
    """Calculate whether black or white text contrasts better with the background."""
    color = bg_color.lstrip('#')
    if len(color) == 3:
        color = ''.join([c*2 for c in color])

    try:
        r = int(color[0:2], 16)
        g = int(color[2:4], 16)
        b = int(color[4:6], 16)
    except (ValueError, IndexError):
        return "#000000"

    luminance = (0.299 * r + 0.587 * g + 0.114 * b) / 255
    return "#000000" if luminance > 0.5 else "#ffffff"


def lighten_color(hex_color: str, factor: float = 0.3) -> str:
    """Lighten a hex color by the given factor."""
    color = hex_color.lstrip('#')
    if len(color) == 3:
        color = ''.join([c*2 for c in color])

    try:
        r = int(color[0:2], 16)
        g = int(color[2:4], 16)
        b = int(color[4:6], 16)
    except (ValueError, IndexError):
        return hex_color

    r = int(min(255, r + (255 - r) * factor))
    g = int(min(255, g + (255 - g) * factor))
    b = int(min(255, b + (255 - b) * factor))
    return f"#{r:02x}{g:02x}{b:02x}"


def _single_line(text: str) -> str:
    return ' '.join(text.split()) if text else text


class EventWidget(QFrame):
    """
    Widget representing a single event block.

    A triangle in the bottom-right corner marks events the signed-in user
    may only view.
    """

    # Emitted with the original Event (never a segment)
    clicked = Signal(object)

    def __init__(
        self,
        event: Event,
        color: str,
        time_label: str,
        editable: bool,
        compact: bool = False,
        subtitle: str = "",
        parent: QWidget = None
    ):
        super().__init__(parent)
        self.event = event
        self.color = color
        self.time_label = time_label
        self.editable = editable
        self.compact = compact
        self.subtitle = subtitle

        self._setup_ui()
        self._apply_style()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignTop)
        if self.compact:
            layout.setContentsMargins(4, 2, 4, 2)
            layout.setSpacing(0)
        else:
            layout.setContentsMargins(6, 4, 6, 4)
            layout.setSpacing(2)

        title_label = QLabel(_single_line(self.event.title))
        title_label.setTextFormat(Qt.PlainText)
        title_font = QFont(self.font())
        title_font.setBold(True)
        if self.event.status == EventStatus.CANCELLED:
            title_font.setStrikeOut(True)
        title_label.setFont(title_font)
        title_label.setWordWrap(not self.compact)

        if self.compact:
            layout.addWidget(title_label)
        else:
            header = QHBoxLayout()
            header.setSpacing(4)
            header.addWidget(QLabel(self.time_label))
            header.addStretch()
            layout.addLayout(header)
            layout.addWidget(title_label)

        if self.event.location and not self.compact:
            location_label = QLabel(f"📍 {_single_line(self.event.location)}")
            location_label.setTextFormat(Qt.PlainText)
            layout.addWidget(location_label)

        if self.subtitle:
            subtitle_label = QLabel(self.subtitle)
            subtitle_label.setStyleSheet("color: rgba(0, 0, 0, 0.6);")
            layout.addWidget(subtitle_label)

        self.setFrameStyle(QFrame.StyledPanel | QFrame.Plain)
        self.setCursor(Qt.PointingHandCursor)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Minimum)
        self._setup_tooltip()

    def _setup_tooltip(self) -> None:
        lines = [f"<b>{self.event.title}</b>", self.time_label]
        if self.event.location:
            lines.append(f"📍 {self.event.location}")
        if self.event.description:
            desc = self.event.description
            if len(desc) > 200:
                desc = desc[:200] + "..."
            lines.append(f"<br>{desc}")
        self.setToolTip("<br>".join(lines))

    def _apply_style(self) -> None:
        text_color = get_contrasting_text_color(lighten_color(self.color, 0.4))
        self.setStyleSheet(f"""
            EventWidget {{
                background-color: {lighten_color(self.color, 0.4)};
                border: 2px solid {self.color};
                border-left: 4px solid {self.color};
                border-radius: 4px;
                color: {text_color};
            }}
            EventWidget:hover {{
                background-color: {lighten_color(self.color, 0.2)};
            }}
            QLabel {{
                color: {text_color};
                background: transparent;
                border: none;
                padding: 0px;
                margin: 0px;
            }}
        """)

    def mousePressEvent(self, mouse_event: QMouseEvent) -> None:
        if mouse_event.button() == Qt.LeftButton:
            self.clicked.emit(self.event)
        super().mousePressEvent(mouse_event)

    def sizeHint(self) -> QSize:
        fm = QFontMetrics(self.font())
        lines = 1 if self.compact else 2 + bool(self.event.location)
        lines += bool(self.subtitle)
        return QSize(150, lines * fm.height() + (8 if self.compact else 12))

    def minimumSizeHint(self) -> QSize:
        fm = QFontMetrics(self.font())
        return QSize(40, fm.height() + 4)

    def paintEvent(self, event) -> None:
        """Draw the read-only indicator triangle."""
        super().paintEvent(event)
        if self.editable:
            return

        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        size = QFontMetrics(self.font()).height() // 2
        w = self.width()
        h = self.height()

        painter.setPen(Qt.NoPen)
        painter.setBrush(QBrush(QColor(get_contrasting_text_color(lighten_color(self.color, 0.4)))))
        painter.drawPolygon(QPolygonF([
            QPointF(w, h),
            QPointF(w - size, h),
            QPointF(w, h - size),
        ]))
        painter.end()
