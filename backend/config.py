"""
Configuration parser for CLAS Planning.

Handles TOML file parsing for the planning engine, the hosted backend
and the notification service.
"""

import tomllib
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class GeneralConfig:
    """Session-level settings."""
    timezone: str = "Europe/Paris"
    user_id: str = ""
    user_name: str = ""   # Shown as the author in notification emails
    account_type: str = "animator"  # admin, coordinator, director or animator
    clas_id: str = ""     # CLAS center offered in the calendar context selector


@dataclass
class BackendConfig:
    """Configuration for the hosted database REST API."""
    url: str = ""
    api_key: str = ""
    access_token: str = ""  # User session token; falls back to api_key
    timeout: int = 30
    allow_inverted_events: bool = False  # Keep rows whose end is before their start


@dataclass
class NotificationsConfig:
    """Configuration for the transactional email service."""
    api_key: str = ""
    api_url: str = "https://api.resend.com/emails"
    from_email: str = "notifications@example.org"
    send_delay: float = 0.6    # Seconds between two sends (provider allows 2/sec)
    retry_delay: float = 1.0   # Seconds before the single retry on rate limit
    timeout: int = 30

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass
class LayoutConfig:
    """Configuration for the time grid geometry."""
    hour_height: int = 60           # Height of an hour slot in week view in pixels
    start_hour: int = 7             # First visible hour row in week view
    end_hour: int = 22              # Last visible hour row in week view
    min_event_height: int = 20      # Pixels; keeps short events clickable
    day_min_height_percent: float = 2.0  # Same floor for the percentage-based day view
    mobile_breakpoint: int = 640    # Viewports narrower than this get the 3-day week


@dataclass
class ColorsConfig:
    """Display colors per target role."""
    animator: str = "#3b82f6"     # Blue
    coordinator: str = "#22c55e"  # Green
    director: str = "#f97316"     # Orange
    current_time_line: str = "#ef4444"
    today_highlight_background: str = "#eff6ff"
    month_cell_other: str = "#f5f5f5"
    readonly_notice_background: str = "#fff3cd"
    readonly_notice_text: str = "#856404"


@dataclass
class LabelsConfig:
    """Configuration for UI labels and user-facing messages."""
    window_title: str = "CLAS Planning"

    view_day: str = "Day"
    view_week: str = "Week"
    view_month: str = "Month"
    view_agenda: str = "Agenda"

    button_prev: str = "◀"
    button_next: str = "▶"
    button_today: str = "Today"
    button_new_event: str = "New event"
    button_reload: str = "Reload"
    button_export: str = "Export…"
    button_save: str = "Save"
    button_cancel: str = "Cancel"
    button_delete: str = "Delete"
    button_close: str = "Close"

    dialog_new_event: str = "New event"
    dialog_edit_event: str = "Edit event"
    dialog_view_event: str = "Event details"
    field_title: str = "Title:"
    field_start: str = "Start:"
    field_end: str = "End:"
    field_location: str = "Location:"
    field_description: str = "Description:"
    field_status: str = "Status:"
    field_roles: str = "Addressed to:"
    field_participants: str = "Participants:"
    checkbox_allday: str = "All day"
    participants_count: str = "{} participant(s)"

    sidebar_context: str = "Calendar"
    sidebar_personal: str = "My planning"
    sidebar_clas: str = "CLAS center"
    sidebar_roles: str = "Show events for"
    sidebar_legend: str = "Legend"

    role_animator: str = "Animators"
    role_coordinator: str = "Coordinators"
    role_director: str = "Directors"
    role_all: str = "All"

    status_confirmed: str = "Confirmed"
    status_pending: str = "Pending"
    status_cancelled: str = "Cancelled"

    all_day: str = "All day"
    since: str = "From {}"
    until: str = "Until {}"
    today: str = "Today"
    tomorrow: str = "Tomorrow"
    yesterday: str = "Yesterday"
    no_events: str = "No events"
    no_events_search: str = "Try another search"

    agenda_7d: str = "7 days"
    agenda_30d: str = "30 days"
    agenda_3m: str = "3 months"
    agenda_all: str = "All"

    denied_other_roles: str = "This event is addressed to {}. Only coordinators and directors can edit it."
    denied_not_creator: str = "Only the creator or a coordinator/director may edit this event."
    denied_generic: str = "You do not have the permissions required to edit this event."
    readonly_notice: str = "🔒 Read-only"


@dataclass
class LocalizationConfig:
    """Configuration for localized day and month names."""
    day_names: list[str] = None  # Mon Tue Wed Thu Fri Sat Sun
    day_names_long: list[str] = None
    month_names: list[str] = None

    def __post_init__(self):
        if self.day_names is None:
            self.day_names = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
        if self.day_names_long is None:
            self.day_names_long = [
                "Monday", "Tuesday", "Wednesday", "Thursday",
                "Friday", "Saturday", "Sunday"
            ]
        if self.month_names is None:
            self.month_names = [
                "January", "February", "March", "April", "May", "June",
                "July", "August", "September", "October", "November", "December"
            ]

    def get_day_name(self, weekday: int, long: bool = False) -> str:
        """Get localized day name for weekday (0=Monday, 6=Sunday)."""
        names = self.day_names_long if long else self.day_names
        return names[weekday] if 0 <= weekday < len(names) else ""

    def get_month_name(self, month: int) -> str:
        """Get localized month name (1=January, 12=December)."""
        return self.month_names[month - 1] if 1 <= month <= len(self.month_names) else ""


def _section(cls, data: dict):
    """Build a section dataclass from a TOML table, keeping defaults for missing keys."""
    known = {name for name in cls.__dataclass_fields__}
    return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class Config:
    """Main configuration container for CLAS Planning."""

    state_file: Path
    general: GeneralConfig = field(default_factory=GeneralConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    colors: ColorsConfig = field(default_factory=ColorsConfig)
    labels: LabelsConfig = field(default_factory=LabelsConfig)
    localization: LocalizationConfig = field(default_factory=LocalizationConfig)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'clas-planning' / 'clas-planning.toml'

    @classmethod
    def get_default_state_path(cls) -> Path:
        """Get the default state file path."""
        xdg_state = os.environ.get('XDG_STATE_HOME', os.path.expanduser('~/.local/state'))
        return Path(xdg_state) / 'clas-planning' / 'state.json'

    @classmethod
    def defaults(cls) -> 'Config':
        """Configuration with every section at its default."""
        return cls(state_file=cls.get_default_state_path())

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """Load configuration from TOML file."""
        if config_path is None:
            config_path = cls.get_default_config_path()

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        """Build a configuration from already-parsed TOML data."""
        general_data = dict(data.get('General', {}))
        state_file_str = general_data.pop('state_file', str(cls.get_default_state_path()))
        state_file = Path(os.path.expanduser(state_file_str))

        # Space-separated name lists, as in the [Localization] table
        localization_data = data.get('Localization', {})
        day_names_str = localization_data.get('day_names', '')
        day_names_long_str = localization_data.get('day_names_long', '')
        month_names_str = localization_data.get('month_names', '')
        localization = LocalizationConfig(
            day_names=day_names_str.split() if day_names_str else None,
            day_names_long=day_names_long_str.split() if day_names_long_str else None,
            month_names=month_names_str.split() if month_names_str else None,
        )

        return cls(
            state_file=state_file,
            general=_section(GeneralConfig, general_data),
            backend=_section(BackendConfig, data.get('Backend', {})),
            notifications=_section(NotificationsConfig, data.get('Notifications', {})),
            layout=_section(LayoutConfig, data.get('Layout', {})),
            colors=_section(ColorsConfig, data.get('Colors', {})),
            labels=_section(LabelsConfig, data.get('Labels', {})),
            localization=localization,
        )


EXAMPLE_CONFIG = """
[General]
timezone = "Europe/Paris"
user_id = "00000000-0000-0000-0000-000000000000"
user_name = "Camille Martin"
account_type = "coordinator"
clas_id = ""

[Backend]
url = "https://project.supabase.co"
api_key = "public-anon-key"

[Notifications]
api_key = ""
from_email = "notifications@example.org"

[Layout]
hour_height = 60
start_hour = 7
end_hour = 22
"""
