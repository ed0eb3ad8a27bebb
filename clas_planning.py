#!/usr/bin/env python3
"""
CLAS Planning - A PySide6 desktop planning for CLAS teams.

This is the main entry point for the application.
"""

import sys
import argparse
from pathlib import Path

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt

from backend.config import Config, EXAMPLE_CONFIG
from backend.debug_log import set_debug, debug_print
from backend.event_client import EventClient
from backend.event_model import AccountType, Actor
from backend.network_worker import shutdown_network_worker
from backend.notifications import NotificationDispatcher
from backend.timezone_utils import set_timezone
from gui.main_window import MainWindow


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="CLAS Planning - A shared team and personal planning for CLAS centers"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    return parser.parse_args()


def build_actor(config: Config):
    """The signed-in user from the [General] section, or None when not configured."""
    if not config.general.user_id:
        return None
    return Actor(role=AccountType(config.general.account_type), user_id=config.general.user_id)


def main():
    """Main entry point."""
    args = parse_args()
    set_debug(args.debug)

    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("\nPlease create a configuration file at:")
        print(f"  - {Config.get_default_config_path()}")
        print("\nExample configuration:")
        print(EXAMPLE_CONFIG)
        sys.exit(1)
    except Exception as e:
        print(f"Error loading configuration: {e}")
        sys.exit(1)

    try:
        set_timezone(config.general.timezone)
        actor = build_actor(config)
    except Exception as e:
        print(f"Error in [General] configuration: {e}")
        sys.exit(1)

    debug_print("MAIN", f"Loaded configuration from: {args.config or Config.get_default_config_path()}")
    debug_print("MAIN", f"  Backend: {config.backend.url or '(not set)'}")
    debug_print("MAIN", f"  Notifications: {'enabled' if config.notifications.enabled else 'disabled'}")

    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv)
    app.setApplicationName("CLAS Planning")
    app.setApplicationVersion("0.1")
    app.setStyle("Fusion")

    window = MainWindow(config, actor, EventClient(config.backend),
                        NotificationDispatcher(config.notifications))
    window.show()

    exit_code = app.exec()
    shutdown_network_worker()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
