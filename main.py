#!/usr/bin/env python

"""
FocusTimer - Main Entry Point

A tray-resident task list where every task carries a countdown, with the
running task's time mirrored in the system tray.

Usage:
    python main.py

Requirements:
    - Python 3.11+
    - See pyproject.toml for dependencies
"""

import sys
from pathlib import Path

# Add app directory to path
sys.path.insert(0, str(Path(__file__).parent))

from focustimer.infra.config import get_settings
from focustimer.ui import SystemTrayApp


def main():
    """Main entry point"""
    get_settings().configure_logging()
    app = SystemTrayApp()
    return app.run()


if __name__ == "__main__":
    sys.exit(main())
