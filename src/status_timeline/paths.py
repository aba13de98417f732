"""Helpers for locating application directories."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "StatusTimeline"
APP_AUTHOR = "StatusTimeline"


def get_config_dir() -> Path:
    """Return the directory that holds the optional settings file."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)
    return Path(dirs.user_config_path)


def get_config_path() -> Path:
    return get_config_dir() / "settings.toml"
