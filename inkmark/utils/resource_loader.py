"""
Per-user directories for application data and configuration.
"""
import os
import sys
from pathlib import Path

APP_NAME = "Inkmark"

# Overrides the base directory of every helper below (tests, portable installs)
HOME_ENV_VAR = "INKMARK_HOME"


def _override_dir(subdir: str) -> Path:
    return Path(os.environ[HOME_ENV_VAR]) / subdir


def get_app_data_dir(app_name: str = APP_NAME) -> Path:
    """
    Get the application data directory for storing user data.

    Args:
        app_name: Name of the application

    Returns:
        Path to the app data directory
    """
    if os.environ.get(HOME_ENV_VAR):
        app_dir = _override_dir("data")
    elif os.name == 'nt':  # Windows
        app_dir = Path(os.environ.get('APPDATA', os.path.expanduser('~'))) / app_name
    elif sys.platform == 'darwin':  # macOS
        app_dir = Path.home() / "Library" / "Application Support" / app_name
    else:  # Linux and others
        app_dir = Path(os.environ.get('XDG_DATA_HOME', Path.home() / ".local" / "share")) / app_name

    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def get_config_dir(app_name: str = APP_NAME) -> Path:
    """
    Get the configuration directory for storing settings.

    Args:
        app_name: Name of the application

    Returns:
        Path to the config directory
    """
    if os.environ.get(HOME_ENV_VAR):
        config_dir = _override_dir("config")
    elif os.name == 'nt':  # Windows
        config_dir = get_app_data_dir(app_name) / "config"
    elif sys.platform == 'darwin':  # macOS
        config_dir = Path.home() / "Library" / "Preferences" / app_name
    else:  # Linux
        config_dir = Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / ".config")) / app_name

    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_log_dir(app_name: str = APP_NAME) -> Path:
    """Get the directory for log files, creating it if needed."""
    log_dir = get_app_data_dir(app_name) / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir
