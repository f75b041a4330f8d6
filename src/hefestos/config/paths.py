"""Path resolution for hefestos configuration files."""

import os
from pathlib import Path
from typing import Optional, Union

from importlib.resources import files as importlib_files

CONFIG_FILENAME = "connections.toml"


def get_config_directory() -> Path:
    """
    Get the configuration directory for hefestos.

    Priority order:
    1. HEFESTOS_CONFIG_DIR environment variable (override)
    2. ~/.hefestos/ (dotfile directory in user home)

    The directory is resolved on every call so tests and long-running
    processes can change the environment variable.

    Returns:
        Path: Configuration directory path
    """
    env_config_dir = os.getenv("HEFESTOS_CONFIG_DIR")
    if env_config_dir:
        return Path(env_config_dir)

    return Path.home() / ".hefestos"


def _get_example_files_dir() -> Path:
    """Directory holding the packaged ``.example`` configuration files."""
    package_data = importlib_files("hefestos") / "_data"
    return Path(str(package_data))


def get_default_config_path() -> Path:
    """
    Get the path to connections.toml in the configuration directory.

    Returns:
        Path: The path to connections.toml

    Raises:
        FileNotFoundError: If connections.toml does not exist
    """
    config_path = get_config_directory() / CONFIG_FILENAME

    if not config_path.exists():
        example_file = _get_example_files_dir() / "connections.toml.example"

        error_msg = (
            f"Configuration file '{CONFIG_FILENAME}' not found at: {config_path}\n\n"
            f"To create it:\n"
            f"1. Copy example: {example_file}\n"
            f"2. To: {config_path}\n"
            f"3. Edit with your connection details\n\n"
            f"Configuration directory priority:\n"
            f"  1. HEFESTOS_CONFIG_DIR environment variable (if set)\n"
            f"  2. ~/.hefestos/ (dotfile directory)\n"
        )

        raise FileNotFoundError(error_msg)

    return config_path


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Resolve the path to connections.toml using explicit path or default config path"""
    if path:
        return Path(path)
    return get_default_config_path()
