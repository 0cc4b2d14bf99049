#!/usr/bin/env python3
"""
config - Configuration management for gitpick.

Handles user preferences: extra author identities, color output, whether
replays commit directly, and where logs go.
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional

from gitpick.models import Identity

COLOR_MODES = ("auto", "always", "never")


def get_default_config() -> Dict[str, Any]:
    return {
        "color": "auto",
        "commit_directly": True,
        "extra_names": [],
        "extra_emails": [],
        "log_dir": None,
    }


def get_config_dir() -> Path:
    """Get the gitpick configuration directory."""
    override = os.environ.get("GITPICK_CONFIG_DIR")
    config_dir = Path(override) if override else Path.home() / ".gitpick"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_file() -> Path:
    """Get the path to the configuration file."""
    return get_config_dir() / "config.json"


def load_config() -> Dict[str, Any]:
    """Load configuration from file, filling in defaults."""
    config = get_default_config()
    config_file = get_config_file()

    if not config_file.exists():
        return config

    try:
        with open(config_file, 'r') as f:
            stored = json.load(f)
    except (OSError, ValueError):
        # Unreadable or corrupt file: run with defaults
        return config

    if isinstance(stored, dict):
        config.update(stored)
    if config.get("color") not in COLOR_MODES:
        config["color"] = "auto"
    return config


def save_config(config: Dict[str, Any]):
    """Save configuration to file."""
    config_file = get_config_file()

    try:
        with open(config_file, 'w') as f:
            json.dump(config, f, indent=2)
    except OSError as e:
        print(f"Error saving configuration: {e}")


def get_extra_identity(config: Optional[Dict[str, Any]] = None) -> Identity:
    """Identities registered in gitpick's own config, in addition to git's."""
    if config is None:
        config = load_config()
    return Identity.from_values(config.get("extra_names", []), config.get("extra_emails", []))


def add_identity_value(key: str, value: str):
    """Register an extra author name ('extra_names') or email ('extra_emails')."""
    config = load_config()
    values = list(config.get(key) or [])
    if value in values:
        print(f"'{value}' is already registered.")
        return
    values.append(value)
    config[key] = values
    save_config(config)
    print(f"Added '{value}' to {key}.")


def set_color(mode: str):
    if mode not in COLOR_MODES:
        raise ValueError(f"color must be one of {', '.join(COLOR_MODES)}")
    config = load_config()
    config['color'] = mode
    save_config(config)
    print(f"Color output set to: {mode}")


def set_commit_directly(enabled: bool):
    config = load_config()
    config['commit_directly'] = enabled
    save_config(config)
    print(f"Replay commits directly: {'yes' if enabled else 'no (stage only)'}")


def show_config():
    """Display current configuration."""
    config = load_config()

    print("\n" + "=" * 60)
    print("GITPICK CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {get_config_file()}")
    print()
    print("Settings:")
    print(f"  Color:              {config.get('color', 'auto')}")
    print(f"  Commit directly:    {config.get('commit_directly', True)}")
    print(f"  Log dir:            {config.get('log_dir') or '(default)'}")
    names = config.get('extra_names') or []
    emails = config.get('extra_emails') or []
    print(f"  Extra names:        {', '.join(names) if names else '(none)'}")
    print(f"  Extra emails:       {', '.join(emails) if emails else '(none)'}")
    print()
    print("To modify settings:")
    print("  gitpick config --add-email you@example.com")
    print("  gitpick config --color never")
    print(f"  Or edit: {get_config_file()}")
    print()
