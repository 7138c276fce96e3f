#!/usr/bin/env python3
"""
Configuration loading and management
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

# Configuration file path
CONFIG_FILE = "config.ini"

# Default configuration
DEFAULT_CONFIG = {
    "host": "127.0.0.1",
    "port": 5055,
    # Expose POST /quick for editors and scripts
    "server_enabled": True,
    "default_provider": "google",
    "custom_url": None,
    "custom_model": None,
    "openrouter_model": "openai/gpt-oss-120b:free",
    "google_model": "gemma-3-27b-it",
    # Transport retry policy (the quick lookup core never retries)
    "max_retries": 2,
    "retry_delay": 2,
    "request_timeout": 60,
    # Quick lookup settings
    "word_count": 12,
    "popup_timeout": 10,
    "use_context": False,
    # Comma-separated list of files attached as ambient context
    "context_files": None,
    # Backend and model overrides must be set together or not at all
    "backend_override": None,
    "model_override": None,
    # Hotkeys
    "hotkey": "ctrl+alt+q",
    "key_dismiss": "esc",
    "key_expand": "+",
    "key_copy": "alt+w",
    "key_escalate": "alt+enter",
    # Popup geometry (characters)
    "popup_min_width": 36,
    "popup_max_width": 70,
    # Theme mode: auto (follows system), dark, light
    "ui_theme_mode": "auto",
}

PROVIDERS = ("custom", "openrouter", "google")

# API URLs
OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
GOOGLE_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


def parse_config_value(value_str):
    """Parse a configuration value from string to appropriate type"""
    value_str = value_str.strip()
    if value_str.lower() in ['none', 'null', '']:
        return None
    if value_str.lower() in ['true', 'yes', 'on']:
        return True
    if value_str.lower() in ['false', 'no', 'off']:
        return False
    try:
        if '.' not in value_str:
            return int(value_str)
        return float(value_str)
    except ValueError:
        pass
    if (value_str.startswith('"') and value_str.endswith('"')) or \
       (value_str.startswith("'") and value_str.endswith("'")):
        return value_str[1:-1]
    return value_str


def load_config(filepath=CONFIG_FILE) -> Tuple[Dict, Dict, Dict[str, List[str]]]:
    """
    Load configuration from .ini file.

    Returns:
        (config, ai_params, keys) where unknown [config] entries land in
        ai_params and each provider section lists its API keys.
    """
    config = dict(DEFAULT_CONFIG)
    ai_params = {}
    keys = {provider: [] for provider in PROVIDERS}

    if Path(filepath).exists():
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                lines = f.readlines()
        except OSError as e:
            logging.error(f'Failed to read config file {filepath}: {e}')
            lines = []

        current_section = None
        for line in lines:
            stripped = line.strip()

            if not stripped or stripped.startswith('#'):
                continue

            if stripped.startswith('[') and stripped.endswith(']'):
                current_section = stripped[1:-1].lower()
                continue

            if current_section == 'config':
                if '=' in stripped:
                    key, value = stripped.split('=', 1)
                    key = key.strip().lower()
                    value = parse_config_value(value)
                    if key in DEFAULT_CONFIG:
                        config[key] = value
                    elif value is not None:
                        ai_params[key] = value

            elif current_section in keys:
                keys[current_section].append(stripped)
    else:
        logging.warning(f"Config file '{filepath}' not found. Using defaults.")

    # Environment variables fill in missing keys
    if not keys["google"] and os.getenv("GEMINI_API_KEY"):
        keys["google"].append(os.getenv("GEMINI_API_KEY"))
    if not keys["openrouter"] and os.getenv("OPENROUTER_API_KEY"):
        keys["openrouter"].append(os.getenv("OPENROUTER_API_KEY"))
    if not keys["custom"] and os.getenv("CUSTOM_API_KEY"):
        keys["custom"].append(os.getenv("CUSTOM_API_KEY"))

    return config, ai_params, keys


def split_list_value(value) -> List[str]:
    """Split a comma-separated config value into a clean list."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(',') if part.strip()]


def _value(config: Dict, key: str, default):
    """Config value, or default when it is missing or blank. Zero is kept."""
    value = config.get(key)
    if value is None or value == "":
        return default
    return value


@dataclass
class Settings:
    """Typed view of the quick lookup settings."""
    word_count: int = 12
    popup_timeout: float = 10
    use_context: bool = False
    backend_override: Optional[str] = None
    model_override: Optional[str] = None
    context_files: List[str] = field(default_factory=list)
    min_width: int = 36
    max_width: int = 70
    action_keys: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: Dict) -> "Settings":
        return cls(
            word_count=int(_value(config, "word_count", 12)),
            popup_timeout=float(_value(config, "popup_timeout", 10)),
            use_context=bool(config.get("use_context")),
            backend_override=config.get("backend_override") or None,
            model_override=config.get("model_override") or None,
            context_files=split_list_value(config.get("context_files")),
            min_width=int(_value(config, "popup_min_width", 36)),
            max_width=int(_value(config, "popup_max_width", 70)),
            action_keys={
                "dismiss": str(config.get("key_dismiss") or "esc"),
                "expand": str(config.get("key_expand") or "+"),
                "copy": str(config.get("key_copy") or "alt+w"),
                "escalate": str(config.get("key_escalate") or "alt+enter"),
            },
        )


def generate_example_config():
    """Generate example configuration file content"""
    return '''# ============================================================
# QuickLens - point-and-query explanations
# ============================================================

[config]
# Local HTTP endpoint (POST /quick) for editors and scripts
server_enabled = true
host = 127.0.0.1
port = 5055

# Default API provider: custom, openrouter, or google
default_provider = google

# Custom OpenAI-compatible API
# custom_url = https://api.openai.com/v1/chat/completions
# custom_model = gpt-4o-mini

openrouter_model = openai/gpt-oss-120b:free
google_model = gemma-3-27b-it

# Transport retry settings
max_retries = 2
retry_delay = 2
request_timeout = 60

# ============================================================
# QUICK LOOKUP
# ============================================================
# Target response length in words
word_count = 12

# Seconds before the popup is dismissed automatically
popup_timeout = 10

# Attach the files below as context to every lookup
use_context = false
# context_files = ~/notes/glossary.md, ~/notes/project.md

# Use a different backend for lookups.
# backend_override and model_override must be set together.
# backend_override = openrouter
# model_override = openai/gpt-4o-mini

# AI Parameters (optional, forwarded to the API)
# temperature = 0.7

# ============================================================
# KEYS
# ============================================================
# Global hotkey that triggers a lookup
hotkey = ctrl+alt+q

# Follow-up keys while a popup is showing
key_dismiss = esc
key_expand = +
key_copy = alt+w
key_escalate = alt+enter

# Popup width in characters
popup_min_width = 36
popup_max_width = 70

# Theme mode: auto, dark, light
ui_theme_mode = auto

# ============================================================
# API KEYS (one per line)
# ============================================================

[custom]
# sk-xxxxxxxxxxxxxxxxxxxxx

[openrouter]
# sk-or-v1-xxxxxxxxxxxxxxxxxxxxx

[google]
# AIzaSyXXXXXXXXXXXXXXXXXXXXXXX
'''
