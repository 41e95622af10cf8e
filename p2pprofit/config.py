"""Configuration loading for P2P Profit.

Settings live in a TOML file at ``~/.config/p2pprofit/config.toml``.
The ``P2PPROFIT_CONFIG`` environment variable points somewhere else.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Optional

import toml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "p2pprofit"

DEFAULT_CONFIG = {
    "ledger": {
        "db_path": str(CONFIG_DIR / "ledger.db"),
    },
    "defaults": {
        "fiat_currency": "INR",
        "asset": "USDT",
        "method": "FIFO",
    },
    "logging": {
        "level": "WARNING",
    },
}


def get_config_path() -> Path:
    """Path of the config file, honouring ``P2PPROFIT_CONFIG``."""
    override = os.environ.get("P2PPROFIT_CONFIG")
    if override:
        return Path(override).expanduser()
    return CONFIG_DIR / "config.toml"


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Path] = None) -> dict:
    """Load configuration merged over the defaults.

    A missing or unreadable file yields the defaults.

    Args:
        path: Config file to read. Defaults to get_config_path().

    Returns:
        Configuration dictionary.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        user_config = toml.load(config_path)
    except (toml.TomlDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return copy.deepcopy(DEFAULT_CONFIG)

    return _merge(DEFAULT_CONFIG, user_config)


def create_template_config(path: Optional[Path] = None) -> Path:
    """Write a config file holding the defaults.

    Args:
        path: Where to write. Defaults to get_config_path().

    Returns:
        Path of the written file.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        toml.dump(DEFAULT_CONFIG, f)

    return config_path


def get_db_path(config: dict) -> Path:
    """Ledger database path from a config dict."""
    return Path(config["ledger"]["db_path"]).expanduser()
