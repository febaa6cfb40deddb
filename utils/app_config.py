"""Pre-DB bootstrap configuration. Zero imports from the rest of the app
except constants.

Stores preferences that must be known before opening the DB (db_folder,
hash scheme, balance scope, query timeout).
Config lives in ~/.openbudget/config.json to avoid a bootstrapping problem.
"""
import json
import logging
import os
from pathlib import Path

from utils.constants import (
    BALANCE_SCOPES,
    DEFAULT_BALANCE_SCOPE,
    DEFAULT_HASH_SCHEME,
    DEFAULT_QUERY_TIMEOUT,
    HASH_SCHEMES,
)

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".openbudget"
CONFIG_FILE = CONFIG_DIR / "config.json"


def load_config(path: Path | None = None) -> dict:
    """Returns {} on missing or corrupt file, never raises."""
    path = path or CONFIG_FILE
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(config: dict, path: Path | None = None) -> None:
    """Creates the config dir if needed; atomic write via .tmp + os.replace()."""
    path = path or CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, path)
    except OSError as exc:
        logger.error("Could not save config %s: %s", path, exc)
        tmp.unlink(missing_ok=True)


def get_db_folder(config: dict | None = None) -> str | None:
    """Return the DB folder from $OPENBUDGET_DB_FOLDER or config, else None."""
    env = os.environ.get("OPENBUDGET_DB_FOLDER")
    if env:
        return env
    config = load_config() if config is None else config
    return config.get("db_folder")


def set_db_folder(path: str | None) -> None:
    config = load_config()
    if path is None:
        config.pop("db_folder", None)
    else:
        config["db_folder"] = path
    save_config(config)


def get_hash_scheme(config: dict | None = None) -> str:
    config = load_config() if config is None else config
    scheme = os.environ.get("OPENBUDGET_HASH_SCHEME") or config.get("hash_scheme")
    if scheme not in HASH_SCHEMES:
        if scheme:
            logger.warning("Unknown hash_scheme %r, using %s", scheme, DEFAULT_HASH_SCHEME)
        return DEFAULT_HASH_SCHEME
    return scheme


def get_balance_scope(config: dict | None = None) -> str:
    config = load_config() if config is None else config
    scope = config.get("balance_scope")
    if scope not in BALANCE_SCOPES:
        return DEFAULT_BALANCE_SCOPE
    return scope


def get_query_timeout(config: dict | None = None) -> float:
    config = load_config() if config is None else config
    try:
        timeout = float(config.get("query_timeout", DEFAULT_QUERY_TIMEOUT))
    except (TypeError, ValueError):
        return DEFAULT_QUERY_TIMEOUT
    return timeout if timeout > 0 else DEFAULT_QUERY_TIMEOUT
