"""
Paths, logging setup, config load/save, safe_print.
"""

import os
import json
import sys
import logging
from pathlib import Path

from .constants import (
    DEFAULT_BACKEND_URL, POLL_INTERVAL_MS, CALL_TIMEOUT_MS,
    SAFETY_TIMEOUT_MS, SETTLE_DELAY_MS,
)


# ─── Paths ───────────────────────────────────────────────────────
# One config/log per user, outside the install location.
_FOLDER_NAME = "WindowMonitor"

if sys.platform == "win32":
    BASE_DIR = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming")) / _FOLDER_NAME
else:
    BASE_DIR = Path.home() / ".window-monitor"

CONFIG_FILE = BASE_DIR / "config.json"
LOG_FILE = BASE_DIR / "monitor.log"

BACKEND_URL_ENV = "WINDOW_MONITOR_BACKEND_URL"

DEFAULT_CONFIG = {
    "backendUrl": DEFAULT_BACKEND_URL,
    "pollIntervalMs": POLL_INTERVAL_MS,
    "callTimeoutMs": CALL_TIMEOUT_MS,
    "safetyTimeoutMs": SAFETY_TIMEOUT_MS,
    "settleDelayMs": SETTLE_DELAY_MS,
}


# ─── Safe print (no crash when --noconsole) ──────────────────────

def safe_print(*args, **kwargs):
    try:
        print(*args, **kwargs)
    except Exception:
        pass


# ─── Logging ─────────────────────────────────────────────────────

log = logging.getLogger("monitor")

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(level=logging.INFO, log_file=None):
    """File + console logging. Called once from the runner, never on import."""
    log_file = Path(log_file) if log_file else LOG_FILE
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        if log_file.exists() and log_file.stat().st_size > 1_000_000:
            log_file.write_text("")
    except OSError:
        pass

    logging.basicConfig(
        filename=str(log_file),
        level=level,
        format=_LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        encoding="utf-8",
    )

    # Restarts call this again; one console handler only.
    if any(getattr(h, "_monitor_console", False) for h in log.handlers):
        return log
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler._monitor_console = True
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    log.addHandler(console_handler)
    return log


# ─── Config Management ──────────────────────────────────────────

def load_config(path=None):
    """Load config from disk merged over defaults. Always returns a dict."""
    path = Path(path) if path else CONFIG_FILE
    config = dict(DEFAULT_CONFIG)
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                config.update(data)
            else:
                log.warning("Ignoring config %s: expected an object", path)
        except (json.JSONDecodeError, IOError) as e:
            log.warning("Ignoring unreadable config %s: %s", path, e)

    env_url = os.environ.get(BACKEND_URL_ENV, "").strip()
    if env_url:
        config["backendUrl"] = env_url
    config["backendUrl"] = str(config["backendUrl"]).rstrip("/")
    return config


def save_config(config, path=None):
    """Save config dict to disk."""
    path = Path(path) if path else CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)
    log.info("Config saved to %s", path)
