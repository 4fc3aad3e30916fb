"""
HTTP backend client — the external window/blocklist/autostart service.

All entry points are blocking (called from worker threads, never from the
main loop). Failures raise BackendCallError with the server's message when
it sends one; the caller's error path decides what the user sees.
"""

import socket
from urllib.parse import quote, urlsplit

import requests

from .constants import API_TIMEOUT_SEC, PROBE_SOCKET_TIMEOUT_SEC
from .config import log
from .errors import BackendCallError
from . import http_client

REQUIRED_ENTRY_POINTS = (
    "get_current_window",
    "is_auto_start_enabled",
    "enable_auto_start",
    "disable_auto_start",
    "get_blocklist",
    "add_to_blocklist",
    "remove_from_blocklist",
)


# ─── Connectivity check ──────────────────────────────────────────

def is_online(base_url, timeout=PROBE_SOCKET_TIMEOUT_SEC):
    """
    Socket-level check that something is listening at the service's
    host:port. Says nothing about whether the service is healthy.
    """
    try:
        parts = urlsplit(base_url)
        host = parts.hostname or "127.0.0.1"
        port = parts.port or (443 if parts.scheme == "https" else 80)
        sock = socket.create_connection((host, port), timeout=timeout)
        sock.close()
        return True
    except (socket.timeout, OSError, ValueError):
        return False


def bindings_present(backend):
    """True when every entry point exists and the backend says it is up."""
    if backend is None:
        return False
    for name in REQUIRED_ENTRY_POINTS:
        if not callable(getattr(backend, name, None)):
            return False
    ready = getattr(backend, "bindings_ready", None)
    if callable(ready):
        try:
            return bool(ready())
        except Exception as e:
            log.debug("bindings_ready check failed: %s", e)
            return False
    return True


# ─── Backend ─────────────────────────────────────────────────────

class HttpBackend:

    def __init__(self, base_url, session=None, timeout=API_TIMEOUT_SEC):
        self.base_url = base_url.rstrip("/")
        self._session = session
        self._timeout = timeout

    @property
    def session(self):
        # Looked up per call so a reset_session() in the runner takes effect.
        return self._session or http_client.http

    def bindings_ready(self):
        return is_online(self.base_url)

    # ── Window ───────────────────────────────────────────────

    def get_current_window(self):
        resp = self._request("GET", "/api/window/current", "GetCurrentWindow")
        if resp.status_code == 204 or not resp.content:
            return None
        return self._json(resp, "GetCurrentWindow")

    # ── Auto-start ───────────────────────────────────────────

    def is_auto_start_enabled(self):
        resp = self._request("GET", "/api/autostart", "IsAutoStartEnabled")
        data = self._json(resp, "IsAutoStartEnabled")
        if isinstance(data, dict):
            return bool(data.get("enabled", False))
        return bool(data)

    def enable_auto_start(self):
        self._request("POST", "/api/autostart/enable", "EnableAutoStart")

    def disable_auto_start(self):
        self._request("POST", "/api/autostart/disable", "DisableAutoStart")

    # ── Blocklist ────────────────────────────────────────────

    def get_blocklist(self):
        resp = self._request("GET", "/api/blocklist", "GetBlocklist")
        data = self._json(resp, "GetBlocklist")
        return data if isinstance(data, list) else []

    def add_to_blocklist(self, executable_name, display_name=""):
        payload = {"executableName": executable_name, "displayName": display_name}
        self._request("POST", "/api/blocklist", "AddToBlocklist", json=payload)
        log.info("AddToBlocklist OK | %s (%s)", executable_name, display_name or "-")

    def remove_from_blocklist(self, executable_name):
        path = "/api/blocklist/" + quote(executable_name, safe="")
        self._request("DELETE", path, "RemoveFromBlocklist")
        log.info("RemoveFromBlocklist OK | %s", executable_name)

    # ─── Helpers ─────────────────────────────────────────────

    def _request(self, method, path, name, **kwargs):
        url = self.base_url + path
        try:
            resp = self.session.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as e:
            log.warning("%s network error: %s", name, e)
            raise BackendCallError(f"{name} failed: {e}") from e
        if not 200 <= resp.status_code < 300:
            message = _error_message(resp)
            log.warning("%s failed: HTTP %d | %s", name, resp.status_code, message)
            raise BackendCallError(message)
        return resp

    @staticmethod
    def _json(resp, name):
        try:
            return resp.json()
        except ValueError as e:
            raise BackendCallError(f"{name} returned invalid JSON") from e


def _error_message(resp):
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"HTTP {resp.status_code}: {resp.text[:200]}"
