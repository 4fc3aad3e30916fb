"""
HTTP session with connection pooling and automatic retry.

The backend service is local, so no CA bundle juggling is needed; retries
cover the window where the service is still starting or restarting.
"""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

_retry_strategy = Retry(
    total=3,
    backoff_factor=0.5,                         # Wait 0.5s, 1s, 2s between retries
    status_forcelist=[502, 503, 504],
    allowed_methods=["HEAD", "GET", "POST", "DELETE"],
)


def create_session():
    """Create a new requests.Session with connection pooling and retry."""
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=1,
        pool_maxsize=4,
        max_retries=_retry_strategy,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"Accept": "application/json"})
    return session


def reset_session(session):
    """Close and recreate the HTTP session (fixes stale connections)."""
    try:
        session.close()
    except Exception:
        pass
    return create_session()


# Global shared session
http = create_session()
