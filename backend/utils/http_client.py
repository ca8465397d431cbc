import logging
from typing import Dict, Optional

import requests

from backend.utils.errors import UpstreamError
from config import get_config

logger = logging.getLogger(__name__)

_session = requests.Session()
_session.headers.update({
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0 Safari/537.36",
    "Accept": "application/json",
})


def get_json(url: str, params: Optional[Dict] = None, headers: Optional[Dict] = None,
             timeout: Optional[float] = None):
    """GET a JSON document. Any failure is raised as UpstreamError; no retries."""
    timeout = timeout or get_config().HTTP_TIMEOUT
    try:
        resp = _session.get(url, params=params, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise UpstreamError(url, str(e))

    if resp.status_code >= 400:
        raise UpstreamError(url, f"HTTP {resp.status_code}", status_code=resp.status_code)

    try:
        return resp.json()
    except ValueError:
        raise UpstreamError(url, "invalid JSON body", status_code=resp.status_code)
