import logging
import re
import time

import requests
from django.conf import settings

from .exceptions import MalformedSourceError, TransientSourceError

logger = logging.getLogger(__name__)

HANDLE_REGEX = re.compile(r"^[A-Za-z0-9_-]{1,50}$")

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}

RETRYABLE_ERRORS = (TransientSourceError,)


def is_valid_handle(handle) -> bool:
    if not handle or not isinstance(handle, str):
        return False
    if not handle.strip():
        return False
    return bool(HANDLE_REGEX.match(handle))


def call_with_retry(fn, attempts=None, base_delay=None, retry_on=RETRYABLE_ERRORS, label=""):
    """
    Run ``fn`` up to ``attempts`` times, sleeping ``base_delay * 2**n`` between
    tries. Only exceptions in ``retry_on`` are retried; the last one is re-raised.
    """
    if attempts is None:
        attempts = getattr(settings, "SOURCE_RETRY_ATTEMPTS", 3)
    if base_delay is None:
        base_delay = getattr(settings, "SOURCE_RETRY_BASE_DELAY_SECONDS", 1.0)
    attempts = max(1, int(attempts))

    for attempt in range(attempts):
        try:
            return fn()
        except retry_on as exc:
            if attempt >= attempts - 1:
                raise
            delay = base_delay * (2 ** attempt)
            logger.warning("Retry %s/%s for %s failed: %s", attempt + 1, attempts, label or fn, exc)
            if delay > 0:
                time.sleep(delay)


def _timeout(html=False):
    if html:
        return getattr(settings, "SOURCE_HTML_TIMEOUT_SECONDS", 15)
    return getattr(settings, "SOURCE_TIMEOUT_SECONDS", 10)


def _send(method, url, platform, html=False, **kwargs):
    headers = dict(DEFAULT_HEADERS)
    headers.update(kwargs.pop("headers", None) or {})
    try:
        if method == "POST":
            response = requests.post(url, headers=headers, timeout=_timeout(html), **kwargs)
        else:
            response = requests.get(url, headers=headers, timeout=_timeout(html), **kwargs)
    except requests.RequestException as exc:
        # No URL in the message: query strings may hold API keys.
        raise TransientSourceError(
            f"{platform} request failed: {type(exc).__name__}",
            platform=platform,
        ) from exc

    if response.status_code == 429 or response.status_code >= 500:
        raise TransientSourceError(
            f"{platform} returned HTTP {response.status_code}",
            platform=platform,
            status_code=response.status_code,
        )
    return response


def request_json(method, url, platform, allow_statuses=(200,), **kwargs):
    """
    One JSON request. 429/5xx and network errors raise TransientSourceError;
    any other unexpected status or a non-JSON body raises MalformedSourceError.
    """
    response = _send(method, url, platform, **kwargs)
    if response.status_code not in allow_statuses:
        raise MalformedSourceError(
            f"{platform} returned HTTP {response.status_code}",
            platform=platform,
            status_code=response.status_code,
        )
    try:
        return response.json()
    except ValueError as exc:
        raise MalformedSourceError(f"{platform} returned a non-JSON body", platform=platform) from exc


def request_text(url, platform, **kwargs):
    response = _send("GET", url, platform, html=True, **kwargs)
    if response.status_code != 200:
        raise MalformedSourceError(
            f"{platform} returned HTTP {response.status_code}",
            platform=platform,
            status_code=response.status_code,
        )
    return response.text
