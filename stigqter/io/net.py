"""
HTTP downloads.

Fetches the DISA CCI list and the NIST SP 800-53 controls feed. Rate limits
(429) and server errors (5xx) are retried with exponential backoff; any
other failure surfaces as NetworkError.
"""

from __future__ import annotations
import time
from typing import Optional

import requests

from stigqter.core.config import Cfg
from stigqter.core.constants import MAX_RETRIES, RETRY_DELAY
from stigqter.core.logging import LOG
from stigqter.core.state import GLOBAL_STATE
from stigqter.exceptions import NetworkError

MAX_RETRY_WAIT = 30.0


def download(url: str, timeout: Optional[float] = None, attempts: int = MAX_RETRIES) -> bytes:
    """Download ``url`` and return the response body.

    Redirects are followed. Raises NetworkError once retries are exhausted or
    on a non-retryable HTTP status.
    """
    timeout = timeout or Cfg.HTTP_TIMEOUT
    headers = {"User-Agent": Cfg.USER_AGENT}
    delay = RETRY_DELAY
    last_err = ""

    for attempt in range(1, attempts + 1):
        if GLOBAL_STATE.shutdown.is_set():
            raise NetworkError("Shutdown requested", {"url": url})

        LOG.d(f"GET {url} (attempt {attempt}/{attempts})")
        try:
            response = requests.get(url, headers=headers, timeout=timeout, allow_redirects=True)
        except requests.exceptions.Timeout:
            last_err = f"timed out after {timeout}s"
        except requests.exceptions.RequestException as exc:
            last_err = str(exc)
        else:
            if response.status_code == 429:
                retry_after = response.headers.get("Retry-After", "")
                delay = min(float(retry_after) if retry_after.isdigit() else delay, MAX_RETRY_WAIT)
                last_err = "rate limited (429)"
            elif response.status_code >= 500:
                last_err = f"server error {response.status_code}"
            else:
                try:
                    response.raise_for_status()
                except requests.exceptions.HTTPError as exc:
                    raise NetworkError(f"Download failed: {exc}", {"url": url}) from exc
                LOG.i(f"Downloaded {len(response.content)} bytes from {url}")
                return response.content

        if attempt < attempts:
            LOG.w(f"Download of {url} {last_err}; retrying in {delay:.1f}s")
            time.sleep(delay)
            delay = min(delay * 2, MAX_RETRY_WAIT)

    raise NetworkError(f"Download failed after {attempts} attempts: {last_err}", {"url": url})


__all__ = ["download"]
