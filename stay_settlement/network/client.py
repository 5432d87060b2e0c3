"""
Transport for PMS API calls with bounded timeouts and request metrics.

Every call carries a timeout. There are no automatic retries: the only
non-idempotent call (reservation creation) must never be replayed blindly,
and read calls are cheap for the caller to repeat.
"""

import time
from typing import Any, Dict, Optional, cast
from urllib.parse import urljoin

import requests
import structlog

from stay_settlement.config import PMS_BASE_URL, PMS_TIMEOUT_SECONDS
from stay_settlement.metrics import pms_latency, pms_requests

logger = structlog.get_logger(__name__)


class PmsRequestError(Exception):
    """A PMS call failed: transport error, timeout, non-2xx status or bad body."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def pms_request(
    method: str,
    path: str,
    api_key: str,
    endpoint: str,
    params: Optional[Dict[str, Any]] = None,
    json_body: Optional[Dict[str, Any]] = None,
    timeout: float = PMS_TIMEOUT_SECONDS,
    base_url: str = PMS_BASE_URL,
) -> Dict[str, Any]:
    """
    Perform one PMS API request and return the decoded JSON body.

    Args:
        method (str): HTTP method.
        path (str): Path relative to the PMS base URL (e.g. 'api/rates').
        api_key (str): The listing owner's PMS API key.
        endpoint (str): Logical endpoint name used as metrics label.
        params (dict, optional): Query string parameters.
        json_body (dict, optional): JSON request body.
        timeout (float): Seconds before the call is abandoned.
        base_url (str): PMS base URL.

    Returns:
        Dict[str, Any]: Decoded JSON response ({} for empty bodies).

    Raises:
        PmsRequestError: On transport failure, timeout, non-2xx status or a
            body that is not a JSON object.
    """
    url = urljoin(base_url.rstrip("/") + "/", path)
    headers = {
        "Api-Key": api_key,
        "Content-Type": "application/json",
        "Cache-Control": "no-cache",
    }

    start_time = time.time()
    try:
        res = requests.request(
            method, url, headers=headers, params=params, json=json_body, timeout=timeout
        )
    except requests.Timeout as err:
        pms_requests.labels(endpoint=endpoint, status_code="timeout").inc()
        logger.warning("pms_request_timeout", endpoint=endpoint, timeout=timeout)
        raise PmsRequestError(f"PMS {endpoint} timed out after {timeout}s") from err
    except requests.RequestException as err:
        pms_requests.labels(endpoint=endpoint, status_code="error").inc()
        logger.warning("pms_request_failed", endpoint=endpoint, error=str(err))
        raise PmsRequestError(f"PMS {endpoint} request failed: {err}") from err
    finally:
        pms_latency.labels(endpoint=endpoint).observe(time.time() - start_time)

    pms_requests.labels(endpoint=endpoint, status_code=str(res.status_code)).inc()

    if not res.ok:
        logger.warning(
            "pms_request_rejected",
            endpoint=endpoint,
            status_code=res.status_code,
            body=res.text[:500],
        )
        raise PmsRequestError(
            f"PMS {endpoint} failed: {res.status_code}",
            status_code=res.status_code,
            body=res.text,
        )

    if not res.content:
        return {}

    try:
        data = res.json()
    except ValueError as err:
        raise PmsRequestError(
            f"PMS {endpoint} returned invalid JSON", status_code=res.status_code, body=res.text
        ) from err

    if not isinstance(data, dict):
        raise PmsRequestError(
            f"PMS {endpoint} returned unexpected body", status_code=res.status_code, body=res.text
        )
    return cast(Dict[str, Any], data)
