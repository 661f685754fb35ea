"""
HubSpot CRM API Client.
Handles bearer authentication, per-attempt timeouts, retry with backoff,
and returns a uniform result value for every call.
"""

import asyncio
import enum
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import httpx

from portal_sync.core.exceptions import CRMConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.hubapi.com"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_FLOOR_SECONDS = 0.5

TRANSIENT_STATUS_CODES = {408, 429}


class ErrorKind(str, enum.Enum):
    """Classification of a failed call."""

    TRANSIENT = "transient"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class HubSpotOk:
    """Successful call. ``data`` is the decoded JSON body, ``{}`` for an empty body."""
    data: Any
    status_code: int

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class HubSpotErr:
    """Failed call, either terminal or transient with the retry budget spent."""
    reason: str
    status_code: Optional[int] = None
    details: Any = None
    kind: ErrorKind = ErrorKind.TERMINAL

    @property
    def ok(self) -> bool:
        return False


HubSpotResult = Union[HubSpotOk, HubSpotErr]


class HubSpotAPIError(Exception):
    """Raised by higher layers when a call returned a ``HubSpotErr``."""

    def __init__(self, error: HubSpotErr):
        super().__init__(error.reason)
        self.error = error

    @property
    def status_code(self) -> Optional[int]:
        return self.error.status_code


def is_transient_status(status_code: int) -> bool:
    return status_code in TRANSIENT_STATUS_CODES or 500 <= status_code <= 599


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Returns the Retry-After header in seconds, or None when absent or not numeric."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return max(0.0, seconds)


def _decode_body(text: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except ValueError:
        return False, text


class HubSpotClient:
    """
    HubSpot REST API Client.

    Uses Bearer token authentication (private app token).
    Retries 408/429/5xx and transport failures with exponential backoff;
    a server-supplied Retry-After wins over the computed wait.
    Holds no mutable state across calls besides its credential.
    """

    def __init__(
        self,
        access_token: Optional[str],
        api_base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_floor: float = DEFAULT_BACKOFF_FLOOR_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize HubSpot client.

        Args:
            access_token: HubSpot private app token
            api_base_url: API base URL
            timeout: Per-attempt request timeout in seconds
            max_attempts: Total attempts per call, first try included
            backoff_floor: Wait before the first retry; doubles per attempt
            transport: Optional httpx transport (tests use MockTransport)
            sleep: Awaitable used for backoff waits

        Raises:
            CRMConfigurationError: If no access token is available
        """
        if not access_token:
            raise CRMConfigurationError(
                "Missing HUBSPOT_PRIVATE_APP_TOKEN (or pass access_token to HubSpotClient)"
            )

        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_floor = backoff_floor
        self._sleep = sleep

        self._client = httpx.AsyncClient(
            base_url=self.api_base_url,
            timeout=timeout,
            transport=transport,
            headers={"Authorization": f"Bearer {access_token}"},
        )

        logger.info(f"HubSpotClient initialized (url: {self.api_base_url})")

    def backoff_for(self, attempt: int) -> float:
        """Computed wait after the given zero-based failed attempt."""
        return max(self.backoff_floor, self.backoff_floor * (2 ** attempt))

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ) -> HubSpotResult:
        """
        Makes an authenticated request to the HubSpot API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (e.g., "/crm/v3/objects/companies/123")
            params: Query parameters; None values are dropped
            json: JSON body, only sent for methods that carry one
            timeout: Per-attempt timeout override
            max_attempts: Attempt budget override

        Returns:
            HubSpotOk or HubSpotErr, never raises for HTTP outcomes
        """
        path = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        query = {k: v for k, v in (params or {}).items() if v is not None}
        has_body = json is not None and method.upper() not in ("GET", "DELETE")
        attempts = max(1, max_attempts or self.max_attempts)
        per_attempt_timeout = timeout if timeout is not None else self.timeout

        last_error: Optional[HubSpotErr] = None

        for attempt in range(attempts):
            retries_left = attempt < attempts - 1

            try:
                response = await self._client.request(
                    method.upper(),
                    path,
                    params=query or None,
                    json=json if has_body else None,
                    timeout=per_attempt_timeout,
                )
            except httpx.TransportError as e:
                last_error = HubSpotErr(
                    reason=f"Network error: {e.__class__.__name__}: {e}",
                    kind=ErrorKind.TRANSIENT,
                )
                if retries_left:
                    wait = self.backoff_for(attempt)
                    logger.warning(
                        f"⚠️ {method} {path} transport failure "
                        f"(attempt {attempt + 1}/{attempts}), retrying in {wait:.2f}s"
                    )
                    await self._sleep(wait)
                    continue
                break
            except httpx.RequestError as e:
                return HubSpotErr(reason=f"Request error: {e}")

            if response.status_code >= 400:
                status_code = response.status_code
                body = response.text
                _, details = _decode_body(body) if body else (True, None)
                error = HubSpotErr(
                    reason=f"HTTP {status_code} {response.reason_phrase}".strip(),
                    status_code=status_code,
                    details=details,
                )

                if not is_transient_status(status_code):
                    logger.error(f"HubSpot API error: {method} {path} -> {status_code}")
                    return error

                last_error = HubSpotErr(
                    reason=error.reason,
                    status_code=status_code,
                    details=details,
                    kind=ErrorKind.TRANSIENT,
                )
                if retries_left:
                    retry_after = parse_retry_after(response.headers.get("retry-after"))
                    wait = retry_after if retry_after is not None else self.backoff_for(attempt)
                    logger.warning(
                        f"⚠️ {method} {path} -> {status_code} "
                        f"(attempt {attempt + 1}/{attempts}), retrying in {wait:.2f}s"
                    )
                    await self._sleep(wait)
                    continue
                break

            # Some endpoints return an empty body
            raw = response.text
            if not raw or not raw.strip():
                return HubSpotOk(data={}, status_code=response.status_code)

            parsed, data = _decode_body(raw)
            if not parsed:
                return HubSpotErr(
                    reason="Response was not valid JSON",
                    status_code=response.status_code,
                    details=data,
                )

            return HubSpotOk(data=data, status_code=response.status_code)

        logger.error(f"❌ {method} {path}: max retries exceeded ({attempts} attempts)")
        return HubSpotErr(
            reason=f"Max retries exceeded: {last_error.reason}" if last_error else "Max retries exceeded",
            status_code=last_error.status_code if last_error else None,
            details=last_error.details if last_error else None,
            kind=ErrorKind.TRANSIENT,
        )

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> HubSpotResult:
        """GET request shorthand."""
        return await self.request("GET", endpoint, params=params, **kwargs)

    async def post(
        self,
        endpoint: str,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> HubSpotResult:
        """POST request shorthand."""
        return await self.request("POST", endpoint, params=params, json=json, **kwargs)

    async def delete(self, endpoint: str, **kwargs) -> HubSpotResult:
        """DELETE request shorthand."""
        return await self.request("DELETE", endpoint, **kwargs)

    async def close(self):
        """Closes the HTTP client."""
        await self._client.aclose()
        logger.info("HubSpotClient closed")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
