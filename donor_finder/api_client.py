"""
HTTP client module for the users API.

Provides an async client that fetches the user list donors are derived
from. Every failure (timeout, connection error, non-2xx status, unexpected
body) is logged and turned into an empty list, so callers only ever see
"some users" or "no users".
"""

import time
from typing import Any, Dict, List, Optional

import httpx

from .config import settings
from .logging_config import get_logger, get_request_id
from .metrics import track_users_fetch

logger = get_logger(__name__)


class UsersApiClient:
    """
    Client for the external users API.

    Uses a persistent HTTP client with connection pooling, created lazily
    and closed on application shutdown.

    Attributes:
        url: Endpoint returning the JSON list of users
        timeout: Request timeout in seconds
        _client: Persistent httpx.AsyncClient
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize users API client.

        Args:
            url: Users endpoint (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
        """
        self.url = url or settings.USERS_API_URL
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self._client: Optional[httpx.AsyncClient] = None

        logger.info(
            f"Initialized UsersApiClient: url={self.url}, timeout={self.timeout}s"
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the persistent HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                limits=httpx.Limits(
                    max_keepalive_connections=10,
                    max_connections=50,
                    keepalive_expiry=30.0,
                ),
                http2=True,
            )
            logger.debug("Created new HTTP client with connection pooling")
        return self._client

    async def close(self) -> None:
        """
        Close the HTTP client and release connections.

        Should be called during application shutdown.
        """
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.debug("Closed HTTP client")

    def _get_request_headers(self) -> Dict[str, str]:
        headers = {
            "User-Agent": "DonorFinder/1.0",
            "Accept": "application/json",
        }

        request_id = get_request_id()
        if request_id:
            headers["X-Request-ID"] = request_id

        return headers

    async def fetch_users(self) -> List[Dict[str, Any]]:
        """
        Fetch the list of users.

        Returns:
            The decoded user records, or an empty list on any failure
        """
        start_time = time.perf_counter()

        logger.info(
            "Fetching users",
            extra={"extra_fields": {"url": self.url, "timeout": self.timeout}},
        )

        try:
            client = await self._get_client()
            response = await client.get(self.url, headers=self._get_request_headers())
            duration_ms = (time.perf_counter() - start_time) * 1000

            response.raise_for_status()
            users = response.json()

            if not isinstance(users, list):
                logger.error(
                    "Users API returned an unexpected body",
                    extra={
                        "extra_fields": {
                            "url": self.url,
                            "body_type": type(users).__name__,
                            "duration_ms": duration_ms,
                        }
                    },
                )
                track_users_fetch("invalid_body")
                return []

            logger.info(
                "Fetched users",
                extra={
                    "extra_fields": {
                        "count": len(users),
                        "status_code": response.status_code,
                        "duration_ms": duration_ms,
                    }
                },
            )
            track_users_fetch("success")
            return users

        except (httpx.TimeoutException, TimeoutError) as error:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Users request timed out",
                extra={
                    "extra_fields": {
                        "url": self.url,
                        "timeout": self.timeout,
                        "duration_ms": duration_ms,
                        "error_type": type(error).__name__,
                    }
                },
            )
            track_users_fetch("timeout")
            return []

        except httpx.HTTPStatusError as error:
            logger.error(
                "HTTP error from users API",
                extra={
                    "extra_fields": {
                        "url": self.url,
                        "status_code": error.response.status_code,
                        "response_body": error.response.text[:200],
                    }
                },
            )
            track_users_fetch("http_error")
            return []

        except httpx.RequestError as error:
            logger.error(
                "Cannot connect to users API",
                extra={
                    "extra_fields": {
                        "url": self.url,
                        "error_type": type(error).__name__,
                        "error_message": str(error),
                    }
                },
                exc_info=True,
            )
            track_users_fetch("connection_error")
            return []

        except ValueError as error:
            # json.JSONDecodeError is a ValueError
            logger.error(
                "Users API returned invalid JSON",
                extra={
                    "extra_fields": {
                        "url": self.url,
                        "error_message": str(error),
                    }
                },
            )
            track_users_fetch("invalid_body")
            return []

    async def health_check(self) -> bool:
        """
        Check whether the users API answers with a 2xx status.

        Returns:
            True if reachable, False otherwise
        """
        try:
            client = await self._get_client()
            response = await client.get(
                self.url,
                headers=self._get_request_headers(),
                timeout=2.0,
            )
            is_healthy = response.is_success

            if not is_healthy:
                logger.warning(
                    "Users API health check failed",
                    extra={
                        "extra_fields": {
                            "url": self.url,
                            "status_code": response.status_code,
                        }
                    },
                )

            return is_healthy

        except httpx.HTTPError as error:
            logger.warning(
                "Users API health check failed with exception",
                extra={
                    "extra_fields": {
                        "url": self.url,
                        "error_type": type(error).__name__,
                        "error_message": str(error),
                    }
                },
            )
            return False


# Singleton instance for application-wide use
users_client = UsersApiClient()
