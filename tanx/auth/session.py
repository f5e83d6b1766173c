"""
Session token state and single-flight refresh.

Refresh tokens rotate on use, so concurrent 401s must share one refresh
call: the first caller starts a task, later callers await the same task.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from ..exceptions import AuthenticationError, TanxError
from ..metrics import Metrics, get_metrics

logger = logging.getLogger(__name__)

# Takes a refresh token, returns the refresh payload ({"access", "refresh"})
Refresher = Callable[[str], Awaitable[dict[str, Any]]]


@dataclass
class SessionTokens:
    """
    Access/refresh token pair.

    SECURITY: Tokens are hidden from repr to prevent leakage in logs.
    """
    access_token: Optional[str] = field(default=None, repr=False)
    refresh_token: Optional[str] = field(default=None, repr=False)

    def clear(self) -> None:
        self.access_token = None
        self.refresh_token = None


class SessionManager:
    """
    Owns the token pair of one client instance.

    Plain reads and writes need no lock: the event loop serialises them.
    Only refresh is coordinated, through one shared task.
    """

    def __init__(self, refresher: Refresher, metrics: Optional[Metrics] = None):
        """
        Initialize session manager.

        Args:
            refresher: Coroutine function performing the refresh request
            metrics: Metrics collector (global instance if None)
        """
        self.tokens = SessionTokens()
        self._refresher = refresher
        self._refresh_task: Optional[asyncio.Future] = None
        self.metrics = metrics or get_metrics()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.tokens.access_token)

    @property
    def access_token(self) -> Optional[str]:
        return self.tokens.access_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self.tokens.refresh_token

    def require_auth(self) -> None:
        """
        Assert a session exists.

        Raises:
            AuthenticationError: If there is no access token
        """
        if not self.tokens.access_token:
            raise AuthenticationError("Not authenticated: call login() first")

    def set_tokens(self, access_token: str, refresh_token: Optional[str]) -> None:
        self.tokens.access_token = access_token
        self.tokens.refresh_token = refresh_token

    def clear(self) -> None:
        """Drop both tokens. No network effect."""
        self.tokens.clear()

    async def refresh(self, stale_access_token: Optional[str] = None) -> str:
        """
        Rotate the token pair, sharing one refresh among concurrent callers.

        Args:
            stale_access_token: Token the caller saw rejected. If the session
                already holds a different one, it is returned without a new
                refresh. None forces a refresh.

        Returns:
            The current access token

        Raises:
            AuthenticationError: If the refresh fails (the session is cleared)
        """
        current = self.tokens.access_token
        if stale_access_token is not None and current and current != stale_access_token:
            return current

        if self._refresh_task is None:
            if not self.tokens.refresh_token:
                self.clear()
                raise AuthenticationError("Session expired and no refresh token is available")
            self._refresh_task = asyncio.ensure_future(self._run_refresh(self.tokens.refresh_token))

        # Shielded: one waiter being cancelled must not cancel the shared refresh
        return await asyncio.shield(self._refresh_task)

    async def _run_refresh(self, refresh_token: str) -> str:
        try:
            logger.info("Refreshing session tokens")
            payload = await self._refresher(refresh_token)
            access = payload.get("access") if isinstance(payload, dict) else None
            if not access:
                raise AuthenticationError("Token refresh response carried no access token")

            self.set_tokens(access, payload.get("refresh") or refresh_token)
            self.metrics.track_token_refresh("success")
            return access

        except AuthenticationError:
            self.clear()
            self.metrics.track_token_refresh("failure")
            raise

        except TanxError as e:
            self.clear()
            self.metrics.track_token_refresh("failure")
            logger.warning(f"Token refresh failed: {e.message}")
            raise AuthenticationError("Token refresh failed", e.details) from e

        finally:
            self._refresh_task = None
