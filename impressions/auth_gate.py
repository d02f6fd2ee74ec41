"""
Admin session guard.
Every gated admin request re-validates the session against the backend,
bounded by a fixed timeout so an unreachable backend sends the user to the
login page instead of leaving the request hanging.
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

LOGIN_PATH = "/admin/login"
DEFAULT_TIMEOUT_SECONDS = 5.0


class GateState(str, Enum):
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    REDIRECTING = "redirecting"


class AuthGate:
    """
    checking -> authenticated | redirecting.

    The check outcome is ignored once the timeout has fired; an in-flight
    check is cancelled at that point.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.timeout = timeout
        self.state = GateState.CHECKING

    async def run(self, check: Callable[[], Awaitable[bool]]) -> GateState:
        self.state = GateState.CHECKING
        try:
            authenticated = await asyncio.wait_for(check(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Session check did not finish within {self.timeout}s, redirecting to login")
            authenticated = False
        except Exception as e:
            logger.error(f"Auth check failed: {str(e)}", exc_info=True)
            authenticated = False

        self.state = GateState.AUTHENTICATED if authenticated else GateState.REDIRECTING
        return self.state
