"""
ASGI middleware applying the subdomain routing rule before any route runs.
"""
import logging

from starlette.datastructures import Headers
from starlette.responses import RedirectResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from impressions.config import Settings
from impressions.routing import RouteAction, decide_route

logger = logging.getLogger(__name__)


class AdminSubdomainMiddleware:
    """
    Serves admin.* hosts from the /admin tree and optionally keeps /admin
    off every other host outside development.
    """

    def __init__(self, app: ASGIApp, settings: Settings):
        self.app = app
        self.settings = settings

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        host = Headers(scope=scope).get("host")
        decision = decide_route(
            host,
            scope["path"],
            development=self.settings.is_development,
            restrict_admin=self.settings.RESTRICT_ADMIN_TO_SUBDOMAIN,
            admin_host_prefixes=self.settings.ADMIN_HOST_PREFIXES,
        )

        if decision.action == RouteAction.REWRITE:
            logger.debug(f"Rewriting {scope['path']} to {decision.path} for host {host}")
            # Query string lives in its own scope key and is left untouched
            scope = dict(scope)
            scope["path"] = decision.path
            scope["raw_path"] = decision.path.encode("utf-8")
        elif decision.action == RouteAction.REDIRECT:
            logger.info(f"Redirecting {scope['path']} on host {host} to {decision.path}")
            response = RedirectResponse(decision.path)
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)
