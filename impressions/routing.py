"""
Subdomain routing rule.
Decides, from host and path alone, whether a request is served as is,
transparently rewritten under /admin, or redirected to the public home page.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

ADMIN_PREFIX = "/admin"
DEFAULT_ADMIN_HOST_PREFIXES = ("admin.", "admin-")

# API routes, build assets, image optimization, favicon and anything that looks like a file
EXCLUDED_PATH = re.compile(r"^/(?:api|_next/static|_next/image|favicon\.ico|.*\..*)")


class RouteAction(str, Enum):
    PASS = "pass"
    REWRITE = "rewrite"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class RouteDecision:
    action: RouteAction
    path: Optional[str] = None


PASS_THROUGH = RouteDecision(RouteAction.PASS)


def is_excluded(path: str) -> bool:
    return bool(EXCLUDED_PATH.match(path))


def is_admin_host(host: Optional[str], prefixes: Sequence[str] = DEFAULT_ADMIN_HOST_PREFIXES) -> bool:
    if not host:
        return False
    host = host.lower()
    return any(host.startswith(prefix) for prefix in prefixes)


def decide_route(
    host: Optional[str],
    path: str,
    development: bool = False,
    restrict_admin: bool = False,
    admin_host_prefixes: Sequence[str] = DEFAULT_ADMIN_HOST_PREFIXES,
) -> RouteDecision:
    """
    Apply the subdomain routing rule to one request.

    Args:
        host: Value of the Host header (may be None)
        path: Request path, without query string
        development: Whether the app runs in development mode
        restrict_admin: Redirect /admin requests that do not arrive on the admin host
        admin_host_prefixes: Host prefixes that identify the admin host

    Returns:
        RouteDecision: PASS, REWRITE with the served path, or REDIRECT with the target
    """
    if is_excluded(path):
        return PASS_THROUGH

    on_admin_path = path.startswith(ADMIN_PREFIX)

    if is_admin_host(host, admin_host_prefixes):
        if on_admin_path:
            return PASS_THROUGH
        rewritten = ADMIN_PREFIX if path == "/" else f"{ADMIN_PREFIX}{path}"
        return RouteDecision(RouteAction.REWRITE, rewritten)

    if on_admin_path and restrict_admin and not development:
        return RouteDecision(RouteAction.REDIRECT, "/")

    return PASS_THROUGH
