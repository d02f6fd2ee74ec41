import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from impressions.config import Settings
from impressions.middleware import AdminSubdomainMiddleware
from impressions.routing import (
    RouteAction,
    RouteDecision,
    decide_route,
    is_admin_host,
    is_excluded,
)


@pytest.mark.parametrize("path", [
    "/api/admin/login",
    "/api/inquiries",
    "/_next/static/chunk.js",
    "/_next/image",
    "/favicon.ico",
    "/logo.png",
    "/images/gallery/one.jpg",
])
def test_excluded_paths_pass_on_any_host(path):
    assert is_excluded(path)
    assert decide_route("admin.example.com", path).action == RouteAction.PASS
    assert decide_route("example.com", path, restrict_admin=True).action == RouteAction.PASS


def test_admin_host_root_rewrites_to_admin():
    assert decide_route("admin.example.com", "/") == RouteDecision(RouteAction.REWRITE, "/admin")


def test_admin_host_rewrites_under_admin():
    decision = decide_route("admin.example.com", "/gallery")
    assert decision == RouteDecision(RouteAction.REWRITE, "/admin/gallery")


def test_admin_host_already_under_admin_passes():
    assert decide_route("admin.example.com", "/admin/inquiries").action == RouteAction.PASS


def test_preview_host_prefix_counts_as_admin():
    assert is_admin_host("admin-preview-123.hosting.app")
    assert decide_route("admin-preview.hosting.app", "/content").path == "/admin/content"


def test_host_match_ignores_case():
    assert is_admin_host("Admin.Example.com")


def test_missing_host_is_not_admin():
    assert not is_admin_host(None)
    assert decide_route(None, "/").action == RouteAction.PASS
    assert decide_route(None, "/admin").action == RouteAction.PASS


def test_public_host_admin_path_passes_by_default():
    assert decide_route("example.com", "/admin").action == RouteAction.PASS


def test_restricted_admin_redirects_outside_development():
    decision = decide_route("example.com", "/admin/gallery", restrict_admin=True)
    assert decision == RouteDecision(RouteAction.REDIRECT, "/")


def test_restricted_admin_allowed_in_development():
    decision = decide_route("localhost:3000", "/admin", development=True, restrict_admin=True)
    assert decision.action == RouteAction.PASS


def test_custom_admin_host_prefixes():
    assert decide_route("cms.example.com", "/", admin_host_prefixes=["cms."]).path == "/admin"
    assert decide_route("admin.example.com", "/", admin_host_prefixes=["cms."]).action == RouteAction.PASS


def build_echo_app(settings: Settings) -> FastAPI:
    app = FastAPI()
    app.add_middleware(AdminSubdomainMiddleware, settings=settings)

    @app.get("/{path:path}")
    async def echo(path: str, request: Request):
        return {"path": request.url.path, "query": request.url.query}

    return app


def test_middleware_rewrite_keeps_query_string():
    client = TestClient(build_echo_app(Settings()))
    response = client.get("/inquiries?status=new", headers={"host": "admin.example.com"})
    assert response.json() == {"path": "/admin/inquiries", "query": "status=new"}


def test_middleware_leaves_public_host_alone():
    client = TestClient(build_echo_app(Settings()))
    response = client.get("/gallery", headers={"host": "www.example.com"})
    assert response.json()["path"] == "/gallery"


def test_middleware_redirect_when_restricted():
    settings = Settings(RESTRICT_ADMIN_TO_SUBDOMAIN=True, ENVIRONMENT="production")
    client = TestClient(build_echo_app(settings))
    response = client.get("/admin", headers={"host": "www.example.com"}, follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "/"


def test_middleware_no_redirect_in_development():
    settings = Settings(RESTRICT_ADMIN_TO_SUBDOMAIN=True, ENVIRONMENT="development")
    client = TestClient(build_echo_app(settings))
    response = client.get("/admin", headers={"host": "localhost:8000"}, follow_redirects=False)
    assert response.status_code == 200
    assert response.json()["path"] == "/admin"
