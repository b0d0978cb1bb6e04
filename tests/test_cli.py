import httpx
import pytest
from typer.testing import CliRunner

from wharf.cli import client
from wharf.cli.main import app
from wharf.daemon.config import WharfConfig
from wharf.daemon.engine_client import EngineClient

runner = CliRunner()


@pytest.fixture
def engine_routes(monkeypatch):
    """Point the CLI at a mock engine serving ``routes[(method, path)]``."""
    routes: dict[tuple[str, str], httpx.Response] = {
        ("GET", "/v1.43/_ping"): httpx.Response(200, text="OK"),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return routes.get((request.method, request.url.path), httpx.Response(404, json={"message": "no route"}))

    monkeypatch.setattr(client, "_config", WharfConfig())
    monkeypatch.setattr(client, "_engine", EngineClient(transport=httpx.MockTransport(handler)))
    return routes


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "wharf version" in result.stdout


def test_images_ls(engine_routes):
    engine_routes[("GET", "/v1.43/images/json")] = httpx.Response(
        200,
        json=[{"Id": "sha256:0123456789abcdef", "RepoTags": ["app:1.0"], "Size": 2048, "Created": 1700000000}],
    )

    result = runner.invoke(app, ["images", "ls"])

    assert result.exit_code == 0
    assert "0123456789ab" in result.stdout
    assert "app:1.0" in result.stdout


def test_networks_rm_missing_exits_nonzero(engine_routes):
    result = runner.invoke(app, ["networks", "rm", "n1"])
    assert result.exit_code == 1


def test_engine_unavailable(monkeypatch):
    def refuse(request):
        raise httpx.ConnectError("no socket", request=request)

    monkeypatch.setattr(client, "_config", WharfConfig())
    monkeypatch.setattr(client, "_engine", EngineClient(transport=httpx.MockTransport(refuse)))

    result = runner.invoke(app, ["networks", "ls"])
    assert result.exit_code == 1
