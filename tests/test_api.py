import asyncio

import httpx
import pytest

from conftest import engine_error
from wharf.daemon.api import WharfAPI, status_for
from wharf.daemon.errors import (
    DeadlineExceeded,
    EnumerationError,
    NotFound,
    PermissionDenied,
    Rejected,
    ValidationFailed,
)
from wharf.daemon.permissions import Permission, Principal

READER = Principal("reader", Permission.READ)
WRITER = Principal("writer", Permission.WRITE)
ADMIN = Principal("admin", Permission.EXECUTE)


def test_status_mapping():
    assert status_for(PermissionDenied("x")) == 400
    assert status_for(ValidationFailed("x")) == 400
    assert status_for(NotFound("x")) == 404
    assert status_for(Rejected("x")) == 403
    assert status_for(DeadlineExceeded("x")) == 403
    assert status_for(EnumerationError("x")) == 500


@pytest.mark.asyncio
async def test_list_images(make_engine):
    summaries = [{"Id": "sha256:a"}, {"Id": "sha256:b"}, {"Id": "sha256:c"}]
    engine, transport = make_engine(lambda request: httpx.Response(200, json=summaries))
    api = WharfAPI(engine, timeout=1)

    response = await api.list_images(READER, {"dangling": "true"})

    assert response.status == 200
    assert [item["Id"] for item in response.body] == ["sha256:a", "sha256:b", "sha256:c"]
    assert transport.requests[0].url.params["filters"] == '{"dangling": ["true"]}'


@pytest.mark.asyncio
async def test_list_failure_is_server_error(make_engine):
    engine, _ = make_engine(lambda request: engine_error(500, "connection reset"))
    api = WharfAPI(engine, timeout=1)

    response = await api.list_networks(READER)

    assert response.status == 500
    assert response.body == {"error": "connection reset"}


@pytest.mark.asyncio
async def test_list_timeout_is_server_error(make_engine):
    async def slow(request):
        await asyncio.sleep(10)
        return httpx.Response(200, json=[])

    engine, _ = make_engine(slow)
    api = WharfAPI(engine, timeout=0.05)

    response = await api.list_images(READER)

    assert response.status == 500
    assert "deadline" in response.body["error"]


@pytest.mark.asyncio
async def test_reader_cannot_mutate(make_engine):
    engine, transport = make_engine(lambda request: httpx.Response(200, json=[]))
    api = WharfAPI(engine, timeout=1)

    responses = [
        await api.remove_image(READER, "x1", {}),
        await api.tag_image(READER, "x1", {"tag": "app:1"}),
        await api.prune_images(READER),
        await api.create_network(READER, {"name": "n", "driver": "bridge"}),
    ]

    assert all(r.status == 400 for r in responses)
    assert all(r.body == {"error": "Invalid permissions"} for r in responses)
    assert transport.requests == []


@pytest.mark.asyncio
async def test_writer_cannot_remove(make_engine):
    engine, transport = make_engine(lambda request: httpx.Response(200))
    api = WharfAPI(engine, timeout=1)

    assert (await api.remove_network(WRITER, "n1")).status == 400
    assert (await api.prune_networks(WRITER)).status == 400
    assert (await api.connect_network(WRITER, "n1", {"container_id": "web"})).status == 200
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_remove_missing_image_is_404(make_engine):
    engine, _ = make_engine(lambda request: engine_error(404, "No such image: x1"))
    api = WharfAPI(engine, timeout=1)

    response = await api.remove_image(ADMIN, "x1", {"force": False})

    assert response.status == 404
    assert response.body == {"error": "No such image: x1"}


@pytest.mark.asyncio
async def test_create_duplicate_network_is_403(make_engine):
    engine, _ = make_engine(lambda request: engine_error(409, "network with name n already exists"))
    api = WharfAPI(engine, timeout=1)

    response = await api.create_network(WRITER, {"name": "n", "driver": "bridge"})

    assert response.status == 403
    assert response.body == {"error": "network with name n already exists"}


@pytest.mark.asyncio
async def test_tag_requires_tag(make_engine):
    engine, transport = make_engine(lambda request: httpx.Response(201))
    api = WharfAPI(engine, timeout=1)

    assert (await api.tag_image(WRITER, "x1", {})).status == 400
    assert (await api.tag_image(WRITER, "x1", {"tag": ""})).status == 400
    assert (await api.tag_image(WRITER, "x1", {"tag": "a", "bogus": 1})).status == 400
    assert transport.requests == []

    response = await api.tag_image(WRITER, "x1", {"tag": "app:1.0"})
    assert response.status == 200
    assert response.body == "x1 tagged successfully"


@pytest.mark.asyncio
async def test_network_messages(make_engine):
    engine, _ = make_engine(lambda request: httpx.Response(200))
    api = WharfAPI(engine, timeout=1)

    removed = await api.remove_network(ADMIN, "n1")
    connected = await api.connect_network(ADMIN, "n1", {"container_id": "web"})
    disconnected = await api.disconnect_network(ADMIN, "n1", {"container_id": "web"})

    assert removed.body == {"message": "n1 network removed"}
    assert connected.body == {"message": "web connection created with n1"}
    assert disconnected.body == {"message": "web connection lost with n1"}


@pytest.mark.asyncio
async def test_create_network_returns_engine_response(make_engine):
    engine, _ = make_engine(lambda request: httpx.Response(201, json={"Id": "abc", "Warning": ""}))
    api = WharfAPI(engine, timeout=1)

    response = await api.create_network(ADMIN, {"name": "n", "driver": "bridge"})

    assert response.ok
    assert response.body == {"Id": "abc", "Warning": ""}
    assert response.to_json() == '{"Id": "abc", "Warning": ""}'


@pytest.mark.asyncio
async def test_malformed_engine_reply_is_forbidden(make_engine):
    engine, _ = make_engine(lambda request: httpx.Response(200, text="oops"))
    api = WharfAPI(engine, timeout=1)

    response = await api.prune_images(ADMIN)

    assert response.status == 403
    assert response.body["error"].startswith("Unexpected engine response")


@pytest.mark.asyncio
async def test_create_network_with_empty_reply_is_forbidden(make_engine):
    engine, _ = make_engine(lambda request: httpx.Response(201))
    api = WharfAPI(engine, timeout=1)

    response = await api.create_network(ADMIN, {"name": "n", "driver": "bridge"})

    assert response.status == 403
    assert "error" in response.body
