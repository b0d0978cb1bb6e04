import asyncio

import pytest

from wharf.daemon.enumerator import collect, enumerate_resources, list_all
from wharf.daemon.errors import EnumerationError
from wharf.daemon.scope import ExecutionScope


def static_source(items, seen_filters=None):
    async def lister(filters):
        if seen_filters is not None:
            seen_filters.append(filters)
        await asyncio.sleep(0)
        return list(items)
    return lister


def failing_stream(items, error):
    def lister(filters):
        async def gen():
            for item in items:
                yield item
            raise error
        return gen()
    return lister


def endless_stream(produced):
    def lister(filters):
        async def gen():
            n = 0
            while True:
                produced.append(n)
                yield n
                n += 1
        return gen()
    return lister


@pytest.mark.asyncio
async def test_relays_all_resources_in_source_order():
    seen = []
    async with ExecutionScope(timeout=1) as scope:
        result = await collect(
            enumerate_resources(scope, static_source(["A", "B", "C"], seen), {"all": ["true"]})
        )

    assert result == ["A", "B", "C"]
    assert seen == [{"all": ["true"]}]


@pytest.mark.asyncio
async def test_empty_listing_completes_without_error():
    async with ExecutionScope(timeout=1) as scope:
        assert await list_all(scope, static_source([])) == []


@pytest.mark.asyncio
async def test_order_preserved_through_small_buffer():
    async with ExecutionScope(timeout=1) as scope:
        result = await collect(enumerate_resources(scope, static_source(range(50))))
    assert result == list(range(50))


@pytest.mark.asyncio
async def test_mid_stream_failure_fails_whole_listing():
    lister = failing_stream(["A", "B"], ConnectionResetError("connection reset"))

    async with ExecutionScope(timeout=1) as scope:
        with pytest.raises(EnumerationError) as excinfo:
            await collect(enumerate_resources(scope, lister))

    assert excinfo.value.detail == "connection reset"
    assert isinstance(excinfo.value.cause, ConnectionResetError)
    assert not excinfo.value.deadline_exceeded


@pytest.mark.asyncio
async def test_failure_is_the_terminal_element():
    lister = failing_stream(["A", "B"], ConnectionResetError("connection reset"))
    received = []

    async with ExecutionScope(timeout=1) as scope:
        enumeration = enumerate_resources(scope, lister)
        with pytest.raises(EnumerationError):
            async for item in enumeration:
                received.append(item)

    assert received == ["A", "B"]


@pytest.mark.asyncio
async def test_failure_before_any_result_does_not_block_consumer():
    async def lister(filters):
        raise OSError("engine unreachable")

    async with ExecutionScope(timeout=5) as scope:
        with pytest.raises(EnumerationError, match="engine unreachable"):
            await asyncio.wait_for(collect(enumerate_resources(scope, lister)), timeout=1)


@pytest.mark.asyncio
async def test_slow_source_reports_deadline():
    async def lister(filters):
        await asyncio.sleep(10)
        return ["late"]

    async with ExecutionScope(timeout=0.05) as scope:
        with pytest.raises(EnumerationError) as excinfo:
            await collect(enumerate_resources(scope, lister))

    assert excinfo.value.deadline_exceeded


@pytest.mark.asyncio
async def test_abandoned_enumeration_does_not_leak_producer():
    produced = []

    async with ExecutionScope(timeout=10) as scope:
        enumeration = enumerate_resources(scope, endless_stream(produced))
        async for item in enumeration:
            assert item == 0
            break

    assert enumeration.producer.done()
    count = len(produced)
    await asyncio.sleep(0.02)
    assert len(produced) == count


@pytest.mark.asyncio
async def test_stalled_consumer_does_not_hold_producer_past_deadline():
    async with ExecutionScope(timeout=0.1) as scope:
        enumeration = enumerate_resources(scope, static_source(range(10)))
        first = await enumeration.__anext__()
        await asyncio.sleep(0.3)

        assert enumeration.producer.done()
        with pytest.raises(EnumerationError) as excinfo:
            await collect(enumeration)

    assert first == 0
    assert excinfo.value.deadline_exceeded


@pytest.mark.asyncio
async def test_scope_cancellation_surfaces_as_deadline():
    def lister(filters):
        async def gen():
            await asyncio.sleep(10)
            yield "never"
        return gen()

    async with ExecutionScope(timeout=10) as scope:
        enumeration = enumerate_resources(scope, lister)
        await asyncio.sleep(0.01)
        scope.cancel()
        with pytest.raises(EnumerationError) as excinfo:
            await asyncio.wait_for(collect(enumeration), timeout=1)

    assert excinfo.value.deadline_exceeded


@pytest.mark.asyncio
async def test_enumeration_is_not_restartable():
    async with ExecutionScope(timeout=1) as scope:
        enumeration = enumerate_resources(scope, static_source(["A"]))
        assert await collect(enumeration) == ["A"]

        with pytest.raises(RuntimeError, match="already consumed"):
            await collect(enumeration)


@pytest.mark.asyncio
async def test_run_uses_a_single_producer_task():
    produced = []

    async with ExecutionScope(timeout=10) as scope:
        enumeration = enumerate_resources(scope, endless_stream(produced))
        await asyncio.sleep(0.01)

        assert scope._tasks == {enumeration.producer}

    assert enumeration.producer.cancelled()
