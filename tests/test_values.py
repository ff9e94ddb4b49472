import asyncio

import pytest

from pico_inject.values import discard, is_deferred, realize, then


class CustomAwaitable:
    def __init__(self, value):
        self.value = value

    def __await__(self):
        yield from asyncio.sleep(0).__await__()
        return self.value


async def answer():
    return 42


def test_immediate_values_are_not_deferred():
    for value in (None, 0, "x", [1, 2], {"a": 1}, object()):
        assert is_deferred(value) is False


@pytest.mark.asyncio
async def test_any_awaitable_is_deferred():
    coro = answer()
    fut = asyncio.get_running_loop().create_future()
    task = asyncio.ensure_future(answer())
    try:
        assert is_deferred(coro)
        assert is_deferred(fut)
        assert is_deferred(task)
        assert is_deferred(CustomAwaitable(1))
    finally:
        coro.close()
        fut.cancel()
        await task


@pytest.mark.asyncio
async def test_realize_flattens_nested_deferred_values():
    async def outer():
        return answer()

    assert await realize(outer()) == 42
    assert await realize(CustomAwaitable(answer())) == 42
    assert await realize("plain") == "plain"


def test_then_applies_immediately_to_immediate_values():
    assert then(20, lambda v: v + 1) == 21


@pytest.mark.asyncio
async def test_then_defers_for_deferred_values():
    result = then(answer(), lambda v: v + 1)
    assert is_deferred(result)
    assert await result == 43


@pytest.mark.asyncio
async def test_then_flattens_deferred_callback_result():
    async def plus_one(v):
        return v + 1

    result = then(1, plus_one)
    assert is_deferred(result)
    assert await realize(result) == 2
    assert await then(answer(), plus_one) == 43


def test_discard_closes_unstarted_coroutines():
    coro = answer()
    discard(coro)
    assert coro.cr_frame is None
    discard("not a coroutine")
