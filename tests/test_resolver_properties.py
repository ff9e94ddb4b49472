import asyncio
from typing import Annotated

import pytest

from pico_inject import MissingInjectionMetadataError, inject, is_deferred, resolve_injected_properties
from conftest import RecordingStore, StaticProvider, delayed


def test_sync_properties_are_returned_immediately(ctx):
    ctx.bind("greeting").to("Hello")
    ctx.bind("count").to_dynamic_value(lambda: 3)

    class Greeter:
        greeting: Annotated[str, inject("greeting")]
        count: Annotated[int, inject("count")]

    props = resolve_injected_properties(Greeter, ctx)
    assert not is_deferred(props)
    assert props == {"greeting": "Hello", "count": 3}


def test_class_without_injected_properties(ctx):
    class Plain:
        name: str = "x"

    assert resolve_injected_properties(Plain, ctx) == {}


@pytest.mark.asyncio
async def test_async_properties_join_into_one_mapping(ctx):
    gate = asyncio.Event()

    async def gated():
        await gate.wait()
        return "db"

    ctx.bind("name").to("svc")
    ctx.bind("db").to_dynamic_value(gated)
    ctx.bind("cache").to_dynamic_value(lambda: delayed("cache", 0.01))

    class Service:
        name: Annotated[str, inject("name")]
        db: Annotated[str, inject("db")]
        cache: Annotated[str, inject("cache")]

    task = asyncio.ensure_future(resolve_injected_properties(Service, ctx))
    await asyncio.sleep(0.02)
    assert not task.done()

    gate.set()
    assert await task == {"name": "svc", "db": "db", "cache": "cache"}


def test_invalid_property_names_class_and_property(ctx):
    class Broken:
        ok: Annotated[str, inject("ok")]
        bad: Annotated[str, inject()]

    with pytest.raises(MissingInjectionMetadataError) as exc:
        resolve_injected_properties(Broken, ctx)
    assert exc.value.property_name == "bad"
    assert exc.value.target is Broken
    assert "Broken" in str(exc.value)
    assert "property bad" in str(exc.value)


def test_invalid_property_fails_before_any_lookup():
    store = RecordingStore({"ok": lambda: delayed("ok")})
    provider = StaticProvider(props={"ok": inject("ok"), "bad": inject()})

    class Target:
        pass

    with pytest.raises(MissingInjectionMetadataError):
        resolve_injected_properties(Target, store, provider=provider)
    assert store.lookups == []


def test_owning_binding_reaches_property_resolvers(ctx):
    owner = ctx.bind("owner")

    def whose(store, injection):
        return injection.binding.key

    class Target:
        owned_by: Annotated[str, inject(resolve=whose)]

    assert resolve_injected_properties(Target, ctx, owner) == {"owned_by": "owner"}
