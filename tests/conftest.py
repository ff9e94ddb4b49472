import asyncio

import pytest

from pico_inject import Context


class StaticProvider:
    """Metadata provider fed with explicit descriptor lists."""

    def __init__(self, args=(), props=None):
        self.args = list(args)
        self.props = dict(props or {})

    def describe_injected_arguments(self, fn):
        return self.args

    def describe_injected_properties(self, cls):
        return self.props


class RecordingStore:
    """Value store that records every key it is asked for."""

    def __init__(self, values):
        self.values = values
        self.lookups = []

    def get_value_or_deferred(self, key):
        self.lookups.append(key)
        return self.values[key]()


async def delayed(value, delay=0.0, order=None):
    await asyncio.sleep(delay)
    if order is not None:
        order.append(value)
    return value


@pytest.fixture
def ctx() -> Context:
    return Context("test")
