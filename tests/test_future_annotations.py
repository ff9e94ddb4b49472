"""Tests for PEP 563 compatibility (from __future__ import annotations).

When `from __future__ import annotations` is active, all annotations become
strings at runtime. Injections must still be found, including when the
annotated type is local to a function and cannot be evaluated.
"""

from __future__ import annotations

from typing import Annotated, Optional

import pytest

from pico_inject import (
    UnresolvableAnnotationError,
    describe_injected_arguments,
    describe_injected_properties,
    inject,
    instantiate_class,
)
from conftest import delayed

# --- Module-level classes ---


class Repo:
    def __init__(self, url: Annotated[str, inject("db.url")]):
        self.url = url


class Service:
    repo: Annotated[Repo, inject("repo")]
    label: Optional[Annotated[str, inject("label")]]

    def __init__(self, name: Annotated[str, inject("name")], retries: int = 3):
        self.name = name
        self.retries = retries


class TestModuleLevelAnnotations:
    def test_resolves_string_argument_annotations(self):
        slots = describe_injected_arguments(Service)
        assert [s.binding_key for s in slots] == ["name"]

    def test_resolves_string_property_annotations(self):
        props = describe_injected_properties(Service)
        assert {k: v.binding_key for k, v in props.items()} == {"repo": "repo", "label": "label"}

    def test_instantiates_with_string_annotations(self, ctx):
        ctx.bind("db.url").to("sqlite://")
        ctx.bind("repo").to_class(Repo)
        ctx.bind("name").to("svc")
        ctx.bind("label").to("blue")

        svc = instantiate_class(Service, ctx)
        assert svc.name == "svc"
        assert svc.repo.url == "sqlite://"
        assert svc.label == "blue"


# --- Function-local types ---


class TestLocalTypes:
    def test_properties_with_local_types_are_injected(self, ctx):
        class Local:
            pass

        class Target:
            name: Annotated[str, inject("name")]
            other: Annotated[Local, inject("other")]

        local = Local()
        ctx.bind("name").to("target")
        ctx.bind("other").to(local)

        inst = instantiate_class(Target, ctx)
        assert inst.name == "target"
        assert inst.other is local

    def test_arguments_with_local_types_are_injected(self, ctx):
        class Local:
            pass

        class Target:
            def __init__(self, a: Annotated[Local, inject("a")], b: Annotated[str, inject("b")]):
                self.a = a
                self.b = b

        local = Local()
        ctx.bind("a").to(local)
        ctx.bind("b").to("bee")

        inst = instantiate_class(Target, ctx)
        assert (inst.a, inst.b) == (local, "bee")

    @pytest.mark.asyncio
    async def test_local_types_with_async_dependencies(self, ctx):
        class Local:
            pass

        class Target:
            other: Annotated[Local, inject("other")]

        ctx.bind("other").to_dynamic_value(lambda: delayed("late"))
        inst = await instantiate_class(Target, ctx)
        assert inst.other == "late"

    def test_unannotated_local_type_is_not_an_injection(self):
        class Local:
            pass

        def f(a: Local):
            return a

        assert describe_injected_arguments(f) == [None]

    def test_unevaluable_annotated_property_raises(self, ctx):
        def local_marker(key):
            return inject(key)

        class Target:
            other: Annotated[str, local_marker("other")]

        with pytest.raises(UnresolvableAnnotationError, match="other") as exc:
            instantiate_class(Target, ctx)
        assert exc.value.target is Target
        assert exc.value.name == "other"

    def test_unevaluable_annotated_argument_raises(self):
        def local_marker(key):
            return inject(key)

        def f(a: Annotated[str, local_marker("a")]):
            return a

        with pytest.raises(UnresolvableAnnotationError) as exc:
            describe_injected_arguments(f)
        assert exc.value.name == "a"
