"""Shared pytest fixtures for wiregen tests."""

import sys
from collections.abc import Generator

import pytest

from wiregen.generator import ServicesGenerator
from wiregen.sinks import InMemorySink


@pytest.fixture()
def generator() -> ServicesGenerator:
    """Generator with default options."""
    return ServicesGenerator()


@pytest.fixture()
def sink() -> InMemorySink:
    """Empty in-memory sink."""
    return InMemorySink()


@pytest.fixture()
def isolated_modules() -> Generator[None, None, None]:
    """Drop modules imported by the test so generated modules do not leak between tests."""
    before = set(sys.modules)
    try:
        yield
    finally:
        for name in set(sys.modules) - before:
            del sys.modules[name]
