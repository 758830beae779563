"""Shared fixtures."""

import pytest
from asynchelpers import AsyncHelpers, InstanceCounter


@pytest.fixture(autouse=True)
def instance_counter(monkeypatch: pytest.MonkeyPatch) -> InstanceCounter:
    """Restart the process-wide instance counter so token text is predictable."""
    counter = InstanceCounter()
    monkeypatch.setattr("asynchelpers.asynchelpers.instances", counter)
    return counter


@pytest.fixture
def engine() -> AsyncHelpers:
    return AsyncHelpers()
