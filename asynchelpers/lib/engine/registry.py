"""
Helper registry.

Stores helpers by name together with their kind. The kind is explicit: it is
given at registration, or read from an ``is_async`` marker the author put on
the function (see ``async_helper``). It is never guessed from the signature.
"""

from collections.abc import Mapping
from typing import Any, Callable, Iterator, Optional, Self, overload
from asynchelpers.models.dataModel import HelperDescriptor, HelperKind

ASYNC_MARKER = "is_async"


def async_helper(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Mark ``fn`` as a callback-style helper.

    The function receives a trailing ``done(err, value)`` callback when it is
    resolved instead of returning its value.
    """
    setattr(fn, ASYNC_MARKER, True)
    return fn


def descriptor_create(
    name: str, fn: Callable[..., Any], is_async: Optional[bool] = None
) -> HelperDescriptor:
    """Build a descriptor, reading the kind from the marker if not given."""
    if not callable(fn):
        raise TypeError(f"Helper '{name}' must be callable, got {type(fn).__name__}")
    if is_async is None:
        is_async = bool(getattr(fn, ASYNC_MARKER, False))
    kind: HelperKind = HelperKind.ASYNC if is_async else HelperKind.SYNC
    return HelperDescriptor(name=name, fn=fn, kind=kind)


class HelperRegistry:
    """Name to helper descriptor mapping for one engine instance."""

    def __init__(self: Self) -> None:
        self._helpers: dict[str, HelperDescriptor] = {}

    @overload
    def set(self: Self, name: str, fn: Callable[..., Any], is_async: Optional[bool] = None) -> None: ...

    @overload
    def set(self: Self, name: Mapping[str, Callable[..., Any]]) -> None: ...

    def set(self, name, fn=None, is_async=None):
        """Register one helper, or every helper of a mapping.

        Re-registering a name overwrites it silently.
        """
        if isinstance(name, Mapping):
            for key, value in name.items():
                self.set(key, value, is_async)
            return
        self._helpers[name] = descriptor_create(name, fn, is_async)

    def get(self: Self, name: str) -> Optional[Callable[..., Any]]:
        """Return the raw helper, or None."""
        descriptor: Optional[HelperDescriptor] = self._helpers.get(name)
        return descriptor.fn if descriptor else None

    def descriptor(self: Self, name: str) -> Optional[HelperDescriptor]:
        return self._helpers.get(name)

    def names(self: Self) -> list[str]:
        return list(self._helpers)

    @property
    def helpers(self: Self) -> dict[str, Callable[..., Any]]:
        return {name: descriptor.fn for name, descriptor in self._helpers.items()}

    def clear(self: Self) -> None:
        self._helpers.clear()

    def __contains__(self: Self, name: object) -> bool:
        return name in self._helpers

    def __iter__(self: Self) -> Iterator[HelperDescriptor]:
        return iter(list(self._helpers.values()))

    def __len__(self: Self) -> int:
        return len(self._helpers)
