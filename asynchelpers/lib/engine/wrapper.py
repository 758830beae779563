"""
Wrapping engine.

Hands out helpers either raw or as token-issuing proxies. Calling a proxy
never runs the helper: it records the call and returns a token standing in
for the eventual value.
"""

import functools
import itertools
import threading
from typing import Any, Callable, Iterator, Mapping, Optional, Self
from asynchelpers.lib.engine.codec import TokenCodec
from asynchelpers.lib.engine.registry import HelperRegistry, descriptor_create
from asynchelpers.lib.engine.store import InvocationStore
from asynchelpers.lib.errors import NotFoundError
from asynchelpers.lib.log import LOG
from asynchelpers.models.dataModel import HelperDescriptor, WrapOptions

HelperRef = str | Callable[..., Any]


def options_coerce(options: WrapOptions | Mapping[str, Any] | None) -> WrapOptions:
    if options is None:
        return WrapOptions()
    if isinstance(options, WrapOptions):
        return options
    return WrapOptions.model_validate(dict(options))


class HelperWrapper:
    """Issues tokens for wrapped helper calls of one engine instance.

    Attributes:
        instance_index: Process-wide index of the owning engine
        codec: Token codec for the engine's prefix
        registry: Helpers available by name
        store: Where invocation records are created
    """

    def __init__(
        self: Self,
        instance_index: int,
        codec: TokenCodec,
        registry: HelperRegistry,
        store: InvocationStore,
    ) -> None:
        self.instance_index: int = instance_index
        self.codec: TokenCodec = codec
        self.registry: HelperRegistry = registry
        self.store: InvocationStore = store
        self._lock: threading.Lock = threading.Lock()
        self._counter: Iterator[int] = itertools.count()

    def counter_reset(self: Self) -> None:
        with self._lock:
            self._counter = itertools.count()

    def invocation_next(self: Self) -> int:
        with self._lock:
            return next(self._counter)

    def descriptor_find(self: Self, helper: HelperRef) -> HelperDescriptor:
        """Turn a helper name or a callable into a descriptor.

        Raises:
            NotFoundError: If a name is given that is not registered
            TypeError: If ``helper`` is neither a name nor a callable
        """
        if isinstance(helper, str):
            descriptor: Optional[HelperDescriptor] = self.registry.descriptor(helper)
            if descriptor is None:
                raise NotFoundError(helper)
            return descriptor
        if callable(helper):
            name: str = getattr(helper, "__name__", type(helper).__name__)
            return descriptor_create(name, helper)
        raise TypeError(
            f"Expected a helper name or a callable, got {type(helper).__name__}"
        )

    def wrap(
        self: Self,
        helper: HelperRef,
        options: WrapOptions | Mapping[str, Any] | None = None,
    ) -> Callable[..., Any]:
        """Return the raw helper, or a proxy when ``options.wrap`` is set."""
        descriptor: HelperDescriptor = self.descriptor_find(helper)
        if not options_coerce(options).wrap:
            return descriptor.fn
        return self.proxy_create(descriptor)

    def wrap_all(
        self: Self, options: WrapOptions | Mapping[str, Any] | None = None
    ) -> dict[str, Callable[..., Any]]:
        """Apply ``wrap`` to every registered helper, in registration order."""
        return {name: self.wrap(name, options) for name in self.registry.names()}

    def proxy_create(self: Self, descriptor: HelperDescriptor) -> Callable[..., Any]:
        @functools.wraps(descriptor.fn)
        def proxy(*args: Any, **kwargs: Any) -> str:
            token: str = self.codec.format(self.instance_index, self.invocation_next())
            self.store.create(token, descriptor, args, kwargs)
            LOG(f"issued {token} for helper '{descriptor.name}'")
            return token

        return proxy
