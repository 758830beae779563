"""
asynchelpers main module.

Register helpers, call them before their arguments are known, and resolve
the placeholders later.

A wrapped helper call does not run the helper. It records the call and
returns a token such as ``{$ASYNCID$0$0$}``. Tokens can be passed as
arguments to further wrapped calls, or embedded in strings, lists and dicts.
Resolving a token (or any structure holding tokens) runs every helper needed,
innermost first, and substitutes the results.

Example:
    engine = AsyncHelpers()
    engine.set("upper", lambda s: s.upper())

    @async_helper
    def greet(name, done):
        done(None, f"hello {name}")

    engine.set("greet", greet)
    upper = engine.get("upper", {"wrap": True})
    greet_ = engine.get("greet", {"wrap": True})

    token = upper(greet_("doowb"))
    await engine.resolve_id(token)          # "HELLO DOOWB"

    engine.resolve_ids(f"<b>{token}</b>", lambda err, value: print(value))

Note:
    Every engine takes an instance index from a process-wide counter, so
    tokens of different engines never collide. ``reset`` clears one engine
    but never rewinds that counter.
"""

import itertools
import threading
from typing import Any, Callable, Final, Iterator, Mapping, Optional, Self
from asynchelpers.config.settings import appsettings
from asynchelpers.lib.engine.codec import TokenCodec
from asynchelpers.lib.engine.registry import HelperRegistry
from asynchelpers.lib.engine.resolver import Completion, Resolver, completion_drive
from asynchelpers.lib.engine.store import InvocationStore
from asynchelpers.lib.engine.wrapper import HelperRef, HelperWrapper
from asynchelpers.lib.log import LOG
from asynchelpers.models.dataModel import EngineOptions, InvocationRecord, WrapOptions

__version__: Final[str] = "0.1.0"

Options = WrapOptions | Mapping[str, Any] | None


class InstanceCounter:
    """Process-wide, strictly increasing source of engine instance indices."""

    def __init__(self: Self) -> None:
        self._lock: threading.Lock = threading.Lock()
        self._counter: Iterator[int] = itertools.count()

    def next(self: Self) -> int:
        with self._lock:
            return next(self._counter)


instances: InstanceCounter = InstanceCounter()


class AsyncHelpers:
    """Token issuing and resolution engine.

    Attributes:
        options: Validated construction options
        instance_index: Index taken from the process-wide counter
        codec: Token codec for this engine's prefix
        registry: Registered helpers
        store: Invocation records
        wrapper: Issues tokens for wrapped calls
        resolver: Resolves tokens
    """

    def __init__(self: Self, options: EngineOptions | Mapping[str, Any] | None = None) -> None:
        """Create an engine.

        Args:
            options: ``EngineOptions`` or a mapping such as
                ``{"prefix": "{$custom$"}``; the prefix defaults to the
                configured ``appsettings.prefix``

        Raises:
            pydantic.ValidationError: If the prefix is empty or malformed
        """
        if not isinstance(options, EngineOptions):
            options = EngineOptions.model_validate(dict(options or {}))
        self.options: EngineOptions = options
        self.codec: TokenCodec = TokenCodec(options.prefix or appsettings.prefix)
        self.instance_index: int = instances.next()
        self.registry: HelperRegistry = HelperRegistry()
        self.store: InvocationStore = InvocationStore()
        self.wrapper: HelperWrapper = HelperWrapper(
            self.instance_index, self.codec, self.registry, self.store
        )
        self.resolver: Resolver = Resolver(self.codec, self.store)
        LOG(f"engine {self.instance_index} created with prefix {self.prefix!r}")

    @property
    def prefix(self: Self) -> str:
        return self.codec.prefix

    @property
    def helpers(self: Self) -> dict[str, Callable[..., Any]]:
        return self.registry.helpers

    @property
    def records(self: Self) -> list[InvocationRecord]:
        return list(self.store)

    def set(
        self: Self,
        name: str | Mapping[str, Callable[..., Any]],
        fn: Optional[Callable[..., Any]] = None,
        is_async: Optional[bool] = None,
    ) -> Self:
        """Register a helper, or a mapping of helpers.

        ``is_async`` defaults to the ``is_async`` marker on the function.
        """
        self.registry.set(name, fn, is_async)
        return self

    def get(self: Self, name: str, options: Options = None) -> Callable[..., Any]:
        """Return the helper registered as ``name``, wrapped if asked to.

        Raises:
            NotFoundError: If ``name`` is not registered
        """
        return self.wrap_helper(name, options)

    def wrap_helper(
        self: Self, helper: Optional[HelperRef] = None, options: Options = None
    ) -> Any:
        """Return a helper raw, or as a token-issuing proxy with ``wrap``.

        Args:
            helper: Registered name, a callable, or None for every registered helper
            options: ``{"wrap": bool}`` or ``WrapOptions``

        Raises:
            NotFoundError: If a name is given that is not registered
        """
        if helper is None:
            return self.wrap_helpers(options)
        return self.wrapper.wrap(helper, options)

    def wrap_helpers(self: Self, options: Options = None) -> dict[str, Callable[..., Any]]:
        return self.wrapper.wrap_all(options)

    def reset(self: Self) -> Self:
        """Forget all helpers, records and issued invocation indices of this engine."""
        self.registry.clear()
        self.store.clear()
        self.wrapper.counter_reset()
        LOG(f"engine {self.instance_index} reset")
        return self

    def matches(self: Self, text: Any) -> bool:
        return self.codec.matches(text)

    def has_async_id(self: Self, value: Any) -> bool:
        return self.resolver.has_async_id(value)

    def resolve_id(self: Self, token: str, callback: Optional[Completion] = None) -> Any:
        """Resolve one token.

        Without ``callback`` an awaitable is returned. With one, the callback
        receives ``(err, value)``.
        """
        return completion_drive(self.resolver.id_resolve(token), callback)

    def resolve_ids(self: Self, value: Any, callback: Optional[Completion] = None) -> Any:
        """Resolve every token reachable from a string, list, tuple or mapping."""
        return completion_drive(self.resolver.ids_resolve(value), callback)

    def resolve_args(
        self: Self, args: list[Any] | tuple[Any, ...], callback: Optional[Completion] = None
    ) -> Any:
        return completion_drive(self.resolver.args_resolve(args), callback)

    def resolve_object(
        self: Self, obj: Mapping[Any, Any], callback: Optional[Completion] = None
    ) -> Any:
        return completion_drive(self.resolver.object_resolve(obj), callback)
