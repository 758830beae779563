"""
Resolution engine.

Walks a value, finds every token in it, resolves the invocation behind each
token and substitutes the results back in.

Resolving one token:

1. look up its invocation record (unknown token -> UnknownTokenError);
2. return the cached outcome if the record is already resolved;
3. resolve the record's arguments, which may hold further tokens;
4. run the helper: synchronous helpers are called for their return value,
   callback-style helpers get a trailing ``done(err, value)`` and the
   resolution waits until it is called;
5. cache the outcome on the record and return it.

All of this is one coroutine state machine. ``completion_drive`` exposes it
either as an awaitable or through a ``callback(err, value)``.

The walk carries a ``Trail``: the containers (by identity) and tokens on the
active path. Meeting either again means the structure can never finish
resolving, so a CircularReferenceError is raised, tagged with the helper
whose arguments were being walked.
"""

import asyncio
import functools
import inspect
from dataclasses import dataclass, replace
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional, Self
from asynchelpers.lib.engine.codec import TokenCodec
from asynchelpers.lib.engine.store import InvocationStore
from asynchelpers.lib.errors import (
    AsyncHelpersError,
    CircularReferenceError,
    HelperExecutionError,
    UnknownTokenError,
)
from asynchelpers.lib.log import LOG
from asynchelpers.models.dataModel import (
    HelperDescriptor,
    InvocationRecord,
    InvocationState,
)

Completion = Callable[[Optional[BaseException], Any], None]


@dataclass(frozen=True)
class Trail:
    """Active resolution path.

    Attributes:
        helper: Helper whose arguments are being walked; None for a direct walk
        containers: ids of the lists, tuples and mappings currently entered
        tokens: Tokens whose resolution is in progress on this path
    """

    helper: Optional[str] = None
    containers: frozenset[int] = frozenset()
    tokens: frozenset[str] = frozenset()

    def enter(self: Self, container: Any) -> "Trail":
        if id(container) in self.containers:
            raise CircularReferenceError(
                self.helper, f"{type(container).__name__} contains itself"
            )
        return replace(self, containers=self.containers | {id(container)})

    def descend(self: Self, record: InvocationRecord) -> "Trail":
        """Start the walk of a record's arguments."""
        if record.token in self.tokens:
            raise CircularReferenceError(
                self.helper or record.helper_name,
                f"{record.token} depends on its own value",
            )
        return Trail(helper=record.helper_name, tokens=self.tokens | {record.token})


def future_settle(
    future: asyncio.Future, helper: str, err: Any, value: Any
) -> None:
    """Deliver a callback-style helper's outcome to the waiting resolution.

    A falsy ``err`` (None, False, 0, "") means success.
    """
    if future.done():
        LOG(f"completion of helper '{helper}' arrived after it was settled; ignored")
        return
    if not err:
        future.set_result(value)
        return
    original: BaseException = err if isinstance(err, BaseException) else Exception(err)
    LOG(f"helper '{helper}' reported an error: {original}")
    tagged = HelperExecutionError(helper, original)
    tagged.__cause__ = original
    future.set_exception(tagged)


def task_report(callback: Completion, task: asyncio.Task) -> None:
    if task.cancelled():
        callback(asyncio.CancelledError(), None)
        return
    error: Optional[BaseException] = task.exception()
    if error is not None:
        callback(error, None)
    else:
        callback(None, task.result())


def completion_drive(coro: Any, callback: Optional[Completion] = None) -> Any:
    """Expose a resolution coroutine as an awaitable or through a callback.

    Args:
        coro: Resolution coroutine
        callback: Optional ``callback(err, value)``

    Returns:
        - no callback: the coroutine itself, to be awaited
        - callback, no running event loop: None, after the callback has fired
        - callback inside a running loop: the scheduled task; the callback
          fires when it finishes
    """
    if callback is None:
        return coro
    try:
        loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is None:
        try:
            value: Any = asyncio.run(coro)
        except Exception as e:
            callback(e, None)
        else:
            callback(None, value)
        return None

    task: asyncio.Task = loop.create_task(coro)
    task.add_done_callback(functools.partial(task_report, callback))
    return task


class Resolver:
    """Resolution engine of one engine instance.

    Attributes:
        codec: Recognizes the instance's tokens
        store: Invocation records of the instance
    """

    def __init__(self: Self, codec: TokenCodec, store: InvocationStore) -> None:
        self.codec: TokenCodec = codec
        self.store: InvocationStore = store
        self.waits: dict[Optional[asyncio.Task], InvocationRecord] = {}

    async def id_resolve(self: Self, token: str, trail: Trail = Trail()) -> Any:
        """Resolve a single token to its helper's value.

        Raises:
            UnknownTokenError: No record exists for the token
            HelperExecutionError: The helper, or a nested one, failed
            CircularReferenceError: The arguments can never finish resolving
        """
        record: Optional[InvocationRecord] = self.store.get(token)
        if record is None:
            raise UnknownTokenError(token)

        while not record.resolved:
            inner: Trail = trail.descend(record)
            if record.pending is None:
                return await self.record_run(record, inner)
            # Resolution in progress in another task; share its outcome.
            self.wait_check(record, trail)
            task: Optional[asyncio.Task] = asyncio.current_task()
            self.waits[task] = record
            try:
                await asyncio.shield(record.pending)
            finally:
                self.waits.pop(task, None)
        return record.outcome()

    def wait_check(self: Self, record: InvocationRecord, trail: Trail) -> None:
        """Refuse to wait on a record whose runner is, through other
        waiting tasks, waiting on the current task.
        """
        current: Optional[asyncio.Task] = asyncio.current_task()
        blocker: Optional[InvocationRecord] = record
        visited: set[asyncio.Task] = set()
        while blocker is not None and blocker.runner is not None:
            if blocker.runner is current:
                LOG(f"tasks resolving {record.token} wait on each other")
                raise CircularReferenceError(
                    trail.helper or record.helper_name,
                    f"{record.token} is being resolved by a task waiting on this one",
                )
            if blocker.runner in visited:
                return
            visited.add(blocker.runner)
            blocker = self.waits.get(blocker.runner)

    async def record_run(self: Self, record: InvocationRecord, trail: Trail) -> Any:
        loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        record.state = InvocationState.RESOLVING
        record.pending = loop.create_future()
        record.runner = asyncio.current_task()
        try:
            value: Any = await self.record_compute(record, trail)
        except AsyncHelpersError as e:
            record.settle(error=e)
            raise
        else:
            record.settle(value=value)
            return value
        finally:
            if not record.resolved:
                record.state = InvocationState.PENDING
            record.runner = None
            pending, record.pending = record.pending, None
            if not pending.done():
                pending.set_result(None)

    async def record_compute(self: Self, record: InvocationRecord, trail: Trail) -> Any:
        LOG(f"resolving {record.token} with helper '{record.helper_name}'")
        args: list[Any] = await self.args_resolve(record.args, trail)
        kwargs: dict[str, Any] = await self.object_resolve(record.kwargs, trail)
        value: Any = await self.helper_call(record.helper, args, kwargs)
        if self.has_async_id(value):
            value = await self.ids_resolve(value, trail)
        return value

    async def helper_call(
        self: Self, helper: HelperDescriptor, args: list[Any], kwargs: dict[str, Any]
    ) -> Any:
        """Run a helper on fully resolved arguments.

        Anything the helper raises is wrapped in a HelperExecutionError
        tagged with the helper's name.
        """
        if helper.is_async:
            return await self.callback_await(helper, args, kwargs)
        try:
            value: Any = helper.fn(*args, **kwargs)
            if inspect.isawaitable(value):
                value = await value
            return value
        except Exception as e:
            LOG(f"helper '{helper.name}' raised: {e}")
            raise HelperExecutionError(helper.name, e) from e

    async def callback_await(
        self: Self, helper: HelperDescriptor, args: list[Any], kwargs: dict[str, Any]
    ) -> Any:
        loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def done(err: Any = None, value: Any = None) -> None:
            loop.call_soon_threadsafe(future_settle, future, helper.name, err, value)

        try:
            helper.fn(*args, done, **kwargs)
        except Exception as e:
            LOG(f"helper '{helper.name}' raised: {e}")
            raise HelperExecutionError(helper.name, e) from e
        return await future

    async def ids_resolve(self: Self, value: Any, trail: Trail = Trail()) -> Any:
        """Resolve every token reachable from ``value``.

        Strings, lists, tuples and mappings are walked; lists, tuples and
        mappings come back as new containers. Anything else is returned as is.
        """
        if isinstance(value, str):
            return await self.text_resolve(value, trail)
        if isinstance(value, Mapping):
            return await self.object_resolve(value, trail)
        if isinstance(value, (list, tuple)):
            items: list[Any] = await self.args_resolve(value, trail)
            if isinstance(value, list):
                return items
            if hasattr(value, "_fields"):
                return type(value)(*items)
            return tuple(items)
        return value

    async def text_resolve(self: Self, text: str, trail: Trail) -> Any:
        tokens: list[str] = list(dict.fromkeys(self.codec.extract_all(text)))
        if not tokens:
            return text
        if self.codec.fullmatch(text):
            return await self.id_resolve(text, trail)

        values: dict[str, Any] = {}
        for token in tokens:
            values[token] = await self.id_resolve(token, trail)
        return self.codec.substitute(text, values)

    async def args_resolve(
        self: Self, args: Sequence[Any], trail: Trail = Trail()
    ) -> list[Any]:
        """Resolve each positional argument in order."""
        inner: Trail = trail.enter(args)
        resolved: list[Any] = []
        for arg in list(args):
            resolved.append(await self.ids_resolve(arg, inner))
        return resolved

    async def object_resolve(
        self: Self, obj: Mapping[Any, Any], trail: Trail = Trail()
    ) -> dict[Any, Any]:
        """Resolve each value of a mapping, keeping its keys."""
        if not isinstance(obj, Mapping):
            raise TypeError(f"Expected a mapping, got {type(obj).__name__}")
        inner: Trail = trail.enter(obj)
        resolved: dict[Any, Any] = {}
        for key, item in list(obj.items()):
            resolved[key] = await self.ids_resolve(item, inner)
        return resolved

    def has_async_id(self: Self, value: Any, _seen: Optional[set[int]] = None) -> bool:
        """True if any token is reachable from ``value``. Never mutates it."""
        if isinstance(value, str):
            return self.codec.matches(value)
        if isinstance(value, Mapping):
            items: Any = value.values()
        elif isinstance(value, (list, tuple)):
            items = value
        else:
            return False

        seen: set[int] = set() if _seen is None else _seen
        if id(value) in seen:
            return False
        seen.add(id(value))
        return any(self.has_async_id(item, seen) for item in items)
