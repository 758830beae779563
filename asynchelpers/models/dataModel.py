"""
dataModel.py

Data models and schemas used throughout the asynchelpers engine. The
configuration-facing models leverage Pydantic for validation; the mutable
bookkeeping records are plain dataclasses.

Features:
- Enum classes for helper kinds and invocation states.
- Models for engine and wrap options.
- Helper descriptors as stored by the registry.
- Invocation records as stored by the record store.

Usage:
Import these models to validate and structure data used in the engine.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from asynchelpers.lib.engine.codec import prefix_check


class HelperKind(Enum):
    """
    How a helper delivers its result.

    SYNC helpers return their value; ASYNC helpers receive a trailing
    completion callback ``done(err, value)``.
    """

    SYNC = "sync"
    ASYNC = "async"


class InvocationState(Enum):
    """
    Lifecycle of an invocation record.
    """

    PENDING = 1
    RESOLVING = 2
    RESOLVED = 3


class EngineOptions(BaseModel):
    """
    Construction options for an engine instance.

    Attributes:
        prefix: Token prefix; None falls back to the configured default.
    """

    prefix: Optional[str] = Field(
        default=None, description="Token prefix used to build and recognize tokens."
    )

    @field_validator("prefix")
    @classmethod
    def prefix_validate(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return prefix_check(value)


class WrapOptions(BaseModel):
    """
    Options accepted by ``get`` and ``wrap_helper``.

    Attributes:
        wrap: Return a token-issuing proxy instead of the raw helper.
    """

    wrap: bool = False


class HelperDescriptor(BaseModel):
    """
    A registered helper.

    Attributes:
        name: Registration name, used to tag errors.
        fn: The raw helper callable.
        kind: SYNC or ASYNC; set explicitly, never guessed from the signature.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    fn: Callable[..., Any]
    kind: HelperKind = HelperKind.SYNC

    @property
    def is_async(self) -> bool:
        return self.kind is HelperKind.ASYNC


@dataclass
class InvocationRecord:
    """One wrapped call.

    Arguments are kept exactly as passed: not evaluated, not copied, so any
    cyclic references inside them survive until resolution.

    Attributes:
        token: Token issued for the call
        helper: Descriptor of the helper to run on resolution
        args: Positional arguments verbatim
        kwargs: Keyword arguments verbatim
        state: PENDING, RESOLVING or RESOLVED
        value: Resolved value, once RESOLVED without error
        error: Tagged error, once RESOLVED with a failure
        pending: Future settled when an in-flight resolution finishes
        runner: Task running the in-flight resolution, if any
    """

    token: str
    helper: HelperDescriptor
    args: tuple[Any, ...]
    kwargs: dict[str, Any] = field(default_factory=dict)
    state: InvocationState = InvocationState.PENDING
    value: Any = None
    error: Optional[BaseException] = None
    pending: Optional[asyncio.Future] = field(default=None, repr=False)
    runner: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def helper_name(self) -> str:
        return self.helper.name

    @property
    def resolved(self) -> bool:
        return self.state is InvocationState.RESOLVED

    def settle(self, value: Any = None, error: Optional[BaseException] = None) -> None:
        """Record the final outcome. Only the first settle counts."""
        if self.resolved:
            return
        self.value = value
        self.error = error
        self.state = InvocationState.RESOLVED

    def outcome(self) -> Any:
        """Return the cached value or re-raise the cached error."""
        if self.error is not None:
            raise self.error
        return self.value
