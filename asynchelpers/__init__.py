"""
asynchelpers: placeholder tokens for helper calls whose arguments are not
known yet, resolved later in one recursive pass.
"""

from loguru import logger
from .asynchelpers import AsyncHelpers, InstanceCounter, __version__
from .lib.engine.registry import async_helper
from .lib.errors import (
    AsyncHelpersError,
    CircularReferenceError,
    HelperExecutionError,
    NotFoundError,
    UnknownTokenError,
)
from .models.dataModel import EngineOptions, HelperKind, WrapOptions

logger.disable("asynchelpers")

__all__ = [
    "AsyncHelpers",
    "InstanceCounter",
    "async_helper",
    "AsyncHelpersError",
    "CircularReferenceError",
    "HelperExecutionError",
    "NotFoundError",
    "UnknownTokenError",
    "EngineOptions",
    "HelperKind",
    "WrapOptions",
    "__version__",
]
