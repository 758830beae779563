"""
Engine logging using Loguru.

The engine is a library: it never removes or adds handlers on import, and
``asynchelpers/__init__.py`` disables its records until the host opts in.
The host either enables them on its own sinks with
``logger.enable("asynchelpers")``, or calls ``log_enable`` to get a stderr
sink that carries only engine records in the engine's format.

``LOG`` emits debug messages (token issuance, resolution, helper failures,
cycle detection) unless the `beQuiet` flag is set.

Example:
    from asynchelpers.lib.log import LOG, log_enable
    handler = log_enable()
    LOG("This is a debug message.")

Environment:
- Set `ASYNCHELPERS_BEQUIET=True` to suppress detailed logging output.
"""

from loguru import logger
from typing import Any, Final
import sys

APP: Final[str] = "ASYNCHELPERS"

# Engine records are tagged so a sink can select them
engine_logger = logger.bind(app=APP)

logger_format = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<yellow>{name: >36}</yellow>::"
    "<cyan>{function: <24}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)


def engine_record(record: dict[str, Any]) -> bool:
    return record["extra"].get("app") == APP


def log_enable(sink: Any = sys.stderr, level: str = "DEBUG") -> int:
    """
    Route engine records to ``sink``, leaving every other handler alone.

    :param sink: Any loguru sink; stderr by default.
    :param level: Minimum level for the sink.
    :return: The handler id, for ``log_disable``.
    """
    logger.enable("asynchelpers")
    return logger.add(sink, level=level, format=logger_format, filter=engine_record)


def log_disable(handler_id: int) -> None:
    """Remove a sink added by ``log_enable`` and silence the engine again."""
    logger.remove(handler_id)
    logger.disable("asynchelpers")


def LOG(*args: Any, **kwargs: Any) -> None:
    """
    Engine logging function.

    Checks the `beQuiet` flag in `appsettings` and logs the message only if
    logging is enabled.

    :param args: Positional arguments for the log message.
    :param kwargs: Keyword arguments for additional log metadata.
    """
    try:
        from asynchelpers.config.settings import appsettings

        if not appsettings.beQuiet:
            engine_logger.debug(*args, **kwargs)
    except Exception as e:
        print(f"Logging error: {e}")
