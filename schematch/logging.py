"""Structured Logging for schematch

- Colored, human-readable dev output
- JSON structured output for log pipelines
- Context propagation through contextvars
- Domain loggers for adapter compilation, dispatch tables and matching

The library never configures logging on import; applications call
``configure_logging`` (or configure structlog themselves).
"""
import logging
import sys

import structlog
from structlog.types import EventDict, Processor


def _add_library_info(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor that tags events with the emitting library."""
    event_dict.setdefault("library", "schematch")
    return event_dict


def _truncate_values(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor that shortens long reprs of matched inputs."""
    limit = 200
    for key, value in event_dict.items():
        if isinstance(value, str) and len(value) > limit:
            event_dict[key] = value[:limit] + "..."
    return event_dict


def get_shared_processors() -> list[Processor]:
    """Processors used in both console and JSON configurations."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_library_info,
        _truncate_values,
    ]


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name. Defaults to ``SCHEMATCH_LOG_LEVEL``.
        json_logs: Render JSON instead of colored console output.
            Defaults to ``SCHEMATCH_LOG_JSON``.
    """
    from schematch.config import get_settings

    settings = get_settings()
    level = level or settings.LOG_LEVEL
    json_logs = settings.LOG_JSON if json_logs is None else json_logs
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors = get_shared_processors()

    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    library_logger = logging.getLogger("schematch")
    library_logger.handlers = [handler]
    library_logger.setLevel(log_level)
    library_logger.propagate = False


# Silent unless the application configures logging
logging.getLogger("schematch").addHandler(logging.NullHandler())


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structured logger backed by the stdlib logger ``name``.

    Events go through stdlib logging, so nothing is emitted until the
    application attaches handlers (or calls ``configure_logging``).

    Args:
        name: Logger name (typically __name__ from the calling module)
    """
    return structlog.wrap_logger(logging.getLogger(name), wrapper_class=structlog.stdlib.BoundLogger)


def bind_context(**kwargs) -> None:
    """Bind key-value pairs to the current logging context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    """Remove specific keys from the logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


class LoggerRegistry:
    """Registry of loggers for the library's domains."""

    _loggers: dict[str, structlog.stdlib.BoundLogger] = {}

    @classmethod
    def get(cls, name: str) -> structlog.stdlib.BoundLogger:
        """Get or create a logger for the given domain."""
        if name not in cls._loggers:
            cls._loggers[name] = get_logger(f"schematch.{name}")
        return cls._loggers[name]


def compile_logger() -> structlog.stdlib.BoundLogger:
    """Logger for adapter compilation and the compiled-matcher cache."""
    return LoggerRegistry.get("compile")


def dispatch_logger() -> structlog.stdlib.BoundLogger:
    """Logger for dispatch table construction."""
    return LoggerRegistry.get("dispatch")


def match_logger() -> structlog.stdlib.BoundLogger:
    """Logger for match execution and failure reporting."""
    return LoggerRegistry.get("match")
