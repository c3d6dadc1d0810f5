"""
Logging, LLM tracing and error reporting for the writing assistant.

Logs go through structlog. Model calls are traced as LangFuse generations
and unexpected failures are reported to Sentry, each only when its keys
are configured.
"""

import asyncio
import logging
import time
from functools import wraps
from typing import Any, Callable, Optional

import structlog

from voicecraft.core.config import settings

logger = structlog.get_logger(__name__)

PROMPT_PREVIEW_CHARS = 500
OUTPUT_PREVIEW_CHARS = 1000

_state: dict[str, Any] = {
    "logging": False,
    "sentry": False,
    "langfuse": None,
}


def configure_logging() -> None:
    """Set up structlog rendering; later calls are no-ops."""
    if _state["logging"]:
        return

    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format="%(message)s")

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]
    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        logger_factory=structlog.PrintLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    _state["logging"] = True


def get_langfuse():
    """Return the shared LangFuse client, or None when tracing is off."""
    if _state["langfuse"] is not None or not settings.langfuse_public_key:
        return _state["langfuse"]

    try:
        from langfuse import Langfuse

        _state["langfuse"] = Langfuse(
            public_key=settings.langfuse_public_key,
            secret_key=settings.langfuse_secret_key,
            host=settings.langfuse_host,
        )
        logger.info("LangFuse tracing enabled", host=settings.langfuse_host)
    except Exception as e:
        logger.error("LangFuse setup failed", error=str(e))

    return _state["langfuse"]


def init_sentry() -> None:
    """Start Sentry when a DSN is configured."""
    if _state["sentry"] or not settings.sentry_dsn:
        return

    try:
        import sentry_sdk
        from sentry_sdk.integrations.asyncio import AsyncioIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.sentry_environment,
            release=f"voicecraft@{settings.app_version}",
            traces_sample_rate=settings.sentry_traces_sample_rate,
            integrations=[AsyncioIntegration(), SqlalchemyIntegration()],
            send_default_pii=False,
        )
    except Exception as e:
        logger.error("Sentry setup failed", error=str(e))
        return

    _state["sentry"] = True
    logger.info("Sentry enabled", environment=settings.sentry_environment)


def capture_exception(error: Exception, context: Optional[dict] = None) -> None:
    """
    Report a handled exception to Sentry.

    ``context`` is attached under an ``assistant`` block, e.g. the user and
    social ids of a failed background refresh.
    """
    if not settings.sentry_dsn:
        return

    try:
        import sentry_sdk

        with sentry_sdk.new_scope() as scope:
            if context:
                scope.set_context("assistant", context)
            scope.capture_exception(error)
    except Exception as e:
        logger.error("Sentry capture failed", error=str(e))


def _start_generation(name: str, args: tuple, kwargs: dict):
    langfuse = get_langfuse()
    if langfuse is None:
        return None

    prompt = kwargs.get("prompt", args[1] if len(args) > 1 else "")
    try:
        return langfuse.generation(
            name=name,
            model=kwargs.get("model"),
            input=str(prompt)[:PROMPT_PREVIEW_CHARS],
            metadata={
                "json_mode": kwargs.get("schema") is not None,
                "fallback_model": kwargs.get("fallback_model"),
                "temperature": kwargs.get("temperature"),
            },
        )
    except Exception as e:
        logger.debug("LangFuse generation start failed", error=str(e))
        return None


def _end_generation(generation, **fields) -> None:
    if generation is None:
        return
    try:
        generation.end(**fields)
    except Exception as e:
        logger.debug("LangFuse generation end failed", error=str(e))


def observe_llm_call(name: str = "llm_call") -> Callable:
    """
    Trace an async model call as a LangFuse generation.

    The wrapped method is expected to take the prompt as its first argument
    and the model name as a ``model`` keyword. Call duration is logged at
    debug level whether or not LangFuse is configured.
    """
    def decorator(func: Callable) -> Callable:
        if not asyncio.iscoroutinefunction(func):
            raise TypeError("observe_llm_call only wraps coroutine functions")

        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            generation = _start_generation(name, args, kwargs)
            started = time.perf_counter()

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _end_generation(generation, level="ERROR", status_message=str(e))
                raise

            _end_generation(generation, output=str(result)[:OUTPUT_PREVIEW_CHARS] if result else None)
            logger.debug(
                "Model call finished",
                observation=name,
                model=kwargs.get("model"),
                duration_ms=round((time.perf_counter() - started) * 1000),
            )
            return result

        return wrapper

    return decorator


def flush_observability() -> None:
    """Send buffered LangFuse events before shutdown."""
    langfuse = _state["langfuse"]
    if langfuse is None:
        return
    try:
        langfuse.flush()
    except Exception as e:
        logger.error("LangFuse flush failed", error=str(e))
