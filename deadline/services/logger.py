"""Loguru sinks and structured log helpers.

Helpers attach their fields with ``logger.bind`` so file sinks keep them in
``record["extra"]``; the message line stays short and readable.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from deadline.config import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message} | {extra}"

QUIET_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "httpx",
    "httpcore",
    "hpack",
    "openai._base_client",
    "postgrest",
    "asyncio",
)

_configured = False


def configure_logging(log_dir: Optional[str] = None) -> None:
    """Install the console sink and the daily file sink (once per process)."""
    global _configured
    if _configured:
        return

    logger.remove()
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=settings.app_log_level.upper(),
        colorize=True,
    )

    directory = Path(log_dir or settings.log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    logger.add(
        directory / "deadline_{time:YYYY-MM-DD}.log",
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="00:00",
        retention=f"{settings.log_retention_days} days",
        compression="zip",
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(settings.noisy_log_level.upper())
    _configured = True


def log_llm_call(
    model: str,
    caller: str,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    bound = logger.bind(
        kind="llm_call",
        model=model,
        caller=caller,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        duration_ms=duration_ms,
        status=status,
    )
    if error:
        bound.error(f"LLM call from {caller} failed after {duration_ms}ms: {error}")
    else:
        bound.info(f"LLM call from {caller}: {input_tokens}+{output_tokens} tokens in {duration_ms}ms")


def log_pipeline_step(
    event_id: Any,
    step: str,
    status: str,
    data: Optional[dict] = None,
) -> None:
    """One stage of an analysis or delta run for an event."""
    bound = logger.bind(kind="pipeline_step", event_id=event_id, step=step, status=status, data=data or {})
    if status == "error":
        bound.warning(f"[event {event_id}] {step} failed")
    else:
        bound.info(f"[event {event_id}] {step} {status}")


def log_db_operation(
    operation: str,
    table: str,
    status: str,
    details: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    bound = logger.bind(kind="db_operation", operation=operation, table=table, status=status, details=details)
    if error:
        bound.error(f"DB {operation} on {table} failed: {error}")
    else:
        bound.debug(f"DB {operation} on {table}")


def log_event(event_type: str, message: str, **kwargs) -> None:
    logger.bind(kind=event_type, **kwargs).info(message)
