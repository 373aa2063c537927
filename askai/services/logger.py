"""Centralized logging service using loguru."""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from askai.config import settings

LOG_DIR = Path("logs")
LOG_DIR.mkdir(exist_ok=True)

logger.remove()

logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=settings.app_log_level.upper(),
    colorize=True,
)

logger.add(
    LOG_DIR / "askai_{time:YYYY-MM-DD}.log",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
    level="DEBUG",
    rotation="00:00",
    retention="7 days",
    compression="zip",
)

# Quiet the HTTP stacks; their request lines drown out pipeline steps.
import logging

for logger_name in (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "httpx",
    "httpcore",
    "openai._base_client",
    "asyncio",
):
    logging.getLogger(logger_name).setLevel(settings.noisy_log_level.upper())


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_llm_call(
    model: str,
    caller: str,
    duration_ms: int = 0,
    output_chars: int = 0,
    status: str = "success",
    error: Optional[str] = None,
) -> None:
    """Log a completion-service call."""
    call_data = {
        "timestamp": _now(),
        "model": model,
        "caller": caller,
        "duration_ms": duration_ms,
        "output_chars": output_chars,
        "status": status,
        "error": error,
    }
    if error:
        logger.error(f"LLM_CALL_FAILED: {call_data}")
    else:
        logger.info(f"LLM_CALL: {call_data}")


def log_pipeline_step(
    message_id: str | None,
    step: str,
    status: str,
    data: Optional[dict[str, Any]] = None,
) -> None:
    """Log a pipeline state transition."""
    step_data = {
        "timestamp": _now(),
        "message_id": message_id,
        "step": step,
        "status": status,
        "data": data,
    }
    logger.info(f"PIPELINE_STEP: {step_data}")


def log_cache_operation(
    operation: str,
    key: str,
    status: str,
    details: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    """Log a citation cache operation."""
    op_data = {
        "timestamp": _now(),
        "operation": operation,
        "key": key,
        "status": status,
        "details": details,
        "error": error,
    }
    if error:
        logger.warning(f"CACHE_OPERATION_FAILED: {op_data}")
    else:
        logger.debug(f"CACHE_OPERATION: {op_data}")


def log_event(
    event_type: str,
    message: str,
    **kwargs,
) -> None:
    """Log a generic event."""
    event_data = {
        "timestamp": _now(),
        "event_type": event_type,
        "message": message,
        **kwargs,
    }
    logger.info(f"EVENT: {event_data}")
