"""Bounded retry for external tool calls."""

import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from video_collage.config.config import MAX_CAPTURE_ATTEMPTS, RETRY_DELAY_SECONDS
from video_collage.exceptions import CollageError
from video_collage.logging.logger import get_logger
from video_collage.models import RetryResult

T = TypeVar("T")


def with_retry(
    operation: Callable[[], T],
    max_attempts: int = MAX_CAPTURE_ATTEMPTS,
    *,
    delay: float = RETRY_DELAY_SECONDS,
    retry_on: Tuple[Type[BaseException], ...] = (CollageError,),
    label: str = "operation",
    sleep: Optional[Callable[[float], None]] = None,
) -> RetryResult:
    """Run ``operation`` until it returns without raising, at most ``max_attempts`` times.

    Waits ``delay * attempt`` seconds between attempts. Exceptions outside
    ``retry_on`` propagate immediately; the last retryable error is kept on
    the result instead of being raised.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
    sleep = sleep or time.sleep
    logger = get_logger()

    last_error: Optional[BaseException] = None
    for attempt in range(1, max_attempts + 1):
        try:
            value = operation()
        except retry_on as exc:
            last_error = exc
            logger.warning(f"Attempt {attempt}/{max_attempts} failed for {label}: {exc}")
            if attempt < max_attempts and delay > 0:
                sleep(delay * attempt)
            continue
        return RetryResult(success=True, attempts=attempt, value=value)

    return RetryResult(success=False, attempts=max_attempts, error=last_error)
