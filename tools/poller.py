import asyncio
import inspect
import os
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional
from loguru import logger

from tools.models import EnrichmentResult, normalize_identifier

DEFAULT_MAX_WAIT = 60.0
DEFAULT_INTERVAL = 3.0


class PollStatus(str, Enum):
    RESOLVED = "resolved"
    TIMED_OUT = "timed_out"
    ERROR = "error"


@dataclass
class PollOutcome:
    status: PollStatus
    result: Optional[EnrichmentResult] = None
    attempts: int = 0
    error: Optional[str] = None


async def fetch_once(source, email: str) -> Optional[EnrichmentResult]:
    """Ask ``source`` once, whether its fetch_result is sync or async."""
    result = source.fetch_result(email)
    if inspect.isawaitable(result):
        result = await result
    return result


async def wait_for_result(
    identifier: str,
    source,
    ledger=None,
    max_wait: Optional[float] = None,
    interval: Optional[float] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
    on_attempt: Optional[Callable[[int], None]] = None,
) -> PollOutcome:
    """
    Poll ``source`` for a result until one turns up or the wait budget runs out.

    Args:
        identifier: Email to wait for
        source: Anything with ``fetch_result(email)``, sync or async
        ledger: Pending ledger to clear once a result is found
        max_wait: Wait budget in seconds
        interval: Delay between attempts in seconds
        sleep: Awaitable sleep, swapped out in tests
        clock: Monotonic clock in seconds, swapped out in tests
        on_attempt: Called with the attempt number before each poll

    Returns:
        RESOLVED with the result, TIMED_OUT, or ERROR if the last attempt failed
    """
    email = normalize_identifier(identifier)
    if max_wait is None:
        max_wait = float(os.getenv("POLL_MAX_WAIT_SECONDS", DEFAULT_MAX_WAIT))
    if interval is None:
        interval = float(os.getenv("POLL_INTERVAL_SECONDS", DEFAULT_INTERVAL))

    deadline = clock() + max_wait
    attempts = 0
    last_error = None

    while True:
        attempts += 1
        if on_attempt:
            on_attempt(attempts)

        try:
            result = await fetch_once(source, email)
            last_error = None
        except Exception as e:
            logger.warning(f"Error polling for LinkedIn result for {email} (attempt {attempts}): {e}")
            result = None
            last_error = str(e)

        if result is not None:
            if ledger is not None:
                # Ledger backends do blocking I/O
                await asyncio.to_thread(ledger.clear_pending, email)
            logger.info(f"LinkedIn result for {email} found after {attempts} attempts")
            return PollOutcome(status=PollStatus.RESOLVED, result=result, attempts=attempts)

        remaining = deadline - clock()
        if remaining <= 0:
            break
        await sleep(min(interval, remaining))

    if last_error is not None:
        logger.error(f"Failed to check for LinkedIn results for {email}: {last_error}")
        return PollOutcome(status=PollStatus.ERROR, attempts=attempts, error=last_error)

    logger.warning(f"LinkedIn search for {email} timed out after {attempts} attempts")
    return PollOutcome(status=PollStatus.TIMED_OUT, attempts=attempts)
