"""Tracked remote calls with bounded waits.

Each gateway call runs as its own task under a call id. The caller waits at
most the policy timeout; the call itself is never cancelled, so a result that
arrives after the timeout (or after ``invalidate_all``) is logged and dropped.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, TypeVar

from migop.domain.errors import (
    GatewayError,
    GatewayTimeoutError,
    InvalidGatewayResultError,
    MigopError,
    StaleCallError,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CallPolicy:
    """How long to wait for one gateway operation and how often to try it."""
    operation: str
    timeout_seconds: float
    max_attempts: int = 1
    retry_backoff_seconds: float = 0.0


class RemoteCallTracker:
    """Registry of in-flight gateway calls."""

    def __init__(self):
        self._active: Dict[str, asyncio.Task] = {}
        self._sequence = itertools.count(1)

    @property
    def active_call_ids(self) -> List[str]:
        return list(self._active)

    def is_active(self, call_id: str) -> bool:
        return call_id in self._active

    def invalidate_all(self) -> List[str]:
        """Forget every in-flight call; their results will be discarded."""
        dropped = list(self._active)
        self._active.clear()
        if dropped:
            logger.info(f"Invalidated in-flight calls: {', '.join(dropped)}")
        return dropped

    async def call(self, policy: CallPolicy, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Run a gateway call under the policy.

        Transport failures (GatewayError) are retried up to
        ``policy.max_attempts``; timeouts, invalid results and stale calls
        are not.

        Raises:
            GatewayTimeoutError: No result within the policy timeout
            StaleCallError: The call was invalidated while waiting
            GatewayError: The call failed
        """
        attempt = 1
        while True:
            try:
                return await self._call_once(policy, factory)
            except (GatewayTimeoutError, InvalidGatewayResultError):
                raise
            except GatewayError as e:
                if attempt >= policy.max_attempts:
                    raise
                delay = policy.retry_backoff_seconds * attempt
                logger.warning(
                    f"{policy.operation} attempt {attempt}/{policy.max_attempts} failed: "
                    f"{e.message}; retrying in {delay:g}s"
                )
                await asyncio.sleep(delay)
                attempt += 1

    async def _call_once(self, policy: CallPolicy, factory: Callable[[], Awaitable[T]]) -> T:
        call_id = f"{policy.operation}_{next(self._sequence)}"
        task = asyncio.ensure_future(factory())
        self._active[call_id] = task
        context = {"call_id": call_id, "operation": policy.operation}
        logger.info(f"Started {call_id} (timeout {policy.timeout_seconds:g}s)", extra=context)

        done, _ = await asyncio.wait({task}, timeout=policy.timeout_seconds)
        still_tracked = self._active.pop(call_id, None) is not None

        if not done:
            task.add_done_callback(partial(self._discard_late_result, call_id))
            if not still_tracked:
                raise StaleCallError(f"{call_id} was invalidated", details={"call_id": call_id})
            logger.error(f"{call_id} timed out after {policy.timeout_seconds:g}s", extra=context)
            raise GatewayTimeoutError(policy.operation, policy.timeout_seconds, call_id)

        if not still_tracked:
            self._discard_late_result(call_id, task)
            raise StaleCallError(f"{call_id} was invalidated", details={"call_id": call_id})

        try:
            result = task.result()
        except MigopError:
            logger.warning(f"{call_id} failed", extra=context)
            raise
        except Exception as e:
            logger.warning(f"{call_id} failed: {e}", extra=context)
            raise GatewayError(f"{policy.operation} failed: {e}") from e

        logger.info(f"Finished {call_id}", extra=context)
        return result

    @staticmethod
    def _discard_late_result(call_id: str, task: "asyncio.Future[Any]") -> None:
        context = {"call_id": call_id}
        if task.cancelled():
            logger.warning(f"Discarding {call_id}: cancelled after it stopped being tracked", extra=context)
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Discarding late failure of {call_id}: {error}", extra=context)
        else:
            logger.warning(f"Discarding late result of {call_id}", extra=context)
