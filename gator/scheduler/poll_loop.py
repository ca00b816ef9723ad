"""
Poll Loop
=========

Runs ingestion cycles on a fixed period until asked to stop.

The first cycle starts immediately. Later cycles start on ticks measured from
the loop start, so a slow cycle does not shift the schedule; ticks that pass
while a cycle is running are dropped rather than queued. A failed cycle is
logged and the loop carries on.
"""

import asyncio
import math
from typing import Callable, Optional

from ..database.models import User
from ..processing.pipeline import CycleReport, IngestionPipeline
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import GatorError, ValidationError


class PollLoop:
    """Periodic driver for IngestionPipeline.run_one_cycle."""

    def __init__(
        self,
        pipeline: IngestionPipeline,
        on_report: Optional[Callable[[CycleReport], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        """Initialize poll loop.

        Args:
            pipeline: Pipeline whose cycles are run
            on_report: Called with each successful CycleReport
            on_error: Called with the exception of each failed cycle
        """
        self.pipeline = pipeline
        self.on_report = on_report
        self.on_error = on_error
        self.logger = get_logger_for_component("poll_loop")

    async def run(
        self,
        interval: float,
        user: Optional[User] = None,
        stop_event: Optional[asyncio.Event] = None,
    ) -> int:
        """Run cycles every ``interval`` seconds until ``stop_event`` is set.

        Args:
            interval: Period between cycle starts, in seconds
            user: Scheduling scope passed to every cycle
            stop_event: Set to stop; without one the loop runs until cancelled

        Returns:
            Number of cycles run

        Raises:
            ValidationError: If interval is not positive
        """
        if interval <= 0:
            raise ValidationError(
                f"Interval must be positive, got {interval}", field_name="interval"
            )

        stop_event = stop_event or asyncio.Event()
        loop = asyncio.get_running_loop()
        started = loop.time()
        cycles = 0

        self.logger.info(f"Collecting feeds every {interval:g}s")

        while not stop_event.is_set():
            await self._run_cycle(user)
            cycles += 1

            elapsed = loop.time() - started
            next_tick = started + (math.floor(elapsed / interval) + 1) * interval
            delay = max(0.0, next_tick - loop.time())

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        self.logger.info(f"Poll loop stopped after {cycles} cycles")
        return cycles

    async def _run_cycle(self, user: Optional[User]) -> None:
        try:
            report = await self.pipeline.run_one_cycle(user)
        except asyncio.CancelledError:
            raise
        except GatorError as e:
            self.logger.warning(f"Cycle failed: {e}", extra=e.to_dict())
            self._notify_error(e)
            return
        except Exception as e:
            self.logger.error(f"Unexpected error in cycle: {e}", exc_info=True)
            self._notify_error(e)
            return

        if self.on_report is None:
            return
        try:
            self.on_report(report)
        except Exception as e:
            self.logger.error(f"Report callback failed: {e}", exc_info=True)
            self._notify_error(e)

    def _notify_error(self, error: Exception) -> None:
        if self.on_error is not None:
            self.on_error(error)
