# ============================================================================
# LEASE SCHEDULER
# ============================================================================
# EPOCH: 1 - LEADER ELECTION
# STATUS: Core - Periodic election trigger
# PURPOSE: Fixed-delay check_and_acquire loop with release on shutdown
# CREATED: 14 OCT 2026
# ============================================================================
"""
Lease Scheduler

Runs LeaseElector.check_and_acquire() in a background task with a fixed
delay between ticks. The next tick starts `interval` seconds after the
previous one finished, so ticks never overlap. A manual tick() while one
is in flight is skipped.

stop() lets an in-flight tick finish (bounded by stop_timeout), then calls
release() exactly once. A tick that re-acquires right after a release is
correct behavior.

Role and counters here are observational only (status endpoint, health
checks). The elector never reads them.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.contracts import AcquireOutcome, ElectorRole
from core.models import short_id
from .elector import AcquireResult, LeaseElector

logger = logging.getLogger(__name__)


class LeaseScheduler:
    """
    Periodic driver for a LeaseElector.

    Usage:
        scheduler = LeaseScheduler(elector)
        scheduler.start()
        ...
        await scheduler.stop()   # releases the lease
    """

    def __init__(
        self,
        elector: LeaseElector,
        interval_seconds: Optional[float] = None,
        stop_timeout: float = 10.0,
    ):
        """
        Initialize scheduler.

        Args:
            elector: Elector to drive
            interval_seconds: Delay between ticks (defaults to settings)
            stop_timeout: Max seconds stop() waits for an in-flight tick
        """
        self.elector = elector
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else elector.settings.check_interval_seconds
        )
        self.stop_timeout = stop_timeout

        # State
        self._running = False
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._tick_in_flight = False
        self._released = False
        self._role = ElectorRole.UNKNOWN

        # Metrics
        self._started_at: Optional[datetime] = None
        self._ticks = 0
        self._skipped_ticks = 0
        self._acquisitions = 0
        self._renewals = 0
        self._conflicts = 0
        self._failures = 0
        self._last_tick_at: Optional[datetime] = None
        self._last_outcome: Optional[AcquireOutcome] = None
        self._last_holder: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def role(self) -> ElectorRole:
        """Role observed at the last tick."""
        return self._role

    def start(self) -> None:
        """Start ticking in a background task."""
        if self._running:
            logger.warning("Lease scheduler already running")
            return

        self._running = True
        self._released = False
        self._started_at = datetime.now(timezone.utc)
        self._stop_event.clear()
        self._task = asyncio.create_task(
            self._run_loop(),
            name=f"lease-scheduler-{self.elector.holder_identity[:8]}",
        )
        logger.info(
            f"Lease scheduler started (holder={short_id(self.elector.holder_identity)}, "
            f"lease={self.elector.settings.key}, interval={self.interval_seconds}s)"
        )

    async def _run_loop(self) -> None:
        while self._running and not self._stop_event.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self.interval_seconds,
                )
            except asyncio.TimeoutError:
                pass

    async def tick(self) -> Optional[AcquireResult]:
        """
        Run one check_and_acquire cycle.

        Returns:
            The elector's result, or None if skipped or the cycle raised
        """
        if self._tick_in_flight:
            self._skipped_ticks += 1
            logger.debug("Lease check already in flight, skipping tick")
            return None

        self._tick_in_flight = True
        try:
            result = await self.elector.check_and_acquire()
        except Exception as e:
            # The elector handles store failures; anything here is a bug
            self._failures += 1
            self._set_role(ElectorRole.UNKNOWN)
            logger.exception(f"Unexpected error in lease check: {e}")
            return None
        finally:
            self._tick_in_flight = False

        self._record(result)
        return result

    def _record(self, result: AcquireResult) -> None:
        self._ticks += 1
        self._last_tick_at = datetime.now(timezone.utc)
        self._last_outcome = result.outcome
        self._last_holder = result.holder_identity

        if result.outcome == AcquireOutcome.ACQUIRED:
            self._acquisitions += 1
        elif result.outcome == AcquireOutcome.RENEWED:
            self._renewals += 1
        elif result.outcome == AcquireOutcome.CONFLICT:
            self._conflicts += 1
        elif result.outcome == AcquireOutcome.FAILED:
            self._failures += 1

        if result.is_leader:
            self._set_role(ElectorRole.LEADER)
        elif result.outcome == AcquireOutcome.FAILED:
            self._set_role(ElectorRole.UNKNOWN)
        else:
            self._set_role(ElectorRole.STANDBY)

    def _set_role(self, role: ElectorRole) -> None:
        if role == self._role:
            return
        tag = short_id(self.elector.holder_identity)
        if role == ElectorRole.LEADER:
            logger.info(f"Became LEADER for {self.elector.settings.key} (holder={tag})")
        elif self._role == ElectorRole.LEADER:
            logger.warning(
                f"No longer leader for {self.elector.settings.key} "
                f"(holder={tag}, now {role.value})"
            )
        self._role = role

    async def stop(self) -> None:
        """
        Stop ticking and release the lease.

        Safe to call more than once; release() runs only the first time.
        """
        logger.info(f"Stopping lease scheduler (holder={short_id(self.elector.holder_identity)})")

        self._running = False
        self._stop_event.set()

        if self._task is not None:
            try:
                await asyncio.wait_for(self._task, timeout=self.stop_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Lease check did not finish within {self.stop_timeout}s, cancelled"
                )
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._released:
            return
        self._released = True

        was_leader = self._role == ElectorRole.LEADER
        await self.elector.release()
        self._role = ElectorRole.UNKNOWN

        logger.info(
            f"Lease scheduler stopped (was_leader={was_leader}, ticks={self._ticks}, "
            f"acquisitions={self._acquisitions}, conflicts={self._conflicts}, "
            f"failures={self._failures})"
        )

    @property
    def stats(self) -> Dict[str, Any]:
        """Scheduler statistics for status endpoints and health checks."""
        uptime = None
        if self._started_at is not None:
            uptime = (datetime.now(timezone.utc) - self._started_at).total_seconds()

        return {
            "running": self._running,
            "role": self._role.value,
            "is_leader": self._role == ElectorRole.LEADER,
            "holder_identity": self.elector.holder_identity,
            "lease": self.elector.settings.key,
            "interval_seconds": self.interval_seconds,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "uptime_seconds": uptime,
            "ticks": self._ticks,
            "skipped_ticks": self._skipped_ticks,
            "acquisitions": self._acquisitions,
            "renewals": self._renewals,
            "conflicts": self._conflicts,
            "failures": self._failures,
            "last_tick_at": self._last_tick_at.isoformat() if self._last_tick_at else None,
            "last_outcome": self._last_outcome.value if self._last_outcome else None,
            "last_observed_holder": self._last_holder,
        }


__all__ = ["LeaseScheduler"]
