"""
Rate-controlled scheduler

Admits iterations at a fixed arrival rate for a fixed duration, keeping at
most max_in_flight calls outstanding. Each admitted iteration is selected,
executed and recorded on its own task; the admission loop is the only place
that hands out iteration indices.

Lifecycle: IDLE -> RUNNING -> DRAINING -> DONE. A scheduler runs once.
"""

import asyncio
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set

import structlog
from prometheus_client import Counter, Gauge

from .clock import Clock, SystemClock
from .catalog import MethodSpec
from .config import Backend, BenchConfig, ConfigurationError
from .executor import CallResult, RequestExecutor
from .metrics import MetricsAggregator
from .selector import TargetSelector
from .transport import TRANSPORT_ERROR_STATUS

logger = structlog.get_logger(__name__)

in_flight_calls = Gauge('rpc_bench_in_flight_calls', 'Calls currently outstanding')
dropped_iterations_total = Counter(
    'rpc_bench_dropped_iterations_total', 'Iterations not admitted within the grace period'
)
abandoned_calls_total = Counter(
    'rpc_bench_abandoned_calls_total', 'Calls cancelled after the drain timeout'
)


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"


@dataclass(frozen=True)
class RunSummary:
    iterations: int
    dropped: int
    abandoned: int
    elapsed_s: float


class RateScheduler:
    """Drives a comparative load run at a constant arrival rate"""

    def __init__(self, selector: TargetSelector, executor: RequestExecutor,
                 aggregator: MetricsAggregator, rate: float, duration_s: float,
                 max_in_flight: int, pacing_delay_s: float = 0.1,
                 admission_grace_s: float = 1.0, drain_timeout_s: float = 30.0,
                 clock: Optional[Clock] = None):
        if rate <= 0:
            raise ConfigurationError(f"rate must be > 0, got {rate}")
        if duration_s <= 0:
            raise ConfigurationError(f"duration_s must be > 0, got {duration_s}")
        if max_in_flight < 1:
            raise ConfigurationError(f"max_in_flight must be >= 1, got {max_in_flight}")

        self.selector = selector
        self.executor = executor
        self.aggregator = aggregator
        self.rate = rate
        self.duration_s = duration_s
        self.max_in_flight = max_in_flight
        self.pacing_delay_s = pacing_delay_s
        self.admission_grace_s = admission_grace_s
        self.drain_timeout_s = drain_timeout_s
        self.clock = clock or SystemClock()

        self.state = SchedulerState.IDLE
        self.iterations = 0
        self._tasks: Set[asyncio.Task] = set()
        self._unrecorded: Set[int] = set()

    @classmethod
    def from_config(cls, config: BenchConfig, selector: TargetSelector,
                    executor: RequestExecutor, aggregator: MetricsAggregator,
                    clock: Optional[Clock] = None) -> "RateScheduler":
        return cls(
            selector, executor, aggregator,
            rate=config.rate,
            duration_s=config.duration_s,
            max_in_flight=config.max_in_flight,
            pacing_delay_s=config.pacing_delay_s,
            admission_grace_s=config.admission_grace_s,
            drain_timeout_s=config.drain_timeout_s,
            clock=clock,
        )

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    @property
    def total_ticks(self) -> int:
        """Number of ticks due before the deadline: every i with i / rate < duration_s"""
        return math.ceil(round(self.duration_s * self.rate, 9))

    async def run(self) -> RunSummary:
        """Run the admission loop, drain outstanding calls and return a summary"""
        if self.state is not SchedulerState.IDLE:
            raise RuntimeError(f"Scheduler already used (state={self.state.value})")

        self.state = SchedulerState.RUNNING
        slots = asyncio.Semaphore(self.max_in_flight)
        start_time = self.clock.monotonic()
        deadline = start_time + self.duration_s
        dropped = 0

        logger.info("Starting load run",
                    rate=self.rate,
                    duration_s=self.duration_s,
                    max_in_flight=self.max_in_flight)

        total_ticks = self.total_ticks
        for tick in range(total_ticks):
            due = start_time + tick / self.rate
            now = self.clock.monotonic()
            if due > now:
                await self.clock.sleep(due - now)

            admitted = False
            if self.clock.monotonic() < deadline:
                admitted = await self._acquire_slot(slots)
                if admitted and self.clock.monotonic() >= deadline:
                    slots.release()
                    admitted = False

            if admitted:
                self._admit(slots)
                continue

            if self.clock.monotonic() >= deadline:
                # Ticks that could not be admitted before the deadline
                remaining = total_ticks - tick
                dropped += remaining
                self._record_dropped(remaining)
                logger.warning("Run deadline reached with ticks outstanding",
                               dropped=remaining,
                               in_flight=self.in_flight)
                break

            dropped += 1
            self._record_dropped(1)
            logger.warning("Iteration dropped, concurrency limit reached",
                           tick=tick,
                           in_flight=self.in_flight,
                           grace_s=self.admission_grace_s)

        self.state = SchedulerState.DRAINING
        abandoned = await self._drain()

        self.state = SchedulerState.DONE
        elapsed = self.clock.monotonic() - start_time
        logger.info("Load run completed",
                    iterations=self.iterations,
                    dropped=dropped,
                    abandoned=abandoned,
                    elapsed_s=round(elapsed, 3))

        return RunSummary(
            iterations=self.iterations,
            dropped=dropped,
            abandoned=abandoned,
            elapsed_s=elapsed,
        )

    async def _acquire_slot(self, slots: asyncio.Semaphore) -> bool:
        """Take an in-flight slot, waiting at most the admission grace period"""
        if not slots.locked():
            await slots.acquire()
            return True
        if self.admission_grace_s <= 0:
            return False

        acquire = asyncio.ensure_future(slots.acquire())
        if not await self._wait_on_clock({acquire}, self.admission_grace_s):
            return True

        acquire.cancel()
        await asyncio.gather(acquire, return_exceptions=True)
        # The permit may have been granted while the cancellation was delivered
        return not acquire.cancelled()

    async def _wait_on_clock(self, futures: Set[asyncio.Future], timeout: float) -> Set[asyncio.Future]:
        """Wait for futures until timeout elapses on the scheduler clock; return the unfinished ones"""
        pending = set(futures)
        timer = asyncio.ensure_future(self.clock.sleep(timeout))
        try:
            while pending and not timer.done():
                done, _ = await asyncio.wait(pending | {timer}, return_when=asyncio.FIRST_COMPLETED)
                pending -= done
        finally:
            timer.cancel()
        return pending

    def _record_dropped(self, count: int):
        self.aggregator.record_dropped(count)
        dropped_iterations_total.inc(count)

    def _admit(self, slots: asyncio.Semaphore):
        iteration = self.iterations
        self.iterations += 1

        backend, method = self.selector.select(iteration)
        self._unrecorded.add(iteration)

        task = asyncio.create_task(self._run_call(iteration, backend, method, slots))
        self._tasks.add(task)
        in_flight_calls.inc()
        task.add_done_callback(self._call_finished)

    def _call_finished(self, task: asyncio.Task):
        self._tasks.discard(task)
        in_flight_calls.dec()

    async def _run_call(self, iteration: int, backend: Backend, method: MethodSpec,
                        slots: asyncio.Semaphore):
        try:
            started = self.clock.monotonic()
            try:
                result = await self.executor.execute(backend, method)
            except Exception as e:
                logger.error("Unexpected error executing call",
                             iteration=iteration,
                             method=method.rpc_method,
                             endpoint=backend.url,
                             error=str(e))
                result = CallResult(
                    backend=backend,
                    method=method,
                    duration_ms=(self.clock.monotonic() - started) * 1000,
                    http_status=TRANSPORT_ERROR_STATUS,
                    success=False,
                    error=str(e),
                )

            self.aggregator.record(result)
            self._unrecorded.discard(iteration)

            if self.pacing_delay_s > 0:
                await self.clock.sleep(self.pacing_delay_s)
        finally:
            slots.release()

    async def _drain(self) -> int:
        """Wait for outstanding calls; cancel the ones still running at the drain timeout"""
        pending = set(self._tasks)
        if not pending:
            return 0

        logger.info("Draining in-flight calls", in_flight=len(pending), timeout_s=self.drain_timeout_s)
        still_running = await self._wait_on_clock(pending, self.drain_timeout_s)
        if not still_running:
            return 0

        # Calls whose result never reached the aggregator are excluded, not failed
        abandoned = len(self._unrecorded)
        for task in still_running:
            task.cancel()
        await asyncio.gather(*still_running, return_exceptions=True)

        if abandoned:
            self.aggregator.record_abandoned(abandoned)
            abandoned_calls_total.inc(abandoned)
            logger.warning("Abandoned calls after drain timeout", abandoned=abandoned)
        return abandoned
