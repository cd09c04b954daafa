from __future__ import annotations

import copy
import logging
from typing import Dict, List, Optional, Sequence

from .config import SimulationConfig
from .errors import SimulationTimeoutError
from .io_manager import IOResourceManager
from .metrics import compute_statistics
from .models import Action, Process, ProcessState, ScheduleResult, TimelineEvent
from .policies import DispatchPolicy
from .validation import validate_processes

logger = logging.getLogger(__name__)


def max_simulation_time(processes: Sequence[Process], safety_margin: int, with_io: bool = False) -> int:
    max_arrival = max(p.arrival_time for p in processes)
    total_cpu = sum(p.cpu_time for p in processes)
    total_io = sum(op.duration for p in processes for op in p.io_operations) if with_io else 0
    return max_arrival + total_cpu + total_io + safety_margin


class Simulation:
    """
    Discrete-time, single-core scheduling simulation.

    Every time unit runs the same steps: finish I/O that ends now, admit
    arrivals, let the policy preempt, dispatch if the CPU is free, execute
    one unit. The policy decides who runs; everything else is shared by all
    algorithms.
    """

    def __init__(
        self,
        policy: DispatchPolicy,
        processes: Sequence[Process],
        config: Optional[SimulationConfig] = None,
        with_io: bool = False,
    ):
        self.policy = policy
        self.config = config or SimulationConfig()
        self.with_io = with_io

        validate_processes(processes, require_priority=policy.requires_priority, check_io=with_io)

        # Private copies: the caller's records are never touched.
        self.processes: List[Process] = [copy.deepcopy(p) for p in processes]
        self.timeline: List[TimelineEvent] = []
        self.ready: List[Process] = []
        self.ready_snapshots: Dict[int, List[int]] = {}
        self.io_manager: Optional[IOResourceManager] = IOResourceManager() if with_io else None
        self.running: Optional[Process] = None
        self.time = 0

    def _reset(self) -> None:
        for p in self.processes:
            p.start_time = None
            p.finish_time = None
            p.response_time = None
            p.wait_time = None
            p.remaining_time = p.cpu_time
            p.cpu_time_used = 0
            p.io_time = 0
            p.state = ProcessState.READY
            for op in p.io_operations:
                op.completed = False
        self.timeline = []
        self.ready = []
        self.ready_snapshots = {}
        self.running = None
        self.time = 0
        if self.io_manager is not None:
            self.io_manager.initialize(self.processes)

    def run(self) -> ScheduleResult:
        self._reset()
        # Arrival order, input order among equals (sorted() is stable).
        arrivals = sorted(self.processes, key=lambda p: p.arrival_time)
        max_time = max_simulation_time(self.processes, self.config.safety_margin, self.with_io)

        logger.info(
            "Running %s on %d processes (bound t=%d)", self.policy.name, len(self.processes), max_time
        )

        next_arrival = 0
        while not self._finished():
            if self.time > max_time:
                raise SimulationTimeoutError(self.time, max_time)

            t = self.time
            self._complete_io(t)

            while next_arrival < len(arrivals) and arrivals[next_arrival].arrival_time == t:
                self._admit(arrivals[next_arrival])
                next_arrival += 1

            self._maybe_preempt(t)

            if self.running is None:
                self._dispatch(t)

            if self.running is not None:
                self._execute(t)

            if self.config.record_ready_queue and self.ready:
                self.ready_snapshots[t] = [p.id for p in self.ready]

            self.time += 1

        result = ScheduleResult(
            algorithm=self.policy.name,
            tag=self.policy.tag,
            quantum=self.policy.quantum,
            processes=self.processes,
            timeline=self.timeline,
            ready_queue=self.ready_snapshots,
        )
        if self.io_manager is not None:
            result.io_queues = self.io_manager.get_resource_queues_state()
        compute_statistics(result, self.io_manager)

        logger.info("%s finished at t=%d", self.policy.name, result.statistics.simulation_time)
        return result

    def _finished(self) -> bool:
        if self.io_manager is not None and self.io_manager.has_pending():
            return False
        return all(p.state is ProcessState.TERMINATED for p in self.processes)

    def _emit(self, t: int, p: Process, action: Action, state=None, resource=None) -> None:
        self.timeline.append(
            TimelineEvent(
                time=t,
                process_id=p.id,
                process_name=p.name,
                action=action,
                state=state,
                resource=resource,
            )
        )

    def _admit(self, p: Process) -> None:
        p.state = ProcessState.READY
        self.ready.append(p)
        logger.debug("t=%d %s arrives", self.time, p.name)

    def _complete_io(self, t: int) -> None:
        if self.io_manager is None:
            return
        for p in self.io_manager.process_io_operations(t):
            self.ready.append(p)
            resource = self._last_io_resource(p)
            self._emit(t, p, Action.IO_COMPLETE, ProcessState.READY, resource)
        self._expand_started_io()

    def _last_io_resource(self, p: Process) -> Optional[str]:
        done = [op for op in p.io_operations if op.completed]
        return done[-1].resource if done else None

    def _expand_started_io(self) -> None:
        # Service intervals are fixed once a request is promoted, so the
        # blocked units are logged up front.
        for request in self.io_manager.pop_started():
            for unit in range(request.start_time, request.end_time):
                self._emit(
                    unit,
                    request.process,
                    Action.IO_EXECUTION,
                    ProcessState.BLOCKED,
                    request.operation.resource,
                )

    def _maybe_preempt(self, t: int) -> None:
        running = self.running
        if running is None or not self.policy.should_preempt(self.ready, running):
            return

        running.state = ProcessState.READY
        self.policy.requeue(self.ready, running)
        self.running = None

        nxt = self.policy.select_next(self.ready)
        if nxt is not running:
            self._emit(t, running, Action.PREEMPTED, ProcessState.READY)
            logger.debug("t=%d %s preempted by %s", t, running.name, nxt.name if nxt else None)

    def _dispatch(self, t: int) -> None:
        p = self.policy.select_next(self.ready)
        if p is None:
            return

        self.ready.remove(p)
        p.state = ProcessState.RUNNING
        if p.start_time is None:
            p.start_time = t
        self.policy.on_dispatch(p, t)
        self.running = p
        logger.debug("t=%d dispatch %s", t, p.name)

    def _execute(self, t: int) -> None:
        p = self.running
        self._emit(t, p, Action.CPU_EXECUTION, ProcessState.RUNNING)
        p.remaining_time -= 1
        p.cpu_time_used += 1
        self.policy.on_tick(p)

        if self.io_manager is not None:
            op = p.next_io_operation()
            if op is not None and op.cpu_time_before_io == p.cpu_time_used:
                # Leaves the CPU at the end of this unit.
                self.running = None
                self.io_manager.start_io_operation(p, op, t + 1)
                self._expand_started_io()
                return

        if p.remaining_time == 0:
            self._complete(p, t)

    def _complete(self, p: Process, t: int) -> None:
        p.finish_time = t + 1
        p.response_time = p.finish_time - p.arrival_time
        p.wait_time = p.response_time - p.cpu_time - p.io_time
        p.state = ProcessState.TERMINATED
        self.running = None
        self._emit(t, p, Action.PROCESS_COMPLETE, ProcessState.TERMINATED)
        logger.debug("t=%d %s finished (turnaround %d)", t, p.name, p.response_time)
