"""
Dispatch policies plugged into the simulation engine.

A policy decides which ready process gets the CPU next and whether the
running one must give it up. The engine owns the clock, the ready queue
and the timeline; policies only look at them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import Process


class DispatchPolicy(ABC):
    name: str = ""
    tag: str = ""
    requires_priority = False

    @abstractmethod
    def select_next(self, ready: List[Process]) -> Optional[Process]:
        """Return the ready process to dispatch, without removing it."""

    def should_preempt(self, ready: List[Process], running: Process) -> bool:
        return False

    def requeue(self, ready: List[Process], process: Process) -> None:
        """Put a preempted process back into the ready queue."""
        ready.append(process)

    def on_dispatch(self, process: Process, now: int) -> None:
        pass

    def on_tick(self, process: Process) -> None:
        pass

    @property
    def quantum(self) -> Optional[int]:
        return None


class FCFSPolicy(DispatchPolicy):
    """
    First-Come First-Serve (non-preemptive).

    The ready queue is plain FIFO: arrivals are admitted in arrival order
    (input order among simultaneous arrivals) and the head always runs next.
    """

    name = "FCFS"
    tag = "FCFS"

    def select_next(self, ready: List[Process]) -> Optional[Process]:
        return ready[0] if ready else None


class FCFSIOPolicy(FCFSPolicy):
    name = "FCFS with I/O"
    tag = "FCFS_IO"


class SJFPolicy(DispatchPolicy):
    """
    Shortest Job First (non-preemptive).

    Only consulted when the CPU is free; a shorter job arriving mid-burst
    waits for the next decision point.
    """

    name = "SJF (non-preemptive)"
    tag = "SJF"

    def select_next(self, ready: List[Process]) -> Optional[Process]:
        if not ready:
            return None
        # Tie-breaker: earlier arrival, then id.
        return min(ready, key=lambda p: (p.cpu_time, p.arrival_time, p.id))


class RoundRobinPolicy(DispatchPolicy):
    """
    Round Robin with a fixed time quantum.

    A process that used its whole quantum goes to the back of the queue,
    behind anything that arrived while it was running.
    """

    name = "Round Robin"
    tag = "ROUND_ROBIN"

    def __init__(self, quantum: int):
        self._quantum = quantum
        self.quantum_remaining = 0

    @property
    def quantum(self) -> Optional[int]:
        return self._quantum

    def select_next(self, ready: List[Process]) -> Optional[Process]:
        return ready[0] if ready else None

    def should_preempt(self, ready: List[Process], running: Process) -> bool:
        return self.quantum_remaining <= 0

    def on_dispatch(self, process: Process, now: int) -> None:
        self.quantum_remaining = self._quantum

    def on_tick(self, process: Process) -> None:
        self.quantum_remaining -= 1


def priority_key(p: Process):
    # Lower number means more urgent; ties go to the earlier arrival, then id.
    return (p.priority, p.arrival_time, p.id)


class PriorityPolicy(DispatchPolicy):
    """
    Static priority scheduling (non-preemptive).

    Lower numeric priority value means higher priority. Among ready
    processes, choose the one with the smallest priority; break ties
    by earlier arrival time, then id.
    """

    name = "Priority (non-preemptive)"
    tag = "PRIORITY"
    requires_priority = True

    def select_next(self, ready: List[Process]) -> Optional[Process]:
        if not ready:
            return None
        ready.sort(key=priority_key)
        return ready[0]


class PreemptivePriorityPolicy(PriorityPolicy):
    """
    Priority scheduling with preemption.

    The running process is interrupted in the same unit a ready process with
    a strictly lower priority value shows up. Equal priority never preempts.
    """

    name = "Priority (preemptive)"
    tag = "PRIORITY_PREEMPTIVE"

    def should_preempt(self, ready: List[Process], running: Process) -> bool:
        if not ready:
            return False
        best = min(ready, key=priority_key)
        return best.priority < running.priority

    def requeue(self, ready: List[Process], process: Process) -> None:
        # Re-sorted on the next selection, so the preempted process lands
        # among its equals by arrival time.
        ready.append(process)
        ready.sort(key=priority_key)
