from __future__ import annotations

from typing import Callable, Dict, List, Optional

from .config import SimulationConfig
from .engine import Simulation
from .models import Process, ScheduleResult
from .policies import (
    FCFSIOPolicy,
    FCFSPolicy,
    PreemptivePriorityPolicy,
    PriorityPolicy,
    RoundRobinPolicy,
    SJFPolicy,
)
from .validation import validate_quantum


def schedule_fcfs(
    processes: List[Process],
    quantum: Optional[int] = None,
    config: Optional[SimulationConfig] = None,
) -> ScheduleResult:
    """
    First-Come First-Serve (non-preemptive).

    I/O operations on the processes are ignored; see `schedule_fcfs_io`.
    """
    return Simulation(FCFSPolicy(), processes, config).run()


def schedule_fcfs_io(
    processes: List[Process],
    quantum: Optional[int] = None,
    config: Optional[SimulationConfig] = None,
) -> ScheduleResult:
    """
    FCFS on the CPU, with processes leaving the CPU for their I/O bursts.

    Each I/O resource is its own FIFO server; a process returns to the back
    of the CPU ready queue once its request has been served.
    """
    return Simulation(FCFSIOPolicy(), processes, config, with_io=True).run()


def schedule_sjf(
    processes: List[Process],
    quantum: Optional[int] = None,
    config: Optional[SimulationConfig] = None,
) -> ScheduleResult:
    """
    Shortest Job First (non-preemptive).

    At each decision point, among processes that have arrived and are not yet
    completed, choose the one with the smallest burst time.
    """
    return Simulation(SJFPolicy(), processes, config).run()


def schedule_rr(
    processes: List[Process],
    quantum: Optional[int] = None,
    config: Optional[SimulationConfig] = None,
) -> ScheduleResult:
    """
    Round Robin scheduling with a fixed time quantum.

    Without an explicit quantum the configured default (2) is used.
    """
    config = config or SimulationConfig()
    if quantum is None:
        quantum = config.quantum
    validate_quantum(quantum)
    return Simulation(RoundRobinPolicy(quantum), processes, config).run()


def schedule_priority(
    processes: List[Process],
    quantum: Optional[int] = None,
    config: Optional[SimulationConfig] = None,
) -> ScheduleResult:
    """
    Static priority scheduling (non-preemptive). Every process needs a priority.
    """
    return Simulation(PriorityPolicy(), processes, config).run()


def schedule_priority_preemptive(
    processes: List[Process],
    quantum: Optional[int] = None,
    config: Optional[SimulationConfig] = None,
) -> ScheduleResult:
    return Simulation(PreemptivePriorityPolicy(), processes, config).run()


ALGORITHMS: Dict[str, Callable[..., ScheduleResult]] = {
    "fcfs": schedule_fcfs,
    "fcfs-io": schedule_fcfs_io,
    "sjf": schedule_sjf,
    "rr": schedule_rr,
    "priority": schedule_priority,
    "priority-preemptive": schedule_priority_preemptive,
}

PRIORITY_ALGORITHMS = {"priority", "priority-preemptive"}
QUANTUM_ALGORITHMS = {"rr"}


def run_algorithm(
    name: str,
    processes: List[Process],
    quantum: Optional[int] = None,
    config: Optional[SimulationConfig] = None,
) -> ScheduleResult:
    """
    Dispatch to the requested algorithm. Quantum is only used by round-robin.
    """
    name = name.lower()
    if name not in ALGORITHMS:
        raise ValueError(f"Unknown algorithm '{name}' (choose from {', '.join(ALGORITHMS)})")

    func = ALGORITHMS[name]
    return func(processes, quantum=quantum, config=config)
