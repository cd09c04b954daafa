"""
Scheduler simulator package.

Discrete-time simulation of classic CPU scheduling algorithms (FCFS,
FCFS with I/O devices, SJF, Round Robin, and priority scheduling with and
without preemption), plus a command-line interface for running and
comparing them on workload files.
"""

from .algorithms import (
    ALGORITHMS,
    run_algorithm,
    schedule_fcfs,
    schedule_fcfs_io,
    schedule_priority,
    schedule_priority_preemptive,
    schedule_rr,
    schedule_sjf,
)
from .config import SimulationConfig
from .errors import InvalidProcessError, SchedulingError, SimulationTimeoutError
from .models import IOOperation, Process, ScheduleResult

__all__ = [
    "ALGORITHMS",
    "run_algorithm",
    "schedule_fcfs",
    "schedule_fcfs_io",
    "schedule_sjf",
    "schedule_rr",
    "schedule_priority",
    "schedule_priority_preemptive",
    "SimulationConfig",
    "SchedulingError",
    "InvalidProcessError",
    "SimulationTimeoutError",
    "IOOperation",
    "Process",
    "ScheduleResult",
]
