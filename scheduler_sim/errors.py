from __future__ import annotations


class SchedulingError(Exception):
    """Base class for every error raised by the simulator."""


class InvalidProcessError(SchedulingError, ValueError):
    """
    The process list (or a workload file) cannot be simulated as given.

    Raised before any simulation state is touched.
    """


class SimulationTimeoutError(SchedulingError, RuntimeError):
    """
    The simulation loop ran past its safety bound.

    The bound is derived from the total CPU and I/O demand, so hitting it
    means a dispatch rule stopped making progress, not that the workload
    was large.
    """

    def __init__(self, time: int, max_time: int):
        super().__init__(f"Possible infinite loop: simulation reached t={time} (bound {max_time})")
        self.time = time
        self.max_time = max_time
