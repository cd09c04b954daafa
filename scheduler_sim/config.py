from __future__ import annotations

from dataclasses import dataclass, replace

DEFAULT_QUANTUM = 2
DEFAULT_SAFETY_MARGIN = 50


@dataclass(frozen=True)
class SimulationConfig:
    quantum: int = DEFAULT_QUANTUM
    # Slack added on top of arrival + CPU + I/O demand before a run is
    # declared runaway.
    safety_margin: int = DEFAULT_SAFETY_MARGIN
    record_ready_queue: bool = True

    def with_quantum(self, quantum: int) -> "SimulationConfig":
        return replace(self, quantum=quantum)
