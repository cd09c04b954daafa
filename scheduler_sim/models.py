from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ProcessState(str, Enum):
    READY = "ready"
    RUNNING = "running"
    BLOCKED = "blocked"
    TERMINATED = "terminated"


class Action(str, Enum):
    CPU_EXECUTION = "cpu_execution"
    PREEMPTED = "preempted"
    PROCESS_COMPLETE = "process_complete"
    IO_EXECUTION = "io_execution"
    IO_COMPLETE = "io_complete"


@dataclass
class IOOperation:
    """
    One I/O burst, triggered once the owning process has used
    `cpu_time_before_io` units of CPU.
    """

    resource: str
    cpu_time_before_io: int
    duration: int
    completed: bool = False


@dataclass
class Process:
    id: int
    name: str
    cpu_time: int
    arrival_time: int
    priority: Optional[int] = None
    io_operations: List[IOOperation] = field(default_factory=list)

    # Filled in by the simulation.
    start_time: Optional[int] = None
    finish_time: Optional[int] = None
    response_time: Optional[int] = None
    wait_time: Optional[int] = None
    remaining_time: Optional[int] = None
    cpu_time_used: int = 0
    io_time: int = 0
    state: ProcessState = ProcessState.READY

    @property
    def completed(self) -> bool:
        return self.finish_time is not None

    def next_io_operation(self) -> Optional[IOOperation]:
        for op in self.io_operations:
            if not op.completed:
                return op
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "cpuTime": self.cpu_time,
            "arrivalTime": self.arrival_time,
            "priority": self.priority,
            "ioOperations": [
                {
                    "resource": op.resource,
                    "cpuTimeBeforeIO": op.cpu_time_before_io,
                    "duration": op.duration,
                    "completed": op.completed,
                }
                for op in self.io_operations
            ],
            "startTime": self.start_time,
            "finishTime": self.finish_time,
            "responseTime": self.response_time,
            "waitTime": self.wait_time,
            "remainingTime": self.remaining_time,
            "cpuTimeUsed": self.cpu_time_used,
            "ioTime": self.io_time,
            "currentState": self.state.value,
        }


@dataclass
class TimelineEvent:
    time: int
    process_id: int
    process_name: str
    action: Action
    state: Optional[ProcessState] = None
    resource: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "time": self.time,
            "processId": self.process_id,
            "processName": self.process_name,
            "action": self.action.value,
        }
        if self.state is not None:
            data["state"] = self.state.value
        if self.resource is not None:
            data["resource"] = self.resource
        return data


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of execution for a process in the Gantt chart.

    `resource` is None for CPU slices and names the device for I/O slices.
    """

    pid: str
    start_time: int
    end_time: int
    process_id: Optional[int] = None
    resource: Optional[str] = None

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time


@dataclass
class Statistics:
    average_response_time: float
    average_wait_time: float
    average_turnaround_time: float
    throughput: float
    cpu_utilization: float
    total_processes: int
    simulation_time: int
    context_switches: Optional[int] = None
    io_utilization: Optional[float] = None
    total_io_operations: Optional[int] = None
    resource_utilization: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "averageResponseTime": self.average_response_time,
            "averageWaitTime": self.average_wait_time,
            "averageTurnaroundTime": self.average_turnaround_time,
            "throughput": self.throughput,
            "cpuUtilization": self.cpu_utilization,
            "totalProcesses": self.total_processes,
            "simulationTime": self.simulation_time,
        }
        if self.context_switches is not None:
            data["contextSwitches"] = self.context_switches
        if self.io_utilization is not None:
            data["ioUtilization"] = self.io_utilization
            data["totalIOOperations"] = self.total_io_operations
            data["resourceUtilization"] = dict(self.resource_utilization)
        return data


@dataclass
class ScheduleResult:
    algorithm: str
    tag: str
    quantum: Optional[int]
    processes: List[Process] = field(default_factory=list)
    timeline: List[TimelineEvent] = field(default_factory=list)
    statistics: Optional[Statistics] = None
    ready_queue: Dict[int, List[int]] = field(default_factory=dict)
    io_queues: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def executions(self) -> List[TimelineEvent]:
        """CPU occupancy: one event per executed time unit, in order."""
        return [e for e in self.timeline if e.action is Action.CPU_EXECUTION]

    def process_by_name(self, name: str) -> Process:
        for p in self.processes:
            if p.name == name:
                return p
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "algorithm": self.tag,
            "processes": [p.to_dict() for p in self.processes],
            "timeline": [e.to_dict() for e in self.timeline],
            "statistics": self.statistics.to_dict() if self.statistics else {},
            "readyQueue": {str(t): ids for t, ids in self.ready_queue.items()},
        }
        if self.quantum is not None:
            data["quantum"] = self.quantum
        if self.io_queues:
            data["ioQueues"] = {
                resource: {
                    "inUse": state["in_use"],
                    "queue": list(state["queue"]),
                    "queueLength": state["queue_length"],
                }
                for resource, state in self.io_queues.items()
            }
        return data
