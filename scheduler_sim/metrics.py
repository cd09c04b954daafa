from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional

from .models import Action, Process, ScheduleResult, Statistics, TimelineEvent

if TYPE_CHECKING:
    from .io_manager import IOResourceManager


def count_context_switches(timeline: Iterable[TimelineEvent]) -> int:
    """
    Number of times the process on the CPU changes between consecutive
    executed units. Idle gaps do not count.
    """
    switches = 0
    previous = None
    for event in timeline:
        if event.action is not Action.CPU_EXECUTION:
            continue
        if previous is not None and event.process_id != previous:
            switches += 1
        previous = event.process_id
    return switches


def _avg(values: List[int]) -> float:
    return round(sum(values) / len(values), 2) if values else 0.0


def compute_statistics(
    result: ScheduleResult,
    io_manager: Optional["IOResourceManager"] = None,
) -> Statistics:
    """
    Derive averages, throughput and utilization from a finished run and
    attach them to the result.
    """
    completed = [p for p in result.processes if p.completed]
    context_switches = count_context_switches(result.timeline)

    if not completed:
        stats = Statistics(
            average_response_time=0.0,
            average_wait_time=0.0,
            average_turnaround_time=0.0,
            throughput=0.0,
            cpu_utilization=0.0,
            total_processes=0,
            simulation_time=0,
            context_switches=context_switches,
        )
        if io_manager is not None:
            stats.io_utilization = 0.0
            stats.total_io_operations = 0
        result.statistics = stats
        return stats

    end_time = max(p.finish_time for p in completed)
    start_time = min(p.arrival_time for p in result.processes)
    span = end_time - start_time

    turnaround = _avg([p.response_time for p in completed])
    total_cpu = sum(p.cpu_time for p in completed)

    stats = Statistics(
        # Response time here is completion minus arrival, i.e. turnaround.
        average_response_time=turnaround,
        average_wait_time=_avg([p.wait_time for p in completed]),
        average_turnaround_time=turnaround,
        throughput=round(len(completed) / span, 2) if span > 0 else 0.0,
        cpu_utilization=round(total_cpu / end_time * 100, 2),
        total_processes=len(completed),
        simulation_time=end_time,
        context_switches=context_switches,
    )

    if io_manager is not None:
        busy = io_manager.busy_time_by_resource()
        stats.resource_utilization = busy
        stats.io_utilization = round(sum(busy.values()) / end_time * 100, 2)
        stats.total_io_operations = len(io_manager.history)

    result.statistics = stats
    return stats


def summarize_process_metrics(processes: List[Process]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    if not processes:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0, "avg_first_run": 0.0}

    n = len(processes)
    return {
        "avg_waiting": sum(p.wait_time for p in processes) / n,
        "avg_turnaround": sum(p.response_time for p in processes) / n,
        "avg_first_run": sum(p.start_time - p.arrival_time for p in processes) / n,
    }
