from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import Action, ScheduledSlice, TimelineEvent


def group_timeline(
    timeline: Iterable[TimelineEvent],
    resource: Optional[str] = None,
) -> List[ScheduledSlice]:
    """
    Collapse per-unit events into contiguous slices.

    With `resource=None` the CPU lane is built from execution events;
    otherwise the lane of that I/O resource.
    """
    if resource is None:
        units = [e for e in timeline if e.action is Action.CPU_EXECUTION]
    else:
        units = [e for e in timeline if e.action is Action.IO_EXECUTION and e.resource == resource]
    units.sort(key=lambda e: e.time)

    slices: List[ScheduledSlice] = []
    for e in units:
        last = slices[-1] if slices else None
        if last is not None and last.process_id == e.process_id and last.end_time == e.time:
            last.end_time += 1
            continue
        slices.append(
            ScheduledSlice(
                pid=e.process_name,
                start_time=e.time,
                end_time=e.time + 1,
                process_id=e.process_id,
                resource=resource,
            )
        )
    return slices


def io_resources(timeline: Iterable[TimelineEvent]) -> List[str]:
    seen: List[str] = []
    for e in timeline:
        if e.action is Action.IO_EXECUTION and e.resource not in seen:
            seen.append(e.resource)
    return seen


def render_gantt(slices: List[ScheduledSlice]) -> str:
    """
    Plain-text Gantt chart, one character per time unit.
    """
    if not slices:
        return "(no execution)"

    slices = sorted(slices, key=lambda s: (s.start_time, s.end_time))

    line = "|"
    labels = ""
    time_marks = "0"
    last_time = 0

    for sl in slices:
        idle_gap = sl.start_time - last_time
        if idle_gap > 0:
            line += "." * idle_gap
            labels += " " * idle_gap
            last_time = sl.start_time
            time_marks += f"{last_time:>3}"

        width = max(1, sl.duration)
        line += "=" * width
        labels += sl.pid[:width].ljust(width)
        last_time = sl.end_time
        time_marks += f"{last_time:>3}"

    line += "|"

    return "\n".join(
        [
            "Gantt Chart:",
            line,
            labels,
            time_marks,
        ]
    )


COLORS = ["red", "green", "yellow", "blue", "magenta", "cyan"]


def build_rich_gantt(
    slices: List[ScheduledSlice],
    title: str = "Gantt Chart",
    pid_to_color: Optional[Dict[str, str]] = None,
) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.

    Pass the same `pid_to_color` to several calls to keep a process's color
    stable across the CPU lane and the I/O lanes.
    """
    if not slices:
        panel = Panel("No execution", title=title)
        return panel, ""

    slices = sorted(slices, key=lambda s: (s.start_time, s.end_time))
    if pid_to_color is None:
        pid_to_color = {}

    def pid_color(pid: str) -> str:
        if pid not in pid_to_color:
            idx = len(pid_to_color) % len(COLORS)
            pid_to_color[pid] = COLORS[idx]
        return pid_to_color[pid]

    timeline = Text()
    labels = Text()
    time_marks = "0"
    last_time = 0

    for sl in slices:
        idle_gap = sl.start_time - last_time
        if idle_gap > 0:
            timeline.append(" " * idle_gap)
            labels.append(" " * idle_gap)
            last_time = sl.start_time
            time_marks += f"{last_time:>3}"

        width = max(1, sl.duration)
        color = pid_color(sl.pid)

        timeline.append(" " * width, style=f"on {color}")
        labels.append(sl.pid[:width].ljust(width), style="bold")

        last_time = sl.end_time
        time_marks += f"{last_time:>3}"

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    panel = Panel.fit(table, title=title)
    return panel, time_marks
