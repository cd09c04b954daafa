from __future__ import annotations

import argparse
import json
import logging
import time
from pathlib import Path
from typing import Dict, List

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .algorithms import ALGORITHMS, PRIORITY_ALGORITHMS, QUANTUM_ALGORITHMS, run_algorithm
from .config import DEFAULT_QUANTUM, DEFAULT_SAFETY_MARGIN, SimulationConfig
from .errors import SchedulingError
from .gantt import build_rich_gantt, group_timeline, io_resources, render_gantt
from .metrics import summarize_process_metrics
from .models import Action, Process, ScheduleResult
from .workload_io import load_workload

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scheduler-sim",
        description="CPU scheduling simulator (FCFS, FCFS with I/O, SJF, RR, Priority, Priority preemptive).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING). DEBUG traces every time unit.",
    )
    parser.add_argument(
        "--safety-margin",
        type=int,
        default=DEFAULT_SAFETY_MARGIN,
        help=f"Extra time units allowed before a run is declared runaway (default: {DEFAULT_SAFETY_MARGIN}).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help=f"Algorithm to use ({', '.join(ALGORITHMS)}).",
    )
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    run_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help=f"Time quantum for round-robin (default: {DEFAULT_QUANTUM}; ignored by the other algorithms).",
    )
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Show a simple time-stepped simulation in the terminal.",
    )
    run_parser.add_argument(
        "--step-delay",
        type=float,
        default=0.3,
        help="Seconds to wait between steps when --step is used (default: 0.3).",
    )
    run_parser.add_argument(
        "--plain",
        action="store_true",
        help="Draw Gantt charts as plain text (for logs and terminals without color).",
    )
    run_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full result as JSON instead of tables.",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(ALGORITHMS),
        help=f"Algorithms to compare (default: {' '.join(ALGORITHMS)}).",
    )
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=DEFAULT_QUANTUM,
        help=f"Time quantum used for RR when included (default: {DEFAULT_QUANTUM}).",
    )

    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def _print_rich_gantt(result: ScheduleResult, console: Console) -> None:
    # One color per process, shared by the CPU and I/O lanes.
    colors: Dict[str, str] = {}
    panel, time_marks = build_rich_gantt(group_timeline(result.timeline), title="CPU", pid_to_color=colors)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    for resource in io_resources(result.timeline):
        panel, time_marks = build_rich_gantt(
            group_timeline(result.timeline, resource=resource),
            title=f"I/O {resource}",
            pid_to_color=colors,
        )
        console.print(panel)
        console.print(time_marks)


def _print_plain_gantt(result: ScheduleResult, console: Console) -> None:
    console.print(render_gantt(group_timeline(result.timeline)), markup=False, highlight=False)
    for resource in io_resources(result.timeline):
        console.print(f"I/O {resource}", markup=False)
        console.print(
            render_gantt(group_timeline(result.timeline, resource=resource)),
            markup=False,
            highlight=False,
        )


def _print_result(result: ScheduleResult, console: Console, plain: bool = False) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {result.quantum}")

    console.print()

    if plain:
        _print_plain_gantt(result, console)
    else:
        _print_rich_gantt(result, console)

    console.print()

    headers = [
        "ID",
        "Name",
        "Arrive",
        "CPU",
        "Start",
        "Finish",
        "Wait",
        "Turnaround",
        "I/O",
        "Priority",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"ID", "Name", "Priority"} else "right"
        proc_table.add_column(h, justify=justify)

    for p in sorted(result.processes, key=lambda p: p.id):
        proc_table.add_row(
            str(p.id),
            p.name,
            str(p.arrival_time),
            str(p.cpu_time),
            str(p.start_time),
            str(p.finish_time),
            str(p.wait_time),
            str(p.response_time),
            str(p.io_time),
            "" if p.priority is None else str(p.priority),
        )

    console.print(proc_table)
    console.print()

    stats = result.statistics
    if stats:
        sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
        sys_table.add_column("Metric")
        sys_table.add_column("Value", justify="right")

        sys_table.add_row("Avg waiting", f"{stats.average_wait_time:.2f}")
        sys_table.add_row("Avg turnaround", f"{stats.average_turnaround_time:.2f}")
        sys_table.add_row("Throughput (proc/time)", f"{stats.throughput:.2f}")
        sys_table.add_row("CPU utilization", f"{stats.cpu_utilization:.1f}%")
        sys_table.add_row("Context switches", str(stats.context_switches))
        sys_table.add_row("Simulation time", str(stats.simulation_time))
        if stats.io_utilization is not None:
            sys_table.add_row("I/O operations", str(stats.total_io_operations))
            sys_table.add_row("I/O utilization", f"{stats.io_utilization:.1f}%")
            for resource, busy in stats.resource_utilization.items():
                sys_table.add_row(f"  {resource} busy", str(busy))

        console.print(sys_table)


def _animate_result(result: ScheduleResult, delay: float, console: Console) -> None:
    """
    Simple time-stepped textual simulation using the computed schedule.
    """
    if not result.timeline:
        console.print("[red]No execution to animate.[/red]")
        return

    makespan = result.statistics.simulation_time
    console.print(f"[bold]Simulating {result.algorithm}[/bold] (duration {makespan} time units)")
    console.print("[dim]Press Ctrl+C to skip animation.[/dim]")

    running: Dict[int, str] = {}
    blocked: Dict[int, List[str]] = {}
    for e in result.timeline:
        if e.action is Action.CPU_EXECUTION:
            running[e.time] = e.process_name
        elif e.action is Action.IO_EXECUTION:
            blocked.setdefault(e.time, []).append(f"{e.process_name}@{e.resource}")

    names = {p.id: p.name for p in result.processes}
    for t in range(makespan):
        msg = f"t={t:2d}: " + (f"[green]{running[t]}[/green]" if t in running else "[dim]idle[/dim]")
        waiting = [names[pid] for pid in result.ready_queue.get(t, [])]
        if waiting:
            msg += f"  ready: {' '.join(waiting)}"
        if t in blocked:
            msg += f"  [yellow]I/O: {' '.join(blocked[t])}[/yellow]"
        console.print(msg)
        time.sleep(delay)


def _run_compare(
    processes: List[Process],
    algorithms: List[str],
    quantum: int,
    config: SimulationConfig,
    console: Console,
) -> None:
    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg first run", justify="right")
    summary_table.add_column("Throughput", justify="right")
    summary_table.add_column("CPU util.", justify="right")
    summary_table.add_column("Switches", justify="right")

    has_priorities = all(p.priority is not None for p in processes)

    for alg in algorithms:
        if alg.lower() in PRIORITY_ALGORITHMS and not has_priorities:
            console.print(f"[yellow]Skipping {alg}: workload has processes without a priority.[/yellow]")
            continue
        q = quantum if alg.lower() in QUANTUM_ALGORITHMS else None
        result = run_algorithm(alg, processes, quantum=q, config=config)
        summary = summarize_process_metrics(result.processes)
        stats = result.statistics
        summary_table.add_row(
            result.algorithm,
            "" if result.quantum is None else str(result.quantum),
            f"{summary['avg_waiting']:.2f}",
            f"{summary['avg_turnaround']:.2f}",
            f"{summary['avg_first_run']:.2f}",
            f"{stats.throughput:.2f}",
            f"{stats.cpu_utilization:.1f}%",
            str(stats.context_switches),
        )

    console.print(summary_table)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    console = Console()
    config = SimulationConfig(safety_margin=args.safety_margin)

    try:
        if args.command == "run":
            processes = load_workload(Path(args.workload))
            result = run_algorithm(args.algorithm, processes, quantum=args.quantum, config=config)
            if args.json:
                console.print_json(json.dumps(result.to_dict()))
                return 0
            if args.step:
                try:
                    _animate_result(result, delay=args.step_delay, console=console)
                except KeyboardInterrupt:
                    console.print("[yellow]Animation skipped.[/yellow]")
            _print_result(result, console, plain=args.plain)
            return 0

        if args.command == "compare":
            processes = load_workload(Path(args.workload))
            _run_compare(processes, args.algorithms, args.quantum, config, console)
            return 0
    except (SchedulingError, ValueError, OSError) as exc:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
