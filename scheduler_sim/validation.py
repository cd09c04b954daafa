from __future__ import annotations

from typing import Optional, Sequence

from .errors import InvalidProcessError
from .models import Process


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _label(p: Process, index: int) -> str:
    name = getattr(p, "name", None)
    return f"process {name!r}" if name else f"process at index {index}"


def validate_processes(
    processes: Sequence[Process],
    require_priority: bool = False,
    check_io: bool = False,
) -> None:
    """
    Reject process lists the schedulers cannot simulate.

    Runs before anything is copied or mutated so a failing call leaves no
    partial state behind.
    """
    if not processes:
        raise InvalidProcessError("No processes to schedule")

    seen_ids = set()
    for index, p in enumerate(processes):
        label = _label(p, index)

        if not _is_int(p.id) or p.id <= 0:
            raise InvalidProcessError(f"{label}: id must be a positive integer, got {p.id!r}")
        if p.id in seen_ids:
            raise InvalidProcessError(f"{label}: duplicate id {p.id}")
        seen_ids.add(p.id)

        if not _is_int(p.cpu_time) or p.cpu_time <= 0:
            raise InvalidProcessError(f"{label}: cpu_time must be a positive integer, got {p.cpu_time!r}")
        if not _is_int(p.arrival_time) or p.arrival_time < 0:
            raise InvalidProcessError(
                f"{label}: arrival_time must be a non-negative integer, got {p.arrival_time!r}"
            )

        if require_priority:
            if p.priority is None:
                raise InvalidProcessError(f"{label}: priority is required for priority scheduling")
            if not _is_int(p.priority) or p.priority < 0:
                raise InvalidProcessError(
                    f"{label}: priority must be a non-negative integer, got {p.priority!r}"
                )

        if check_io:
            _validate_io_operations(p, label)


def _validate_io_operations(p: Process, label: str) -> None:
    last_offset: Optional[int] = None
    for n, op in enumerate(p.io_operations, start=1):
        where = f"{label}, I/O operation {n}"
        if not isinstance(op.resource, str) or not op.resource.strip():
            raise InvalidProcessError(f"{where}: resource must be a non-empty string")
        if not _is_int(op.duration) or op.duration <= 0:
            raise InvalidProcessError(f"{where}: duration must be a positive integer, got {op.duration!r}")
        offset = op.cpu_time_before_io
        if not _is_int(offset) or not 1 <= offset < p.cpu_time:
            raise InvalidProcessError(
                f"{where}: cpu_time_before_io must be between 1 and {p.cpu_time - 1}, got {offset!r}"
            )
        if last_offset is not None and offset <= last_offset:
            raise InvalidProcessError(f"{where}: cpu_time_before_io values must be strictly increasing")
        last_offset = offset


def validate_quantum(quantum) -> None:
    if not _is_int(quantum) or quantum <= 0:
        raise InvalidProcessError(f"Round Robin requires a positive integer quantum, got {quantum!r}")
