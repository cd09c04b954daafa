from __future__ import annotations

import csv
import json
import re
from pathlib import Path
from typing import Iterable, List

from .errors import InvalidProcessError
from .models import IOOperation, Process

# (resource, cpu offset, duration), repeated: "(R1,2,1)(R2,4,2)"
_IO_TOKEN = re.compile(r"\(\s*([^,()]+?)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)")


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a list of Process objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return _load_csv(path)

    raise ValueError(f"Unsupported workload format: {suffix} (use .json or .csv)")


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, dict):
        raw = raw.get("processes")

    if not isinstance(raw, Iterable) or isinstance(raw, (str, dict)):
        raise InvalidProcessError("JSON workload must be a list of process objects")

    processes: List[Process] = []
    for index, entry in enumerate(raw):
        processes.append(_process_from_mapping(entry, index))

    return processes


def _load_csv(path: Path) -> List[Process]:
    processes: List[Process] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for index, row in enumerate(reader):
            processes.append(_process_from_mapping(row, index))
    return processes


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_int(value) -> int:
    # CSV cells arrive as text; JSON numbers must already be whole.
    if isinstance(value, str):
        return int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {value!r}")
    return value


def _process_from_mapping(mapping, index: int) -> Process:
    try:
        pid = _as_int(mapping["id"]) if not _blank(mapping.get("id")) else index + 1
        cpu_time = _as_int(mapping["cpu_time"])
        arrival_time = _as_int(mapping["arrival_time"])
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise InvalidProcessError(f"Invalid process entry: {mapping!r}") from exc

    name = mapping.get("name")
    name = str(name).strip() if not _blank(name) else f"P{pid}"

    priority_val = mapping.get("priority")
    try:
        priority = _as_int(priority_val) if not _blank(priority_val) else None
    except (TypeError, ValueError) as exc:
        raise InvalidProcessError(f"Invalid priority for {name}: {priority_val!r}") from exc

    return Process(
        id=pid,
        name=name,
        cpu_time=cpu_time,
        arrival_time=arrival_time,
        priority=priority,
        io_operations=parse_io_operations(mapping.get("io_operations"), name),
    )


def parse_io_operations(data, owner: str = "process") -> List[IOOperation]:
    if _blank(data):
        return []
    if isinstance(data, str):
        return parse_io_string(data)
    if not isinstance(data, list):
        raise InvalidProcessError(f"{owner}: io_operations must be a string or a list")

    operations: List[IOOperation] = []
    for n, op in enumerate(data, start=1):
        try:
            offset = op.get("cpu_time_before_io", op.get("start_time"))
            operations.append(
                IOOperation(
                    resource=str(op["resource"]),
                    cpu_time_before_io=_as_int(offset),
                    duration=_as_int(op["duration"]),
                )
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise InvalidProcessError(f"{owner}: invalid I/O operation {n}: {op!r}") from exc
    return operations


def parse_io_string(text: str) -> List[IOOperation]:
    """
    Parse the compact form "(R1,2,1)(R2,4,2)" into I/O operations.
    """
    text = text.strip()
    operations: List[IOOperation] = []
    pos = 0
    for match in _IO_TOKEN.finditer(text):
        if text[pos:match.start()].strip():
            raise InvalidProcessError(f"Malformed I/O operations: {text!r}")
        resource, offset, duration = match.groups()
        operations.append(
            IOOperation(resource=resource, cpu_time_before_io=int(offset), duration=int(duration))
        )
        pos = match.end()

    if text[pos:].strip() or not operations:
        raise InvalidProcessError(f"Malformed I/O operations: {text!r}")
    return operations
