from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, List, Optional

from .models import IOOperation, Process, ProcessState

logger = logging.getLogger(__name__)


@dataclass
class IORequest:
    process: Process
    operation: IOOperation
    requested_at: int
    start_time: Optional[int] = None
    end_time: Optional[int] = None


class IOResourceManager:
    """
    Single-server FIFO queues for the I/O devices named by a workload.

    Each resource serves one request at a time; waiting requests are served
    strictly in the order they were issued, whatever the CPU priority of
    the process behind them.
    """

    def __init__(self) -> None:
        self.queues: Dict[str, Deque[IORequest]] = {}
        self.in_service: Dict[str, Optional[IORequest]] = {}
        self.history: List[IORequest] = []
        self._started: List[IORequest] = []

    def initialize(self, processes: Iterable[Process]) -> None:
        self.queues.clear()
        self.in_service.clear()
        self.history.clear()
        self._started.clear()

        resources = []
        for p in processes:
            for op in p.io_operations:
                if op.resource not in resources:
                    resources.append(op.resource)

        for resource in resources:
            self.queues[resource] = deque()
            self.in_service[resource] = None

        logger.debug("I/O resources discovered: %s", resources)

    @property
    def resources(self) -> List[str]:
        return list(self.queues)

    def is_busy(self, resource: str) -> bool:
        return self.in_service[resource] is not None

    def start_io_operation(self, process: Process, operation: IOOperation, now: int) -> IORequest:
        """
        Issue an I/O request at time `now`.

        The request is served immediately if the resource is free, otherwise
        it waits behind earlier requests for the same resource.
        """
        if operation.resource not in self.queues:
            raise KeyError(f"Unknown I/O resource {operation.resource!r}")

        request = IORequest(process=process, operation=operation, requested_at=now)
        process.state = ProcessState.BLOCKED
        self.queues[operation.resource].append(request)
        self.history.append(request)
        logger.debug("t=%d %s requests %s for %d", now, process.name, operation.resource, operation.duration)

        if not self.is_busy(operation.resource):
            self._assign(operation.resource, now)
        return request

    def _assign(self, resource: str, now: int) -> None:
        queue = self.queues[resource]
        if not queue:
            return
        request = queue.popleft()
        request.start_time = now
        request.end_time = now + request.operation.duration
        self.in_service[resource] = request
        self._started.append(request)
        logger.debug("t=%d %s assigned to %s until %d", now, resource, request.process.name, request.end_time)

    def process_io_operations(self, now: int) -> List[Process]:
        """
        Finish every in-service request whose end time is `now`.

        Freed resources are handed to the next queued request. Returns the
        processes that are ready for the CPU again, in resource order.
        """
        ready: List[Process] = []
        for resource, request in self.in_service.items():
            if request is None or request.end_time != now:
                continue

            request.operation.completed = True
            request.process.state = ProcessState.READY
            request.process.io_time += now - request.requested_at
            self.in_service[resource] = None
            logger.debug("t=%d %s completes I/O on %s", now, request.process.name, resource)

            ready.append(request.process)
            self._assign(resource, now)

        return ready

    def pop_started(self) -> List[IORequest]:
        """Requests that entered service since the previous call."""
        started, self._started = self._started, []
        return started

    def has_pending(self) -> bool:
        return any(self.queues.values()) or any(r is not None for r in self.in_service.values())

    def get_resource_queues_state(self) -> Dict[str, Dict[str, object]]:
        state: Dict[str, Dict[str, object]] = {}
        for resource, queue in self.queues.items():
            current = self.in_service[resource]
            state[resource] = {
                "in_use": current.process.name if current else None,
                "queue": [r.process.name for r in queue],
                "queue_length": len(queue),
            }
        return state

    def busy_time_by_resource(self) -> Dict[str, int]:
        busy = {resource: 0 for resource in self.queues}
        for request in self.history:
            if request.start_time is not None:
                busy[request.operation.resource] += request.operation.duration
        return busy
