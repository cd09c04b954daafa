import pytest

from scheduler_sim.algorithms import schedule_fcfs, schedule_fcfs_io
from scheduler_sim.errors import InvalidProcessError
from scheduler_sim.gantt import group_timeline
from scheduler_sim.io_manager import IOResourceManager
from scheduler_sim.models import Action, IOOperation, Process, ProcessState


def _io_events(result, resource=None):
    return [
        (e.time, e.process_name, e.resource)
        for e in result.timeline
        if e.action is Action.IO_EXECUTION and (resource is None or e.resource == resource)
    ]


def _units(result):
    return [(e.time, e.process_name) for e in result.executions()]


def test_manager_discovers_resources_in_order():
    manager = IOResourceManager()
    manager.initialize(
        [
            Process(1, "P1", 4, 0, io_operations=[IOOperation("disk", 1, 1), IOOperation("net", 2, 1)]),
            Process(2, "P2", 4, 0, io_operations=[IOOperation("net", 1, 1)]),
            Process(3, "P3", 4, 0),
        ]
    )
    assert manager.resources == ["disk", "net"]
    assert not manager.has_pending()


def test_manager_serves_requests_fifo_regardless_of_priority():
    low = Process(1, "low", 5, 0, priority=9, io_operations=[IOOperation("disk", 1, 3)])
    high = Process(2, "high", 5, 0, priority=0, io_operations=[IOOperation("disk", 1, 2)])
    manager = IOResourceManager()
    manager.initialize([low, high])

    first = manager.start_io_operation(low, low.io_operations[0], 1)
    second = manager.start_io_operation(high, high.io_operations[0], 2)

    assert (first.start_time, first.end_time) == (1, 4)
    assert second.start_time is None
    assert low.state is ProcessState.BLOCKED and high.state is ProcessState.BLOCKED
    assert manager.get_resource_queues_state() == {
        "disk": {"in_use": "low", "queue": ["high"], "queue_length": 1}
    }

    assert manager.process_io_operations(3) == []
    assert manager.process_io_operations(4) == [low]
    assert low.io_operations[0].completed
    assert low.state is ProcessState.READY
    assert low.io_time == 3

    # Promoted when the resource frees up, not when it was requested.
    assert (second.start_time, second.end_time) == (4, 6)
    assert manager.process_io_operations(6) == [high]
    assert high.io_time == 4
    assert not manager.has_pending()
    assert manager.busy_time_by_resource() == {"disk": 5}
    assert [r.process.name for r in manager.pop_started()] == ["low", "high"]
    assert manager.pop_started() == []


def test_manager_rejects_unknown_resource():
    p = Process(1, "P1", 3, 0)
    manager = IOResourceManager()
    manager.initialize([p])
    with pytest.raises(KeyError):
        manager.start_io_operation(p, IOOperation("tape", 1, 1), 0)


def test_fcfs_io_basic_block_and_return():
    procs = [
        Process(1, "P1", cpu_time=4, arrival_time=0, io_operations=[IOOperation("R1", 2, 1)]),
        Process(2, "P2", cpu_time=3, arrival_time=1),
    ]
    res = schedule_fcfs_io(procs)

    assert _units(res) == [
        (0, "P1"),
        (1, "P1"),
        (2, "P2"),
        (3, "P2"),
        (4, "P2"),
        (5, "P1"),
        (6, "P1"),
    ]
    assert _io_events(res) == [(2, "P1", "R1")]

    complete = [e for e in res.timeline if e.action is Action.IO_COMPLETE]
    assert [(e.time, e.process_name, e.resource) for e in complete] == [(3, "P1", "R1")]

    p1 = res.process_by_name("P1")
    assert (p1.start_time, p1.finish_time, p1.io_time, p1.wait_time) == (0, 7, 1, 2)
    assert p1.response_time == 7
    assert all(op.completed for op in p1.io_operations)

    p2 = res.process_by_name("P2")
    assert (p2.start_time, p2.finish_time, p2.wait_time) == (2, 5, 1)

    stats = res.statistics
    assert stats.total_io_operations == 1
    assert stats.resource_utilization == {"R1": 1}
    assert stats.io_utilization == 14.29
    assert stats.cpu_utilization == 100.0
    assert res.tag == "FCFS_IO"


def test_fcfs_io_resource_contention_is_fifo():
    procs = [
        Process(1, "P1", cpu_time=2, arrival_time=0, io_operations=[IOOperation("R1", 1, 3)]),
        Process(2, "P2", cpu_time=2, arrival_time=0, io_operations=[IOOperation("R1", 1, 2)]),
    ]
    res = schedule_fcfs_io(procs)

    assert _units(res) == [(0, "P1"), (1, "P2"), (4, "P1"), (6, "P2")]
    assert _io_events(res) == [
        (1, "P1", "R1"),
        (2, "P1", "R1"),
        (3, "P1", "R1"),
        (4, "P2", "R1"),
        (5, "P2", "R1"),
    ]
    lane = group_timeline(res.timeline, resource="R1")
    assert [(s.pid, s.start_time, s.end_time) for s in lane] == [("P1", 1, 4), ("P2", 4, 6)]

    p1, p2 = res.process_by_name("P1"), res.process_by_name("P2")
    assert (p1.finish_time, p1.io_time, p1.wait_time) == (5, 3, 0)
    assert (p2.finish_time, p2.io_time, p2.wait_time) == (7, 4, 1)


def test_fcfs_io_resource_serves_one_request_per_unit():
    procs = [
        Process(1, "A", cpu_time=5, arrival_time=0, io_operations=[IOOperation("R", 1, 2), IOOperation("R", 3, 2)]),
        Process(2, "B", cpu_time=4, arrival_time=0, io_operations=[IOOperation("R", 2, 3)]),
        Process(3, "C", cpu_time=3, arrival_time=1, io_operations=[IOOperation("S", 1, 4)]),
    ]
    res = schedule_fcfs_io(procs)

    busy = [(t, r) for t, _, r in _io_events(res)]
    assert len(busy) == len(set(busy))

    cpu_times = [t for t, _ in _units(res)]
    assert len(cpu_times) == len(set(cpu_times))

    for p in res.processes:
        assert len([1 for e in res.executions() if e.process_id == p.id]) == p.cpu_time
        assert p.wait_time == p.response_time - p.cpu_time - p.io_time
        assert p.wait_time >= 0
        # Never on the CPU while blocked.
        io_units = {t for t, name, _ in _io_events(res) if name == p.name}
        assert io_units.isdisjoint(e.time for e in res.executions() if e.process_id == p.id)


def test_fcfs_io_without_operations_matches_fcfs():
    procs = [
        Process(1, "P1", cpu_time=9, arrival_time=0),
        Process(2, "P2", cpu_time=5, arrival_time=1),
        Process(3, "P3", cpu_time=3, arrival_time=2),
    ]
    plain = schedule_fcfs(procs)
    with_io = schedule_fcfs_io(procs)
    assert _units(plain) == _units(with_io)
    assert [p.finish_time for p in plain.processes] == [p.finish_time for p in with_io.processes]
    assert with_io.statistics.total_io_operations == 0


def test_fcfs_ignores_io_operations():
    procs = [Process(1, "P1", cpu_time=3, arrival_time=0, io_operations=[IOOperation("R1", 1, 5)])]
    res = schedule_fcfs(procs)
    assert res.process_by_name("P1").finish_time == 3
    assert _io_events(res) == []


def test_fcfs_io_does_not_mutate_input():
    op = IOOperation("R1", 1, 1)
    procs = [Process(1, "P1", cpu_time=2, arrival_time=0, io_operations=[op])]
    schedule_fcfs_io(procs)
    assert op.completed is False
    assert procs[0].finish_time is None


@pytest.mark.parametrize(
    "op",
    [
        IOOperation("R1", 0, 1),
        IOOperation("R1", 3, 1),
        IOOperation("R1", 1, 0),
        IOOperation("", 1, 1),
    ],
)
def test_fcfs_io_rejects_bad_operations(op):
    with pytest.raises(InvalidProcessError):
        schedule_fcfs_io([Process(1, "P1", cpu_time=3, arrival_time=0, io_operations=[op])])


def test_fcfs_io_rejects_unordered_offsets():
    ops = [IOOperation("R1", 2, 1), IOOperation("R2", 2, 1)]
    with pytest.raises(InvalidProcessError, match="strictly increasing"):
        schedule_fcfs_io([Process(1, "P1", cpu_time=4, arrival_time=0, io_operations=ops)])
