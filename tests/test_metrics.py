from scheduler_sim.algorithms import schedule_fcfs, schedule_fcfs_io
from scheduler_sim.metrics import compute_statistics, count_context_switches, summarize_process_metrics
from scheduler_sim.models import Action, IOOperation, Process, ScheduleResult, TimelineEvent


def _event(t, pid, action=Action.CPU_EXECUTION):
    return TimelineEvent(time=t, process_id=pid, process_name=f"P{pid}", action=action)


def test_context_switches_only_count_cpu_changes():
    timeline = [
        _event(0, 1),
        _event(1, 1),
        _event(1, 1, Action.PROCESS_COMPLETE),
        _event(2, 2),
        _event(2, 3, Action.IO_EXECUTION),
        _event(3, 2),
        _event(7, 1),
    ]
    assert count_context_switches(timeline) == 2
    assert count_context_switches([]) == 0


def test_fcfs_reference_statistics():
    procs = [
        Process(1, "P1", cpu_time=9, arrival_time=0),
        Process(2, "P2", cpu_time=5, arrival_time=1),
        Process(3, "P3", cpu_time=3, arrival_time=2),
        Process(4, "P4", cpu_time=7, arrival_time=3),
    ]
    stats = schedule_fcfs(procs).statistics
    assert stats.average_turnaround_time == 14.5
    assert stats.average_response_time == 14.5
    assert stats.average_wait_time == 8.5
    assert stats.throughput == 0.17
    assert stats.cpu_utilization == 100.0
    assert stats.total_processes == 4
    assert stats.simulation_time == 24
    assert stats.context_switches == 3
    assert stats.io_utilization is None


def test_statistics_with_idle_time():
    procs = [
        Process(1, "P1", cpu_time=2, arrival_time=0),
        Process(2, "P2", cpu_time=2, arrival_time=5),
    ]
    stats = schedule_fcfs(procs).statistics
    assert stats.cpu_utilization == 57.14
    assert stats.throughput == 0.29
    assert stats.context_switches == 1


def test_statistics_for_unfinished_run_are_zero():
    result = ScheduleResult(algorithm="FCFS", tag="FCFS", quantum=None, processes=[Process(1, "P1", 2, 0)])
    stats = compute_statistics(result)
    assert stats.total_processes == 0
    assert stats.throughput == 0.0
    assert result.statistics is stats


def test_summarize_process_metrics():
    procs = [
        Process(1, "P1", cpu_time=4, arrival_time=0),
        Process(2, "P2", cpu_time=2, arrival_time=0),
    ]
    summary = summarize_process_metrics(schedule_fcfs(procs).processes)
    assert summary == {"avg_waiting": 2.0, "avg_turnaround": 5.0, "avg_first_run": 2.0}
    assert summarize_process_metrics([])["avg_waiting"] == 0.0


def test_result_serializes_with_camel_case_keys():
    res = schedule_fcfs([Process(1, "P1", cpu_time=2, arrival_time=0)])
    data = res.to_dict()
    assert data["algorithm"] == "FCFS"
    assert data["statistics"]["averageWaitTime"] == 0.0
    assert data["statistics"]["contextSwitches"] == 0
    assert data["processes"][0]["finishTime"] == 2
    assert data["processes"][0]["currentState"] == "terminated"
    assert data["timeline"][0] == {
        "time": 0,
        "processId": 1,
        "processName": "P1",
        "action": "cpu_execution",
        "state": "running",
    }
    assert "ioQueues" not in data


def test_io_queues_serialize_with_camel_case_keys():
    procs = [
        Process(1, "P1", cpu_time=3, arrival_time=0, io_operations=[IOOperation("disk", 1, 2)]),
        Process(2, "P2", cpu_time=2, arrival_time=0),
    ]
    data = schedule_fcfs_io(procs).to_dict()
    assert data["algorithm"] == "FCFS_IO"
    assert data["ioQueues"] == {"disk": {"inUse": None, "queue": [], "queueLength": 0}}
    assert data["statistics"]["totalIOOperations"] == 1
