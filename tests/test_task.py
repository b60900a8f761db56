import pytest

from ustask.errors import SchedulerPanic
from ustask.task import (
    STACK_MAGIC,
    Scheduler,
    Sleep,
    TaskStatus,
    task_info,
)


def _noop(_):
    return None


def _interleaving_worker(log):
    def worker(tag):
        for i in range(3):
            log.append(f"{tag}{i}")
            yield

    return worker


def _yield_then_done(_):
    yield
    return "done"


def _blocker(sched, log):
    def blocker(_):
        sched.block(TaskStatus.BLOCKED)
        yield
        log.append("resumed")

    return blocker


def _sleeper(sched, stamps, hook):
    def sleeper(_):
        if hook:
            sched.enable_hook()
        stamps.append(sched.clock)
        yield Sleep(50)
        stamps.append(sched.clock)

    return sleeper


def _forever(_):
    while True:
        yield


def test_main_task_is_created_running():
    sched = Scheduler()
    main = sched.tid_to_task(1)
    assert main is sched.main_task
    assert main is sched.current
    assert main.name == "main"
    assert main.priority == 3
    assert main.status is TaskStatus.RUNNING
    assert main.stack_magic == STACK_MAGIC


def test_started_tasks_get_sequential_tids():
    sched = Scheduler()
    tasks = [sched.start("task", p, _noop) for p in (31, 28, 22, 10, 2)]
    assert [t.tid for t in tasks] == [2, 3, 4, 5, 6]
    assert [sched.tid_to_task(tid) for tid in range(2, 7)] == tasks
    assert list(sched.ready) == tasks
    assert all(t.ticks == t.priority for t in tasks)


def test_unknown_tid_gives_none():
    sched = Scheduler()
    assert sched.tid_to_task(4242) is None


def test_task_info_format():
    sched = Scheduler()
    info = task_info(sched.main_task)
    assert info.splitlines() == [
        "tid = 1",
        "name = main",
        "priority = 3",
        "stack_magic = 19991120",
    ]


def test_invalid_priority_rejected():
    sched = Scheduler()
    with pytest.raises(ValueError):
        sched.start("bad", 300, _noop)


def test_plain_tasks_run_in_start_order():
    sched = Scheduler()
    log = []
    for name in ("first", "second", "third"):
        sched.start(name, 5, log.append, name)
    sched.run(max_steps=200)
    assert sched.all_finished()
    assert log == ["first", "second", "third"]


def test_generator_tasks_interleave_by_time_slice():
    sched = Scheduler()
    log = []
    worker = _interleaving_worker(log)
    sched.start("a", 0, worker, "a")
    sched.start("b", 0, worker, "b")
    sched.run(max_steps=500)
    assert sched.all_finished()
    assert log == ["a0", "b0", "a1", "b1", "a2", "b2"]


def test_generator_return_value_is_kept():
    sched = Scheduler()
    task = sched.start("w", 1, _yield_then_done)
    sched.run(max_steps=200)
    assert task.result == "done"
    assert task.status is TaskStatus.DIED


def test_schedule_rotates_current_to_back():
    sched = Scheduler()
    a = sched.start("a", 4, _noop)
    b = sched.start("b", 4, _noop)
    main = sched.main_task
    nxt = sched.schedule()
    assert nxt is a
    assert sched.current is a
    assert a.status is TaskStatus.RUNNING
    assert list(sched.ready) == [b, main]
    assert main.status is TaskStatus.READY
    assert main.ticks == main.priority


def test_block_and_unblock():
    sched = Scheduler()
    log = []
    task = sched.start("blocker", 2, _blocker(sched, log))
    for _ in range(50):
        if task.status is TaskStatus.BLOCKED:
            break
        sched.step()
    assert task.status is TaskStatus.BLOCKED
    assert task not in sched.ready
    assert sched.current is not task

    sched.unblock(task)
    assert sched.ready[0] is task
    assert task.status is TaskStatus.READY

    sched.run(max_steps=200)
    assert log == ["resumed"]


def test_block_with_invalid_status_panics():
    sched = Scheduler()
    sched.start("a", 1, _noop)
    with pytest.raises(SchedulerPanic):
        sched.block(TaskStatus.READY)


def test_unblock_ready_task_panics():
    sched = Scheduler()
    task = sched.start("a", 1, _noop)
    with pytest.raises(SchedulerPanic):
        sched.unblock(task)


def test_exit_pools_task_and_reuses_tid():
    sched = Scheduler()
    old = sched.start("old", 3, _noop)
    old_tid = old.tid
    sched.exit(old)
    assert old.status is TaskStatus.DIED
    assert old not in sched.ready
    assert old not in sched.tasks
    assert list(sched.pool) == [old]
    assert sched.tid_to_task(old_tid) is None

    new = sched.start("new", 7, _noop)
    assert new is old
    assert new.tid == old_tid
    assert new.name == "new"
    assert new.status is TaskStatus.READY
    assert not sched.pool


def test_release_tid_frees_identifier():
    sched = Scheduler()
    task = sched.start("a", 1, _noop)
    tid = task.tid
    sched.release_tid(tid)
    other = sched.start("b", 1, _noop)
    assert other.tid == tid


def test_exit_running_task_with_nothing_ready_panics():
    sched = Scheduler()
    with pytest.raises(SchedulerPanic):
        sched.exit(sched.main_task)


def test_next_task_by_ticks_picks_most_ticks():
    sched = Scheduler()
    sched.start("low", 4, _noop)
    high = sched.start("high", 9, _noop)
    sched.start("mid", 7, _noop)
    chosen = sched.next_task_by_ticks()
    assert chosen is high
    assert chosen.status is TaskStatus.RUNNING
    assert high not in sched.ready
    assert sched.current is sched.main_task


def test_next_task_by_ticks_without_ready_task_panics():
    sched = Scheduler()
    with pytest.raises(SchedulerPanic):
        sched.next_task_by_ticks()


def test_clean_dead_tasks_shrinks_pool():
    sched = Scheduler()
    tasks = [sched.start("t", 1, _noop) for _ in range(20)]
    for task in tasks[:10]:
        sched.exit(task)
    before = len(sched.pool)
    cleaned = sched.clean_dead_tasks()
    assert cleaned >= 1
    assert before - len(sched.pool) == cleaned


def test_clean_dead_tasks_with_empty_pool():
    sched = Scheduler()
    sched.start("t", 1, _noop)
    assert sched.clean_dead_tasks() == 0


def test_hook_flag_follows_current_task():
    sched = Scheduler()
    assert sched.is_hooked() is False
    sched.enable_hook()
    assert sched.is_hooked() is True
    assert sched.main_task.is_hook is True


def test_hooked_sleep_yields_cpu_until_timer_fires():
    sched = Scheduler()
    stamps = []
    task = sched.start("sleeper", 2, _sleeper(sched, stamps, True))
    while not stamps:
        sched.step()
    assert task.is_collaborative_schedule
    assert sched.current is not task
    assert any(timer.param is task for timer in sched.wheel.pending())

    sched.run(max_steps=500)
    assert sched.all_finished()
    assert len(stamps) == 2
    assert stamps[1] - stamps[0] >= 50
    assert task.is_collaborative_schedule is False


def test_unhooked_sleep_stalls_clock():
    sched = Scheduler()
    stamps = []
    task = sched.start("sleeper", 20, _sleeper(sched, stamps, False))
    sched.run(max_steps=500)
    assert len(stamps) == 2
    assert stamps[1] - stamps[0] >= 50
    assert task.is_hook is False
    assert all(timer.param is not task for timer in sched.wheel.pending())


def test_negative_sleep_rejected():
    with pytest.raises(ValueError):
        Sleep(-1)


def test_run_respects_max_steps():
    sched = Scheduler()
    sched.start("spin", 1, _forever)
    assert sched.run(max_steps=25) == 25
    assert sched.all_finished() is False