import pytest

from ustask.errors import SchedulerPanic
from ustask.ioqueue import DEFAULT_SIZE, IOQueue
from ustask.task import Scheduler, TaskStatus


def _noop(arg):
    return None


def test_new_queue_is_empty():
    queue = IOQueue(Scheduler())
    assert queue.empty()
    assert not queue.full()
    assert len(queue) == 0
    assert queue.size == DEFAULT_SIZE


def test_rejects_tiny_size():
    with pytest.raises(ValueError):
        IOQueue(Scheduler(), 1)


def test_fifo_order():
    queue = IOQueue(Scheduler(), 8)
    for ch in "abc":
        assert queue.putchar(ch) is True
    assert len(queue) == 3
    assert [queue.getchar() for _ in range(3)] == list("abc")
    assert queue.empty()


def test_capacity_is_size_minus_one():
    queue = IOQueue(Scheduler(), 4)
    for ch in "xyz":
        queue.putchar(ch)
    assert queue.full()
    assert len(queue) == queue.size - 1


def test_wraparound_keeps_length_and_order():
    queue = IOQueue(Scheduler(), 4)
    for ch in "abc":
        queue.putchar(ch)
    queue.getchar()
    queue.getchar()
    queue.putchar("d")
    queue.putchar("e")
    assert queue.head < queue.tail
    assert len(queue) == 3
    assert [queue.getchar() for _ in range(3)] == ["c", "d", "e"]


def test_putchar_rejects_multiple_characters():
    queue = IOQueue(Scheduler())
    with pytest.raises(ValueError):
        queue.putchar("ab")


def test_empty_get_without_ready_task_panics():
    queue = IOQueue(Scheduler())
    with pytest.raises(SchedulerPanic):
        queue.getchar()


def test_consumer_parked_and_woken_by_producer():
    scheduler = Scheduler()
    worker = scheduler.start("worker", 1, _noop)
    main = scheduler.current
    queue = IOQueue(scheduler, 4)
    assert queue.getchar() is None
    assert queue.consumer is main
    assert main.status is TaskStatus.BLOCKED
    assert scheduler.current is worker
    assert queue.putchar("z") is True
    assert queue.consumer is None
    assert main.status is TaskStatus.READY
    assert scheduler.ready[0] is main


def test_second_consumer_panics():
    scheduler = Scheduler()
    scheduler.start("worker", 1, _noop)
    queue = IOQueue(scheduler, 4)
    queue.getchar()
    with pytest.raises(SchedulerPanic):
        queue.getchar()


def test_producer_parked_and_woken_by_consumer():
    scheduler = Scheduler()
    worker = scheduler.start("worker", 1, _noop)
    main = scheduler.current
    queue = IOQueue(scheduler, 3)
    queue.putchar("a")
    queue.putchar("b")
    assert queue.putchar("c") is False
    assert queue.producer is main
    assert scheduler.current is worker
    assert queue.getchar() == "a"
    assert queue.producer is None
    assert main.status is TaskStatus.READY