from newtbridge.state.queue import CommandQueue


def test_enqueue_runs_first_item_immediately() -> None:
    executed: list[str] = []
    queue: CommandQueue[str] = CommandQueue(executed.append)

    queue.enqueue("a")
    queue.enqueue("b")

    assert executed == ["a"]
    assert queue.peek() == "a"
    assert len(queue) == 2


def test_advance_runs_next_in_fifo_order() -> None:
    executed: list[str] = []
    queue: CommandQueue[str] = CommandQueue(executed.append)
    for item in ("a", "b", "c"):
        queue.enqueue(item)

    queue.advance()
    queue.advance()

    assert executed == ["a", "b", "c"]
    assert queue.peek() == "c"


def test_advance_on_empty_queue_is_noop() -> None:
    queue: CommandQueue[str] = CommandQueue()

    queue.advance()

    assert not queue
    assert queue.peek() is None


def test_advance_ignores_stale_finished_item() -> None:
    executed: list[str] = []
    queue: CommandQueue[str] = CommandQueue(executed.append)
    queue.enqueue("a")
    queue.clear()
    queue.enqueue("b")

    queue.advance("a")

    assert queue.peek() == "b"
    assert executed == ["a", "b"]


def test_handler_may_fail_fast_by_advancing() -> None:
    executed: list[str] = []
    queue: CommandQueue[str] = CommandQueue()

    def _execute(item: str) -> None:
        executed.append(item)
        if item.startswith("bad"):
            queue.advance(item)

    queue.execute_handler = _execute
    queue.enqueue("good")
    queue.enqueue("bad-1")
    queue.enqueue("bad-2")
    queue.enqueue("last")

    queue.advance("good")

    assert executed == ["good", "bad-1", "bad-2", "last"]
    assert list(queue) == ["last"]


def test_discard_only_removes_waiting_items() -> None:
    queue: CommandQueue[str] = CommandQueue()
    queue.enqueue("head")
    queue.enqueue("waiting")

    assert queue.discard("head") is False
    assert queue.discard("waiting") is True
    assert queue.discard("missing") is False
    assert list(queue) == ["head"]
