"""
Tests for the open queue, the result stack and the completed set.

Run with: pytest tests/test_work_queues.py -v
"""

import logging

import pytest

from scfg.translator import DerivationItem
from scfg.work_queues import CompletedSet, DedupQueue, ResultStack


class TestDedupQueue:
    """Test the FIFO queue with permanent memory."""

    def test_fifo_and_permanent_memory(self):
        """Test that removed items can never be added again."""
        queue = DedupQueue()

        assert queue.add("a")
        assert queue.add("b")
        assert not queue.add("a")
        assert queue.remove() == "a"
        assert queue.add("c")
        assert not queue.add("a")
        assert queue.remove() == "b"
        assert queue.remove() == "c"
        assert not queue

    def test_remove_from_empty_queue(self):
        """Test that removing from an empty queue raises."""
        with pytest.raises(IndexError):
            DedupQueue().remove()

    def test_identity_key(self):
        """Test deduplication by a key function."""
        queue = DedupQueue(key=lambda item: item.key)
        item = DerivationItem("take", "<verb>", "take", "GET")

        assert queue.add(item)
        assert not queue.add(item.with_assignment(()))
        assert len(queue) == 1

    def test_trace_logger(self, caplog):
        """Test that additions are traced on the given logger."""
        trace = logging.getLogger("scfg.tests.queue")
        caplog.set_level(logging.DEBUG, logger="scfg.tests.queue")
        queue = DedupQueue(trace=trace)

        queue.add("a")
        queue.add("a")

        messages = [record.getMessage() for record in caplog.records]
        assert "Open += a" in messages
        assert "Open already contains a" in messages


class TestResultStack:
    """Test the LIFO result stack."""

    def test_lifo(self):
        """Test that the last pushed item is popped first."""
        stack = ResultStack()
        stack.push("a")
        stack.push("b")

        assert len(stack) == 2
        assert stack.pop() == "b"
        assert stack.pop() == "a"
        assert not stack

    def test_duplicates_allowed(self):
        """Test that the stack keeps duplicates."""
        stack = ResultStack()
        stack.push("a")
        stack.push("a")

        assert len(stack) == 2

    def test_pop_from_empty_stack(self):
        """Test that popping an empty stack raises."""
        with pytest.raises(IndexError):
            ResultStack().pop()


class TestCompletedSet:
    """Test the set of completed derivations."""

    def test_add_and_lookup(self):
        """Test indexing completed items by subtext and variable."""
        completed = CompletedSet()
        take = DerivationItem("take", "<verb>", "take", "GET")
        grab = DerivationItem("take", "<verb>", "take", "GRAB")

        assert completed.add(take)
        assert completed.add(grab)
        assert not completed.add(take)

        assert len(completed) == 2
        assert take in completed
        assert set(completed.lookup("take", "<verb>")) == {take, grab}
        assert completed.lookup("take", "<object>") == []
        assert set(completed) == {take, grab}

    def test_lookup_returns_copy(self):
        """Test that callers cannot change the index through lookup."""
        completed = CompletedSet()
        completed.add(DerivationItem("a", "<root>", "a", "b"))

        completed.lookup("a", "<root>").clear()

        assert len(completed.lookup("a", "<root>")) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
