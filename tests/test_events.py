"""Tests for event channels."""
from mapinteract.core.events import EventChannel, allow_all


class TestEventChannel:
    """Tests for EventChannel."""

    def test_emit_in_registration_order(self):
        """Test subscribers run once each, in order."""
        channel = EventChannel("test")
        calls = []
        channel.subscribe(lambda value: calls.append(("a", value)))
        channel.subscribe(lambda value: calls.append(("b", value)))

        channel.emit(1)

        assert calls == [("a", 1), ("b", 1)]

    def test_subscribe_is_idempotent(self):
        """Test re-adding the same callback is a no-op."""
        channel = EventChannel()
        calls = []

        def callback():
            calls.append(1)

        channel.subscribe(callback)
        channel.subscribe(callback)
        channel.emit()

        assert len(channel) == 1
        assert calls == [1]

    def test_unsubscribe_handle_removes_exactly_that_callback(self):
        """Test the returned handle removes only its own callback."""
        channel = EventChannel()

        def first():
            pass

        def second():
            pass

        remove_first = channel.subscribe(first)
        channel.subscribe(second)
        remove_first()

        assert channel.subscribers == (second,)

    def test_unsubscribe_unknown_callback(self):
        """Test removing a callback that was never added does nothing."""
        channel = EventChannel()
        channel.unsubscribe(lambda: None)
        assert len(channel) == 0

    def test_self_unsubscribe_during_dispatch(self):
        """Test a subscriber removing itself does not skip the next one."""
        channel = EventChannel()
        calls = []

        def once():
            calls.append("once")
            channel.unsubscribe(once)

        channel.subscribe(once)
        channel.subscribe(lambda: calls.append("always"))

        channel.emit()
        channel.emit()

        assert calls == ["once", "always", "always"]

    def test_subscribe_during_dispatch_waits_for_next_emit(self):
        """Test callbacks added mid-dispatch are not called in that dispatch."""
        channel = EventChannel()
        calls = []

        def late():
            calls.append("late")

        def adder():
            calls.append("adder")
            channel.subscribe(late)

        channel.subscribe(adder)
        channel.emit()
        assert calls == ["adder"]

        channel.emit()
        assert calls == ["adder", "adder", "late"]

    def test_vote_asks_everyone(self):
        """Test any True approves, and every voter is still consulted."""
        channel = EventChannel()
        asked = []
        channel.subscribe(lambda entity: asked.append("yes") or True)
        channel.subscribe(lambda entity: asked.append("no") or False)

        assert channel.vote("e") is True
        assert asked == ["yes", "no"]

    def test_vote_without_subscribers(self):
        """Test an empty channel never approves."""
        assert EventChannel().vote("e") is False

    def test_vote_requires_strict_true(self):
        """Test truthy non-bool results do not count as approval."""
        channel = EventChannel()
        channel.subscribe(lambda entity: "yes")
        assert channel.vote("e") is False


class TestAllowAll:
    """Tests for veto dispatch."""

    def test_none_means_no_opinion(self):
        """Test a None return does not veto."""
        channel = EventChannel()
        channel.subscribe(lambda: None)
        assert allow_all(channel) is True

    def test_first_false_stops(self):
        """Test dispatch stops at the first veto."""
        channel = EventChannel()
        calls = []
        channel.subscribe(lambda: calls.append(1) or False)
        channel.subscribe(lambda: calls.append(2) or True)

        assert allow_all(channel) is False
        assert calls == [1]
