"""Tests for observer registries."""

from gst_video_stream.events import Observers


class TestObservers:
    """Test subscription and fan-out."""

    def test_emit_in_subscription_order(self):
        """Test callbacks run in the order they were added."""
        observers = Observers("test")
        calls = []
        observers.subscribe(lambda value: calls.append(("first", value)))
        observers.subscribe(lambda value: calls.append(("second", value)))

        observers.emit(7)

        assert calls == [("first", 7), ("second", 7)]

    def test_subscribe_works_as_decorator(self):
        """Test subscribe returns the callback."""
        observers = Observers("test")

        @observers.subscribe
        def handler():
            pass

        assert handler in observers
        assert len(observers) == 1

    def test_unsubscribe(self):
        """Test removed callbacks are not called."""
        observers = Observers("test")
        calls = []
        handler = observers.subscribe(lambda: calls.append(1))

        assert observers.unsubscribe(handler) is True
        assert observers.unsubscribe(handler) is False

        observers.emit()
        assert calls == []

    def test_failing_observer_does_not_stop_fanout(self, caplog):
        """Test an exception is logged and later observers still run."""
        observers = Observers("test")
        calls = []

        def broken():
            raise RuntimeError("boom")

        observers.subscribe(broken)
        observers.subscribe(lambda: calls.append("after"))

        observers.emit()

        assert calls == ["after"]
        assert "boom" in caplog.text

    def test_unsubscribe_during_emit(self):
        """Test a callback can remove itself while being called."""
        observers = Observers("test")
        calls = []

        def once():
            calls.append("once")
            observers.unsubscribe(once)

        observers.subscribe(once)
        observers.emit()
        observers.emit()

        assert calls == ["once"]
        assert len(observers) == 0

    def test_clear(self):
        """Test clear removes everything."""
        observers = Observers("test")
        observers.subscribe(lambda: None)
        observers.subscribe(lambda: None)

        observers.clear()

        assert len(observers) == 0
