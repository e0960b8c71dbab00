"""Tests for the event bus and lifetime-bound subscriptions."""

import asyncio

import pytest

from starcatalog.core.events import EventBus, Listener, stop_listening


class Emitter:
    def __init__(self):
        self.events = EventBus(owner=self)


class TestEventBus:

    def test_on_does_not_fire_synchronously(self, recorder):
        bus = EventBus()
        bus.on("sync", recorder)
        assert recorder.count == 0

    def test_trigger_runs_callbacks_in_registration_order(self):
        bus = EventBus()
        order = []
        bus.on("sync", lambda: order.append("first"))
        bus.on("sync", lambda: order.append("second"))
        bus.on("sync", lambda: order.append("third"))

        delivered = bus.trigger("sync")

        assert order == ["first", "second", "third"]
        assert delivered == 3

    def test_trigger_passes_arguments(self, recorder):
        bus = EventBus()
        bus.on("change", recorder)
        bus.trigger("change", "tt1", {"Title": "x"})
        assert recorder.calls == [("tt1", {"Title": "x"})]

    def test_raising_callback_does_not_stop_dispatch(self, recorder, caplog):
        bus = EventBus()

        def broken(*args):
            raise RuntimeError("boom")

        bus.on("sync", broken)
        bus.on("sync", recorder)

        bus.trigger("sync", 1)

        assert recorder.calls == [(1,)]
        assert "raised" in caplog.text

    def test_once_fires_a_single_time(self, recorder):
        bus = EventBus()
        bus.once("sync", recorder)
        bus.trigger("sync")
        bus.trigger("sync")
        assert recorder.count == 1
        assert bus.subscriber_count == 0

    def test_once_is_removed_even_when_it_raises(self):
        bus = EventBus()
        bus.once("sync", lambda: 1 / 0)
        bus.trigger("sync")
        assert bus.listeners("sync") == []

    def test_subscription_cancel(self, recorder):
        bus = EventBus()
        sub = bus.on("sync", recorder)
        assert sub.cancel() is True
        assert sub.cancel() is False
        bus.trigger("sync")
        assert recorder.count == 0

    def test_cancel_during_dispatch_skips_later_callback(self, recorder):
        bus = EventBus()
        later = None

        def first():
            later.cancel()

        bus.on("sync", first)
        later = bus.on("sync", recorder)

        bus.trigger("sync")

        assert recorder.count == 0

    def test_cancel_keeps_remaining_order(self):
        bus = EventBus()
        order = []
        subs = [bus.on("sync", lambda i=i: order.append(i)) for i in range(5)]

        subs[1].cancel()
        subs[3].cancel()
        bus.trigger("sync")

        assert order == [0, 2, 4]
        assert bus.listeners("sync") == [subs[0], subs[2], subs[4]]

    def test_cancelling_last_subscription_drops_the_event(self):
        bus = EventBus()
        sub = bus.on("sync", lambda: None)
        sub.cancel()
        assert "sync" not in bus._subscriptions
        assert bus.subscriber_count == 0

    def test_off_by_name_and_callback(self, recorder):
        bus = EventBus()
        other = []
        bus.on("sync", recorder)
        bus.on("sync", other.append)
        bus.on("change", recorder)

        assert bus.off("sync", recorder) == 1
        bus.trigger("sync", "x")
        bus.trigger("change")

        assert other == ["x"]
        assert recorder.calls == [()]

    def test_off_without_arguments_clears_everything(self, recorder):
        bus = EventBus()
        bus.on("a", recorder)
        bus.on("b", recorder)
        assert bus.off() == 2
        assert bus.subscriber_count == 0

    def test_all_receives_every_event_with_its_name(self, recorder):
        bus = EventBus()
        bus.on("all", recorder)
        bus.trigger("sync", 1)
        bus.trigger("change", 2, 3)
        assert recorder.calls == [("sync", 1), ("change", 2, 3)]

    def test_non_callable_is_rejected(self):
        with pytest.raises(TypeError):
            EventBus().on("sync", "not callable")

    def test_subscriber_must_be_a_listener(self, recorder):
        with pytest.raises(TypeError):
            EventBus().on("sync", recorder, subscriber=object())

    @pytest.mark.asyncio
    async def test_async_callbacks_are_scheduled(self):
        bus = EventBus()
        seen = []

        async def handler(value):
            await asyncio.sleep(0)
            seen.append(value)

        bus.on("sync", handler)
        bus.trigger("sync", "a")

        assert seen == []
        assert bus.pending == 1
        await bus.wait_pending()
        assert seen == ["a"]
        assert bus.pending == 0

    def test_async_callback_without_loop_is_dropped(self, caplog):
        bus = EventBus()

        async def handler():
            pass

        bus.on("sync", handler)
        bus.trigger("sync")
        assert "no running event loop" in caplog.text


class TestListener:

    def test_stop_listening_releases_every_emitter(self, recorder):
        view = Listener()
        first, second = Emitter(), Emitter()
        view.listen_to(first, "sync", recorder)
        view.listen_to(first, "change", recorder)
        view.listen_to(second.events, "sync", recorder)
        assert view.listening_count == 3

        released = stop_listening(view)

        assert released == 3
        assert view.listening_count == 0
        assert first.events.subscriber_count == 0
        assert second.events.subscriber_count == 0
        first.events.trigger("sync")
        second.events.trigger("sync")
        assert recorder.count == 0

    def test_stop_listening_to_one_emitter(self, recorder):
        view = Listener()
        first, second = Emitter(), Emitter()
        view.listen_to(first, "sync", recorder)
        view.listen_to(second, "sync", recorder)

        assert view.stop_listening(first) == 1

        first.events.trigger("sync")
        second.events.trigger("sync")
        assert recorder.count == 1

    def test_direct_subscriptions_survive_listener_teardown(self, recorder):
        view = Listener()
        emitter = Emitter()
        emitter.events.on("sync", recorder)
        view.listen_to(emitter, "sync", lambda: None)

        view.stop_listening()
        emitter.events.trigger("sync")

        assert recorder.count == 1

    def test_cancelled_subscription_is_forgotten_by_listener(self, recorder):
        view = Listener()
        sub = view.listen_to(Emitter(), "sync", recorder)
        sub.cancel()
        assert view.listening_count == 0

    def test_listen_to_once(self, recorder):
        view = Listener()
        emitter = Emitter()
        view.listen_to_once(emitter, "sync", recorder)
        emitter.events.trigger("sync")
        emitter.events.trigger("sync")
        assert recorder.count == 1
        assert view.listening_count == 0

    def test_listen_to_requires_an_event_bus(self, recorder):
        with pytest.raises(TypeError):
            Listener().listen_to(object(), "sync", recorder)
