"""Live-update integrator tests: ordering, stale drops, and interruption."""

from __future__ import annotations

import threading
import unittest

from lazyetcd.errors import StoreOperationError
from lazyetcd.session import Session
from lazyetcd.store import EventType, InMemoryStore, WatchEvent
from lazyetcd.view import ViewCallbacks
from lazyetcd.watch import LiveUpdateIntegrator, format_event


def _view(log: list[str], statuses: list[tuple[str, str]]) -> ViewCallbacks:
    def ignore(*_args) -> None:
        return None

    return ViewCallbacks(
        show_tree=ignore,
        show_entry=ignore,
        show_message=ignore,
        set_status=lambda text, level: statuses.append((text, level)),
        set_status_bar=ignore,
        open_form=ignore,
        close_form=ignore,
        open_confirm=ignore,
        close_confirm=ignore,
        open_watch=ignore,
        close_watch=ignore,
        append_watch_log=log.append,
        clear_watch_log=log.clear,
    )


class FormatEventTests(unittest.TestCase):
    def test_put_line(self) -> None:
        event = WatchEvent(EventType.PUT, "/a", value="1", mod_revision=7)
        self.assertEqual(format_event(event), "► PUT (rev 7)  /a = 1")

    def test_delete_line(self) -> None:
        event = WatchEvent(EventType.DELETE, "/a", mod_revision=9)
        self.assertEqual(format_event(event), "► DELETE (rev 9)  /a: key was deleted")


class IntegratorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryStore()
        self.session = Session()
        self.log: list[str] = []
        self.statuses: list[tuple[str, str]] = []
        self.integrator = LiveUpdateIntegrator(self.session, _view(self.log, self.statuses))

    def updates(self) -> list[str]:
        return [line for line in self.log if line.startswith("►")]

    def test_events_applied_in_delivery_order_on_drain(self) -> None:
        self.integrator.start(self.store, "/k")
        self.store.put("/k", "1")
        self.store.put("/k", "2")
        self.store.delete("/k")

        self.assertEqual(self.updates(), [])
        self.assertEqual(self.integrator.drain(), 3)

        self.assertEqual(
            self.updates(),
            [
                "► PUT (rev 1)  /k = 1",
                "► PUT (rev 2)  /k = 2",
                "► DELETE (rev 3)  /k: key was deleted",
            ],
        )

    def test_notifications_from_replaced_watch_are_dropped(self) -> None:
        other = InMemoryStore()
        self.integrator.start(self.store, "/k")
        self.store.put("/k", "queued-before-switch")
        self.integrator.start(other, "/m")
        other.put("/m", "fresh")

        self.integrator.drain()

        self.assertEqual(self.updates(), ["► PUT (rev 1)  /m = fresh"])
        self.assertEqual(self.integrator.key, "/m")

    def test_stop_drops_pending_and_returns_key(self) -> None:
        self.integrator.start(self.store, "/k")
        self.store.put("/k", "late")

        self.assertEqual(self.integrator.stop(), "/k")
        self.integrator.drain()

        self.assertEqual(self.updates(), [])
        self.assertFalse(self.integrator.active)
        self.assertIsNone(self.session.active_watch_cancel)
        self.assertEqual(self.store.watcher_count, 0)

    def test_interruption_reported_once_without_resubscribing(self) -> None:
        self.integrator.start(self.store, "/k")
        self.store.interrupt_watches(StoreOperationError("stream reset"))
        self.integrator._queue.put((self.integrator.generation, StoreOperationError("again")))

        self.integrator.drain()

        self.assertTrue(self.integrator.interrupted)
        self.assertEqual(self.log[-1], "Watch error: stream reset")
        self.assertEqual(len(self.statuses), 1)
        text, level = self.statuses[0]
        self.assertEqual(level, "error")
        self.assertIn("Watch interrupted for /k", text)
        self.assertIsNone(self.session.active_watch_cancel)
        self.assertEqual(self.store.watcher_count, 0)

    def test_events_from_another_thread_are_queued_not_applied(self) -> None:
        self.integrator.start(self.store, "/k", current_value="v0")
        writer = threading.Thread(target=self.store.put, args=("/k", "v1"))
        writer.start()
        writer.join()

        self.assertEqual(self.log, ["Started watching /k", "Current value: v0", "Waiting for changes..."])
        self.integrator.drain()
        self.assertEqual(self.updates(), ["► PUT (rev 1)  /k = v1"])

    def test_drain_limit_leaves_rest_for_next_tick(self) -> None:
        self.integrator.start(self.store, "/k")
        for idx in range(5):
            self.store.put("/k", str(idx))

        self.assertEqual(self.integrator.drain(limit=2), 2)
        self.assertEqual(self.integrator.drain(), 3)

    def test_prefix_watch_sees_nested_keys(self) -> None:
        self.integrator.start(self.store, "/svc/", prefix=True)
        self.store.put("/svc/a", "1")
        self.store.put("/other", "2")

        self.integrator.drain()

        self.assertEqual(self.updates(), ["► PUT (rev 1)  /svc/a = 1"])


if __name__ == "__main__":
    unittest.main()
