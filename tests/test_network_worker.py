import threading
import unittest

from backend.network_worker import NetworkWorker


class TestNetworkWorker(unittest.TestCase):
    def setUp(self):
        # One thread, held busy so later submissions stay queued
        self.worker = NetworkWorker(max_workers=1)
        self.gate = threading.Event()
        self.worker.submit("busy", self.gate.wait, 5)

    def tearDown(self):
        self.gate.set()
        self.worker.shutdown(wait=True)

    def test_operation_ids_are_unique(self):
        ids = {self.worker.next_operation_id("mutation") for _ in range(50)}
        self.assertEqual(len(ids), 50)
        self.assertTrue(all(i.startswith("mutation-") for i in ids))

    def test_queued_mutations_are_never_dropped(self):
        first = self.worker.submit(self.worker.next_operation_id("mutation"), lambda: "first")
        second = self.worker.submit(self.worker.next_operation_id("mutation"), lambda: "second")

        self.assertFalse(first.cancelled())
        self.gate.set()
        self.assertEqual(first.result(timeout=5), "first")
        self.assertEqual(second.result(timeout=5), "second")

    def test_same_id_without_supersede_keeps_both(self):
        first = self.worker.submit("participants-ev-1", lambda: 1)
        second = self.worker.submit("participants-ev-1", lambda: 2)

        self.gate.set()
        self.assertEqual(first.result(timeout=5), 1)
        self.assertEqual(second.result(timeout=5), 2)

    def test_supersede_cancels_queued_fetch(self):
        stale = self.worker.submit("fetch-events", lambda: "stale", supersede=True)
        latest = self.worker.submit("fetch-events", lambda: "latest", supersede=True)

        self.assertTrue(stale.cancelled())
        self.assertTrue(self.worker.is_pending("fetch-events"))
        self.gate.set()
        self.assertEqual(latest.result(timeout=5), "latest")


if __name__ == "__main__":
    unittest.main(verbosity=2)
