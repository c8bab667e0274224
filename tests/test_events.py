import threading
import time
import unittest

from tartan_client.events import EventEntry, EventProducer, EventQueue


class EventQueueTests(unittest.TestCase):
    def test_fifo_with_thread_label(self):
        events = EventQueue()
        producer = EventProducer(events)
        self.assertTrue(producer.produce("one"))
        self.assertTrue(producer.produce("two"))
        label = threading.current_thread().name
        self.assertEqual(events.consume(timeout=0), EventEntry(label, "one"))
        self.assertEqual(events.consume(timeout=0), EventEntry(label, "two"))
        self.assertIsNone(events.consume(timeout=0.01))

    def test_closed_queue_refuses_and_drains(self):
        events = EventQueue()
        events.produce(EventEntry("reader", "kept"))
        events.close()
        self.assertTrue(events.closed)
        self.assertFalse(events.produce(EventEntry("reader", "refused")))
        self.assertEqual(events.consume().text, "kept")
        self.assertIsNone(events.consume())
        self.assertIsNone(events.consume())

    def test_close_wakes_blocked_consumer(self):
        events = EventQueue()
        results = []
        consumer = threading.Thread(target=lambda: results.append(events.consume()))
        consumer.start()
        time.sleep(0.05)
        events.close()
        consumer.join(timeout=2)
        self.assertFalse(consumer.is_alive())
        self.assertEqual(results, [None])


if __name__ == "__main__":
    unittest.main()
