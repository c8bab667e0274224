import threading
import unittest

from tartan_client.events import END_OF_SESSION, EventEntry, EventQueue
from tartan_client.repl import parse_command, print_events


class ReplCommandTests(unittest.TestCase):
    def test_parse_command_splits_arguments(self):
        self.assertEqual(parse_command("login alice secret"), ("login", ["alice", "secret"]))
        self.assertEqual(parse_command("  START "), ("start", []))

    def test_parse_command_rejects_wrong_arity(self):
        with self.assertRaisesRegex(ValueError, "takes 2"):
            parse_command("login alice")

    def test_parse_command_rejects_unknown(self):
        with self.assertRaisesRegex(ValueError, "Unknown command"):
            parse_command("dance")

    def test_print_events_stops_at_end_of_session(self):
        events = EventQueue()
        events.produce(EventEntry("tartan-receiver", "The dragon sleeps."))
        events.produce(EventEntry("tartan-receiver", END_OF_SESSION))
        session_over = threading.Event()

        print_events(events, session_over)

        self.assertTrue(session_over.is_set())


if __name__ == "__main__":
    unittest.main()
