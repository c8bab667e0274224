import threading
import time
import unittest

from tartan_client.mailbox import MailboxBusyError, ResponseMailbox, ResponseTimeout


class MailboxTests(unittest.TestCase):
    def test_delivered_value_is_read_once(self):
        mailbox = ResponseMailbox()
        mailbox.deliver("X")
        self.assertEqual(mailbox.await_result(), "X")
        with self.assertRaises(ResponseTimeout):
            mailbox.await_result(timeout=0.05)

    def test_waiter_is_woken_by_delivery(self):
        mailbox = ResponseMailbox()
        results = []
        waiter = threading.Thread(target=lambda: results.append(mailbox.await_result(timeout=2)))
        waiter.start()
        time.sleep(0.05)
        mailbox.deliver("SUCCESS")
        waiter.join(timeout=2)
        self.assertEqual(results, ["SUCCESS"])

    def test_second_outstanding_request_is_rejected(self):
        mailbox = ResponseMailbox()
        mailbox.begin_request()
        with self.assertRaises(MailboxBusyError):
            mailbox.begin_request()
        mailbox.deliver("SUCCESS")
        self.assertEqual(mailbox.await_result(), "SUCCESS")
        mailbox.begin_request()

    def test_second_waiter_is_rejected(self):
        mailbox = ResponseMailbox()
        waiter = threading.Thread(target=lambda: mailbox.await_result(timeout=1))
        waiter.start()
        time.sleep(0.05)
        with self.assertRaises(MailboxBusyError):
            mailbox.await_result(timeout=0.1)
        mailbox.deliver("done")
        waiter.join(timeout=2)

    def test_begin_request_discards_stale_value(self):
        mailbox = ResponseMailbox()
        mailbox.deliver("late")
        mailbox.begin_request()
        self.assertFalse(mailbox.pending)

    def test_unread_value_is_overwritten(self):
        mailbox = ResponseMailbox()
        mailbox.deliver("first")
        mailbox.deliver("second")
        self.assertEqual(mailbox.await_result(), "second")


if __name__ == "__main__":
    unittest.main()
