"""Tests for ExpenseBoard.core.sync: event messages, the broadcast channel and the sync bus.

Delivery is queued on the Qt event loop, so receivers only see messages after
:func:`tests.base.process_events`.
"""
import unittest
from decimal import Decimal
from unittest.mock import patch

from ExpenseBoard.core import sync
from ExpenseBoard.core.model import UserProfile
from ExpenseBoard.status import status
from tests.base import BaseTestCase, SignalRecorder, make_expense, process_events


class MessageTests(unittest.TestCase):

    def test_add_message(self):
        expense = make_expense('25.5', 'Food', expense_id='42')
        message = sync.AddEvent(expense).to_message()
        self.assertEqual(message['type'], 'add')
        self.assertEqual(message['expense'], expense.to_dict())
        self.assertEqual(sync.parse_message(message), sync.AddEvent(expense))

    def test_delete_message(self):
        message = sync.DeleteEvent('42').to_message()
        self.assertEqual(message, {'type': 'delete', 'id': '42'})
        self.assertEqual(sync.parse_message(message), sync.DeleteEvent('42'))

    def test_profile_message(self):
        profile = UserProfile('Ann', Decimal(3000))
        message = sync.ProfileUpdateEvent(profile).to_message()
        self.assertEqual(message, {'type': 'updateUserInfo', 'userInfo': {'name': 'Ann', 'salary': 3000}})
        self.assertEqual(sync.parse_message(message), sync.ProfileUpdateEvent(profile))

    def test_invalid_messages(self):
        for message in (
                'add',
                {'type': 'rename'},
                {},
                {'type': 'delete'},
                {'type': 'add', 'expense': {'id': '1'}},
                {'type': 'updateUserInfo', 'userInfo': None},
        ):
            with self.subTest(message=message):
                with self.assertRaises(ValueError):
                    sync.parse_message(message)


class BroadcastChannelTests(BaseTestCase):

    def make_channel(self, name=None) -> sync.BroadcastChannel:
        channel = sync.BroadcastChannel(name or self.channel_name)
        self.addCleanup(channel.close)
        return channel

    def test_delivery_is_asynchronous(self):
        a, b = self.make_channel(), self.make_channel()
        received = SignalRecorder(b.messageReceived)

        self.assertEqual(a.post_message({'type': 'delete', 'id': '1'}), 1)
        self.assertEqual(received.count, 0)

        process_events()
        self.assertEqual(received.calls, [({'type': 'delete', 'id': '1'},)])

    def test_publisher_does_not_receive_its_own_messages(self):
        a, b = self.make_channel(), self.make_channel()
        own = SignalRecorder(a.messageReceived)

        a.post_message({'type': 'delete', 'id': '1'})
        process_events()

        self.assertEqual(own.count, 0)

    def test_fan_out(self):
        a = self.make_channel()
        receivers = [SignalRecorder(self.make_channel().messageReceived) for _ in range(3)]

        self.assertEqual(a.post_message({'type': 'delete', 'id': '1'}), 3)
        process_events()

        for r in receivers:
            self.assertEqual(r.count, 1)

    def test_order_is_preserved_per_publisher(self):
        a, b = self.make_channel(), self.make_channel()
        received = SignalRecorder(b.messageReceived)

        for i in range(20):
            a.post_message({'type': 'delete', 'id': str(i)})
        process_events()

        self.assertEqual([c[0]['id'] for c in received.calls], [str(i) for i in range(20)])

    def test_channels_are_isolated_by_name(self):
        a = self.make_channel()
        other = self.make_channel(f'{self.channel_name}_other')
        received = SignalRecorder(other.messageReceived)

        self.assertEqual(a.post_message({'type': 'delete', 'id': '1'}), 0)
        process_events()
        self.assertEqual(received.count, 0)

    def test_fractions_arrive_as_decimals(self):
        a, b = self.make_channel(), self.make_channel()
        received = SignalRecorder(b.messageReceived)

        a.post_message({'amount': 0.1})
        process_events()

        self.assertEqual(received.last[0]['amount'], Decimal('0.1'))

    def test_closed_channel_cannot_post(self):
        a = self.make_channel()
        a.close()
        self.assertTrue(a.closed)
        with self.assertRaises(status.SyncUnavailableException):
            a.post_message({'type': 'delete', 'id': '1'})

    def test_closed_channel_does_not_receive(self):
        a, b = self.make_channel(), self.make_channel()
        received = SignalRecorder(b.messageReceived)

        a.post_message({'type': 'delete', 'id': '1'})
        b.close()
        process_events()

        self.assertEqual(received.count, 0)
        self.assertEqual(a.post_message({'type': 'delete', 'id': '2'}), 0)


class SyncBusTests(BaseTestCase):

    def test_publish_and_subscribe(self):
        a, b = self.make_bus(), self.make_bus()
        events = []
        b.subscribe(events.append)

        expense = make_expense('9.99', 'Food')
        self.assertTrue(a.publish(sync.AddEvent(expense)))
        self.assertTrue(a.publish(sync.DeleteEvent(expense.id)))
        self.assertEqual(events, [])

        process_events()
        self.assertEqual(events, [sync.AddEvent(expense), sync.DeleteEvent(expense.id)])

    def test_subscribe_replaces_handler(self):
        a, b = self.make_bus(), self.make_bus()
        first, second = [], []
        b.subscribe(first.append)
        b.subscribe(second.append)

        a.publish(sync.DeleteEvent('1'))
        process_events()

        self.assertEqual(first, [])
        self.assertEqual(second, [sync.DeleteEvent('1')])

    def test_malformed_messages_are_dropped(self):
        a, b = self.make_bus(), self.make_bus()
        events = []
        b.subscribe(events.append)

        a.channel.post_message({'type': 'rename', 'id': '1'})
        a.channel.post_message({'type': 'add', 'expense': {'id': '1'}})
        a.publish(sync.DeleteEvent('2'))
        process_events()

        self.assertEqual(events, [sync.DeleteEvent('2')])

    def test_publish_on_closed_bus_does_not_raise(self):
        a = self.make_bus()
        a.close()
        self.assertFalse(a.publish(sync.DeleteEvent('1')))

    def test_publish_survives_transport_errors(self):
        a = self.make_bus()
        with patch.object(a.channel, 'post_message', side_effect=RuntimeError('channel deleted')):
            self.assertFalse(a.publish(sync.DeleteEvent('1')))
