import unittest
from datetime import timedelta
from unittest.mock import MagicMock, patch

from karaoke import booking_service, messages, models, payment_service, report_service
from karaoke.exceptions import ConflictError, NotFoundError, ValidationError

from helpers import DatabaseTestCase, at


class BookingTestCase(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.customer = self.add_customer()
        self.room = self.add_room("Room 5", price=100000)
        self.vip = self.add_room("VIP 1", price=250000, type="VIP")

    def book(self, *lines, **kwargs):
        return booking_service.create_booking(self.db, self.customer.id, list(lines), **kwargs)


class TestCreateBooking(BookingTestCase):

    def test_two_hours_at_hundred_thousand(self):
        booking = booking_service.create_booking(self.db, self.customer.id, [{
            "room_id": self.room.id,
            "start_time": "2024-01-01T10:00:00Z",
            "end_time": "2024-01-01T12:00:00Z",
            "price_per_hour": 100000,
        }])

        self.assertEqual(booking.total_amount, 200000)
        self.assertEqual(booking.status, "pending")
        self.assertEqual(len(booking.rooms), 1)
        self.assertEqual(booking.rooms[0].status, "pending")
        self.assertEqual(booking.rooms[0].payment_status, "unpaid")

    def test_partial_hour_bills_full_hour(self):
        booking = self.book(self.line(self.room, at(10), at(11, 15), price=100000))
        self.assertEqual(booking.total_amount, 200000)

    def test_multi_room_total_and_window(self):
        booking = self.book(
            self.line(self.room, at(10), at(12)),
            self.line(self.vip, at(11), at(14)),
        )

        self.assertEqual(booking.total_amount, 2 * 100000 + 3 * 250000)
        self.assertEqual(booking.start_time, at(10))
        self.assertEqual(booking.end_time, at(14))

    def test_price_defaults_to_room_price(self):
        booking = self.book(self.line(self.vip, at(10), at(11)))
        self.assertEqual(booking.rooms[0].price_per_hour, 250000)

    def test_explicit_total_kept(self):
        booking = self.book(self.line(self.room, at(10), at(12)), total_amount=150000)
        self.assertEqual(booking.total_amount, 150000)

    def test_overlapping_active_reservation_rejected(self):
        self.book(self.line(self.room, at(10), at(12)))

        with self.assertRaises(ConflictError):
            self.book(self.line(self.room, at(11), at(13)))
        self.assertEqual(self.count(models.Booking), 1)

    def test_back_to_back_reservations_allowed(self):
        self.book(self.line(self.room, at(10), at(11)))
        booking = self.book(self.line(self.room, at(11), at(12)))
        self.assertEqual(booking.status, "pending")

    def test_overlap_within_one_request_rejected(self):
        with self.assertRaises(ConflictError):
            self.book(
                self.line(self.room, at(10), at(12)),
                self.line(self.room, at(11), at(13)),
            )
        self.assertEqual(self.count(models.BookingRoom), 0)

    def test_no_overlapping_active_lines_after_successful_creates(self):
        windows = [(10, 12), (11, 13), (12, 14), (9, 10), (13, 15), (9, 11)]
        for start, end in windows:
            try:
                self.book(self.line(self.room, at(start), at(end)))
            except ConflictError:
                pass

        lines = self.db.query(models.BookingRoom).filter(
            models.BookingRoom.room_id == self.room.id,
            models.BookingRoom.status.in_(models.ACTIVE_STATUSES),
        ).all()
        for index, first in enumerate(lines):
            for second in lines[index + 1:]:
                self.assertFalse(
                    first.start_time < second.end_time and first.end_time > second.start_time
                )

    def test_validation_happens_before_database(self):
        with patch.object(booking_service, "_require_customer") as require_customer:
            with self.assertRaises(ValidationError):
                self.book(self.line(self.room, at(12), at(10)))
            with self.assertRaises(ValidationError):
                self.book()
            with self.assertRaises(ValidationError):
                self.book(self.line(self.room, at(10), at(12), price=-1))
            require_customer.assert_not_called()

    def test_unknown_room_and_customer(self):
        with self.assertRaises(NotFoundError):
            self.book({"room_id": 999, "start_time": at(10), "end_time": at(11)})
        with self.assertRaises(NotFoundError):
            booking_service.create_booking(self.db, 999, [self.line(self.room, at(10), at(11))])


class TestLineTransitions(BookingTestCase):

    def setUp(self):
        super().setUp()
        self.booking = self.book(
            self.line(self.room, at(10), at(12)),
            self.line(self.vip, at(10), at(12)),
        )
        self.first, self.second = [line.id for line in self.booking.rooms]

    def test_confirm_does_not_touch_siblings(self):
        line = booking_service.confirm_booking_room(self.db, self.first)

        self.assertEqual(line.status, "confirmed")
        self.assertEqual(booking_service.get_booking_room(self.db, self.second).status, "pending")
        self.assertEqual(booking_service.get_booking(self.db, self.booking.id).status, "pending")

    def test_confirm_after_cancel_rejected(self):
        booking_service.cancel_booking_room(self.db, self.first)

        with self.assertRaises(ConflictError):
            booking_service.confirm_booking_room(self.db, self.first)
        self.assertEqual(booking_service.get_booking_room(self.db, self.first).status, "cancelled")

    def test_cancel_terminal_line_rejected(self):
        booking_service.cancel_booking_room(self.db, self.first)
        with self.assertRaises(ConflictError):
            booking_service.cancel_booking_room(self.db, self.first)

    def test_missing_line(self):
        with self.assertRaises(NotFoundError):
            booking_service.confirm_booking_room(self.db, 999)

    def test_check_in_and_check_out(self):
        with self.assertRaises(ConflictError):
            booking_service.check_in_booking_room(self.db, self.first)

        booking_service.confirm_booking_room(self.db, self.first)
        line = booking_service.check_in_booking_room(self.db, self.first, at(10, 5))
        self.assertEqual(line.status, "confirmed")
        self.assertEqual(line.check_in_time, at(10, 5))

        line = booking_service.check_out_booking_room(self.db, self.first, at(11, 55))
        self.assertEqual(line.status, "completed")
        self.assertEqual(line.check_out_time, at(11, 55))


class TestBookingTransitions(BookingTestCase):

    def setUp(self):
        super().setUp()
        self.booking = self.book(
            self.line(self.room, at(10), at(12)),
            self.line(self.vip, at(10), at(12)),
        )

    def test_confirm_cascades_to_pending_lines(self):
        booking = booking_service.confirm_booking(self.db, self.booking.id)

        self.assertEqual(booking.status, "confirmed")
        self.assertEqual({line.status for line in booking.rooms}, {"confirmed"})

    def test_cancel_cascades_to_every_line_including_completed(self):
        booking_service.confirm_booking(self.db, self.booking.id)
        completed_line = self.booking.rooms[0].id
        booking_service.check_out_booking_room(self.db, completed_line, at(11))

        booking = booking_service.cancel_booking(self.db, self.booking.id)

        self.assertEqual(booking.status, "cancelled")
        self.assertEqual([line.status for line in booking.rooms], ["cancelled", "cancelled"])

    def test_cancel_from_terminal_rejected(self):
        booking_service.cancel_booking(self.db, self.booking.id)
        with self.assertRaises(ConflictError):
            booking_service.cancel_booking(self.db, self.booking.id)

    def test_complete_requires_confirmed(self):
        with self.assertRaises(ConflictError):
            booking_service.complete_booking(self.db, self.booking.id)

        booking_service.confirm_booking(self.db, self.booking.id)
        booking = booking_service.complete_booking(self.db, self.booking.id)

        self.assertEqual(booking.status, "completed")
        for line in booking.rooms:
            self.assertEqual(line.status, "completed")
            self.assertIsNotNone(line.check_out_time)

    def test_missing_booking(self):
        with self.assertRaises(NotFoundError):
            booking_service.confirm_booking(self.db, 999)


class TestCompleteWithPayment(BookingTestCase):

    def setUp(self):
        super().setUp()
        self.booking = self.book(self.line(self.room, at(10), at(12)))

    def test_requires_confirmed(self):
        with self.assertRaises(ConflictError):
            booking_service.complete_booking_with_payment(self.db, self.booking.id, at(12), 200000, "cash")
        self.assertEqual(self.count(models.Payment), 0)

    def test_late_checkout_recomputes_amount(self):
        booking_service.confirm_booking(self.db, self.booking.id)

        booking, payments = booking_service.complete_booking_with_payment(
            self.db, self.booking.id, end_time=at(12, 30), payment_method="card", notes="late"
        )

        self.assertEqual(booking.status, "completed")
        self.assertEqual(booking.end_time, at(12, 30))
        self.assertEqual(booking.total_amount, 300000)
        self.assertEqual(booking.rooms[0].status, "completed")
        self.assertEqual(booking.rooms[0].check_out_time, at(12, 30))
        self.assertEqual(len(payments), 1)
        payment = payments[0]
        self.assertEqual(payment.amount, 300000)
        self.assertEqual(payment.payment_method, "card")
        self.assertEqual(payment.booking_id, booking.id)
        self.assertEqual(payment.booking_room_id, booking.rooms[0].id)
        self.assertEqual(payment.customer_id, self.customer.id)

    def test_checkout_counts_as_payment_coverage(self):
        booking_service.confirm_booking(self.db, self.booking.id)

        booking_service.complete_booking_with_payment(self.db, self.booking.id, end_time=at(12))

        self.assertEqual(payment_service.coverage_summary(self.db, self.booking.id), {
            "total_rooms": 1, "paid_rooms": 1, "payment_status": "paid",
        })
        top = report_service.top_rooms(self.db, limit=1)[0]
        self.assertEqual(top["room_id"], self.room.id)
        self.assertEqual(top["revenue"], 200000)

    def test_external_amount_accepted(self):
        booking_service.confirm_booking(self.db, self.booking.id)

        booking, payments = booking_service.complete_booking_with_payment(
            self.db, self.booking.id, end_time=at(12), total_amount=180000, payment_method="cash"
        )

        self.assertEqual(booking.total_amount, 180000)
        self.assertEqual([payment.amount for payment in payments], [180000])

    def test_external_amount_split_by_line_subtotal(self):
        booking = self.book(
            self.line(self.room, at(14), at(16)),
            self.line(self.vip, at(14), at(16)),
        )
        booking_service.confirm_booking(self.db, booking.id)

        booking, payments = booking_service.complete_booking_with_payment(
            self.db, booking.id, end_time=at(16), total_amount=600000
        )

        # Subtotals 200000 and 500000
        amounts = {payment.booking_room_id: payment.amount for payment in payments}
        first, second = [line.id for line in booking.rooms]
        self.assertAlmostEqual(amounts[first], 600000 * 2 / 7, places=2)
        self.assertAlmostEqual(amounts[first] + amounts[second], 600000, places=2)
        self.assertEqual(payment_service.coverage_summary(self.db, booking.id)["paid_rooms"], 2)

    def test_already_paid_line_not_charged_again(self):
        booking = self.book(
            self.line(self.room, at(14), at(16)),
            self.line(self.vip, at(14), at(16)),
        )
        booking_service.confirm_booking(self.db, booking.id)
        first, second = [line.id for line in booking.rooms]
        payment_service.process_payment(
            self.db, {"booking_id": booking.id, "booking_room_id": first, "amount": 200000}
        )

        booking, payments = booking_service.complete_booking_with_payment(self.db, booking.id, end_time=at(16))

        self.assertEqual([(p.booking_room_id, p.amount) for p in payments], [(second, 500000)])
        self.assertEqual(booking.total_amount, 700000)

    def test_invalid_method_rejected(self):
        booking_service.confirm_booking(self.db, self.booking.id)
        with self.assertRaises(ValidationError):
            booking_service.complete_booking_with_payment(
                self.db, self.booking.id, end_time=at(12), payment_method="bitcoin"
            )


class TestSplitAmount(unittest.TestCase):

    def test_proportional_shares_sum_to_total(self):
        shares = booking_service.split_amount(100, [1, 1, 1])
        self.assertEqual(shares[:2], [33.33, 33.33])
        self.assertAlmostEqual(sum(shares), 100)

    def test_zero_weights_split_evenly(self):
        self.assertEqual(booking_service.split_amount(100, [0, 0]), [50, 50])
        self.assertEqual(booking_service.split_amount(100, []), [])


class TestExtendBooking(BookingTestCase):

    def test_extension_recalculates_total(self):
        booking = self.book(self.line(self.room, at(10), at(12)))

        booking = booking_service.extend_booking(self.db, booking.id, at(13, 30))

        self.assertEqual(booking.end_time, at(13, 30))
        self.assertEqual(booking.rooms[0].end_time, at(13, 30))
        self.assertEqual(booking.total_amount, 4 * 100000)

    def test_extension_must_move_end_later(self):
        booking = self.book(self.line(self.room, at(10), at(12)))
        with self.assertRaises(ValidationError):
            booking_service.extend_booking(self.db, booking.id, at(11))

    def test_extension_into_another_reservation_rejected(self):
        booking = self.book(self.line(self.room, at(10), at(12)))
        self.book(self.line(self.room, at(13), at(14)))

        with self.assertRaises(ConflictError):
            booking_service.extend_booking(self.db, booking.id, at(13, 30))
        self.assertEqual(booking_service.get_booking(self.db, booking.id).end_time, at(12))

    def test_terminal_booking_cannot_be_extended(self):
        booking = self.book(self.line(self.room, at(10), at(12)))
        booking_service.cancel_booking(self.db, booking.id)
        with self.assertRaises(ConflictError):
            booking_service.extend_booking(self.db, booking.id, at(13))


class TestStatusSweep(BookingTestCase):

    def test_sweep_completes_finished_confirmed_bookings(self):
        finished = self.book(self.line(self.room, at(10), at(12)))
        running = self.book(self.line(self.vip, at(10), at(15)))
        pending = self.book(self.line(self.room, at(12), at(13)))
        booking_service.confirm_booking(self.db, finished.id)
        booking_service.confirm_booking(self.db, running.id)

        moved = booking_service.update_booking_status_by_time(self.db, now=at(14))

        self.assertEqual(moved, 1)
        self.assertEqual(booking_service.get_booking(self.db, finished.id).status, "completed")
        self.assertEqual(booking_service.get_booking_room(self.db, finished.rooms[0].id).status, "completed")
        self.assertEqual(booking_service.get_booking(self.db, running.id).status, "confirmed")
        self.assertEqual(booking_service.get_booking(self.db, pending.id).status, "pending")

    def test_sweep_is_idempotent(self):
        booking = self.book(self.line(self.room, at(10), at(12)))
        booking_service.confirm_booking(self.db, booking.id)

        self.assertEqual(booking_service.update_booking_status_by_time(self.db, now=at(14)), 1)
        snapshot = [(b.id, b.status) for b in self.db.query(models.Booking).order_by(models.Booking.id)]

        self.assertEqual(booking_service.update_booking_status_by_time(self.db, now=at(14)), 0)
        again = [(b.id, b.status) for b in self.db.query(models.Booking).order_by(models.Booking.id)]
        self.assertEqual(snapshot, again)


class TestUpdateAndDelete(BookingTestCase):

    def test_update_notes_and_total(self):
        booking = self.book(self.line(self.room, at(10), at(12)))
        booking = booking_service.update_booking(self.db, booking.id, notes="Sinh nhật", total_amount=190000)

        self.assertEqual(booking.notes, "Sinh nhật")
        self.assertEqual(booking.total_amount, 190000)

        with self.assertRaises(ValidationError):
            booking_service.update_booking(self.db, booking.id)

    def test_delete_removes_lines_and_payments(self):
        booking = self.book(self.line(self.room, at(10), at(12)))
        self.db.add(models.Payment(
            booking_id=booking.id, booking_room_id=booking.rooms[0].id,
            amount=100000, payment_method="cash", payment_date=at(12),
        ))
        self.db.commit()

        booking_service.delete_booking(self.db, booking.id)

        self.assertEqual(self.count(models.Booking), 0)
        self.assertEqual(self.count(models.BookingRoom), 0)
        self.assertEqual(self.count(models.Payment), 0)


class TestRoomLocking(BookingTestCase):

    def watch(self):
        calls = MagicMock()
        lock = patch.object(booking_service, "lock_rooms", wraps=booking_service.lock_rooms)
        conflicts = patch.object(
            booking_service, "find_conflicting_room_ids", wraps=booking_service.find_conflicting_room_ids
        )
        calls.attach_mock(lock.start(), "lock_rooms")
        calls.attach_mock(conflicts.start(), "find_conflicting_room_ids")
        self.addCleanup(patch.stopall)
        return calls

    def test_rooms_locked_before_conflict_check_on_empty_window(self):
        calls = self.watch()

        self.book(self.line(self.vip, at(10), at(12)), self.line(self.room, at(10), at(12)))

        names = [name for name, _, _ in calls.mock_calls]
        self.assertEqual(names[0], "lock_rooms")
        self.assertIn("find_conflicting_room_ids", names[1:])
        self.assertEqual(sorted(calls.lock_rooms.call_args.args[1]), sorted([self.room.id, self.vip.id]))

    def test_extension_locks_extended_rooms(self):
        booking = self.book(self.line(self.room, at(10), at(12)))
        calls = self.watch()

        booking_service.extend_booking(self.db, booking.id, at(13))

        names = [name for name, _, _ in calls.mock_calls]
        self.assertEqual(names, ["lock_rooms", "find_conflicting_room_ids"])
        self.assertEqual(calls.lock_rooms.call_args.args[1], [self.room.id])

    def test_lock_rooms_returns_existing_rooms_by_id(self):
        rooms = booking_service.lock_rooms(self.db, [self.vip.id, self.room.id, self.vip.id, 999])
        self.assertEqual(sorted(rooms), sorted([self.room.id, self.vip.id]))
        self.assertEqual(booking_service.lock_rooms(self.db, []), {})


class TestBookingGroups(BookingTestCase):

    def create_group(self):
        return booking_service.create_booking_group(self.db, self.customer.id, [
            self.line(self.room, at(18), at(20)),
            self.line(self.vip, at(18), at(19)),
        ])

    def test_group_creates_one_booking_per_room(self):
        group = self.create_group()

        self.assertEqual(len(group.bookings), 2)
        self.assertEqual(group.total_amount, 200000 + 250000)
        self.assertEqual({b.booking_group_id for b in group.bookings}, {group.id})

    def test_group_conflict_rolls_back_everything(self):
        self.book(self.line(self.vip, at(18, 30), at(19, 30)))

        with self.assertRaises(ConflictError):
            self.create_group()
        self.assertEqual(self.count(models.BookingGroup), 0)
        self.assertEqual(self.count(models.Booking), 1)

    def test_complete_group_cascades_and_records_group_payment(self):
        group = self.create_group()
        for booking in group.bookings:
            booking_service.confirm_booking(self.db, booking.id)

        group, payment = booking_service.complete_booking_group(
            self.db, group.id, end_time=at(20), total_amount=450000, payment_method="transfer"
        )

        self.assertEqual(group.status, "completed")
        self.assertEqual(group.payment_status, "paid")
        self.assertEqual({b.status for b in group.bookings}, {"completed"})
        self.assertEqual(payment.booking_group_id, group.id)
        self.assertIsNone(payment.booking_id)
        self.assertEqual(payment.amount, 450000)

    def test_group_without_customer_reports_missing_fields(self):
        with self.assertRaises(ValidationError) as ctx:
            booking_service.create_booking_group(self.db, None, [self.line(self.room, at(18), at(20))])
        self.assertEqual(ctx.exception.message, messages.MISSING_REQUIRED_FIELDS)

    def test_complete_group_requires_payment_details(self):
        group = self.create_group()
        with self.assertRaises(ValidationError):
            booking_service.complete_booking_group(self.db, group.id, end_time=None, total_amount=1)

    def test_cancel_group_cascades(self):
        group = self.create_group()

        group = booking_service.cancel_booking_group(self.db, group.id)

        self.assertEqual(group.status, "cancelled")
        for booking in group.bookings:
            self.assertEqual(booking.status, "cancelled")
            self.assertEqual({line.status for line in booking.rooms}, {"cancelled"})


if __name__ == '__main__':
    unittest.main()
