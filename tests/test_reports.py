import unittest

from sqlalchemy import event

from karaoke import booking_service, payment_service, report_service

from helpers import DatabaseTestCase, at


class TestReports(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        customer = self.add_customer()
        self.room = self.add_room("Room 1", price=100000)
        self.vip = self.add_room("VIP 1", price=250000, type="VIP")
        self.booking = booking_service.create_booking(self.db, customer.id, [
            self.line(self.room, at(10), at(12)),
            self.line(self.vip, at(10), at(12)),
        ])
        self.first, self.second = [line.id for line in self.booking.rooms]

    def pay(self, booking_room_id, amount, payment_date):
        payment_service.process_payment(self.db, {
            "booking_id": self.booking.id,
            "booking_room_id": booking_room_id,
            "amount": amount,
            "payment_date": payment_date,
        })

    def test_monthly_revenue_has_every_month(self):
        self.pay(self.first, 200000, at(12))
        self.pay(self.second, 500000, at(12, day=20))

        months = report_service.monthly_revenue(self.db, 2024)

        self.assertEqual(len(months), 12)
        self.assertEqual(months[0]["revenue"], 700000)
        self.assertEqual(months[0]["payments"], 2)
        self.assertEqual(months[1]["revenue"], 0)
        self.assertEqual(months[0]["period"], "2024-01")

    def test_quarterly_and_yearly_revenue(self):
        self.pay(self.first, 200000, at(12))
        self.pay(self.second, 500000, at(12).replace(year=2023, month=11))

        quarters = report_service.quarterly_revenue(self.db, 2023)
        self.assertEqual([q["revenue"] for q in quarters], [0, 0, 0, 500000])

        years = report_service.yearly_revenue(self.db)
        self.assertEqual([(y["year"], y["revenue"]) for y in years], [(2023, 500000), (2024, 200000)])

    def test_top_rooms_ranked_by_revenue(self):
        self.pay(self.first, 200000, at(12))
        self.pay(self.second, 500000, at(12))

        ranked = report_service.top_rooms(self.db, limit=1)

        self.assertEqual(len(ranked), 1)
        self.assertEqual(ranked[0]["room_name"], "VIP 1")
        self.assertEqual(ranked[0]["bookings"], 1)

    def test_rooms_without_payments_rank_by_bookings(self):
        spare = self.add_room("Room 2")
        self.pay(self.second, 500000, at(12))
        # Booking-level payments count as revenue but belong to no room
        payment_service.process_payment(self.db, {"booking_id": self.booking.id, "amount": 90000})

        ranked = report_service.top_rooms(self.db)

        self.assertEqual([room["room_id"] for room in ranked], [self.vip.id, self.room.id, spare.id])
        self.assertEqual([room["revenue"] for room in ranked], [500000, 0, 0])
        self.assertEqual(ranked[2]["bookings"], 0)

    def test_each_report_is_one_query(self):
        self.pay(self.first, 200000, at(12))
        self.pay(self.second, 500000, at(12, day=20))
        statements = []

        def record(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(self.engine, "before_cursor_execute", record)
        self.addCleanup(event.remove, self.engine, "before_cursor_execute", record)

        for report in (
            lambda: report_service.monthly_revenue(self.db, 2024),
            lambda: report_service.quarterly_revenue(self.db, 2024),
            lambda: report_service.yearly_revenue(self.db),
            lambda: report_service.top_rooms(self.db),
        ):
            statements.clear()
            report()
            self.assertEqual(len(statements), 1)
            self.assertIn("GROUP BY", statements[0])


if __name__ == '__main__':
    unittest.main()
