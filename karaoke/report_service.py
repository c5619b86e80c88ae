"""
Revenue reports, aggregated in the database from payments by payment date
"""
from datetime import datetime
from typing import List

from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from . import models


def _revenue_by(db: Session, period, *filters):
    """{period value: (revenue, payment count)} grouped in SQL"""
    period = period.label("period")
    rows = db.query(
        period,
        func.coalesce(func.sum(models.Payment.amount), 0),
        func.count(models.Payment.id),
    ).filter(*filters).group_by(period).all()
    return {int(value): (float(revenue), count) for value, revenue, count in rows}


def _in_year(year: int):
    return (
        models.Payment.payment_date >= datetime(year, 1, 1),
        models.Payment.payment_date < datetime(year + 1, 1, 1),
    )


def monthly_revenue(db: Session, year: int) -> List[dict]:
    months = _revenue_by(db, extract("month", models.Payment.payment_date), *_in_year(year))

    result = []
    for month in range(1, 13):
        revenue, count = months.get(month, (0.0, 0))
        result.append({
            "period": f"{year}-{month:02d}", "year": year, "month": month,
            "revenue": revenue, "payments": count,
        })
    return result


def quarterly_revenue(db: Session, year: int) -> List[dict]:
    # Not every dialect extracts quarters, so months are folded here
    months = _revenue_by(db, extract("month", models.Payment.payment_date), *_in_year(year))

    result = []
    for quarter in range(1, 5):
        buckets = [months.get(month, (0.0, 0)) for month in range(quarter * 3 - 2, quarter * 3 + 1)]
        result.append({
            "period": f"{year}-Q{quarter}", "year": year, "quarter": quarter,
            "revenue": sum(revenue for revenue, _ in buckets),
            "payments": sum(count for _, count in buckets),
        })
    return result


def yearly_revenue(db: Session) -> List[dict]:
    years = _revenue_by(db, extract("year", models.Payment.payment_date))

    return [
        {"period": str(year), "year": year, "revenue": years[year][0], "payments": years[year][1]}
        for year in sorted(years)
    ]


def top_rooms(db: Session, limit: int = 5) -> List[dict]:
    """Rooms by revenue from line payments, then by number of bookings"""
    revenue = db.query(
        models.BookingRoom.room_id.label("room_id"),
        func.sum(models.Payment.amount).label("revenue"),
    ).join(
        models.Payment, models.Payment.booking_room_id == models.BookingRoom.id
    ).group_by(models.BookingRoom.room_id).subquery()

    bookings = db.query(
        models.BookingRoom.room_id.label("room_id"),
        func.count(models.BookingRoom.id).label("bookings"),
    ).filter(
        models.BookingRoom.status != models.BookingStatus.CANCELLED.value
    ).group_by(models.BookingRoom.room_id).subquery()

    room_revenue = func.coalesce(revenue.c.revenue, 0)
    room_bookings = func.coalesce(bookings.c.bookings, 0)
    rows = db.query(
        models.Room.id, models.Room.name, models.Room.type, room_revenue, room_bookings,
    ).outerjoin(
        revenue, revenue.c.room_id == models.Room.id
    ).outerjoin(
        bookings, bookings.c.room_id == models.Room.id
    ).order_by(
        room_revenue.desc(), room_bookings.desc(), models.Room.name
    ).limit(limit).all()

    return [
        {"room_id": room_id, "room_name": name, "room_type": room_type,
         "revenue": float(total), "bookings": count}
        for room_id, name, room_type, total, count in rows
    ]
