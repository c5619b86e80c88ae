import unittest
from datetime import datetime

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from karaoke import models
from karaoke.database import Base


def at(hour, minute=0, day=1):
    return datetime(2024, 1, day, hour, minute)


class DatabaseTestCase(unittest.TestCase):
    """Fresh in-memory database per test"""

    def setUp(self):
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=self.engine)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self.db = self.SessionLocal()

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(bind=self.engine)
        self.engine.dispose()

    def add_room(self, name="Room 1", price=100000, capacity=6, type="Standard"):
        room = models.Room(name=name, type=type, price_per_hour=price, capacity=capacity)
        self.db.add(room)
        self.db.commit()
        return room

    def add_customer(self, name="Nguyen Van A", phone="0901234567"):
        customer = models.Customer(name=name, phone_number=phone)
        self.db.add(customer)
        self.db.commit()
        return customer

    def line(self, room, start, end, price=None):
        return {"room_id": room.id, "start_time": start, "end_time": end, "price_per_hour": price}

    def count(self, model):
        return self.db.query(model).count()
