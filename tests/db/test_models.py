"""
Database model tests.
Tests column defaults and table constraints.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from app.db.models import (
    BookingModel,
    ConversationModel,
    JobModel,
    MessageModel,
    TruckerProfileModel,
    UserModel,
)


def make_user(username: str, user_type: str = "trucker") -> UserModel:
    return UserModel(
        username=username,
        password_hash="hashed",
        email=f"{username}@example.com",
        first_name=username.capitalize(),
        last_name="Tester",
        phone="555-0100",
        user_type=user_type,
    )


def make_job(broker_id: int) -> JobModel:
    return JobModel(
        broker_id=broker_id,
        title="Steel coils",
        description="Two coils",
        origin_city="Manila",
        origin_state="NCR",
        destination_city="Davao City",
        destination_state="Davao",
        price=90000,
        cargo_type="Steel",
        load_type="Full truckload",
        pickup_date=datetime.now(timezone.utc) + timedelta(days=1),
    )


class TestUserModel:
    """Tests for UserModel."""

    async def test_defaults(self, db_session):
        user = make_user("nina")
        db_session.add(user)
        await db_session.flush()

        assert user.id is not None
        assert user.status == "pending"
        assert user.created_at is not None
        assert user.updated_at is None
        assert user.verification_token is None

    def test_full_name(self):
        assert make_user("omar").full_name == "Omar Tester"

    async def test_username_unique(self, db_session):
        db_session.add(make_user("pat"))
        await db_session.flush()

        duplicate = make_user("pat")
        duplicate.email = "other@example.com"
        db_session.add(duplicate)
        with pytest.raises(IntegrityError):
            await db_session.flush()


class TestTruckerProfileModel:
    async def test_defaults(self, db_session):
        user = make_user("quinn")
        db_session.add(user)
        await db_session.flush()

        profile = TruckerProfileModel(user_id=user.id)
        db_session.add(profile)
        await db_session.flush()

        assert profile.company_name == "Independent Trucker"
        assert profile.available is True
        assert profile.vehicles == []
        assert profile.service_areas == []


class TestJobAndBooking:
    """Tests for JobModel and BookingModel."""

    async def test_job_and_booking_defaults(self, db_session):
        broker = make_user("rita", "broker")
        trucker = make_user("sam")
        db_session.add_all([broker, trucker])
        await db_session.flush()

        job = make_job(broker.id)
        db_session.add(job)
        await db_session.flush()
        booking = BookingModel(job_id=job.id, trucker_id=trucker.id)
        db_session.add(booking)
        await db_session.flush()

        assert job.status == "active"
        assert job.created_at is not None
        assert booking.status == "pending"

    async def test_one_booking_per_job_and_trucker(self, db_session):
        broker = make_user("tess", "broker")
        trucker = make_user("uma")
        db_session.add_all([broker, trucker])
        await db_session.flush()
        job = make_job(broker.id)
        db_session.add(job)
        await db_session.flush()

        db_session.add(BookingModel(job_id=job.id, trucker_id=trucker.id))
        await db_session.flush()
        db_session.add(BookingModel(job_id=job.id, trucker_id=trucker.id))
        with pytest.raises(IntegrityError):
            await db_session.flush()


class TestConversationAndMessage:
    """Tests for ConversationModel and MessageModel."""

    async def test_message_defaults(self, db_session):
        a, b = make_user("vic"), make_user("wes")
        db_session.add_all([a, b])
        await db_session.flush()

        message = MessageModel(sender_id=a.id, receiver_id=b.id, content="hi")
        db_session.add(message)
        await db_session.flush()

        assert message.is_read is False
        assert message.created_at is not None

    async def test_pair_must_be_ordered(self, db_session):
        a, b = make_user("xena"), make_user("yuri")
        db_session.add_all([a, b])
        await db_session.flush()
        low, high = sorted([a.id, b.id])

        db_session.add(ConversationModel(user1_id=high, user2_id=low))
        with pytest.raises(IntegrityError):
            await db_session.flush()

    def test_participants(self):
        conversation = ConversationModel(user1_id=3, user2_id=8)

        assert conversation.has_participant(3)
        assert conversation.has_participant(8)
        assert not conversation.has_participant(5)
        assert conversation.other_participant(3) == 8
        assert conversation.other_participant(8) == 3
