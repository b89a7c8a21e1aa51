"""
SQLAlchemy ORM models package.

Re-exports all models for convenient imports.
"""

from app.db.models.user import UserModel
from app.db.models.profile import (
    TruckerProfileModel,
    BrokerProfileModel,
)
from app.db.models.job import (
    JobModel,
    JobStatus,
    BookingModel,
    BookingStatus,
)
from app.db.models.conversation import (
    ConversationModel,
    MessageModel,
)
from app.db.models.admin_action import AdminActionModel
from app.db.models.session import UserSessionModel

__all__ = [
    # User
    "UserModel",
    "UserSessionModel",
    # Profiles
    "TruckerProfileModel",
    "BrokerProfileModel",
    # Jobs
    "JobModel",
    "BookingModel",
    "JobStatus",
    "BookingStatus",
    # Messaging
    "ConversationModel",
    "MessageModel",
    # Admin
    "AdminActionModel",
]
