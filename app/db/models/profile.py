"""
Role-specific profile models, one row per trucker or broker account.
"""

from typing import Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base


class TruckerProfileModel(Base):
    """Operating details of a trucker, created at registration."""

    __tablename__ = "trucker_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    company_name: Mapped[str] = mapped_column(String, nullable=False, default="Independent Trucker")
    address: Mapped[str] = mapped_column(String, nullable=False, default="")
    city: Mapped[str] = mapped_column(String, nullable=False, default="")
    state: Mapped[str] = mapped_column(String, nullable=False, default="")
    zip: Mapped[str] = mapped_column(String, nullable=False, default="")
    contact_number: Mapped[str] = mapped_column(String, nullable=False, default="")
    business_email: Mapped[str] = mapped_column(String, nullable=False, default="")

    # Uploaded document references (stored filenames)
    bir_2303_certificate: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    business_permit: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    insurance_coverage: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    permit_to_operate: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    vehicles: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    service_areas: Mapped[Optional[list[str]]] = mapped_column(JSON, nullable=True, default=list)

    license_plate: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    license_number: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    truck_type: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    truck_capacity: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class BrokerProfileModel(Base):
    """Company details of a broker, created at registration."""

    __tablename__ = "broker_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    company_name: Mapped[str] = mapped_column(String, nullable=False)
    company_address: Mapped[str] = mapped_column(String, nullable=False)
    company_city: Mapped[str] = mapped_column(String, nullable=False)
    company_state: Mapped[str] = mapped_column(String, nullable=False)
    company_zip: Mapped[str] = mapped_column(String, nullable=False)
    contact_number: Mapped[str] = mapped_column(String, nullable=False, default="")
    business_email: Mapped[str] = mapped_column(String, nullable=False, default="")

    contact_person_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    contact_person_position: Mapped[str] = mapped_column(String, nullable=False, default="")

    # Uploaded document references (stored filenames)
    dti_sec_registration: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    bir_2303_certificate: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    mayors_permit: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    boc_accreditation: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    business_type: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    tax_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
