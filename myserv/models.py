import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(50), nullable=True)
    profile_image = Column(String(500), nullable=True)  # Avatar URL shown in booking lists
    user_type = Column(String(20), default="CLIENT", nullable=False)  # CLIENT, PROVIDER, ADMIN
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider_profile = relationship("ServiceProvider", back_populates="user", uselist=False)


class ServiceProvider(Base):
    __tablename__ = "service_providers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Base address used as travel origin
    street = Column(String(255), nullable=True)
    number = Column(String(20), nullable=True)
    district = Column(String(255), nullable=True)
    city = Column(String(255), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Travel policy
    charges_travel = Column(Boolean, default=False, nullable=False)
    travel_rate_per_km = Column(Float, nullable=True)
    travel_minimum_fee = Column(Float, nullable=True)
    travel_fixed_fee = Column(Float, nullable=True)
    waives_travel_on_hire = Column(Boolean, default=False, nullable=False)

    # Scheduling policy, written only through ProviderSettingsService
    schedule_settings = Column(JSON, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="provider_profile")
    services = relationship("ServiceProviderService", back_populates="provider")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    provider_links = relationship("ServiceProviderService", back_populates="service")


class ServiceProviderService(Base):
    __tablename__ = "service_provider_services"
    __table_args__ = (
        UniqueConstraint("service_provider_id", "service_id", name="uq_provider_service"),
    )

    id = Column(Integer, primary_key=True, index=True)
    service_provider_id = Column(Integer, ForeignKey("service_providers.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    base_price = Column(Float, nullable=True)
    charges_travel = Column(Boolean, default=False, nullable=False)
    quote_fee = Column(Float, nullable=True)  # Only charged on QUOTE requests
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("ServiceProvider", back_populates="services")
    service = relationship("Service", back_populates="provider_links")


class Booking(Base):
    __tablename__ = "bookings"
    # slot_key is set only while the booking holds its slot; NULLs never collide,
    # so this enforces one live booking per provider/date/time
    __table_args__ = (
        UniqueConstraint("provider_id", "slot_key", name="uq_bookings_provider_slot"),
    )

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, index=True, default=generate_public_id)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("service_providers.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    description = Column(Text, nullable=False)

    request_type = Column(String(20), nullable=False)  # SCHEDULING, QUOTE
    status = Column(String(20), nullable=False, index=True)  # HOLD, PENDING, ACCEPTED, ...
    fulfillment_mode = Column(String(10), default="HOME", nullable=False)  # HOME, LOCAL

    scheduled_date = Column(DateTime, nullable=True)  # Slot start; null for QUOTE
    scheduled_time = Column(String(5), nullable=True)  # HH:MM
    slot_key = Column(String(16), nullable=True)  # YYYY-MM-DDTHH:MM while live
    expires_at = Column(DateTime, nullable=True)  # Only for unconfirmed HOLD

    # Pricing inputs actually used, frozen at creation; travel fields stay null when travel was not charged
    estimated_price = Column(Float, nullable=True)
    base_price_snapshot = Column(Float, nullable=True)
    travel_cost = Column(Float, default=0.0, nullable=False)
    travel_rate_per_km_snapshot = Column(Float, nullable=True)
    travel_fixed_fee_snapshot = Column(Float, nullable=True)
    travel_minimum_fee_snapshot = Column(Float, nullable=True)
    travel_distance_km = Column(Float, nullable=True)
    travel_duration_minutes = Column(Float, nullable=True)
    travel_used_fallback = Column(Boolean, default=False, nullable=False)
    travel_per_km_portion = Column(Float, nullable=True)
    travel_applied_minimum = Column(Boolean, default=False, nullable=False)
    travel_waives_on_hire = Column(Boolean, nullable=True)
    scheduling_fee = Column(Float, nullable=True)

    # Client contact and address as submitted
    client_name = Column(String(255), nullable=True)
    client_phone = Column(String(50), nullable=True)
    client_email = Column(String(255), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(255), nullable=True)
    state = Column(String(50), nullable=True)
    zip_code = Column(String(20), nullable=True)

    # Lifecycle details
    cancellation_reason = Column(String(500), nullable=True)
    cancelled_by = Column(String(20), nullable=True)  # CLIENT, PROVIDER
    cancelled_at = Column(DateTime, nullable=True)
    final_price = Column(Float, nullable=True)
    payment_method = Column(String(30), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("User", foreign_keys=[client_id])
    provider = relationship("ServiceProvider")
    service = relationship("Service")


class Notification(Base):
    """In-app notification shown in the user's inbox"""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True, index=True)
    type = Column(String(30), nullable=False)  # SERVICE_REQUEST, BOOKING_UPDATE
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    sent_via = Column(String(50), nullable=True)  # Channels that delivered it, e.g. "email,whatsapp"
    created_at = Column(DateTime, server_default=func.now(), index=True)

    user = relationship("User")
