from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata

ACTIVE_BOOKING_STATUSES = ("pending", "confirmed")


class SiteSettings(Base):
    __tablename__ = 'site_settings'

    id = Column(Integer, primary_key=True)
    booking_enabled = Column(Boolean, nullable=False, server_default=text('0'))
    booking_max_advance_days = Column(Integer, nullable=False, server_default=text('30'))
    booking_min_notice_hours = Column(Integer, nullable=False, server_default=text('24'))
    booking_buffer_minutes = Column(Integer, nullable=False, server_default=text('15'))
    business_hours = Column(Text)  # JSON: {"monday": {"open", "close", "closed"}, ...}
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))


class AvailabilityOverrides(Base):
    __tablename__ = 'availability_overrides'

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False, unique=True)
    is_blocked = Column(Boolean, nullable=False, server_default=text('0'))
    start_time = Column(Text)  # "HH:MM"
    end_time = Column(Text)
    reason = Column(Text)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        # One live booking per slot
        Index(
            'uq_bookings_active_slot',
            'date',
            'start_time',
            unique=True,
            sqlite_where=text("status IN ('pending', 'confirmed')"),
            postgresql_where=text("status IN ('pending', 'confirmed')"),
        ),
    )

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer)
    client_name = Column(Text, nullable=False)
    client_email = Column(Text, nullable=False)
    session_type = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    confirmation_token = Column(Text, nullable=False, unique=True)
    teams_meeting_url = Column(Text)
    calendar_event_id = Column(Text)
    reminder_sent_at = Column(DateTime)

    is_late_cancel = Column(Boolean, nullable=False, server_default=text('0'))
    credit_refunded = Column(Boolean)
    cancelled_at = Column(DateTime)
    cancelled_by = Column(Text)
    cancellation_reason = Column(Text)
    billing_note = Column(Text)

    reschedule_count = Column(Integer, nullable=False, server_default=text('0'))
    rescheduled_at = Column(DateTime)
    original_date = Column(Date)
    original_start_time = Column(Text)
    policy_override = Column(Boolean, nullable=False, server_default=text('0'))

    notes = Column(Text)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    credit_transactions = relationship('SessionCreditTransactions', back_populates='booking')


class SessionCreditBalances(Base):
    __tablename__ = 'session_credit_balances'

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, nullable=False, unique=True)
    balance = Column(Integer, nullable=False, server_default=text('0'))


class SessionCreditTransactions(Base):
    __tablename__ = 'session_credit_transactions'

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, nullable=False)
    type = Column(Text, nullable=False)  # purchase / used / refund / forfeit
    amount = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    description = Column(Text)
    booking_id = Column(ForeignKey('bookings.id', ondelete='SET NULL'))
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    booking = relationship('Bookings', back_populates='credit_transactions')
