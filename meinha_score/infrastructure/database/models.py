"""SQLAlchemy ORM models for the ledger store and the settings store"""

import uuid
from sqlalchemy import Column, String, Float, Boolean, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


class UserRecord(Base):
    """Group member"""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=_new_id)
    username = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


class DebtRecord(Base):
    """Two-party obligation between members"""

    __tablename__ = "debts"

    id = Column(String(64), primary_key=True, default=_new_id)
    creditor_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    debtor_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    original_amount = Column(Float, nullable=True)
    status = Column(Text, nullable=False, default="OPEN")
    due_date = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=True)
    was_partial_payment = Column(Boolean, nullable=False, default=False)
    payment_override = Column(JSON, nullable=True)  # {was_on_time, overridden_by, overridden_at, reason?}
    description = Column(Text, nullable=True)


class SystemSetting(Base):
    """Admin-editable settings stored as JSON documents"""

    __tablename__ = "system_settings"

    key = Column(String(64), primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
