"""SQLAlchemy database models - one table per keyed collection."""

from sqlalchemy import Column, String, Float, Boolean, Integer, BigInteger, Text, JSON
import time
import uuid

from database import Base


def generate_uuid():
    return str(uuid.uuid4())


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class TruckRecord(Base):
    """Toll/freight movement extracted from a document, after reconciliation."""
    __tablename__ = "records"

    id = Column(String(64), primary_key=True, default=generate_uuid)
    plate = Column(String(32), nullable=True, index=True)
    owner = Column(String(255), nullable=True)
    amount = Column(Float, default=0.0)
    concept = Column(Text, nullable=True)
    date = Column(String(10), nullable=True, index=True)  # YYYY-MM-DD
    tag = Column(String(64), nullable=True)

    # Source document (back-reference, no FK)
    source_file_id = Column(String(64), nullable=True, index=True)
    source_file_name = Column(String(255), nullable=True)

    # Reconciliation output
    unit_code = Column(String(64), nullable=True)
    registered_owner = Column(String(255), nullable=True)
    is_verified = Column(Boolean, default=False)

    search_index = Column(Text, nullable=True)


class Expense(Base):
    """Toll/card line item from a bank statement."""
    __tablename__ = "expenses"

    id = Column(String(64), primary_key=True, default=generate_uuid)
    statement_id = Column(String(64), nullable=True, index=True)
    date = Column(String(10), nullable=True)
    concept = Column(Text, nullable=True)
    amount = Column(Float, default=0.0)
    category = Column(String(20), default="OTRO")  # PEAJE, AUTOPISTA, TELEPASE, OTRO
    source_file_id = Column(String(64), nullable=True, index=True)
    source_file_name = Column(String(255), nullable=True)
    search_index = Column(Text, nullable=True)


class Statement(Base):
    """Card statement header metadata."""
    __tablename__ = "statements"

    id = Column(String(64), primary_key=True, default=generate_uuid)
    source_file_id = Column(String(64), nullable=True, index=True)
    bank = Column(String(100), nullable=True)
    holder = Column(String(255), nullable=True)
    period = Column(String(100), nullable=True)
    due_date = Column(String(10), nullable=True)
    total_billed = Column(Float, default=0.0)  # Whole statement total, not only tolls
    total_tolls_detected = Column(Float, nullable=True)  # Sum of the extracted items
    created_at = Column(BigInteger, default=now_ms)


class FleetVehicle(Base):
    """Master fleet roster row. seq keeps roster order."""
    __tablename__ = "fleet"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    plate = Column(String(32), default="")
    owner = Column(String(255), nullable=True)
    tag = Column(String(64), nullable=True)
    unit_code = Column(String(64), nullable=True)


class StoredFile(Base):
    """Original uploaded document. Root of cascading deletion."""
    __tablename__ = "files"

    id = Column(String(64), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    mime_type = Column(String(128), nullable=True)
    size_bytes = Column(Integer, default=0)
    content_base64 = Column(Text, nullable=True)
    created_at = Column(BigInteger, default=now_ms)


class User(Base):
    """Application user. Keyed by email."""
    __tablename__ = "users"

    email = Column(String(255), primary_key=True)
    id = Column(String(64), nullable=False, default=generate_uuid)
    name = Column(String(255), nullable=False)
    role = Column(String(20), default="user")  # admin, user
    created_at = Column(BigInteger, default=now_ms)
    is_active = Column(Boolean, default=True)


class Setting(Base):
    """Key/value application setting."""
    __tablename__ = "settings"

    key = Column(String(64), primary_key=True)
    value = Column(JSON, nullable=True)


class AuditEntry(Base):
    """Audit trail of user actions."""
    __tablename__ = "audit"

    id = Column(String(64), primary_key=True, default=generate_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    user_name = Column(String(255), nullable=False)
    action = Column(String(20), nullable=False)
    module = Column(String(100), nullable=False)
    details = Column(Text, nullable=True)
    timestamp = Column(BigInteger, default=now_ms, index=True)
