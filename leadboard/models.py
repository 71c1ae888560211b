"""
SQLAlchemy table definitions for the Leadboard schema.
The hosted project owns these tables; the definitions here drive the
clean-slate migration and document the columns the service reads.
"""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DECIMAL, Date, DateTime, ForeignKey, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    username = Column(Text, nullable=False, unique=True)
    nama_lengkap = Column(Text, nullable=False)
    role = Column(Text, nullable=False)
    nomor_wa = Column(Text)
    aktif = Column(Boolean, default=True)
    avatar = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Product(Base):
    __tablename__ = "products"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    description = Column(Text)
    price = Column(DECIMAL(15, 2))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Package(Base):
    __tablename__ = "packages"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    product_id = Column(UUID(as_uuid=False), ForeignKey("products.id", ondelete="CASCADE"))
    name = Column(Text, nullable=False)
    price = Column(DECIMAL(15, 2))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Target(Base):
    __tablename__ = "targets"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    user_id = Column(UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"))
    period = Column(Date)
    target_amount = Column(DECIMAL(15, 2))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Lead(Base):
    __tablename__ = "leads"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    email = Column(Text)
    phone = Column(Text)
    product = Column(Text)
    status = Column(Text, default="new")
    assigned_to = Column(UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Note(Base):
    __tablename__ = "notes"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    lead_id = Column(UUID(as_uuid=False), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_by = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class FollowUp(Base):
    __tablename__ = "follow_ups"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    lead_id = Column(UUID(as_uuid=False), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False)
    notes = Column(Text, nullable=False)
    follow_up_date = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class HandleCustomerData(Base):
    __tablename__ = "handle_customer_data"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    lead_id = Column(UUID(as_uuid=False), ForeignKey("leads.id", ondelete="CASCADE"))
    user_id = Column(UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL"))
    status = Column(Text)
    data = Column(JSONB, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
