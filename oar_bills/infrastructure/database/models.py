"""SQLAlchemy ORM models for bills, payments and tags"""

import uuid
from sqlalchemy import Column, String, BigInteger, Boolean, DateTime, Date, ForeignKey, Table, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


bills_to_tags = Table(
    "bills_to_tags",
    Base.metadata,
    Column("bill_id", String(32), ForeignKey("bills.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", String(32), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class BillRecord(Base):
    """Recurring or one-time bill"""

    __tablename__ = "bills"

    id = Column(String(32), primary_key=True, default=_new_id)
    title = Column(Text, nullable=False)
    base_amount = Column(BigInteger, nullable=False)  # minor units
    amount_due = Column(BigInteger, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=True)
    frequency = Column(String(16), nullable=False, default="monthly")
    status = Column(String(16), nullable=False, default="pending", index=True)
    is_auto_pay = Column(Boolean, nullable=False, default=False)
    is_variable = Column(Boolean, nullable=False, default=False)
    is_archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    transactions = relationship("TransactionRecord", back_populates="bill", cascade="all, delete-orphan")
    tags = relationship("TagRecord", secondary=bills_to_tags, back_populates="bills")


class TransactionRecord(Base):
    """Payment logged against a bill"""

    __tablename__ = "transactions"

    id = Column(String(32), primary_key=True, default=_new_id)
    bill_id = Column(String(32), ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    paid_at = Column(Date, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    bill = relationship("BillRecord", back_populates="transactions")


class TagRecord(Base):
    """User-defined label used to filter bills"""

    __tablename__ = "tags"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    slug = Column(String(64), nullable=False, unique=True)

    bills = relationship("BillRecord", secondary=bills_to_tags, back_populates="tags")
