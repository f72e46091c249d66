"""SQLAlchemy ORM models for quotes and revenues"""

from sqlalchemy import Column, Integer, Numeric, Boolean, DateTime, Date, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class QuoteRecord(Base):
    """Quote offered to a client"""

    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_title = Column(Text, nullable=False)
    job_description = Column(Text, nullable=False, default="")
    amount = Column(Numeric(10, 2), nullable=False)
    client_id = Column(Integer, nullable=False, index=True)
    status = Column(Text, nullable=False, default="Pending")
    currency = Column(Text, nullable=False, default="USD")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    valid_until = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    revenues = relationship("RevenueRecord", back_populates="quote")


class RevenueRecord(Base):
    """Income entry, optionally created from a converted quote installment"""

    __tablename__ = "revenues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    client_id = Column(Integer, nullable=False, index=True)
    category = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    currency = Column(Text, nullable=False, default="USD")
    account = Column(Text, nullable=True, default="default")
    is_paid = Column(Boolean, nullable=False, default=False)
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    quote = relationship("QuoteRecord", back_populates="revenues")
