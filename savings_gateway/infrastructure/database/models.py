"""SQLAlchemy ORM models for savings challenges and their deposit ledger"""

import uuid
from sqlalchemy import Column, BigInteger, DateTime, Date, Integer, ForeignKey, Text, JSON, UniqueConstraint, Uuid
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class SavingsChallenge(Base):
    """Savings challenge aggregate with its immutable weekly schedule"""

    __tablename__ = "savings_challenge"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=True, index=True)
    title = Column(Text, nullable=False)
    icon = Column(Text, nullable=False)
    mode = Column(Text, nullable=False)
    direction = Column(Text, nullable=False)
    template = Column(Text, nullable=True)
    total_weeks = Column(Integer, nullable=False)
    target_amount_cents = Column(BigInteger, nullable=False)
    start_amount_cents = Column(BigInteger, nullable=True)
    step_amount_cents = Column(BigInteger, nullable=True)
    weekly_amounts = Column(JSON, nullable=False)  # List of ints, index 0 = week 1
    start_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="active")
    total_deposited_cents = Column(BigInteger, nullable=False, default=0)
    linked_account_ref = Column(Text, nullable=True)
    completed_on = Column(Date, nullable=True)
    version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    deposits = relationship(
        "ChallengeDeposit",
        back_populates="challenge",
        cascade="all, delete-orphan",
        order_by="ChallengeDeposit.week",
    )


class ChallengeDeposit(Base):
    """One ledger entry per week of a challenge"""

    __tablename__ = "challenge_deposit"
    __table_args__ = (UniqueConstraint("challenge_id", "week", name="uq_challenge_deposit_week"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    challenge_id = Column(Uuid(as_uuid=True), ForeignKey("savings_challenge.id", ondelete="CASCADE"), nullable=False)
    week = Column(Integer, nullable=False)
    deposited_on = Column(Date, nullable=False)
    status = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    challenge = relationship("SavingsChallenge", back_populates="deposits")
