"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import List, Optional

from savings_gateway.domain.models import ChallengeMode, ChallengeStatus, DepositStatus, Direction


class ScheduleRequest(BaseModel):
    """Schedule parameters shared by preview and creation"""

    mode: ChallengeMode = ChallengeMode.TEMPLATE
    direction: Direction = Direction.STANDARD
    total_weeks: int = Field(..., ge=1, description="Challenge horizon in weeks")
    target_amount_cents: Optional[int] = Field(None, ge=0, description="Template target in cents")
    template: Optional[str] = Field(None, description="Catalog template key, e.g. '5k' or '10k'")
    start_amount_cents: Optional[int] = Field(None, ge=0, description="Custom mode first term")
    step_amount_cents: Optional[int] = Field(None, ge=0, description="Custom mode weekly increment")


class PreviewResponse(BaseModel):
    """Response for POST /v1/challenges/preview"""

    target_amount_cents: int
    weekly_amounts: List[int]
    first_week_amount_cents: int
    last_week_amount_cents: int


class CreateChallengeRequest(ScheduleRequest):
    """Request body for POST /v1/challenges"""

    start_date: date
    title: str = Field("Savings challenge", min_length=1)
    icon: str = "piggy"
    user_id: Optional[str] = None
    linked_account_ref: Optional[str] = None


class ScheduledWeekSchema(BaseModel):
    """One week of the deposit schedule"""

    week: int
    due_date: date
    amount_cents: int


class DepositSchema(BaseModel):
    """Ledger entry"""

    week: int
    date: date
    status: DepositStatus
    amount_cents: int


class ChallengeResponse(BaseModel):
    """Full challenge state"""

    id: str
    user_id: Optional[str] = None
    title: str
    icon: str
    mode: ChallengeMode
    direction: Direction
    template: Optional[str] = None
    total_weeks: int
    target_amount_cents: int
    start_amount_cents: Optional[int] = None
    step_amount_cents: Optional[int] = None
    weekly_amounts: List[int]
    schedule: List[ScheduledWeekSchema]
    start_date: date
    status: ChallengeStatus
    ledger: List[DepositSchema]
    total_deposited_cents: int
    linked_account_ref: Optional[str] = None
    completed_on: Optional[date] = None
    version: int


class ChallengeListResponse(BaseModel):
    """Response for GET /v1/challenges"""

    user_id: str
    challenges: List[ChallengeResponse]


class DepositRequest(BaseModel):
    """Request body for POST /v1/challenges/{id}/deposits"""

    week: int
    amount_cents: Optional[int] = Field(None, description="Defaults to the scheduled amount for the week")
    status: DepositStatus = DepositStatus.PAID
    deposited_on: Optional[date] = None
    create_transaction: bool = False
    expected_version: Optional[int] = Field(None, description="Version the caller last saw")


class DepositResponse(BaseModel):
    """Response for POST /v1/challenges/{id}/deposits"""

    challenge: ChallengeResponse
    duplicate: bool = False
    linked_transaction_scheduled: bool = False


class ProgressResponse(BaseModel):
    """Response for GET /v1/challenges/{id}/progress"""

    challenge_id: str
    status: ChallengeStatus
    current_week: int
    next_unpaid_week: int
    percent: float
    projected_completion_date: date
    is_complete: bool
    weeks_remaining: int
    next_deposit_amount_cents: int
    remaining_amount_cents: int
