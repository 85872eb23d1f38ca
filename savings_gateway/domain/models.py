"""Domain models - pure Python dataclasses representing the savings challenge"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Tuple


class ChallengeMode(str, Enum):
    """How the weekly schedule is generated"""

    TEMPLATE = "template"  # Salary Cycle Method over a fixed target
    CUSTOM = "custom"  # Arithmetic progression from start/step


class Direction(str, Enum):
    """Which end of the schedule carries the larger deposits"""

    STANDARD = "standard"
    INVERSE = "inverse"


class ChallengeStatus(str, Enum):
    """Challenge lifecycle states"""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        return self in (ChallengeStatus.COMPLETED, ChallengeStatus.CANCELLED)

    def can_transition_to(self, new_status: "ChallengeStatus") -> bool:
        return new_status in _TRANSITIONS[self]


_TRANSITIONS = {
    ChallengeStatus.ACTIVE: {ChallengeStatus.PAUSED, ChallengeStatus.COMPLETED, ChallengeStatus.CANCELLED},
    ChallengeStatus.PAUSED: {ChallengeStatus.ACTIVE, ChallengeStatus.COMPLETED, ChallengeStatus.CANCELLED},
    ChallengeStatus.COMPLETED: set(),  # Terminal
    ChallengeStatus.CANCELLED: set(),  # Terminal
}


class DepositStatus(str, Enum):
    """State of a single ledger entry"""

    PAID = "paid"
    PENDING = "pending"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class Deposit:
    """Ledger entry for one week of a challenge"""

    week: int
    date: date  # When the deposit was recorded, not the nominal due date
    status: DepositStatus
    amount_cents: int


@dataclass(frozen=True)
class Challenge:
    """Aggregate root: configuration, immutable schedule and deposit ledger"""

    id: str
    title: str
    icon: str
    mode: ChallengeMode
    direction: Direction
    total_weeks: int
    target_amount_cents: int
    weekly_amounts: Tuple[int, ...]
    start_date: date
    status: ChallengeStatus = ChallengeStatus.ACTIVE
    ledger: Tuple[Deposit, ...] = ()  # Sorted by week, one entry per week
    total_deposited_cents: int = 0
    linked_account_ref: Optional[str] = None
    user_id: Optional[str] = None
    template: Optional[str] = None
    start_amount_cents: Optional[int] = None
    step_amount_cents: Optional[int] = None
    completed_on: Optional[date] = None
    version: int = 0


@dataclass
class ChallengeConfig:
    """Input for creating a challenge"""

    mode: ChallengeMode
    direction: Direction
    total_weeks: int
    start_date: date
    target_amount_cents: Optional[int] = None  # Template mode (or resolved from template key)
    template: Optional[str] = None
    start_amount_cents: Optional[int] = None  # Custom mode
    step_amount_cents: Optional[int] = None
    title: str = "Savings challenge"
    icon: str = "piggy"
    linked_account_ref: Optional[str] = None
    user_id: Optional[str] = None


@dataclass(frozen=True)
class LinkedTransactionEvent:
    """Request for the gateway to book a deposit in the linked external ledger"""

    challenge_id: str
    week: int
    amount_cents: int
    account_ref: str
    description: str


@dataclass(frozen=True)
class DepositOutcome:
    """Result of recording a deposit"""

    challenge: Challenge
    event: Optional[LinkedTransactionEvent] = None


@dataclass(frozen=True)
class Progress:
    """Read-only metrics derived from a challenge snapshot"""

    current_week: int
    next_unpaid_week: int
    percent: float
    projected_completion_date: date
    is_complete: bool
    weeks_remaining: int
    next_deposit_amount_cents: int
    remaining_amount_cents: int


@dataclass(frozen=True)
class Simulation:
    """Creation-time preview of a schedule"""

    target_amount_cents: int
    weekly_amounts: Tuple[int, ...] = field(default_factory=tuple)
    first_week_amount_cents: int = 0
    last_week_amount_cents: int = 0
