"""Ledger state transitions - each returns a new challenge, never mutates its input"""

import dataclasses
import logging
from datetime import date

from savings_gateway.domain.challenge import deposit_for_week, recompute_totals
from savings_gateway.domain.exceptions import (
    ChallengeClosed,
    DuplicateDeposit,
    InvalidDepositAmount,
    InvalidWeek,
)
from savings_gateway.domain.models import (
    Challenge,
    ChallengeStatus,
    Deposit,
    DepositOutcome,
    DepositStatus,
    LinkedTransactionEvent,
)
from savings_gateway.domain.progress import is_complete

logger = logging.getLogger(__name__)


def _ensure_open(challenge: Challenge) -> None:
    if challenge.status.is_terminal():
        raise ChallengeClosed(challenge.id, challenge.status.value)


def transition(challenge: Challenge, new_status: ChallengeStatus) -> Challenge:
    """Move a challenge to a new status, enforcing the transition table"""
    if not challenge.status.can_transition_to(new_status):
        raise ChallengeClosed(challenge.id, challenge.status.value)

    logger.info(
        "Challenge status changed",
        extra={"challenge_id": challenge.id, "from_status": challenge.status.value, "to_status": new_status.value},
    )
    return dataclasses.replace(challenge, status=new_status, version=challenge.version + 1)


def record_deposit(
    challenge: Challenge,
    week: int,
    amount_cents: int,
    on: date,
    status: DepositStatus = DepositStatus.PAID,
    create_transaction: bool = False,
) -> DepositOutcome:
    """
    Record (or replace) the ledger entry for a week.

    Flow:
    1. Reject closed challenges, out-of-range weeks and negative amounts
    2. Reject a week that is already paid (replays must not double-count)
    3. Upsert the entry and recompute the deposited total from the whole ledger
    4. Complete the challenge once every week is paid
    5. Emit a linked-transaction event when asked and an account is linked

    Args:
        challenge: Current snapshot
        week: 1-based week number
        amount_cents: Amount actually deposited (may differ from the schedule)
        on: Date the deposit is recorded
        status: paid, pending or skipped
        create_transaction: Whether to book the deposit in the linked ledger

    Raises:
        ChallengeClosed, InvalidWeek, InvalidDepositAmount, DuplicateDeposit
    """
    _ensure_open(challenge)

    if week < 1 or week > challenge.total_weeks:
        raise InvalidWeek(week, challenge.total_weeks)
    if amount_cents < 0:
        raise InvalidDepositAmount(f"Deposit amount must be >= 0, got {amount_cents}")

    existing = deposit_for_week(challenge, week)
    if existing is not None and existing.status == DepositStatus.PAID:
        raise DuplicateDeposit(challenge.id, week)

    deposit = Deposit(week=week, date=on, status=status, amount_cents=amount_cents)
    ledger = tuple(sorted([d for d in challenge.ledger if d.week != week] + [deposit], key=lambda d: d.week))

    updated = dataclasses.replace(challenge, ledger=ledger, version=challenge.version + 1)
    updated = dataclasses.replace(updated, total_deposited_cents=recompute_totals(updated))

    if is_complete(updated):
        updated = transition(updated, ChallengeStatus.COMPLETED)
        updated = dataclasses.replace(updated, completed_on=on, version=challenge.version + 1)

    event = None
    if status == DepositStatus.PAID and create_transaction and challenge.linked_account_ref:
        event = LinkedTransactionEvent(
            challenge_id=challenge.id,
            week=week,
            amount_cents=amount_cents,
            account_ref=challenge.linked_account_ref,
            description=f"{challenge.title} - week {week}",
        )

    return DepositOutcome(challenge=updated, event=event)


def toggle_pause(challenge: Challenge) -> Challenge:
    """active <-> paused"""
    _ensure_open(challenge)
    if challenge.status == ChallengeStatus.PAUSED:
        return transition(challenge, ChallengeStatus.ACTIVE)
    return transition(challenge, ChallengeStatus.PAUSED)


def cancel(challenge: Challenge) -> Challenge:
    """Any open state -> cancelled (terminal)"""
    _ensure_open(challenge)
    return transition(challenge, ChallengeStatus.CANCELLED)
