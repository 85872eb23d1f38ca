"""Savings challenge aggregate construction and invariant checks"""

import uuid
from typing import Optional

from savings_gateway.domain.allocator import DEFAULT_FLOOR_CENTS, allocate, template_target
from savings_gateway.domain.exceptions import InvalidScheduleParams
from savings_gateway.domain.models import (
    Challenge,
    ChallengeConfig,
    ChallengeMode,
    ChallengeStatus,
    Deposit,
    DepositStatus,
)


def create_challenge(
    config: ChallengeConfig,
    challenge_id: Optional[str] = None,
    floor_cents: int = DEFAULT_FLOOR_CENTS,
) -> Challenge:
    """
    Build a new challenge from its configuration.

    The allocator runs exactly once here; the resulting schedule never changes
    for the life of the challenge.

    Returns:
        Challenge with status=active, an empty ledger and nothing deposited

    Raises:
        InvalidScheduleParams: Inputs missing or invalid for the chosen mode
    """
    target = config.target_amount_cents
    start_amount = None
    step_amount = None

    if config.mode == ChallengeMode.TEMPLATE:
        if config.template is not None:
            catalog_target = template_target(config.template)
            if target is None:
                target = catalog_target
    else:
        start_amount = config.start_amount_cents
        step_amount = config.step_amount_cents

    weekly_amounts = allocate(
        target,
        config.total_weeks,
        config.direction,
        config.mode,
        start_amount_cents=start_amount,
        step_amount_cents=step_amount,
        floor_cents=floor_cents,
    )

    return Challenge(
        id=challenge_id or str(uuid.uuid4()),
        title=config.title,
        icon=config.icon,
        mode=config.mode,
        direction=config.direction,
        total_weeks=config.total_weeks,
        target_amount_cents=sum(weekly_amounts),
        weekly_amounts=tuple(weekly_amounts),
        start_date=config.start_date,
        status=ChallengeStatus.ACTIVE,
        linked_account_ref=config.linked_account_ref,
        user_id=config.user_id,
        template=config.template if config.mode == ChallengeMode.TEMPLATE else None,
        start_amount_cents=start_amount,
        step_amount_cents=step_amount,
    )


def recompute_totals(challenge: Challenge) -> int:
    """Sum of paid ledger entries - the source of truth for total_deposited_cents"""
    return sum(d.amount_cents for d in challenge.ledger if d.status == DepositStatus.PAID)


def deposit_for_week(challenge: Challenge, week: int) -> Optional[Deposit]:
    """Ledger entry for a week, if one was recorded"""
    for deposit in challenge.ledger:
        if deposit.week == week:
            return deposit
    return None


def check_invariants(challenge: Challenge) -> None:
    """
    Verify the aggregate is internally consistent.

    Raises:
        InvalidScheduleParams: Schedule length/sum, ledger weeks or cached
            total disagree with each other
    """
    if len(challenge.weekly_amounts) != challenge.total_weeks:
        raise InvalidScheduleParams(
            f"Schedule has {len(challenge.weekly_amounts)} weeks, expected {challenge.total_weeks}"
        )
    if sum(challenge.weekly_amounts) != challenge.target_amount_cents:
        raise InvalidScheduleParams("Schedule does not sum to the target amount")

    weeks = [d.week for d in challenge.ledger]
    if len(weeks) != len(set(weeks)):
        raise InvalidScheduleParams("Ledger contains duplicate weeks")
    if any(week < 1 or week > challenge.total_weeks for week in weeks):
        raise InvalidScheduleParams("Ledger contains weeks outside the challenge horizon")

    if recompute_totals(challenge) != challenge.total_deposited_cents:
        raise InvalidScheduleParams("total_deposited_cents diverges from the ledger")
