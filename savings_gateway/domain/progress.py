"""Progress metrics derived from a challenge snapshot - pure and read-only"""

from datetime import date, datetime
from typing import Protocol, Union

from savings_gateway.domain.models import Challenge, DepositStatus, Progress
from savings_gateway.utils.date_utils import add_weeks, weeks_between


class CompletionPolicy(Protocol):
    """Decides when a challenge is projected to finish"""

    def projected_completion_date(self, challenge: Challenge) -> date:  # pragma: no cover - interface
        ...


class CalendarCompletionPolicy:
    """start_date + total_weeks; pauses do not move the end date"""

    def projected_completion_date(self, challenge: Challenge) -> date:
        return add_weeks(challenge.start_date, challenge.total_weeks)


DEFAULT_POLICY = CalendarCompletionPolicy()


def current_week_number(challenge: Challenge, now: Union[date, datetime]) -> int:
    """Calendar week the saver is in, clamped to [1, total_weeks]"""
    week = weeks_between(challenge.start_date, now) + 1
    return max(1, min(challenge.total_weeks, week))


def next_unpaid_week(challenge: Challenge) -> int:
    """Smallest week without a paid deposit, or total_weeks + 1 if all are paid"""
    paid_weeks = {d.week for d in challenge.ledger if d.status == DepositStatus.PAID}
    for week in range(1, challenge.total_weeks + 1):
        if week not in paid_weeks:
            return week
    return challenge.total_weeks + 1


def is_complete(challenge: Challenge) -> bool:
    return next_unpaid_week(challenge) > challenge.total_weeks


def progress_percent(challenge: Challenge) -> float:
    """
    Share of the target deposited so far, in percent.

    Not clamped: overpaying a week can push it past 100.
    """
    if challenge.target_amount_cents <= 0:
        return 0.0
    return 100 * challenge.total_deposited_cents / challenge.target_amount_cents


def projected_completion_date(challenge: Challenge, policy: CompletionPolicy = DEFAULT_POLICY) -> date:
    return policy.projected_completion_date(challenge)


def get_progress(
    challenge: Challenge,
    now: Union[date, datetime],
    policy: CompletionPolicy = DEFAULT_POLICY,
) -> Progress:
    """
    Main entry point: all progress metrics for a challenge at a given moment.

    Extra fields beyond the core metrics:
    - weeks_remaining: weeks still without a paid deposit
    - next_deposit_amount_cents: scheduled amount of the next unpaid week (0 if done)
    - remaining_amount_cents: what is left to reach the target (never negative)
    """
    next_week = next_unpaid_week(challenge)
    complete = next_week > challenge.total_weeks
    paid_weeks = len({d.week for d in challenge.ledger if d.status == DepositStatus.PAID})

    return Progress(
        current_week=current_week_number(challenge, now),
        next_unpaid_week=next_week,
        percent=progress_percent(challenge),
        projected_completion_date=projected_completion_date(challenge, policy),
        is_complete=complete,
        weeks_remaining=challenge.total_weeks - paid_weeks,
        next_deposit_amount_cents=0 if complete else challenge.weekly_amounts[next_week - 1],
        remaining_amount_cents=max(0, challenge.target_amount_cents - challenge.total_deposited_cents),
    )
