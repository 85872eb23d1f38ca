"""Data access layer for savings challenges"""

import uuid
from typing import List, Optional
from sqlalchemy.orm import Session
from savings_gateway.infrastructure.database.models import SavingsChallenge, ChallengeDeposit
from savings_gateway.domain.challenge import check_invariants
from savings_gateway.domain.exceptions import ChallengeNotFound, VersionConflict
from savings_gateway.domain.models import (
    Challenge,
    ChallengeMode,
    ChallengeStatus,
    Deposit,
    DepositStatus,
    Direction,
)


def _parse_id(challenge_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(challenge_id))
    except ValueError:
        raise ChallengeNotFound(f"Challenge {challenge_id} not found") from None


def to_domain(row: SavingsChallenge) -> Challenge:
    """Rehydrate an aggregate from its rows, rejecting inconsistent data"""
    challenge = Challenge(
        id=str(row.id),
        title=row.title,
        icon=row.icon,
        mode=ChallengeMode(row.mode),
        direction=Direction(row.direction),
        total_weeks=row.total_weeks,
        target_amount_cents=row.target_amount_cents,
        weekly_amounts=tuple(int(amount) for amount in row.weekly_amounts),
        start_date=row.start_date,
        status=ChallengeStatus(row.status),
        ledger=tuple(
            Deposit(
                week=d.week,
                date=d.deposited_on,
                status=DepositStatus(d.status),
                amount_cents=d.amount_cents,
            )
            for d in sorted(row.deposits, key=lambda d: d.week)
        ),
        total_deposited_cents=row.total_deposited_cents,
        linked_account_ref=row.linked_account_ref,
        user_id=row.user_id,
        template=row.template,
        start_amount_cents=row.start_amount_cents,
        step_amount_cents=row.step_amount_cents,
        completed_on=row.completed_on,
        version=row.version,
    )
    check_invariants(challenge)
    return challenge


class ChallengeRepository:
    """Repository for savings challenges and their ledgers"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, challenge: Challenge) -> SavingsChallenge:
        """Persist a newly created challenge"""
        db_challenge = SavingsChallenge(
            id=_parse_id(challenge.id),
            user_id=challenge.user_id,
            title=challenge.title,
            icon=challenge.icon,
            mode=challenge.mode.value,
            direction=challenge.direction.value,
            template=challenge.template,
            total_weeks=challenge.total_weeks,
            target_amount_cents=challenge.target_amount_cents,
            start_amount_cents=challenge.start_amount_cents,
            step_amount_cents=challenge.step_amount_cents,
            weekly_amounts=list(challenge.weekly_amounts),
            start_date=challenge.start_date,
            status=challenge.status.value,
            total_deposited_cents=challenge.total_deposited_cents,
            linked_account_ref=challenge.linked_account_ref,
            completed_on=challenge.completed_on,
            version=challenge.version,
        )
        self.db.add(db_challenge)
        self.db.flush()  # Get ID without committing
        return db_challenge

    def _get_row(self, challenge_id: str, for_update: bool = False) -> Optional[SavingsChallenge]:
        query = self.db.query(SavingsChallenge).filter(SavingsChallenge.id == _parse_id(challenge_id))
        if for_update:
            # Refresh from the locked row, not the identity map
            query = query.with_for_update().populate_existing()
        return query.first()

    def get(self, challenge_id: str) -> Challenge:
        """Fetch a challenge with its ledger"""
        row = self._get_row(challenge_id)
        if row is None:
            raise ChallengeNotFound(f"Challenge {challenge_id} not found")
        return to_domain(row)

    def list_by_user(self, user_id: str, limit: int = 20) -> List[Challenge]:
        """Fetch a user's challenges, newest first"""
        rows = (
            self.db.query(SavingsChallenge)
            .filter(SavingsChallenge.user_id == user_id)
            .order_by(SavingsChallenge.created_at.desc())
            .limit(limit)
            .all()
        )
        return [to_domain(row) for row in rows]

    def save(self, challenge: Challenge, expected_version: int) -> SavingsChallenge:
        """
        Write back a transitioned challenge.

        The stored row is locked and its version must still be the one the
        caller loaded; otherwise another writer got there first.

        Raises:
            ChallengeNotFound: Row was deleted
            VersionConflict: Stored version differs from expected_version
        """
        row = self._get_row(challenge.id, for_update=True)
        if row is None:
            raise ChallengeNotFound(f"Challenge {challenge.id} not found")
        if row.version != expected_version:
            raise VersionConflict(
                f"Challenge {challenge.id} is at version {row.version}, expected {expected_version}"
            )

        row.status = challenge.status.value
        row.total_deposited_cents = challenge.total_deposited_cents
        row.completed_on = challenge.completed_on
        row.version = challenge.version

        # Ledger weeks are only ever added or replaced, never removed
        existing = {d.week: d for d in row.deposits}
        for deposit in challenge.ledger:
            db_deposit = existing.get(deposit.week)
            if db_deposit is None:
                row.deposits.append(
                    ChallengeDeposit(
                        week=deposit.week,
                        deposited_on=deposit.date,
                        status=deposit.status.value,
                        amount_cents=deposit.amount_cents,
                    )
                )
            else:
                db_deposit.deposited_on = deposit.date
                db_deposit.status = deposit.status.value
                db_deposit.amount_cents = deposit.amount_cents

        self.db.flush()
        return row

    def delete(self, challenge_id: str) -> None:
        """Hard delete a challenge and its ledger"""
        row = self._get_row(challenge_id)
        if row is None:
            raise ChallengeNotFound(f"Challenge {challenge_id} not found")
        self.db.delete(row)
        self.db.flush()
