"""/v1/challenges - savings challenge lifecycle endpoints"""

import time
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, BackgroundTasks, Query, Request, Response
from sqlalchemy.orm import Session

from savings_gateway.api.v1.schemas import (
    ChallengeListResponse,
    ChallengeResponse,
    CreateChallengeRequest,
    DepositRequest,
    DepositResponse,
    DepositSchema,
    PreviewResponse,
    ProgressResponse,
    ScheduledWeekSchema,
    ScheduleRequest,
)
from savings_gateway.api.dependencies import get_ledger_client, get_request_id, get_today
from savings_gateway.config import settings
from savings_gateway.infrastructure.database.session import get_db
from savings_gateway.infrastructure.database.repositories import ChallengeRepository
from savings_gateway.infrastructure.clients.ledger import LedgerClient
from savings_gateway.domain import ledger
from savings_gateway.domain.allocator import simulate, template_target
from savings_gateway.domain.challenge import create_challenge
from savings_gateway.domain.exceptions import (
    ChallengeClosed,
    ChallengeNotFound,
    DuplicateDeposit,
    InvalidDepositAmount,
    InvalidScheduleParams,
    InvalidWeek,
    VersionConflict,
)
from savings_gateway.domain.models import Challenge, ChallengeConfig
from savings_gateway.domain.progress import get_progress
from savings_gateway.infrastructure.observability.metrics import (
    duplicate_deposit_counter,
    record_challenge_created,
    record_deposit_outcome,
    status_transition_counter,
)
from savings_gateway.infrastructure.observability.logging import log_challenge_created, log_deposit
from savings_gateway.utils.date_utils import generate_week_starts

router = APIRouter()


def to_response(challenge: Challenge) -> ChallengeResponse:
    """Map the domain aggregate to its API representation"""
    due_dates = generate_week_starts(challenge.start_date, challenge.total_weeks)
    return ChallengeResponse(
        id=challenge.id,
        user_id=challenge.user_id,
        title=challenge.title,
        icon=challenge.icon,
        mode=challenge.mode,
        direction=challenge.direction,
        template=challenge.template,
        total_weeks=challenge.total_weeks,
        target_amount_cents=challenge.target_amount_cents,
        start_amount_cents=challenge.start_amount_cents,
        step_amount_cents=challenge.step_amount_cents,
        weekly_amounts=list(challenge.weekly_amounts),
        schedule=[
            ScheduledWeekSchema(week=i + 1, due_date=due, amount_cents=amount)
            for i, (due, amount) in enumerate(zip(due_dates, challenge.weekly_amounts))
        ],
        start_date=challenge.start_date,
        status=challenge.status,
        ledger=[
            DepositSchema(week=d.week, date=d.date, status=d.status, amount_cents=d.amount_cents)
            for d in challenge.ledger
        ],
        total_deposited_cents=challenge.total_deposited_cents,
        linked_account_ref=challenge.linked_account_ref,
        completed_on=challenge.completed_on,
        version=challenge.version,
    )


def _load(repo: ChallengeRepository, challenge_id: str) -> Challenge:
    try:
        return repo.get(challenge_id)
    except ChallengeNotFound:
        raise HTTPException(status_code=404, detail="Challenge not found")


@router.post("/challenges/preview", response_model=PreviewResponse)
def preview_schedule(request_body: ScheduleRequest):
    """
    Compute a schedule without saving anything.

    Returns:
        Weekly amounts plus target, first and last week amounts
    """
    target = request_body.target_amount_cents
    try:
        if target is None and request_body.template is not None:
            target = template_target(request_body.template)
        simulation = simulate(
            request_body.total_weeks,
            request_body.direction,
            request_body.mode,
            target_amount_cents=target,
            start_amount_cents=request_body.start_amount_cents,
            step_amount_cents=request_body.step_amount_cents,
            floor_cents=settings.template_floor_cents,
        )
    except InvalidScheduleParams as e:
        raise HTTPException(status_code=422, detail=str(e))

    return PreviewResponse(
        target_amount_cents=simulation.target_amount_cents,
        weekly_amounts=list(simulation.weekly_amounts),
        first_week_amount_cents=simulation.first_week_amount_cents,
        last_week_amount_cents=simulation.last_week_amount_cents,
    )


@router.post("/challenges", response_model=ChallengeResponse, status_code=201)
def create(
    request_body: CreateChallengeRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Create a challenge: allocate its schedule once and persist it.
    """
    request_id = get_request_id(request)
    config = ChallengeConfig(**request_body.model_dump())

    try:
        challenge = create_challenge(config, floor_cents=settings.template_floor_cents)
        ChallengeRepository(db).add(challenge)
        db.commit()
    except InvalidScheduleParams as e:
        db.rollback()
        logging.warning(f"Invalid challenge parameters: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    record_challenge_created(challenge.mode.value, challenge.direction.value, challenge.target_amount_cents)
    log_challenge_created(
        request_id, challenge.id, challenge.mode.value, challenge.total_weeks, challenge.target_amount_cents
    )
    return to_response(challenge)


@router.get("/challenges", response_model=ChallengeListResponse)
def list_challenges(
    user_id: str = Query(..., description="User identifier"),
    db: Session = Depends(get_db),
):
    """Recent challenges for a user, newest first"""
    challenges = ChallengeRepository(db).list_by_user(user_id, limit=20)
    return ChallengeListResponse(user_id=user_id, challenges=[to_response(c) for c in challenges])


@router.get("/challenges/{challenge_id}", response_model=ChallengeResponse)
def get_challenge(challenge_id: str, db: Session = Depends(get_db)):
    """Challenge with schedule, due dates and ledger"""
    return to_response(_load(ChallengeRepository(db), challenge_id))


@router.delete("/challenges/{challenge_id}", status_code=204)
def delete_challenge(challenge_id: str, db: Session = Depends(get_db)):
    """Hard delete: the challenge and its ledger are gone"""
    try:
        ChallengeRepository(db).delete(challenge_id)
        db.commit()
    except ChallengeNotFound:
        db.rollback()
        raise HTTPException(status_code=404, detail="Challenge not found")
    return Response(status_code=204)


@router.post("/challenges/{challenge_id}/deposits", response_model=DepositResponse)
async def create_deposit(
    challenge_id: str,
    request_body: DepositRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    ledger_client: LedgerClient = Depends(get_ledger_client),
    today: date = Depends(get_today),
):
    """
    Record a deposit for one week.

    Flow:
    1. Load the challenge (and check the caller's expected version)
    2. Apply the ledger transition
    3. Persist with an optimistic version check
    4. Schedule the linked transaction webhook, if one was emitted

    A replay of an already-paid week returns the unchanged challenge with
    duplicate=true.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    repo = ChallengeRepository(db)
    challenge = _load(repo, challenge_id)

    if request_body.expected_version is not None and request_body.expected_version != challenge.version:
        raise HTTPException(status_code=409, detail="Challenge was modified; reload and retry")

    week = request_body.week
    amount = request_body.amount_cents
    if amount is None and 1 <= week <= challenge.total_weeks:
        amount = challenge.weekly_amounts[week - 1]

    try:
        outcome = ledger.record_deposit(
            challenge,
            week,
            amount if amount is not None else 0,
            on=request_body.deposited_on or today,
            status=request_body.status,
            create_transaction=request_body.create_transaction,
        )
        repo.save(outcome.challenge, expected_version=challenge.version)
        db.commit()

    except DuplicateDeposit:
        db.rollback()
        duplicate_deposit_counter.inc()
        duration_ms = (time.time() - start_time) * 1000
        log_deposit(
            request_id, challenge.id, week, amount or 0, request_body.status.value,
            challenge.status.value, duration_ms, duplicate=True,
        )
        return DepositResponse(challenge=to_response(challenge), duplicate=True)

    except (InvalidWeek, InvalidDepositAmount) as e:
        db.rollback()
        raise HTTPException(status_code=422, detail=str(e))

    except ChallengeClosed as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))

    except VersionConflict as e:
        db.rollback()
        logging.warning(f"Version conflict: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="Challenge was modified; reload and retry")

    except ChallengeNotFound:
        db.rollback()
        raise HTTPException(status_code=404, detail="Challenge not found")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    updated = outcome.challenge
    if outcome.event is not None:
        background_tasks.add_task(ledger_client.send_linked_transaction, outcome.event)

    duration_ms = (time.time() - start_time) * 1000
    record_deposit_outcome(request_body.status.value, updated.status.value, challenge.status.value)
    log_deposit(
        request_id, updated.id, week, amount, request_body.status.value, updated.status.value,
        duration_ms, linked_account_ref=updated.linked_account_ref if outcome.event else None,
    )

    return DepositResponse(
        challenge=to_response(updated),
        linked_transaction_scheduled=outcome.event is not None,
    )


def _apply_transition(challenge_id: str, db: Session, request_id: str, operation) -> ChallengeResponse:
    repo = ChallengeRepository(db)
    challenge = _load(repo, challenge_id)

    try:
        updated = operation(challenge)
        repo.save(updated, expected_version=challenge.version)
        db.commit()
    except (ChallengeClosed, VersionConflict) as e:
        db.rollback()
        logging.warning(f"Transition rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    status_transition_counter.labels(status=updated.status.value).inc()
    return to_response(updated)


@router.post("/challenges/{challenge_id}/pause", response_model=ChallengeResponse)
def toggle_pause(challenge_id: str, request: Request, db: Session = Depends(get_db)):
    """Pause an active challenge or resume a paused one"""
    return _apply_transition(challenge_id, db, get_request_id(request), ledger.toggle_pause)


@router.post("/challenges/{challenge_id}/cancel", response_model=ChallengeResponse)
def cancel(challenge_id: str, request: Request, db: Session = Depends(get_db)):
    """Cancel a challenge; no further deposits are accepted"""
    return _apply_transition(challenge_id, db, get_request_id(request), ledger.cancel)


@router.get("/challenges/{challenge_id}/progress", response_model=ProgressResponse)
def progress(
    challenge_id: str,
    now: Optional[date] = Query(None, description="Reference date (defaults to today)"),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
):
    """Calendar week, next unpaid week, percent saved and projected end date"""
    challenge = _load(ChallengeRepository(db), challenge_id)
    metrics = get_progress(challenge, now or today)

    return ProgressResponse(
        challenge_id=challenge.id,
        status=challenge.status,
        current_week=metrics.current_week,
        next_unpaid_week=metrics.next_unpaid_week,
        percent=metrics.percent,
        projected_completion_date=metrics.projected_completion_date,
        is_complete=metrics.is_complete,
        weeks_remaining=metrics.weeks_remaining,
        next_deposit_amount_cents=metrics.next_deposit_amount_cents,
        remaining_amount_cents=metrics.remaining_amount_cents,
    )
