"""GET /v1/score - Member scores and the all-members score report"""

import time
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from meinha_score.api.v1.schemas import ReportItem, ReportResponse, ScoreResponse
from meinha_score.api.dependencies import get_clock, get_request_id
from meinha_score.infrastructure.database.session import get_db
from meinha_score.infrastructure.database.repositories import DebtRepository, SettingsRepository, UserRepository
from meinha_score.domain.exceptions import InvalidRuleConfigurationError
from meinha_score.domain.scoring import Clock, calculate_score
from meinha_score.reporting import build_score_report
from meinha_score.infrastructure.observability.metrics import record_score
from meinha_score.infrastructure.observability.logging import log_score_computed

router = APIRouter()


def _load_rules(db: Session, request_id: str):
    try:
        return SettingsRepository(db).get_score_rules()
    except InvalidRuleConfigurationError as e:
        logging.error(f"Stored score rules are invalid: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Stored score rules are invalid")


@router.get("/score/report", response_model=ReportResponse)
def get_score_report(
    request: Request,
    search: Optional[str] = Query(None, description="Filter by name or username"),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Score every member, highest score first.

    All members are scored against one ledger snapshot, one rule set and
    one instant.
    """
    request_id = get_request_id(request)
    rules = _load_rules(db, request_id)
    now = clock()

    entries = build_score_report(
        users=UserRepository(db).list_users(),
        debts=DebtRepository(db).list_debts(),
        rules=rules,
        clock=lambda: now,
        search=search,
    )

    for entry in entries:
        record_score(entry.details.classification.value, entry.details.score, len(entry.details.skipped))

    return ReportResponse(
        generated_at=now,
        users=[
            ReportItem(
                username=entry.user.username,
                name=entry.user.name,
                details=ScoreResponse.from_details(entry.user.id, entry.details),
            )
            for entry in entries
        ],
    )


@router.get("/score/{user_id}", response_model=ScoreResponse)
def get_user_score(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Compute one member's score with its breakdown and history.

    Returns:
        Score, tier, earned/lost breakdown and events newest first
    """
    start_time = time.time()
    request_id = get_request_id(request)

    if UserRepository(db).get_user(user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")

    rules = _load_rules(db, request_id)
    details = calculate_score(user_id, DebtRepository(db).list_debts(), rules, clock)

    duration_ms = (time.time() - start_time) * 1000
    record_score(details.classification.value, details.score, len(details.skipped))
    log_score_computed(
        request_id, user_id, details.score, details.classification.value, len(details.skipped), duration_ms
    )

    return ScoreResponse.from_details(user_id, details)
