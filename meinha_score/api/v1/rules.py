"""GET/PUT /v1/rules - Admin-editable score rules"""

import logging
from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from meinha_score.api.v1.schemas import ScoreRulesSchema
from meinha_score.api.dependencies import get_request_id
from meinha_score.infrastructure.database.session import get_db
from meinha_score.infrastructure.database.repositories import SettingsRepository
from meinha_score.domain.exceptions import InvalidRuleConfigurationError
from meinha_score.domain.rules import merge_rules, rules_to_dict, validate_rules
from meinha_score.infrastructure.observability.metrics import rules_update_counter

router = APIRouter()


@router.get("/rules", response_model=ScoreRulesSchema)
def get_rules(db: Session = Depends(get_db)):
    """Effective rules: the stored config merged onto the defaults"""
    try:
        rules = SettingsRepository(db).get_score_rules()
    except InvalidRuleConfigurationError as e:
        logging.error(f"Stored score rules are invalid: {e}")
        raise HTTPException(status_code=500, detail="Stored score rules are invalid")
    return ScoreRulesSchema(**rules_to_dict(rules))


@router.put("/rules", response_model=ScoreRulesSchema)
def update_rules(
    request: Request,
    body: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    """
    Replace the score rules.

    Fields left out of the body take their default value. Unknown
    fields, non-numeric values and broken invariants are rejected with 422.
    """
    request_id = get_request_id(request)

    try:
        rules = merge_rules(body)
    except InvalidRuleConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    problems = validate_rules(rules)
    if problems:
        raise HTTPException(status_code=422, detail=problems)

    SettingsRepository(db).save_score_rules(rules)
    db.commit()

    rules_update_counter.inc()
    logging.info("Score rules updated", extra={"request_id": request_id})

    return ScoreRulesSchema(**rules_to_dict(rules))
