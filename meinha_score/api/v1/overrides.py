"""Admin payment-timing overrides on paid debts"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from meinha_score.api.v1.schemas import (
    ClearOverridesResponse,
    OverrideRequest,
    OverrideResponse,
    PaymentOverrideSchema,
)
from meinha_score.api.dependencies import get_clock, get_request_id
from meinha_score.infrastructure.database.session import get_db
from meinha_score.infrastructure.database.repositories import DebtRepository
from meinha_score.domain.exceptions import OverrideNotAllowedError
from meinha_score.domain.overrides import build_payment_override
from meinha_score.domain.scoring import Clock
from meinha_score.infrastructure.observability.metrics import override_change_counter

router = APIRouter()


@router.put("/debts/{debt_id}/override", response_model=OverrideResponse)
def set_override(
    debt_id: str,
    request_body: OverrideRequest,
    request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Mark a paid debt as paid on time or late, regardless of its dates.

    Scores reflect the override the next time they are computed.
    """
    request_id = get_request_id(request)
    debt_repo = DebtRepository(db)

    debt = debt_repo.get_debt(debt_id)
    if debt is None:
        raise HTTPException(status_code=404, detail="Debt not found")

    try:
        override = build_payment_override(
            debt,
            was_on_time=request_body.was_on_time,
            overridden_by=request_body.overridden_by,
            reason=request_body.reason,
            overridden_at=clock(),
        )
    except OverrideNotAllowedError as e:
        raise HTTPException(status_code=409, detail=str(e))

    updated = debt_repo.set_payment_override(debt_id, override)
    db.commit()

    override_change_counter.labels(action="set").inc()
    logging.info(
        "Payment override set",
        extra={
            "request_id": request_id,
            "debt_id": debt_id,
            "was_on_time": override.was_on_time,
            "overridden_by": override.overridden_by,
        },
    )

    return OverrideResponse(
        debt_id=debt_id,
        payment_override=PaymentOverrideSchema.from_domain(updated.payment_override),
    )


@router.delete("/debts/{debt_id}/override", response_model=OverrideResponse)
def clear_override(debt_id: str, request: Request, db: Session = Depends(get_db)):
    """Drop a debt's override so its dates decide the timing again"""
    updated = DebtRepository(db).clear_payment_override(debt_id)
    if updated is None:
        raise HTTPException(status_code=404, detail="Debt not found")
    db.commit()

    override_change_counter.labels(action="clear").inc()
    logging.info("Payment override cleared", extra={"request_id": get_request_id(request), "debt_id": debt_id})

    return OverrideResponse(debt_id=debt_id, payment_override=None)


@router.delete("/overrides", response_model=ClearOverridesResponse)
def clear_all_overrides(request: Request, db: Session = Depends(get_db)):
    """Remove every payment override in the ledger"""
    cleared = DebtRepository(db).clear_all_overrides()
    db.commit()

    override_change_counter.labels(action="clear_all").inc()
    logging.info("All payment overrides cleared", extra={"request_id": get_request_id(request), "cleared": cleared})

    return ClearOverridesResponse(cleared=cleared)
