"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional
from meinha_score.domain.models import PaymentOverride, ScoreDetails


class ScoreEventSchema(BaseModel):
    """Single line of the score history"""

    date: datetime
    points: float
    reason: str
    debt_id: Optional[str] = None
    type: str  # "earned" or "lost"


class BreakdownSchema(BaseModel):
    base: int
    earned: int
    lost: int


class SkippedDebtSchema(BaseModel):
    debt_id: str
    reason: str


class ScoreResponse(BaseModel):
    """Response for GET /v1/score/{user_id}"""

    user_id: str
    score: int
    classification: str
    breakdown: BreakdownSchema
    history: List[ScoreEventSchema]
    skipped: List[SkippedDebtSchema] = []

    @classmethod
    def from_details(cls, user_id: str, details: ScoreDetails) -> "ScoreResponse":
        return cls(
            user_id=user_id,
            score=details.score,
            classification=details.classification.value,
            breakdown=BreakdownSchema(
                base=details.breakdown.base,
                earned=details.breakdown.earned,
                lost=details.breakdown.lost,
            ),
            history=[
                ScoreEventSchema(
                    date=event.date,
                    points=event.points,
                    reason=event.reason,
                    debt_id=event.debt_id,
                    type=event.type,
                )
                for event in details.history
            ],
            skipped=[SkippedDebtSchema(debt_id=s.debt_id, reason=s.reason) for s in details.skipped],
        )


class ReportItem(BaseModel):
    """One member in the score report"""

    username: str
    name: Optional[str] = None
    details: ScoreResponse


class ReportResponse(BaseModel):
    """Response for GET /v1/score/report"""

    generated_at: datetime
    users: List[ReportItem]


class TimingBonusSchema(BaseModel):
    early: float
    on_time: float
    late_tolerance: float


class PenaltiesSchema(BaseModel):
    late_1_to_2: float
    late_3_to_7: float
    late_8_to_30: float
    late_30_plus: float
    overdue_weekly: float
    overdue_max: float
    default: float


class ScoreRulesSchema(BaseModel):
    """Effective score rules (GET /v1/rules, PUT /v1/rules response)"""

    initial_score: float
    max_score: float
    min_score: float
    creditor_creation: float
    payment_bonus: TimingBonusSchema
    debtor_bonus: TimingBonusSchema
    penalties: PenaltiesSchema


class OverrideRequest(BaseModel):
    """Request body for PUT /v1/debts/{debt_id}/override"""

    was_on_time: bool
    overridden_by: str = Field(..., min_length=1, description="Admin user identifier")
    reason: Optional[str] = Field(None, max_length=500)


class PaymentOverrideSchema(BaseModel):
    was_on_time: bool
    overridden_by: str
    overridden_at: Optional[datetime] = None
    reason: Optional[str] = None

    @classmethod
    def from_domain(cls, override: Optional[PaymentOverride]) -> Optional["PaymentOverrideSchema"]:
        if override is None:
            return None
        return cls(
            was_on_time=override.was_on_time,
            overridden_by=override.overridden_by,
            overridden_at=override.overridden_at,
            reason=override.reason,
        )


class OverrideResponse(BaseModel):
    debt_id: str
    payment_override: Optional[PaymentOverrideSchema] = None


class ClearOverridesResponse(BaseModel):
    """Response for DELETE /v1/overrides"""

    cleared: int
