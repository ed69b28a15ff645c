"""Manual payment-timing overrides set by admins"""

from datetime import datetime
from typing import Optional
from meinha_score.domain.models import Debt, DebtStatus, PaymentOverride
from meinha_score.domain.exceptions import OverrideNotAllowedError


def build_payment_override(
    debt: Debt,
    was_on_time: bool,
    overridden_by: str,
    reason: Optional[str] = None,
    overridden_at: Optional[datetime] = None,
) -> PaymentOverride:
    """
    Create the override an admin wants applied to a debt.

    Only paid debts have a payment timing to correct. Blank reasons are
    dropped; others are stripped.

    Raises:
        OverrideNotAllowedError: debt is still open
    """
    if debt.status != DebtStatus.PAID:
        raise OverrideNotAllowedError(f"Debt {debt.id} is not paid; only paid debts can have their timing overridden")

    reason = reason.strip() if reason else None
    return PaymentOverride(
        was_on_time=was_on_time,
        overridden_by=overridden_by,
        overridden_at=overridden_at or datetime.now(),
        reason=reason or None,
    )
