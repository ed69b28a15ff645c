"""Data access layer for users, debts and score settings"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from meinha_score.infrastructure.database.models import DebtRecord, SystemSetting, UserRecord
from meinha_score.domain.models import Debt, DebtStatus, PaymentOverride, User
from meinha_score.domain.rules import DEFAULT_RULES, ScoreRules, merge_rules, rules_to_dict

SCORE_CONFIG_KEY = "score_config"

# Keys used by overrides saved by the previous admin tool
_LEGACY_OVERRIDE_KEYS = {
    "wasOnTime": "was_on_time",
    "overriddenBy": "overridden_by",
    "overriddenAt": "overridden_at",
}


def override_to_json(override: PaymentOverride) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "was_on_time": override.was_on_time,
        "overridden_by": override.overridden_by,
        "overridden_at": override.overridden_at.isoformat()
        if isinstance(override.overridden_at, datetime)
        else override.overridden_at,
    }
    # Reason is optional and only stored when given
    if override.reason:
        data["reason"] = override.reason
    return data


def override_from_json(data: Optional[Dict[str, Any]]) -> Optional[PaymentOverride]:
    if not data:
        return None
    data = {_LEGACY_OVERRIDE_KEYS.get(key, key): value for key, value in data.items()}
    return PaymentOverride(
        was_on_time=bool(data["was_on_time"]),
        overridden_by=data.get("overridden_by", ""),
        overridden_at=data.get("overridden_at"),
        reason=data.get("reason"),
    )


def debt_to_domain(record: DebtRecord) -> Debt:
    return Debt(
        id=record.id,
        creditor_id=record.creditor_id,
        debtor_id=record.debtor_id,
        amount=record.amount,
        original_amount=record.original_amount,
        status=DebtStatus(record.status),
        due_date=record.due_date,
        created_at=record.created_at,
        updated_at=record.updated_at,
        was_partial_payment=bool(record.was_partial_payment),
        payment_override=override_from_json(record.payment_override),
        description=record.description,
    )


def user_to_domain(record: UserRecord) -> User:
    return User(id=record.id, username=record.username, name=record.name)


class UserRepository:
    """Repository for group members"""

    def __init__(self, db: Session):
        self.db = db

    def list_users(self) -> List[User]:
        records = self.db.query(UserRecord).order_by(UserRecord.username).all()
        return [user_to_domain(r) for r in records]

    def get_user(self, user_id: str) -> Optional[User]:
        record = self.db.query(UserRecord).filter(UserRecord.id == user_id).first()
        return user_to_domain(record) if record else None


class DebtRepository:
    """Repository for the debt ledger"""

    def __init__(self, db: Session):
        self.db = db

    def list_debts(self) -> List[Debt]:
        """Full ledger snapshot; the score engine filters per subject itself"""
        return [debt_to_domain(r) for r in self.db.query(DebtRecord).all()]

    def get_debt(self, debt_id: str) -> Optional[Debt]:
        record = self.db.get(DebtRecord, debt_id)
        return debt_to_domain(record) if record else None

    def set_payment_override(self, debt_id: str, override: PaymentOverride) -> Optional[Debt]:
        record = self.db.get(DebtRecord, debt_id)
        if record is None:
            return None
        record.payment_override = override_to_json(override)
        self.db.flush()
        return debt_to_domain(record)

    def clear_payment_override(self, debt_id: str) -> Optional[Debt]:
        record = self.db.get(DebtRecord, debt_id)
        if record is None:
            return None
        record.payment_override = None
        self.db.flush()
        return debt_to_domain(record)

    def clear_all_overrides(self) -> int:
        """Remove overrides from every paid debt; returns how many were cleared"""
        records = self.db.query(DebtRecord).filter(DebtRecord.status == DebtStatus.PAID.value).all()
        cleared = 0
        for record in records:
            if record.payment_override:
                record.payment_override = None
                cleared += 1
        self.db.flush()
        return cleared


class SettingsRepository:
    """Repository for admin-editable settings"""

    def __init__(self, db: Session):
        self.db = db

    def get_score_rules(self) -> ScoreRules:
        """Stored score config merged onto the defaults, or the defaults when none is stored"""
        record = self.db.get(SystemSetting, SCORE_CONFIG_KEY)
        if record is None:
            return DEFAULT_RULES
        return merge_rules(record.value)

    def save_score_rules(self, rules: ScoreRules) -> None:
        record = self.db.get(SystemSetting, SCORE_CONFIG_KEY)
        if record is None:
            record = SystemSetting(key=SCORE_CONFIG_KEY, value=rules_to_dict(rules))
            self.db.add(record)
        else:
            record.value = rules_to_dict(rules)
        self.db.flush()
