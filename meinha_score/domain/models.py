"""Domain models - pure Python dataclasses representing debts and score results"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Union

# Stores hand us native datetimes, plain dates or ISO strings
DateLike = Union[datetime, date, str, None]


class DebtStatus(str, Enum):
    OPEN = "OPEN"
    PAID = "PAID"


class Classification(str, Enum):
    """Score tiers shown next to a member's score"""

    ELITE = "Elite"
    RELIABLE = "Confiável"
    OK = "Ok"
    UNSTABLE = "Instável"
    DANGER = "Perigo"
    DEADBEAT = "Caloteiro"  # no threshold maps here


@dataclass(frozen=True)
class PaymentOverride:
    """Admin correction of whether a payment counts as on time"""

    was_on_time: bool
    overridden_by: str
    overridden_at: DateLike = None
    reason: Optional[str] = None


@dataclass
class Debt:
    """Two-party obligation from the ledger store"""

    id: str
    creditor_id: str
    debtor_id: str
    amount: float
    status: DebtStatus
    due_date: DateLike
    created_at: DateLike
    updated_at: DateLike = None
    original_amount: Optional[float] = None
    was_partial_payment: bool = False
    payment_override: Optional[PaymentOverride] = None
    description: Optional[str] = None

    @property
    def weighting_amount(self) -> float:
        """Value used for weighting: the amount before any partial payment"""
        return self.original_amount or self.amount


@dataclass(frozen=True)
class ScoreEvent:
    """One line of the score audit trail"""

    date: datetime
    points: float
    reason: str
    debt_id: Optional[str] = None

    @property
    def type(self) -> str:
        return "earned" if self.points > 0 else "lost"


@dataclass(frozen=True)
class ScoreBreakdown:
    base: int
    earned: int
    lost: int


@dataclass(frozen=True)
class SkippedDebt:
    """Diagnostic for a debt left out of the computation"""

    debt_id: str
    reason: str


@dataclass
class ScoreDetails:
    """Output of a score computation"""

    score: int
    classification: Classification
    breakdown: ScoreBreakdown
    history: List[ScoreEvent] = field(default_factory=list)
    skipped: List[SkippedDebt] = field(default_factory=list)


@dataclass(frozen=True)
class User:
    """Group member as seen by the reporting layer"""

    id: str
    username: str
    name: Optional[str] = None
