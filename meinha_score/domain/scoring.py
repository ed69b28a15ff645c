"""Score engine - replays a member's debt history into a Meinha score"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from meinha_score.domain.models import (
    Classification,
    Debt,
    DebtStatus,
    PaymentOverride,
    ScoreBreakdown,
    ScoreDetails,
    ScoreEvent,
    SkippedDebt,
)
from meinha_score.domain.exceptions import InvalidDateError
from meinha_score.domain.rules import DEFAULT_RULES, ScoreRules, merge_rules
from meinha_score.utils.date_utils import days_between, parse_datetime, round_half_up

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

MAX_POINTS_PER_DEBT = 20
SPAM_THRESHOLD = 4  # 4th debt of a pair in the same month onwards
SPAM_FACTOR = 0.5
DEFAULT_AFTER_DAYS = 60

# (minimum score, tier), checked top-down
CLASSIFICATION_THRESHOLDS = [
    (900, Classification.ELITE),
    (700, Classification.RELIABLE),
    (400, Classification.OK),
    (200, Classification.UNSTABLE),
]


@dataclass(frozen=True)
class LedgerEntry:
    """Debt with its dates already parsed"""

    debt: Debt
    created_at: datetime
    due_date: datetime
    updated_at: Optional[datetime]


class CreditorOverrideOutcome(Enum):
    BONUS = "bonus"
    NONE = "none"


class DebtorOverrideOutcome(Enum):
    BONUS = "bonus"
    FIXED_PENALTY = "fixed_penalty"


def creditor_override_outcome(override: PaymentOverride) -> CreditorOverrideOutcome:
    # A "late" override takes the bonus away from the creditor but does not penalise them
    return CreditorOverrideOutcome.BONUS if override.was_on_time else CreditorOverrideOutcome.NONE


def debtor_override_outcome(override: PaymentOverride) -> DebtorOverrideOutcome:
    return DebtorOverrideOutcome.BONUS if override.was_on_time else DebtorOverrideOutcome.FIXED_PENALTY


def _parse_entry(debt: Debt) -> LedgerEntry:
    updated_at = None
    if debt.updated_at is not None:
        updated_at = parse_datetime(debt.updated_at, "updated_at")
    return LedgerEntry(
        debt=debt,
        created_at=parse_datetime(debt.created_at, "created_at"),
        due_date=parse_datetime(debt.due_date, "due_date"),
        updated_at=updated_at,
    )


def select_subject_debts(subject_id: str, debts: Iterable[Debt]) -> Tuple[List[LedgerEntry], List[SkippedDebt]]:
    """
    Pick the debts that count for a subject and order them chronologically.

    Debts where the subject is neither party, and partial-payment
    remainders, are dropped silently. Debts with unusable dates are dropped
    with a SkippedDebt diagnostic.

    Returns: (entries sorted by created_at, skipped diagnostics)
    """
    entries: List[LedgerEntry] = []
    skipped: List[SkippedDebt] = []

    for debt in debts:
        if subject_id not in (debt.creditor_id, debt.debtor_id):
            continue
        if debt.was_partial_payment:
            continue
        try:
            entries.append(_parse_entry(debt))
        except InvalidDateError as e:
            skipped.append(SkippedDebt(debt_id=debt.id, reason=str(e)))
            logger.warning(
                f"Skipping debt with invalid date: {e}",
                extra={"debt_id": debt.id, "subject_id": subject_id},
            )

    entries.sort(key=lambda entry: entry.created_at)
    return entries, skipped


class SpamDetector:
    """
    Flags repeated debts between the same two members in one calendar month.

    Counts are kept for a single chronological pass; build a new detector
    for every computation.
    """

    def __init__(self, threshold: int = SPAM_THRESHOLD):
        self.threshold = threshold
        self._counts: Dict[Tuple[str, str, int, int], int] = defaultdict(int)

    def register(self, entry: LedgerEntry) -> bool:
        """Count the debt in its group and report whether it is dampened"""
        first, second = sorted((entry.debt.creditor_id, entry.debt.debtor_id))
        key = (first, second, entry.created_at.year, entry.created_at.month)
        self._counts[key] += 1
        return self._counts[key] >= self.threshold


def dampen(points: float, is_spam: bool) -> float:
    """Halve positive points for spam debts; penalties are never dampened"""
    if is_spam and points > 0:
        return points * SPAM_FACTOR
    return points


def apply_value_weight(points: float, amount: float) -> float:
    """Scale points by the debt size, in both directions"""
    if amount < 10:
        return points * 0.20
    if amount < 50:
        return points * 0.60
    return points


def creditor_payment_points(day_diff: int, rules: ScoreRules) -> float:
    if day_diff < 0:
        return rules.payment_bonus.early
    if day_diff == 0:
        return rules.payment_bonus.on_time
    if day_diff <= 2:
        return rules.payment_bonus.late_tolerance
    return 0


def debtor_payment_points(day_diff: int, rules: ScoreRules) -> float:
    if day_diff < 0:
        return rules.debtor_bonus.early
    if day_diff == 0:
        return rules.debtor_bonus.on_time
    if day_diff <= 2:
        return rules.penalties.late_1_to_2
    if day_diff <= 7:
        return rules.penalties.late_3_to_7
    if day_diff <= 30:
        return rules.penalties.late_8_to_30
    return rules.penalties.late_30_plus


def overdue_penalty(day_diff: int, rules: ScoreRules) -> float:
    """Penalty for an unpaid debt day_diff days past its due date"""
    if day_diff > DEFAULT_AFTER_DAYS:
        return rules.penalties.default

    weeks = day_diff // 7
    penalty = weeks * rules.penalties.overdue_weekly if weeks > 0 else 0
    return max(penalty, rules.penalties.overdue_max)


def _spam_note(points: float, is_spam: bool) -> str:
    return " (repetição no mês)" if is_spam and points > 0 else ""


def _creditor_events(entry: LedgerEntry, is_spam: bool, rules: ScoreRules) -> List[ScoreEvent]:
    debt = entry.debt
    amount = debt.weighting_amount
    events = []

    creation = apply_value_weight(dampen(rules.creditor_creation, is_spam), amount)
    events.append(
        ScoreEvent(
            date=entry.created_at,
            points=creation,
            reason="Credor: criou dívida" + _spam_note(creation, is_spam),
            debt_id=debt.id,
        )
    )

    if debt.status != DebtStatus.PAID or entry.updated_at is None:
        return events

    if debt.payment_override is not None:
        outcome = creditor_override_outcome(debt.payment_override)
        bonus = rules.payment_bonus.on_time if outcome is CreditorOverrideOutcome.BONUS else 0
        reason = "Credor: recebeu pagamento no prazo (ajuste manual)"
    else:
        day_diff = days_between(entry.due_date, entry.updated_at)
        bonus = creditor_payment_points(day_diff, rules)
        if day_diff < 0:
            reason = "Credor: recebeu pagamento antecipado"
        elif day_diff == 0:
            reason = "Credor: recebeu pagamento no vencimento"
        else:
            reason = f"Credor: recebeu pagamento com {day_diff} dia(s) de atraso"

    bonus = apply_value_weight(dampen(bonus, is_spam), amount)
    events.append(
        ScoreEvent(date=entry.updated_at, points=bonus, reason=reason + _spam_note(bonus, is_spam), debt_id=debt.id)
    )
    return events


def _debtor_events(entry: LedgerEntry, is_spam: bool, rules: ScoreRules, now: datetime) -> List[ScoreEvent]:
    debt = entry.debt
    amount = debt.weighting_amount

    if debt.status == DebtStatus.PAID:
        if entry.updated_at is None:
            return []

        if debt.payment_override is not None:
            outcome = debtor_override_outcome(debt.payment_override)
            if outcome is DebtorOverrideOutcome.BONUS:
                points = rules.debtor_bonus.on_time
                reason = "Devedor: pagou no prazo (ajuste manual)"
            else:
                points = rules.penalties.late_30_plus
                reason = "Devedor: pagou com atraso (ajuste manual)"
        else:
            day_diff = days_between(entry.due_date, entry.updated_at)
            points = debtor_payment_points(day_diff, rules)
            if day_diff < 0:
                reason = "Devedor: pagou antecipado"
            elif day_diff == 0:
                reason = "Devedor: pagou no vencimento"
            else:
                reason = f"Devedor: pagou com {day_diff} dia(s) de atraso"

        points = dampen(apply_value_weight(points, amount), is_spam)
        return [ScoreEvent(date=entry.updated_at, points=points, reason=reason + _spam_note(points, is_spam), debt_id=debt.id)]

    if debt.status != DebtStatus.OPEN:
        return []

    # Open debt: only an overdue one costs points
    day_diff = days_between(entry.due_date, now)
    if day_diff <= 0:
        return []

    penalty = apply_value_weight(overdue_penalty(day_diff, rules), amount)
    if day_diff > DEFAULT_AFTER_DAYS:
        reason = f"Devedor: calote, dívida vencida há {day_diff} dias"
    else:
        reason = f"Devedor: dívida vencida há {day_diff} dias"
    return [ScoreEvent(date=now, points=penalty, reason=reason, debt_id=debt.id)]


def evaluate_debt(
    subject_id: str,
    entry: LedgerEntry,
    is_spam: bool,
    rules: ScoreRules,
    now: datetime,
) -> Tuple[float, List[ScoreEvent]]:
    """
    Apply creditor-side and debtor-side rules to one debt.

    Returns the net contribution, capped at +MAX_POINTS_PER_DEBT, and the
    non-zero events behind it. When the cap bites, a corrective event for
    the difference is appended.
    """
    events: List[ScoreEvent] = []
    if entry.debt.creditor_id == subject_id:
        events.extend(_creditor_events(entry, is_spam, rules))
    if entry.debt.debtor_id == subject_id:
        events.extend(_debtor_events(entry, is_spam, rules, now))

    events = [event for event in events if event.points != 0]
    debt_points = sum(event.points for event in events)

    if debt_points > MAX_POINTS_PER_DEBT:
        events.append(
            ScoreEvent(
                date=max(event.date for event in events),
                points=MAX_POINTS_PER_DEBT - debt_points,
                reason=f"Limite de +{MAX_POINTS_PER_DEBT} pontos por dívida",
                debt_id=entry.debt.id,
            )
        )
        debt_points = MAX_POINTS_PER_DEBT

    return debt_points, events


def classify(score: float) -> Classification:
    """Map a final score to its tier"""
    for minimum, tier in CLASSIFICATION_THRESHOLDS:
        if score >= minimum:
            return tier
    return Classification.DANGER


def calculate_score(
    subject_id: str,
    debts: Iterable[Debt],
    rules: Union[ScoreRules, Mapping[str, Any], None] = None,
    clock: Optional[Clock] = None,
) -> ScoreDetails:
    """
    Main entry point: compute a member's score from the whole ledger.

    Pass every debt, not only the subject's; filtering happens here.
    A mapping of rules is deep-merged onto DEFAULT_RULES.

    The clock is read once and only matters for open overdue debts, so
    the result for the same ledger can change from one day to the next.
    Production callers rely on the default wall clock; tests inject one.
    """
    if rules is None:
        rules = DEFAULT_RULES
    elif not isinstance(rules, ScoreRules):
        rules = merge_rules(rules)
    now = parse_datetime((clock or datetime.now)(), "now")

    entries, skipped = select_subject_debts(subject_id, debts)
    spam_detector = SpamDetector()

    earned = 0.0
    lost = 0.0
    history: List[ScoreEvent] = []

    for entry in entries:
        is_spam = spam_detector.register(entry)
        debt_points, events = evaluate_debt(subject_id, entry, is_spam, rules, now)
        history.extend(events)

        if debt_points > 0:
            earned += debt_points
        else:
            lost += debt_points

    raw_score = rules.initial_score + earned + lost
    clamped = min(max(raw_score, rules.min_score), rules.max_score)
    score = round_half_up(clamped)

    logger.debug(
        "Score computed",
        extra={
            "subject_id": subject_id,
            "debts_considered": len(entries),
            "debts_skipped": len(skipped),
            "score": score,
        },
    )

    return ScoreDetails(
        score=score,
        classification=classify(score),
        breakdown=ScoreBreakdown(
            base=round_half_up(rules.initial_score),
            earned=round_half_up(earned),
            lost=round_half_up(lost),
        ),
        history=sorted(history, key=lambda event: event.date, reverse=True),
        skipped=skipped,
    )
