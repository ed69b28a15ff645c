"""Score report across all members, built on the score engine"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence
from meinha_score.domain.models import Debt, ScoreDetails, User
from meinha_score.domain.rules import ScoreRules
from meinha_score.domain.scoring import Clock, calculate_score


@dataclass
class ReportEntry:
    user: User
    details: ScoreDetails


def _matches(user: User, search: str) -> bool:
    needle = search.lower()
    return needle in (user.name or "").lower() or needle in (user.username or "").lower()


def build_score_report(
    users: Iterable[User],
    debts: Sequence[Debt],
    rules: ScoreRules,
    clock: Optional[Clock] = None,
    search: Optional[str] = None,
) -> List[ReportEntry]:
    """
    Score every member against the same ledger snapshot and rules.

    Entries are sorted by score, highest first. `search` keeps only members
    whose name or username contains it (case-insensitive).
    """
    # One instant for the whole report
    now = (clock or datetime.now)()
    entries = [
        ReportEntry(user=user, details=calculate_score(user.id, debts, rules, lambda: now))
        for user in users
        if not search or _matches(user, search)
    ]
    entries.sort(key=lambda entry: entry.details.score, reverse=True)
    return entries
