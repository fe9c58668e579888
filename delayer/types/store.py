"""
Typed results returned by store transactions.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from delayer.constants import PromotionOutcome


class TxOutcome(StrEnum):
    """
    Aggregate outcome of a multi-command transaction.

    - COMMITTED: every sub-command reported the expected state change
    - PARTIAL: some sub-commands did, some did not
    - CONFLICT: none did (e.g. the entries were already gone)
    """

    COMMITTED = "committed"
    PARTIAL = "partial"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class CommandResult:
    """Result of one command inside a transaction."""

    command: str
    applied: bool
    raw: Any = None


@dataclass(frozen=True)
class TxResult:
    """Ordered command results of one executed transaction."""

    commands: tuple[CommandResult, ...]

    @property
    def outcome(self) -> TxOutcome:
        applied = [c.applied for c in self.commands]
        if applied and all(applied):
            return TxOutcome.COMMITTED
        if any(applied):
            return TxOutcome.PARTIAL
        return TxOutcome.CONFLICT

    @property
    def committed(self) -> bool:
        return self.outcome == TxOutcome.COMMITTED

    def get(self, command: str) -> CommandResult | None:
        """Get the first result for a command name."""
        for result in self.commands:
            if result.command == command:
                return result
        return None


@dataclass
class PromotionReport:
    """Counts of promotion outcomes from one promoter scan."""

    promoted: int = 0
    lost_race: int = 0
    expired: int = 0
    job_ids: list[str] = field(default_factory=list)

    def record(self, job_id: str, outcome: PromotionOutcome) -> None:
        if outcome == PromotionOutcome.PROMOTED:
            self.promoted += 1
            self.job_ids.append(job_id)
        elif outcome == PromotionOutcome.LOST_RACE:
            self.lost_race += 1
        else:
            self.expired += 1

    @property
    def total(self) -> int:
        return self.promoted + self.lost_race + self.expired
