# -----------------------------------------------------------------------------
# /*
#  * Copyright (C) 2025 CodeStory
#  *
#  * This program is free software; you can redistribute it and/or modify
#  * it under the terms of the GNU General Public License as published by
#  * the Free Software Foundation; Version 2.
#  *
#  * This program is distributed in the hope that it will be useful,
#  * but WITHOUT ANY WARRANTY; without even the implied warranty of
#  * MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
#  * GNU General Public License for more details.
#  *
#  * You should have received a copy of the GNU General Public License
#  * along with this program; if not, you can contact us at support@codestory.build
#  */
# -----------------------------------------------------------------------------


from dataclasses import asdict, dataclass, field
from enum import Enum


class OutcomeStatus(str, Enum):
    CREATED = "created"
    REBASED = "rebased"
    UP_TO_DATE = "up_to_date"
    PUSHED = "pushed"
    CONFLICT = "conflict"
    FAILED = "failed"
    SKIPPED = "skipped"


_OK_STATUSES = {
    OutcomeStatus.CREATED,
    OutcomeStatus.REBASED,
    OutcomeStatus.UP_TO_DATE,
    OutcomeStatus.PUSHED,
}


@dataclass
class ChunkOutcome:
    """Result of one chunk's share of a multi-chunk operation."""

    chunk: str
    branch: str
    status: OutcomeStatus
    message: str = ""
    conflicts: list[str] = field(default_factory=list)
    pr_number: int | None = None
    pr_url: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in _OK_STATUSES

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        data["ok"] = self.ok
        return {k: v for k, v in data.items() if v not in (None, [], "")}


@dataclass
class OperationReport:
    """
    Per-chunk outcomes of one operation.

    ``ok`` is the conjunction of every outcome: a single failed, conflicted
    or skipped chunk makes the whole operation a partial failure.
    """

    operation: str
    outcomes: list[ChunkOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(outcome.ok for outcome in self.outcomes)

    @property
    def succeeded(self) -> list[ChunkOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[ChunkOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def outcome_for(self, chunk: str) -> ChunkOutcome | None:
        for outcome in self.outcomes:
            if outcome.chunk == chunk:
                return outcome
        return None

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "ok": self.ok,
            "chunks": [o.to_dict() for o in self.outcomes],
        }
