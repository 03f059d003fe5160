from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from app.numbering.domain.errors import InvalidDate


@dataclass(frozen=True)
class NumberingRequest:
    id: str
    requester_name: str
    stage: str
    supervision_date: date
    created_at: datetime
    generated_number: Optional[str] = None
    frozen: bool = False

    def __post_init__(self) -> None:
        # Grouping is by calendar day; a datetime would split a day into many groups.
        if type(self.supervision_date) is not date:
            raise InvalidDate(
                f"Supervision date of request {self.id} must be a calendar date, "
                f"got {self.supervision_date!r}"
            )


@dataclass(frozen=True)
class SequencePosition:
    base_sequence: int
    tie_break_index: int


@dataclass(frozen=True)
class AuditEntry:
    id: str
    entity_type: str
    entity_id: str
    action: str
    user_name: str
    description: str
    timestamp: datetime
    changes: Optional[str] = None


@dataclass(frozen=True)
class RequestFilters:
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    stage: Optional[str] = None
    limit: int = 50
    offset: int = 0
