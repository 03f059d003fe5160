import asyncio
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Sequence, Union

from app.numbering.application.ports import NumberingRequestRepository
from app.numbering.domain.engine import (
    compute_number_for_new_request,
    fold_request,
    recalculate_all,
)
from app.numbering.domain.errors import InvalidRequest, NotFound
from app.numbering.domain.formatter import parse_supervision_date
from app.numbering.domain.models import AuditEntry, NumberingRequest, RequestFilters

logger = logging.getLogger(__name__)

ENTITY_TYPE = "numbering_request"
SYSTEM_ACTOR = "system"

# Serialises append -> resolve -> format -> persist within the process.
_WRITE_LOCK = asyncio.Lock()


@dataclass(frozen=True)
class CreateNumberingRequestCommand:
    requester_name: str
    stage: str
    supervision_date: Union[str, date]


@dataclass(frozen=True)
class ListNumberingRequestsQuery:
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    stage: Optional[str] = None
    limit: int = 50
    offset: int = 0


@dataclass(frozen=True)
class RecalculationReport:
    total: int
    changed_ids: Sequence[str] = field(default_factory=list)


IdGenerator = Callable[[], str]
Clock = Callable[[], datetime]


def _changed_numbers(
    before: Sequence[NumberingRequest],
    after: Sequence[NumberingRequest],
) -> List[NumberingRequest]:
    previous: Dict[str, Optional[str]] = {r.id: r.generated_number for r in before}
    return [r for r in after if previous.get(r.id) != r.generated_number]


def _renumber_entry(
    entry_id: str,
    request: NumberingRequest,
    old_number: Optional[str],
    actor: str,
    now: datetime,
) -> AuditEntry:
    return AuditEntry(
        id=entry_id,
        entity_type=ENTITY_TYPE,
        entity_id=request.id,
        action="renumber",
        user_name=actor,
        description=f"Renumbered {old_number} -> {request.generated_number}",
        timestamp=now,
        changes=json.dumps({"generated_number": [old_number, request.generated_number]}),
    )


class CreateNumberingRequestUseCase:
    def __init__(
        self,
        repository: NumberingRequestRepository,
        id_generator: IdGenerator,
        clock: Clock,
        write_lock: Optional[asyncio.Lock] = None,
    ) -> None:
        self._repository = repository
        self._id_generator = id_generator
        self._clock = clock
        self._write_lock = write_lock or _WRITE_LOCK

    async def execute(self, command: CreateNumberingRequestCommand) -> NumberingRequest:
        if not command.requester_name.strip():
            raise InvalidRequest("Requester name is required")
        if not command.stage.strip():
            raise InvalidRequest("Stage is required")

        supervision_date = parse_supervision_date(command.supervision_date)

        async with self._write_lock:
            existing = list(await self._repository.list_all_requests())
            now = self._clock()
            request = NumberingRequest(
                id=self._id_generator(),
                requester_name=command.requester_name.strip(),
                stage=command.stage.strip(),
                supervision_date=supervision_date,
                created_at=now,
            )

            number = compute_number_for_new_request(request, existing)
            request = replace(request, generated_number=number)

            # Earlier dates shift every later base sequence.
            refreshed = recalculate_all(fold_request(request, existing))
            shifted = [
                r for r in _changed_numbers(existing, refreshed) if r.id != request.id
            ]

            await self._repository.add_request(request)
            if shifted:
                await self._repository.update_generated_numbers(shifted)

            await self._repository.add_audit_entry(
                AuditEntry(
                    id=self._id_generator(),
                    entity_type=ENTITY_TYPE,
                    entity_id=request.id,
                    action="create",
                    user_name=request.requester_name,
                    description=f"Issued supervision number {number}",
                    timestamp=now,
                )
            )
            old_numbers = {r.id: r.generated_number for r in existing}
            for moved in shifted:
                await self._repository.add_audit_entry(
                    _renumber_entry(
                        self._id_generator(),
                        moved,
                        old_numbers[moved.id],
                        request.requester_name,
                        now,
                    )
                )
            await self._repository.commit()

        logger.info(f"Issued {number} for request {request.id} ({len(shifted)} renumbered)")
        return request


class RecalculateNumbersUseCase:
    def __init__(
        self,
        repository: NumberingRequestRepository,
        id_generator: IdGenerator,
        clock: Clock,
        write_lock: Optional[asyncio.Lock] = None,
    ) -> None:
        self._repository = repository
        self._id_generator = id_generator
        self._clock = clock
        self._write_lock = write_lock or _WRITE_LOCK

    async def execute(self, actor: str = SYSTEM_ACTOR) -> RecalculationReport:
        async with self._write_lock:
            existing = list(await self._repository.list_all_requests())
            refreshed = recalculate_all(existing)
            changed = _changed_numbers(existing, refreshed)

            if changed:
                now = self._clock()
                old_numbers = {r.id: r.generated_number for r in existing}
                await self._repository.update_generated_numbers(changed)
                for request in changed:
                    await self._repository.add_audit_entry(
                        _renumber_entry(
                            self._id_generator(), request, old_numbers[request.id], actor, now
                        )
                    )
                await self._repository.commit()

        logger.info(f"Recalculated {len(refreshed)} requests, {len(changed)} changed")
        return RecalculationReport(
            total=len(refreshed),
            changed_ids=[r.id for r in changed],
        )


class ListNumberingRequestsUseCase:
    def __init__(
        self,
        repository: NumberingRequestRepository,
        max_limit: int = 200,
    ) -> None:
        self._repository = repository
        self._max_limit = max_limit

    async def execute(self, query: ListNumberingRequestsQuery) -> Sequence[NumberingRequest]:
        if query.date_from and query.date_to and query.date_from > query.date_to:
            raise InvalidRequest("Start date must not be after end date")

        filters = RequestFilters(
            date_from=query.date_from,
            date_to=query.date_to,
            stage=query.stage,
            limit=max(1, min(query.limit, self._max_limit)),
            offset=max(0, query.offset),
        )
        return await self._repository.list_requests(filters)


class DeleteNumberingRequestUseCase:
    def __init__(
        self,
        repository: NumberingRequestRepository,
        id_generator: IdGenerator,
        clock: Clock,
        write_lock: Optional[asyncio.Lock] = None,
    ) -> None:
        self._repository = repository
        self._id_generator = id_generator
        self._clock = clock
        self._write_lock = write_lock or _WRITE_LOCK

    async def execute(self, request_id: str, actor: str = SYSTEM_ACTOR) -> RecalculationReport:
        async with self._write_lock:
            request = await self._repository.get_request(request_id)
            if request is None:
                raise NotFound("Numbering request not found")
            if request.frozen:
                raise InvalidRequest(
                    f"Number {request.generated_number} is frozen and cannot be deleted"
                )

            remaining = [
                r for r in await self._repository.list_all_requests() if r.id != request_id
            ]
            refreshed = recalculate_all(remaining)
            changed = _changed_numbers(remaining, refreshed)
            now = self._clock()

            await self._repository.delete_request(request_id)
            if changed:
                await self._repository.update_generated_numbers(changed)

            await self._repository.add_audit_entry(
                AuditEntry(
                    id=self._id_generator(),
                    entity_type=ENTITY_TYPE,
                    entity_id=request_id,
                    action="delete",
                    user_name=actor,
                    description=f"Deleted supervision number {request.generated_number}",
                    timestamp=now,
                )
            )
            old_numbers = {r.id: r.generated_number for r in remaining}
            for moved in changed:
                await self._repository.add_audit_entry(
                    _renumber_entry(
                        self._id_generator(), moved, old_numbers[moved.id], actor, now
                    )
                )
            await self._repository.commit()

        logger.info(
            f"Deleted request {request_id} ({request.generated_number}), "
            f"{len(changed)} renumbered"
        )
        return RecalculationReport(total=len(refreshed), changed_ids=[r.id for r in changed])


class FreezeNumberingRequestUseCase:
    def __init__(
        self,
        repository: NumberingRequestRepository,
        id_generator: IdGenerator,
        clock: Clock,
        write_lock: Optional[asyncio.Lock] = None,
    ) -> None:
        self._repository = repository
        self._id_generator = id_generator
        self._clock = clock
        self._write_lock = write_lock or _WRITE_LOCK

    async def execute(self, request_id: str, actor: str = SYSTEM_ACTOR) -> NumberingRequest:
        async with self._write_lock:
            request = await self._repository.get_request(request_id)
            if request is None:
                raise NotFound("Numbering request not found")
            if request.frozen:
                return request
            if not request.generated_number:
                raise InvalidRequest("Only an issued number can be frozen")

            await self._repository.set_frozen(request_id, True)
            await self._repository.add_audit_entry(
                AuditEntry(
                    id=self._id_generator(),
                    entity_type=ENTITY_TYPE,
                    entity_id=request_id,
                    action="freeze",
                    user_name=actor,
                    description=f"Froze supervision number {request.generated_number}",
                    timestamp=self._clock(),
                )
            )
            await self._repository.commit()

        logger.info(f"Froze {request.generated_number} for request {request_id}")
        return replace(request, frozen=True)
