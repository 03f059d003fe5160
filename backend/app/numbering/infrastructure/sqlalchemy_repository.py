from typing import Optional, Sequence

from sqlalchemy import delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.numbering.application.ports import NumberingRequestRepository
from app.numbering.domain.models import AuditEntry, NumberingRequest, RequestFilters
from database import AuditLog, NumberingRequest as NumberingRequestModel


def _to_domain(row: NumberingRequestModel) -> NumberingRequest:
    return NumberingRequest(
        id=row.id,
        requester_name=row.requester_name,
        stage=row.stage,
        supervision_date=row.supervision_date,
        created_at=row.created_at,
        generated_number=row.generated_number,
        frozen=bool(row.frozen),
    )


class SqlAlchemyNumberingRequestRepository(NumberingRequestRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_request(self, request_id: str) -> Optional[NumberingRequest]:
        result = await self._session.execute(
            select(NumberingRequestModel).where(NumberingRequestModel.id == request_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return _to_domain(row)

    async def list_all_requests(self) -> Sequence[NumberingRequest]:
        result = await self._session.execute(select(NumberingRequestModel))
        return [_to_domain(row) for row in result.scalars().all()]

    async def list_requests(self, filters: RequestFilters) -> Sequence[NumberingRequest]:
        query = select(NumberingRequestModel)

        if filters.date_from:
            query = query.where(NumberingRequestModel.supervision_date >= filters.date_from)
        if filters.date_to:
            query = query.where(NumberingRequestModel.supervision_date <= filters.date_to)
        if filters.stage:
            query = query.where(NumberingRequestModel.stage == filters.stage)

        query = query.order_by(
            desc(NumberingRequestModel.created_at),
            desc(NumberingRequestModel.id),
        )
        query = query.limit(filters.limit).offset(filters.offset)

        result = await self._session.execute(query)
        return [_to_domain(row) for row in result.scalars().all()]

    async def add_request(self, request: NumberingRequest) -> None:
        self._session.add(
            NumberingRequestModel(
                id=request.id,
                requester_name=request.requester_name,
                stage=request.stage,
                supervision_date=request.supervision_date,
                created_at=request.created_at,
                generated_number=request.generated_number,
                frozen=request.frozen,
            )
        )

    async def update_generated_numbers(self, requests: Sequence[NumberingRequest]) -> None:
        for request in requests:
            await self._session.execute(
                update(NumberingRequestModel)
                .where(NumberingRequestModel.id == request.id)
                .values(generated_number=request.generated_number)
            )

    async def set_frozen(self, request_id: str, frozen: bool) -> None:
        await self._session.execute(
            update(NumberingRequestModel)
            .where(NumberingRequestModel.id == request_id)
            .values(frozen=frozen)
        )

    async def delete_request(self, request_id: str) -> None:
        await self._session.execute(
            delete(NumberingRequestModel).where(NumberingRequestModel.id == request_id)
        )

    async def add_audit_entry(self, entry: AuditEntry) -> None:
        self._session.add(
            AuditLog(
                id=entry.id,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                action=entry.action,
                changes=entry.changes,
                user_name=entry.user_name,
                description=entry.description,
                timestamp=entry.timestamp,
            )
        )

    async def commit(self) -> None:
        await self._session.commit()
