from typing import Optional, Protocol, Sequence

from app.numbering.domain.models import AuditEntry, NumberingRequest, RequestFilters


class NumberingRequestRepository(Protocol):
    async def get_request(self, request_id: str) -> Optional[NumberingRequest]:
        ...

    async def list_all_requests(self) -> Sequence[NumberingRequest]:
        ...

    async def list_requests(self, filters: RequestFilters) -> Sequence[NumberingRequest]:
        ...

    async def add_request(self, request: NumberingRequest) -> None:
        ...

    async def update_generated_numbers(self, requests: Sequence[NumberingRequest]) -> None:
        ...

    async def set_frozen(self, request_id: str, frozen: bool) -> None:
        ...

    async def delete_request(self, request_id: str) -> None:
        ...

    async def add_audit_entry(self, entry: AuditEntry) -> None:
        ...

    async def commit(self) -> None:
        ...
