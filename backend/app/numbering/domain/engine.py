import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Sequence

from app.numbering.domain.errors import NumberCollision
from app.numbering.domain.formatter import format_number
from app.numbering.domain.models import NumberingRequest
from app.numbering.domain.resolver import arrival_key, resolve_sequence

logger = logging.getLogger(__name__)


def issue_numbers(all_requests: Sequence[NumberingRequest]) -> Dict[str, str]:
    """
    Map every request id of a fixed collection to its generated number.

    Frozen requests keep their issued number. Within a date group the other
    requests are numbered in arrival order from their resolved tie-break
    index, skipping any index whose number a frozen request already holds,
    so a frozen number never blocks its date.
    """
    frozen_holders: Dict[str, str] = {}
    for request in all_requests:
        if not (request.frozen and request.generated_number):
            continue
        holder = frozen_holders.setdefault(request.generated_number, request.id)
        if holder != request.id:
            raise NumberCollision(
                f"Number {request.generated_number} is frozen on both "
                f"{holder} and {request.id}"
            )

    numbers: Dict[str, str] = {}
    next_index: Dict = {}
    ordered = sorted(all_requests, key=lambda r: (r.supervision_date,) + arrival_key(r))
    for request in ordered:
        if request.frozen and request.generated_number:
            numbers[request.id] = request.generated_number
            continue

        position = resolve_sequence(request, all_requests)
        index = max(position.tie_break_index, next_index.get(request.supervision_date, 0))
        number = format_number(position.base_sequence, index, request.supervision_date)
        while number in frozen_holders:
            index += 1
            number = format_number(position.base_sequence, index, request.supervision_date)

        next_index[request.supervision_date] = index + 1
        numbers[request.id] = number

    return numbers


def fold_request(
    new_request: NumberingRequest,
    existing_requests: Iterable[NumberingRequest],
) -> List[NumberingRequest]:
    """Return the collection with ``new_request`` in it, replacing any same-id entry."""
    collection = [r for r in existing_requests if r.id != new_request.id]
    collection.append(new_request)
    return collection


def compute_number_for_new_request(
    new_request: NumberingRequest,
    existing_requests: Iterable[NumberingRequest],
) -> str:
    """
    Number a request that is about to be added.

    The caller assigns ``id`` and ``created_at`` beforehand and persists the
    request with the returned number attached.
    """
    collection = fold_request(new_request, existing_requests)
    number = issue_numbers(collection)[new_request.id]
    logger.debug(f"Computed number {number} for request {new_request.id}")
    return number


def recalculate_all(all_requests: Iterable[NumberingRequest]) -> List[NumberingRequest]:
    """
    Refresh ``generated_number`` on every request of a fixed collection.

    Frozen requests keep their issued number. The input is not modified;
    the result keeps the input order.
    """
    requests = list(all_requests)
    numbers = issue_numbers(requests)
    refreshed = [
        request if request.frozen and request.generated_number
        else replace(request, generated_number=numbers[request.id])
        for request in requests
    ]

    logger.debug(f"Recalculated {len(refreshed)} numbering requests")
    return refreshed
