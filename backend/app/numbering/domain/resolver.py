from typing import Iterable

from app.numbering.domain.errors import UnresolvedDate
from app.numbering.domain.models import NumberingRequest, SequencePosition


def arrival_key(request: NumberingRequest) -> tuple:
    return (request.created_at, request.id)


def resolve_sequence(
    target: NumberingRequest,
    all_requests: Iterable[NumberingRequest],
) -> SequencePosition:
    """
    Locate ``target`` within the full (post-insertion) collection.

    The base sequence is the 1-based rank of the target's supervision date
    among all distinct dates, the tie-break index its 0-based rank among
    requests of the same date ordered by arrival.
    """
    requests = list(all_requests)

    distinct_dates = sorted({request.supervision_date for request in requests})
    try:
        base_sequence = distinct_dates.index(target.supervision_date) + 1
    except ValueError:
        raise UnresolvedDate(
            f"Supervision date {target.supervision_date} of request {target.id} "
            "is not in the collection"
        ) from None

    same_date = sorted(
        (r for r in requests if r.supervision_date == target.supervision_date),
        key=arrival_key,
    )
    for index, request in enumerate(same_date):
        if request.id == target.id:
            return SequencePosition(base_sequence=base_sequence, tie_break_index=index)

    raise UnresolvedDate(f"Request {target.id} is not in the collection")
