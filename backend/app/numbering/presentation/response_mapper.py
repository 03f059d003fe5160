from typing import Any, Dict

from app.numbering.domain.models import NumberingRequest


def numbering_request_to_response(request: NumberingRequest) -> Dict[str, Any]:
    return {
        "id": request.id,
        "requester_name": request.requester_name,
        "stage": request.stage,
        "supervision_date": request.supervision_date.isoformat(),
        "generated_number": request.generated_number,
        "frozen": request.frozen,
        "created_at": request.created_at.isoformat() if request.created_at else None,
    }
