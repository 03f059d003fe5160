import sys
from datetime import date, datetime, timedelta
from pathlib import Path

import pytest


BACKEND_PATH = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_PATH) not in sys.path:
    sys.path.append(str(BACKEND_PATH))

from app.numbering.domain.models import NumberingRequest  # noqa: E402


BASE_TIME = datetime(2025, 10, 1, 8, 0, 0)


@pytest.fixture
def make_request():
    def factory(request_id, supervision_date, minute=0, **kwargs):
        if isinstance(supervision_date, str):
            supervision_date = date.fromisoformat(supervision_date)
        return NumberingRequest(
            id=request_id,
            requester_name=kwargs.pop("requester_name", "Budi"),
            stage=kwargs.pop("stage", "Pencocokan dan Penelitian"),
            supervision_date=supervision_date,
            created_at=kwargs.pop("created_at", BASE_TIME + timedelta(minutes=minute)),
            **kwargs,
        )

    return factory
