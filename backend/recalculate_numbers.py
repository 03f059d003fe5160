#!/usr/bin/env python3
"""
Bulk consistency repair for supervision numbers.

Re-derives every generated number from the full set of numbering requests
and stores the ones that changed (e.g. after a backdated request was added
by hand).
"""
import asyncio
import logging
import sys
import uuid
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

from app.numbering.application.use_cases import RecalculateNumbersUseCase
from app.numbering.domain.errors import DomainError
from app.numbering.infrastructure.sqlalchemy_repository import (
    SqlAlchemyNumberingRequestRepository,
)
from app.numbering.presentation.response_mapper import numbering_request_to_response
from database import close_postgres_db, get_session_maker, init_postgres_db

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def recalculate_numbers(actor: str = "system") -> bool:
    """Recalculate all numbers inside one session; True on success."""
    logger.info("🔄 Recalculating supervision numbers...")
    try:
        await init_postgres_db()
        async with get_session_maker()() as session:
            repository = SqlAlchemyNumberingRequestRepository(session)
            use_case = RecalculateNumbersUseCase(
                repository=repository,
                id_generator=lambda: str(uuid.uuid4()),
                clock=datetime.utcnow,
            )
            try:
                report = await use_case.execute(actor=actor)
            except DomainError:
                await session.rollback()
                raise

            renumbered = []
            for request_id in report.changed_ids:
                request = await repository.get_request(request_id)
                if request is not None:
                    renumbered.append(numbering_request_to_response(request))

        print(f"✅ {report.total} requests checked, {len(report.changed_ids)} renumbered")
        for response in renumbered:
            print(
                f"   - {response['generated_number']} "
                f"({response['requester_name']}, {response['supervision_date']})"
            )
        return True

    except DomainError as e:
        logger.error(f"❌ Recalculation aborted: {e.message}")
        return False
    finally:
        await close_postgres_db()


def main() -> None:
    actor = sys.argv[1] if len(sys.argv) > 1 else "system"
    result = asyncio.run(recalculate_numbers(actor))
    sys.exit(0 if result else 1)


if __name__ == "__main__":
    main()
