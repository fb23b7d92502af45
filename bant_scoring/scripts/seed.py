"""Seed the default BANT scoring configuration.

Usage::

    python -m bant_scoring.scripts.seed [--recalculate]

Inserts the default rubric when ``scoring_config`` is empty, then
optionally rescores every lead against it.
"""

import argparse
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bant_scoring.core.config import settings
from bant_scoring.repositories.unit_of_work import unit_of_work_factory
from bant_scoring.schemas.common import ChangeReason
from bant_scoring.services.lead_scoring import LeadScoringService


async def seed(recalculate: bool = False) -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    service = LeadScoringService(uow_factory=unit_of_work_factory(session_maker))

    try:
        inserted = await service.initialize_default_config()
        if inserted:
            print(f"Seeded {inserted} scoring dimension(s)")
        else:
            print("Scoring configuration already present, nothing to seed")

        if recalculate:
            result = await service.recalculate_all(ChangeReason.config_update)
            print(f"Recalculated {result.updated_count} lead(s)")
            for failure in result.errors:
                print(f"  failed {failure.lead_id}: {failure.error}")
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--recalculate",
        action="store_true",
        help="rescore every lead after seeding",
    )
    args = parser.parse_args()
    asyncio.run(seed(recalculate=args.recalculate))


if __name__ == "__main__":
    main()
