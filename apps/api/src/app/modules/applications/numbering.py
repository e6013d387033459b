"""
Application Number Generator

Numbers look like {program_code}{year}{sequence}, e.g. BCA20250007.

The sequence comes from a per-(prefix, year) counter row locked with
SELECT ... FOR UPDATE, so allocation must run inside the transaction that
inserts the application. Programs without a code share the fallback prefix
and therefore one counter. A missing counter row is seeded from the number
of applications already numbered with that prefix and year. Two transactions
seeding the same row at once collide on the primary key; the loser's
IntegrityError rolls back its create and the service retries.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.modules.applications import repository
from app.modules.applications.errors import NumberAllocationError
from app.modules.programs.repository import ProgramRepository

logger = logging.getLogger(__name__)


def format_application_number(program_code: str, year: int, sequence: int) -> str:
    """Format an application number with a zero-padded sequence."""
    width = settings.application_number_sequence_width
    return f"{program_code}{year}{sequence:0{width}d}"


async def resolve_program_code(db: AsyncSession, program_id: int) -> str:
    """
    Get the code used as the number prefix for a program.

    Falls back to the configured fallback code when the program has no code.

    Raises:
        NumberAllocationError: If the code is missing and the fallback is disabled
    """
    code = await ProgramRepository.get_program_code(db, program_id)
    if code:
        return code

    fallback = settings.application_number_fallback_code
    if not fallback:
        logger.warning(f"No program code for program {program_id} and fallback disabled")
        raise NumberAllocationError(
            f"Program {program_id} has no program code; cannot allocate an application number"
        )

    logger.warning(f"No program code for program {program_id}, using fallback '{fallback}'")
    return fallback


async def next_sequence(db: AsyncSession, prefix: str, year: int) -> int:
    """Take the next sequence value for (prefix, year) under a row lock."""
    counter = await repository.get_counter_for_update(db, prefix, year)

    if counter is None:
        existing = await repository.count_for_prefix_year(db, prefix, year)
        counter = await repository.create_counter(db, prefix, year, existing + 1)
        logger.info(f"Seeded number counter for {prefix}/{year} at {counter.last_sequence}")
        return counter.last_sequence

    counter.last_sequence += 1
    await db.flush()
    return counter.last_sequence


async def allocate(db: AsyncSession, program_id: int, year: int) -> str:
    """
    Allocate the next application number for a program.

    Args:
        db: Database session, inside the creating transaction
        program_id: Program being applied to
        year: Calendar year of creation

    Returns:
        The formatted application number

    Raises:
        NumberAllocationError: If no program code can be resolved
        IntegrityError: If a concurrent transaction seeded the counter first
    """
    program_code = await resolve_program_code(db, program_id)
    sequence = await next_sequence(db, program_code, year)
    return format_application_number(program_code, year, sequence)
