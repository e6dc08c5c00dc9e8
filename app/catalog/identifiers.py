"""Sequential product identifiers.

Ids look like ``prod_001``, ``prod_002`` ... ``prod_999``, ``prod_1000``.
The next id is derived from the highest existing one, so two concurrent
creates can compute the same value; the primary key constraint catches that
and the store reports it as ``DuplicateProductIdError``.
"""

import asyncio
import re
import time

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.models import ProductRecord
from app.domain.exceptions import InfrastructureError

logger = structlog.get_logger()

PRODUCT_ID_PREFIX = "prod_"
PRODUCT_ID_WIDTH = 3
PRODUCT_ID_PATTERN = re.compile(rf"^{PRODUCT_ID_PREFIX}\d+$")

_DIGITS = re.compile(r"\d+")


def format_product_id(number: int) -> str:
    """Render a product number as an id.

    Args:
        number: Sequence number (1-based).

    Returns:
        Id zero-padded to at least three digits.
    """
    return f"{PRODUCT_ID_PREFIX}{number:0{PRODUCT_ID_WIDTH}d}"


def parse_product_number(product_id: str | None) -> int | None:
    """Extract the numeric part of an id.

    Tolerant of width: ``prod_7``, ``prod_007`` and ``prod_0007`` all give 7.

    Returns:
        The number, or None if the id holds no digits.
    """
    if not product_id:
        return None
    match = _DIGITS.search(product_id)
    if match is None:
        return None
    return int(match.group())


def is_product_id(value: object) -> bool:
    """Check whether a value has the ``prod_<digits>`` shape."""
    return isinstance(value, str) and PRODUCT_ID_PATTERN.match(value) is not None


def fallback_product_id() -> str:
    """Best-effort unique id from the wall clock, in milliseconds."""
    return f"{PRODUCT_ID_PREFIX}{time.time_ns() // 1_000_000}"


class ProductIdGenerator:
    """Derives the next product id from the rows already stored.

    Example usage:
        generator = ProductIdGenerator()
        product_id = await generator.next_id(session)
    """

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize generator.

        Args:
            timeout: Bound in seconds on reading the current maximum.
        """
        self.timeout = timeout

    async def current_max_id(self, session: AsyncSession) -> str | None:
        """Get the numerically highest stored id.

        Longer ids sort first, then lexicographically, which matches numeric
        order for zero-padded digit suffixes (``prod_1000`` beats ``prod_999``).

        Args:
            session: Database session.

        Returns:
            Highest id, or None when the table is empty.
        """
        query = (
            select(ProductRecord.id)
            .where(ProductRecord.id.like(f"{PRODUCT_ID_PREFIX}%"))
            .order_by(func.length(ProductRecord.id).desc(), ProductRecord.id.desc())
            .limit(1)
        )
        result = await session.execute(query)
        return result.scalar_one_or_none()

    async def next_id(self, session: AsyncSession) -> str:
        """Produce the next sequential id.

        Falls back to a timestamp id if the store cannot be read, so a
        transient read failure does not fail the whole create.

        Args:
            session: Database session.

        Returns:
            New product id.
        """
        try:
            last_id = await asyncio.wait_for(
                self.current_max_id(session), timeout=self.timeout
            )
        except (SQLAlchemyError, InfrastructureError, OSError, TimeoutError) as e:
            product_id = fallback_product_id()
            logger.warning(
                "Product id generation failed, using timestamp fallback",
                error=str(e),
                product_id=product_id,
            )
            return product_id

        number = parse_product_number(last_id)
        if number is None:
            return format_product_id(1)
        return format_product_id(number + 1)
