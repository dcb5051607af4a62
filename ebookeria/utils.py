import math
from decimal import Decimal

from sqlalchemy import inspect
from sqlalchemy.sql.elements import UnaryExpression

from ebookeria.core.errors import InvalidSortError


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    # str() first so that 9.99 becomes Decimal("9.99") and not its binary expansion.
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def same_price(current: Decimal | float | None, new: Decimal | float) -> bool:
    """Numeric equality, so ``9.99`` and ``9.990`` are the same price."""

    if current is None:
        return False
    return to_decimal(current) == to_decimal(new)


def order_by_clause(model: type, sort_field: str, sort_direction: str) -> UnaryExpression:
    mapper = inspect(model)
    if sort_field not in mapper.column_attrs:
        raise InvalidSortError(sort_field)

    column = getattr(model, sort_field)
    return column.asc() if sort_direction.lower() == "asc" else column.desc()


def count_pages(total_elements: int, page_size: int) -> int:
    return math.ceil(total_elements / page_size)
