import logging
from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from typing import TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Numeric, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockbook.services.errors import ServiceError, StorageError, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

MONEY = Decimal("0.01")
# Matches the scale of the quantity columns.
QUANTITY_SCALE = 3


def normalize_name(name: str) -> str:
    return name.strip().casefold()


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value) -> Decimal:
    return to_decimal(value).quantize(MONEY)


def _describe(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def parse_input(model: type[ModelT], **values) -> ModelT:
    """Validate raw operation arguments into ``model`` or raise ``ValidationError``."""
    try:
        return model.model_validate(values)
    except PydanticValidationError as exc:
        raise ValidationError(_describe(exc)) from exc


@contextmanager
def storage_errors(db: Session, action: str) -> Iterator[None]:
    """Roll back on any failure; database errors surface as an opaque ``StorageError``."""
    try:
        yield
    except ServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("storage failure during %s", action)
        raise StorageError(action) from exc


def rounded_quantity(expression):
    """Round a quantity expression in SQL to the column scale.

    SQLite keeps ``Numeric`` values as binary floats, so ``0.3 - 0.1 - 0.1``
    is stored as ``0.09999999999999998`` unless the arithmetic is rounded.
    """
    return func.round(expression, QUANTITY_SCALE, type_=Numeric(14, QUANTITY_SCALE))
