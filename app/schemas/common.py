from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

from app.core.timezone_utils import as_utc


# SQLite hands back naive datetimes; everything stored is UTC.
UtcDateTime = Annotated[datetime, AfterValidator(as_utc)]

# largest value a Numeric(10, 2) column holds
MAX_PRICE = 99999999.99


def Name(max_length: int):
    """Display name: surrounding blanks are dropped before the length check."""
    return Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=max_length)]


class CamelModel(BaseModel):
    """Base for every request/response schema: camelCase on the wire,
    snake_case in Python, and readable straight from ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
