"""Strategy and stock pool models."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class Strategy(BaseModel):
    """A named trading strategy that backtests are run against."""

    model_config = {"frozen": True}

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1)
    description: str = ""
    rules: tuple[str, ...] = Field(default_factory=tuple)
    create_time: datetime = Field(default_factory=datetime.now)
    update_time: datetime = Field(default_factory=datetime.now)


class Stock(BaseModel):
    """An instrument in the stock pool, shared by code across backtests."""

    model_config = {"frozen": True}

    id: UUID = Field(default_factory=uuid4)
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    note: str | None = None
