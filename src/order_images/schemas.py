"""DTOs and validation for the order images microservice."""

import datetime as dt
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, RootModel

SELECTION_TYPES = ("date", "order_range")


class DateSelection(BaseModel):
    """Open orders created on one UTC calendar day."""

    type: Literal["date"]
    date: dt.date = Field(..., description="Calendar day, ISO format (YYYY-MM-DD)")


class OrderRangeSelection(BaseModel):
    """Open orders whose order number lies in [start, end]."""

    type: Literal["order_range"]
    start: int = Field(..., ge=0, description="First order number (inclusive)")
    end: int = Field(..., ge=0, description="Last order number (inclusive)")


Selection = Annotated[Union[DateSelection, OrderRangeSelection], Field(discriminator="type")]


class ImageBundleRequest(RootModel[Selection]):
    pass
