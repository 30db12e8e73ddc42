"""Court pricing schemas.

A court's ``pricing`` JSON column holds one of two variants, discriminated on
``mode``.
"""
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class PricingTier(BaseModel):
    """A named time range with its own price."""

    name: str = ""
    time_range: str = Field(pattern=r"^\d{1,2}:\d{2}-\d{1,2}:\d{2}$")  # "08:00-12:00"
    price: Decimal = Field(ge=0)
    enabled: bool = True

    @property
    def start_hour(self) -> int:
        return int(self.time_range.split("-")[0].split(":")[0])

    @property
    def end_hour(self) -> int:
        hour = int(self.time_range.split("-")[1].split(":")[0])
        # A tier ending at 00:00 runs until midnight
        return 24 if hour == 0 else hour


class BasicPricing(BaseModel):
    """One price per slot regardless of time of day."""

    mode: Literal["basic"] = "basic"
    basic_price: Decimal = Field(ge=0)


class AdvancedPricing(BaseModel):
    """Time-tiered pricing."""

    mode: Literal["advanced"] = "advanced"
    tiers: List[PricingTier] = Field(default_factory=list)
    basic_price: Optional[Decimal] = Field(default=None, ge=0)

    @property
    def enabled_tiers(self) -> List[PricingTier]:
        return [tier for tier in self.tiers if tier.enabled]


Pricing = Annotated[Union[BasicPricing, AdvancedPricing], Field(discriminator="mode")]

pricing_adapter = TypeAdapter(Pricing)
