"""API schemas."""
from app.schemas.availability import (
    SlotWindow,
    AvailabilitySlot,
    AvailabilityResponse,
)
from app.schemas.booking import (
    BookingCreate,
    BookingRead,
    BookingConflict,
)
from app.schemas.pricing import (
    PricingTier,
    BasicPricing,
    AdvancedPricing,
    Pricing,
)
from app.schemas.seasonal import (
    SeasonalSeriesCreate,
    SeasonalSeriesCreated,
    SeasonalSeriesRead,
    SeriesPreview,
    ActivationRequest,
    ActivationResult,
    AutoCompleteResult,
)
from app.schemas.waitlist import (
    WaitlistJoin,
    WaitlistEntryRead,
)
from app.schemas.working_hours import DayHours, WorkingHours

__all__ = [
    "SlotWindow",
    "AvailabilitySlot",
    "AvailabilityResponse",
    "BookingCreate",
    "BookingRead",
    "BookingConflict",
    "PricingTier",
    "BasicPricing",
    "AdvancedPricing",
    "Pricing",
    "SeasonalSeriesCreate",
    "SeasonalSeriesCreated",
    "SeasonalSeriesRead",
    "SeriesPreview",
    "ActivationRequest",
    "ActivationResult",
    "AutoCompleteResult",
    "WaitlistJoin",
    "WaitlistEntryRead",
    "DayHours",
    "WorkingHours",
]
