from .catalog import (
    SURGEON_CHOICE_ID,
    SURGEON_CHOICE_NAME,
    Addon,
    AddonTier,
    CatalogResult,
    Facility,
    Procedure,
    Provider,
)
from .journey import (
    AdvanceCommand,
    AgeBracket,
    BookingContext,
    BookingRef,
    ContextContribution,
    EssentialInfo,
    FinalizeStatus,
    JourneyCommand,
    JourneyCommandUnion,
    JourneyRead,
    JourneyState,
    JumpCommand,
    ResetCommand,
    ResumeSignal,
    Stage,
)
from .booking import (
    BookingRead,
    FacilityPreview,
    FinalizeRequest,
    FinalizeResponse,
    Itinerary,
    PaymentReceipt,
    PriceBreakdown,
    SubmissionPayload,
    ZoneGroup,
)

__all__ = [
    "SURGEON_CHOICE_ID",
    "SURGEON_CHOICE_NAME",
    "Addon",
    "AddonTier",
    "CatalogResult",
    "Facility",
    "Procedure",
    "Provider",
    "AdvanceCommand",
    "AgeBracket",
    "BookingContext",
    "BookingRef",
    "ContextContribution",
    "EssentialInfo",
    "FinalizeStatus",
    "JourneyCommand",
    "JourneyCommandUnion",
    "JourneyRead",
    "JourneyState",
    "JumpCommand",
    "ResetCommand",
    "ResumeSignal",
    "Stage",
    "BookingRead",
    "FacilityPreview",
    "FinalizeRequest",
    "FinalizeResponse",
    "Itinerary",
    "PaymentReceipt",
    "PriceBreakdown",
    "SubmissionPayload",
    "ZoneGroup",
]
