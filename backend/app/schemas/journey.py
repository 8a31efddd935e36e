from __future__ import annotations

import enum
from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from ..models.booking_status import FinalizeStatus
from .catalog import Addon, Facility, Procedure, Provider


class Stage(enum.IntEnum):
    """Ordered journey stages; the value is the step index."""

    IDENTITY = 0
    QUALIFYING = 1
    PROCEDURE = 2
    PROVIDER = 3
    ADDON = 4
    FACILITY = 5
    FINALIZE = 6


class AgeBracket(str, enum.Enum):
    AGE_18_34 = "18-34"
    AGE_35_49 = "35-49"
    AGE_50_59 = "50-59"
    AGE_60_74 = "60-74"
    AGE_75_PLUS = "75+"


class EssentialInfo(BaseModel):
    age_bracket: AgeBracket
    medical_condition: bool = False
    insurance_status: Literal["yes", "no"] = "no"


class BookingRef(BaseModel):
    id: str
    status: str


class ContextContribution(BaseModel):
    """Partial context a stage hands to the controller.

    Unknown keys are rejected so a typo cannot silently become a no-op merge.
    """

    model_config = ConfigDict(extra="forbid")

    patient_id: Optional[str] = None
    patient_data: Optional[Dict[str, Any]] = None
    enhanced: Optional[bool] = None
    essential_info: Optional[EssentialInfo] = None
    surgery: Optional[Procedure] = None
    surgeon: Optional[Provider] = None
    implant: Optional[Addon] = None
    hospital: Optional[Facility] = None


class BookingContext(ContextContribution):
    booking: Optional[BookingRef] = None


class AdvanceCommand(BaseModel):
    type: Literal["advance"] = "advance"
    contribution: ContextContribution = Field(default_factory=ContextContribution)
    action_id: Optional[str] = Field(
        default=None,
        description="Client-generated id of the user action; repeats are ignored.",
    )


class JumpCommand(BaseModel):
    type: Literal["jump"] = "jump"
    target_index: int
    contribution: Optional[ContextContribution] = None
    action_id: Optional[str] = None


class ResetCommand(BaseModel):
    type: Literal["reset"] = "reset"


JourneyCommandUnion = Union[AdvanceCommand, JumpCommand, ResetCommand]

JourneyCommand = Annotated[JourneyCommandUnion, Field(discriminator="type")]


class JourneyState(BaseModel):
    """Immutable snapshot of a journey; every command yields a new one."""

    model_config = ConfigDict(frozen=True)

    step_index: int = Field(default=0, ge=0)
    context: BookingContext = Field(default_factory=BookingContext)
    finalize_status: FinalizeStatus = FinalizeStatus.REVIEW
    handled_action_ids: Tuple[str, ...] = ()


class ResumeSignal(BaseModel):
    """Handoff from an external registration flow into the journey.

    Accepts the camelCase keys the registration pages send.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    step: int = Field(ge=1)
    patient_id: str = Field(alias="patientId", min_length=1)
    patient_data: Dict[str, Any] = Field(default_factory=dict, alias="patientData")
    enhanced: bool = False


class JourneyRead(BaseModel):
    id: str
    step_index: int
    stage: Optional[str] = None
    context: BookingContext
    finalize_status: FinalizeStatus
