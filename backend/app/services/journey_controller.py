"""State machine for the surgery booking journey.

``apply_command`` is the only way a :class:`JourneyState` changes. It takes a
state and one command and returns a new state; nothing is mutated in place,
which keeps the merge rules easy to check:

- ``advance`` merges the stage's contribution and moves to the next stage.
- ``jump`` sets the step index directly (resume handoff or the "skip
  identity" shortcut) and optionally merges a contribution.
- ``reset`` starts over with an empty context.

Once a booking has been placed (``finalize_status`` BOOKED or PAID) the
journey is frozen at FINALIZE: jumps and resets are refused so the context
can no longer drift from the stored booking.

Merges only add or overwrite keys. ``None`` values in a contribution are
ignored, so no command can remove something an earlier stage collected.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from ..core.config import settings
from ..schemas.journey import (
    AdvanceCommand,
    BookingContext,
    ContextContribution,
    JourneyCommand,
    JourneyState,
    JumpCommand,
    ResetCommand,
    Stage,
)
from .addon_recommendation import deferred_addon
from ..models.booking_status import FinalizeStatus
from .journey_errors import (
    ContributionValidationError,
    InvalidFinalizeTransitionError,
    StageMismatchError,
    StepOutOfRangeError,
)

logger = logging.getLogger(__name__)

# Context key each stage is responsible for collecting before it may advance.
STAGE_REQUIREMENTS: Dict[Stage, str] = {
    Stage.IDENTITY: "patient_id",
    Stage.QUALIFYING: "essential_info",
    Stage.PROCEDURE: "surgery",
    Stage.PROVIDER: "surgeon",
    Stage.ADDON: "implant",
    Stage.FACILITY: "hospital",
}

LAST_STAGE = max(Stage)


def current_stage(state: JourneyState) -> Stage:
    """Return the stage to render for ``state``.

    Raises instead of restarting at IDENTITY so a misrouted command is
    visible to the caller.
    """
    try:
        return Stage(state.step_index)
    except ValueError:
        raise StepOutOfRangeError(
            f"Step index {state.step_index} is beyond the last stage ({LAST_STAGE.name})"
        ) from None


def merge_context(context: BookingContext, contribution: Optional[ContextContribution]) -> BookingContext:
    if contribution is None:
        return context
    updates = contribution.model_dump(exclude_none=True)
    if not updates:
        return context
    # Re-read typed values so nested records stay models rather than dicts.
    typed = {key: getattr(contribution, key) for key in updates}
    return context.model_copy(update=typed)


def _remember(state: JourneyState, action_id: Optional[str]) -> Tuple[str, ...]:
    if not action_id:
        return state.handled_action_ids
    history = state.handled_action_ids + (action_id,)
    limit = max(1, settings.JOURNEY_ACTION_HISTORY)
    return history[-limit:]


def _is_duplicate(state: JourneyState, action_id: Optional[str]) -> bool:
    if action_id and action_id in state.handled_action_ids:
        logger.info("Ignoring repeated journey action %s at step %s", action_id, state.step_index)
        return True
    return False


def _advance(state: JourneyState, command: AdvanceCommand) -> JourneyState:
    stage = current_stage(state)
    if stage == LAST_STAGE:
        raise StepOutOfRangeError(
            "Cannot advance past FINALIZE; submit the booking instead",
        )
    required = STAGE_REQUIREMENTS[stage]
    if getattr(command.contribution, required) is None:
        raise ContributionValidationError(
            f"{stage.name} stage requires '{required}' before continuing",
            field=required,
        )
    return state.model_copy(
        update={
            "step_index": state.step_index + 1,
            "context": merge_context(state.context, command.contribution),
            "handled_action_ids": _remember(state, command.action_id),
        }
    )


def _require_review(state: JourneyState, action: str) -> None:
    if state.finalize_status != FinalizeStatus.REVIEW:
        raise InvalidFinalizeTransitionError(
            f"Cannot {action} once the booking is {state.finalize_status.value}"
        )


def _jump(state: JourneyState, command: JumpCommand) -> JourneyState:
    _require_review(state, "change stage")
    if command.target_index < Stage.IDENTITY or command.target_index > LAST_STAGE:
        raise StepOutOfRangeError(
            f"Jump target {command.target_index} is outside {Stage.IDENTITY.value}..{LAST_STAGE.value}"
        )
    logger.info("Journey jump %s -> %s", state.step_index, command.target_index)
    return state.model_copy(
        update={
            "step_index": command.target_index,
            "context": merge_context(state.context, command.contribution),
            "handled_action_ids": _remember(state, command.action_id),
        }
    )


def apply_command(state: JourneyState, command: JourneyCommand) -> JourneyState:
    if isinstance(command, ResetCommand):
        _require_review(state, "start over")
        logger.info("Journey reset from step %s", state.step_index)
        return JourneyState()
    if _is_duplicate(state, command.action_id):
        return state
    if isinstance(command, AdvanceCommand):
        return _advance(state, command)
    if isinstance(command, JumpCommand):
        return _jump(state, command)
    raise TypeError(f"Unsupported journey command {type(command).__name__}")


def skip_to_qualifying(patient_id: str, action_id: Optional[str] = None) -> JumpCommand:
    return JumpCommand(
        target_index=int(Stage.QUALIFYING),
        contribution=ContextContribution(patient_id=patient_id),
        action_id=action_id,
    )


def skip_identity(state: JourneyState, patient_id: Optional[str], action_id: Optional[str] = None) -> JourneyState:
    """Shortcut for patients who already have an identity on file.

    Only valid at IDENTITY, and only with the existing ``patient_id``;
    without it the journey would reach FINALIZE with nothing to submit.
    """
    if _is_duplicate(state, action_id):
        return state
    stage = current_stage(state)
    if stage != Stage.IDENTITY:
        raise StageMismatchError(
            f"Identity can only be skipped at IDENTITY, journey is at {stage.name}"
        )
    if not patient_id or not patient_id.strip():
        raise ContributionValidationError(
            "Skipping identity requires an existing patient id",
            field="patient_id",
        )
    return apply_command(state, skip_to_qualifying(patient_id.strip(), action_id))


def defer_addon(action_id: Optional[str] = None) -> AdvanceCommand:
    """ADDON-stage advance that leaves implant choice to the surgeon."""
    return AdvanceCommand(
        contribution=ContextContribution(implant=deferred_addon()),
        action_id=action_id,
    )
