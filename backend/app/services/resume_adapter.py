"""Seed a journey from a registration handoff.

The enhanced registration flow captures identity itself and then launches the
journey with ``{step, patientId, patientData, enhanced}``. ``step`` is
1-based, so ``step=3`` lands on the third stage (index 2). Without a signal a
journey always starts at IDENTITY.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from ..schemas.journey import ContextContribution, JourneyState, JumpCommand, ResumeSignal
from .journey_controller import apply_command
from .journey_errors import ResumeSignalError

logger = logging.getLogger(__name__)


def parse_resume_signal(raw: Mapping[str, Any] | ResumeSignal | None) -> Optional[ResumeSignal]:
    if raw is None or isinstance(raw, ResumeSignal):
        return raw
    try:
        return ResumeSignal.model_validate(raw)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ResumeSignalError(f"Invalid resume signal ({errors})") from exc


def resume_command(signal: ResumeSignal) -> JumpCommand:
    return JumpCommand(
        target_index=signal.step - 1,
        contribution=ContextContribution(
            patient_id=signal.patient_id,
            patient_data=signal.patient_data,
            enhanced=signal.enhanced,
        ),
    )


def seed_journey(raw: Mapping[str, Any] | ResumeSignal | None = None) -> JourneyState:
    """Return the initial state for a new journey."""
    signal = parse_resume_signal(raw)
    state = JourneyState()
    if signal is None:
        return state
    logger.info("Resuming journey for patient %s at step %s", signal.patient_id, signal.step)
    return apply_command(state, resume_command(signal))
