import pytest

from app.schemas.journey import ResumeSignal, Stage
from app.services.journey_controller import current_stage
from app.services.journey_errors import ResumeSignalError, StepOutOfRangeError
from app.services.resume_adapter import parse_resume_signal, resume_command, seed_journey


def test_no_signal_starts_at_identity():
    state = seed_journey()
    assert current_stage(state) == Stage.IDENTITY


def test_resume_lands_on_third_stage():
    state = seed_journey({"step": 3, "patientId": "P1"})
    assert state.step_index == 2
    assert current_stage(state) == Stage.PROCEDURE
    assert state.context.patient_id == "P1"
    assert state.context.enhanced is False


def test_resume_carries_patient_data():
    state = seed_journey(
        {"step": 2, "patientId": "P9", "patientData": {"full_name": "Asha"}, "enhanced": True}
    )
    assert current_stage(state) == Stage.QUALIFYING
    assert state.context.patient_data == {"full_name": "Asha"}
    assert state.context.enhanced is True


def test_resume_accepts_model_instance():
    signal = ResumeSignal(step=2, patient_id="P2")
    assert resume_command(signal).target_index == 1
    assert parse_resume_signal(signal) is signal


@pytest.mark.parametrize(
    "raw",
    [
        {"step": 0, "patientId": "P1"},
        {"step": 2},
        {"step": 2, "patientId": ""},
        {"step": 2, "patientId": "P1", "unexpected": 1},
        {"step": "later", "patientId": "P1"},
    ],
)
def test_invalid_signal_rejected(raw):
    with pytest.raises(ResumeSignalError):
        seed_journey(raw)


def test_step_beyond_last_stage_rejected():
    with pytest.raises(StepOutOfRangeError):
        seed_journey({"step": 9, "patientId": "P1"})
