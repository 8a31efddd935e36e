"""Patient identity capture for the IDENTITY stage.

Registration is delegated to the patient registry. When the registry is down
the journey may continue with a locally issued ``TEMP-`` patient id so the
patient is not blocked; ``IDENTITY_FALLBACK_ENABLED`` turns that leniency off.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from ..core.config import settings

logger = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "TEMP-"


class IdentityCreationError(Exception):
    """Registry failure with the placeholder fallback disabled."""


class IdentityForm(BaseModel):
    # Registration pages send many optional profile fields; keep them all.
    model_config = ConfigDict(extra="allow")

    full_name: str = Field(min_length=1)
    email: EmailStr
    phone: str = Field(min_length=5)
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None


class IdentityResult(BaseModel):
    patient_id: str
    patient_data: Dict[str, Any]
    degraded: bool = False


def placeholder_patient_id() -> str:
    return f"{PLACEHOLDER_PREFIX}{uuid.uuid4().hex[:12].upper()}"


async def create_identity(form: IdentityForm) -> IdentityResult:
    patient_data = form.model_dump(mode="json")
    try:
        async with httpx.AsyncClient(timeout=settings.COLLABORATOR_TIMEOUT) as client:
            resp = await client.post(settings.REGISTRATION_API_URL, json=patient_data)
            resp.raise_for_status()
        body = resp.json()
        patient_id = body.get("patient_id") or body.get("id")
        if not patient_id:
            raise ValueError("registry response missing patient_id")
    except (httpx.HTTPError, ValueError) as exc:
        if not settings.IDENTITY_FALLBACK_ENABLED:
            logger.error("Patient registration failed: %s", exc, exc_info=True)
            raise IdentityCreationError("Patient registration is unavailable") from exc
        patient_id = placeholder_patient_id()
        logger.warning(
            "Patient registration failed (%s); continuing with placeholder %s",
            exc,
            patient_id,
        )
        return IdentityResult(
            patient_id=patient_id,
            patient_data={**patient_data, "placeholder": True},
            degraded=True,
        )
    return IdentityResult(patient_id=str(patient_id), patient_data=patient_data)
