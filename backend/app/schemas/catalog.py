from __future__ import annotations

import enum
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# Add-on id used when the patient leaves implant choice to the surgeon.
SURGEON_CHOICE_ID = "surgeon_choice"
SURGEON_CHOICE_NAME = "Provider's Recommendation"


class AddonTier(str, enum.Enum):
    PREMIUM = "premium"
    STANDARD = "standard"
    BASIC = "basic"


class CatalogRecord(BaseModel):
    # Upstream catalogs ship many presentational fields we do not model.
    model_config = ConfigDict(extra="ignore", from_attributes=True)


class Procedure(CatalogRecord):
    id: str
    name: str
    base_cost: Decimal = Decimal("0")
    duration_label: Optional[str] = None
    recovery_label: Optional[str] = None
    rating: float = 0.0
    category: Optional[str] = Field(
        default=None,
        description="Procedure type (e.g. 'knee', 'hip') used to pick a fallback implant catalog.",
    )
    description: Optional[str] = None


class Provider(CatalogRecord):
    id: str
    name: str
    specialization: Optional[str] = None
    experience_years: int = Field(default=0, ge=0)
    rating: float = 0.0
    training_type: Optional[str] = None
    online_consultation: bool = False
    location: Optional[str] = None
    consultation_fee: Optional[Decimal] = None


class Addon(CatalogRecord):
    id: str
    name: str
    brand: Optional[str] = None
    tier: Optional[AddonTier] = None
    cost: Decimal = Decimal("0")
    surgery_type: Optional[str] = None
    expected_life: Optional[str] = None


class Facility(CatalogRecord):
    id: str
    name: str
    zone: Literal[1, 2, 3] = 3
    base_price: Decimal = Decimal("0")
    consumables_cost: Decimal = Decimal("0")
    facilities: List[str] = Field(default_factory=list)
    insurance_accepted: bool = True
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class CatalogResult(BaseModel):
    """A fetched candidate list plus the notice shown when the fetch degraded.

    ``degraded`` means the items came from the built-in fallback catalog;
    ``retryable`` means nothing usable came back and the stage should offer a
    retry.
    """

    kind: Literal["procedures", "providers", "addons", "facilities"]
    items: list = Field(default_factory=list)
    degraded: bool = False
    retryable: bool = False
    notice: Optional[str] = None
