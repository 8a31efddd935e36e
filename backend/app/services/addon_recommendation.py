"""Implant (add-on) recommendation for the ADDON stage.

Patients choose how to pick an implant first:

- ``recommended``: an implant is pre-selected from the catalog based on the
  patient's age bracket. Younger patients get the premium tier (longer
  expected life), middle-aged patients the standard tier and patients aged 60
  or more the basic tier. The patient may still pick another item.
- ``manual``: the patient browses the catalog with nothing pre-selected.
- ``deferred``: the surgeon decides; the stage advances immediately with the
  ``surgeon_choice`` sentinel, which is priced at zero.

The rule reads the ``tier`` attribute of catalog items, never their ids, so a
re-seeded catalog keeps working.
"""

from __future__ import annotations

import enum
import logging
import re
from typing import Iterable, Optional

from ..schemas.catalog import SURGEON_CHOICE_ID, SURGEON_CHOICE_NAME, Addon, AddonTier
from ..schemas.journey import AgeBracket

logger = logging.getLogger(__name__)

_LOWER_BOUND = re.compile(r"^\s*(\d+)")


class AddonSelectionMethod(str, enum.Enum):
    RECOMMENDED = "recommended"
    MANUAL = "manual"
    DEFERRED = "deferred"


def age_lower_bound(bracket: AgeBracket | str) -> int:
    value = bracket.value if isinstance(bracket, AgeBracket) else str(bracket)
    match = _LOWER_BOUND.match(value)
    if not match:
        raise ValueError(f"Unrecognised age bracket {value!r}")
    return int(match.group(1))


def recommended_tier(bracket: AgeBracket | str) -> AddonTier:
    age = age_lower_bound(bracket)
    if age < 35:
        return AddonTier.PREMIUM
    if age < 60:
        return AddonTier.STANDARD
    return AddonTier.BASIC


def recommend_addon(bracket: AgeBracket | str, catalog: Iterable[Addon]) -> Optional[Addon]:
    """Return the first catalog item of the recommended tier, if any."""
    tier = recommended_tier(bracket)
    for addon in catalog:
        if addon.tier == tier:
            return addon
    logger.info("No %s implant in catalog for age bracket %s", tier.value, bracket)
    return None


def deferred_addon() -> Addon:
    return Addon(id=SURGEON_CHOICE_ID, name=SURGEON_CHOICE_NAME)


def is_deferred(addon: Optional[Addon]) -> bool:
    return addon is not None and addon.id == SURGEON_CHOICE_ID
