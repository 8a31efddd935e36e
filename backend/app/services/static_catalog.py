"""Built-in catalogs used when the catalog service is unreachable.

Only procedures and implants have a fallback; surgeon and hospital lists
must come from the live service.
"""

from decimal import Decimal
from typing import Dict, List, Optional

from ..schemas.catalog import Addon, AddonTier, Procedure

FALLBACK_PROCEDURES: List[Procedure] = [
    Procedure(
        id="1",
        name="Knee Replacement",
        category="knee",
        description="Complete or partial knee joint replacement surgery for arthritis and joint pain",
        base_cost=Decimal("180000"),
        duration_label="2-3 hours",
        recovery_label="6-8 weeks",
        rating=4.8,
    ),
    Procedure(
        id="2",
        name="Hip Replacement",
        category="hip",
        description="Hip joint replacement to restore mobility and reduce pain from arthritis",
        base_cost=Decimal("200000"),
        duration_label="1.5-2.5 hours",
        recovery_label="8-10 weeks",
        rating=4.9,
    ),
    Procedure(
        id="3",
        name="Cataract Surgery",
        category="cataract",
        description="Remove clouded natural lens and replace with artificial intraocular lens",
        base_cost=Decimal("35000"),
        duration_label="20-30 minutes",
        recovery_label="1-2 weeks",
        rating=4.9,
    ),
    Procedure(
        id="4",
        name="Hernia Repair",
        category="hernia",
        description="Laparoscopic or open surgery to repair abdominal wall hernia",
        base_cost=Decimal("85000"),
        duration_label="1-2 hours",
        recovery_label="2-4 weeks",
        rating=4.7,
    ),
    Procedure(
        id="5",
        name="Gallbladder Surgery",
        category="gallbladder",
        description="Minimally invasive laparoscopic cholecystectomy to remove gallbladder",
        base_cost=Decimal("95000"),
        duration_label="30-60 minutes",
        recovery_label="1-2 weeks",
        rating=4.8,
    ),
    Procedure(
        id="6",
        name="Spine Surgery",
        category="spine",
        description="Spinal fusion or disc replacement for chronic back pain",
        base_cost=Decimal("250000"),
        duration_label="3-5 hours",
        recovery_label="3-6 months",
        rating=4.6,
    ),
]


def _tiered(category: str, rows) -> List[Addon]:
    return [
        Addon(
            id=f"{category}-{tier.value}",
            name=name,
            brand=brand,
            tier=tier,
            cost=Decimal(cost),
            surgery_type=category,
            expected_life=life,
        )
        for tier, name, brand, cost, life in rows
    ]


FALLBACK_ADDONS: Dict[str, List[Addon]] = {
    "knee": _tiered("knee", [
        (AddonTier.PREMIUM, "Oxinium Knee System", "Smith & Nephew", "285000", "25-30 years"),
        (AddonTier.STANDARD, "Cobalt-Chrome Knee System", "Zimmer Biomet", "165000", "15-20 years"),
        (AddonTier.BASIC, "Standard Knee Implant", "Meril", "85000", "10-15 years"),
    ]),
    "hip": _tiered("hip", [
        (AddonTier.PREMIUM, "Ceramic-on-Ceramic Hip", "DePuy Synthes", "310000", "25-30 years"),
        (AddonTier.STANDARD, "Ceramic-on-Polyethylene Hip", "Stryker", "190000", "15-20 years"),
        (AddonTier.BASIC, "Metal-on-Polyethylene Hip", "Meril", "95000", "10-15 years"),
    ]),
    "cataract": _tiered("cataract", [
        (AddonTier.PREMIUM, "Multifocal Toric IOL", "Alcon", "60000", "Lifetime"),
        (AddonTier.STANDARD, "Monofocal Aspheric IOL", "Bausch + Lomb", "25000", "Lifetime"),
        (AddonTier.BASIC, "Monofocal IOL", "Appasamy", "8000", "Lifetime"),
    ]),
    "general": _tiered("general", [
        (AddonTier.PREMIUM, "Premium Implant Package", None, "150000", None),
        (AddonTier.STANDARD, "Standard Implant Package", None, "90000", None),
        (AddonTier.BASIC, "Basic Implant Package", None, "40000", None),
    ]),
}


def fallback_addons(category: Optional[str]) -> List[Addon]:
    key = (category or "").strip().lower()
    return list(FALLBACK_ADDONS.get(key, FALLBACK_ADDONS["general"]))
