from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Optional

from ..core.config import settings
from ..schemas.booking import PriceBreakdown
from ..schemas.catalog import SURGEON_CHOICE_ID, Addon, Facility, Procedure, Provider
from ..schemas.journey import BookingContext
from .journey_errors import PriceUnavailableError

_UNIT = Decimal("1")


def _to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default


def _positive_or(value: Any, fallback: Decimal) -> Decimal:
    amount = _to_decimal(value)
    return amount if amount > Decimal("0") else fallback


def addon_cost(implant: Optional[Addon]) -> Decimal:
    """Cost the add-on contributes; nothing when absent or left to the surgeon."""
    if implant is None or implant.id == SURGEON_CHOICE_ID:
        return Decimal("0")
    return _to_decimal(implant.cost)


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(_UNIT, rounding=ROUND_HALF_UP)


def compute_price(
    hospital: Facility,
    implant: Optional[Addon] = None,
    surgery: Optional[Procedure] = None,
    surgeon: Optional[Provider] = None,
    policy: Optional[str] = None,
) -> PriceBreakdown:
    """Return the total and deposit for one selection.

    This is the only pricing formula in the service: the facility preview and
    the finalizer both call it, so a patient is charged exactly what the
    preview showed. Under the ``fixed`` policy the procedure and provider fees
    are flat settings regardless of the chosen records; ``record`` uses
    ``surgery.base_cost`` and ``surgeon.consultation_fee`` when present.
    """
    policy = policy or settings.PRICING_POLICY
    procedure_fee = settings.FIXED_PROCEDURE_FEE
    provider_fee = settings.FIXED_PROVIDER_FEE
    if policy == "record":
        if surgery is not None:
            procedure_fee = _positive_or(surgery.base_cost, procedure_fee)
        if surgeon is not None:
            provider_fee = _positive_or(surgeon.consultation_fee, provider_fee)
    elif policy != "fixed":
        raise ValueError(f"Unknown pricing policy {policy!r}")

    extra = addon_cost(implant)
    base_price = _to_decimal(hospital.base_price)
    consumables = _to_decimal(hospital.consumables_cost)

    total = round_money(procedure_fee + provider_fee + extra + base_price + consumables)
    deposit = round_money(total * settings.DEPOSIT_RATE)

    return PriceBreakdown(
        procedure_fee=round_money(procedure_fee),
        provider_fee=round_money(provider_fee),
        addon_cost=round_money(extra),
        facility_base_price=round_money(base_price),
        consumables_cost=round_money(consumables),
        total=total,
        deposit=deposit,
        currency=settings.DEFAULT_CURRENCY.upper(),
        policy=policy,
    )


def price_for_context(context: BookingContext, policy: Optional[str] = None) -> PriceBreakdown:
    """Price the journey so far; needs at least a surgery and a hospital."""
    missing = [key for key in ("surgery", "hospital") if getattr(context, key) is None]
    if missing:
        raise PriceUnavailableError(
            f"Price needs {', '.join(missing)} to be selected first",
            field=missing[0],
        )
    return compute_price(
        context.hospital,
        implant=context.implant,
        surgery=context.surgery,
        surgeon=context.surgeon,
        policy=policy,
    )
