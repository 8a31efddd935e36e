"""Filtering and ranking of fetched surgeon candidates."""

from __future__ import annotations

from typing import Callable, Iterable, List, Literal, Optional

from pydantic import BaseModel, Field

from ..schemas.catalog import Provider

ExperienceBracket = Literal["10+", "5-10", "<5"]


class ProviderFilters(BaseModel):
    """Declarative filter state; every field left at ``None`` is inactive."""

    experience: Optional[ExperienceBracket] = None
    training_type: Optional[str] = None
    online_consultation: Optional[bool] = None
    min_rating: Optional[float] = Field(default=None, ge=0)
    location: Optional[str] = None


def _experience_matches(bracket: ExperienceBracket, years: int) -> bool:
    if bracket == "10+":
        return years >= 10
    if bracket == "5-10":
        return 5 <= years < 10
    return years < 5


def _predicates(filters: ProviderFilters) -> List[Callable[[Provider], bool]]:
    checks: List[Callable[[Provider], bool]] = []
    if filters.experience is not None:
        bracket = filters.experience
        checks.append(lambda p: _experience_matches(bracket, p.experience_years))
    if filters.training_type:
        training = filters.training_type
        checks.append(lambda p: p.training_type == training)
    if filters.online_consultation is not None:
        wanted = filters.online_consultation
        checks.append(lambda p: p.online_consultation is wanted)
    if filters.min_rating is not None:
        floor = filters.min_rating
        checks.append(lambda p: p.rating >= floor)
    if filters.location and filters.location.strip():
        needle = filters.location.strip().lower()
        checks.append(lambda p: bool(p.location) and needle in p.location.lower())
    return checks


def filter_providers(providers: Iterable[Provider], filters: ProviderFilters) -> List[Provider]:
    checks = _predicates(filters)
    return [p for p in providers if all(check(p) for check in checks)]


def rank_providers(providers: Iterable[Provider]) -> List[Provider]:
    """Order by rating, then experience, both descending.

    ``sorted`` is stable, so equal candidates keep their fetched order.
    """
    return sorted(providers, key=lambda p: (-p.rating, -p.experience_years))


def select_providers(providers: Iterable[Provider], filters: Optional[ProviderFilters] = None) -> List[Provider]:
    return rank_providers(filter_providers(providers, filters or ProviderFilters()))
