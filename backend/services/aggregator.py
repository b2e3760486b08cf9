from __future__ import annotations

from typing import Iterable

try:
    from backend.services.normalizer import Fixture
except ModuleNotFoundError:
    from services.normalizer import Fixture


def dedupe_fixtures(fixtures: Iterable[Fixture]) -> list[Fixture]:
    deduped: list[Fixture] = []
    seen: set[str] = set()
    for fixture in fixtures:
        if fixture.id in seen:
            continue
        seen.add(fixture.id)
        deduped.append(fixture)
    return deduped


def aggregate(batches: Iterable[Iterable[Fixture]]) -> list[Fixture]:
    """Merge batches in fetch order, keep first-seen ids, sort by kickoff.

    ``sorted`` is stable, so fixtures sharing a kickoff keep fetch order.
    """
    merged: list[Fixture] = []
    for batch in batches:
        merged.extend(batch)
    return sorted(dedupe_fixtures(merged), key=Fixture.sort_key)
