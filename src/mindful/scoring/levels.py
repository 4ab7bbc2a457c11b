"""Level tiers and computation.

These names and thresholds are shown to students as-is:
  Principiante < 200 <= Intermedio < 500 <= Avanzado < 1000 <= Experto < 2000 <= Maestro
"""

from __future__ import annotations

LEVEL_TIERS: list[dict] = [
    {"tier": 1, "name": "Principiante", "min_score": 0},
    {"tier": 2, "name": "Intermedio", "min_score": 200},
    {"tier": 3, "name": "Avanzado", "min_score": 500},
    {"tier": 4, "name": "Experto", "min_score": 1000},
    {"tier": 5, "name": "Maestro", "min_score": 2000},
]


def level_for(score: int) -> str:
    """Tier name for a total score (monotonic step function)."""
    name = LEVEL_TIERS[0]["name"]
    for tier in LEVEL_TIERS:
        if score >= tier["min_score"]:
            name = tier["name"]
    return name


def compute_level(score: int) -> dict:
    """Current tier plus the next one and the points still needed to reach it.

    At the top tier `next_level` and `points_to_next` are None.
    """
    current = LEVEL_TIERS[0]
    next_tier: dict | None = LEVEL_TIERS[1]

    for i, tier in enumerate(LEVEL_TIERS):
        if score >= tier["min_score"]:
            current = tier
            next_tier = LEVEL_TIERS[i + 1] if i + 1 < len(LEVEL_TIERS) else None

    return {
        "level": current["name"],
        "tier": current["tier"],
        "min_score": current["min_score"],
        "next_level": next_tier["name"] if next_tier else None,
        "points_to_next": next_tier["min_score"] - score if next_tier else None,
    }
