"""Seasonal keyword table for description-based seasonal recommendations.

Food descriptions are written in Vietnamese, so each season maps to the
lowercase phrases a description uses when a dish belongs to that season.
"""

SEASON_KEYWORDS: dict[str, list[str]] = {
    "spring": ["xuân", "mùa xuân", "đầu năm"],
    "summer": ["hè", "mùa hè", "nóng"],
    "autumn": ["thu", "mùa thu", "mát"],
    "winter": ["đông", "mùa đông", "lạnh"],
}


def keywords_for_season(season: str | None) -> list[str]:
    """Return the keyword list for a season, or an empty list if unknown."""
    if not season:
        return []
    return list(SEASON_KEYWORDS.get(season.strip().lower(), []))
