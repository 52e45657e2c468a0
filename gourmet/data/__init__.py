"""Data module for static lookup tables."""

from gourmet.data.seasons import SEASON_KEYWORDS, keywords_for_season

__all__ = ["SEASON_KEYWORDS", "keywords_for_season"]
