"""BetCompare API: bookmaker comparison, reviews, bonuses and editorial content."""

__version__ = "1.0.0"
