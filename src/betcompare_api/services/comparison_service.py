"""
# Comparison Service

Head-to-head comparison of two bookmakers and the ranked comparison table.

## Head-to-head

Both ids must resolve to **active** bookmakers. Each category maps to one rating field:

| Category | Rating field |
|----------|--------------|
| Overall Rating | `overall` |
| Odds Quality | `odds` |
| Bonuses | `bonuses` |
| Mobile Experience | `mobile` |
| Customer Support | `support` |

The winner of a category is `bookmaker1` when its score is strictly higher and
`bookmaker2` otherwise, so equal scores go to the second bookmaker.

## Comparison table

The ten best-rated active bookmakers with their top three features, best current
bonus, and short pros/cons derived from features and sub-ratings.
"""

from typing import Any, Dict, List, Optional, Tuple

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.services.bonus_service import BonusService, bonus_service
from betcompare_api.services.bookmaker_service import BookmakerService, bookmaker_service, display_features

logger = get_logger(prefix="[Comparison Service]")

COMPARISON_CATEGORIES: List[Tuple[str, str]] = [
    ("Overall Rating", "overall"),
    ("Odds Quality", "odds"),
    ("Bonuses", "bonuses"),
    ("Mobile Experience", "mobile"),
    ("Customer Support", "support"),
]
PRO_FEATURES = ["M-Pesa Ready", "High Odds", "Live Betting"]


def category_winner(score1: float, score2: float) -> str:
    return "bookmaker1" if score1 > score2 else "bookmaker2"


def compare_ratings(rating1: Dict[str, float], rating2: Dict[str, float]) -> List[Dict[str, Any]]:
    """Category-by-category scores and winners for two rating blocks."""
    comparisons = []
    for label, field in COMPARISON_CATEGORIES:
        score1 = (rating1 or {}).get(field, 0)
        score2 = (rating2 or {}).get(field, 0)
        comparisons.append(
            {
                "category": label,
                "bookmaker1_score": score1,
                "bookmaker2_score": score2,
                "winner": category_winner(score1, score2),
            }
        )
    return comparisons


def derive_pros(features: List[str]) -> List[str]:
    return [feature for feature in PRO_FEATURES if feature in (features or [])]


def derive_cons(rating: Dict[str, float]) -> List[str]:
    cons = []
    if (rating or {}).get("mobile", 0) < 4:
        cons.append("Mobile could be better")
    if (rating or {}).get("support", 0) < 4:
        cons.append("Support needs improvement")
    return cons


def public_bookmaker(doc: Dict[str, Any], bonuses: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {
        "_id": doc["_id"],
        "name": doc.get("name"),
        "slug": doc.get("slug"),
        "logo": doc.get("logo"),
        "rating": doc.get("rating"),
        "features": doc.get("features", []),
        "payment_methods": doc.get("payment_methods", []),
        "affiliate_link": doc.get("affiliate_link"),
        "bonuses": bonuses or [],
    }


class ComparisonService:
    """Builds head-to-head comparisons and the comparison table."""

    def __init__(self, bookmakers: BookmakerService = bookmaker_service, bonuses: BonusService = bonus_service):
        self.bookmakers = bookmakers
        self.bonuses = bonuses

    async def compare(self, bookmaker1_id: str, bookmaker2_id: str) -> Optional[Dict[str, Any]]:
        """
        Compare two active bookmakers.

        Returns:
            The comparison, or `None` if either id does not resolve to an active bookmaker.
        """
        found = await self.bookmakers.get_active_by_ids([bookmaker1_id, bookmaker2_id])
        first = found.get(bookmaker1_id)
        second = found.get(bookmaker2_id)
        if first is None or second is None:
            logger.info("Comparison requested for missing bookmaker(s): %s, %s", bookmaker1_id, bookmaker2_id)
            return None

        bonuses1, _ = await self.bonuses.get_active(limit=5, bookmaker=bookmaker1_id)
        bonuses2, _ = await self.bonuses.get_active(limit=5, bookmaker=bookmaker2_id)
        return {
            "bookmaker1": public_bookmaker(first, bonuses1),
            "bookmaker2": public_bookmaker(second, bonuses2),
            "comparisons": compare_ratings(first.get("rating"), second.get("rating")),
        }

    async def comparison_table(self, limit: int = 10) -> List[Dict[str, Any]]:
        rows = []
        for doc in await self.bookmakers.get_top_rated(limit):
            top_bonus = await self.bonuses.top_bonus_for(doc["_id"])
            features = doc.get("features", [])
            rows.append(
                {
                    "_id": doc["_id"],
                    "name": doc.get("name"),
                    "slug": doc.get("slug"),
                    "logo": doc.get("logo"),
                    "rating": doc.get("rating"),
                    "features": display_features(features),
                    "top_bonus": top_bonus,
                    "affiliate_link": doc.get("affiliate_link"),
                    "pros": derive_pros(features),
                    "cons": derive_cons(doc.get("rating")),
                }
            )
        return rows


comparison_service = ComparisonService()
