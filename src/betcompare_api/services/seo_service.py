"""
# SEO Service

Search-engine facing output: the XML sitemap and schema.org JSON-LD documents.

## Sitemap

Static pages plus every published review (`/review/{slug}`) and blog post
(`/blog/{slug}`), with `lastmod` taken from the document's `last_updated`.

## Structured Data

| Builder | schema.org type |
|---------|-----------------|
| `review_schema` | `Review` with an `AggregateRating` on the reviewed bookmaker |
| `faq_schema` | `FAQPage` |
| `article_schema` | `Article` |
| `offer_schema` | `Offer` |
| `item_list_schema` | `ItemList` of bookmakers |
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from xml.etree import ElementTree as ET

from pymongo import DESCENDING

from betcompare_api.config import settings
from betcompare_api.database import db_manager
from betcompare_api.database.manager import BLOG_POSTS, BOOKMAKERS, REVIEWS
from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.services.blog_service import blog_url
from betcompare_api.services.review_service import PUBLISHED_FILTER, review_excerpt, review_url
from betcompare_api.utils.dates import utcnow

logger = get_logger(prefix="[SEO Service]")

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
SCHEMA_CONTEXT = "https://schema.org"
STATIC_PAGES = [
    ("/", "daily", 1.0),
    ("/compare", "daily", 0.9),
    ("/reviews", "weekly", 0.8),
    ("/bonuses", "daily", 0.9),
    ("/blog", "daily", 0.7),
    ("/about", "monthly", 0.5),
    ("/faq", "weekly", 0.6),
    ("/contact", "monthly", 0.5),
]
SITEMAP_LIMIT = 5000


def absolute_url(path: str) -> str:
    if path.startswith("http://") or path.startswith("https://"):
        return path
    return f"{settings.SITE_URL.rstrip('/')}{path}"


def _date(value: Optional[datetime]) -> Optional[str]:
    return value.date().isoformat() if value else None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _drop_empty(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value not in (None, [], "")}


def render_sitemap(entries: List[Dict[str, Any]]) -> str:
    """Serialize `{loc, lastmod, changefreq, priority}` entries as a sitemap `urlset`."""
    urlset = ET.Element("urlset", xmlns=SITEMAP_NS)
    for entry in entries:
        url = ET.SubElement(urlset, "url")
        ET.SubElement(url, "loc").text = absolute_url(entry["loc"])
        if entry.get("lastmod"):
            ET.SubElement(url, "lastmod").text = entry["lastmod"]
        ET.SubElement(url, "changefreq").text = entry["changefreq"]
        ET.SubElement(url, "priority").text = f"{entry['priority']:.1f}"
    body = ET.tostring(urlset, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}'


def review_schema(review: Dict[str, Any]) -> Dict[str, Any]:
    bookmaker = review.get("bookmaker") if isinstance(review.get("bookmaker"), dict) else {}
    rating = (review.get("ratings") or {}).get("overall", 0)
    summary = review.get("summary") or {}
    author = (review.get("author") or {}).get("name")
    item_name = bookmaker.get("name") or review.get("title")
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "Review",
        "name": review.get("title"),
        "url": absolute_url(review_url(review)),
        "itemReviewed": _drop_empty(
            {
                "@type": "Organization",
                "name": item_name,
                "logo": bookmaker.get("logo"),
                "aggregateRating": {
                    "@type": "AggregateRating",
                    "ratingValue": rating,
                    "ratingCount": max(review.get("views", 0), 1),
                    "bestRating": 5,
                    "worstRating": 1,
                },
            }
        ),
        "author": {"@type": "Person", "name": author or settings.SITE_NAME},
        "datePublished": _iso(review.get("published_at")),
        "description": review_excerpt(review),
        "reviewRating": {"@type": "Rating", "ratingValue": rating, "bestRating": 5, "worstRating": 1},
        "positiveNotes": summary.get("pros") or None,
        "negativeNotes": summary.get("cons") or None,
    }


def faq_schema(faqs: List[Dict[str, str]]) -> Dict[str, Any]:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "FAQPage",
        "mainEntity": [
            {
                "@type": "Question",
                "name": faq["question"],
                "acceptedAnswer": {"@type": "Answer", "text": faq["answer"]},
            }
            for faq in faqs
        ],
    }


def article_schema(post: Dict[str, Any]) -> Dict[str, Any]:
    url = absolute_url(blog_url(post))
    image = (post.get("featured_image") or {}).get("url")
    return _drop_empty(
        {
            "@context": SCHEMA_CONTEXT,
            "@type": "Article",
            "headline": post.get("title"),
            "description": post.get("excerpt"),
            "image": absolute_url(image) if image else None,
            "url": url,
            "datePublished": _iso(post.get("published_at")),
            "dateModified": _iso(post.get("last_updated") or post.get("published_at")),
            "author": {"@type": "Person", "name": (post.get("author") or {}).get("name") or settings.SITE_NAME},
            "publisher": {
                "@type": "Organization",
                "name": settings.SITE_NAME,
                "logo": {"@type": "ImageObject", "url": absolute_url("/logo.png")},
            },
            "mainEntityOfPage": {"@type": "WebPage", "@id": url},
            "keywords": ", ".join(post.get("tags") or []),
        }
    )


def offer_schema(bonus: Dict[str, Any]) -> Dict[str, Any]:
    amount = bonus.get("amount") or {}
    bookmaker = bonus.get("bookmaker") if isinstance(bonus.get("bookmaker"), dict) else {}
    price = None
    if amount.get("value"):
        price = {"@type": "PriceSpecification", "price": str(amount["value"]), "priceCurrency": amount.get("currency", "KES")}
    return _drop_empty(
        {
            "@context": SCHEMA_CONTEXT,
            "@type": "Offer",
            "name": bonus.get("title"),
            "description": bonus.get("description"),
            "url": absolute_url("/bonuses"),
            "validFrom": _iso(bonus.get("valid_from")),
            "validThrough": _iso(bonus.get("valid_until")),
            "priceSpecification": price,
            "eligibleRegion": {"@type": "Country", "name": "Kenya"},
            "seller": {"@type": "Organization", "name": bookmaker.get("name")} if bookmaker.get("name") else None,
        }
    )


def item_list_schema(bookmakers: List[Dict[str, Any]], name: str = "Best Betting Sites in Kenya") -> Dict[str, Any]:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "ItemList",
        "name": name,
        "numberOfItems": len(bookmakers),
        "itemListElement": [
            {
                "@type": "ListItem",
                "position": position,
                "name": bookmaker.get("name"),
                "url": absolute_url(f"/bookmaker/{bookmaker.get('slug')}"),
            }
            for position, bookmaker in enumerate(bookmakers, start=1)
        ],
    }


class SeoService:
    """Builds the sitemap and JSON-LD documents from stored content."""

    async def sitemap_entries(self) -> List[Dict[str, Any]]:
        today = utcnow().date().isoformat()
        entries = [
            {"loc": path, "lastmod": today, "changefreq": changefreq, "priority": priority}
            for path, changefreq, priority in STATIC_PAGES
        ]

        projection = {"slug": 1, "last_updated": 1, "published_at": 1}
        reviews = db_manager.get_collection(REVIEWS).find(dict(PUBLISHED_FILTER), projection)
        for review in await reviews.sort("published_at", DESCENDING).to_list(length=SITEMAP_LIMIT):
            entries.append(
                {
                    "loc": review_url(review),
                    "lastmod": _date(review.get("last_updated") or review.get("published_at")),
                    "changefreq": "weekly",
                    "priority": 0.8,
                }
            )

        posts = db_manager.get_collection(BLOG_POSTS).find(dict(PUBLISHED_FILTER), projection)
        for post in await posts.sort("published_at", DESCENDING).to_list(length=SITEMAP_LIMIT):
            entries.append(
                {
                    "loc": blog_url(post),
                    "lastmod": _date(post.get("last_updated") or post.get("published_at")),
                    "changefreq": "monthly",
                    "priority": 0.7,
                }
            )
        return entries

    async def sitemap(self) -> str:
        entries = await self.sitemap_entries()
        logger.info("Generated sitemap with %d URLs", len(entries))
        return render_sitemap(entries)

    async def review_schema_for(self, slug: str) -> Optional[Dict[str, Any]]:
        """JSON-LD for a published review, `None` when no such review exists."""
        review = await db_manager.get_collection(REVIEWS).find_one({"slug": slug, **PUBLISHED_FILTER})
        if not review:
            return None
        bookmaker = await db_manager.get_collection(BOOKMAKERS).find_one(
            {"_id": review.get("bookmaker")}, {"name": 1, "logo": 1, "slug": 1}
        )
        if bookmaker:
            review["bookmaker"] = bookmaker
        return _drop_empty(review_schema(review))

    async def article_schema_for(self, slug: str) -> Optional[Dict[str, Any]]:
        """JSON-LD for a published blog post, with an `FAQPage` when the post has FAQs."""
        post = await db_manager.get_collection(BLOG_POSTS).find_one({"slug": slug, **PUBLISHED_FILTER})
        if not post:
            return None
        schemas = [article_schema(post)]
        if post.get("faqs"):
            schemas.append(faq_schema(post["faqs"]))
        return {"schemas": schemas}


seo_service = SeoService()
