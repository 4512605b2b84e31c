"""
Recommendation scoring.

Heuristic weighted sums over catalog products. Pure functions: no I/O, no
randomness of their own (personalized jitter is passed in by the caller).
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from storefront.models import Product
from storefront.money import to_float

# Related products
SAME_CATEGORY_WEIGHT = 40
SIMILAR_PRICE_WEIGHT = 25
SAME_BRAND_WEIGHT = 20
SIMILAR_RATING_WEIGHT = 10
TAG_OVERLAP_WEIGHT = 5
SIMILAR_PRICE_MAX_DIFF = 0.3
SIMILAR_RATING_MAX_DIFF = 0.5

# Frequently bought together
COMPLEMENTARY_CATEGORY_WEIGHT = 50
BOUGHT_TOGETHER_SAME_CATEGORY_WEIGHT = 30
ACCESSORY_PRICE_WEIGHT = 30
ACCESSORY_PRICE_RATIO = (0.1, 0.6)
BOUGHT_TOGETHER_RATING_FACTOR = 10
BOUGHT_TOGETHER_IN_STOCK_WEIGHT = 10

# Personalized
PROFILE_CATEGORY_WEIGHT = 30
PROFILE_BRAND_WEIGHT = 20
PROFILE_RATING_FACTOR = 5
PROFILE_FEATURED_WEIGHT = 10
PROFILE_PRICE_WEIGHT = 10
PROFILE_PRICE_MAX_DIFF = 0.5
PROFILE_IN_STOCK_WEIGHT = 5
PROFILE_JITTER_MAX = 5
FALLBACK_MIN_RATING = 4.0

# Trending
TRENDING_RATING_FACTOR = 20
TRENDING_FEATURED_WEIGHT = 30
TRENDING_JITTER_MAX = 50

COMPLEMENTARY_CATEGORIES: dict[str, tuple[str, ...]] = {
    "Oudh Attars": ("Amber Attars", "Sandalwood Attars", "Musk Attars"),
    "Floral Attars": ("Jasmine Attars", "Rose Attars", "Attar Blends"),
    "Musk Attars": ("Oudh Attars", "Amber Attars", "Heritage Attars"),
    "Amber Attars": ("Oudh Attars", "Saffron Attars", "Musk Attars"),
    "Saffron Attars": ("Amber Attars", "Heritage Attars", "Attar Blends"),
    "Sandalwood Attars": ("Oudh Attars", "Musk Attars", "Floral Attars"),
    "Jasmine Attars": ("Floral Attars", "Attar Blends", "Seasonal Attars"),
    "Attar Blends": ("Heritage Attars", "Saffron Attars", "Seasonal Attars"),
    "Seasonal Attars": ("Attar Blends", "Floral Attars", "Jasmine Attars"),
    "Heritage Attars": ("Oudh Attars", "Saffron Attars", "Attar Blends"),
}


@dataclass(frozen=True)
class ScoredProduct:
    """Product with its score for one query."""
    product: Product
    score: float


def relative_price_difference(a: float, b: float) -> float:
    """|a - b| / max(a, b); two free products count as identical."""
    largest = max(a, b)
    if largest <= 0:
        return 0.0
    return abs(a - b) / largest


def tag_overlap(a: Optional[Sequence[str]], b: Optional[Sequence[str]]) -> float:
    """Share of common tags relative to the larger tag list, 0..1."""
    if not a or not b:
        return 0.0
    common = [tag for tag in a if tag in b]
    return len(common) / max(len(a), len(b))


def similarity_score(reference: Product, candidate: Product) -> float:
    """How alike two products are, for "related products"."""
    score = 0.0

    if reference.category == candidate.category:
        score += SAME_CATEGORY_WEIGHT

    if relative_price_difference(to_float(reference.price), to_float(candidate.price)) <= SIMILAR_PRICE_MAX_DIFF:
        score += SIMILAR_PRICE_WEIGHT

    if reference.brand_name and candidate.brand_name and reference.brand_name == candidate.brand_name:
        score += SAME_BRAND_WEIGHT

    if abs(reference.rating - candidate.rating) <= SIMILAR_RATING_MAX_DIFF:
        score += SIMILAR_RATING_WEIGHT

    score += tag_overlap(reference.tags, candidate.tags) * TAG_OVERLAP_WEIGHT

    return score


def complementary_score(reference: Product, candidate: Product) -> float:
    """How well a candidate goes with the reference in one basket."""
    score = 0.0

    complements = COMPLEMENTARY_CATEGORIES.get(reference.category, ())
    if reference.category and candidate.category in complements:
        score += COMPLEMENTARY_CATEGORY_WEIGHT
    elif reference.category == candidate.category:
        score += BOUGHT_TOGETHER_SAME_CATEGORY_WEIGHT

    # Add-ons are expected to be cheaper than the main item
    reference_price = to_float(reference.price)
    if reference_price > 0:
        ratio = to_float(candidate.price) / reference_price
        low, high = ACCESSORY_PRICE_RATIO
        if low <= ratio <= high:
            score += ACCESSORY_PRICE_WEIGHT

    score += candidate.rating * BOUGHT_TOGETHER_RATING_FACTOR

    if candidate.in_stock:
        score += BOUGHT_TOGETHER_IN_STOCK_WEIGHT

    return score


@dataclass(frozen=True)
class ViewingProfile:
    """Implicit preferences derived from recently viewed products."""
    categories: frozenset[str] = field(default_factory=frozenset)
    brands: frozenset[str] = field(default_factory=frozenset)
    average_price: float = 0.0
    viewed_ids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_products(cls, viewed: Sequence[Product]) -> "ViewingProfile":
        if not viewed:
            return cls()
        return cls(
            categories=frozenset(p.category for p in viewed),
            brands=frozenset(p.brand_name for p in viewed if p.brand_name),
            average_price=sum(to_float(p.price) for p in viewed) / len(viewed),
            viewed_ids=frozenset(p.id for p in viewed),
        )

    @property
    def is_empty(self) -> bool:
        return not self.viewed_ids


def affinity_score(profile: ViewingProfile, candidate: Product, jitter: float = 0.0) -> float:
    """Score an unviewed product against the viewing profile."""
    score = 0.0

    if candidate.category in profile.categories:
        score += PROFILE_CATEGORY_WEIGHT

    if candidate.brand_name and candidate.brand_name in profile.brands:
        score += PROFILE_BRAND_WEIGHT

    score += candidate.rating * PROFILE_RATING_FACTOR

    if candidate.featured:
        score += PROFILE_FEATURED_WEIGHT

    if profile.average_price > 0:
        price_diff = abs(to_float(candidate.price) - profile.average_price) / profile.average_price
        if price_diff <= PROFILE_PRICE_MAX_DIFF:
            score += PROFILE_PRICE_WEIGHT

    if candidate.in_stock:
        score += PROFILE_IN_STOCK_WEIGHT

    return score + jitter


def trending_score(product: Product, jitter: float = 0.0) -> float:
    return product.rating * TRENDING_RATING_FACTOR + (TRENDING_FEATURED_WEIGHT if product.featured else 0) + jitter


def top_products(scored: Iterable[ScoredProduct], max_items: int) -> list[Product]:
    """Highest scores first; equal scores keep catalog order."""
    if max_items <= 0:
        return []
    ranked = sorted(scored, key=lambda s: s.score, reverse=True)
    return [s.product for s in ranked[:max_items]]


def popular_fallback(products: Iterable[Product], max_items: int) -> list[Product]:
    """Featured or well-rated products: featured first, then by rating."""
    if max_items <= 0:
        return []
    eligible = [p for p in products if p.featured or p.rating >= FALLBACK_MIN_RATING]
    eligible.sort(key=lambda p: (not p.featured, -p.rating))
    return eligible[:max_items]
