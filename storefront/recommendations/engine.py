"""
Recommendation Engine

Ranks the in-memory catalog for the product page and home page shelves.
Every call recomputes from the current catalog; nothing is trained or stored
except the recently viewed history.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence, Union

from storefront.events import Subscription
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import Product
from storefront.recommendations.history import RecentlyViewedEvent, RecentlyViewedStore
from storefront.recommendations.scoring import (
    PROFILE_JITTER_MAX,
    TRENDING_JITTER_MAX,
    ScoredProduct,
    ViewingProfile,
    affinity_score,
    complementary_score,
    popular_fallback,
    similarity_score,
    top_products,
    trending_score,
)

logger = get_logger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class RecommendationSet:
    """All shelves computed in one refresh."""
    related: list[Product] = field(default_factory=list)
    frequently_bought: list[Product] = field(default_factory=list)
    you_may_like: list[Product] = field(default_factory=list)
    recently_viewed: list[Product] = field(default_factory=list)
    trending: list[Product] = field(default_factory=list)
    new_arrivals: list[Product] = field(default_factory=list)

    def all_products(self) -> list[Product]:
        return [
            *self.related,
            *self.frequently_bought,
            *self.you_may_like,
            *self.recently_viewed,
            *self.trending,
            *self.new_arrivals,
        ]


def _created_sort_key(product: Product) -> datetime:
    created = product.created_at
    if created is None:
        return _EPOCH
    # Naive timestamps from the catalog are treated as UTC
    return created if created.tzinfo else created.replace(tzinfo=timezone.utc)


class RecommendationEngine:
    """
    Recommendation queries over a catalog.

    Randomness (personalized jitter, trending) comes from `rng`; pass a
    seeded random.Random or an int seed for repeatable output.
    """

    def __init__(
        self,
        catalog: Sequence[Product] = (),
        history: Optional[RecentlyViewedStore] = None,
        rng: Union[random.Random, int, None] = None,
    ):
        self.catalog: list[Product] = list(catalog)
        self.history = history
        self.rng = rng if isinstance(rng, random.Random) else random.Random(rng)
        self.current = RecommendationSet()
        self.error: Optional[str] = None
        self._subscription: Optional[Subscription] = None

    def set_catalog(self, products: Sequence[Product]) -> None:
        """Replace the catalog and recompute the default shelves."""
        self.catalog = list(products)
        if self.catalog:
            self.refresh()

    def _find(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.catalog if p.id == product_id), None)

    def related_products(self, product_id: str, max_items: int = 4) -> list[Product]:
        reference = self._find(product_id)
        if reference is None:
            return []

        scored = (
            ScoredProduct(product, similarity_score(reference, product))
            for product in self.catalog
            if product.id != product_id
        )
        return top_products(scored, max_items)

    def frequently_bought_together(self, product_id: str, max_items: int = 3) -> list[Product]:
        reference = self._find(product_id)
        if reference is None:
            return []

        scored = (
            ScoredProduct(product, complementary_score(reference, product))
            for product in self.catalog
            if product.id != product_id
        )
        return top_products(scored, max_items)

    def _viewed_products(self) -> list[Product]:
        if self.history is None:
            return []
        return self.history.products(self.catalog)

    def personalized_recommendations(self, max_items: int = 8) -> list[Product]:
        """
        "You may like" shelf.

        Without history: featured or well-rated products. With history:
        unviewed products scored against the viewing profile plus a small
        random jitter, so repeated calls vary.
        """
        profile = ViewingProfile.from_products(self._viewed_products())
        if profile.is_empty:
            return popular_fallback(self.catalog, max_items)

        scored = [
            ScoredProduct(product, affinity_score(profile, product, self.rng.random() * PROFILE_JITTER_MAX))
            for product in self.catalog
            if product.id not in profile.viewed_ids
        ]
        return top_products(scored, max_items)

    def recently_viewed_products(self, max_items: int = 6) -> list[Product]:
        return self._viewed_products()[:max_items]

    def trending_products(self, max_items: int = 8) -> list[Product]:
        scored = [
            ScoredProduct(product, trending_score(product, self.rng.random() * TRENDING_JITTER_MAX))
            for product in self.catalog
        ]
        return top_products(scored, max_items)

    def new_arrivals(self, max_items: int = 8) -> list[Product]:
        if max_items <= 0:
            return []
        dated = [p for p in self.catalog if p.created_at is not None]
        dated.sort(key=_created_sort_key, reverse=True)
        return dated[:max_items]

    def refresh(self, product_id: Optional[str] = None) -> RecommendationSet:
        """Recompute every shelf; related shelves only when a product is given."""
        self.error = None
        try:
            self.current = RecommendationSet(
                related=self.related_products(product_id) if product_id else [],
                frequently_bought=self.frequently_bought_together(product_id) if product_id else [],
                you_may_like=self.personalized_recommendations(),
                recently_viewed=self.recently_viewed_products(),
                trending=self.trending_products(),
                new_arrivals=self.new_arrivals(),
            )
        except Exception as e:
            logger.exception(f"Failed to refresh recommendations for {sanitize_id_for_logging(product_id)}")
            self.error = str(e) or "Failed to load recommendations"
        return self.current

    def _on_history_changed(self, event: RecentlyViewedEvent) -> None:
        if event.action == "cleared":
            self.current.recently_viewed = []
        else:
            self.current.recently_viewed = self.recently_viewed_products()
        self.current.you_may_like = self.personalized_recommendations()

    def attach(self) -> Subscription:
        """Start recomputing personal shelves on history changes."""
        if self.history is None:
            raise ValueError("attach() needs a RecentlyViewedStore")
        if self._subscription is None or not self._subscription.active:
            self._subscription = self.history.channel.subscribe(self._on_history_changed)
        return self._subscription

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    # Recently viewed management, delegated to the history store

    def add_to_recently_viewed(self, product_id: str) -> None:
        if self.history is not None:
            self.history.add(product_id)

    def remove_from_recently_viewed(self, product_id: str) -> None:
        if self.history is not None:
            self.history.remove(product_id)

    def clear_recently_viewed(self) -> None:
        if self.history is not None:
            self.history.clear()

    def analytics(self) -> dict:
        """Summary of the current shelves and the viewing history."""
        products = self.current.all_products()
        return {
            "recently_viewed": self.history.analytics(self.catalog) if self.history else {},
            "total_recommendations": len(products),
            "categories_represented": len({p.category for p in products}),
            "average_rating": sum(p.rating for p in products) / len(products) if products else 0,
        }
