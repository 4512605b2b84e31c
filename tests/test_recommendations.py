"""Tests for recommendation scoring and the engine"""
import random

import pytest

from storefront.recommendations import RecentlyViewedStore, RecommendationEngine, ViewingProfile
from storefront.recommendations.scoring import (
    affinity_score,
    complementary_score,
    popular_fallback,
    relative_price_difference,
    similarity_score,
    tag_overlap,
)


def _ids(products):
    return [p.id for p in products]


@pytest.fixture
def history(storage):
    return RecentlyViewedStore(storage)


@pytest.fixture
def engine(attar_catalog, history):
    return RecommendationEngine(attar_catalog, history, rng=random.Random(7))


# =============================================================================
# Scoring functions
# =============================================================================


class TestScoring:

    def test_relative_price_difference(self):
        assert relative_price_difference(1000, 1100) == pytest.approx(100 / 1100)
        assert relative_price_difference(0, 0) == 0.0

    def test_tag_overlap(self):
        assert tag_overlap(["woody", "smoky"], ["woody"]) == 0.5
        assert tag_overlap(None, ["woody"]) == 0.0
        assert tag_overlap([], []) == 0.0

    def test_similarity_all_signals(self, attar_catalog):
        oudh_1, oudh_2 = attar_catalog[0], attar_catalog[1]
        # category 40 + price 25 + brand 20 + rating 10 + half the tags 2.5
        assert similarity_score(oudh_1, oudh_2) == pytest.approx(97.5)

    def test_similarity_unrelated(self, attar_catalog):
        assert similarity_score(attar_catalog[0], attar_catalog[2]) == 0

    def test_complementary_score(self, attar_catalog):
        oudh_1, amber = attar_catalog[0], attar_catalog[3]
        # complementary 50 + accessory price 30 + rating 48 + in stock 10
        assert complementary_score(oudh_1, amber) == pytest.approx(138)

    def test_complementary_free_reference_skips_price_ratio(self, product_factory):
        free = product_factory(id="sample", price=0)
        other = product_factory(id="other", price=100, rating=0, stock=0)
        # same category only
        assert complementary_score(free, other) == 30

    def test_affinity_score(self, attar_catalog):
        profile = ViewingProfile.from_products([attar_catalog[0]])
        oudh_2 = attar_catalog[1]
        # category 30 + brand 20 + rating 22 + price 10 + stock 5
        assert affinity_score(profile, oudh_2) == pytest.approx(87)
        assert affinity_score(profile, oudh_2, jitter=3) == pytest.approx(90)

    def test_popular_fallback_order(self, attar_catalog):
        result = popular_fallback(attar_catalog, 10)
        assert _ids(result) == ["amber-1", "saffron-1", "oudh-1", "oudh-2"]


# =============================================================================
# Engine queries
# =============================================================================


class TestRelatedProducts:

    def test_same_category_ranks_first(self, engine):
        """Oudh 1000 vs Oudh 1100 vs Floral 5000"""
        result = engine.related_products("oudh-1", 4)

        assert _ids(result) == ["oudh-2", "amber-1", "saffron-1", "floral-1"]
        assert result.index(engine._find("oudh-2")) < result.index(engine._find("floral-1"))

    def test_excludes_reference_and_respects_limit(self, engine, attar_catalog):
        for n in range(0, len(attar_catalog) + 2):
            result = engine.related_products("oudh-1", n)
            assert "oudh-1" not in _ids(result)
            assert len(result) == min(n, len(attar_catalog) - 1)

    def test_unknown_reference(self, engine):
        assert engine.related_products("missing") == []

    def test_empty_catalog(self):
        assert RecommendationEngine().related_products("oudh-1") == []


class TestFrequentlyBoughtTogether:

    def test_complements_first(self, engine):
        assert _ids(engine.frequently_bought_together("oudh-1", 3)) == ["amber-1", "musk-1", "oudh-2"]

    def test_excludes_reference(self, engine):
        assert "amber-1" not in _ids(engine.frequently_bought_together("amber-1", 10))


class TestPersonalized:

    def test_empty_history_fallback(self, engine):
        result = engine.personalized_recommendations(5)

        assert all(p.featured or p.rating >= 4.0 for p in result)
        assert _ids(result) == ["amber-1", "saffron-1", "oudh-1", "oudh-2"]

    def test_no_history_store_uses_fallback(self, attar_catalog):
        engine = RecommendationEngine(attar_catalog)
        assert _ids(engine.personalized_recommendations(2)) == ["amber-1", "saffron-1"]

    def test_profile_ranking(self, engine, history):
        history.add("oudh-1")

        result = engine.personalized_recommendations(8)

        assert "oudh-1" not in _ids(result)
        assert result[0].id == "oudh-2"
        assert len(result) == 5

    def test_same_seed_same_output(self, attar_catalog, storage):
        store = RecentlyViewedStore(storage)
        store.add("amber-1")
        first = RecommendationEngine(attar_catalog, store, rng=123).personalized_recommendations()
        second = RecommendationEngine(attar_catalog, store, rng=123).personalized_recommendations()

        assert _ids(first) == _ids(second)

    def test_viewed_ids_missing_from_catalog_are_ignored(self, engine, history):
        history.add("discontinued")
        # Unknown id only -> no usable profile -> fallback
        assert _ids(engine.personalized_recommendations(1)) == ["amber-1"]


class TestShelves:

    def test_trending_deterministic_with_seed(self, attar_catalog):
        a = RecommendationEngine(attar_catalog, rng=random.Random(1)).trending_products(4)
        b = RecommendationEngine(attar_catalog, rng=random.Random(1)).trending_products(4)

        assert _ids(a) == _ids(b)
        assert len(a) == 4

    def test_new_arrivals(self, engine):
        assert _ids(engine.new_arrivals(8)) == ["saffron-1", "oudh-2", "amber-1", "oudh-1", "floral-1"]

    def test_recently_viewed_order(self, engine, history):
        history.add("oudh-1")
        history.add("amber-1")

        assert _ids(engine.recently_viewed_products()) == ["amber-1", "oudh-1"]

    def test_refresh_without_product(self, engine):
        shelves = engine.refresh()

        assert shelves.related == []
        assert shelves.frequently_bought == []
        assert shelves.new_arrivals
        assert engine.error is None

    def test_refresh_with_product(self, engine):
        shelves = engine.refresh("oudh-1")

        assert _ids(shelves.related)[0] == "oudh-2"
        assert _ids(shelves.frequently_bought)[0] == "amber-1"

    def test_set_catalog_refreshes(self, attar_catalog):
        engine = RecommendationEngine(rng=0)
        engine.set_catalog(attar_catalog)
        assert engine.current.trending

    def test_analytics(self, engine, history):
        history.add("oudh-1")
        engine.refresh("oudh-1")

        stats = engine.analytics()

        assert stats["total_recommendations"] == len(engine.current.all_products())
        assert stats["recently_viewed"]["total_viewed"] == 1
        assert stats["average_rating"] > 0


# =============================================================================
# History subscription
# =============================================================================


class TestAttach:

    def test_history_change_updates_personal_shelves(self, engine, history):
        engine.refresh()
        engine.attach()

        engine.add_to_recently_viewed("oudh-1")

        assert _ids(engine.current.recently_viewed) == ["oudh-1"]
        assert "oudh-1" not in _ids(engine.current.you_may_like)

        engine.clear_recently_viewed()
        assert engine.current.recently_viewed == []

    def test_detach_stops_updates(self, engine, history):
        engine.refresh()
        engine.attach()
        engine.detach()

        history.add("oudh-1")

        assert engine.current.recently_viewed == []
        assert history.channel.subscriber_count == 0

    def test_attach_is_idempotent(self, engine, history):
        engine.attach()
        engine.attach()
        assert history.channel.subscriber_count == 1

    def test_attach_without_history(self, attar_catalog):
        with pytest.raises(ValueError):
            RecommendationEngine(attar_catalog).attach()
