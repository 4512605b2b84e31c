"""
Recently viewed history.

Capped, most-recent-first list of viewed product ids persisted in local
storage. Every change is published on the store's channel so recommendation
consumers can recompute.
"""

import secrets
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Sequence

from storefront.config import Limits, StorageKeys
from storefront.errors import StorageError
from storefront.events import EventChannel
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import Product
from storefront.storage import KeyValueStorage

logger = get_logger(__name__)

DAY_MS = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class RecentlyViewedEntry:
    """One product view."""
    product_id: str
    viewed_at: int  # epoch milliseconds
    session_id: str = ""

    def to_dict(self) -> dict:
        return {"productId": self.product_id, "viewedAt": self.viewed_at, "sessionId": self.session_id}

    @classmethod
    def from_dict(cls, data: dict) -> "RecentlyViewedEntry":
        return cls(
            product_id=str(data["productId"]),
            viewed_at=int(data["viewedAt"]),
            session_id=str(data.get("sessionId") or ""),
        )


@dataclass(frozen=True)
class RecentlyViewedEvent:
    """Published after every history change."""
    action: str  # added | removed | cleared
    entries: tuple[RecentlyViewedEntry, ...] = field(default_factory=tuple)
    product_id: Optional[str] = None


def _generate_session_id(now_ms: int) -> str:
    return f"session_{now_ms}_{secrets.token_hex(5)}"


class RecentlyViewedStore:
    """
    Recently viewed products for one browser/guest session.

    Storage failures are logged and swallowed; the history then behaves as
    empty (reads) or unchanged (writes).
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        channel: Optional[EventChannel[RecentlyViewedEvent]] = None,
        max_items: int = Limits.RECENTLY_VIEWED_MAX_ITEMS,
        max_age_days: int = Limits.RECENTLY_VIEWED_MAX_AGE_DAYS,
        clock: Callable[[], float] = time.time,
        key: str = StorageKeys.RECENTLY_VIEWED,
    ):
        self.storage = storage
        self.channel = channel if channel is not None else EventChannel("recently_viewed")
        self.max_items = max_items
        self.max_age_days = max_age_days
        self.clock = clock
        self.key = key
        self.session_id = _generate_session_id(self._now_ms())

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _write(self, entries: Sequence[RecentlyViewedEntry]) -> bool:
        try:
            self.storage.set_json(self.key, [entry.to_dict() for entry in entries])
            return True
        except StorageError as e:
            logger.error(f"Failed to save recently viewed: {e}")
            return False

    def entries(self) -> list[RecentlyViewedEntry]:
        """Current history, dropping entries older than max_age_days."""
        try:
            data = self.storage.get_json(self.key)
        except StorageError as e:
            logger.error(f"Failed to read recently viewed: {e}")
            return []

        if not isinstance(data, list):
            return []

        try:
            items = [RecentlyViewedEntry.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Corrupted recently viewed data: {e}")
            return []

        cutoff = self._now_ms() - self.max_age_days * DAY_MS
        valid = [item for item in items if item.viewed_at > cutoff]

        # Write back if stale entries were dropped
        if len(valid) != len(items):
            self._write(valid)

        return valid

    def add(self, product_id: str) -> None:
        """Move product to the front of the history."""
        entries = [e for e in self.entries() if e.product_id != product_id]
        entry = RecentlyViewedEntry(product_id=product_id, viewed_at=self._now_ms(), session_id=self.session_id)
        updated = [entry, *entries][: self.max_items]

        if self._write(updated):
            logger.debug(f"Recently viewed {sanitize_id_for_logging(product_id)}")
            self.channel.publish(RecentlyViewedEvent(action="added", entries=tuple(updated), product_id=product_id))

    def remove(self, product_id: str) -> None:
        updated = [e for e in self.entries() if e.product_id != product_id]
        if self._write(updated):
            self.channel.publish(RecentlyViewedEvent(action="removed", entries=tuple(updated), product_id=product_id))

    def clear(self) -> None:
        try:
            self.storage.delete(self.key)
        except StorageError as e:
            logger.error(f"Failed to clear recently viewed: {e}")
            return
        self.channel.publish(RecentlyViewedEvent(action="cleared"))

    def ids(self) -> list[str]:
        return [entry.product_id for entry in self.entries()]

    def products(self, catalog: Sequence[Product]) -> list[Product]:
        """Viewed products in history order; ids missing from the catalog are skipped."""
        by_id = {product.id: product for product in catalog}
        return [by_id[pid] for pid in self.ids() if pid in by_id]

    def is_recently_viewed(self, product_id: str) -> bool:
        return product_id in self.ids()

    def last_viewed_at(self, product_id: str) -> Optional[int]:
        entry = next((e for e in self.entries() if e.product_id == product_id), None)
        return entry.viewed_at if entry else None

    def analytics(self, catalog: Sequence[Product] = ()) -> dict:
        """Viewing statistics: totals, per-session average, views by hour, top categories."""
        entries = self.entries()
        sessions = {entry.session_id for entry in entries}

        hours = Counter(datetime.fromtimestamp(entry.viewed_at / 1000).hour for entry in entries)
        viewing_patterns = [{"hour": hour, "count": count} for hour, count in sorted(hours.items())]

        categories = Counter(product.category for product in self.products(catalog) if product.category)
        top_categories = [{"category": name, "count": count} for name, count in categories.most_common()]

        return {
            "total_viewed": len(entries),
            "unique_products": len({entry.product_id for entry in entries}),
            "average_views_per_session": len(entries) / len(sessions) if sessions else 0,
            "top_viewed_categories": top_categories,
            "viewing_patterns": viewing_patterns,
        }
