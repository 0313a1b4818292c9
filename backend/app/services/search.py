import logging
from collections import OrderedDict
from typing import List, Optional
from sqlmodel import Session, select, col
from app.models.product import Product
from app.services.catalog import primary_image_url

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_SUGGESTIONS = 5
# Below this many prefix matches, top up with substring matches
PREFIX_TOP_UP_THRESHOLD = 3


class SuggestionCache:
    """
    Search-suggestion results keyed by normalised query.

    Holds at most `max_entries` queries; inserting a new one past the bound
    evicts the oldest inserted key. Lookups do not refresh an entry's age.
    """

    def __init__(self, max_entries: int = 20):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, List[dict]]" = OrderedDict()

    @staticmethod
    def normalize(query: str) -> str:
        return query.strip().lower()

    def get(self, query: str) -> Optional[List[dict]]:
        return self._entries.get(self.normalize(query))

    def put(self, query: str, suggestions: List[dict]) -> None:
        key = self.normalize(query)
        if key in self._entries:
            self._entries[key] = suggestions
            return
        if len(self._entries) >= self.max_entries:
            self._entries.popitem(last=False)
        self._entries[key] = suggestions

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, query: str) -> bool:
        return self.normalize(query) in self._entries


suggestion_cache = SuggestionCache()


def _suggestion(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "price": product.price,
        "image": primary_image_url(product),
        "category": product.category.name if product.category else "Uncategorized",
    }


def find_suggestions(db: Session, query: str) -> List[dict]:
    """Prefix matches first, then substring matches, published products only"""
    term = query.strip()
    products = db.exec(
        select(Product)
        .where(Product.is_published == True, col(Product.name).ilike(f"{term}%"))
        .order_by(Product.name)
        .limit(MAX_SUGGESTIONS)
    ).all()

    if len(products) < PREFIX_TOP_UP_THRESHOLD:
        seen = [p.id for p in products]
        stmt = select(Product).where(
            Product.is_published == True,
            col(Product.name).ilike(f"%{term}%")
        )
        if seen:
            stmt = stmt.where(col(Product.id).not_in(seen))
        extra = db.exec(stmt.order_by(Product.name).limit(MAX_SUGGESTIONS - len(products))).all()
        products = list(products) + list(extra)

    return [_suggestion(p) for p in products]


def suggest_products(db: Session, query: Optional[str], cache: SuggestionCache = suggestion_cache) -> List[dict]:
    if not query or len(query.strip()) < MIN_QUERY_LENGTH:
        return []

    cached = cache.get(query)
    if cached is not None:
        return cached

    suggestions = find_suggestions(db, query)
    cache.put(query, suggestions)
    logger.debug("cached %d suggestions for %r", len(suggestions), query)
    return suggestions
