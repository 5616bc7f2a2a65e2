"""
Search over indexed artworks.

Filters are evaluated against the normalized document itself, so they
behave the same on every database backend. Rows are paginated in storage
order (index id); the requested sort is then applied to that page only.
Sorting the whole result set by an arbitrary document field is not
supported.

A filtered search reads every candidate document into memory. Only the
blockchain filter is pushed down to SQL (the indexed column), so the other
filters cost a full scan of the index table.
"""

import locale
import logging
import math
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from compendium.models import ArtworkIndex
from compendium.schemas.artwork_index import PaginationMeta, SearchResponse
from compendium.services.index_store import parse_document

logger = logging.getLogger(__name__)

SortDirection = Literal["asc", "desc"]


class SearchFilters(BaseModel):
    """All filters are optional and AND-combined."""

    search: Optional[str] = None
    artist: Optional[Union[int, str]] = None        # id (exact) or name (substring)
    collection: Optional[Union[int, str]] = None    # id (exact) or slug / name
    blockchain: Optional[str] = None
    tags: Optional[list[str]] = None                # all must be present
    min_edition_size: Optional[int] = None
    max_edition_size: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return not any(
            value not in (None, "", [])
            for value in self.model_dump().values()
        )

    def matches(self, doc: dict) -> bool:
        collection = doc.get("collection") or {}
        artists = [a for a in doc.get("artists") or [] if isinstance(a, dict)]

        if self.search:
            needle = self.search.lower()
            haystack = [
                doc.get("title"),
                doc.get("description"),
                collection.get("name"),
                *(a.get("name") for a in artists),
            ]
            if not any(isinstance(h, str) and needle in h.lower() for h in haystack):
                return False

        if self.artist is not None and self.artist != "":
            if isinstance(self.artist, int):
                if not any(a.get("id") == self.artist for a in artists):
                    return False
            else:
                name = self.artist.lower()
                if not any(name in str(a.get("name") or "").lower() for a in artists):
                    return False

        if self.collection is not None and self.collection != "":
            if isinstance(self.collection, int):
                if collection.get("id") != self.collection:
                    return False
            else:
                wanted = self.collection.lower()
                name_hit = wanted in str(collection.get("name") or "").lower()
                slug_hit = str(collection.get("slug") or "").lower() == wanted
                if not (name_hit or slug_hit):
                    return False

        if self.blockchain and doc.get("blockchain") != self.blockchain:
            return False

        if self.tags:
            if not set(self.tags) <= set(doc.get("tags") or []):
                return False

        if self.min_edition_size is not None or self.max_edition_size is not None:
            size = doc.get("editionSize")
            if not _is_number(size):
                return False
            if self.min_edition_size is not None and size < self.min_edition_size:
                return False
            if self.max_edition_size is not None and size > self.max_edition_size:
                return False

        return True


@dataclass
class SearchResult:
    items: list[dict]
    page: int
    page_size: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0

    def to_response(self) -> SearchResponse:
        return SearchResponse(
            items=self.items,
            pagination=PaginationMeta(
                page=self.page,
                page_size=self.page_size,
                total_count=self.total_count,
                total_pages=self.total_pages,
            ),
        )


# ------------------------------------------------------------------
# Sorting
# ------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def use_collation_locale(name: str = "") -> Optional[str]:
    """
    Set LC_COLLATE for string sorting. Returns the active locale, or None
    when it is unavailable and the process keeps its current one.
    """
    try:
        return locale.setlocale(locale.LC_COLLATE, name)
    except locale.Error:
        logger.warning(
            "Collation locale %r unavailable, keeping %s",
            name,
            locale.setlocale(locale.LC_COLLATE),
        )
        return None


def collation_key(value: str) -> tuple[str, str]:
    # case-insensitive first so the C locale still orders apple < Banana
    return locale.strxfrm(value.casefold()), locale.strxfrm(value)


def compare_values(a: Any, b: Any, direction: SortDirection = "desc") -> float:
    """
    Three-way comparison for in-page sorting.

    Nulls: ascending puts them first, descending puts them last. Strings use
    case-insensitive locale collation, numbers subtraction; any other pairing
    compares equal.
    """
    if a is None and b is None:
        return 0
    if a is None:
        return -1 if direction == "asc" else 1
    if b is None:
        return 1 if direction == "asc" else -1

    if isinstance(a, str) and isinstance(b, str):
        ka, kb = collation_key(a), collation_key(b)
        result = (ka > kb) - (ka < kb)
        return result if direction == "asc" else -result

    if _is_number(a) and _is_number(b):
        return a - b if direction == "asc" else b - a

    return 0


def sort_page(items: list[dict], sort_by: str, direction: SortDirection) -> list[dict]:
    """Stable in-memory sort by a top-level document field."""

    def compare(x: dict, y: dict) -> float:
        return compare_values(x.get(sort_by), y.get(sort_by), direction)

    return sorted(items, key=cmp_to_key(compare))


# ------------------------------------------------------------------
# Query
# ------------------------------------------------------------------

async def search_indexed_artworks(
    session: AsyncSession,
    filters: Optional[SearchFilters] = None,
    page: int = 1,
    page_size: int = 20,
    sort_by: Optional[str] = "id",
    sort_direction: SortDirection = "desc",
) -> SearchResult:
    filters = filters or SearchFilters()
    page = max(page, 1)
    page_size = max(page_size, 1)
    offset = (page - 1) * page_size

    if filters.is_empty:
        total_count = (
            await session.execute(select(func.count(ArtworkIndex.id)))
        ).scalar_one()
        rows = await session.execute(
            select(ArtworkIndex.normalized_data)
            .order_by(ArtworkIndex.id)
            .offset(offset)
            .limit(page_size)
        )
        items = [_document(value) for value in rows.scalars()]
    else:
        query = select(ArtworkIndex.normalized_data).order_by(ArtworkIndex.id)
        if filters.blockchain:
            # indexed column narrows the scan; matches() still checks the document
            query = query.where(ArtworkIndex.blockchain == filters.blockchain)
        rows = await session.execute(query)
        matched = [
            doc for doc in (_document(value) for value in rows.scalars())
            if filters.matches(doc)
        ]
        total_count = len(matched)
        items = matched[offset:offset + page_size]

    if sort_by and sort_direction:
        items = sort_page(items, sort_by, sort_direction)

    logger.debug(
        "Search page %d: %d of %d matches (filters: %s)",
        page,
        len(items),
        total_count,
        filters.model_dump(exclude_none=True),
    )
    return SearchResult(items=items, page=page, page_size=page_size, total_count=total_count)


def _document(value: Any) -> dict:
    return parse_document(value) or {}
