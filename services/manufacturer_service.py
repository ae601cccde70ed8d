"""
Manufacturer validation service.

Validates manufacturer names against the verified manufacturers table
(names and aliases, case-insensitive) and suggests spellings for names
that do not match.

The verified list is cached per service instance and shared by every
import session that uses the instance. The cache is lock-guarded and
populated single-flight: while one caller fetches, concurrent callers
wait for that fetch instead of issuing their own.
"""

import threading
import time
from typing import Callable, Iterable, Optional
import structlog
from rapidfuzz import fuzz, process

from config import get_supabase_client, settings
from exceptions import ManufacturerLookupError
from models.bulk_import import ManufacturerCheck

logger = structlog.get_logger(__name__)


class _Flight:
    """One in-progress population of the lookup cache."""

    def __init__(self):
        self.done = threading.Event()
        self.lookup: Optional[dict[str, str]] = None
        self.error: Optional[Exception] = None


class ManufacturerService:
    """
    Manufacturer name validation.

    Handles:
    - Exact (case-insensitive) name/alias lookup
    - Spelling suggestions (substring and fuzzy ratio matches)
    - Lookup cache with TTL and single-flight population
    """

    def __init__(
        self,
        client=None,
        cache_ttl_seconds: Optional[int] = None,
        suggestion_limit: Optional[int] = None,
        suggestion_cutoff: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.db = client if client is not None else get_supabase_client()
        self.table = "manufacturers"
        self.cache_ttl_seconds = (
            settings.manufacturer_cache_ttl_seconds
            if cache_ttl_seconds is None else cache_ttl_seconds
        )
        self.suggestion_limit = suggestion_limit or settings.manufacturer_suggestion_limit
        self.suggestion_cutoff = (
            settings.manufacturer_suggestion_cutoff
            if suggestion_cutoff is None else suggestion_cutoff
        )
        self._clock = clock
        self._lock = threading.Lock()
        self._lookup: Optional[dict[str, str]] = None
        self._loaded_at = 0.0
        self._flight: Optional[_Flight] = None

    # ===================
    # VALIDATION
    # ===================

    def validate(self, names: Iterable[str]) -> dict[str, ManufacturerCheck]:
        """
        Validate a batch of manufacturer names.

        Empty and whitespace-only names are ignored; duplicates are
        checked once.

        Args:
            names: Manufacturer names as entered

        Returns:
            Dict of name (as given) -> ManufacturerCheck

        Raises:
            ManufacturerLookupError: If the verified list cannot be loaded
        """
        unique: list[str] = []
        for name in names:
            if name and name.strip() and name not in unique:
                unique.append(name)

        if not unique:
            return {}

        lookup = self._get_lookup()
        results = {name: self._check(name, lookup) for name in unique}

        logger.info(
            "manufacturers_validated",
            count=len(unique),
            invalid=sum(1 for r in results.values() if not r.is_valid)
        )

        return results

    def _check(self, name: str, lookup: dict[str, str]) -> ManufacturerCheck:
        folded = name.strip().lower()
        verified = lookup.get(folded)

        if verified:
            return ManufacturerCheck(is_valid=True, verified_name=verified)

        return ManufacturerCheck(
            is_valid=False,
            suggestions=self._suggest(folded, lookup)
        )

    def _suggest(self, folded: str, lookup: dict[str, str]) -> list[str]:
        """Substring matches first, then fuzzy matches by score."""
        suggestions: list[str] = []

        for key, canonical in lookup.items():
            if (key in folded or folded in key) and canonical not in suggestions:
                suggestions.append(canonical)

        fuzzy_matches = process.extract(
            folded,
            list(lookup.keys()),
            scorer=fuzz.ratio,
            limit=None,
            score_cutoff=self.suggestion_cutoff
        )
        for key, _score, _index in fuzzy_matches:
            canonical = lookup[key]
            if canonical not in suggestions:
                suggestions.append(canonical)

        return suggestions[:self.suggestion_limit]

    # ===================
    # LOOKUP CACHE
    # ===================

    def invalidate(self) -> None:
        """Drop the cached verified list; the next call refetches."""
        with self._lock:
            self._lookup = None
        logger.info("manufacturer_cache_invalidated")

    def _is_fresh(self) -> bool:
        if self._lookup is None or self.cache_ttl_seconds <= 0:
            return False
        return (self._clock() - self._loaded_at) < self.cache_ttl_seconds

    def _get_lookup(self) -> dict[str, str]:
        with self._lock:
            if self._is_fresh():
                return self._lookup
            flight = self._flight
            leader = flight is None
            if leader:
                flight = self._flight = _Flight()

        if not leader:
            logger.debug("manufacturer_lookup_awaiting_inflight_fetch")
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return flight.lookup

        try:
            lookup = self._fetch_lookup()
            flight.lookup = lookup
            with self._lock:
                self._lookup = lookup
                self._loaded_at = self._clock()
            return lookup
        except Exception as e:
            flight.error = e
            raise
        finally:
            with self._lock:
                self._flight = None
            flight.done.set()

    def _fetch_lookup(self) -> dict[str, str]:
        """
        Load verified manufacturers as folded name/alias -> canonical name.

        Raises:
            ManufacturerLookupError: If the query fails
        """
        logger.info("fetching_verified_manufacturers")

        try:
            result = (
                self.db.table(self.table)
                .select("name, aliases")
                .eq("verified", True)
                .execute()
            )
        except Exception as e:
            logger.error(
                "fetch_manufacturers_failed",
                error=str(e),
                error_type=type(e).__name__
            )
            raise ManufacturerLookupError(
                "Failed to load verified manufacturers",
                details={"error": str(e)}
            ) from e

        lookup: dict[str, str] = {}
        rows = result.data or []

        for row in rows:
            name = (row.get("name") or "").strip()
            if name:
                lookup.setdefault(name.lower(), name)

        for row in rows:
            name = (row.get("name") or "").strip()
            for alias in row.get("aliases") or []:
                if name and alias and alias.strip():
                    lookup.setdefault(alias.strip().lower(), name)

        logger.info(
            "verified_manufacturers_loaded",
            manufacturers=len(rows),
            lookup_keys=len(lookup)
        )

        return lookup


# Singleton instance: the shared lookup cache lives here
_manufacturer_service: Optional[ManufacturerService] = None


def get_manufacturer_service() -> ManufacturerService:
    """Get or create ManufacturerService instance."""
    global _manufacturer_service
    if _manufacturer_service is None:
        _manufacturer_service = ManufacturerService()
    return _manufacturer_service
