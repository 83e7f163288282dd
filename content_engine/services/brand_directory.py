"""
Brand directory: canonical brand names and aliases for product parsing.

The directory is loaded from the CMS (Sanity) and cached for a TTL. Loading is
an ordered chain of strategies: the remote source, then the last good snapshot,
then a built-in list. The chain always ends in a non-empty snapshot, so callers
never see an exception or an empty list.

Example:
    >>> directory = BrandDirectory(source=SanityBrandSource("abc123"))
    >>> names = await directory.get_brands()
    >>> (await directory.get_brand_info("elf")).canonical_name
    'e.l.f.'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Protocol

import httpx
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from content_engine.config.settings import Settings
from content_engine.models.schemas import BrandEntry
from content_engine.utils.clock import SystemClock
from content_engine.utils.logger import get_logger
from content_engine.utils.retry import ErrorHandler

logger = get_logger(__name__)

DEFAULT_BRAND_TTL_SECONDS = 30 * 60

BRAND_QUERY = '*[_type == "beautyBrand" && isActive == true] { name, aliases }'


def _entry(name: str, *aliases: str) -> BrandEntry:
    return BrandEntry(canonical_name=name, aliases=list(aliases))


# =============================================================================
# Built-in Brand List
# =============================================================================

# Matching is case-insensitive, so aliases only cover different spellings.
FALLBACK_BRANDS: tuple[BrandEntry, ...] = (
    # Makeup
    _entry("Anastasia Beverly Hills", "ABH"),
    _entry("Makeup By Mario"),
    _entry("Pat McGrath Labs", "Pat McGrath", "PMG"),
    _entry("Benefit Cosmetics"),
    _entry("Benefit"),
    _entry("Giorgio Armani", "Armani"),
    _entry("Yves Saint Laurent", "YSL"),
    _entry("Charlotte Tilbury", "CT"),
    _entry("Kylie Cosmetics", "Kylie"),
    _entry("Estée Lauder", "Estee Lauder"),
    _entry("Laura Mercier"),
    _entry("Natasha Denona"),
    _entry("Lunar Beauty"),
    _entry("Urban Decay"),
    _entry("Fenty Beauty", "Fenty"),
    _entry("Huda Beauty"),
    _entry("Rare Beauty"),
    _entry("Bobbi Brown"),
    _entry("Milk Makeup"),
    _entry("Too Faced"),
    _entry("ColourPop"),
    _entry("BH Cosmetics"),
    _entry("NYX Professional Makeup", "NYX Professional", "NYX"),
    _entry("Tower 28"),
    _entry("Hourglass"),
    _entry("Smashbox"),
    _entry("Maybelline"),
    _entry("Glossier"),
    _entry("CoverGirl"),
    _entry("Clinique"),
    _entry("Lancôme", "Lancome"),
    _entry("Revlon"),
    _entry("Morphe"),
    _entry("Chanel"),
    _entry("Tarte"),
    _entry("Kosas"),
    _entry("Merit"),
    _entry("e.l.f.", "elf"),
    _entry("NARS"),
    _entry("Dior"),
    _entry("Saie"),
    _entry("Ilia"),
    _entry("MAC"),
    _entry("Patrick Ta"),
    _entry("Juvia's Place"),
    _entry("Make Up For Ever", "MUFE"),
    # Skincare
    _entry("Youth To The People", "YTTP"),
    _entry("Peter Thomas Roth"),
    _entry("Augustinus Bader"),
    _entry("Dr. Dennis Gross"),
    _entry("First Aid Beauty", "FAB"),
    _entry("Paula's Choice", "Paula Choice"),
    _entry("La Roche-Posay"),
    _entry("Drunk Elephant"),
    _entry("Good Molecules"),
    _entry("IT Cosmetics"),
    _entry("Alpyn Beauty"),
    _entry("The Ordinary"),
    _entry("Sunday Riley"),
    _entry("Glow Recipe"),
    _entry("Dermalogica"),
    _entry("SkinSmart", "Skin Smart"),
    _entry("Neutrogena"),
    _entry("Touchland"),
    _entry("Supergoop"),
    _entry("Herbivore"),
    _entry("Timeless"),
    _entry("Kiehl's", "Kiehls"),
    _entry("Farmacy"),
    _entry("Origins"),
    _entry("Cetaphil"),
    _entry("Bioderma"),
    _entry("CeraVe"),
    _entry("Tatcha"),
    _entry("La Mer"),
    _entry("Yepoda"),
    _entry("Versed"),
    _entry("Avène", "Avene"),
    _entry("Fresh"),
    _entry("Bliss"),
    _entry("Vichy"),
    _entry("SK-II", "SKII"),
    _entry("Pixi"),
    # K-beauty
    _entry("Beauty of Joseon"),
    _entry("Thank You Farmer"),
    _entry("Holika Holika"),
    _entry("Nature Republic"),
    _entry("Pyunkang Yul"),
    _entry("By Wishtrend"),
    _entry("Etude House", "Etude"),
    _entry("Peach & Lily"),
    _entry("Tony Moly", "TONYMOLY"),
    _entry("Round Lab"),
    _entry("Some By Mi"),
    _entry("Dr. Jart+", "Dr. Jart", "Dr Jart"),
    _entry("Banila Co"),
    _entry("Innisfree"),
    _entry("Torriden"),
    _entry("SKIN1004"),
    _entry("Mediheal"),
    _entry("Peripera"),
    _entry("Heimish"),
    _entry("Isntree"),
    _entry("Dasique"),
    _entry("Laneige"),
    _entry("Rom&nd", "Romand"),
    _entry("TirTir"),
    _entry("Missha"),
    _entry("Klairs"),
    _entry("Goodal"),
    _entry("Purito"),
    _entry("COSRX"),
    _entry("Benton"),
    _entry("Clio"),
    _entry("Anua"),
    # Haircare
    _entry("Bumble and bumble", "Bumble & Bumble"),
    _entry("Pattern Beauty", "Pattern"),
    _entry("SheaMoisture", "Shea Moisture"),
    _entry("Living Proof"),
    _entry("Moroccanoil", "Moroccan Oil"),
    _entry("Kérastase", "Kerastase"),
    _entry("Pureology"),
    _entry("Color Wow"),
    _entry("DevaCurl"),
    _entry("Briogeo"),
    _entry("Olaplex"),
    _entry("Redken"),
    _entry("Got2b"),
    _entry("Gisou"),
    _entry("Amika"),
    _entry("Dyson"),
    _entry("Ouai"),
    _entry("Verb"),
    _entry("Dae"),
    _entry("IGK"),
    _entry("JVN"),
    # Body care
    _entry("Brazilian Bum Bum"),
    _entry("Being Frenshe"),
    _entry("Sol de Janeiro"),
    _entry("Summer Fridays"),
    _entry("Dr. Teal's", "Dr Teal's", "Dr Teals"),
    _entry("Nécessaire", "Necessaire"),
    _entry("Tree Hut"),
    _entry("Aquaphor"),
    _entry("Eucerin"),
    _entry("Kopari"),
    _entry("Nivea"),
    _entry("Dove"),
    # Fragrance
    _entry("Maison Margiela", "Replica"),
    _entry("Jo Malone"),
    _entry("Diptyque"),
    _entry("Tom Ford"),
    _entry("Le Labo"),
    _entry("Versace"),
    _entry("Byredo"),
    _entry("Gucci"),
    _entry("Prada"),
    # Wellness / other
    _entry("L'Oréal", "L'Oreal", "Loreal"),
    _entry("NeilMed"),
    _entry("O'Sulloc", "Osulloc"),
    _entry("Aveeno"),
    _entry("Lumify"),
    _entry("Sante"),
    _entry("Rhode"),
)


# =============================================================================
# Snapshot
# =============================================================================

@dataclass(frozen=True)
class BrandSnapshot:
    """
    Immutable view of the directory at one point in time.

    ``names`` holds every canonical name and alias, exact-string deduplicated
    and sorted longest first so multi-word brands win over their prefixes.
    """

    entries: tuple[BrandEntry, ...]
    names: tuple[str, ...]
    lookup: dict[str, BrandEntry] = field(repr=False)
    loaded_at: float
    source: str

    @classmethod
    def build(cls, entries: list[BrandEntry] | tuple[BrandEntry, ...], loaded_at: float, source: str) -> "BrandSnapshot":
        lookup: dict[str, BrandEntry] = {}
        names: list[str] = []
        for entry in entries:
            for value in entry.all_names():
                folded = value.casefold()
                if folded in lookup:
                    if lookup[folded] is not entry:
                        logger.debug(
                            "Brand name already claimed",
                            name=value,
                            owner=lookup[folded].canonical_name,
                        )
                    continue
                lookup[folded] = entry
                names.append(value)
        # sorted() is stable, so equal lengths keep directory order
        ordered = tuple(sorted(names, key=len, reverse=True))
        return cls(
            entries=tuple(entries),
            names=ordered,
            lookup=lookup,
            loaded_at=loaded_at,
            source=source,
        )

    def resolve(self, name: str) -> Optional[BrandEntry]:
        """Owning entry for a canonical name or alias (case-insensitive)."""
        if not name:
            return None
        return self.lookup.get(name.strip().casefold())


# =============================================================================
# Remote Source
# =============================================================================

class BrandSource(Protocol):
    """Anything that can fetch active brand entries."""

    async def fetch(self) -> list[BrandEntry]:
        ...


class SanityBrandSource:
    """Reads active ``beautyBrand`` documents through the Sanity HTTP query API."""

    def __init__(
        self,
        project_id: str,
        dataset: str = "production",
        token: Optional[str] = None,
        api_version: str = "2024-01-01",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.project_id = project_id
        self.dataset = dataset
        self.api_version = api_version.lstrip("v")
        self._token = token
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "SanityBrandSource":
        return cls(
            project_id=settings.sanity_project_id,
            dataset=settings.sanity_dataset,
            token=settings.sanity_token.get_secret_value() if settings.sanity_token else None,
            api_version=settings.sanity_api_version,
            timeout=float(settings.request_timeout_seconds),
        )

    @property
    def endpoint(self) -> str:
        return (
            f"https://{self.project_id}.apicdn.sanity.io"
            f"/v{self.api_version}/data/query/{self.dataset}"
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        reraise=True,
    )
    async def _query(self) -> list[dict[str, Any]]:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        response = await self._client.get(
            self.endpoint,
            params={"query": BRAND_QUERY},
            headers=self._headers(),
        )
        response.raise_for_status()
        return response.json().get("result") or []

    async def fetch(self) -> list[BrandEntry]:
        records = await self._query()
        entries = []
        for record in records:
            try:
                entries.append(BrandEntry.model_validate(record))
            except ValidationError:
                logger.debug("Skipping malformed brand record", record=record)
        return entries

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# =============================================================================
# Directory
# =============================================================================

class BrandDirectory:
    """
    TTL-cached brand directory with a never-empty fallback chain.

    One instance is built at bootstrap and shared by every pipeline run.
    """

    def __init__(
        self,
        source: Optional[BrandSource] = None,
        ttl_seconds: int = DEFAULT_BRAND_TTL_SECONDS,
        clock: Optional[SystemClock] = None,
        fallback: tuple[BrandEntry, ...] = FALLBACK_BRANDS,
    ):
        self.source = source
        self.ttl_seconds = ttl_seconds
        self.clock = clock or SystemClock()
        self.fallback = fallback
        self._snapshot: Optional[BrandSnapshot] = None
        self._last_good: Optional[BrandSnapshot] = None

    @classmethod
    def from_settings(cls, settings: Settings, clock: Optional[SystemClock] = None) -> "BrandDirectory":
        source = SanityBrandSource.from_settings(settings) if settings.is_brand_directory_configured() else None
        return cls(source=source, ttl_seconds=settings.brand_cache_ttl_seconds, clock=clock)

    def _is_fresh(self) -> bool:
        if self._snapshot is None:
            return False
        return self.clock.now() - self._snapshot.loaded_at < self.ttl_seconds

    async def get_snapshot(self) -> BrandSnapshot:
        """Current snapshot, reloading it once the TTL has elapsed."""
        if not self._is_fresh():
            self._snapshot = await self._load()
        return self._snapshot

    async def get_brands(self) -> list[str]:
        """All canonical names and aliases, longest first."""
        snapshot = await self.get_snapshot()
        return list(snapshot.names)

    async def refresh_brands(self) -> list[str]:
        """Evict the cached snapshot and load again."""
        self._snapshot = None
        return await self.get_brands()

    async def get_brand_info(self, name: str) -> Optional[BrandEntry]:
        """Resolve a name or alias to its owning entry."""
        snapshot = await self.get_snapshot()
        return snapshot.resolve(name)

    async def close(self) -> None:
        close = getattr(self.source, "close", None)
        if close is not None:
            await close()

    # -------------------------------------------------------------------------
    # Loading strategies
    # -------------------------------------------------------------------------

    def _strategies(self) -> list[tuple[str, Callable[[], Awaitable[list[BrandEntry]]]]]:
        strategies = []
        if self.source is not None:
            strategies.append(("remote", self._fetch_remote))
        strategies.append(("last_good", self._use_last_good))
        strategies.append(("fallback", self._use_fallback))
        return strategies

    async def _fetch_remote(self) -> list[BrandEntry]:
        try:
            return await self.source.fetch()
        except Exception as e:
            logger.warning(
                "Could not fetch brands from directory",
                error=str(e),
                error_type=ErrorHandler.categorize_error(e),
            )
            return []

    async def _use_last_good(self) -> list[BrandEntry]:
        return list(self._last_good.entries) if self._last_good else []

    async def _use_fallback(self) -> list[BrandEntry]:
        return list(self.fallback)

    async def _load(self) -> BrandSnapshot:
        for name, strategy in self._strategies():
            entries = await strategy()
            if not entries:
                continue
            # Timestamp refreshes on every load, failed fetches included
            snapshot = BrandSnapshot.build(entries, loaded_at=self.clock.now(), source=name)
            if name == "remote":
                self._last_good = snapshot
            logger.info(
                "Brand directory loaded",
                source=name,
                brands=len(snapshot.entries),
                names=len(snapshot.names),
            )
            return snapshot

        # Unreachable while the built-in list is non-empty
        return BrandSnapshot.build([], loaded_at=self.clock.now(), source="empty")
