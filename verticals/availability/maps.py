"""Floor-plan lookups for shelving locations.

Two CSV tables are read once at startup:

    maps.csv         ID,URL,NAME
    map_lookups.csv  RANGE,LOCATION,MAP

The resolver is read-only after loading. A missing or unreadable file
leaves the corresponding table empty, which turns map enrichment into a
no-op rather than failing startup.
"""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from verticals.availability.models.schemas import NO_MAP, Item

logger = logging.getLogger(__name__)

WILDCARD_RANGE = "*"


@dataclass(frozen=True)
class MapEntry:
    id: str
    url: str
    name: str


@dataclass(frozen=True)
class MapLookup:
    call_number_range: str
    location: str
    map_id: str


@dataclass(frozen=True)
class MapResolver:
    """Read-only map tables shared by all requests."""

    maps: tuple[MapEntry, ...] = field(default_factory=tuple)
    lookups: tuple[MapLookup, ...] = field(default_factory=tuple)

    @classmethod
    def load(cls, maps_file: str | Path, lookups_file: str | Path) -> "MapResolver":
        logger.info("Initializing map lookups data...")
        maps = tuple(
            MapEntry(id=row[0], url=row[1], name=row[2])
            for row in _read_rows(maps_file, header="ID", width=3)
        )
        lookups = tuple(
            MapLookup(call_number_range=row[0], location=row[1], map_id=row[2])
            for row in _read_rows(lookups_file, header="RANGE", width=3)
        )
        logger.info("Map lookups initialization COMPLETE: %d maps, %d lookups", len(maps), len(lookups))
        return cls(maps=maps, lookups=lookups)

    def find_map(self, map_id: str) -> Optional[MapEntry]:
        for entry in self.maps:
            if entry.id == map_id:
                return entry
        return None

    def find_lookup(self, location: str) -> Optional[MapLookup]:
        for lookup in self.lookups:
            if lookup.location == location:
                return lookup
        return None

    def annotate(self, item: Item) -> bool:
        """Set the map reference on *item*. Returns True when a map was found."""
        item.map_ref.name = NO_MAP
        lookup = self.find_lookup(item.home_location_id)
        if lookup is None:
            return False

        if lookup.call_number_range != WILDCARD_RANGE:
            # Range-based matching by call number has no agreed semantics yet.
            logger.debug(
                "map lookup for %s needs call number range %s; not resolved",
                item.home_location_id,
                lookup.call_number_range,
            )
            return False

        entry = self.find_map(lookup.map_id)
        if entry is None:
            return False
        item.map_ref.name = entry.name
        item.map_ref.url = entry.url
        return True


def _read_rows(path: str | Path, header: str, width: int) -> list[list[str]]:
    try:
        with open(path, newline="", encoding="utf-8") as fh:
            rows = list(csv.reader(fh))
    except (OSError, csv.Error) as exc:
        logger.error("Unable to read map data %s: %s", path, exc)
        return []

    out = []
    for line_no, row in enumerate(rows, start=1):
        if not row or row[0] == header:
            continue
        if len(row) < width:
            logger.error("Unable to parse map data %s line %d: %r", path, line_no, row)
            continue
        out.append([col.strip() for col in row[:width]])
    return out
