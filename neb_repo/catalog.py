"""Read the Nebula repo catalog (repo.json) and turn its entries into records."""

import json
import logging
from pathlib import Path
from typing import Any

from .record import ModRecord

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "version", "title", "first_release", "last_update")


class IngestParseError(Exception):
    """Raised when the catalog document is malformed or missing a required field."""

    pass


def read_catalog(json_path: Path) -> list[dict[str, Any]]:
    """
    Load a catalog file and return its list of mod entries.

    The file is expected to hold an object with a top-level ``mods`` array.
    """
    json_path = Path(json_path)
    logger.debug("Reading catalog %s", json_path)

    try:
        with open(json_path, "rb") as f:
            data = json.load(f)
    except OSError as e:
        raise IngestParseError(f"File read error: {json_path}: {e}") from e
    except ValueError as e:
        raise IngestParseError(f"Error parsing JSON in {json_path}: {e}") from e

    return catalog_entries(data)


def catalog_entries(data: Any) -> list[dict[str, Any]]:
    """Return the ``mods`` array of a parsed catalog document."""
    if not isinstance(data, dict):
        raise IngestParseError("Catalog document is not a JSON object")

    mods = data.get("mods")
    if not isinstance(mods, list):
        raise IngestParseError("Catalog document has no 'mods' array")

    return mods


def record_from_entry(entry: Any) -> ModRecord:
    """Build a ModRecord from one catalog entry, keeping the entry verbatim."""
    if not isinstance(entry, dict):
        raise IngestParseError(f"Catalog entry is not an object: {entry!r}")

    for name in REQUIRED_FIELDS:
        if not isinstance(entry.get(name), str):
            mid = entry.get("id", "?")
            raise IngestParseError(
                f"Catalog entry {mid!r} is missing string field '{name}'"
            )

    tile = entry.get("tile")

    return ModRecord(
        mid=entry["id"],
        version=entry["version"],
        title=entry["title"],
        tile=tile if isinstance(tile, str) else "",
        first_release=entry["first_release"],
        last_update=entry["last_update"],
        mod_json=json.dumps(entry, separators=(",", ":"), ensure_ascii=False),
    )


def records_from_catalog(entries: list[Any]) -> list[ModRecord]:
    """Convert every catalog entry, failing on the first bad one."""
    return [record_from_entry(entry) for entry in entries]
