"""The stored unit: one mod at one version."""

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ModRecord:
    """
    A single (mid, version) row of the mod store.

    ``mod_json`` is the catalog entry for this mod version, kept verbatim as
    JSON text. ``versions`` is filled in on read with every known version of
    the mod, newest first; it is never stored and is ignored by equality.
    """

    mid: str
    version: str
    title: str
    tile: str = ""
    first_release: str = ""
    last_update: str = ""
    mod_json: str = ""
    versions: list[str] = field(default_factory=list, compare=False)

    @property
    def key(self) -> tuple[str, str]:
        return (self.mid, self.version)

    @property
    def document(self) -> Any:
        """The parsed catalog entry."""
        return json.loads(self.mod_json)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mid": self.mid,
            "version": self.version,
            "versions": list(self.versions),
            "title": self.title,
            "tile": self.tile,
            "first_release": self.first_release,
            "last_update": self.last_update,
        }
