"""Query layer - read-side business logic shared by the CLI and web UI."""

from dataclasses import dataclass, field
from typing import Any

from .extractor import (
    FileEntry,
    PackageInfo,
    extract_cmdline,
    extract_dependencies,
    extract_files,
    extract_mod_flags,
    extract_packages,
    is_total_conversion,
    sha256_manifest,
    total_size,
)
from .record import ModRecord
from .store import Store
from .version import latest, sort_versions


@dataclass
class ModInfo:
    """A mod version together with everything derived from its document."""

    record: ModRecord
    files: list[FileEntry]
    total_size: int
    sha256sum: str
    modline: str
    cmdline: str
    is_total_conversion: bool
    packages: list[PackageInfo] = field(default_factory=list)
    dependencies: list[tuple[str, list[Any]]] = field(default_factory=list)


class QueryService:
    """Answers list, search, version and lookup queries against the store."""

    def __init__(self, store: Store):
        self.store = store

    def list(self) -> list[ModRecord]:
        """One record per mod (its most recent update), ordered by title."""
        return self.store.scan_latest_per_mid()

    # Quoted because the list method above shadows the builtin in this scope.
    def search(self, text: str) -> "list[ModRecord]":
        """Same as list(), limited to titles containing ``text``."""
        return self.store.search_by_title(text)

    def versions(self, mid: str) -> "list[str]":
        """All versions of a mod, newest first. Empty if the mod is unknown."""
        return sort_versions(self.store.scan_versions(mid))

    def get(self, mid: str, version: str | None = None) -> ModRecord | None:
        """
        Look up a mod version.

        Without ``version`` the newest version is returned. The record's
        ``versions`` list holds every version of the mod, newest first.
        Returns None if the mod or version is unknown.
        """
        versions = self.versions(mid)
        if not versions:
            return None

        if version is None:
            version = latest(versions)

        record = self.store.get(mid, version)
        if record is not None:
            record.versions = versions
        return record

    def info(self, mid: str, version: str | None = None) -> ModInfo | None:
        """Look up a mod version and extract its file and launch metadata."""
        record = self.get(mid, version)
        if record is None:
            return None

        files = extract_files(record)
        packages = extract_packages(record)

        return ModInfo(
            record=record,
            files=files,
            total_size=total_size(files),
            sha256sum=sha256_manifest(files),
            modline=extract_mod_flags(record),
            cmdline=extract_cmdline(record),
            is_total_conversion=is_total_conversion(record),
            packages=packages,
            dependencies=extract_dependencies(packages),
        )
