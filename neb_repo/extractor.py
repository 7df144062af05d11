"""Derive file lists, checksums and launch options from a mod's catalog entry."""

from dataclasses import dataclass, field
from typing import Any

from .record import ModRecord


class DocumentExtractionError(Exception):
    """Raised when a mod document lacks a field the extractor needs."""

    pass


@dataclass
class FileEntry:
    name: str
    size_bytes: int
    checksum: str


@dataclass
class PackageInfo:
    """A package as shown on the mod info page, described by its first file."""

    name: str
    status: str
    notes: str
    filename: str
    filesize: int
    checksum: str
    urls: list[Any] = field(default_factory=list)
    dependencies: list[Any] = field(default_factory=list)


def _document(record: ModRecord) -> dict[str, Any]:
    try:
        document = record.document
    except ValueError as e:
        raise DocumentExtractionError(
            f"Invalid mod.json for {record.mid} ({record.version}): {e}"
        ) from e
    if not isinstance(document, dict):
        raise DocumentExtractionError(
            f"mod.json for {record.mid} ({record.version}) is not an object"
        )
    return document


def _get(obj: Any, key: str | int, kind: type | tuple[type, ...], where: str) -> Any:
    """Fetch ``obj[key]`` and check its type."""
    try:
        value = obj[key]
    except (KeyError, IndexError, TypeError):
        raise DocumentExtractionError(f"Missing field {key!r} in {where}")
    # bool is an int subclass, but never a valid size
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise DocumentExtractionError(
            f"Field {key!r} in {where} has unexpected type {type(value).__name__}"
        )
    return value


def _checksum(file: dict[str, Any], where: str) -> str:
    # checksum is a pair like ["sha256", "<digest>"]; only the digest is used
    checksum = _get(file, "checksum", list, where)
    return _get(checksum, 1, str, f"{where}.checksum")


def _size(file: dict[str, Any], where: str) -> int:
    size = _get(file, "filesize", int, where)
    if size < 0:
        raise DocumentExtractionError(f"Field 'filesize' in {where} is negative: {size}")
    return size


def extract_cmdline(record: ModRecord) -> str:
    """The mod's command-line options string."""
    return _get(_document(record), "cmdline", str, "mod.json")


def extract_mod_flags(record: ModRecord) -> str:
    """The mod flag list rendered as ``-mod a,b,c``."""
    flags = _get(_document(record), "mod_flag", list, "mod.json")
    names = [_get(flags, i, str, "mod.json.mod_flag") for i in range(len(flags))]
    return f"-mod {','.join(names)}"


def extract_files(record: ModRecord) -> list[FileEntry]:
    """Every file of every package, in document order."""
    packages = _get(_document(record), "packages", list, "mod.json")

    files = []
    for p_index, package in enumerate(packages):
        where = f"packages[{p_index}]"
        for f_index, file in enumerate(_get(package, "files", list, where)):
            file_where = f"{where}.files[{f_index}]"
            files.append(
                FileEntry(
                    name=_get(file, "filename", str, file_where),
                    size_bytes=_size(file, file_where),
                    checksum=_checksum(file, file_where),
                )
            )
    return files


def total_size(files: list[FileEntry]) -> int:
    return sum(f.size_bytes for f in files)


def sha256_manifest(files: list[FileEntry]) -> str:
    """``sha256sum``-style listing, one ``<digest> <name>`` line per file."""
    return "\n".join(f"{f.checksum} {f.name}" for f in files)


def extract_packages(record: ModRecord) -> list[PackageInfo]:
    """Summarize each package by its first file."""
    packages = _get(_document(record), "packages", list, "mod.json")

    result = []
    for index, package in enumerate(packages):
        where = f"packages[{index}]"
        files = _get(package, "files", list, where)
        file = _get(files, 0, dict, f"{where}.files")
        file_where = f"{where}.files[0]"
        result.append(
            PackageInfo(
                name=_get(package, "name", str, where),
                status=_get(package, "status", str, where),
                notes=_get(package, "notes", str, where),
                filename=_get(file, "filename", str, file_where),
                filesize=_size(file, file_where),
                checksum=_checksum(file, file_where),
                urls=list(_get(file, "urls", list, file_where)),
                dependencies=list(_get(package, "dependencies", list, where)),
            )
        )
    return result


def extract_dependencies(packages: list[PackageInfo]) -> list[tuple[str, list[Any]]]:
    """(package name, dependencies) for packages that have any."""
    return [(p.name, p.dependencies) for p in packages if p.dependencies]


def is_total_conversion(record: ModRecord) -> bool:
    return _document(record).get("type") == "tc"
