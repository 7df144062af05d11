"""Shared fixtures: catalog entries and stores."""

import json

import pytest

from neb_repo.store import Store


def _file(filename: str, size: int, digest: str) -> dict:
    return {
        "filename": filename,
        "filesize": size,
        "checksum": ["sha256", digest],
        "urls": [f"https://cf.fsnebula.org/storage/{digest[:2]}/{filename}"],
    }


def _entry(
    mid: str,
    version: str,
    title: str | None = None,
    last_update: str = "2021-01-01",
    first_release: str = "2020-01-01",
    tile: str | None = "https://example.invalid/tile.png",
    packages: list | None = None,
    **extra,
) -> dict:
    entry = {
        "id": mid,
        "version": version,
        "title": title or mid,
        "tile": tile,
        "first_release": first_release,
        "last_update": last_update,
        "type": "mod",
        "cmdline": "-nomotiondebris -ship_choice_3d",
        "mod_flag": [mid, "FSO"],
        "packages": packages
        if packages is not None
        else [
            {
                "name": "Core",
                "status": "required",
                "notes": "",
                "dependencies": [],
                "files": [_file(f"{mid.lower()}_core.7z", 1000, "aa" * 32)],
            }
        ],
    }
    entry.update(extra)
    return entry


@pytest.fixture
def make_entry():
    """Factory for catalog entries shaped like repo.json mods."""
    return _entry


@pytest.fixture
def make_file():
    return _file


@pytest.fixture
def store():
    s = Store.open_read_write(":memory:")
    yield s
    s.close()


@pytest.fixture
def catalog_file(tmp_path, make_entry):
    """Write a repo.json and return its path."""

    def write(entries: list, name: str = "repo.json"):
        path = tmp_path / name
        path.write_text(json.dumps({"mods": entries}), encoding="utf-8")
        return path

    return write
