"""Tests for version ordering."""

import pytest

from neb_repo.version import compare, latest, sort_versions


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ("1.2", "1.2.3", -1),
        ("2.0.0", "1.9.9", 1),
        ("1.0.0-rc1", "1.0.0", -1),
        ("1.0.0", "1.0.0-rc1", 1),
        ("1.10.0", "1.9.0", 1),
        ("1.0.0-rc1", "1.0.0-rc2", -1),
        ("1.0.0-20200101", "1.0.0-20191231", 1),
        ("4.5.1", "4.5.1", 0),
    ],
)
def test_compare(a, b, expected):
    assert compare(a, b) == expected


def test_reflexive_and_antisymmetric():
    versions = [
        "1.0", "1.0.0", "1.0-rc", "2", "0.9.9", "1.0-beta-2", "x.y", "3.1.4-abc",
        "1.0-~", "1.0-~beta", "1.0-é",
    ]
    for a in versions:
        assert compare(a, a) == 0
        for b in versions:
            assert compare(a, b) == -compare(b, a)


def test_buildless_ranks_above_every_build_suffix():
    for build in ("rc1", "zzz", "ZZ", "99999999", "~", "~~", "é"):
        assert compare("3.2.1", f"3.2.1-{build}") == 1
        assert compare(f"3.2.1-{build}", "3.2.1") == -1
    assert latest(["1.0", "1.0-~beta"]) == "1.0"
    assert latest(["1.0-é", "1.0"]) == "1.0"


def test_unparsable_components_count_as_zero():
    assert compare("1.x", "1.0.1") == -1
    assert compare("1.beta.2", "1.0.1") == 1


def test_release_parts_above_u32_count_as_zero():
    assert compare("1.4294967295", "1.4294967294") == 1
    assert compare("1.4294967296", "1.0") == 0
    assert compare("1.99999999999", "1.1") == -1


def test_build_split_on_first_dash():
    assert compare("1.0-rc-2", "1.0-rc-3") == -1


def test_sort_versions_descending():
    versions = ["1.0.0", "1.10.0", "1.2.0", "1.10.0-rc1", "0.9"]
    assert sort_versions(versions) == ["1.10.0", "1.10.0-rc1", "1.2.0", "1.0.0", "0.9"]
    assert sort_versions(versions, descending=False)[0] == "0.9"


def test_latest():
    assert latest(["1.0.0", "1.1.0-rc1", "1.1.0", "1.0.9"]) == "1.1.0"
    assert latest([]) is None
