from __future__ import annotations

import pytest

from gigqueue.domain.review import group_key, normalize_name


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("The Snug, Stoke", "the snug stoke"),
        ("  the   snug  stoke  ", "the snug stoke"),
        ("THE SNUG STOKE", "the snug stoke"),
        ("O'Neill's Bar", "oneills bar"),
        ("Ｔｈｅ Ｓｎｕｇ", "the snug"),
        ("Straße", "strasse"),
        ("", ""),
        ("  ", ""),
    ],
)
def test_normalize_name(raw: str, expected: str) -> None:
    assert normalize_name(raw) == expected


def test_normalize_name_handles_none() -> None:
    assert normalize_name(None) == ""


def test_normalize_name_is_idempotent() -> None:
    once = normalize_name("  Rock & Roll: The Band!! ")
    assert normalize_name(once) == once


def test_group_key_matches_variants_of_the_same_venue() -> None:
    variants = ["The Snug, Stoke", "the snug stoke", "The Snug Stoke!"]
    assert {group_key(name) for name in variants} == {"the snug stoke"}
