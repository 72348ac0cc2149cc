"""卡牌 ID 与存储键规则测试。"""

from __future__ import annotations

import pytest

from card_sync.core.identity import build_object_key, build_public_url, resolve_card_id


@pytest.mark.parametrize(
    ("public_code", "expected"),
    [
        ("OGN-001", "OGN-001"),
        ("OGN-001/298", "OGN-001"),
        ("OGN-001*/298", "OGN-001s"),
        ("OGN-001*", "OGN-001s"),
        ("OGN-001s", "OGN-001s"),
    ],
)
def test_resolve_card_id_valid_codes(public_code: str, expected: str) -> None:
    assert resolve_card_id(public_code) == expected


@pytest.mark.parametrize("public_code", [None, "", "OGN/001/298", "a/b/c/d", "/298"])
def test_resolve_card_id_ineligible_codes(public_code) -> None:
    assert resolve_card_id(public_code) is None


def test_signature_marker_replaced_once() -> None:
    assert resolve_card_id("OGN-0**1") == "OGN-0s*1"


def test_signature_and_substitute_spelling_share_identity() -> None:
    assert resolve_card_id("OGN-001*") == resolve_card_id("OGN-001s")


def test_object_key_and_public_url() -> None:
    key = build_object_key("OGN-001")

    assert key == "cards/OGN-001.webp"
    assert build_public_url("https://cdn.example.com/", key) == "https://cdn.example.com/cards/OGN-001.webp"
