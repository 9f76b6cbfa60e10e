"""Tests for ledger-side input validation and event payload normalization."""

import json

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from src.escrow.chain import normalize_event_args, normalize_event_value, normalize_sha256
from src.escrow.chain.escrow import build_draft_proof_payload, validate_split_percent
from src.escrow.chain.payload import MAX_SAFE_INTEGER
from src.escrow.core.exceptions import ValidationError

pytestmark = pytest.mark.unit

HEX64 = "a3f1" * 16


class TestNormalizeSha256:
    def test_lowercases_and_strips_prefix(self) -> None:
        assert normalize_sha256("0x" + HEX64.upper()) == HEX64
        assert normalize_sha256(f"  {HEX64}  ") == HEX64

    @pytest.mark.parametrize(
        "value",
        ["", "abc", "g" * 64, "a" * 63, "a" * 65, "0x" + "a" * 63, None, 12345],
    )
    def test_rejects_malformed(self, value) -> None:
        with pytest.raises(ValidationError, match="draft hash"):
            normalize_sha256(value, "draft hash")

    @given(digest=st.binary(min_size=32, max_size=32))
    @settings(max_examples=100)
    def test_accepts_any_sha256_hex(self, digest: bytes) -> None:
        assert normalize_sha256(digest.hex().upper()) == digest.hex()


class TestSplitPercent:
    @given(percent=st.integers(min_value=0, max_value=100))
    def test_in_range_accepted(self, percent: int) -> None:
        assert validate_split_percent(percent) == percent

    @given(percent=st.integers().filter(lambda p: p < 0 or p > 100))
    def test_out_of_range_rejected(self, percent: int) -> None:
        with pytest.raises(ValidationError):
            validate_split_percent(percent)

    @pytest.mark.parametrize("value", [50.5, "50", None, True, False])
    def test_non_integers_rejected(self, value) -> None:
        with pytest.raises(ValidationError):
            validate_split_percent(value)


class TestDraftProofPayload:
    def test_compact_json_document(self) -> None:
        payload = build_draft_proof_payload("upload", HEX64, None)
        assert b" " not in payload
        assert json.loads(payload) == {
            "kind": "draft-proof",
            "action": "upload",
            "draftHash": HEX64,
            "previousHash": None,
        }


class TestNormalizeEventValue:
    def test_small_integers_stay_numbers(self) -> None:
        assert normalize_event_value(MAX_SAFE_INTEGER) == MAX_SAFE_INTEGER
        assert normalize_event_value(-MAX_SAFE_INTEGER) == -MAX_SAFE_INTEGER

    def test_large_integers_become_strings(self) -> None:
        wei = 2 * 10**18
        assert normalize_event_value(wei) == str(wei)
        assert normalize_event_value(-(MAX_SAFE_INTEGER + 1)) == str(-(MAX_SAFE_INTEGER + 1))

    def test_bytes_become_hex(self) -> None:
        assert normalize_event_value(b"\x01\xff") == "0x01ff"

    def test_nested_structures(self) -> None:
        value = {"amounts": (1, 10**20), "meta": {"flag": True, "ref": b"\x00"}}
        assert normalize_event_value(value) == {
            "amounts": [1, str(10**20)],
            "meta": {"flag": True, "ref": "0x00"},
        }

    def test_unknown_types_use_str(self) -> None:
        class Marker:
            def __str__(self) -> str:
                return "marker"

        assert normalize_event_value(Marker()) == "marker"

    def test_bool_is_not_treated_as_int(self) -> None:
        assert normalize_event_value(True) is True

    def test_event_args(self) -> None:
        args = {"amount": 5 * 10**18, "to": "0xabc"}
        normalized = normalize_event_args(args)
        assert normalized == {"amount": str(5 * 10**18), "to": "0xabc"}
        json.dumps(normalized)
        assert normalize_event_args(None) is None
