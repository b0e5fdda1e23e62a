import base64
import json
import pytest
from datetime import datetime, timezone
from core.logging_setup import SUCCESS
from core.credentials import (
    Account,
    AccountStatus,
    load_accounts,
    parse_accounts,
    token_expiration,
)


def make_jwt(payload) -> str:
    """Build an unsigned JWT-shaped token carrying *payload*."""
    def seg(data: bytes) -> str:
        return base64.urlsafe_b64encode(data).rstrip(b"=").decode()
    header = seg(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
    body = seg(json.dumps(payload).encode())
    return f"{header}.{body}.signature"


class TestParseAccounts:
    """Test suite for token-file parsing."""

    def test_counts_match_lines_and_fields(self):
        accounts = parse_accounts("tokA\ntokB,tokC\n  tokD , tokE ,tokF  \n")
        assert len(accounts) == 3
        assert [len(a.tokens) for a in accounts] == [1, 2, 3]
        assert accounts[2].tokens == ["tokD", "tokE", "tokF"]

    def test_blank_lines_ignored(self):
        accounts = parse_accounts("\n\ntokA\n   \n\ttokB\n\n")
        assert [a.tokens for a in accounts] == [["tokA"], ["tokB"]]
        assert [a.line_number for a in accounts] == [3, 5]

    def test_order_and_duplicates_preserved(self):
        accounts = parse_accounts("tokB,tokA,tokB\n")
        assert accounts[0].tokens == ["tokB", "tokA", "tokB"]

    def test_empty_fields_kept_so_count_matches_fields(self):
        accounts = parse_accounts("tokA,,tokB\n,\n")
        assert len(accounts) == 2
        assert accounts[0].tokens == ["tokA", "", "tokB"]
        assert len(accounts[1].tokens) == 2

    def test_crlf_line_endings(self):
        accounts = parse_accounts("tokA\r\ntokB,tokC\r\n")
        assert [a.tokens for a in accounts] == [["tokA"], ["tokB", "tokC"]]

    def test_new_account_is_pending(self):
        account = parse_accounts("tokA")[0]
        assert account.status is AccountStatus.PENDING
        assert account.user_id is None
        assert account.last_check_in is None


class TestLoadAccounts:
    """Test suite for load_accounts."""

    def test_load_from_file(self, tmp_path, caplog):
        data = tmp_path / "data.txt"
        data.write_text("tokA\ntokB,tokC\n", encoding="utf-8")

        with caplog.at_level("INFO"):
            accounts = load_accounts(data)

        assert len(accounts) == 2
        summary = [r for r in caplog.records if "Loaded 2 accounts with 3 total tokens" in r.getMessage()]
        assert len(summary) == 1
        assert summary[0].levelno == SUCCESS

    def test_reload_is_idempotent(self, tmp_path):
        data = tmp_path / "data.txt"
        data.write_text("tokA\ntokB,tokC\n\ntokD\n", encoding="utf-8")

        first = load_accounts(str(data))
        second = load_accounts(str(data))

        assert [a.tokens for a in first] == [a.tokens for a in second]
        assert first[0] is not second[0]

    def test_missing_file_is_soft_failure(self, tmp_path, caplog):
        with caplog.at_level("WARNING"):
            accounts = load_accounts(tmp_path / "nope.txt")
        assert accounts == []
        assert "No accounts found" in caplog.text

    def test_empty_file_returns_no_accounts(self, tmp_path):
        data = tmp_path / "data.txt"
        data.write_text("\n  \n", encoding="utf-8")
        assert load_accounts(data) == []

    def test_directory_path_is_soft_failure(self, tmp_path):
        assert load_accounts(tmp_path) == []


class TestTokenExpiration:
    """Test suite for best-effort JWT expiry decoding."""

    def test_decodes_exp(self):
        token = make_jwt({"sub": "user-1", "exp": 1767225600})
        assert token_expiration(token) == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_padding_is_restored(self):
        # Payload length chosen so the segment needs '=' padding
        token = make_jwt({"exp": 1700000000, "x": "ab"})
        assert token_expiration(token) == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    @pytest.mark.parametrize("token", [
        "opaque-token",
        "a.b",
        "a.!!!notbase64!!!.c",
        make_jwt({"sub": "no-exp"}),
        make_jwt({"exp": "tomorrow"}),
        make_jwt({"exp": True}),
        make_jwt(["exp", 1]),
        "header." + base64.urlsafe_b64encode(b"not json").decode().rstrip("=") + ".sig",
    ])
    def test_undecodable_tokens_return_none(self, token):
        assert token_expiration(token) is None


def test_account_defaults():
    account = Account(tokens=["t"])
    assert account.line_number == 0
    assert account.status is AccountStatus.PENDING
