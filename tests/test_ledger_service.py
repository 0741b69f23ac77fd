"""
test_ledger_service.py — Tests for the blockchain ledger client

Mocks the shared httpx client so no gateway is needed. Covers metadata
sanitization, donationId parsing from events, record decoding, the
concurrent latest-donations fetch, and gateway failures → LedgerError.

Called by: pytest
Depends on: app/services/ledger_service.py, app/http_client.py
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.exceptions import LedgerError
from app.services import ledger_service


def _resp(payload, status=200, path="/call"):
    return httpx.Response(status, json=payload, request=httpx.Request("POST", f"http://ledger{path}"))


def _gateway(*responses):
    client = MagicMock()
    client.post = AsyncMock(side_effect=list(responses))
    return client


RECORD = ["0xDonor", "donor-1", "charity-9", 2500, "MYR", "campaign", 1767225600, '{"note": "hi"}']


# ── sanitize_metadata ───────────────────────────────────────────────


class TestSanitizeMetadata:
    def test_dict_values_stripped_and_capped(self):
        raw = {"note": "hello\x00\x07 world", "long": "x" * 500, "count": 3}
        out = json.loads(ledger_service.sanitize_metadata(raw))
        assert out["note"] == "hello world"
        assert len(out["long"]) == 200
        assert out["count"] == 3

    def test_raw_string_capped(self):
        out = ledger_service.sanitize_metadata("a\x1b" * 2000)
        assert "\x1b" not in out
        assert len(out) == 1000

    def test_none_is_empty_object(self):
        assert ledger_service.sanitize_metadata(None) == "{}"


# ── record_donation ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_record_donation_parses_matching_event():
    client = _gateway(
        _resp({"result": None, "receipt": {"transactionHash": "0xabc"}}),
        _resp(
            {
                "events": [
                    {"transaction": {"transactionHash": "0xother"}, "data": {"donationId": 6}},
                    {"transaction": {"transactionHash": "0xabc"}, "data": {"donationId": "7"}},
                ]
            },
            path="/events",
        ),
    )
    with patch("app.http_client.ledger", client):
        result = await ledger_service.record_donation("donor-1", "charity-9", 25, "MYR", "general", {"a": "b"})

    assert result == {"donationId": 7, "txHash": "0xabc"}
    call = client.post.await_args_list[0]
    assert call.args[0] == "/call"
    assert call.kwargs["json"]["method"] == "recordDonation"
    assert call.kwargs["json"]["args"] == ["donor-1", "charity-9", "25", "MYR", "general", '{"a": "b"}']


@pytest.mark.asyncio
async def test_record_donation_without_event_returns_zero():
    client = _gateway(
        _resp({"receipt": {"transactionHash": "0xabc"}}),
        _resp({"events": []}, path="/events"),
    )
    with patch("app.http_client.ledger", client):
        result = await ledger_service.record_donation("d", "r", 1, "MYR", "general")
    assert result == {"donationId": 0, "txHash": "0xabc"}


@pytest.mark.asyncio
async def test_gateway_error_raises_ledger_error():
    client = _gateway(_resp({"error": "boom"}, status=500))
    with patch("app.http_client.ledger", client):
        with pytest.raises(LedgerError):
            await ledger_service.record_donation("d", "r", 1, "MYR", "general")


@pytest.mark.asyncio
async def test_gateway_timeout_raises_ledger_error():
    client = MagicMock()
    client.post = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
    with patch("app.http_client.ledger", client):
        with pytest.raises(LedgerError) as exc:
            await ledger_service.get_donation(1)
    assert "timed out" in exc.value.message


# ── reads ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_get_donation_decodes_record():
    client = _gateway(_resp({"result": RECORD}))
    with patch("app.http_client.ledger", client):
        donation = await ledger_service.get_donation(7)

    assert donation == {
        "donor": "0xDonor",
        "donorId": "donor-1",
        "recipientId": "charity-9",
        "amount": "2500",
        "currency": "MYR",
        "donationType": "campaign",
        "timestamp": "2026-01-01T00:00:00+00:00",
        "metadata": {"note": "hi"},
    }


@pytest.mark.asyncio
async def test_get_donation_bad_metadata_becomes_empty():
    record = RECORD[:7] + ["not json"]
    client = _gateway(_resp({"result": record}))
    with patch("app.http_client.ledger", client):
        donation = await ledger_service.get_donation(7)
    assert donation["metadata"] == {}


@pytest.mark.asyncio
async def test_get_donation_malformed_result():
    client = _gateway(_resp({"result": ["too", "short"]}))
    with patch("app.http_client.ledger", client):
        with pytest.raises(LedgerError):
            await ledger_service.get_donation(7)


@pytest.mark.asyncio
async def test_latest_donations_fetches_each_id():
    client = _gateway(
        _resp({"result": ["3", "2"]}),
        _resp({"result": RECORD}),
        _resp({"result": RECORD}),
    )
    with patch("app.http_client.ledger", client):
        donations = await ledger_service.get_latest_donations(2)

    assert len(donations) == 2
    assert client.post.await_count == 3
    first = client.post.await_args_list[0].kwargs["json"]
    assert first == {"method": "getLatestDonations", "args": [2]}
