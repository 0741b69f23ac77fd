"""
test_routers_donations.py — Tests for the donation ledger endpoints

The ledger service is patched with AsyncMock; these tests cover the
HTTP contract: api-key auth, required fields, status codes, count caps.

Called by: pytest
Depends on: app/routers/donations.py, conftest.py
"""

from unittest.mock import AsyncMock, patch

from app.exceptions import LedgerError

DONATION = {
    "donorId": "donor-1",
    "recipientId": "charity-9",
    "amount": 50,
    "currency": "MYR",
    "donationType": "general",
    "metadata": {"message": "Keep it up"},
}


def test_missing_api_key_is_401(client):
    resp = client.post("/donations", json=DONATION)
    assert resp.status_code == 401


def test_wrong_api_key_is_401(client):
    resp = client.get("/donations/1", headers={"x-api-key": "guess"})
    assert resp.status_code == 401


def test_record_donation_201(client, api_key_headers):
    with patch(
        "app.services.ledger_service.record_donation",
        new_callable=AsyncMock,
        return_value={"donationId": 12, "txHash": "0xfeed"},
    ) as mock_record:
        resp = client.post("/donations", json=DONATION, headers=api_key_headers)

    assert resp.status_code == 201
    assert resp.json() == {"message": "Donation recorded on blockchain", "donationId": 12, "txHash": "0xfeed"}
    args = mock_record.await_args.args
    assert args[:5] == ("donor-1", "charity-9", 50, "MYR", "general")
    assert args[5] == {"message": "Keep it up"}


def test_missing_fields_400(client, api_key_headers):
    body = {k: v for k, v in DONATION.items() if k != "currency"}
    with patch("app.services.ledger_service.record_donation", new_callable=AsyncMock) as mock_record:
        resp = client.post("/donations", json=body, headers=api_key_headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required fields"}
    mock_record.assert_not_awaited()


def test_ledger_failure_500(client, api_key_headers):
    with patch(
        "app.services.ledger_service.record_donation",
        new_callable=AsyncMock,
        side_effect=LedgerError("gateway down"),
    ):
        resp = client.post("/donations", json=DONATION, headers=api_key_headers)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Error recording donation"}


def test_get_donation(client, api_key_headers):
    record = {"donor": "0x1", "donorId": "donor-1", "amount": "50", "metadata": {}}
    with patch("app.services.ledger_service.get_donation", new_callable=AsyncMock, return_value=record) as m:
        resp = client.get("/donations/5", headers=api_key_headers)
    assert resp.status_code == 200
    assert resp.json() == record
    m.assert_awaited_once_with(5)


def test_get_donation_failure_500(client, api_key_headers):
    with patch("app.services.ledger_service.get_donation", new_callable=AsyncMock, side_effect=LedgerError("x")):
        resp = client.get("/donations/5", headers=api_key_headers)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Error getting donation"}


def test_latest_default_and_cap(client, api_key_headers):
    with patch("app.services.ledger_service.get_latest_donations", new_callable=AsyncMock, return_value=[]) as m:
        assert client.get("/donations", headers=api_key_headers).status_code == 200
        m.assert_awaited_with(10)

        client.get("/donations?count=3", headers=api_key_headers)
        m.assert_awaited_with(3)

        client.get("/donations?count=5000", headers=api_key_headers)
        m.assert_awaited_with(100)


def test_latest_failure_500(client, api_key_headers):
    with patch(
        "app.services.ledger_service.get_latest_donations",
        new_callable=AsyncMock,
        side_effect=LedgerError("x"),
    ):
        resp = client.get("/donations?count=2", headers=api_key_headers)
    assert resp.status_code == 500
