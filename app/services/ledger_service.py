"""Ledger service — records donations on the blockchain ledger.

The contract SDK lives behind an HTTP gateway (settings.ledger_gateway_url);
this module speaks the gateway's two endpoints:

    POST /call    {"method": name, "args": [...]} → {"result": ..., "receipt": {...}}
    POST /events  {"name": event, "order": "desc"} → {"events": [...]}

Business Rules:
- Metadata is sanitized before submission: non-printable characters are
  stripped; dict values capped per field, raw strings capped overall
- donationId comes from the DonationRecorded event whose transactionHash
  matches the receipt; 0 when no such event is found
- Gateway failures (HTTP error, timeout, malformed body) raise LedgerError
- Latest donations are fetched concurrently, one read per id

Called by: routers/donations.py
Depends on: http_client.py (ledger), config.py
"""

import asyncio
import json
import logging
from datetime import datetime, timezone

import httpx

from ..config import settings
from ..exceptions import LedgerError

log = logging.getLogger("openmarket.ledger")


def _printable(value: str) -> str:
    return "".join(ch for ch in value if ch.isprintable())


def sanitize_metadata(metadata) -> str:
    """Return the metadata as the JSON/text string stored on-chain."""
    if metadata is None:
        return "{}"
    if isinstance(metadata, dict):
        limit = settings.donation_metadata_field_max_chars
        clean = {}
        for key, value in metadata.items():
            if isinstance(value, str):
                value = _printable(value)[:limit]
            clean[_printable(str(key))[:limit]] = value
        return json.dumps(clean)
    return _printable(str(metadata))[: settings.donation_metadata_max_chars]


async def _post(path: str, payload: dict) -> dict:
    from ..http_client import ledger

    try:
        resp = await ledger.post(path, json=payload)
        resp.raise_for_status()
        return resp.json()
    except httpx.TimeoutException as e:
        log.error(f"Ledger gateway timed out on {path}: {e}")
        raise LedgerError("Ledger gateway timed out")
    except httpx.HTTPStatusError as e:
        log.error(f"Ledger gateway returned {e.response.status_code} on {path}")
        raise LedgerError(f"Ledger gateway returned {e.response.status_code}")
    except httpx.HTTPError as e:
        log.error(f"Ledger gateway unreachable on {path}: {e}")
        raise LedgerError("Ledger gateway unreachable")
    except ValueError:
        log.error(f"Ledger gateway sent a non-JSON body on {path}")
        raise LedgerError("Ledger gateway sent a malformed response")


async def _call(method: str, args: list | None = None) -> dict:
    return await _post("/call", {"method": method, "args": args or []})


async def record_donation(
    donor_id: str,
    recipient_id: str,
    amount,
    currency: str,
    donation_type: str,
    metadata=None,
) -> dict:
    """Write one donation; returns {"donationId": int, "txHash": str}."""
    body = await _call(
        "recordDonation",
        [
            donor_id,
            recipient_id,
            str(amount),
            currency,
            donation_type,
            sanitize_metadata(metadata),
        ],
    )
    tx_hash = (body.get("receipt") or {}).get("transactionHash")
    if not tx_hash:
        raise LedgerError("Ledger gateway returned no transaction receipt")

    events = (await _post("/events", {"name": "DonationRecorded", "order": "desc"})).get(
        "events"
    ) or []
    donation_id = 0
    for event in events:
        if (event.get("transaction") or {}).get("transactionHash") == tx_hash:
            try:
                donation_id = int((event.get("data") or {}).get("donationId") or 0)
            except (TypeError, ValueError):
                donation_id = 0
            break
    else:
        log.warning(f"DonationRecorded event not found for tx {tx_hash}")

    log.info(f"Donation {donation_id} recorded on ledger: donor {donor_id} → {recipient_id}, tx {tx_hash}")
    return {"donationId": donation_id, "txHash": tx_hash}


def _decode_donation(result: list) -> dict:
    try:
        metadata = json.loads(result[7])
    except (TypeError, ValueError):
        metadata = {}
    return {
        "donor": result[0],
        "donorId": result[1],
        "recipientId": result[2],
        "amount": str(result[3]),
        "currency": result[4],
        "donationType": result[5],
        "timestamp": datetime.fromtimestamp(int(result[6]), tz=timezone.utc).isoformat(),
        "metadata": metadata,
    }


async def get_donation(donation_id: int) -> dict:
    result = (await _call("getDonation", [donation_id])).get("result")
    if not isinstance(result, list) or len(result) < 8:
        raise LedgerError(f"Ledger gateway returned a malformed donation {donation_id}")
    try:
        return _decode_donation(result)
    except (TypeError, ValueError, OverflowError):
        raise LedgerError(f"Ledger gateway returned a malformed donation {donation_id}")


async def get_latest_donations(count: int = 10) -> list[dict]:
    ids = (await _call("getLatestDonations", [count])).get("result") or []
    try:
        ids = [int(str(i)) for i in ids]
    except (TypeError, ValueError):
        raise LedgerError("Ledger gateway returned malformed donation ids")
    return list(await asyncio.gather(*(get_donation(i) for i in ids)))
