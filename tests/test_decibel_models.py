"""
Tests for decoding API payloads into the data model.
"""
import msgspec

from DecibelOnboard.decibel_models import (
    IdentifierSource,
    ListingResponse,
    MarketSpec,
    OrderDetails,
    ResolvedIdentifier,
    TimeInForce,
    TransactionEvent,
)


def test_market_spec_encodes_wire_names(market):
    encoded = msgspec.json.decode(msgspec.json.encode(market))

    assert encoded["px_decimals"] == 9
    assert encoded["sz_decimals"] == 9
    assert "price_decimals" not in encoded


def test_market_spec_from_json():
    raw = (
        b'{"market_name":"BTC-PERP","market_addr":"0xab","px_decimals":9,"sz_decimals":9,'
        b'"tick_size":1000000,"lot_size":100000,"min_size":100000}'
    )

    market = msgspec.json.decode(raw, type=MarketSpec)

    assert market.tick_size == 1_000_000
    assert market.min_size_human == 0.0001


def test_listing_defaults_are_independent():
    first = ListingResponse(ok=True, status=200)
    second = ListingResponse(ok=True, status=200)

    first.records.append("x")

    assert second.records == []


def test_transaction_event_from_node_payload():
    payload = {
        "guid": {"creation_number": "0", "account_address": "0x0"},
        "sequence_number": "0",
        "type": "0xb8::dex_accounts::SubaccountCreatedEvent",
        "data": {"owner": "0xaa", "subaccount": {"inner": "0x55"}},
    }

    event = msgspec.convert(payload, TransactionEvent, strict=False)

    assert event.type.endswith("::SubaccountCreatedEvent")
    assert event.data["subaccount"] == {"inner": "0x55"}


def test_filled_size_needs_both_sizes():
    assert OrderDetails(orig_size=1.0).filled_size is None
    assert OrderDetails(orig_size=1.0, remaining_size=0.25).filled_size == 0.75


def test_identifier_source_values():
    assert [s.value for s in IdentifierSource] == ["ApiVerified", "EventUnverified", "EventExtracted", "Calculated"]
    assert not ResolvedIdentifier("0x1", IdentifierSource.CALCULATED).is_verified


def test_time_in_force_codes():
    assert int(TimeInForce.GTC) == 0
    assert TimeInForce(2) is TimeInForce.IOC
