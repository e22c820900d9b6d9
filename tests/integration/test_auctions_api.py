"""Integration tests for the auctions API."""

import pytest

from solchap.handlers import auctions_handler


@pytest.fixture(autouse=True)
def service(install_service):
    return install_service(auctions_handler)


def test_place_bid(call_api, aws, cipher):
    status, body = call_api(auctions_handler, "POST", "/auctions/a1/bids",
                            {"bidId": "b1", "bidAmount": 150, "userId": "u1"})

    assert status == 201
    assert body["auctionId"] == "a1"

    [item] = aws.items()
    assert item["PK"] == f"BID#{cipher.encrypt('b1')}"
    assert item["SK"] == f"AUCTION#{cipher.encrypt('a1')}"
    assert cipher.decrypt(item["bidAmount"]) == "150"
    assert item["GSI1PK"] == item["SK"]

    [event] = aws.events.details("PlaceBid")
    assert event["_source"] == "marketplace.auctions"
    assert event["bidAmount"] == item["bidAmount"]


def test_path_auction_id_wins_over_body(call_api, aws, cipher):
    call_api(auctions_handler, "POST", "/auctions/a1/bids",
             {"auctionId": "other", "bidId": "b1", "bidAmount": 10, "userId": "u1"})

    assert aws.items()[0]["SK"] == f"AUCTION#{cipher.encrypt('a1')}"


def test_non_positive_bid_is_rejected(call_api, aws):
    status, _ = call_api(auctions_handler, "POST", "/auctions/a1/bids", {"bidId": "b1", "bidAmount": 0, "userId": "u1"})

    assert status == 400
    assert aws.items() == []


def test_same_bid_twice(call_api):
    body = {"bidId": "b1", "bidAmount": 10, "userId": "u1"}
    call_api(auctions_handler, "POST", "/auctions/a1/bids", body)

    status, response = call_api(auctions_handler, "POST", "/auctions/a1/bids", body)

    assert status == 400
    assert response["message"] == "Bid already exists"


@pytest.mark.parametrize("amount", ["Infinity", "NaN", "true"])
def test_non_numeric_bid_amount_is_rejected(call_api, aws, amount):
    raw_body = '{"bidId": "b1", "bidAmount": %s, "userId": "u1"}' % amount

    status, _ = call_api(auctions_handler, "POST", "/auctions/a1/bids", raw_body=raw_body)

    assert status == 400
    assert aws.items() == []
