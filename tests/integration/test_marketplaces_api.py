"""Integration tests for the marketplaces API."""

import pytest

from solchap.handlers import marketplaces_handler
from solchap.handlers.models.env_vars import MarketplacesEnvVars

MARKETPLACE = {"marketplaceId": "m1", "name": "Collectibles", "description": "Cards and coins"}


@pytest.fixture(autouse=True)
def service(install_service):
    return install_service(marketplaces_handler, MarketplacesEnvVars)


def test_create_defaults_to_active(call_api, aws, cipher):
    status, body = call_api(marketplaces_handler, "POST", "/marketplaces", MARKETPLACE)

    assert status == 201
    assert body["status"] == "ACTIVE"
    [item] = aws.items()
    assert item["PK"] == f"MARKETPLACE#{cipher.encrypt('m1')}"
    assert item["GSI1PK"] == "STATUS#ACTIVE"
    assert item["GSI1SK"] == item["PK"]
    assert aws.events.details("MarketplaceCreateEvent")[0]["_source"] == "marketplace.system"


def test_list_decrypts_and_skips_broken_records(call_api, aws):
    call_api(marketplaces_handler, "POST", "/marketplaces", MARKETPLACE)
    call_api(marketplaces_handler, "POST", "/marketplaces", {**MARKETPLACE, "marketplaceId": "m2", "name": "Art"})
    aws.table().put_item(Item={"PK": "MARKETPLACE#broken", "SK": "x", "id": "broken!", "name": "broken!"})

    status, body = call_api(marketplaces_handler, "GET", "/marketplaces")

    assert status == 200
    assert body["count"] == 2
    assert sorted(m["name"] for m in body["data"]) == ["Art", "Collectibles"]


def test_update_status_moves_index_key(call_api, aws):
    call_api(marketplaces_handler, "POST", "/marketplaces", MARKETPLACE)

    status, _ = call_api(marketplaces_handler, "PUT", "/marketplaces/m1", {"status": "inactive"})

    assert status == 200
    [item] = aws.items()
    assert item["status"] == "INACTIVE"
    assert item["GSI1PK"] == "STATUS#INACTIVE"
    assert aws.events.details("MarketplaceUpdateEvent")[0]["_source"] == "com.mycompany.marketplace"


def test_update_missing_marketplace(call_api):
    status, _ = call_api(marketplaces_handler, "PUT", "/marketplaces/none", {"name": "x"})
    assert status == 404


class TestDeleteMarketplace:
    def test_active_marketplace_is_deleted(self, call_api, aws):
        call_api(marketplaces_handler, "POST", "/marketplaces", MARKETPLACE)

        status, _ = call_api(marketplaces_handler, "DELETE", "/marketplaces/m1")

        assert status == 200
        assert aws.items() == []
        assert aws.events.details("MarketplaceDeleted")[0]["_source"] == "marketplace.service"

    def test_inactive_marketplace_is_kept(self, call_api, aws):
        call_api(marketplaces_handler, "POST", "/marketplaces", {**MARKETPLACE, "status": "INACTIVE"})
        aws.queue_messages()
        aws.events.entries.clear()

        status, body = call_api(marketplaces_handler, "DELETE", "/marketplaces/m1")

        assert status == 400
        assert "status is not ACTIVE" in body["message"]
        assert len(aws.items()) == 1
        assert aws.queue_messages() == []
        assert aws.events.entries == []

    def test_missing_marketplace(self, call_api):
        status, _ = call_api(marketplaces_handler, "DELETE", "/marketplaces/none")
        assert status == 404
