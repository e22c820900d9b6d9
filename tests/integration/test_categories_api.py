"""Integration tests for categories and subcategories."""

import pytest

from solchap.handlers import categories_handler
from solchap.handlers.models.env_vars import CategoriesEnvVars
from tests.conftest import SUBCATEGORIES_TABLE


@pytest.fixture(autouse=True)
def service(install_service):
    return install_service(categories_handler, CategoriesEnvVars, SUBCATEGORIES_TABLE_NAME=SUBCATEGORIES_TABLE)


def _create_category(call_api, marketplace_id="m1", name="Coins"):
    status, body = call_api(categories_handler, "POST", "/categories",
                            {"marketplaceId": marketplace_id, "name": name, "description": "Old coins"})
    assert status == 201
    return body["categoryId"]


class TestCategories:
    def test_whole_key_is_encrypted(self, call_api, aws, cipher):
        category_id = _create_category(call_api)

        [item] = aws.items()
        assert item["PK"] == cipher.encrypt(f"CATEGORY#{category_id}")
        assert item["SK"] == cipher.encrypt("MARKETPLACE#m1")
        assert aws.events.details("CategoryCreated")[0]["_source"] == "marketplace.category"

    def test_list_recovers_ids(self, call_api):
        category_id = _create_category(call_api)

        status, body = call_api(categories_handler, "GET", "/categories")

        assert status == 200
        assert body["data"][0]["categoryId"] == category_id
        assert body["data"][0]["marketplaceId"] == "m1"
        assert body["data"][0]["name"] == "Coins"

    def test_empty_list_is_not_found(self, call_api):
        status, _ = call_api(categories_handler, "GET", "/categories")
        assert status == 404

    def test_list_by_marketplace(self, call_api):
        _create_category(call_api, "m1", "Coins")
        _create_category(call_api, "m2", "Stamps")

        status, body = call_api(categories_handler, "GET", "/marketplaces/m2/categories")

        assert status == 200
        assert [c["name"] for c in body["data"]] == ["Stamps"]

    def test_update_requires_matching_marketplace(self, call_api):
        category_id = _create_category(call_api)
        update = {"marketplaceId": "m9", "name": "New", "description": "New desc"}

        status, body = call_api(categories_handler, "PUT", f"/categories/{category_id}", update)

        assert status == 403
        assert body["message"] == "Unauthorized: Marketplace ID does not match"

    def test_update_and_delete(self, call_api, aws, cipher):
        category_id = _create_category(call_api)

        status, _ = call_api(categories_handler, "PUT", f"/categories/{category_id}",
                             {"marketplaceId": "m1", "name": "Rare coins", "description": "d"})
        assert status == 200
        assert aws.items()[0]["name"] == cipher.encrypt("Rare coins")

        status, _ = call_api(categories_handler, "DELETE", f"/categories/{category_id}")
        assert status == 200
        assert aws.items() == []
        assert aws.events.details("CategoryDeleted")[0]["_source"] == "custom.category.service"

    def test_delete_unknown_category(self, call_api):
        status, _ = call_api(categories_handler, "DELETE", "/categories/none")
        assert status == 404


class TestSubcategories:
    def _create(self, call_api, subcategory_id, order, category_id="cat1"):
        return call_api(categories_handler, "POST", "/subcategories", {
            "subcategoryId": subcategory_id, "categoryId": category_id, "name": f"Sub {subcategory_id}",
            "displayOrder": order,
        })

    def test_create_uses_order_index(self, call_api, aws, cipher):
        status, _ = self._create(call_api, "s1", 3)

        assert status == 201
        [item] = aws.items(SUBCATEGORIES_TABLE)
        assert item["PK"] == cipher.encrypt("SUBCATEGORY#s1")
        assert item["GSI1PK"] == cipher.encrypt("CATEGORY#cat1")
        assert item["GSI1SK"] == "ORDER#00003"

    def test_negative_order_is_rejected(self, call_api):
        status, _ = self._create(call_api, "s1", -1)
        assert status == 400

    def test_list_is_sorted_by_display_order(self, call_api):
        self._create(call_api, "s1", 2)
        self._create(call_api, "s2", 0)
        self._create(call_api, "s3", 1)
        self._create(call_api, "other", 0, category_id="cat2")

        status, body = call_api(categories_handler, "GET", "/categories/cat1/subcategories")

        assert status == 200
        assert [s["subcategoryId"] for s in body["data"]] == ["s2", "s3", "s1"]

    def test_list_empty_category(self, call_api):
        status, _ = call_api(categories_handler, "GET", "/categories/none/subcategories")
        assert status == 404

    def test_update_moves_order(self, call_api, aws):
        self._create(call_api, "s1", 2)

        status, _ = call_api(categories_handler, "PUT", "/subcategories/s1", {"categoryId": "cat1", "displayOrder": 7})

        assert status == 200
        [item] = aws.items(SUBCATEGORIES_TABLE)
        assert item["displayOrder"] == 7
        assert item["GSI1SK"] == "ORDER#00007"

    def test_update_missing(self, call_api):
        status, _ = call_api(categories_handler, "PUT", "/subcategories/none", {"categoryId": "cat1", "name": "x"})
        assert status == 404

    def test_delete(self, call_api, aws):
        self._create(call_api, "s1", 0)

        status, _ = call_api(categories_handler, "DELETE", "/subcategories/s1")

        assert status == 200
        assert aws.items(SUBCATEGORIES_TABLE) == []
