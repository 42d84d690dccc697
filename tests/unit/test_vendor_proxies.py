"""Tests for the vendor REST proxies."""
import pytest

from flowhub.proxies.clickup import ClickUpProxy, reaction_name
from flowhub.proxies.clockodo import ClockodoProxy
from flowhub.proxies.convertkit import ConvertKitProxy
from flowhub.proxies.copper import CopperProxy
from flowhub.proxies.shopify import ShopifyProxy
from flowhub.proxies.trello import TrelloProxy


CLOCKODO = {"email": "me@example.com", "apiKey": "ck"}
COPPER = {"apiKey": "pw", "email": "owner@example.com"}
SHOPIFY = {"shopName": "acme", "adminToken": "shpat_1"}
TRELLO = {"apiKey": "tk", "token": "tt"}


class TestClockodoProxy:
    """Test ClockodoProxy."""

    def test_get_users(self, mock_request, make_response):
        mock_request.return_value = make_response(200, {"users": [{"id": 1}]})

        response = ClockodoProxy(application="acme-flows")({**CLOCKODO, "action": "getUsers"})

        assert response.payload == {"success": True, "data": {"users": [{"id": 1}]}}
        kwargs = mock_request.call_args.kwargs
        assert kwargs["url"] == "https://my.clockodo.com/api/v2/users"
        assert kwargs["auth"] == ("me@example.com", "ck")
        assert kwargs["headers"]["X-Clockodo-External-Application"] == "acme-flows;me@example.com"

    def test_create_user_uses_user_email(self, mock_request):
        ClockodoProxy()({**CLOCKODO, "action": "createUser", "name": "Ada", "userEmail": "ada@example.com",
                         "teamsId": "4"})

        kwargs = mock_request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["json"] == {"name": "Ada", "email": "ada@example.com", "role": "user", "teams_id": 4}

    def test_entries_query(self, mock_request):
        ClockodoProxy()({**CLOCKODO, "action": "getEntries", "timeSince": "2024-01-01T00:00:00Z",
                         "timeUntil": "2024-01-31T23:59:59Z", "filterUsersId": "7"})

        assert mock_request.call_args.kwargs["params"] == {
            "time_since": "2024-01-01T00:00:00Z",
            "time_until": "2024-01-31T23:59:59Z",
            "filter[users_id]": "7",
        }

    def test_get_user_requires_id(self, mock_request):
        response = ClockodoProxy()({**CLOCKODO, "action": "getUser"})

        assert response.status_code == 400
        assert response.payload["error"] == "usersId is required"

    def test_error_message(self, mock_request, make_response):
        mock_request.return_value = make_response(401, {"error": {"message": "Authentication failed"}})

        response = ClockodoProxy()({**CLOCKODO, "action": "getUsers"})

        assert response.payload["success"] is False
        assert response.payload["error"] == "Authentication failed"

    def test_missing_credentials(self, mock_request):
        response = ClockodoProxy()({"email": "me@example.com", "action": "getUsers"})

        assert response.status_code == 400
        assert response.payload["error"] == "Email and API token are required"


class TestConvertKitProxy:
    """Test ConvertKitProxy."""

    def test_list_tags_uses_api_key(self, mock_request, make_response):
        mock_request.return_value = make_response(200, {"tags": [{"id": 1, "name": "vip"}]})

        response = ConvertKitProxy()({"apiKey": "key", "apiSecret": "secret", "action": "listTags"})

        assert response.payload == {
            "success": True,
            "data": {"tags": [{"id": 1, "name": "vip"}]},
            "subscriberId": None,
            "items": [{"id": 1, "name": "vip"}],
        }
        kwargs = mock_request.call_args.kwargs
        assert kwargs["url"] == "https://api.convertkit.com/v3/tags"
        assert kwargs["params"] == {"api_key": "key"}

    def test_secret_falls_back_to_key(self, mock_request, make_response):
        mock_request.return_value = make_response(200, {"subscriber": {"id": 55}})

        response = ConvertKitProxy()({"apiKey": "key", "action": "getSubscriberById", "subscriberId": "55"})

        assert response.payload["subscriberId"] == "55"
        kwargs = mock_request.call_args.kwargs
        assert kwargs["url"] == "https://api.convertkit.com/v3/subscribers/55"
        assert kwargs["params"] == {"api_secret": "key"}

    def test_add_subscriber_to_form(self, mock_request, make_response):
        mock_request.return_value = make_response(200, {"subscription": {"id": 9, "subscriber": {"id": 77}}})

        response = ConvertKitProxy()({
            "apiKey": "key", "action": "addSubscriberToForm", "formId": "12",
            "email": "ada@example.com", "firstName": "Ada", "fields": '{"plan": "pro"}',
        })

        assert response.payload["subscriberId"] == "77"
        kwargs = mock_request.call_args.kwargs
        assert kwargs["url"] == "https://api.convertkit.com/v3/forms/12/subscribe"
        assert kwargs["json"] == {
            "api_key": "key",
            "email": "ada@example.com",
            "first_name": "Ada",
            "fields": {"plan": "pro"},
        }

    def test_bad_fields_json(self, mock_request):
        response = ConvertKitProxy()({
            "apiKey": "key", "action": "addSubscriberToForm", "formId": "12", "fields": "{oops",
        })

        assert response.status_code == 400
        assert response.payload["error"].startswith("fields must be valid JSON")
        mock_request.assert_not_called()

    def test_create_tag(self, mock_request):
        ConvertKitProxy()({"apiKey": "key", "apiSecret": "s", "action": "createTag", "tagName": "beta"})

        assert mock_request.call_args.kwargs["json"] == {"api_secret": "s", "tag": {"name": "beta"}}

    def test_missing_key(self, mock_request):
        response = ConvertKitProxy()({"action": "listTags"})

        assert response.payload["error"] == "API key is required"


class TestClickUpProxy:
    """Test ClickUpProxy."""

    def test_create_task(self, mock_request, make_response):
        mock_request.return_value = make_response(200, {"id": "t1"})

        response = ClickUpProxy()({
            "apiKey": "pk_1", "action": "createTask", "listId": "L1", "name": "Ship it",
            "assignees": "1, 2", "tags": "urgent",
        })

        assert response.payload == {"success": True, "data": {"id": "t1"}}
        kwargs = mock_request.call_args.kwargs
        assert kwargs["url"] == "https://api.clickup.com/api/v2/list/L1/task"
        assert kwargs["headers"]["Authorization"] == "pk_1"
        assert kwargs["json"] == {"name": "Ship it", "assignees": [1, 2], "tags": ["urgent"]}

    def test_chat_uses_v3(self, mock_request):
        ClickUpProxy()({"apiKey": "pk_1", "action": "createMessageReaction", "workspaceId": "W",
                        "messageId": "M", "reaction": "\U0001F44D"})

        kwargs = mock_request.call_args.kwargs
        assert kwargs["url"] == "https://api.clickup.com/api/v3/workspaces/W/chat/messages/M/reactions"
        assert kwargs["json"] == {"reaction": "thumbsup"}

    def test_reaction_name(self):
        assert reaction_name(" \U0001F680 ") == "rocket"
        assert reaction_name("custom") == "custom"
        assert reaction_name(None) is None

    def test_get_task_by_name_filters(self, mock_request, make_response):
        mock_request.return_value = make_response(200, {"tasks": [{"name": "Fix Login"}, {"name": "Docs"}]})

        response = ClickUpProxy()({"apiKey": "pk_1", "action": "getTaskByName", "listId": "L1", "taskName": "login"})

        assert response.payload["data"]["tasks"] == [{"name": "Fix Login"}]

    def test_subtask_looks_up_parent_list(self, mock_request, make_response):
        mock_request.side_effect = [
            make_response(200, {"id": "parent", "list": {"id": "L9"}}),
            make_response(200, {"id": "child"}),
        ]

        response = ClickUpProxy()({"apiKey": "pk_1", "action": "createSubtask", "parentTaskId": "parent",
                                   "name": "Child"})

        assert response.payload["data"] == {"id": "child"}
        first, second = mock_request.call_args_list
        assert first.kwargs["url"] == "https://api.clickup.com/api/v2/task/parent"
        assert second.kwargs["url"] == "https://api.clickup.com/api/v2/list/L9/task"
        assert second.kwargs["json"] == {"name": "Child", "parent": "parent"}

    def test_error_uses_err(self, mock_request, make_response):
        mock_request.return_value = make_response(401, {"err": "Token invalid", "ECODE": "OAUTH_025"})

        response = ClickUpProxy()({"apiKey": "pk_1", "action": "getTask", "taskId": "t1"})

        assert response.payload["error"] == "Token invalid"

    def test_non_json(self, mock_request, make_response):
        mock_request.return_value = make_response(404, text="Cannot GET")

        response = ClickUpProxy()({"apiKey": "pk_1", "action": "getTask", "taskId": "t1"})

        assert response.payload["error"].startswith("ClickUp API returned non-JSON response (status 404).")


class TestCopperProxy:
    """Test CopperProxy."""

    def test_search_people(self, mock_request, make_response):
        mock_request.return_value = make_response(200, [{"id": 1}, {"id": 2}])

        response = CopperProxy()({**COPPER, "action": "searchForAPerson", "personEmail": "ada@example.com"})

        assert response.payload == {"success": True, "data": [{"id": 1}, {"id": 2}], "id": None,
                                    "items": [{"id": 1}, {"id": 2}]}
        kwargs = mock_request.call_args.kwargs
        assert kwargs["url"] == "https://api.copper.com/developer_api/v1/people/search"
        assert kwargs["json"] == {"page_size": 20, "emails": ["ada@example.com"]}
        assert kwargs["headers"]["X-PW-AccessToken"] == "pw"
        assert kwargs["headers"]["X-PW-Application"] == "developer_api"
        assert kwargs["headers"]["X-PW-UserEmail"] == "owner@example.com"

    def test_create_person_returns_id(self, mock_request, make_response):
        mock_request.return_value = make_response(200, {"id": 123, "name": "Ada"})

        response = CopperProxy()({**COPPER, "action": "createPerson", "name": "Ada", "phone": "555"})

        assert response.payload["id"] == "123"
        assert response.payload["items"] is None
        assert mock_request.call_args.kwargs["json"] == {
            "name": "Ada",
            "phone_numbers": [{"number": "555", "category": "work"}],
        }

    @pytest.mark.parametrize("body,message", [
        ({"email": "owner@example.com"}, "API key is required"),
        ({"apiKey": "pw"}, "User email is required"),
    ])
    def test_credentials(self, mock_request, body, message):
        response = CopperProxy()({**body, "action": "searchForAPerson"})

        assert response.status_code == 400
        assert response.payload["error"] == message


class TestShopifyProxy:
    """Test ShopifyProxy."""

    def test_get_orders(self, mock_request, make_response):
        mock_request.return_value = make_response(200, {"orders": []})

        response = ShopifyProxy()({**SHOPIFY, "action": "get_orders", "inputs": {"status": "open", "limit": 5}})

        assert response.status_code == 200
        assert response.payload == {"data": {"orders": []}, "success": True, "status_code": 200}
        kwargs = mock_request.call_args.kwargs
        assert kwargs["url"] == "https://acme.myshopify.com/admin/api/2023-10/orders.json"
        assert kwargs["params"] == {"status": "open", "limit": "5"}
        assert kwargs["headers"]["X-Shopify-Access-Token"] == "shpat_1"

    def test_full_shop_domain(self, mock_request):
        ShopifyProxy()({"shopName": "acme.myshopify.com", "adminToken": "t", "action": "get_locations"})

        assert mock_request.call_args.kwargs["url"] == "https://acme.myshopify.com/admin/api/2023-10/locations.json"

    def test_create_order_parses_line_items(self, mock_request):
        ShopifyProxy()({**SHOPIFY, "action": "create_order", "inputs": {
            "line_items": '[{"variant_id": 1, "quantity": 2}]', "customer_id": 9,
        }})

        assert mock_request.call_args.kwargs["json"] == {
            "order": {"line_items": [{"variant_id": 1, "quantity": 2}], "customer": {"id": 9}},
        }

    def test_unknown_action_is_500(self, mock_request):
        response = ShopifyProxy()({**SHOPIFY, "action": "launch_rocket"})

        assert response.status_code == 500
        assert response.payload == {
            "data": None,
            "success": False,
            "status_code": 500,
            "error": "Unsupported Shopify action: launch_rocket",
        }

    def test_missing_credentials_is_500(self, mock_request):
        response = ShopifyProxy()({"shopName": "acme", "action": "get_orders"})

        assert response.status_code == 500
        assert response.payload["error"] == "Shop name and admin token are required"

    def test_api_errors_serialized(self, mock_request, make_response):
        mock_request.return_value = make_response(422, {"errors": {"title": ["can't be blank"]}})

        response = ShopifyProxy()({**SHOPIFY, "action": "create_product", "inputs": {}})

        assert response.status_code == 500
        assert response.payload["error"] == '{"title": ["can\'t be blank"]}'


class TestTrelloProxy:
    """Test TrelloProxy."""

    def test_create_card(self, mock_request, make_response):
        mock_request.return_value = make_response(200, {"id": "c1"})

        response = TrelloProxy()({**TRELLO, "action": "createCard", "listId": "l1", "name": "Card",
                                  "description": "Body"})

        assert response.payload == {"success": True, "data": {"id": "c1"}}
        kwargs = mock_request.call_args.kwargs
        assert kwargs["url"] == "https://api.trello.com/1/cards"
        assert kwargs["params"] == {"key": "tk", "token": "tt"}
        assert kwargs["json"] == {"idList": "l1", "name": "Card", "desc": "Body"}

    def test_get_lists_default_limit(self, mock_request):
        TrelloProxy()({**TRELLO, "action": "getLists", "boardId": "b1"})

        kwargs = mock_request.call_args.kwargs
        assert kwargs["url"] == "https://api.trello.com/1/boards/b1/lists"
        assert kwargs["params"] == {"key": "tk", "token": "tt", "limit": 50}

    def test_update_card_flags(self, mock_request):
        TrelloProxy()({**TRELLO, "action": "updateCard", "cardId": "c1", "closed": True, "name": ""})

        assert mock_request.call_args.kwargs["json"] == {"closed": True}

    def test_missing_token(self, mock_request):
        response = TrelloProxy()({"apiKey": "tk", "action": "getBoard", "boardId": "b1"})

        assert response.payload["error"] == "API Key and Token are required"
