"""Tests for the proxy-backed integration nodes."""
from unittest.mock import Mock

import pytest

from node_sdk import (
    CredentialsMissingError,
    NodeExecutionContext,
    NodeValidationError,
    ProxyInvocationError,
    ProxyNotFoundError,
)
from nodepacks.integrations import (
    AmazonSesNode,
    AmazonSqsNode,
    ClickUpNode,
    ClockodoNode,
    ConvertKitNode,
    CopperNode,
    ShopifyNode,
    TrelloNode,
)


AWS_KEYS = {"accessKeyId": "AKIA", "secretAccessKey": "secret"}


def _context(payload=None, side_effect=None):
    invoker = Mock()
    invoker.invoke.return_value = payload if payload is not None else {"success": True, "data": {}}
    invoker.invoke.side_effect = side_effect
    return NodeExecutionContext(proxy_invoker=invoker), invoker


class TestProxyNode:
    """Test the shared proxy forwarding contract."""

    def test_forwards_inputs(self):
        context, invoker = _context({"success": True, "data": {"users": []}})

        output = ClockodoNode().run({"email": "me@example.com", "apiKey": "k", "action": "getUsers"}, context)

        assert output == {"success": True, "data": {"users": []}, "error": None}
        name, body = invoker.invoke.call_args.args
        assert name == "clockodo-proxy"
        assert body == {"email": "me@example.com", "apiKey": "k", "action": "getUsers"}

    def test_default_action(self):
        context, invoker = _context()

        TrelloNode().run({"apiKey": "k", "token": "t"}, context)

        body = invoker.invoke.call_args.args[1]
        assert body["action"] == "getBoard"

    @pytest.mark.parametrize("node_class,inputs,message", [
        (ClockodoNode, {"email": "me@example.com"}, "Email and API token are required"),
        (ConvertKitNode, {}, "API key is required"),
        (ClickUpNode, {}, "API token is required"),
        (TrelloNode, {"apiKey": "k"}, "API Key and Token are required"),
        (ShopifyNode, {"shopName": "acme"}, "Shop name and admin token are required"),
        (AmazonSesNode, {"accessKeyId": "AKIA"}, "AWS Access Key ID and Secret Access Key are required"),
        (AmazonSqsNode, {}, "AWS Access Key ID and Secret Access Key are required"),
    ])
    def test_credentials_checked_before_invoking(self, node_class, inputs, message):
        context, invoker = _context()

        with pytest.raises(CredentialsMissingError) as exc_info:
            node_class().run(inputs, context)

        assert exc_info.value.message == message
        invoker.invoke.assert_not_called()

    def test_proxy_not_found(self):
        context, _ = _context(side_effect=ProxyNotFoundError("clickup-proxy"))

        output = ClickUpNode().run({"apiKey": "k"}, context)

        assert output["success"] is False
        assert output["error"] == 'Proxy function "clickup-proxy" not found'

    def test_proxy_invocation_error_keeps_details(self):
        payload = {"success": False, "error": "Invalid API key", "details": {"code": 401}}
        context, _ = _context(side_effect=ProxyInvocationError("convertkit-proxy", 401, payload))

        output = ConvertKitNode().run({"apiKey": "bad"}, context)

        assert output["success"] is False
        assert output["error"] == "Invalid API key"
        assert output["details"] == {"code": 401}

    def test_failed_payload(self):
        context, _ = _context({"success": False, "error": "Board not found", "details": "404"})

        output = TrelloNode().run({"apiKey": "k", "token": "t", "action": "getBoard", "boardId": "b"}, context)

        assert output["success"] is False
        assert output["error"] == "Board not found"
        assert output["details"] == "404"
        assert output["data"] is None

    def test_failed_payload_without_message(self):
        context, _ = _context({"success": False})

        output = TrelloNode().run({"apiKey": "k", "token": "t"}, context)

        assert output["error"] == "API request failed"

    def test_non_dict_payload_wrapped(self):
        context, _ = _context(["a", "b"])

        output = ClickUpNode().run({"apiKey": "k"}, context)

        assert output["data"] == ["a", "b"]
        assert output["success"] is True


class TestVendorNodes:
    """Test vendor specific bodies and outputs."""

    def test_dynamic_inputs_follow_action(self):
        fields = ClockodoNode().get_input_fields({"action": "createUser"})

        assert [f.name for f in fields] == ["email", "apiKey", "action", "name", "userEmail", "role", "teamsId"]

    def test_copper_credentials_order(self):
        context, _ = _context()

        with pytest.raises(CredentialsMissingError) as exc_info:
            CopperNode().run({}, context)
        assert exc_info.value.message == "API key is required"

        with pytest.raises(CredentialsMissingError) as exc_info:
            CopperNode().run({"apiKey": "k"}, context)
        assert exc_info.value.message == "User email is required"

    def test_copper_passes_ids_and_items(self):
        context, _ = _context({"success": True, "data": [{"id": 1}], "id": None, "items": [{"id": 1}]})

        output = CopperNode().run({"apiKey": "k", "email": "me@example.com"}, context)

        assert output["items"] == [{"id": 1}]
        assert output["id"] is None

    def test_shopify_nests_action_inputs(self):
        context, invoker = _context({"success": True, "data": {"orders": []}, "status_code": 200})

        output = ShopifyNode().run(
            {"shopName": "acme", "adminToken": "shpat", "action": "get_orders", "status": "open"},
            context,
        )

        body = invoker.invoke.call_args.args[1]
        assert body["shopName"] == "acme"
        assert body["adminToken"] == "shpat"
        assert body["action"] == "get_orders"
        assert body["inputs"]["status"] == "open"
        assert "adminToken" not in body["inputs"]
        assert output["data"] == {"orders": []}

    def test_ses_requires_sender_for_send_actions(self):
        context, invoker = _context()

        output = AmazonSesNode().run({**AWS_KEYS, "action": "sendEmail", "toEmails": "a@example.com"}, context)

        assert output["success"] is False
        assert output["error"] == "From email is required"
        invoker.invoke.assert_not_called()

    def test_ses_listing_needs_no_sender(self):
        context, invoker = _context({"success": True, "identities": ["example.com"]})

        output = AmazonSesNode().run({**AWS_KEYS, "action": "listIdentities"}, context)

        assert output["identities"] == ["example.com"]
        assert output["messageId"] is None
        assert invoker.invoke.call_args.args[1]["region"] == "us-east-1"

    def test_ses_parses_recipients(self):
        context, invoker = _context({"success": True, "messageIds": ["m1"]})

        output = AmazonSesNode().run(
            {**AWS_KEYS, "action": "sendTemplatedEmail", "fromEmail": "me@example.com",
             "templateName": "welcome", "recipients": '[{"email": "a@example.com"}]'},
            context,
        )

        assert invoker.invoke.call_args.args[1]["recipients"] == [{"email": "a@example.com"}]
        assert output["messageIds"] == ["m1"]

    def test_ses_invalid_recipients(self):
        with pytest.raises(NodeValidationError) as exc_info:
            AmazonSesNode().build_body({"action": "listIdentities", "recipients": "[oops"})

        assert str(exc_info.value) == "Recipients must be valid JSON array"

    def test_sqs_output(self):
        messages = [{"messageId": "m1", "receiptHandle": "h", "body": "hi", "attributes": {}}]
        context, _ = _context({"success": True, "messages": messages})

        output = AmazonSqsNode().run(
            {**AWS_KEYS, "action": "receiveMessages", "queueUrl": "https://sqs.example/q"}, context,
        )

        assert output["messages"] == messages
        assert output["queueUrls"] is None
