"""Shopify - orders, products, customers, inventory and more via the Admin API."""

from typing import Any, Dict

from node_sdk import InputField, OutputField, select, text

from .base import STANDARD_OUTPUTS, ProxyNode, action_select


CREDENTIAL_INPUTS = ("shopName", "adminToken", "action")


def _req(name, label):
    return text(name, label, required=True)


def _limit():
    return InputField(name="limit", label="Limit", type="number")


def _json(name, label, required=False):
    return InputField(name=name, label=label, type="code", language="json", required=required)


class ShopifyNode(ProxyNode):
    """
    Shopify Admin API.

    The proxy expects ``{shopName, adminToken, action, inputs}``; every
    action-specific input travels inside ``inputs``.
    """

    type = "shopify"
    name = "Shopify"
    description = "Manage a Shopify store"
    proxy_name = "shopify-proxy"

    required_credentials = ["shopName", "adminToken"]
    credentials_error = "Shop name and admin token are required"

    ACTIONS = [
        "get_orders", "get_order", "create_order", "update_order", "cancel_order", "close_order",
        "get_order_transactions", "create_transaction", "get_transaction",
        "create_fulfillment", "get_fulfillment", "get_fulfillments", "update_fulfillment",
        "create_fulfillment_event",
        "get_products", "get_product", "create_product", "update_product", "upload_product_image",
        "get_customers", "get_customer", "create_customer", "update_customer", "get_customer_orders",
        "get_locations", "adjust_inventory",
        "get_collections", "get_smart_collections", "create_collect",
        "get_draft_orders", "get_draft_order", "create_draft_order", "complete_draft_order",
        "delete_draft_order",
        "get_themes", "get_assets", "get_asset", "update_asset",
        "get_discounts", "create_discount",
        "custom_api_call",
    ]

    inputs = [
        text("shopName", "Shop Name", required=True, isApiKey=True, placeholder="my-store"),
        text("adminToken", "Admin API Access Token", required=True, isApiKey=True),
        action_select(ACTIONS, default="get_orders"),
    ]
    outputs = [*STANDARD_OUTPUTS, OutputField(name="status_code", type="number")]

    ACTION_FIELDS = {
        "get_orders": [select("status", "Status", ["open", "closed", "cancelled", "any"]), _limit(),
                       text("created_at_min", "Created After"), text("created_at_max", "Created Before")],
        "get_order": [_req("order_id", "Order ID")],
        "cancel_order": [_req("order_id", "Order ID")],
        "close_order": [_req("order_id", "Order ID")],
        "get_order_transactions": [_req("order_id", "Order ID")],
        "create_order": [
            _json("line_items", "Line Items (JSON)", required=True),
            text("customer_id", "Customer ID"),
            select("financial_status", "Financial Status", ["pending", "authorized", "paid"]),
            _json("shipping_address", "Shipping Address (JSON)"),
        ],
        "update_order": [_req("order_id", "Order ID"), text("note", "Note"), text("tags", "Tags")],
        "create_transaction": [
            _req("order_id", "Order ID"),
            select("kind", "Kind", ["authorization", "capture", "sale", "void", "refund"], default="capture"),
            text("amount", "Amount"), text("currency", "Currency"), text("parent_id", "Parent Transaction ID"),
        ],
        "get_transaction": [_req("order_id", "Order ID"), _req("transaction_id", "Transaction ID")],
        "create_fulfillment": [
            _req("order_id", "Order ID"), _req("location_id", "Location ID"),
            text("tracking_number", "Tracking Number"), text("tracking_company", "Tracking Company"),
            InputField(name="notify_customer", label="Notify Customer", type="boolean", default=True),
            _json("line_items", "Line Items (JSON)"),
        ],
        "get_fulfillment": [_req("order_id", "Order ID"), _req("fulfillment_id", "Fulfillment ID")],
        "get_fulfillments": [_req("order_id", "Order ID")],
        "update_fulfillment": [
            _req("order_id", "Order ID"), _req("fulfillment_id", "Fulfillment ID"),
            text("tracking_number", "Tracking Number"), text("tracking_company", "Tracking Company"),
            text("tracking_url", "Tracking URL"),
        ],
        "create_fulfillment_event": [
            _req("order_id", "Order ID"), _req("fulfillment_id", "Fulfillment ID"),
            select("status", "Status", ["in_transit", "out_for_delivery", "delivered", "failure"],
                   required=True),
            text("message", "Message"),
        ],
        "get_products": [_limit(), select("status", "Status", ["active", "archived", "draft"]),
                         text("collection_id", "Collection ID"), text("product_type", "Product Type")],
        "get_product": [_req("product_id", "Product ID")],
        "create_product": [
            _req("title", "Title"), InputField(name="body_html", label="Description (HTML)", type="textarea"),
            text("vendor", "Vendor"), text("product_type", "Product Type"), text("tags", "Tags"),
            _json("variants", "Variants (JSON)"),
        ],
        "update_product": [
            _req("product_id", "Product ID"), text("title", "Title"),
            InputField(name="body_html", label="Description (HTML)", type="textarea"),
            text("vendor", "Vendor"), text("tags", "Tags"),
        ],
        "upload_product_image": [_req("product_id", "Product ID"), _req("image_src", "Image URL"),
                                 text("alt_text", "Alt Text")],
        "get_customers": [_limit(), text("email", "Email")],
        "get_customer": [_req("customer_id", "Customer ID")],
        "get_customer_orders": [_req("customer_id", "Customer ID"), text("status", "Status"), _limit()],
        "create_customer": [
            text("first_name", "First Name"), text("last_name", "Last Name"), _req("email", "Email"),
            text("phone", "Phone"), text("tags", "Tags"),
            InputField(name="accepts_marketing", label="Accepts Marketing", type="boolean"),
        ],
        "update_customer": [
            _req("customer_id", "Customer ID"), text("first_name", "First Name"),
            text("last_name", "Last Name"), text("email", "Email"), text("phone", "Phone"),
            text("tags", "Tags"), text("note", "Note"),
            InputField(name="accepts_marketing", label="Accepts Marketing", type="boolean"),
        ],
        "adjust_inventory": [
            _req("location_id", "Location ID"), _req("inventory_item_id", "Inventory Item ID"),
            InputField(name="available_adjustment", label="Adjustment", type="number", required=True),
        ],
        "get_collections": [_limit(), text("title", "Title")],
        "create_collect": [_req("product_id", "Product ID"), _req("collection_id", "Collection ID"),
                           InputField(name="position", label="Position", type="number")],
        "get_draft_orders": [select("status", "Status", ["open", "invoice_sent", "completed"]), _limit()],
        "get_draft_order": [_req("draft_order_id", "Draft Order ID")],
        "delete_draft_order": [_req("draft_order_id", "Draft Order ID")],
        "complete_draft_order": [
            _req("draft_order_id", "Draft Order ID"),
            InputField(name="payment_pending", label="Payment Pending", type="boolean", default=False),
        ],
        "create_draft_order": [
            _json("line_items", "Line Items (JSON)", required=True), text("customer_id", "Customer ID"),
            text("email", "Email"), text("note", "Note"),
            _json("shipping_address", "Shipping Address (JSON)"),
            _json("billing_address", "Billing Address (JSON)"),
            _json("applied_discount", "Discount (JSON)"),
        ],
        "get_assets": [_req("theme_id", "Theme ID")],
        "get_asset": [_req("theme_id", "Theme ID"), _req("asset_key", "Asset Key")],
        "update_asset": [_req("theme_id", "Theme ID"), _req("asset_key", "Asset Key"),
                         InputField(name="value", label="Value", type="textarea", required=True)],
        "create_discount": [
            _req("title", "Title"), text("value", "Value", required=True, description="e.g. -10.0"),
            select("value_type", "Value Type", ["percentage", "fixed_amount"], default="percentage"),
            text("starts_at", "Starts At"), text("ends_at", "Ends At"),
            InputField(name="usage_limit", label="Usage Limit", type="number"),
        ],
        "custom_api_call": [
            text("endpoint", "Endpoint", required=True, description="Path relative to /admin/api/2023-10"),
            select("method", "HTTP Method", ["GET", "POST", "PUT", "DELETE"], default="GET"),
            _json("request_body", "Request Body (JSON)"),
        ],
    }

    def build_body(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "shopName": inputs.get("shopName"),
            "adminToken": inputs.get("adminToken"),
            "action": inputs.get("action"),
            "inputs": {k: v for k, v in inputs.items() if k not in CREDENTIAL_INPUTS},
        }
