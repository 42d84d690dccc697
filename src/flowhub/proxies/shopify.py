"""
Shopify Admin REST proxy (API version 2023-10).

Requests look like ``{shopName, adminToken, action, inputs: {...}}``. Every
failure, including a bad request, answers 500 with
``{data: null, success: false, status_code: 500, error}``.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from node_sdk import HttpResponse

from .base import ActionSpec, ProxyRequestError, ProxyResponse, RestProxy, parse_json_field


API_VERSION = "2023-10"


def _json_value(value: Any, field: str) -> Any:
    """Inputs that may arrive as JSON text or already decoded."""
    if isinstance(value, str):
        return parse_json_field(value, field)
    return value


def _truthy(p: Dict[str, Any], *names: str) -> Dict[str, Any]:
    return {name: p[name] for name in names if p.get(name)}


def _query(*names: str):
    return lambda p: {name: str(p[name]) for name in names if p.get(name)}


def _order_body(p: Dict[str, Any]) -> Dict[str, Any]:
    order: Dict[str, Any] = {"line_items": _json_value(p.get("line_items"), "line_items") or []}
    if p.get("customer_id"):
        order["customer"] = {"id": p["customer_id"]}
    if p.get("financial_status"):
        order["financial_status"] = p["financial_status"]
    if p.get("shipping_address"):
        order["shipping_address"] = _json_value(p["shipping_address"], "shipping_address")
    return {"order": order}


def _fulfillment_body(p: Dict[str, Any]) -> Dict[str, Any]:
    fulfillment = {
        "location_id": p.get("location_id"),
        "tracking_number": p.get("tracking_number"),
        "tracking_company": p.get("tracking_company"),
        "notify_customer": p.get("notify_customer") is not False,
    }
    if p.get("line_items"):
        fulfillment["line_items"] = _json_value(p["line_items"], "line_items")
    return {"fulfillment": fulfillment}


def _product_body(p: Dict[str, Any]) -> Dict[str, Any]:
    product = {"title": p.get("title"), **_truthy(p, "body_html", "vendor", "product_type", "tags")}
    if p.get("variants"):
        product["variants"] = _json_value(p["variants"], "variants")
    return {"product": product}


def _customer_body(p: Dict[str, Any], update: bool = False) -> Dict[str, Any]:
    if update:
        customer = _truthy(p, "first_name", "last_name", "email", "phone", "tags", "note")
    else:
        customer = {
            "first_name": p.get("first_name"),
            "last_name": p.get("last_name"),
            "email": p.get("email"),
            **_truthy(p, "phone", "tags"),
        }
    if p.get("accepts_marketing") is not None:
        customer["accepts_marketing"] = p["accepts_marketing"]
    return {"customer": customer}


def _draft_order_body(p: Dict[str, Any]) -> Dict[str, Any]:
    draft: Dict[str, Any] = {"line_items": _json_value(p.get("line_items"), "line_items") or []}
    if p.get("customer_id"):
        draft["customer"] = {"id": p["customer_id"]}
    draft.update(_truthy(p, "email", "note"))
    for name in ("shipping_address", "billing_address", "applied_discount"):
        if p.get(name):
            draft[name] = _json_value(p[name], name)
    return {"draft_order": draft}


def _price_rule_body(p: Dict[str, Any]) -> Dict[str, Any]:
    rule = {
        "title": p.get("title"),
        "target_type": p.get("target_type") or "line_item",
        "target_selection": p.get("target_selection") or "all",
        "allocation_method": p.get("allocation_method") or "across",
        "value_type": p.get("value_type") or "percentage",
        "value": p.get("value"),
        "customer_selection": p.get("customer_selection") or "all",
        "starts_at": p.get("starts_at") or datetime.now(timezone.utc).isoformat(),
        **_truthy(p, "ends_at", "usage_limit"),
    }
    return {"price_rule": rule}


def _raw_body(p: Dict[str, Any]) -> Any:
    value = p.get("request_body")
    if not value:
        return None
    return value if isinstance(value, str) else json.dumps(value)


ACTIONS = {
    # Inventory
    "adjust_inventory": ActionSpec("POST", "/inventory_levels/adjust.json", body=lambda p: {
        "location_id": p.get("location_id"),
        "inventory_item_id": p.get("inventory_item_id"),
        "available_adjustment": int(p.get("available_adjustment") or 0),
    }),
    "get_locations": ActionSpec("GET", "/locations.json"),

    # Orders
    "cancel_order": ActionSpec("POST", "/orders/{order_id}/cancel.json", body=lambda p: {}),
    "close_order": ActionSpec("POST", "/orders/{order_id}/close.json", body=lambda p: {}),
    "create_order": ActionSpec("POST", "/orders.json", body=_order_body),
    "get_order": ActionSpec("GET", "/orders/{order_id}.json"),
    "get_orders": ActionSpec("GET", "/orders.json",
                             query=_query("status", "limit", "created_at_min", "created_at_max")),
    "update_order": ActionSpec("PUT", "/orders/{order_id}.json",
                               body=lambda p: {"order": _truthy(p, "note", "tags")}),
    "get_order_transactions": ActionSpec("GET", "/orders/{order_id}/transactions.json"),

    # Transactions
    "create_transaction": ActionSpec("POST", "/orders/{order_id}/transactions.json", body=lambda p: {
        "transaction": {
            "kind": p.get("kind") or "capture",
            "amount": p.get("amount"),
            **_truthy(p, "currency", "parent_id"),
        },
    }),
    "get_transaction": ActionSpec("GET", "/orders/{order_id}/transactions/{transaction_id}.json"),

    # Fulfillments
    "create_fulfillment": ActionSpec("POST", "/orders/{order_id}/fulfillments.json", body=_fulfillment_body),
    "get_fulfillment": ActionSpec("GET", "/orders/{order_id}/fulfillments/{fulfillment_id}.json"),
    "get_fulfillments": ActionSpec("GET", "/orders/{order_id}/fulfillments.json"),
    "update_fulfillment": ActionSpec("PUT", "/orders/{order_id}/fulfillments/{fulfillment_id}.json",
                                     body=lambda p: {"fulfillment": _truthy(
                                         p, "tracking_number", "tracking_company", "tracking_url")}),
    "create_fulfillment_event": ActionSpec(
        "POST", "/orders/{order_id}/fulfillments/{fulfillment_id}/events.json",
        body=lambda p: {"event": {"status": p.get("status"), "message": p.get("message")}}),

    # Products
    "create_product": ActionSpec("POST", "/products.json", body=_product_body),
    "get_product": ActionSpec("GET", "/products/{product_id}.json"),
    "get_products": ActionSpec("GET", "/products.json",
                               query=_query("limit", "status", "collection_id", "product_type")),
    "update_product": ActionSpec("PUT", "/products/{product_id}.json", body=lambda p: {
        "product": _truthy(p, "title", "body_html", "vendor", "tags"),
    }),
    "upload_product_image": ActionSpec("POST", "/products/{product_id}/images.json", body=lambda p: {
        "image": {"src": p.get("image_src"), **({"alt": p["alt_text"]} if p.get("alt_text") else {})},
    }),

    # Customers
    "create_customer": ActionSpec("POST", "/customers.json", body=_customer_body),
    "get_customer": ActionSpec("GET", "/customers/{customer_id}.json"),
    "get_customers": ActionSpec("GET", "/customers.json", query=_query("limit", "email")),
    "get_customer_orders": ActionSpec("GET", "/customers/{customer_id}/orders.json",
                                      query=_query("status", "limit")),
    "update_customer": ActionSpec("PUT", "/customers/{customer_id}.json",
                                  body=lambda p: _customer_body(p, update=True)),

    # Collections
    "create_collect": ActionSpec("POST", "/collects.json", body=lambda p: {
        "collect": {
            "product_id": p.get("product_id"),
            "collection_id": p.get("collection_id"),
            "position": p.get("position"),
        },
    }),
    "get_collections": ActionSpec("GET", "/custom_collections.json", query=_query("limit", "title")),
    "get_smart_collections": ActionSpec("GET", "/smart_collections.json"),

    # Draft orders
    "create_draft_order": ActionSpec("POST", "/draft_orders.json", body=_draft_order_body),
    "get_draft_order": ActionSpec("GET", "/draft_orders/{draft_order_id}.json"),
    "get_draft_orders": ActionSpec("GET", "/draft_orders.json", query=_query("status", "limit")),
    "complete_draft_order": ActionSpec("PUT", "/draft_orders/{draft_order_id}/complete.json",
                                       body=lambda p: {"payment_pending": p.get("payment_pending") or False}),
    "delete_draft_order": ActionSpec("DELETE", "/draft_orders/{draft_order_id}.json"),

    # Themes
    "get_themes": ActionSpec("GET", "/themes.json"),
    "get_asset": ActionSpec("GET", "/themes/{theme_id}/assets.json",
                            query=lambda p: {"asset[key]": p.get("asset_key")}),
    "get_assets": ActionSpec("GET", "/themes/{theme_id}/assets.json"),
    "update_asset": ActionSpec("PUT", "/themes/{theme_id}/assets.json", body=lambda p: {
        "asset": {"key": p.get("asset_key"), "value": p.get("value")},
    }),

    # Discounts
    "create_discount": ActionSpec("POST", "/price_rules.json", body=_price_rule_body),
    "get_discounts": ActionSpec("GET", "/price_rules.json"),

    "custom_api_call": ActionSpec(
        method=lambda p: str(p.get("method") or "GET").upper(),
        path=lambda p: p.get("endpoint") or "",
        body=_raw_body,
    ),
}


class ShopifyProxy(RestProxy):
    name = "shopify-proxy"
    credential_fields = ("shopName", "adminToken")
    missing_credentials = "Shop name and admin token are required"
    actions = ACTIONS

    def params(self, body: Dict[str, Any]) -> Dict[str, Any]:
        inputs = body.get("inputs")
        return dict(inputs) if isinstance(inputs, dict) else {}

    def resolve_base_url(self, body: Dict[str, Any]) -> str:
        shop = str(body["shopName"])
        if ".myshopify.com" not in shop:
            shop = f"{shop}.myshopify.com"
        return f"https://{shop}/admin/api/{API_VERSION}"

    def headers(self, body: Dict[str, Any]) -> Dict[str, str]:
        return {"X-Shopify-Access-Token": body["adminToken"], "Content-Type": "application/json"}

    def unknown_action(self, action: Any) -> ProxyRequestError:
        return ProxyRequestError(f"Unsupported Shopify action: {action}", status_code=500)

    def failure(self, status_code: int, error: str, details: Any = None) -> ProxyResponse:
        return ProxyResponse(500, {"data": None, "success": False, "status_code": 500, "error": error})

    def error_message(self, data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        errors = data.get("errors")
        if isinstance(errors, (dict, list)):
            return json.dumps(errors)
        return errors or data.get("message")

    def api_failure(self, data: Any, response: HttpResponse) -> ProxyResponse:
        raise ProxyRequestError(self.error_message(data) or "Shopify API request failed", status_code=500)

    def non_json_response(self, response: HttpResponse) -> ProxyResponse:
        data = {"message": "Invalid JSON response"}
        if not response.ok:
            return self.api_failure(data, response)
        return ProxyResponse(200, {"data": data, "success": True, "status_code": response.status_code})

    def success(self, action: str, params: Dict[str, Any], data: Any, response: HttpResponse) -> ProxyResponse:
        return ProxyResponse(200, {"data": data, "success": True, "status_code": response.status_code})
