"""ConvertKit proxy - https://api.convertkit.com/v3."""

from typing import Any, Dict

from .base import ActionSpec, RestProxy, compact, parse_json_field


# Keys of list responses, in lookup order
ITEM_KEYS = (
    "subscribers", "tags", "forms", "sequences", "broadcasts",
    "custom_fields", "purchases", "subscriptions",
)


def _secret(p: Dict[str, Any]) -> str:
    return p["_apiSecret"]


def _key(p: Dict[str, Any]) -> str:
    return p["_apiKey"]


def _secret_query(**extra):
    def build(p: Dict[str, Any]) -> Dict[str, Any]:
        query = {"api_secret": _secret(p)}
        for name, param in extra.items():
            if p.get(param):
                query[name] = str(p[param])
        return query
    return build


def _key_query(p: Dict[str, Any]) -> Dict[str, Any]:
    return {"api_key": _key(p)}


def _secret_body(**fields):
    def build(p: Dict[str, Any]) -> Dict[str, Any]:
        return {"api_secret": _secret(p), **{name: p.get(param) for name, param in fields.items()}}
    return build


def _subscribe_body(p: Dict[str, Any]) -> Dict[str, Any]:
    return compact({
        "api_key": _key(p),
        "email": p.get("email"),
        "first_name": p.get("firstName") or None,
        "fields": parse_json_field(p.get("fields"), "fields"),
    })


def _purchase_body(p: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "api_secret": _secret(p),
        "purchase": {
            "email_address": p.get("email"),
            "transaction_id": p.get("transactionId"),
            "products": [{
                "pid": p.get("productId"),
                "name": p.get("productName"),
                "lid": p.get("productId"),
            }],
            "currency": p.get("currency") or "USD",
            "subtotal": p.get("subtotal"),
            "total": p.get("total"),
        },
    }


ACTIONS = {
    # Subscribers
    "getSubscriberById": ActionSpec("GET", "/subscribers/{subscriberId}", query=_secret_query()),
    "getSubscriberByEmail": ActionSpec("GET", "/subscribers", query=_secret_query(email_address="email")),
    "listSubscriberTagsByEmail": ActionSpec("GET", "/subscribers", query=_secret_query(email_address="email")),
    "listSubscribers": ActionSpec("GET", "/subscribers", query=_secret_query(
        page="page", sort_order="sortOrder", sort_field="sortField")),
    "updateSubscriber": ActionSpec("PUT", "/subscribers/{subscriberId}", body=lambda p: compact({
        "api_secret": _secret(p),
        "first_name": p.get("firstName") or None,
        "email_address": p.get("email") or None,
        "fields": parse_json_field(p.get("fields"), "fields"),
    })),
    "unsubscribeSubscriber": ActionSpec("PUT", "/unsubscribe", body=_secret_body(email="email")),
    "listTagsBySubscriberId": ActionSpec("GET", "/subscribers/{subscriberId}/tags", query=_key_query),

    # Webhooks
    "createWebhook": ActionSpec("POST", "/automations/hooks", body=lambda p: {
        "api_secret": _secret(p),
        "target_url": p.get("targetUrl"),
        "event": {"name": p.get("event")},
    }),
    "deleteWebhook": ActionSpec("DELETE", "/automations/hooks/{webhookId}", body=_secret_body()),

    # Custom fields
    "listFields": ActionSpec("GET", "/custom_fields", query=_key_query),
    "createField": ActionSpec("POST", "/custom_fields", body=_secret_body(label="label")),
    "updateField": ActionSpec("PUT", "/custom_fields/{fieldId}", body=_secret_body(label="label")),
    "deleteField": ActionSpec("DELETE", "/custom_fields/{fieldId}", body=_secret_body()),

    # Broadcasts
    "listBroadcasts": ActionSpec("GET", "/broadcasts", query=_secret_query()),
    "createBroadcast": ActionSpec("POST", "/broadcasts", body=lambda p: compact({
        "api_secret": _secret(p),
        "subject": p.get("subject"),
        "content": p.get("content"),
        "description": p.get("description") or None,
        "public": str(p.get("public")).lower() == "true",
    })),
    "getBroadcastById": ActionSpec("GET", "/broadcasts/{broadcastId}", query=_secret_query()),
    "updateBroadcast": ActionSpec("PUT", "/broadcasts/{broadcastId}", body=lambda p: compact({
        "api_secret": _secret(p),
        "subject": p.get("subject") or None,
        "content": p.get("content") or None,
        "description": p.get("description") or None,
    })),
    "deleteBroadcast": ActionSpec("DELETE", "/broadcasts/{broadcastId}", body=_secret_body()),
    "broadcastStats": ActionSpec("GET", "/broadcasts/{broadcastId}/stats", query=_secret_query()),

    # Forms
    "listForms": ActionSpec("GET", "/forms", query=_key_query),
    "addSubscriberToForm": ActionSpec("POST", "/forms/{formId}/subscribe", body=_subscribe_body),
    "listFormSubscriptions": ActionSpec("GET", "/forms/{formId}/subscriptions", query=_secret_query(page="page")),

    # Sequences
    "listSequences": ActionSpec("GET", "/sequences", query=_key_query),
    "addSubscriberToSequence": ActionSpec("POST", "/sequences/{sequenceId}/subscribe", body=_subscribe_body),
    "listSubscriptionsToSequence": ActionSpec(
        "GET", "/sequences/{sequenceId}/subscriptions", query=_secret_query(page="page")),

    # Tags
    "listTags": ActionSpec("GET", "/tags", query=_key_query),
    "createTag": ActionSpec("POST", "/tags", body=lambda p: {
        "api_secret": _secret(p),
        "tag": {"name": p.get("tagName")},
    }),
    "tagSubscriber": ActionSpec("POST", "/tags/{tagId}/subscribe", body=lambda p: compact({
        "api_key": _key(p),
        "email": p.get("email"),
        "first_name": p.get("firstName") or None,
    })),
    "removeTagFromSubscriberByEmail": ActionSpec("POST", "/tags/{tagId}/unsubscribe", body=_secret_body(email="email")),
    "removeTagFromSubscriberById": ActionSpec(
        "DELETE", "/subscribers/{subscriberId}/tags/{tagId}", query=_secret_query()),
    "listSubscriptionsToATag": ActionSpec("GET", "/tags/{tagId}/subscriptions", query=_secret_query(page="page")),

    # Purchases
    "listPurchases": ActionSpec("GET", "/purchases", query=_secret_query()),
    "getPurchaseById": ActionSpec("GET", "/purchases/{purchaseId}", query=_secret_query()),
    "createSinglePurchase": ActionSpec("POST", "/purchases", body=_purchase_body),
    "createPurchases": ActionSpec("POST", "/bulk/purchases", body=lambda p: {
        "api_secret": _secret(p),
        "purchases": parse_json_field(p.get("purchases"), "purchases", default=[]),
    }),
}


class ConvertKitProxy(RestProxy):
    """
    Credentials travel in the query string or the JSON body.

    Read actions on public resources use ``api_key``; everything touching
    subscribers uses ``api_secret``, which falls back to the API key.
    """

    name = "convertkit-proxy"
    base_url = "https://api.convertkit.com/v3"
    credential_fields = ("apiKey",)
    missing_credentials = "API key is required"
    actions = ACTIONS

    def params(self, body: Dict[str, Any]) -> Dict[str, Any]:
        params = {k: v for k, v in body.items() if k not in ("action", "apiKey", "apiSecret")}
        params["_apiKey"] = body["apiKey"]
        params["_apiSecret"] = body.get("apiSecret") or body["apiKey"]
        return params

    def shape(self, action: str, params: Dict[str, Any], data: Any) -> Dict[str, Any]:
        items = None
        subscriber_id = None
        if isinstance(data, dict):
            items = next((data[key] for key in ITEM_KEYS if data.get(key)), None)

            subscription = data.get("subscription") or {}
            subscriber = data.get("subscriber") or {}
            nested_id = (subscription.get("subscriber") or {}).get("id") if isinstance(subscription, dict) else None
            if nested_id:
                subscriber_id = str(nested_id)
            elif isinstance(subscriber, dict) and subscriber.get("id"):
                subscriber_id = str(subscriber["id"])

        return {"success": True, "data": data, "subscriberId": subscriber_id, "items": items}
