"""ConvertKit - subscribers, tags, forms, sequences, broadcasts and purchases."""

from node_sdk import InputField, OutputField, select, text

from .base import STANDARD_OUTPUTS, ProxyNode, action_select


WEBHOOK_EVENTS = [
    "subscriber.subscriber_activate",
    "subscriber.subscriber_unsubscribe",
    "subscriber.subscriber_bounce",
    "subscriber.subscriber_complain",
    "subscriber.form_subscribe",
    "subscriber.tag_add",
    "subscriber.tag_remove",
    "purchase.purchase_create",
]


def _page():
    return InputField(name="page", label="Page", type="number")


def _fields():
    return InputField(name="fields", label="Custom Fields (JSON)", type="code", language="json")


def _subscribe_fields(id_name, id_label):
    return [
        text(id_name, id_label, required=True),
        text("email", "Email", required=True),
        text("firstName", "First Name"),
        _fields(),
    ]


class ConvertKitNode(ProxyNode):
    type = "convertkit"
    name = "ConvertKit"
    description = "Email marketing for creators"
    proxy_name = "convertkit-proxy"

    required_credentials = ["apiKey"]
    credentials_error = "API key is required"

    ACTIONS = [
        "getSubscriberById", "getSubscriberByEmail", "listSubscribers", "updateSubscriber",
        "unsubscribeSubscriber", "listSubscriberTagsByEmail", "listTagsBySubscriberId",
        "createWebhook", "deleteWebhook",
        "listFields", "createField", "updateField", "deleteField",
        "listBroadcasts", "createBroadcast", "getBroadcastById", "updateBroadcast",
        "deleteBroadcast", "broadcastStats",
        "listForms", "addSubscriberToForm", "listFormSubscriptions",
        "listSequences", "addSubscriberToSequence", "listSubscriptionsToSequence",
        "listTags", "createTag", "tagSubscriber", "removeTagFromSubscriberByEmail",
        "removeTagFromSubscriberById", "listSubscriptionsToATag",
        "listPurchases", "getPurchaseById", "createSinglePurchase", "createPurchases",
    ]

    inputs = [
        text("apiKey", "API Key", required=True, isApiKey=True),
        text("apiSecret", "API Secret", isApiKey=True,
             description="Required for subscriber, broadcast and purchase actions"),
        action_select(ACTIONS, default="listSubscribers"),
    ]
    outputs = [
        *STANDARD_OUTPUTS,
        OutputField(name="subscriberId", type="string", description="Subscriber ID"),
        OutputField(name="items", type="array", description="List of items (subscribers, tags, etc.)"),
    ]

    ACTION_FIELDS = {
        "getSubscriberById": [text("subscriberId", "Subscriber ID", required=True)],
        "listTagsBySubscriberId": [text("subscriberId", "Subscriber ID", required=True)],
        "getSubscriberByEmail": [text("email", "Email", required=True)],
        "listSubscriberTagsByEmail": [text("email", "Email", required=True)],
        "listSubscribers": [
            _page(),
            select("sortOrder", "Sort Order", ["asc", "desc"]),
            select("sortField", "Sort Field", ["created_at", "cancelled_at"]),
        ],
        "updateSubscriber": [
            text("subscriberId", "Subscriber ID", required=True),
            text("firstName", "First Name"),
            text("email", "New Email"),
            _fields(),
        ],
        "unsubscribeSubscriber": [text("email", "Email", required=True)],
        "createWebhook": [
            text("targetUrl", "Target URL", required=True),
            select("event", "Event", WEBHOOK_EVENTS, required=True),
        ],
        "deleteWebhook": [text("webhookId", "Webhook ID", required=True)],
        "createField": [text("label", "Field Label", required=True)],
        "updateField": [text("fieldId", "Field ID", required=True), text("label", "New Label", required=True)],
        "deleteField": [text("fieldId", "Field ID", required=True)],
        "createBroadcast": [
            text("subject", "Subject", required=True),
            InputField(name="content", label="Content (HTML)", type="textarea", required=True),
            text("description", "Description"),
            select("public", "Public", ["true", "false"]),
        ],
        "getBroadcastById": [text("broadcastId", "Broadcast ID", required=True)],
        "deleteBroadcast": [text("broadcastId", "Broadcast ID", required=True)],
        "broadcastStats": [text("broadcastId", "Broadcast ID", required=True)],
        "updateBroadcast": [
            text("broadcastId", "Broadcast ID", required=True),
            text("subject", "Subject"),
            InputField(name="content", label="Content (HTML)", type="textarea"),
            text("description", "Description"),
        ],
        "addSubscriberToForm": _subscribe_fields("formId", "Form ID"),
        "listFormSubscriptions": [text("formId", "Form ID", required=True), _page()],
        "addSubscriberToSequence": _subscribe_fields("sequenceId", "Sequence ID"),
        "listSubscriptionsToSequence": [text("sequenceId", "Sequence ID", required=True), _page()],
        "createTag": [text("tagName", "Tag Name", required=True)],
        "tagSubscriber": [
            text("tagId", "Tag ID", required=True),
            text("email", "Email", required=True),
            text("firstName", "First Name"),
        ],
        "removeTagFromSubscriberByEmail": [
            text("tagId", "Tag ID", required=True),
            text("email", "Email", required=True),
        ],
        "removeTagFromSubscriberById": [
            text("tagId", "Tag ID", required=True),
            text("subscriberId", "Subscriber ID", required=True),
        ],
        "listSubscriptionsToATag": [text("tagId", "Tag ID", required=True), _page()],
        "getPurchaseById": [text("purchaseId", "Purchase ID", required=True)],
        "createSinglePurchase": [
            text("email", "Email", required=True),
            text("transactionId", "Transaction ID", required=True),
            text("productId", "Product ID", required=True),
            text("productName", "Product Name", required=True),
            text("currency", "Currency", default="USD"),
            InputField(name="subtotal", label="Subtotal (cents)", type="number", required=True),
            InputField(name="total", label="Total (cents)", type="number", required=True),
        ],
        "createPurchases": [
            InputField(name="purchases", label="Purchases (JSON Array)", type="code", language="json",
                       required=True, description="Array of purchase objects"),
        ],
    }
