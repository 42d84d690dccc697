"""
Integrations Node Pack - Vendor nodes.

Every node here checks its credentials, shapes a body and forwards it to
``<vendor>-proxy``. The proxy performs the actual vendor call.
"""

from .base import ProxyNode, STANDARD_OUTPUTS, action_select
from .aws import AmazonSesNode, AmazonSqsNode
from .clickup import ClickUpNode
from .clockodo import ClockodoNode
from .convertkit import ConvertKitNode
from .copper import CopperNode
from .shopify import ShopifyNode
from .trello import TrelloNode
from .manifest import MANIFEST, NODE_CLASSES, register_nodes

__all__ = [
    "ProxyNode",
    "STANDARD_OUTPUTS",
    "action_select",
    "AmazonSesNode",
    "AmazonSqsNode",
    "ClickUpNode",
    "ClockodoNode",
    "ConvertKitNode",
    "CopperNode",
    "ShopifyNode",
    "TrelloNode",
    "MANIFEST",
    "NODE_CLASSES",
    "register_nodes",
]
