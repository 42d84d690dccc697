"""
Integrations Node Pack Manifest - Registration function for entry-points.
"""

from node_registry.models import NodePackManifest

from .aws import AmazonSesNode, AmazonSqsNode
from .clickup import ClickUpNode
from .clockodo import ClockodoNode
from .convertkit import ConvertKitNode
from .copper import CopperNode
from .shopify import ShopifyNode
from .trello import TrelloNode


NODE_CLASSES = {
    node_class.type: node_class
    for node_class in (
        ClockodoNode,
        ConvertKitNode,
        ClickUpNode,
        CopperNode,
        ShopifyNode,
        TrelloNode,
        AmazonSesNode,
        AmazonSqsNode,
    )
}


MANIFEST = NodePackManifest(
    name="integrations",
    version="1.0.0",
    description="Vendor nodes backed by proxy functions",
    author="flowhub",
    nodes=list(NODE_CLASSES),
)


def register_nodes():
    """Entry point function for node pack discovery."""
    return MANIFEST, NODE_CLASSES


__all__ = ["MANIFEST", "NODE_CLASSES", "register_nodes"]
