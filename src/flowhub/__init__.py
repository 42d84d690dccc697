"""flowhub - webhook-triggered node flows and the proxy functions behind them."""

__version__ = "0.1.0"
