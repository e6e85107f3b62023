"""Greek tax and business news aggregator."""

__version__ = "0.1.0"
