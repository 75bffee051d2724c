"""Client for a Sui trade-route optimization backend."""

__version__ = "0.1.0"
