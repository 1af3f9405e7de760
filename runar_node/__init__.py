"""Node networking core: discovery, peer registry, connection and stream pools, wire format and configuration."""

__version__ = "0.1.0"