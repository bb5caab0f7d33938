"""Request handling for an EBS Container Storage Interface driver."""

__version__ = "0.1.0"

__all__ = ["controller", "identity", "inflight", "options", "topology", "types"]