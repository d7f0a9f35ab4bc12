"""Multi-chain circulating and total supply service for the TREVEE token."""

from .constants import SERVICE_VERSION as __version__

__all__ = ["__version__"]
