from __future__ import annotations

from .chain_query import ChainQueryClient, ReaderFactory
from .retry import with_retry
from .token_reader import TokenReader

__all__ = [
    "ChainQueryClient",
    "ReaderFactory",
    "TokenReader",
    "with_retry",
]
