"""
Ledger Integration Layer.

Provides abstracted access to MultiversX account state, transaction broadcast
and status, plus token metadata lookups.
"""

from relayer.node.interface import LedgerInterface, NodeConnectionError, TransactionSubmitError
from relayer.node.gateway import GatewayAdapter
from relayer.node.tokens import ApiTokenMetadata, TokenMetadataInterface

__all__ = [
    "LedgerInterface",
    "NodeConnectionError",
    "TransactionSubmitError",
    "GatewayAdapter",
    "ApiTokenMetadata",
    "TokenMetadataInterface",
]
