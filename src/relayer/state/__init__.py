"""
State Management Layer.

Whitelist lookups, user activity logging and their persistence.
"""

from relayer.state.database import Database, init_database
from relayer.state.webhook import WebhookNotifier
from relayer.state.whitelist import StaticWhitelist, WhitelistInterface

__all__ = [
    "Database",
    "init_database",
    "WebhookNotifier",
    "StaticWhitelist",
    "WhitelistInterface",
]
