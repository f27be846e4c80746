"""Core module - Shared configuration, engine states and transaction ids."""

from chatsync.core.config import ConfigurationError, ServerConfig
from chatsync.core.txn import TransactionIdGenerator
from chatsync.core.types import EngineState

__all__ = [
    # Config
    "ConfigurationError",
    "ServerConfig",
    # Transaction ids
    "TransactionIdGenerator",
    # Types
    "EngineState",
]
