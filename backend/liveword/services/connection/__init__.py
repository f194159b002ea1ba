"""
Connection Management Module

Exports ConnectionManager and ClientConnection.
"""
from .models import ClientConnection
from .manager import ConnectionManager

# Singleton instance
connection_manager = ConnectionManager()

__all__ = [
    "ClientConnection",
    "ConnectionManager",
    "connection_manager",
]
