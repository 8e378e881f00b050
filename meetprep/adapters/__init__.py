"""Adapters for external data sources.

This module provides adapters for integrating with external systems:
- WorkspaceGraph: Protocol for the mailbox/calendar/file-storage source
- GraphAdapter: Microsoft Graph implementation over httpx
- GraphAPIError: Transport error raised by Graph adapters
"""

from meetprep.adapters.base import GraphAPIError, WorkspaceGraph
from meetprep.adapters.graph_adapter import GraphAdapter

__all__ = [
    "GraphAPIError",
    "GraphAdapter",
    "WorkspaceGraph",
]
