"""Storage components that borrow sessions from an injected session factory."""

from __future__ import annotations

from ad_targeting.storage.graph_writer import GraphWriter
from ad_targeting.storage.read_executor import ReadExecutor

__all__ = ["GraphWriter", "ReadExecutor"]
