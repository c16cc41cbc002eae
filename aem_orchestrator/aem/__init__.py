"""AEM collaborators: base URL resolution and flush agent registration."""

from .flush_agent import FlushAgentManager
from .topology import AemInstanceHelper

__all__ = ["FlushAgentManager", "AemInstanceHelper"]
