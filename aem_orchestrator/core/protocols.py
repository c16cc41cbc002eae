"""Protocol definitions for orchestrator collaborators.

Protocols define what a collaborator does, not how. The provisioning
workflow depends only on these, so tests can substitute stubs and
deployments can swap implementations without touching the workflow.
"""

from typing import Dict, Optional, Protocol

from .enums import AgentRunMode


class TopologyResolver(Protocol):
    """Maps instances to the base URLs they and their peers are addressed at."""

    def get_aem_url_for_author_dispatcher(self, instance_id: str) -> Optional[str]:
        """Base URL of an author dispatcher, or None if its address is unresolved."""

    def get_aem_url_for_author_elb(self, author_host: Optional[str] = None) -> str:
        """Base URL of the load balancer fronting the author instances.

        ``author_host`` is a host already returned by ``get_author_host``.
        """

    def get_author_host(self) -> str:
        """Upstream host identity dispatchers are tagged with."""


class FlushAgentRegistrar(Protocol):
    """Creates flush agents through the AEM administrative API.

    Raises RemoteServiceError when the remote side rejects the request.
    """

    def create_flush_agent(
        self,
        instance_id: str,
        source_base_url: str,
        target_base_url: str,
        run_mode: AgentRunMode,
    ) -> None:
        """Create or overwrite the flush agent for an instance."""


class InstanceTagger(Protocol):
    """Writes tags onto an instance."""

    def add_tags(self, instance_id: str, tags: Dict[str, str]) -> None:
        """Add tags, keeping existing ones."""

