"""Provisioning of a newly launched author dispatcher."""

from typing import Optional

from ..core.enums import AgentRunMode, ProvisioningOutcome
from ..core.errors import RemoteServiceError
from ..core.log import Logger, log_context, log_instance_event
from ..core.protocols import FlushAgentRegistrar, InstanceTagger, TopologyResolver
from ..core.types import ProvisioningResult


class DispatcherProvisioningWorkflow:
    """Registers an author dispatcher for cache flushes and tags it.

    Steps run strictly in order and any failure ends the run:

    1. Resolve the dispatcher's own base URL and the author ELB base URL.
    2. Create an author flush agent that flushes the dispatcher.
    3. Tag the dispatcher with the author host it sits in front of.

    Nothing is rolled back. A tagging failure leaves the flush agent from
    step 2 in place; re-running the workflow overwrites that agent.
    """

    def __init__(
        self,
        topology_resolver: TopologyResolver,
        flush_agent_registrar: FlushAgentRegistrar,
        gateway: InstanceTagger,
        logger: Logger,
        author_host_tag_key: str = "AuthorHost",
    ) -> None:
        self._topology = topology_resolver
        self._registrar = flush_agent_registrar
        self._gateway = gateway
        self._logger = logger
        self._tag_key = author_host_tag_key

    def execute(self, instance_id: str) -> bool:
        """Provision the dispatcher, returning True only if every step succeeded."""
        return self.run(instance_id).succeeded

    def run(self, instance_id: str) -> ProvisioningResult:
        """Provision the dispatcher and report which step, if any, failed."""
        with log_context(instance_id=instance_id, action="scale_up_author_dispatcher"):
            self._logger.info("Provisioning author dispatcher %s", instance_id)
            result = self._run(instance_id)
            log_instance_event(
                self._logger,
                "provisioned" if result.succeeded else "provisioning_failed",
                instance_id,
                outcome=result.outcome.value,
            )
            return result

    def _run(self, instance_id: str) -> ProvisioningResult:
        # ResolveTopology
        try:
            dispatcher_url: Optional[str] = (
                self._topology.get_aem_url_for_author_dispatcher(instance_id)
            )
            if dispatcher_url is None:
                self._logger.error(
                    "Private IP of dispatcher %s never resolved", instance_id
                )
                return self._failure(
                    instance_id,
                    ProvisioningOutcome.UNRESOLVED_ADDRESS,
                    "private IP address unresolved",
                )
            author_host = self._topology.get_author_host()
            elb_url = self._topology.get_aem_url_for_author_elb(author_host)
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._logger.error(
                "Failed to resolve AEM URLs for dispatcher %s", instance_id, exc_info=True
            )
            return self._failure(instance_id, ProvisioningOutcome.TOPOLOGY_FAILURE, str(e))

        # RegisterFlushAgent
        try:
            self._logger.debug(
                "Attempting to create flush agent at base AEM path: %s", elb_url
            )
            self._registrar.create_flush_agent(
                instance_id, elb_url, dispatcher_url, AgentRunMode.AUTHOR
            )
        except RemoteServiceError as e:
            self._logger.error(
                "Failed to create flush agent for dispatcher id: %s, and run mode: %s",
                instance_id,
                AgentRunMode.AUTHOR.value,
                exc_info=True,
            )
            return self._failure(
                instance_id, ProvisioningOutcome.REGISTRATION_FAILURE, str(e)
            )
        except Exception as e:  # pylint: disable=broad-exception-caught
            # The request may already have reached AEM, so the agent can exist
            self._logger.error(
                "Flush agent registration for dispatcher %s failed after it may have been sent",
                instance_id,
                exc_info=True,
            )
            return self._failure(instance_id, ProvisioningOutcome.TAGGING_FAILURE, str(e))

        # TagInstance
        try:
            self._gateway.add_tags(instance_id, {self._tag_key: author_host})
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._logger.error(
                "Failed to add tags to author dispatcher %s; its flush agent remains registered",
                instance_id,
                exc_info=True,
            )
            return self._failure(instance_id, ProvisioningOutcome.TAGGING_FAILURE, str(e))

        return ProvisioningResult(instance_id=instance_id, outcome=ProvisioningOutcome.SUCCESS)

    @staticmethod
    def _failure(
        instance_id: str, outcome: ProvisioningOutcome, message: str
    ) -> ProvisioningResult:
        return ProvisioningResult(
            instance_id=instance_id, outcome=outcome, error_message=message
        )
