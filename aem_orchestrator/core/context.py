"""Application context for explicit dependency management.

``ApplicationContext`` is the composition root: it builds the AWS clients,
the gateway and the AEM collaborators once, and hands them to workflows
through their constructors.

Usage:
    config = load_config(config_file=Path("orchestrator.yaml"))
    app_context = ApplicationContext.create(config)
    succeeded = app_context.dispatcher_workflow().execute("i-0123456789abcdef0")
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from .log import Logger
from .protocols import FlushAgentRegistrar, TopologyResolver
from .time import Clock
from .types import OrchestratorConfig

if TYPE_CHECKING:
    from ..actions.dispatcher_provisioning import DispatcherProvisioningWorkflow
    from ..aws.gateway import CloudResourceGateway


@dataclass(frozen=True)
class ApplicationContext:
    """Immutable container of every orchestrator dependency.

    Attributes:
        config: Orchestrator configuration
        logger: Logging instance
        clock: Time source for polling
        gateway: AWS resource gateway
        topology_resolver: Resolver of AEM base URLs
        flush_agent_registrar: Flush agent creation capability
    """

    config: OrchestratorConfig
    logger: Logger
    clock: Clock
    gateway: "CloudResourceGateway"
    topology_resolver: TopologyResolver
    flush_agent_registrar: FlushAgentRegistrar

    @classmethod
    def create(
        cls,
        config: OrchestratorConfig,
        *,
        logger: Optional[Logger] = None,
        clock: Optional[Clock] = None,
        session: Any = None,
        ec2_client: Any = None,
        elb_client: Any = None,
        autoscaling_client: Any = None,
        registrar: Optional[FlushAgentRegistrar] = None,
        topology_resolver: Optional[TopologyResolver] = None,
    ) -> "ApplicationContext":
        """Create application context with default implementations.

        AWS clients are only built from ``session`` (or a fresh boto3
        session) when not all three are supplied.
        """
        # Import here to avoid circular dependencies at module level
        from .log import configure_logging, get_logger
        from .time import SystemClock
        from ..aws.clients import create_clients
        from ..aws.gateway import CloudResourceGateway
        from ..aem.flush_agent import FlushAgentManager
        from ..aem.topology import AemInstanceHelper

        if logger is None:
            configure_logging(
                level=config.log_level,
                log_file=config.log_file,
                enable_console=True,
                enable_json=config.log_file is not None,
            )
            logger = get_logger("aem_orchestrator")

        if clock is None:
            clock = SystemClock()

        if ec2_client is None or elb_client is None or autoscaling_client is None:
            clients = create_clients(config.aws, session=session)
            ec2_client = ec2_client or clients.ec2
            elb_client = elb_client or clients.elb
            autoscaling_client = autoscaling_client or clients.autoscaling

        gateway = CloudResourceGateway(
            ec2_client,
            elb_client,
            autoscaling_client,
            logger=logger,
            retry_config=config.retry,
            clock=clock,
        )

        if topology_resolver is None:
            topology_resolver = AemInstanceHelper(gateway, config.aem, logger)

        if registrar is None:
            registrar = FlushAgentManager(config.aem, logger)

        return cls(
            config=config,
            logger=logger,
            clock=clock,
            gateway=gateway,
            topology_resolver=topology_resolver,
            flush_agent_registrar=registrar,
        )

    def dispatcher_workflow(self) -> "DispatcherProvisioningWorkflow":
        """Build the author dispatcher provisioning workflow."""
        from ..actions.dispatcher_provisioning import DispatcherProvisioningWorkflow

        return DispatcherProvisioningWorkflow(
            topology_resolver=self.topology_resolver,
            flush_agent_registrar=self.flush_agent_registrar,
            gateway=self.gateway,
            logger=self.logger,
            author_host_tag_key=self.config.aem.author_host_tag_key,
        )
