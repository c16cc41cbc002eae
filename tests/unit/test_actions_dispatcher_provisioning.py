"""Unit tests for DispatcherProvisioningWorkflow."""

from unittest.mock import Mock

from aem_orchestrator.actions.dispatcher_provisioning import DispatcherProvisioningWorkflow
from aem_orchestrator.core.enums import AgentRunMode, ProvisioningOutcome
from aem_orchestrator.core.errors import ConfigurationError, RemoteServiceError

DISPATCHER_URL = "https://10.0.0.5:443"
ELB_URL = "https://author-elb-123.elb.amazonaws.com:443"
AUTHOR_HOST = "author-elb-123.elb.amazonaws.com"


class TestDispatcherProvisioningWorkflow:
    """Test the provisioning state machine."""

    def setup_method(self) -> None:
        """Set up test environment."""
        self.mock_logger = Mock()

        self.mock_topology = Mock()
        self.mock_topology.get_aem_url_for_author_dispatcher.return_value = DISPATCHER_URL
        self.mock_topology.get_aem_url_for_author_elb.return_value = ELB_URL
        self.mock_topology.get_author_host.return_value = AUTHOR_HOST

        self.mock_registrar = Mock()
        self.mock_gateway = Mock()

        self.workflow = DispatcherProvisioningWorkflow(
            topology_resolver=self.mock_topology,
            flush_agent_registrar=self.mock_registrar,
            gateway=self.mock_gateway,
            logger=self.mock_logger,
        )

    def test_execute_success(self) -> None:
        """Test every step succeeding yields True and the author host tag."""
        assert self.workflow.execute("i-1") is True

        self.mock_registrar.create_flush_agent.assert_called_once_with(
            "i-1", ELB_URL, DISPATCHER_URL, AgentRunMode.AUTHOR
        )
        self.mock_gateway.add_tags.assert_called_once_with(
            "i-1", {"AuthorHost": AUTHOR_HOST}
        )

    def test_run_success_result(self) -> None:
        """Test the tagged result of a successful run."""
        result = self.workflow.run("i-1")

        assert result.succeeded
        assert result.outcome == ProvisioningOutcome.SUCCESS
        assert result.instance_id == "i-1"
        assert result.error_message is None

    def test_registration_failure_skips_tagging(self) -> None:
        """Test a registrar rejection ends the run before tagging."""
        self.mock_registrar.create_flush_agent.side_effect = RemoteServiceError(
            "HTTP 500", service="aem", operation="create_flush_agent", error_code="500"
        )

        assert self.workflow.execute("i-1") is False
        assert self.mock_gateway.add_tags.call_count == 0

    def test_registration_failure_result(self) -> None:
        """Test registration failures are classified distinctly."""
        self.mock_registrar.create_flush_agent.side_effect = RemoteServiceError(
            "HTTP 403", service="aem", operation="create_flush_agent"
        )

        result = self.workflow.run("i-1")

        assert result.outcome == ProvisioningOutcome.REGISTRATION_FAILURE
        assert result.error_message == "HTTP 403"
        self.mock_logger.error.assert_called_once()
        args = self.mock_logger.error.call_args[0]
        assert "i-1" in args
        assert "author" in args

    def test_tagging_failure(self) -> None:
        """Test a tagging failure after registration is reported, not rolled back."""
        self.mock_gateway.add_tags.side_effect = RemoteServiceError(
            "ec2 create_tags failed: Throttling",
            service="ec2",
            operation="create_tags",
            error_code="Throttling",
        )

        result = self.workflow.run("i-1")

        assert result.outcome == ProvisioningOutcome.TAGGING_FAILURE
        assert not result.succeeded
        self.mock_registrar.create_flush_agent.assert_called_once()

    def test_tagging_failure_non_remote_error(self) -> None:
        """Test any tagging exception is a tagging failure."""
        self.mock_gateway.add_tags.side_effect = RuntimeError("boom")

        result = self.workflow.run("i-1")

        assert result.outcome == ProvisioningOutcome.TAGGING_FAILURE
        assert result.error_message == "boom"

    def test_unresolved_address(self) -> None:
        """Test an unresolved private IP stops before registration."""
        self.mock_topology.get_aem_url_for_author_dispatcher.return_value = None

        result = self.workflow.run("i-1")

        assert result.outcome == ProvisioningOutcome.UNRESOLVED_ADDRESS
        self.mock_registrar.create_flush_agent.assert_not_called()
        self.mock_gateway.add_tags.assert_not_called()

    def test_topology_failure(self) -> None:
        """Test resolver exceptions become an unclassified failure."""
        self.mock_topology.get_aem_url_for_author_elb.side_effect = ConfigurationError(
            "aem.author_elb_name is not configured"
        )

        result = self.workflow.run("i-1")

        assert result.outcome == ProvisioningOutcome.TOPOLOGY_FAILURE
        assert self.workflow.execute("i-1") is False
        self.mock_registrar.create_flush_agent.assert_not_called()

    def test_no_exception_escapes(self) -> None:
        """Test unexpected errors from any collaborator become False."""
        self.mock_registrar.create_flush_agent.side_effect = KeyError("unexpected")

        assert self.workflow.execute("i-1") is False

    def test_custom_tag_key(self) -> None:
        """Test the tag key is configurable."""
        workflow = DispatcherProvisioningWorkflow(
            topology_resolver=self.mock_topology,
            flush_agent_registrar=self.mock_registrar,
            gateway=self.mock_gateway,
            logger=self.mock_logger,
            author_host_tag_key="aem:author-host",
        )

        assert workflow.execute("i-1") is True
        self.mock_gateway.add_tags.assert_called_once_with(
            "i-1", {"aem:author-host": AUTHOR_HOST}
        )

    def test_repeated_execution(self) -> None:
        """Test the workflow can be re-run for the same instance."""
        assert self.workflow.execute("i-1") is True
        assert self.workflow.execute("i-1") is True

        assert self.mock_registrar.create_flush_agent.call_count == 2

    def test_unexpected_registrar_error_may_have_side_effect(self) -> None:
        """Test non-remote registrar errors are not reported as 'no agent created'."""
        self.mock_registrar.create_flush_agent.side_effect = RuntimeError(
            "connection dropped after request was sent"
        )

        result = self.workflow.run("i-1")

        assert result.outcome != ProvisioningOutcome.REGISTRATION_FAILURE
        assert result.outcome == ProvisioningOutcome.TAGGING_FAILURE
        assert result.error_message == "connection dropped after request was sent"
        self.mock_gateway.add_tags.assert_not_called()

    def test_author_host_resolved_once(self) -> None:
        """Test the ELB URL is derived from the already resolved author host."""
        self.workflow.run("i-1")

        self.mock_topology.get_author_host.assert_called_once_with()
        self.mock_topology.get_aem_url_for_author_elb.assert_called_once_with(AUTHOR_HOST)

    def test_outcome_logged_as_instance_event(self) -> None:
        """Test every run ends with an instance event carrying its outcome."""
        self.mock_gateway.add_tags.side_effect = RuntimeError("boom")

        self.workflow.run("i-1")

        args, kwargs = self.mock_logger.info.call_args
        assert args == ("Instance %s %s", "i-1", "provisioning_failed")
        assert kwargs["extra"]["outcome"] == "tagging_failure"
        assert kwargs["extra"]["instance_id"] == "i-1"
