"""Core enumerations for the AEM orchestrator.

Kept free of imports from other core modules so that types, protocols and
errors can all depend on it.
"""

from enum import Enum


class AgentRunMode(Enum):
    """AEM run mode a replication agent is registered under."""

    AUTHOR = "author"
    PUBLISH = "publish"


class ProvisioningOutcome(Enum):
    """Result classification of a provisioning workflow run."""

    SUCCESS = "success"
    TOPOLOGY_FAILURE = "topology_failure"
    UNRESOLVED_ADDRESS = "unresolved_address"
    REGISTRATION_FAILURE = "registration_failure"
    TAGGING_FAILURE = "tagging_failure"
