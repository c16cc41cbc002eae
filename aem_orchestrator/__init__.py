"""
AEM Orchestrator: elastic lifecycle management for AEM on AWS

Scales author/dispatcher fleets, registers new dispatchers as flush agent
targets, tags instances with routing metadata and snapshots their volumes.
"""

__version__ = "1.0.0"

# Core exports
from .core.enums import AgentRunMode, ProvisioningOutcome
from .core.types import (
    AemConfig,
    AwsConfig,
    OrchestratorConfig,
    ProvisioningResult,
    RetryConfig,
)

__all__ = [
    "__version__",
    "AgentRunMode",
    "ProvisioningOutcome",
    "AemConfig",
    "AwsConfig",
    "OrchestratorConfig",
    "ProvisioningResult",
    "RetryConfig",
]
