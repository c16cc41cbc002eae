"""Core type definitions for the AEM orchestrator."""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, SecretStr, model_validator

from .enums import ProvisioningOutcome


class AwsConfig(BaseModel):
    """AWS session and client settings."""

    region: Optional[str] = None
    profile_name: Optional[str] = None
    endpoint_url: Optional[str] = None
    max_pool_connections: int = 10


class AemConfig(BaseModel):
    """How AEM instances and their load balancers are addressed."""

    protocol: str = "https"
    author_dispatcher_port: int = 443
    author_elb_name: Optional[str] = None
    author_elb_port: int = 443
    author_host_tag_key: str = "AuthorHost"

    # Credentials for the AEM administrative API
    username: str = "admin"
    password: SecretStr = SecretStr("admin")
    request_timeout: float = 30.0
    verify_tls: bool = True


class RetryConfig(BaseModel):
    """Bounded polling against eventually-consistent EC2 state."""

    max_attempts: int = 20
    delay_seconds: float = 5.0


class OrchestratorConfig(BaseModel):
    """Main orchestrator configuration."""

    aws: AwsConfig = Field(default_factory=AwsConfig)
    aem: AemConfig = Field(default_factory=AemConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @model_validator(mode="after")
    def validate_config(self) -> "OrchestratorConfig":
        """Validate configuration - NO SIDE EFFECTS."""
        from .errors import ConfigurationError

        if self.retry.max_attempts < 1:  # pylint: disable=no-member
            raise ConfigurationError("Retry max_attempts must be at least 1")
        if self.retry.delay_seconds < 0:  # pylint: disable=no-member
            raise ConfigurationError("Retry delay_seconds cannot be negative")
        if self.aem.protocol not in ("http", "https"):  # pylint: disable=no-member
            raise ConfigurationError(
                f"Unsupported AEM protocol: {self.aem.protocol}"  # pylint: disable=no-member
            )
        for port in (self.aem.author_dispatcher_port, self.aem.author_elb_port):  # pylint: disable=no-member
            if not 0 < port < 65536:
                raise ConfigurationError(f"Invalid port: {port}")
        if self.aem.request_timeout <= 0:  # pylint: disable=no-member
            raise ConfigurationError("AEM request timeout must be positive")

        return self


# Transient views of AWS resources
class Instance(BaseModel):
    """EC2 instance as described by the provider at call time."""

    instance_id: str
    private_ip: Optional[str] = None
    tags: Dict[str, str] = Field(default_factory=dict)
    block_devices: Dict[str, str] = Field(default_factory=dict)  # device -> volume id


class ScalingGroup(BaseModel):
    """Auto scaling group as described by the provider at call time."""

    name: str
    desired_capacity: int = Field(ge=0)
    instance_ids: List[str] = Field(default_factory=list)


class Snapshot(BaseModel):
    """EBS snapshot created for a volume."""

    volume_id: str
    description: str
    snapshot_id: str


# Workflow results
class ProvisioningResult(BaseModel):
    """Outcome of a single provisioning workflow run."""

    instance_id: str
    outcome: ProvisioningOutcome
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        """Check if every step of the workflow completed."""
        return self.outcome == ProvisioningOutcome.SUCCESS
