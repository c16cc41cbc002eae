"""boto3 client construction."""

from typing import Any, NamedTuple, Optional

import boto3
from botocore.config import Config

from ..core.types import AwsConfig


class AwsClients(NamedTuple):
    """The three AWS service clients the gateway talks to."""

    ec2: Any
    elb: Any
    autoscaling: Any


def create_session(aws_config: AwsConfig) -> boto3.session.Session:
    """Create a boto3 session honouring the configured profile and region."""
    return boto3.session.Session(
        profile_name=aws_config.profile_name,
        region_name=aws_config.region,
    )


def create_clients(
    aws_config: AwsConfig, session: Optional[boto3.session.Session] = None
) -> AwsClients:
    """Create EC2, classic ELB and Auto Scaling clients sharing one session.

    boto3 clients are thread safe, so one set serves concurrent workflow
    invocations.
    """
    session = session or create_session(aws_config)
    client_config = Config(max_pool_connections=aws_config.max_pool_connections)

    def _client(service: str) -> Any:
        return session.client(
            service, endpoint_url=aws_config.endpoint_url, config=client_config
        )

    return AwsClients(
        ec2=_client("ec2"),
        elb=_client("elb"),
        autoscaling=_client("autoscaling"),
    )
