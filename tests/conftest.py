"""Shared fixtures: fake clock and stub AWS clients."""

import copy
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from aem_orchestrator.aws.gateway import CloudResourceGateway
from aem_orchestrator.core.types import OrchestratorConfig, RetryConfig


class FakeClock:
    """Clock that records sleeps instead of blocking."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def monotonic(self) -> float:
        return self.now


class StubEc2Client:
    """In-memory EC2 client covering the calls the gateway makes."""

    def __init__(self) -> None:
        self.instances: Dict[str, Dict[str, Any]] = {}
        self.tags: Dict[str, Dict[str, str]] = {}
        self.snapshots: List[Dict[str, str]] = []
        self.terminated: List[str] = []

    def add_instance(
        self,
        instance_id: str,
        private_ip: Optional[str] = None,
        block_devices: Optional[Dict[str, str]] = None,
    ) -> None:
        self.instances[instance_id] = {
            "InstanceId": instance_id,
            "PrivateIpAddress": private_ip,
            "BlockDeviceMappings": [
                {"DeviceName": device, "Ebs": {"VolumeId": volume}}
                for device, volume in (block_devices or {}).items()
            ],
        }
        self.tags.setdefault(instance_id, {})

    def describe_instances(self, InstanceIds: List[str]) -> Dict[str, Any]:
        reservations = []
        for instance_id in InstanceIds:
            if instance_id in self.instances:
                descriptor = copy.deepcopy(self.instances[instance_id])
                descriptor["Tags"] = [
                    {"Key": k, "Value": v} for k, v in self.tags[instance_id].items()
                ]
                reservations.append({"Instances": [descriptor]})
        return {"Reservations": reservations}

    def describe_instance_attribute(self, InstanceId: str, Attribute: str) -> Dict[str, Any]:
        if InstanceId not in self.instances:
            raise ClientError(
                {"Error": {"Code": "InvalidInstanceID.NotFound", "Message": InstanceId}},
                "DescribeInstanceAttribute",
            )
        return {
            "InstanceId": InstanceId,
            "BlockDeviceMappings": self.instances[InstanceId]["BlockDeviceMappings"],
        }

    def describe_tags(self, Filters: List[Dict[str, Any]]) -> Dict[str, Any]:
        resource_ids = Filters[0]["Values"]
        return {
            "Tags": [
                {"ResourceId": rid, "ResourceType": "instance", "Key": k, "Value": v}
                for rid in resource_ids
                for k, v in self.tags.get(rid, {}).items()
            ]
        }

    def create_tags(self, Resources: List[str], Tags: List[Dict[str, str]]) -> Dict[str, Any]:
        for resource in Resources:
            self.tags.setdefault(resource, {}).update(
                {tag["Key"]: tag["Value"] for tag in Tags}
            )
        return {}

    def create_snapshot(self, VolumeId: str, Description: str) -> Dict[str, Any]:
        snapshot_id = f"snap-{len(self.snapshots) + 1:04d}"
        self.snapshots.append(
            {"SnapshotId": snapshot_id, "VolumeId": VolumeId, "Description": Description}
        )
        return {"SnapshotId": snapshot_id, "VolumeId": VolumeId, "State": "pending"}

    def terminate_instances(self, InstanceIds: List[str]) -> Dict[str, Any]:
        self.terminated.extend(InstanceIds)
        return {"TerminatingInstances": [{"InstanceId": i} for i in InstanceIds]}


class StubAutoScalingClient:
    """In-memory Auto Scaling client."""

    def __init__(self) -> None:
        self.groups: Dict[str, Dict[str, Any]] = {}

    def add_group(self, name: str, desired_capacity: int, instance_ids: List[str]) -> None:
        self.groups[name] = {
            "AutoScalingGroupName": name,
            "DesiredCapacity": desired_capacity,
            "Instances": [{"InstanceId": i} for i in instance_ids],
        }

    def describe_auto_scaling_groups(self, AutoScalingGroupNames: List[str]) -> Dict[str, Any]:
        return {
            "AutoScalingGroups": [
                copy.deepcopy(self.groups[name])
                for name in AutoScalingGroupNames
                if name in self.groups
            ]
        }

    def set_desired_capacity(self, AutoScalingGroupName: str, DesiredCapacity: int) -> Dict[str, Any]:
        if AutoScalingGroupName not in self.groups:
            raise ClientError(
                {"Error": {"Code": "ValidationError", "Message": "AutoScalingGroup name not found"}},
                "SetDesiredCapacity",
            )
        self.groups[AutoScalingGroupName]["DesiredCapacity"] = DesiredCapacity
        return {}


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a clock that never blocks."""
    return FakeClock()


@pytest.fixture
def ec2_stub() -> StubEc2Client:
    """Provide an in-memory EC2 client."""
    return StubEc2Client()


@pytest.fixture
def autoscaling_stub() -> StubAutoScalingClient:
    """Provide an in-memory Auto Scaling client."""
    return StubAutoScalingClient()


@pytest.fixture
def elb_client() -> Mock:
    """Provide a mock classic ELB client."""
    client = Mock()
    client.describe_load_balancers.return_value = {
        "LoadBalancerDescriptions": [
            {"LoadBalancerName": "author-elb", "DNSName": "author-elb-123.elb.amazonaws.com"}
        ]
    }
    return client


@pytest.fixture
def gateway(ec2_stub, elb_client, autoscaling_stub, fake_clock) -> CloudResourceGateway:
    """Provide a gateway wired to stub clients and a fake clock."""
    return CloudResourceGateway(
        ec2_stub,
        elb_client,
        autoscaling_stub,
        logger=Mock(),
        retry_config=RetryConfig(),
        clock=fake_clock,
    )


@pytest.fixture
def test_config() -> OrchestratorConfig:
    """Provide a configuration for testing."""
    return OrchestratorConfig(
        aem={
            "protocol": "https",
            "author_dispatcher_port": 443,
            "author_elb_name": "author-elb",
            "author_elb_port": 443,
            "username": "orchestrator",
            "password": "s3cret",
        },
        log_level="WARNING",
    )
