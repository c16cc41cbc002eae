"""Single point of contact with EC2, classic ELB and Auto Scaling."""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..core.errors import NotFoundError, RemoteServiceError
from ..core.log import Logger
from ..core.time import Clock, SystemClock, retry_until
from ..core.types import Instance, RetryConfig, ScalingGroup, Snapshot

INSTANCE_NOT_FOUND_CODE = "InvalidInstanceID.NotFound"
LOAD_BALANCER_NOT_FOUND_CODE = "LoadBalancerNotFound"


@contextmanager
def remote_call(service: str, operation: str, **details: Any) -> Iterator[None]:
    """Translate botocore failures into RemoteServiceError."""
    try:
        yield
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "ClientError")
        raise RemoteServiceError(
            f"{service} {operation} failed: {code}",
            service=service,
            operation=operation,
            error_code=code,
            details=details,
        ) from e
    except BotoCoreError as e:
        raise RemoteServiceError(
            f"{service} {operation} failed: {e}",
            service=service,
            operation=operation,
            details=details,
        ) from e


def _instance_from_descriptor(descriptor: Dict[str, Any]) -> Instance:
    block_devices = {
        mapping["DeviceName"]: mapping["Ebs"]["VolumeId"]
        for mapping in descriptor.get("BlockDeviceMappings", [])
        if "Ebs" in mapping
    }
    return Instance(
        instance_id=descriptor["InstanceId"],
        private_ip=descriptor.get("PrivateIpAddress") or None,
        tags={tag["Key"]: tag["Value"] for tag in descriptor.get("Tags", [])},
        block_devices=block_devices,
    )


class CloudResourceGateway:
    """Wraps compute, load balancer, scaling group and storage operations.

    Every operation is a single remote call without local retry, except
    private address resolution which polls while EC2 has not yet assigned
    an address to a freshly launched instance.
    """

    def __init__(
        self,
        ec2_client: Any,
        elb_client: Any,
        autoscaling_client: Any,
        logger: Logger,
        retry_config: Optional[RetryConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._ec2 = ec2_client
        self._elb = elb_client
        self._autoscaling = autoscaling_client
        self._logger = logger
        self._retry = retry_config or RetryConfig()
        self._clock = clock or SystemClock()

    # Instances

    def describe_instance(self, instance_id: str) -> Optional[Instance]:
        """Describe an instance, or None if EC2 has no reservation for it."""
        try:
            with remote_call("ec2", "describe_instances", instance_id=instance_id):
                result = self._ec2.describe_instances(InstanceIds=[instance_id])
        except RemoteServiceError as e:
            if e.error_code == INSTANCE_NOT_FOUND_CODE:
                return None
            raise

        for reservation in result.get("Reservations", []):
            for descriptor in reservation.get("Instances", []):
                return _instance_from_descriptor(descriptor)
        return None

    def resolve_private_address(self, instance_id: str) -> Optional[str]:
        """Get the private IP of an instance, waiting while it is still unassigned.

        Returns None straight away when the instance has no reservation, and
        after ``max_attempts`` polls when the address never appears.
        """
        instance, _ = retry_until(
            lambda: self.describe_instance(instance_id),
            lambda found: found is None or bool(found.private_ip),
            max_attempts=self._retry.max_attempts,
            delay=self._retry.delay_seconds,
            clock=self._clock,
            description=f"private IP of {instance_id}",
        )
        if instance is None or not instance.private_ip:
            self._logger.warning("Unable to resolve private IP of instance %s", instance_id)
            return None
        return instance.private_ip

    def terminate_instance(self, instance_id: str) -> None:
        """Terminate an EC2 instance."""
        with remote_call("ec2", "terminate_instances", instance_id=instance_id):
            self._ec2.terminate_instances(InstanceIds=[instance_id])
        self._logger.info("Requested termination of instance %s", instance_id)

    # Tags

    def get_tags(self, instance_id: str) -> Dict[str, str]:
        """Get the tags of an instance as a mapping."""
        with remote_call("ec2", "describe_tags", instance_id=instance_id):
            result = self._ec2.describe_tags(
                Filters=[{"Name": "resource-id", "Values": [instance_id]}]
            )
        return {tag["Key"]: tag["Value"] for tag in result.get("Tags", [])}

    def add_tags(self, instance_id: str, tags: Dict[str, str]) -> None:
        """Add tags to an instance. Existing tags with other keys are kept."""
        if not tags:
            return
        with remote_call("ec2", "create_tags", instance_id=instance_id):
            self._ec2.create_tags(
                Resources=[instance_id],
                Tags=[{"Key": key, "Value": value} for key, value in tags.items()],
            )
        self._logger.debug("Tagged instance %s with %s", instance_id, sorted(tags))

    # Auto scaling groups

    def describe_scaling_group(self, group_name: str) -> ScalingGroup:
        """Describe an auto scaling group."""
        with remote_call(
            "autoscaling", "describe_auto_scaling_groups", group_name=group_name
        ):
            result = self._autoscaling.describe_auto_scaling_groups(
                AutoScalingGroupNames=[group_name]
            )
        groups = result.get("AutoScalingGroups", [])
        if not groups:
            raise NotFoundError(
                f"Auto scaling group not found: {group_name}",
                resource_type="auto_scaling_group",
                resource_id=group_name,
            )
        group = groups[0]
        return ScalingGroup(
            name=group["AutoScalingGroupName"],
            desired_capacity=group["DesiredCapacity"],
            instance_ids=[i["InstanceId"] for i in group.get("Instances", [])],
        )

    def list_group_members(self, group_name: str) -> List[str]:
        """Get the instance IDs of an auto scaling group."""
        return self.describe_scaling_group(group_name).instance_ids

    def get_desired_capacity(self, group_name: str) -> int:
        """Get the desired capacity of an auto scaling group."""
        return self.describe_scaling_group(group_name).desired_capacity

    def set_desired_capacity(self, group_name: str, desired_capacity: int) -> None:
        """Set the desired capacity of an auto scaling group."""
        if desired_capacity < 0:
            raise ValueError(f"Desired capacity cannot be negative: {desired_capacity}")
        with remote_call(
            "autoscaling", "set_desired_capacity", group_name=group_name
        ):
            self._autoscaling.set_desired_capacity(
                AutoScalingGroupName=group_name, DesiredCapacity=desired_capacity
            )
        self._logger.info(
            "Set desired capacity of %s to %d", group_name, desired_capacity
        )

    # Volumes and snapshots

    def resolve_volume_id(self, instance_id: str, device_name: str) -> str:
        """Get the EBS volume ID attached to an instance under a device name."""
        with remote_call(
            "ec2", "describe_instance_attribute", instance_id=instance_id
        ):
            result = self._ec2.describe_instance_attribute(
                InstanceId=instance_id, Attribute="blockDeviceMapping"
            )
        for mapping in result.get("BlockDeviceMappings", []):
            if mapping.get("DeviceName") == device_name and "Ebs" in mapping:
                return mapping["Ebs"]["VolumeId"]
        raise NotFoundError(
            f"No block device {device_name} on instance {instance_id}",
            resource_type="block_device",
            resource_id=device_name,
            details={"instance_id": instance_id},
        )

    def create_snapshot(self, volume_id: str, description: str) -> str:
        """Create a snapshot of a volume, returning the new snapshot ID."""
        with remote_call("ec2", "create_snapshot", volume_id=volume_id):
            result = self._ec2.create_snapshot(
                VolumeId=volume_id, Description=description
            )
        snapshot_id = result["SnapshotId"]
        self._logger.info("Created snapshot %s of volume %s", snapshot_id, volume_id)
        return snapshot_id

    def snapshot_device(
        self, instance_id: str, device_name: str, description: str
    ) -> Snapshot:
        """Snapshot the volume attached to an instance under a device name."""
        volume_id = self.resolve_volume_id(instance_id, device_name)
        snapshot_id = self.create_snapshot(volume_id, description)
        return Snapshot(
            volume_id=volume_id, description=description, snapshot_id=snapshot_id
        )

    # Load balancers

    def resolve_load_balancer_address(self, elb_name: str) -> str:
        """Get the DNS name of a classic load balancer."""
        try:
            with remote_call("elb", "describe_load_balancers", elb_name=elb_name):
                result = self._elb.describe_load_balancers(
                    LoadBalancerNames=[elb_name]
                )
        except RemoteServiceError as e:
            if e.error_code == LOAD_BALANCER_NOT_FOUND_CODE:
                raise NotFoundError(
                    f"Load balancer not found: {elb_name}",
                    resource_type="load_balancer",
                    resource_id=elb_name,
                ) from e
            raise

        for description in result.get("LoadBalancerDescriptions", []):
            if description.get("DNSName"):
                return description["DNSName"]
        raise NotFoundError(
            f"Load balancer {elb_name} has no resolvable DNS name",
            resource_type="load_balancer",
            resource_id=elb_name,
        )
