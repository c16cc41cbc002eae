"""Orchestration actions triggered by instance events."""

from .dispatcher_provisioning import DispatcherProvisioningWorkflow

__all__ = ["DispatcherProvisioningWorkflow"]
