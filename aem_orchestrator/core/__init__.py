"""Core orchestrator components."""

from .value_objects import InstanceId

__all__ = ["InstanceId"]
