"""Domain primitives for instance identification."""

from dataclasses import dataclass


@dataclass(frozen=True)
class InstanceId:
    """Validated EC2 instance identifier. Hashable for use as dictionary key."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("InstanceId cannot be empty")

        # Allow alphanumeric characters, underscores, and hyphens
        normalized = self.value.replace("_", "").replace("-", "")
        if not normalized.isalnum():
            raise ValueError(f"InstanceId must be alphanumeric with _ or -: {self.value}")

    def __str__(self) -> str:
        return self.value
