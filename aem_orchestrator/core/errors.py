"""Error hierarchy for the AEM orchestrator."""

from typing import Optional, Dict, Any


class OrchestratorError(Exception):
    """Base exception for all orchestrator errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# Configuration Errors
class ConfigurationError(OrchestratorError):
    """Error in orchestrator configuration."""


# Remote Service Errors
class RemoteServiceError(OrchestratorError):
    """AWS or the AEM administrative API rejected a request."""

    def __init__(self, message: str, service: str, operation: str,
                 error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.service = service
        self.operation = operation
        self.error_code = error_code


# Lookup Errors
class NotFoundError(OrchestratorError):
    """A looked-up resource does not exist."""

    def __init__(self, message: str, resource_type: str, resource_id: str,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.resource_type = resource_type
        self.resource_id = resource_id
