from __future__ import annotations

from typing import Any, Optional


class ComparisonError(Exception):
    code = "comparison_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(ComparisonError):
    """Process configuration is unusable (e.g. no API key). Fatal to the session."""

    code = "configuration_error"


class EndpointNotFound(ComparisonError, KeyError):
    code = "invalid_model"

    def __init__(self, endpoint_id: str):
        super().__init__(f"Unknown endpoint: {endpoint_id}")
        self.endpoint_id = endpoint_id

    def __str__(self) -> str:
        return self.message


class GatewayError(ComparisonError):
    """A failed completion attempt. Carried as a value on CompletionResult, shown per endpoint."""

    code = "gateway_error"


class InvalidEndpoint(GatewayError):
    code = "invalid_endpoint"

    def __init__(self, endpoint_id: str):
        super().__init__("Invalid model ID")
        self.endpoint_id = endpoint_id


class UpstreamError(GatewayError):
    code = "upstream_error"

    def __init__(self, status_code: int, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class MalformedResponse(GatewayError):
    code = "malformed_response"


class NetworkError(GatewayError):
    code = "network_error"
