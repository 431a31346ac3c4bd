"""Exception types raised by the connector.

Transport failures are not wrapped: both HTTP clients let ``httpx.HTTPError``
(including ``httpx.HTTPStatusError`` from ``raise_for_status()``) propagate,
and each call site decides whether the error aborts the current item.
"""


class ConnectorError(Exception):
    """Base exception for connector errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class GerritProtocolError(ConnectorError):
    """Raised when a Gerrit response body is not the expected prefixed JSON."""

    def __init__(self, message: str, body: bytes = b""):
        super().__init__(message)
        self.body = body


class MalformedCheckerUUIDError(ConnectorError):
    """Raised when a checker UUID cannot be decoded into a handler prefix."""

    def __init__(self, uuid: str):
        super().__init__(f"uuid {uuid!r} had unknown prefix")
        self.uuid = uuid


class IrrelevantCheckError(ConnectorError):
    """Raised by the pipeline trigger when a check does not apply to a change."""

    def __init__(self, checker_uuid: str = ""):
        super().__init__("irrelevant")
        self.checker_uuid = checker_uuid


class ConfigurationError(ConnectorError):
    """Raised for missing or invalid start-up parameters."""


class PipelineProtocolError(ConnectorError):
    """Raised when a pipeline trigger acknowledgement has malformed fields."""
