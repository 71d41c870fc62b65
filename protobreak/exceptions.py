"""Custom exceptions for ProtoBreak engine."""


class ProtoBreakError(Exception):
    """Base exception for ProtoBreak errors."""
    pass


class DescriptorError(ProtoBreakError):
    """Raised when a descriptor tree is structurally invalid."""
    def __init__(self, message: str, path: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.details = details or {}


class DescriptorLoadError(ProtoBreakError):
    """Raised when a descriptor document cannot be read or decoded."""
    def __init__(self, message: str, source: str = None):
        super().__init__(f"{source}: {message}" if source else message)
        self.message = message
        self.source = source


class RevisionNotFoundError(ProtoBreakError):
    """Raised when a schema version cannot be retrieved."""
    def __init__(self, revision: str, path: str = None, reason: str = None):
        if path:
            text = f"Cannot retrieve '{path}' at revision '{revision}'"
        else:
            text = f"Revision '{revision}' does not exist or is invalid"
        if reason:
            text = f"{text}: {reason}"
        super().__init__(text)
        self.revision = revision
        self.path = path
        self.reason = reason


class ConfigError(ProtoBreakError):
    """Raised when the engine configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
