"""Exception types raised across the quarantine pipeline."""


class QuarantineError(Exception):
    """Base class for every pipeline failure."""


class ConfigurationError(QuarantineError):
    """Required environment configuration is missing or unusable."""


class SecretUnavailable(QuarantineError):
    def __init__(self, name: str, detail: str = ""):
        self.name = name
        self.detail = detail
        super().__init__(f"secret {name!r} unavailable: {detail}" if detail else f"secret {name!r} unavailable")


class DecodeError(QuarantineError):
    """The storage provider's hash encoding could not be decoded."""


class ServiceUnavailable(QuarantineError):
    """The reputation service could not be reached or answered with an HTTP error."""


class SubmissionError(QuarantineError):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class StorageError(QuarantineError):
    def __init__(self, message: str, missing: bool = False):
        self.missing = missing
        super().__init__(message)


class MoveError(QuarantineError):
    def __init__(self, message: str, stage: str, missing_source: bool = False):
        # stage is "copy" or "delete"
        self.stage = stage
        self.missing_source = missing_source
        super().__init__(message)
