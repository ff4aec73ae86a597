"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class StageError(PipelineError):
    """Raised for stage failures that should halt in strict mode."""

    error_code = "STAGE_ERROR"


class DerivationError(PipelineError):
    """Raised when a record digest cannot be derived.

    Fatal for the enclosing partition only.
    """

    error_code = "DERIVATION_ERROR"

    def __init__(self, message: str, *, partition_key: str | None = None, record_id: str | None = None) -> None:
        super().__init__(message)
        self.partition_key = partition_key
        self.record_id = record_id


class EmitError(PipelineError):
    """Raised when one or more partition artifacts could not be written."""

    error_code = "EMIT_ERROR"

    def __init__(self, message: str, *, partition_key: str, failed_paths: list[str]) -> None:
        super().__init__(message)
        self.partition_key = partition_key
        self.failed_paths = failed_paths
