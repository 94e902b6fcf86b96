"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class StageError(PipelineError):
    """Raised for failures scoped to one call, window or stage."""

    error_code = "STAGE_ERROR"


class ResponseSchemaError(StageError):
    """Raised when a response body does not decode into the expected shape."""

    error_code = "SCHEMA_ERROR"


class ResolutionError(StageError):
    """Raised when the source map cannot be built. Fatal to the run."""

    error_code = "RESOLUTION_ERROR"


class DataQualityError(PipelineError):
    """Raised for sensor values that cannot be classified."""

    error_code = "DATA_QUALITY_ERROR"
