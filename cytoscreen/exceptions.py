"""Exception hierarchy for the benchmark pipeline."""

from loguru import logger


class CytoscreenError(Exception):
    """Base exception class for pipeline errors."""
    exit_code = 1

    def __init__(self, message: str, **context):
        self.message = message
        self.context = context
        super().__init__(message)

    def log(self) -> None:
        """Log the error together with any context it carries."""
        logger.bind(error_type=self.__class__.__name__, **self.context).error(self.message)


class ConfigurationError(CytoscreenError, ValueError):
    """Raised when a configuration value is invalid. Detected before any fitting."""
    exit_code = 2


class DataValidationError(CytoscreenError, ValueError):
    """Raised when the specimen table does not match the expected schema."""


class DegenerateClassError(CytoscreenError, ValueError):
    """Raised when a partition or fold holds no examples of a label."""


class TrainingError(CytoscreenError):
    """Raised when no grid point of a model family produced a usable metric."""
