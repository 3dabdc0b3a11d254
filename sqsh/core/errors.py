from typing import Optional


# ============================================================================
# Exception Hierarchy
# ============================================================================


class SqshError(Exception):
    """Base class for all sqsh errors."""


class ClassificationError(SqshError, ValueError):
    """Input path is missing, not a regular file, empty or unsupported."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class InvalidDestination(SqshError, ValueError):
    """Output folder override does not exist or is not a directory."""


class InvalidTargetSize(SqshError, ValueError):
    """Target size is not strictly smaller than an input file."""


class InvalidOutputFormat(SqshError, ValueError):
    """Requested output format does not belong to the batch category."""


class BatchValidationError(SqshError, ValueError):
    """Batch cannot be run as submitted (mixed categories, empty, duplicates)."""


class EncodeError(SqshError):
    """
    The external encoder failed for one file.

    Attributes:
        message: Human-readable diagnostic
        returncode: Encoder exit code, if it ran to completion
        stderr: Tail of the encoder's diagnostic output
    """

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        self.message = message
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class FatalSetupError(SqshError):
    """The encoder binary is not available; nothing can be compressed."""

    def __init__(self, message: str, instruction: str = ""):
        self.instruction = instruction
        super().__init__(message)
