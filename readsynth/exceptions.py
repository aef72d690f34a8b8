"""
Error types raised by ReadSynth.
"""

from enum import Enum


class ErrorKind(Enum):
    """Layer a fatal error comes from"""
    CLI = "cli"
    MODEL = "model"


class ReadSynthError(ValueError):
    """Base class for configuration errors detected before any read is generated"""

    kind = None

    def __init__(self, message: str):
        super(ReadSynthError, self).__init__(message)
        self.message = message

    def __str__(self):
        return f"[{self.kind.value}] {self.message}"


class CliError(ReadSynthError):
    """Malformed user input: quantity expression, configuration values"""

    kind = ErrorKind.CLI


class ModelError(ReadSynthError):
    """Invalid model parameters or model tables"""

    kind = ErrorKind.MODEL
