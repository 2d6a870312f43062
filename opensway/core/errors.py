"""
Error taxonomy for OpenSway commands
"""

from enum import Enum


class ErrorKind(Enum):
    """Tag carried by every expected failure"""
    INSUFFICIENT_PINS = "insufficient_pins"
    NO_SELECTION = "no_selection"
    MISSING_RIG_STRUCTURE = "missing_rig_structure"
    INVALID_PARAMETERS = "invalid_parameters"
    BINDING_FAILURE = "binding_failure"


class OpenSwayError(Exception):
    """Base class for expected, user-reportable failures"""
    kind: ErrorKind = ErrorKind.BINDING_FAILURE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InsufficientPinsError(OpenSwayError):
    kind = ErrorKind.INSUFFICIENT_PINS


class NoSelectionError(OpenSwayError):
    kind = ErrorKind.NO_SELECTION


class MissingRigStructureError(OpenSwayError):
    kind = ErrorKind.MISSING_RIG_STRUCTURE


class InvalidParametersError(OpenSwayError):
    kind = ErrorKind.INVALID_PARAMETERS


class BindingError(OpenSwayError):
    """Raised by a host document when it rejects a write"""
    kind = ErrorKind.BINDING_FAILURE
