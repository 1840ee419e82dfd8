# -*- coding: utf-8 -*-
"""Error handling for mining survey processing.

Exceptions are raised for caller mistakes (bad files, strict-mode
projection failures). Geometry failures inside a batch are never raised;
they are collected as :class:`ProcessingWarning` records instead.
"""

from dataclasses import dataclass

from minemodel_lib.enums import CrossSectionStage
from minemodel_lib.enums import Severity


class MineModelError(Exception):
    """Base class for all minemodel_lib exceptions."""


class UnknownProjectionError(MineModelError):
    """Raised in strict mode when a projection code is not registered."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Unknown projection: `{code}`")


class InvalidCoordinateError(MineModelError):
    """Raised in strict mode when coordinate conversion fails."""


class InvalidInputError(MineModelError):
    """Raised when a survey file cannot be read."""


class ConversionError(MineModelError):
    """Error raised for invalid CLI conversion operations."""


@dataclass(frozen=True)
class ProcessingWarning:
    """A non-fatal failure reported to the rendering layer.

    This is a data record, not an exception.

    Attributes:
        stage: Which sub-computation failed
        message: Human-readable message
        severity: WARNING when partial results remain, ERROR otherwise
    """

    stage: CrossSectionStage
    message: str
    severity: Severity = Severity.WARNING

    def __str__(self) -> str:
        return f"{self.severity.value}: [{self.stage.value}] {self.message}"

    def to_dict(self) -> dict[str, str]:
        return {
            "stage": self.stage.value,
            "message": self.message,
            "severity": self.severity.value,
        }
