from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DiagnosticLevel(str, Enum):
    """
    Severity of a diagnostic reported by an order statistics phase.
    """

    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Diagnostic:
    level: DiagnosticLevel
    message: str
    variable: Optional[str] = None

    def to_dict(self) -> dict:
        return {"level": self.level.value, "variable": self.variable, "message": self.message}

    def __str__(self) -> str:
        if self.variable:
            return f"{self.level.value} [{self.variable}]: {self.message}"
        return f"{self.level.value}: {self.message}"
