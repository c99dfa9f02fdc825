from dataclasses import dataclass
from typing import Type

from .errors import InvariantViolation


@dataclass
class Settings:
    error_class: Type[Exception] = InvariantViolation
    trace_operations: bool = False
