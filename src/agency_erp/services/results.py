"""Operation result types shared by the services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class OperationResult:
    """Outcome of a write operation.

    `row` is the primary entity as stored. `warnings` collects
    secondary-effect problems (notification failures, missing phone
    numbers) that did not block the primary write.
    """

    row: dict[str, Any]
    warnings: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        """Whether every secondary effect went through."""
        return not self.warnings
