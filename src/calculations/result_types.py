"""
Result wrapper for quantity takeoffs

A takeoff never fails outright: quantities that cannot be measured (no
scale, no panel wattage) are left at zero and reported as warnings.
"""

from typing import Generic, TypeVar, Dict, List, Any
from dataclasses import dataclass, field
from enum import Enum

T = TypeVar('T')


class ResultStatus(Enum):
    """Whether every quantity in a takeoff could be measured"""
    COMPLETE = "complete"
    PARTIAL = "partial"


@dataclass
class CalculationResult(Generic[T]):
    """Computed data plus the reasons any part of it is missing"""
    data: T
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> ResultStatus:
        return ResultStatus.PARTIAL if self.warnings else ResultStatus.COMPLETE

    @property
    def is_complete(self) -> bool:
        return self.status == ResultStatus.COMPLETE

    def add_warning(self, warning: str) -> None:
        if warning not in self.warnings:
            self.warnings.append(warning)

    def set_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form; data must provide as_dict()"""
        return {
            'status': self.status.value,
            'summary': self.data.as_dict(),
            'warnings': list(self.warnings),
            'metadata': dict(self.metadata),
        }
