"""Plain data containers passed between the service, renderers and surfaces."""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass
class PriceSeries:
    prices: List[float]
    timeframe: str
    currency: str
    width: int
    height: int

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class TierResult:
    """Outcome of one acquisition tier: prices on success, the error on skip."""

    tier: str
    prices: List[float] = field(default_factory=list)
    error: Optional[Exception] = None

    @classmethod
    def success(cls, tier: str, prices: List[float]) -> "TierResult":
        return cls(tier=tier, prices=prices)

    @classmethod
    def skip(cls, tier: str, error: Exception) -> "TierResult":
        return cls(tier=tier, error=error)

    @property
    def ok(self) -> bool:
        return bool(self.prices)


@dataclass
class CommandResult:
    success: bool
    timestamp: datetime
    execution_time: int  # milliseconds
    data: Optional[PriceSeries] = None
    error: Optional[Exception] = None

    def to_dict(self) -> Dict:
        return {
            "success": self.success,
            "data": self.data.to_dict() if self.data else None,
            "error": str(self.error) if self.error else None,
            "timestamp": self.timestamp.isoformat(),
            "execution_time": self.execution_time,
        }
