"""Quote domain model."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Quote:
    """
    End-of-day bar for one symbol.

    Immutable once retrieved. Change figures are derived from open/close and
    never stored. Simulated quotes carry simulated=True so presentation layers
    can flag them as estimates.
    """

    symbol: str
    close: float
    open: float
    high: float
    low: float
    volume: Optional[float] = None
    vwap: Optional[float] = None
    transactions: Optional[int] = None
    simulated: bool = False

    @property
    def change(self) -> float:
        """Absolute change from open to close."""
        return self.close - self.open

    @property
    def change_percent(self) -> Optional[float]:
        """Percent change from open to close; None when open is zero."""
        if not self.open:
            return None
        return (self.close - self.open) / self.open * 100
