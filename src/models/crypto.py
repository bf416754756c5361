"""
Crypto Portfolio Models

Holdings are stored locally; prices come from the market data API and
are never persisted.
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.models.ledger import LedgerModel


class CryptoAsset(LedgerModel):
    """A held coin. `id` is the market data API's coin id (e.g. 'bitcoin')."""

    id: str = Field(..., min_length=1)
    symbol: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0)
    average_buy_price: Decimal = Field(default=Decimal("0"), ge=0)

    @property
    def cost_basis(self) -> Decimal:
        return self.amount * self.average_buy_price


class CoinPrice(BaseModel):
    """Current market quote for one coin."""
    model_config = ConfigDict(extra="ignore")

    id: str
    symbol: str = ""
    name: str = ""
    image: Optional[str] = None
    current_price: Optional[float] = None
    price_change_percentage_24h: Optional[float] = None
    sparkline: list[float] = Field(
        default_factory=list,
        description="7-day sparkline prices, oldest first"
    )


class CoinSearchResponse(BaseModel):
    """
    Result of a free-text coin search.

    `error` holds user-facing text when the search failed; `results`
    is then empty.
    """
    results: list[dict[str, Any]] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AssetHolding(BaseModel):
    """One line of a valued portfolio."""
    asset: CryptoAsset
    price: Optional[float] = None
    value: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")

    @property
    def profit_loss(self) -> Decimal:
        return self.value - self.cost


class PortfolioSummary(BaseModel):
    """Valued portfolio. Assets without a quote are counted at zero value."""
    holdings: list[AssetHolding] = Field(default_factory=list)
    total_value: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")

    @property
    def profit_loss(self) -> Decimal:
        return self.total_value - self.total_cost

    @property
    def profit_loss_percentage(self) -> float:
        if self.total_cost == 0:
            return 0.0
        return float(self.profit_loss / self.total_cost * 100)
