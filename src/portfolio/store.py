"""
Crypto Portfolio Store and valuation.

Holdings are persisted as one JSON array; valuation combines them with
price quotes fetched at display time.
"""

from decimal import Decimal
from typing import Iterable, Optional

from src.audit import AuditLogger
from src.ledger.collection import JsonCollection
from src.ledger.errors import LedgerDeleteError
from src.ledger.keys import LedgerKeys
from src.models.crypto import AssetHolding, CoinPrice, CryptoAsset, PortfolioSummary
from src.services.storage import KeyValueStoreInterface


class PortfolioStore:
    """Owns the list of held coins."""

    def __init__(
        self,
        store: KeyValueStoreInterface,
        keys: Optional[LedgerKeys] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._keys = keys or LedgerKeys()
        self._collection = JsonCollection(store, CryptoAsset, audit_logger)

    async def get_portfolio(self) -> list[CryptoAsset]:
        return await self._collection.load(self._keys.crypto_portfolio)

    async def get_asset(self, asset_id: str) -> Optional[CryptoAsset]:
        for asset in await self.get_portfolio():
            if asset.id == asset_id:
                return asset
        return None

    async def save_asset(self, asset: CryptoAsset) -> None:
        """Insert or replace (by id) a holding, keeping list order."""
        assets = await self.get_portfolio()
        for index, existing in enumerate(assets):
            if existing.id == asset.id:
                assets[index] = asset
                break
        else:
            assets.append(asset)
        await self._collection.save(self._keys.crypto_portfolio, assets)

    async def add_or_merge_asset(self, asset: CryptoAsset) -> CryptoAsset:
        """
        Record a purchase.

        Buying more of a coin already held adds the amounts and
        recomputes the weighted average buy price.
        """
        existing = await self.get_asset(asset.id)
        if existing is not None:
            total_amount = existing.amount + asset.amount
            if total_amount > 0:
                average = (existing.cost_basis + asset.cost_basis) / total_amount
            else:
                average = asset.average_buy_price
            asset = asset.model_copy(
                update={"amount": total_amount, "average_buy_price": average}
            )
        await self.save_asset(asset)
        return asset

    async def delete_asset(self, asset_id: str) -> bool:
        assets = await self.get_portfolio()
        remaining = [a for a in assets if a.id != asset_id]
        if len(remaining) == len(assets):
            return False
        await self._collection.save(
            self._keys.crypto_portfolio, remaining, error=LedgerDeleteError
        )
        return True


def value_portfolio(
    assets: Iterable[CryptoAsset],
    prices: Iterable[CoinPrice],
) -> PortfolioSummary:
    """Value holdings at current prices. A coin without a quote is worth 0."""
    by_id = {p.id: p for p in prices}
    summary = PortfolioSummary()

    for asset in assets:
        quote = by_id.get(asset.id)
        price = quote.current_price if quote else None
        value = asset.amount * Decimal(str(price)) if price is not None else Decimal("0")
        holding = AssetHolding(
            asset=asset,
            price=price,
            value=value,
            cost=asset.cost_basis,
        )
        summary.holdings.append(holding)
        summary.total_value += holding.value
        summary.total_cost += holding.cost

    return summary
