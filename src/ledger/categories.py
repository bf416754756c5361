"""
Category Store

Default categories are fixed; custom ones are persisted as a JSON array.
Names are unique case-insensitively across both sets.
"""

from typing import Optional

from src.audit import AuditLogger
from src.ledger.collection import JsonCollection
from src.ledger.errors import LedgerDeleteError
from src.ledger.keys import LedgerKeys
from src.models.category import CATEGORY_PALETTE, DEFAULT_CATEGORIES, Category
from src.services.storage import DuplicateError, KeyValueStoreInterface


class CategoryStore:
    """Default plus user-defined categories."""

    def __init__(
        self,
        store: KeyValueStoreInterface,
        keys: Optional[LedgerKeys] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._keys = keys or LedgerKeys()
        self._collection = JsonCollection(store, Category, audit_logger)

    async def list_custom_categories(self) -> list[Category]:
        return await self._collection.load(self._keys.custom_categories)

    async def list_categories(self) -> list[str]:
        """Default names followed by custom names."""
        customs = await self.list_custom_categories()
        return DEFAULT_CATEGORIES + [c.name for c in customs]

    async def add_custom_category(self, name: str) -> Category:
        """
        Add a custom category.

        Raises:
            ValueError: If the name is blank
            DuplicateError: If a default or custom category already has the name
        """
        name = name.strip()
        if not name:
            raise ValueError("Category name is required")

        customs = await self.list_custom_categories()
        taken = {n.lower() for n in DEFAULT_CATEGORIES} | {c.name.lower() for c in customs}
        if name.lower() in taken:
            raise DuplicateError(f"Category already exists: {name}")

        category = Category(
            name=name,
            color=CATEGORY_PALETTE[len(customs) % len(CATEGORY_PALETTE)],
        )
        customs.append(category)
        await self._collection.save(self._keys.custom_categories, customs)
        return category

    async def delete_custom_category(self, name: str) -> bool:
        customs = await self.list_custom_categories()
        remaining = [c for c in customs if c.name != name]
        if len(remaining) == len(customs):
            return False
        await self._collection.save(
            self._keys.custom_categories, remaining, error=LedgerDeleteError
        )
        return True
