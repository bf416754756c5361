"""Category models."""

from pydantic import Field

from src.models.ledger import LedgerModel, new_id


DEFAULT_CATEGORIES = [
    "Food",
    "Transport",
    "Shopping",
    "Entertainment",
    "Bills",
    "Health",
    "Rent",
    "Groceries",
    "Other",
]

# Chart palette; custom categories take colours from it in turn
CATEGORY_PALETTE = [
    "#007AFF",
    "#34C759",
    "#FF9500",
    "#FF3B30",
    "#5856D6",
    "#AF52DE",
    "#FF2D55",
    "#5AC8FA",
]


class Category(LedgerModel):
    """A user-defined category."""

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    color: str = Field(default=CATEGORY_PALETTE[0], pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: str = Field(default="Default")
    is_custom: bool = True
