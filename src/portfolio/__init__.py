"""Crypto portfolio package."""

from src.portfolio.store import PortfolioStore, value_portfolio

__all__ = ["PortfolioStore", "value_portfolio"]
