"""Ledger exceptions."""


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class LedgerReadError(LedgerError):
    """Stored data could not be fetched or decoded."""

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__("Failed to fetch data")


class LedgerWriteError(LedgerError):
    """Data could not be saved."""

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__("Failed to save data")


class LedgerDeleteError(LedgerError):
    """Data could not be deleted."""

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__("Failed to delete data")
