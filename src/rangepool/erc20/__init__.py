from .ledger import TokenLedger

__all__ = ("TokenLedger",)
