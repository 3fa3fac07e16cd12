"""In-memory multi-currency token ledger with locks, reserves, existential deposits and imbalances."""

__version__ = "0.1.0"
__all__ = ["adapter", "combiner", "imbalances", "ledger", "system", "tokens", "types"]