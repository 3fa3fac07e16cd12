"""Tokens recording funds created or destroyed without a matching entry.

An imbalance settles against the total issuance of its currency when it is
dropped. Nothing settles it implicitly: call :meth:`Imbalance.drop` or use
the imbalance as a context manager.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Hashable

if TYPE_CHECKING:
    from .ledger import Ledger


class Imbalance:
    """An amount of one currency awaiting settlement against the issuance.

    Operations that take an imbalance by value (``split``, ``merge``,
    ``offset`` and friends) consume it: a consumed imbalance holds nothing,
    settles nothing when dropped, and refuses further operations.
    """

    def __init__(self, ledger: "Ledger", currency_id: Hashable, amount: int = 0) -> None:
        if amount < 0:
            raise ValueError("an imbalance cannot be negative")
        self.ledger = ledger
        self.currency_id = currency_id
        self._amount = amount
        self._live = True

    @classmethod
    def zero(cls, ledger: "Ledger", currency_id: Hashable) -> "Imbalance":
        """An empty imbalance."""
        return cls(ledger, currency_id, 0)

    # ----------------------------------------------------------------- helpers

    def _check_live(self) -> None:
        if not self._live:
            raise RuntimeError("imbalance already consumed")

    def _forget(self) -> None:
        self._live = False
        self._amount = 0

    def _spawn(self, amount: int) -> "Imbalance":
        return type(self)(self.ledger, self.currency_id, amount)

    def _opposite_type(self) -> type["Imbalance"]:
        raise NotImplementedError

    def _settle(self) -> None:
        raise NotImplementedError

    def _check_same_kind(self, other: "Imbalance", kind: type["Imbalance"]) -> None:
        self._check_live()
        other._check_live()
        if type(other) is not kind:
            raise TypeError(f"expected {kind.__name__}, got {type(other).__name__}")
        if other.ledger is not self.ledger or other.currency_id != self.currency_id:
            raise ValueError("imbalances belong to different currencies")

    def _saturating_add(self, a: int, b: int) -> int:
        return min(a + b, self.ledger.config.max_balance)

    # -------------------------------------------------------------- operations

    def peek(self) -> int:
        """The amount held, without consuming the imbalance."""
        return self._amount

    def drop_zero(self) -> bool:
        """Consume the imbalance if it is empty; return whether it was."""
        self._check_live()
        if self._amount == 0:
            self._forget()
            return True
        return False

    def try_drop(self) -> bool:
        """Same as :meth:`drop_zero`."""
        return self.drop_zero()

    def split(self, amount: int) -> tuple["Imbalance", "Imbalance"]:
        """Consume this imbalance into one of at most ``amount`` and the rest."""
        self._check_live()
        first = min(self._amount, amount)
        second = self._amount - first
        self._forget()
        return self._spawn(first), self._spawn(second)

    def merge(self, other: "Imbalance") -> "Imbalance":
        """Absorb ``other`` into this imbalance and return it."""
        self.subsume(other)
        return self

    def subsume(self, other: "Imbalance") -> None:
        """Absorb ``other`` into this imbalance, consuming ``other``."""
        self._check_same_kind(other, type(self))
        self._amount = self._saturating_add(self._amount, other._amount)
        other._forget()

    def offset(self, other: "Imbalance") -> "Imbalance | None":
        """Cancel against an opposite imbalance, consuming both.

        Returns what is left: an imbalance of this kind, of the opposite
        kind, or None when both were equal.
        """
        self._check_same_kind(other, self._opposite_type())
        a, b = self._amount, other._amount
        self._forget()
        other._forget()
        if a > b:
            return self._spawn(a - b)
        if b > a:
            return other._spawn(b - a)
        return None

    def drop(self) -> None:
        """Settle against the total issuance; does nothing once consumed."""
        if not self._live:
            return
        self._settle()
        self._forget()

    def __enter__(self) -> "Imbalance":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.drop()
        return False

    def __repr__(self) -> str:
        state = "" if self._live else ", consumed"
        return f"{type(self).__name__}(currency_id={self.currency_id!r}, amount={self._amount}{state})"


class PositiveImbalance(Imbalance):
    """Funds were created; dropping it raises the total issuance."""

    def _opposite_type(self) -> type[Imbalance]:
        return NegativeImbalance

    def _settle(self) -> None:
        amount = self._amount
        self.ledger._mutate_issuance(self.currency_id, lambda v: self._saturating_add(v, amount))


class NegativeImbalance(Imbalance):
    """Funds were destroyed; dropping it lowers the total issuance."""

    def _opposite_type(self) -> type[Imbalance]:
        return PositiveImbalance

    def _settle(self) -> None:
        amount = self._amount
        self.ledger._mutate_issuance(self.currency_id, lambda v: max(v - amount, 0))