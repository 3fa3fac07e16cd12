"""Single-currency views with balance conversion, and routing between them.

A :class:`Mapper` presents one currency of a multi-currency ledger as a
single currency whose balances are converted on the way in and out. A
:class:`Combiner` routes requests for some assets to a single-currency
implementation and the rest to a multi-currency one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Container, Hashable

from .types import DepositConsequence, WithdrawConsequence, WithdrawConsequenceKind


@dataclass(frozen=True)
class ConvertBalance:
    """A pair of conversions between inner and outer balances of an asset.

    ``forward`` turns an inner balance into an outer one and ``backward``
    does the reverse; both also receive the asset id.
    """

    forward: Callable[[int, Hashable], int]
    backward: Callable[[int, Hashable], int]

    def convert_balance(self, amount: int, asset_id: Hashable) -> int:
        """Convert an inner balance into the outer unit."""
        return self.forward(amount, asset_id)

    def convert_balance_back(self, amount: int, asset_id: Hashable) -> int:
        """Convert an outer balance back into the inner unit."""
        return self.backward(amount, asset_id)


class Mapper:
    """One currency of a multi-currency ledger, seen through a conversion."""

    def __init__(self, inner: Any, converter: ConvertBalance, currency_id: Hashable) -> None:
        self.inner = inner
        self.converter = converter
        self.currency_id = currency_id

    def _out(self, amount: int) -> int:
        return self.converter.convert_balance(amount, self.currency_id)

    def _in(self, amount: int) -> int:
        return self.converter.convert_balance_back(amount, self.currency_id)

    def total_issuance(self) -> int:
        """Converted total issuance."""
        return self._out(self.inner.total_issuance(self.currency_id))

    def minimum_balance(self) -> int:
        """Converted existential deposit."""
        return self._out(self.inner.minimum_balance(self.currency_id))

    def balance(self, who: Hashable) -> int:
        """Converted total balance of ``who``."""
        return self._out(self.inner.balance(self.currency_id, who))

    def reducible_balance(self, who: Hashable, keep_alive: bool) -> int:
        """Converted reducible balance of ``who``."""
        return self._out(self.inner.reducible_balance(self.currency_id, who, keep_alive))

    def can_deposit(self, who: Hashable, amount: int) -> DepositConsequence:
        """Whether the outer ``amount`` could be deposited."""
        return self.inner.can_deposit(self.currency_id, who, self._in(amount))

    def can_withdraw(self, who: Hashable, amount: int) -> WithdrawConsequence:
        """Whether the outer ``amount`` could be withdrawn; lost dust is converted."""
        result = self.inner.can_withdraw(self.currency_id, who, self._in(amount))
        if result.kind is WithdrawConsequenceKind.REDUCED_TO_ZERO:
            return WithdrawConsequence(WithdrawConsequenceKind.REDUCED_TO_ZERO, self._out(result.amount))
        return result

    def fungible_transfer(self, source: Hashable, dest: Hashable, amount: int, keep_alive: bool) -> int:
        """Transfer the outer ``amount``; return what the inner ledger reports."""
        return self.inner.fungible_transfer(self.currency_id, source, dest, self._in(amount), keep_alive)

    def mint_into(self, dest: Hashable, amount: int) -> None:
        """Mint the outer ``amount`` into ``dest``."""
        self.inner.mint_into(self.currency_id, dest, self._in(amount))

    def burn_from(self, dest: Hashable, amount: int) -> int:
        """Burn the outer ``amount``; return what the inner ledger reports."""
        return self.inner.burn_from(self.currency_id, dest, self._in(amount))


class Combiner:
    """Route assets in ``test_key`` to ``single`` and all others to ``multi``."""

    def __init__(self, test_key: Container[Hashable], single: Any, multi: Any) -> None:
        self.test_key = test_key
        self.single = single
        self.multi = multi

    def _routed(self, asset: Hashable) -> bool:
        return asset in self.test_key

    def total_issuance(self, asset: Hashable) -> int:
        """Total issuance of ``asset``."""
        if self._routed(asset):
            return self.single.total_issuance()
        return self.multi.total_issuance(asset)

    def minimum_balance(self, asset: Hashable) -> int:
        """Existential deposit of ``asset``."""
        if self._routed(asset):
            return self.single.minimum_balance()
        return self.multi.minimum_balance(asset)

    def balance(self, asset: Hashable, who: Hashable) -> int:
        """Total balance of ``who`` in ``asset``."""
        if self._routed(asset):
            return self.single.balance(who)
        return self.multi.balance(asset, who)

    def reducible_balance(self, asset: Hashable, who: Hashable, keep_alive: bool) -> int:
        """Reducible balance of ``who`` in ``asset``."""
        if self._routed(asset):
            return self.single.reducible_balance(who, keep_alive)
        return self.multi.reducible_balance(asset, who, keep_alive)

    def can_deposit(self, asset: Hashable, who: Hashable, amount: int) -> DepositConsequence:
        """Whether ``amount`` of ``asset`` could be deposited."""
        if self._routed(asset):
            return self.single.can_deposit(who, amount)
        return self.multi.can_deposit(asset, who, amount)

    def can_withdraw(self, asset: Hashable, who: Hashable, amount: int) -> WithdrawConsequence:
        """Whether ``amount`` of ``asset`` could be withdrawn."""
        if self._routed(asset):
            return self.single.can_withdraw(who, amount)
        return self.multi.can_withdraw(asset, who, amount)

    def fungible_transfer(
        self, asset: Hashable, source: Hashable, dest: Hashable, amount: int, keep_alive: bool
    ) -> int:
        """Transfer ``amount`` of ``asset``."""
        if self._routed(asset):
            return self.single.fungible_transfer(source, dest, amount, keep_alive)
        return self.multi.fungible_transfer(asset, source, dest, amount, keep_alive)

    def mint_into(self, asset: Hashable, dest: Hashable, amount: int) -> None:
        """Mint ``amount`` of ``asset`` into ``dest``."""
        if self._routed(asset):
            self.single.mint_into(dest, amount)
        else:
            self.multi.mint_into(asset, dest, amount)

    def burn_from(self, asset: Hashable, dest: Hashable, amount: int) -> int:
        """Burn ``amount`` of ``asset`` from ``dest``."""
        if self._routed(asset):
            return self.single.burn_from(dest, amount)
        return self.multi.burn_from(asset, dest, amount)