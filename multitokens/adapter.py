"""A single-currency view over the multi-currency ledger, with imbalances."""

from __future__ import annotations

from typing import Hashable

from .imbalances import Imbalance, NegativeImbalance, PositiveImbalance
from .tokens import Tokens
from .types import (
    AccountData,
    BalanceStatus,
    DepositConsequence,
    DispatchError,
    ExistenceRequirement,
    WithdrawConsequence,
    WithdrawReasons,
)


class _Refused(Exception):
    """Internal signal to abandon an account mutation."""


class CurrencyAdapter:
    """Treat one currency of a :class:`Tokens` ledger as a plain currency.

    Operations that create or destroy funds without a matching entry return
    imbalances; the total issuance only changes once they are dropped.
    """

    def __init__(self, tokens: Tokens, currency_id: Hashable) -> None:
        self.tokens = tokens
        self.currency_id = currency_id

    def _positive(self, amount: int) -> PositiveImbalance:
        return PositiveImbalance(self.tokens, self.currency_id, amount)

    def _negative(self, amount: int) -> NegativeImbalance:
        return NegativeImbalance(self.tokens, self.currency_id, amount)

    # --------------------------------------------------------------- currency

    def total_balance(self, who: Hashable) -> int:
        """Free plus reserved balance of ``who``."""
        return self.tokens.total_balance(self.currency_id, who)

    def can_slash(self, who: Hashable, value: int) -> bool:
        """Whether ``value`` could be slashed from the free balance."""
        return self.tokens.can_slash(self.currency_id, who, value)

    def total_issuance(self) -> int:
        """Total amount in existence."""
        return self.tokens.total_issuance(self.currency_id)

    def minimum_balance(self) -> int:
        """The existential deposit."""
        return self.tokens.minimum_balance(self.currency_id)

    def burn(self, amount: int) -> PositiveImbalance:
        """Lower the issuance by up to ``amount``; the imbalance restores it."""
        if amount == 0:
            return self._positive(0)
        issued = self.total_issuance()
        if issued < amount:
            amount = issued
        self.tokens._total_issuance[self.currency_id] = issued - amount
        return self._positive(amount)

    def issue(self, amount: int) -> NegativeImbalance:
        """Raise the issuance by up to ``amount``; the imbalance restores it."""
        if amount == 0:
            return self._negative(0)
        issued = self.total_issuance()
        limit = self.tokens.config.max_balance
        if issued + amount > limit:
            amount = limit - issued
        self.tokens._total_issuance[self.currency_id] = issued + amount
        return self._negative(amount)

    def free_balance(self, who: Hashable) -> int:
        """Free balance of ``who``."""
        return self.tokens.free_balance(self.currency_id, who)

    def ensure_can_withdraw(
        self, who: Hashable, amount: int, reasons: WithdrawReasons, new_balance: int
    ) -> None:
        """Raise unless ``amount`` may leave the free balance; reasons are ignored."""
        self.tokens.ensure_can_withdraw(self.currency_id, who, amount)

    def transfer(
        self, source: Hashable, dest: Hashable, value: int, existence_requirement: ExistenceRequirement
    ) -> None:
        """Move free balance from ``source`` to ``dest``."""
        self.tokens.do_transfer(self.currency_id, source, dest, value, existence_requirement)

    def slash(self, who: Hashable, value: int) -> tuple[NegativeImbalance, int]:
        """Slash free then reserved balance; return the imbalance and the shortfall."""
        if value == 0:
            return self._negative(0), value
        account = self.tokens.accounts(who, self.currency_id)
        free_slashed = min(account.free, value)
        remaining = value - free_slashed

        if free_slashed:
            self.tokens.set_free_balance(self.currency_id, who, account.free - free_slashed)

        if remaining:
            reserved_slashed = min(account.reserved, remaining)
            remaining -= reserved_slashed
            self.tokens.set_reserved_balance(self.currency_id, who, account.reserved - reserved_slashed)
            return self._negative(free_slashed + reserved_slashed), remaining
        return self._negative(value), remaining

    def deposit_into_existing(self, who: Hashable, value: int) -> PositiveImbalance:
        """Add ``value`` to an existing account; raise if it does not exist."""
        self.tokens.do_deposit(self.currency_id, who, value, True, False)
        return self._positive(value)

    def deposit_creating(self, who: Hashable, value: int) -> PositiveImbalance:
        """Add ``value``, possibly creating the account; an empty imbalance on failure."""
        try:
            self.tokens.do_deposit(self.currency_id, who, value, False, False)
        except DispatchError:
            return self._positive(0)
        return self._positive(value)

    def withdraw(
        self, who: Hashable, value: int, reasons: WithdrawReasons, liveness: ExistenceRequirement
    ) -> NegativeImbalance:
        """Take ``value`` from the free balance; raise on failure."""
        self.tokens.do_withdraw(self.currency_id, who, value, liveness, False)
        return self._negative(value)

    def make_free_balance_be(self, who: Hashable, value: int) -> Imbalance:
        """Set the free balance, returning the positive or negative difference."""
        currency_id = self.currency_id
        limit = self.tokens.config.max_balance

        def apply(account: AccountData, existed: bool) -> Imbalance:
            ed = self.tokens.minimum_balance(currency_id)
            if min(value + account.reserved, limit) < ed and not existed:
                raise _Refused
            if account.free <= value:
                imbalance: Imbalance = self._positive(value - account.free)
            else:
                imbalance = self._negative(account.free - value)
            account.free = value
            return imbalance

        try:
            return self.tokens.try_mutate_account(who, currency_id, apply)
        except _Refused:
            return self._positive(0)

    # -------------------------------------------------------------- reservable

    def can_reserve(self, who: Hashable, value: int) -> bool:
        """Whether ``value`` could be reserved."""
        return self.tokens.can_reserve(self.currency_id, who, value)

    def slash_reserved(self, who: Hashable, value: int) -> tuple[NegativeImbalance, int]:
        """Slash reserved balance; the issuance is lowered at once."""
        remaining = self.tokens.slash_reserved(self.currency_id, who, value)
        return self._negative(0), remaining

    def reserved_balance(self, who: Hashable) -> int:
        """Reserved balance of ``who``."""
        return self.tokens.reserved_balance(self.currency_id, who)

    def reserve(self, who: Hashable, value: int) -> None:
        """Move ``value`` from free to reserved."""
        self.tokens.reserve(self.currency_id, who, value)

    def unreserve(self, who: Hashable, value: int) -> int:
        """Move up to ``value`` back to free; return what was left over."""
        return self.tokens.unreserve(self.currency_id, who, value)

    def repatriate_reserved(
        self, slashed: Hashable, beneficiary: Hashable, value: int, status: BalanceStatus
    ) -> int:
        """Move reserved funds to ``beneficiary``; return the shortfall."""
        return self.tokens.repatriate_reserved(self.currency_id, slashed, beneficiary, value, status)

    # ---------------------------------------------------------------- lockable

    def set_lock(self, lock_id: bytes, who: Hashable, amount: int, reasons: WithdrawReasons) -> None:
        """Set a lock; reasons are ignored and failures are swallowed."""
        try:
            self.tokens.set_lock(lock_id, self.currency_id, who, amount)
        except DispatchError:
            pass

    def extend_lock(self, lock_id: bytes, who: Hashable, amount: int, reasons: WithdrawReasons) -> None:
        """Extend a lock; reasons are ignored and failures are swallowed."""
        try:
            self.tokens.extend_lock(lock_id, self.currency_id, who, amount)
        except DispatchError:
            pass

    def remove_lock(self, lock_id: bytes, who: Hashable) -> None:
        """Remove a lock; failures are swallowed."""
        try:
            self.tokens.remove_lock(lock_id, self.currency_id, who)
        except DispatchError:
            pass

    # ---------------------------------------------------------------- fungible

    def balance(self, who: Hashable) -> int:
        """Total balance of ``who``."""
        return self.tokens.balance(self.currency_id, who)

    def reducible_balance(self, who: Hashable, keep_alive: bool) -> int:
        """How much of the free balance could be taken away."""
        return self.tokens.reducible_balance(self.currency_id, who, keep_alive)

    def can_deposit(self, who: Hashable, amount: int) -> DepositConsequence:
        """Whether ``amount`` could be minted into ``who``."""
        return self.tokens.can_deposit(self.currency_id, who, amount)

    def can_withdraw(self, who: Hashable, amount: int) -> WithdrawConsequence:
        """Whether ``amount`` could be burnt from ``who``."""
        return self.tokens.can_withdraw(self.currency_id, who, amount)

    def mint_into(self, who: Hashable, amount: int) -> None:
        """Mint ``amount`` into ``who``."""
        self.tokens.mint_into(self.currency_id, who, amount)

    def burn_from(self, who: Hashable, amount: int) -> int:
        """Burn ``amount`` from ``who``; return what was burnt."""
        return self.tokens.burn_from(self.currency_id, who, amount)

    def fungible_transfer(self, source: Hashable, dest: Hashable, amount: int, keep_alive: bool) -> int:
        """Transfer ``amount`` and return it."""
        return self.tokens.fungible_transfer(self.currency_id, source, dest, amount, keep_alive)

    def set_free(self, who: Hashable, amount: int) -> None:
        """Set the free balance without touching the issuance."""
        self.tokens.set_free(self.currency_id, who, amount)

    def set_total_issuance(self, amount: int) -> None:
        """Overwrite the total issuance."""
        self.tokens.set_total_issuance(self.currency_id, amount)

    def balance_on_hold(self, who: Hashable) -> int:
        """Held balance of ``who``."""
        return self.tokens.balance_on_hold(self.currency_id, who)

    def can_hold(self, who: Hashable, amount: int) -> bool:
        """Whether ``amount`` could be held."""
        return self.tokens.can_hold(self.currency_id, who, amount)

    def hold(self, who: Hashable, amount: int) -> None:
        """Move ``amount`` from free to held."""
        self.tokens.hold(self.currency_id, who, amount)

    def release(self, who: Hashable, amount: int, best_effort: bool) -> int:
        """Release held funds; return the amount released."""
        return self.tokens.release(self.currency_id, who, amount, best_effort)

    def transfer_held(
        self, source: Hashable, dest: Hashable, amount: int, best_effort: bool, on_hold: bool
    ) -> int:
        """Move held funds to ``dest``; return the amount moved."""
        return self.tokens.transfer_held(self.currency_id, source, dest, amount, best_effort, on_hold)