"""Account storage and the core balance operations of the multi-currency ledger."""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Container, Hashable, Iterable, Iterator, Mapping, Protocol, TypeVar

from .system import System
from .types import (
    AccountData,
    ArithmeticFault,
    ArithmeticKind,
    BalanceLock,
    DepositConsequence,
    DispatchError,
    DustLost,
    Endowed,
    Error,
    ExistenceRequirement,
    TokensError,
    WithdrawConsequence,
    WithdrawConsequenceKind,
)

log = logging.getLogger(__name__)

R = TypeVar("R")


class OnDust(Protocol):
    """Handler for the dust left by an account about to be reaped."""

    def on_dust(self, ledger: "Ledger", who: Hashable, currency_id: Hashable, amount: int) -> None:
        ...


@dataclass(frozen=True)
class TransferDust:
    """Move dust to a fixed account; failures leave the dust in place."""

    account: Hashable

    def on_dust(self, ledger: "Ledger", who: Hashable, currency_id: Hashable, amount: int) -> None:
        try:
            ledger.do_transfer(currency_id, who, self.account, amount, ExistenceRequirement.ALLOW_DEATH)
        except DispatchError:
            pass


@dataclass(frozen=True)
class BurnDust:
    """Burn dust, lowering the total issuance; failures leave it in place."""

    def on_dust(self, ledger: "Ledger", who: Hashable, currency_id: Hashable, amount: int) -> None:
        try:
            ledger.do_withdraw(currency_id, who, amount, ExistenceRequirement.ALLOW_DEATH, True)
        except DispatchError:
            pass


@dataclass
class TokensConfig:
    """Parameters of a ledger.

    ``existential_deposits`` maps a currency to the minimum total an account
    must hold to exist; currencies not listed have a minimum of zero.
    Accounts in ``dust_removal_whitelist`` are never reaped for dust.
    """

    existential_deposits: Mapping[Hashable, int] = field(default_factory=dict)
    on_dust: OnDust = field(default_factory=BurnDust)
    max_locks: int = 50
    dust_removal_whitelist: Container[Hashable] = frozenset()
    max_balance: int = 2**64 - 1
    min_amount: int = -(2**63)
    max_amount: int = 2**63 - 1


class Ledger:
    """Balances, locks and total issuance for many currencies."""

    def __init__(self, config: TokensConfig, system: System) -> None:
        self.config = config
        self.system = system
        self._total_issuance: dict[Hashable, int] = {}
        self._accounts: dict[tuple[Hashable, Hashable], AccountData] = {}
        self._locks: dict[tuple[Hashable, Hashable], list[BalanceLock]] = {}

    # ----------------------------------------------------------------- helpers

    def _ed(self, currency_id: Hashable) -> int:
        return self.config.existential_deposits.get(currency_id, 0)

    def _whitelisted(self, who: Hashable) -> bool:
        return who in self.config.dust_removal_whitelist

    def _checked_add(self, a: int, b: int) -> int:
        result = a + b
        if result > self.config.max_balance:
            raise ArithmeticFault(ArithmeticKind.OVERFLOW)
        return result

    def _would_be_dead(self, account: AccountData, ed: int, who: Hashable) -> bool:
        total = account.total()
        if total >= ed:
            return False
        if total == 0:
            return True
        # A non-whitelisted account below ED is eventually reaped as dust.
        return not self._whitelisted(who)

    def _mutate_issuance(self, currency_id: Hashable, f: Callable[[int], int]) -> None:
        self._total_issuance[currency_id] = f(self.total_issuance(currency_id))

    def _iter_accounts(self, who: Hashable) -> Iterator[tuple[Hashable, AccountData]]:
        """Currencies held by ``who`` with a copy of each account, in storage order."""
        entries = [(currency, replace(data)) for (owner, currency), data in self._accounts.items() if owner == who]
        yield from entries

    # ----------------------------------------------------------------- storage

    def build_genesis(self, balances: Iterable[tuple[Hashable, Hashable, int]]) -> None:
        """Endow accounts with initial free balances."""
        balances = list(balances)
        if len({(who, currency) for who, currency, _ in balances}) != len(balances):
            raise ValueError("duplicate endowed accounts in genesis.")
        for who, currency_id, initial in balances:
            if initial < self._ed(currency_id):
                raise ValueError("the balance of any account should always be more than existential deposit.")

            def set_free(account: AccountData, _existed: bool, initial: int = initial) -> None:
                account.free = initial

            self.mutate_account(who, currency_id, set_free)
            issuance = self.total_issuance(currency_id) + initial
            if issuance > self.config.max_balance:
                raise ValueError("total issuance cannot overflow when building genesis")
            self._total_issuance[currency_id] = issuance

    def total_issuance(self, currency_id: Hashable) -> int:
        """Total amount of ``currency_id`` in existence."""
        return self._total_issuance.get(currency_id, 0)

    def accounts(self, who: Hashable, currency_id: Hashable) -> AccountData:
        """A copy of the account of ``who``, empty if it does not exist."""
        stored = self._accounts.get((who, currency_id))
        return replace(stored) if stored is not None else AccountData()

    def locks(self, who: Hashable, currency_id: Hashable) -> list[BalanceLock]:
        """The locks set on ``who`` for ``currency_id``."""
        return list(self._locks.get((who, currency_id), ()))

    def account_exists(self, who: Hashable, currency_id: Hashable) -> bool:
        """Whether an account entry is stored for ``who`` in ``currency_id``."""
        return (who, currency_id) in self._accounts

    @contextmanager
    def transactional(self) -> Iterator["Ledger"]:
        """Undo every change made inside the block if it raises."""
        saved = copy.deepcopy((self._total_issuance, self._accounts, self._locks, vars(self.system)))
        try:
            yield self
        except Exception:
            self._total_issuance, self._accounts, self._locks, system_state = saved
            vars(self.system).clear()
            vars(self.system).update(system_state)
            raise

    # ------------------------------------------------------------ consequences

    def deposit_consequence(
        self, who: Hashable, currency_id: Hashable, amount: int, account: AccountData
    ) -> DepositConsequence:
        """Whether ``amount`` could be deposited into ``account``."""
        if amount == 0:
            return DepositConsequence.SUCCESS
        limit = self.config.max_balance
        if self.total_issuance(currency_id) + amount > limit:
            return DepositConsequence.OVERFLOW
        new_total = account.total() + amount
        if new_total > limit:
            return DepositConsequence.OVERFLOW
        if new_total < self._ed(currency_id):
            return DepositConsequence.BELOW_MINIMUM
        return DepositConsequence.SUCCESS

    def withdraw_consequence(
        self, who: Hashable, currency_id: Hashable, amount: int, account: AccountData
    ) -> WithdrawConsequence:
        """Whether ``amount`` could be withdrawn from ``account``."""
        if amount == 0:
            return WithdrawConsequence(WithdrawConsequenceKind.SUCCESS)
        if self.total_issuance(currency_id) < amount:
            return WithdrawConsequence(WithdrawConsequenceKind.UNDERFLOW)
        new_total = account.total() - amount
        if new_total < 0:
            return WithdrawConsequence(WithdrawConsequenceKind.NO_FUNDS)

        if new_total < self._ed(currency_id):
            if not self.system.can_dec_provider(who):
                return WithdrawConsequence(WithdrawConsequenceKind.WOULD_DIE)
            success = WithdrawConsequence(WithdrawConsequenceKind.REDUCED_TO_ZERO, new_total)
        else:
            success = WithdrawConsequence(WithdrawConsequenceKind.SUCCESS)

        new_free = account.free - amount
        if new_free < 0:
            return WithdrawConsequence(WithdrawConsequenceKind.NO_FUNDS)
        if new_free < account.frozen:
            return WithdrawConsequence(WithdrawConsequenceKind.FROZEN)
        return success

    def ensure_can_withdraw(self, currency_id: Hashable, who: Hashable, amount: int) -> None:
        """Raise unless ``amount`` may leave the free balance of ``who``."""
        if amount == 0:
            return
        account = self.accounts(who, currency_id)
        new_balance = account.free - amount
        if new_balance < 0:
            raise TokensError(Error.BALANCE_TOO_LOW)
        if new_balance < account.frozen:
            raise TokensError(Error.LIQUIDITY_RESTRICTIONS)

    # --------------------------------------------------------------- mutation

    def try_mutate_account(
        self, who: Hashable, currency_id: Hashable, f: Callable[[AccountData, bool], R]
    ) -> R:
        """Apply ``f`` to the account and store it, handling creation and reaping.

        ``f`` receives a working copy and whether the account existed; if it
        raises, nothing is stored.
        """
        key = (who, currency_id)
        stored = self._accounts.get(key)
        existed = stored is not None
        account = replace(stored) if existed else AccountData()
        result = f(account, existed)

        maybe_endowed = None if existed else account.free
        maybe_dust = None
        total = account.total()
        if total < self._ed(currency_id):
            # A zero total is reaped; a non-zero total below ED is dust.
            exists = total != 0
            if exists and not self._whitelisted(who):
                maybe_dust = total
        else:
            exists = True

        if exists:
            self._accounts[key] = account
        else:
            self._accounts.pop(key, None)

        if existed and not exists:
            try:
                self.system.dec_providers(who)
            except DispatchError:
                pass
        elif not existed and exists:
            self.system.inc_providers(who)

        if maybe_endowed is not None:
            self.system.deposit_event(Endowed(currency_id=currency_id, who=who, amount=maybe_endowed))

        if maybe_dust is not None:
            self.config.on_dust.on_dust(self, who, currency_id, maybe_dust)
            self.system.deposit_event(DustLost(currency_id=currency_id, who=who, amount=maybe_dust))

        return result

    def mutate_account(self, who: Hashable, currency_id: Hashable, f: Callable[[AccountData, bool], R]) -> R:
        """Like :meth:`try_mutate_account`, for changes that cannot fail."""
        return self.try_mutate_account(who, currency_id, f)

    def set_free_balance(self, currency_id: Hashable, who: Hashable, amount: int) -> None:
        """Set the free balance, leaving the total issuance untouched."""

        def apply(account: AccountData, _existed: bool) -> None:
            account.free = amount

        self.mutate_account(who, currency_id, apply)

    def set_reserved_balance(self, currency_id: Hashable, who: Hashable, amount: int) -> None:
        """Set the reserved balance, leaving the total issuance untouched."""

        def apply(account: AccountData, _existed: bool) -> None:
            account.reserved = amount

        self.mutate_account(who, currency_id, apply)

    def update_locks(self, currency_id: Hashable, who: Hashable, locks: Iterable[BalanceLock]) -> None:
        """Replace the locks of ``who`` and recompute the frozen amount."""
        locks = list(locks)

        def apply(account: AccountData, _existed: bool) -> None:
            account.frozen = max((lock.amount for lock in locks), default=0)

        self.mutate_account(who, currency_id, apply)

        key = (who, currency_id)
        existed = key in self._locks
        if not locks:
            self._locks.pop(key, None)
            if existed:
                self.system.dec_consumers(who)
            return

        if len(locks) > self.config.max_locks:
            raise TokensError(Error.MAX_LOCKS_EXCEEDED)
        self._locks[key] = locks
        if not existed:
            try:
                self.system.inc_consumers(who)
            except DispatchError:
                log.warning(
                    "Warning: Attempt to introduce lock consumer reference, yet no providers. "
                    "This is unexpected but should be safe."
                )

    def do_transfer(
        self,
        currency_id: Hashable,
        from_: Hashable,
        to: Hashable,
        amount: int,
        existence_requirement: ExistenceRequirement,
    ) -> None:
        """Move free balance between accounts; a no-op for zero or self transfers."""
        if amount == 0 or from_ == to:
            return

        def mutate_to(to_account: AccountData, _existed: bool) -> None:
            def mutate_from(from_account: AccountData, _existed: bool) -> None:
                if from_account.free < amount:
                    raise TokensError(Error.BALANCE_TOO_LOW)
                from_account.free -= amount
                to_account.free = self._checked_add(to_account.free, amount)

                ed = self._ed(currency_id)
                if to_account.total() < ed and not self._whitelisted(to):
                    raise TokensError(Error.EXISTENTIAL_DEPOSIT)

                self.ensure_can_withdraw(currency_id, from_, amount)

                allow_death = (
                    existence_requirement is ExistenceRequirement.ALLOW_DEATH
                    and self.system.can_dec_provider(from_)
                )
                if not allow_death and self._would_be_dead(from_account, ed, from_):
                    raise TokensError(Error.KEEP_ALIVE)

            self.try_mutate_account(from_, currency_id, mutate_from)

        self.try_mutate_account(to, currency_id, mutate_to)

    def do_withdraw(
        self,
        currency_id: Hashable,
        who: Hashable,
        amount: int,
        existence_requirement: ExistenceRequirement,
        change_total_issuance: bool,
    ) -> None:
        """Take ``amount`` from the free balance, optionally lowering the issuance."""
        if amount == 0:
            return

        def apply(account: AccountData, _existed: bool) -> None:
            self.ensure_can_withdraw(currency_id, who, amount)
            previous_total = account.total()
            account.free -= amount

            ed = self._ed(currency_id)
            would_be_dead = self._would_be_dead(account, ed, who)
            would_kill = would_be_dead and (previous_total >= ed or previous_total != 0)
            if existence_requirement is not ExistenceRequirement.ALLOW_DEATH and would_kill:
                raise TokensError(Error.KEEP_ALIVE)

            if change_total_issuance:
                self._mutate_issuance(currency_id, lambda v: v - amount)

        self.try_mutate_account(who, currency_id, apply)

    def do_deposit(
        self,
        currency_id: Hashable,
        who: Hashable,
        amount: int,
        require_existed: bool,
        change_total_issuance: bool,
    ) -> None:
        """Add ``amount`` to the free balance, optionally raising the issuance."""
        if amount == 0:
            return

        def apply(account: AccountData, existed: bool) -> None:
            if require_existed:
                if not existed:
                    raise TokensError(Error.DEAD_ACCOUNT)
            elif not (amount >= self._ed(currency_id) or existed or self._whitelisted(who)):
                raise TokensError(Error.EXISTENTIAL_DEPOSIT)

            new_total_issuance = self._checked_add(self.total_issuance(currency_id), amount)
            if change_total_issuance:
                self._total_issuance[currency_id] = new_total_issuance
            account.free += amount

        self.try_mutate_account(who, currency_id, apply)


__all__: list[Any] = ["BurnDust", "Ledger", "OnDust", "TokensConfig", "TransferDust"]