"""The public face of the multi-currency ledger: calls, currency traits and holds."""

from __future__ import annotations

from typing import Hashable

from .ledger import Ledger
from .system import Origin, ensure_root, ensure_signed
from .types import (
    AccountData,
    ArithmeticFault,
    ArithmeticKind,
    BalanceLock,
    BalanceSet,
    BalanceStatus,
    DepositConsequence,
    Error,
    ExistenceRequirement,
    RepatriatedReserve,
    Reserved,
    TokensError,
    Transfer,
    Unreserved,
    WithdrawConsequence,
)


class Tokens(Ledger):
    """A multi-currency ledger with signed calls, reserves, locks and holds."""

    # ------------------------------------------------------------ dispatchables

    def transfer(self, origin: Origin, dest: Hashable, currency_id: Hashable, amount: int) -> None:
        """Transfer free balance from the signer to ``dest``, allowing death."""
        from_ = ensure_signed(origin)
        self.do_transfer(currency_id, from_, dest, amount, ExistenceRequirement.ALLOW_DEATH)
        self.system.deposit_event(Transfer(currency_id=currency_id, from_=from_, to=dest, amount=amount))

    def transfer_all(self, origin: Origin, dest: Hashable, currency_id: Hashable, keep_alive: bool) -> None:
        """Transfer everything the signer can spend to ``dest``."""
        from_ = ensure_signed(origin)
        reducible = self.reducible_balance(currency_id, from_, keep_alive)
        self.fungible_transfer(currency_id, from_, dest, reducible, keep_alive)
        self.system.deposit_event(Transfer(currency_id=currency_id, from_=from_, to=dest, amount=reducible))

    def transfer_keep_alive(self, origin: Origin, dest: Hashable, currency_id: Hashable, amount: int) -> None:
        """Like :meth:`transfer`, but refuse to kill the sender's account."""
        from_ = ensure_signed(origin)
        self.do_transfer(currency_id, from_, dest, amount, ExistenceRequirement.KEEP_ALIVE)
        self.system.deposit_event(Transfer(currency_id=currency_id, from_=from_, to=dest, amount=amount))

    def force_transfer(
        self, origin: Origin, source: Hashable, dest: Hashable, currency_id: Hashable, amount: int
    ) -> None:
        """Root-only transfer from any ``source`` to ``dest``."""
        ensure_root(origin)
        self.do_transfer(currency_id, source, dest, amount, ExistenceRequirement.ALLOW_DEATH)
        self.system.deposit_event(Transfer(currency_id=currency_id, from_=source, to=dest, amount=amount))

    def set_balance(
        self, origin: Origin, who: Hashable, currency_id: Hashable, new_free: int, new_reserved: int
    ) -> None:
        """Root-only: set both balances of ``who``, adjusting the total issuance."""
        ensure_root(origin)

        def apply(account: AccountData, _existed: bool) -> None:
            new_total = self._checked_add(new_free, new_reserved)
            if new_total < self._ed(currency_id):
                free, reserved, new_total = 0, 0, 0
            else:
                free, reserved = new_free, new_reserved
            old_total = account.total()
            account.free = free
            account.reserved = reserved

            issuance = self.total_issuance(currency_id)
            if new_total > old_total:
                self._total_issuance[currency_id] = self._checked_add(issuance, new_total - old_total)
            elif new_total < old_total:
                if issuance < old_total - new_total:
                    raise ArithmeticFault(ArithmeticKind.UNDERFLOW)
                self._total_issuance[currency_id] = issuance - (old_total - new_total)

            self.system.deposit_event(BalanceSet(currency_id=currency_id, who=who, free=free, reserved=reserved))

        self.try_mutate_account(who, currency_id, apply)

    # ---------------------------------------------------------- multi-currency

    def minimum_balance(self, currency_id: Hashable) -> int:
        """The existential deposit of ``currency_id``."""
        return self._ed(currency_id)

    def total_balance(self, currency_id: Hashable, who: Hashable) -> int:
        """Free plus reserved balance of ``who``."""
        return self.accounts(who, currency_id).total()

    def free_balance(self, currency_id: Hashable, who: Hashable) -> int:
        """Free balance of ``who``."""
        return self.accounts(who, currency_id).free

    def transfer_free(self, currency_id: Hashable, from_: Hashable, to: Hashable, amount: int) -> None:
        """Transfer free balance, allowing the sender to die."""
        self.do_transfer(currency_id, from_, to, amount, ExistenceRequirement.ALLOW_DEATH)

    def deposit(self, currency_id: Hashable, who: Hashable, amount: int) -> None:
        """Mint ``amount`` into the free balance, possibly creating the account."""
        self.do_deposit(currency_id, who, amount, False, True)

    def withdraw(self, currency_id: Hashable, who: Hashable, amount: int) -> None:
        """Burn ``amount`` from the free balance, allowing the account to die."""
        self.do_withdraw(currency_id, who, amount, ExistenceRequirement.ALLOW_DEATH, True)

    def can_slash(self, currency_id: Hashable, who: Hashable, value: int) -> bool:
        """Whether ``value`` could be slashed from the free balance alone."""
        if value == 0:
            return True
        return self.free_balance(currency_id, who) >= value

    def slash(self, currency_id: Hashable, who: Hashable, amount: int) -> int:
        """Slash free balance first, then reserved; return what could not be slashed."""
        if amount == 0:
            return amount
        account = self.accounts(who, currency_id)
        free_slashed = min(account.free, amount)
        remaining = amount - free_slashed

        if free_slashed:
            self.set_free_balance(currency_id, who, account.free - free_slashed)

        if remaining:
            reserved_slashed = min(account.reserved, remaining)
            remaining -= reserved_slashed
            self.set_reserved_balance(currency_id, who, account.reserved - reserved_slashed)

        slashed = amount - remaining
        self._mutate_issuance(currency_id, lambda v: v - slashed)
        return remaining

    def update_balance(self, currency_id: Hashable, who: Hashable, by_amount: int) -> None:
        """Deposit a positive ``by_amount`` or withdraw a negative one."""
        if by_amount == 0:
            return
        if by_amount == self.config.min_amount:
            by_amount_abs = self.config.max_amount
        else:
            by_amount_abs = abs(by_amount)
        if by_amount_abs > self.config.max_balance:
            raise TokensError(Error.AMOUNT_INTO_BALANCE_FAILED)
        if by_amount > 0:
            self.deposit(currency_id, who, by_amount_abs)
        else:
            self.withdraw(currency_id, who, by_amount_abs)

    # ------------------------------------------------------------------ locks

    def set_lock(self, lock_id: bytes, currency_id: Hashable, who: Hashable, amount: int) -> None:
        """Set or replace the lock ``lock_id``; a no-op for a zero amount."""
        if amount == 0:
            return
        new_lock: BalanceLock | None = BalanceLock(id=lock_id, amount=amount)
        locks = []
        for lock in self.locks(who, currency_id):
            if lock.id == lock_id:
                if new_lock is not None:
                    locks.append(new_lock)
                    new_lock = None
            else:
                locks.append(lock)
        if new_lock is not None:
            locks.append(new_lock)
        self.update_locks(currency_id, who, locks)

    def extend_lock(self, lock_id: bytes, currency_id: Hashable, who: Hashable, amount: int) -> None:
        """Raise the lock ``lock_id`` to at least ``amount``, creating it if needed."""
        if amount == 0:
            return
        pending = True
        locks = []
        for lock in self.locks(who, currency_id):
            if lock.id == lock_id:
                if pending:
                    locks.append(BalanceLock(id=lock.id, amount=max(lock.amount, amount)))
                    pending = False
            else:
                locks.append(lock)
        if pending:
            locks.append(BalanceLock(id=lock_id, amount=amount))
        self.update_locks(currency_id, who, locks)

    def remove_lock(self, lock_id: bytes, currency_id: Hashable, who: Hashable) -> None:
        """Remove the lock ``lock_id``."""
        locks = [lock for lock in self.locks(who, currency_id) if lock.id != lock_id]
        self.update_locks(currency_id, who, locks)

    # -------------------------------------------------------------- reserves

    def can_reserve(self, currency_id: Hashable, who: Hashable, value: int) -> bool:
        """Whether ``value`` could be moved from free to reserved."""
        if value == 0:
            return True
        try:
            self.ensure_can_withdraw(currency_id, who, value)
        except TokensError:
            return False
        return True

    def slash_reserved(self, currency_id: Hashable, who: Hashable, value: int) -> int:
        """Slash reserved balance; return what could not be slashed."""
        if value == 0:
            return value
        reserved = self.reserved_balance(currency_id, who)
        actual = min(reserved, value)
        self.set_reserved_balance(currency_id, who, reserved - actual)
        self._mutate_issuance(currency_id, lambda v: v - actual)
        return value - actual

    def reserved_balance(self, currency_id: Hashable, who: Hashable) -> int:
        """Reserved balance of ``who``."""
        return self.accounts(who, currency_id).reserved

    def reserve(self, currency_id: Hashable, who: Hashable, value: int) -> None:
        """Move ``value`` from free to reserved."""
        if value == 0:
            return
        self.ensure_can_withdraw(currency_id, who, value)

        def apply(account: AccountData, _existed: bool) -> None:
            account.free -= value
            account.reserved += value
            self.system.deposit_event(Reserved(currency_id=currency_id, who=who, amount=value))

        self.mutate_account(who, currency_id, apply)

    def unreserve(self, currency_id: Hashable, who: Hashable, value: int) -> int:
        """Move up to ``value`` from reserved to free; return what was left over."""
        if value == 0:
            return value

        def apply(account: AccountData, _existed: bool) -> int:
            actual = min(account.reserved, value)
            account.reserved -= actual
            account.free += actual
            self.system.deposit_event(Unreserved(currency_id=currency_id, who=who, amount=actual))
            return value - actual

        return self.mutate_account(who, currency_id, apply)

    def repatriate_reserved(
        self,
        currency_id: Hashable,
        slashed: Hashable,
        beneficiary: Hashable,
        value: int,
        status: BalanceStatus,
    ) -> int:
        """Move reserved funds of ``slashed`` to ``beneficiary``; return the shortfall."""
        if value == 0:
            return value
        if slashed == beneficiary:
            if status is BalanceStatus.FREE:
                return self.unreserve(currency_id, slashed, value)
            return max(0, value - self.reserved_balance(currency_id, slashed))

        from_account = self.accounts(slashed, currency_id)
        to_account = self.accounts(beneficiary, currency_id)
        actual = min(from_account.reserved, value)
        if status is BalanceStatus.FREE:
            self.set_free_balance(currency_id, beneficiary, to_account.free + actual)
        else:
            self.set_reserved_balance(currency_id, beneficiary, to_account.reserved + actual)
        self.set_reserved_balance(currency_id, slashed, from_account.reserved - actual)
        self.system.deposit_event(
            RepatriatedReserve(currency_id=currency_id, from_=slashed, to=beneficiary, amount=actual, status=status)
        )
        return value - actual

    # -------------------------------------------------------------- fungibles

    def balance(self, asset_id: Hashable, who: Hashable) -> int:
        """Total balance of ``who``."""
        return self.accounts(who, asset_id).total()

    def reducible_balance(self, asset_id: Hashable, who: Hashable, keep_alive: bool) -> int:
        """How much of the free balance could be taken away."""
        account = self.accounts(who, asset_id)
        liquid = max(0, account.free - account.frozen)
        if self.system.can_dec_provider(who) and not keep_alive:
            return liquid
        must_remain = max(0, self._ed(asset_id) - (account.total() - liquid))
        return max(0, liquid - must_remain)

    def can_deposit(self, asset_id: Hashable, who: Hashable, amount: int) -> DepositConsequence:
        """Whether ``amount`` could be minted into ``who``."""
        return self.deposit_consequence(who, asset_id, amount, self.accounts(who, asset_id))

    def can_withdraw(self, asset_id: Hashable, who: Hashable, amount: int) -> WithdrawConsequence:
        """Whether ``amount`` could be burnt from ``who``."""
        return self.withdraw_consequence(who, asset_id, amount, self.accounts(who, asset_id))

    def mint_into(self, asset_id: Hashable, who: Hashable, amount: int) -> None:
        """Mint ``amount`` into ``who`` after checking the deposit consequence."""
        self.can_deposit(asset_id, who, amount).into_result()
        self.do_deposit(asset_id, who, amount, False, True)

    def burn_from(self, asset_id: Hashable, who: Hashable, amount: int) -> int:
        """Burn ``amount`` plus any dust it would leave; return what was burnt."""
        extra = self.can_withdraw(asset_id, who, amount).into_result()
        actual = amount + extra
        self.do_withdraw(asset_id, who, actual, ExistenceRequirement.ALLOW_DEATH, True)
        return actual

    def fungible_transfer(
        self, asset_id: Hashable, source: Hashable, dest: Hashable, amount: int, keep_alive: bool
    ) -> int:
        """Transfer ``amount`` and return it."""
        requirement = ExistenceRequirement.KEEP_ALIVE if keep_alive else ExistenceRequirement.ALLOW_DEATH
        self.do_transfer(asset_id, source, dest, amount, requirement)
        return amount

    def set_free(self, asset_id: Hashable, who: Hashable, amount: int) -> None:
        """Set the free balance without touching the issuance."""
        self.set_free_balance(asset_id, who, amount)

    def set_total_issuance(self, asset_id: Hashable, amount: int) -> None:
        """Overwrite the total issuance."""
        self._total_issuance[asset_id] = amount

    def balance_on_hold(self, asset_id: Hashable, who: Hashable) -> int:
        """Balance held (reserved) for ``who``."""
        return self.accounts(who, asset_id).reserved

    def can_hold(self, asset_id: Hashable, who: Hashable, amount: int) -> bool:
        """Whether ``amount`` could be held while keeping the minimum free."""
        account = self.accounts(who, asset_id)
        limit = self.config.max_balance
        min_balance = max(self._ed(asset_id), account.frozen)
        if account.reserved + amount > limit:
            return False
        required_free = min_balance + amount
        if required_free > limit:
            return False
        return account.free >= required_free

    def hold(self, asset_id: Hashable, who: Hashable, amount: int) -> None:
        """Move ``amount`` from free to held."""
        if amount == 0:
            return
        if not self.can_reserve(asset_id, who, amount):
            raise TokensError(Error.BALANCE_TOO_LOW)

        def apply(account: AccountData, _existed: bool) -> None:
            account.free -= amount
            account.reserved += amount

        self.mutate_account(who, asset_id, apply)

    def release(self, asset_id: Hashable, who: Hashable, amount: int, best_effort: bool) -> int:
        """Release held funds back to free; return the amount released."""
        if amount == 0:
            return amount

        def apply(account: AccountData, _existed: bool) -> int:
            new_free = min(account.free + min(amount, account.reserved), self.config.max_balance)
            actual = new_free - account.free
            if not best_effort and actual != amount:
                raise TokensError(Error.BALANCE_TOO_LOW)
            account.free = new_free
            account.reserved = max(0, account.reserved - actual)
            return actual

        return self.try_mutate_account(who, asset_id, apply)

    def transfer_held(
        self,
        asset_id: Hashable,
        source: Hashable,
        dest: Hashable,
        amount: int,
        best_effort: bool,
        on_hold: bool,
    ) -> int:
        """Move held funds to ``dest``, held or free; return the amount moved."""
        status = BalanceStatus.RESERVED if on_hold else BalanceStatus.FREE
        if amount > self.balance_on_hold(asset_id, source) and not best_effort:
            raise TokensError(Error.BALANCE_TOO_LOW)
        gap = self.repatriate_reserved(asset_id, source, dest, amount, status)
        return max(0, amount - gap)

    def transfer_all_currencies(self, source: Hashable, dest: Hashable) -> None:
        """Transfer every free balance of ``source`` to ``dest``, all or nothing."""
        with self.transactional():
            for currency_id, account in self._iter_accounts(source):
                self.do_transfer(currency_id, source, dest, account.free, ExistenceRequirement.ALLOW_DEATH)