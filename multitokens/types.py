"""Value types, errors and events shared by the multi-currency ledger."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, Flag
from typing import Any, Hashable


class DispatchError(Exception):
    """Base class for every error a ledger operation can report."""


class Error(Enum):
    """Errors raised by the tokens ledger itself."""

    BALANCE_TOO_LOW = "BalanceTooLow"
    AMOUNT_INTO_BALANCE_FAILED = "AmountIntoBalanceFailed"
    LIQUIDITY_RESTRICTIONS = "LiquidityRestrictions"
    MAX_LOCKS_EXCEEDED = "MaxLocksExceeded"
    KEEP_ALIVE = "KeepAlive"
    EXISTENTIAL_DEPOSIT = "ExistentialDeposit"
    DEAD_ACCOUNT = "DeadAccount"


class TokensError(DispatchError):
    """A ledger error carrying one of the :class:`Error` members."""

    def __init__(self, error: Error) -> None:
        super().__init__(error.value)
        self.error = error


class ArithmeticKind(Enum):
    """Kinds of arithmetic failure."""

    UNDERFLOW = "Underflow"
    OVERFLOW = "Overflow"
    DIVISION_BY_ZERO = "DivisionByZero"


class ArithmeticFault(DispatchError):
    """An arithmetic operation would leave the representable range."""

    def __init__(self, kind: ArithmeticKind) -> None:
        super().__init__(kind.value)
        self.kind = kind


class TokenErrorKind(Enum):
    """Kinds of generic token failure."""

    NO_FUNDS = "NoFunds"
    WOULD_DIE = "WouldDie"
    BELOW_MINIMUM = "BelowMinimum"
    CANNOT_CREATE = "CannotCreate"
    UNKNOWN_ASSET = "UnknownAsset"
    FROZEN = "Frozen"
    UNSUPPORTED = "Unsupported"


class TokenFault(DispatchError):
    """A generic token operation failed."""

    def __init__(self, kind: TokenErrorKind) -> None:
        super().__init__(kind.value)
        self.kind = kind


class BadOrigin(DispatchError):
    """The caller is not allowed to perform the operation."""

    def __init__(self, message: str = "BadOrigin") -> None:
        super().__init__(message)


class ExistenceRequirement(Enum):
    """Whether an operation may remove the account it draws from."""

    KEEP_ALIVE = "KeepAlive"
    ALLOW_DEATH = "AllowDeath"


class BalanceStatus(Enum):
    """Which part of a balance funds are moved into."""

    FREE = "Free"
    RESERVED = "Reserved"


class WithdrawReasons(Flag):
    """Reasons for which funds may be withdrawn."""

    TRANSFER = 0b00001
    RESERVE = 0b00010
    FEE = 0b00100
    TIP = 0b01000
    CHARGE = 0b10000

    @classmethod
    def all(cls) -> "WithdrawReasons":
        """Every reason at once."""
        return cls.TRANSFER | cls.RESERVE | cls.FEE | cls.TIP | cls.CHARGE

    @classmethod
    def empty(cls) -> "WithdrawReasons":
        """No reason at all."""
        return cls(0)


class DepositConsequence(Enum):
    """Outcome of checking whether a deposit could go ahead."""

    BELOW_MINIMUM = "BelowMinimum"
    CANNOT_CREATE = "CannotCreate"
    UNKNOWN_ASSET = "UnknownAsset"
    OVERFLOW = "Overflow"
    SUCCESS = "Success"

    def into_result(self) -> None:
        """Return on success, raise the matching error otherwise."""
        if self is DepositConsequence.SUCCESS:
            return None
        if self is DepositConsequence.OVERFLOW:
            raise ArithmeticFault(ArithmeticKind.OVERFLOW)
        raise TokenFault(_DEPOSIT_FAULTS[self])


_DEPOSIT_FAULTS = {
    DepositConsequence.BELOW_MINIMUM: TokenErrorKind.BELOW_MINIMUM,
    DepositConsequence.CANNOT_CREATE: TokenErrorKind.CANNOT_CREATE,
    DepositConsequence.UNKNOWN_ASSET: TokenErrorKind.UNKNOWN_ASSET,
}


class WithdrawConsequenceKind(Enum):
    """Kinds of outcome of checking whether a withdrawal could go ahead."""

    NO_FUNDS = "NoFunds"
    WOULD_DIE = "WouldDie"
    UNKNOWN_ASSET = "UnknownAsset"
    UNDERFLOW = "Underflow"
    OVERFLOW = "Overflow"
    FROZEN = "Frozen"
    REDUCED_TO_ZERO = "ReducedToZero"
    SUCCESS = "Success"


_WITHDRAW_TOKEN_FAULTS = {
    WithdrawConsequenceKind.NO_FUNDS: TokenErrorKind.NO_FUNDS,
    WithdrawConsequenceKind.WOULD_DIE: TokenErrorKind.WOULD_DIE,
    WithdrawConsequenceKind.UNKNOWN_ASSET: TokenErrorKind.UNKNOWN_ASSET,
    WithdrawConsequenceKind.FROZEN: TokenErrorKind.FROZEN,
}

_WITHDRAW_ARITHMETIC_FAULTS = {
    WithdrawConsequenceKind.UNDERFLOW: ArithmeticKind.UNDERFLOW,
    WithdrawConsequenceKind.OVERFLOW: ArithmeticKind.OVERFLOW,
}


@dataclass(frozen=True)
class WithdrawConsequence:
    """Outcome of a withdrawal check.

    ``amount`` is only meaningful for ``REDUCED_TO_ZERO``: the balance that
    would be lost along with the account.
    """

    kind: WithdrawConsequenceKind
    amount: int = 0

    def into_result(self) -> int:
        """Return the extra amount lost on success, raise otherwise."""
        if self.kind is WithdrawConsequenceKind.SUCCESS:
            return 0
        if self.kind is WithdrawConsequenceKind.REDUCED_TO_ZERO:
            return self.amount
        if self.kind in _WITHDRAW_ARITHMETIC_FAULTS:
            raise ArithmeticFault(_WITHDRAW_ARITHMETIC_FAULTS[self.kind])
        raise TokenFault(_WITHDRAW_TOKEN_FAULTS[self.kind])


@dataclass(frozen=True)
class BalanceLock:
    """A lock keeping ``amount`` of the free balance from being withdrawn."""

    id: bytes
    amount: int


@dataclass
class AccountData:
    """Balances held by one account in one currency."""

    free: int = 0
    reserved: int = 0
    frozen: int = 0

    def total(self) -> int:
        """Free plus reserved balance, ignoring what is frozen."""
        return self.free + self.reserved


@dataclass(frozen=True)
class Endowed:
    """An account was created with some free balance."""

    currency_id: Hashable
    who: Hashable
    amount: int


@dataclass(frozen=True)
class DustLost:
    """An account fell below the existential deposit and lost its dust."""

    currency_id: Hashable
    who: Hashable
    amount: int


@dataclass(frozen=True)
class Transfer:
    """A transfer succeeded."""

    currency_id: Hashable
    from_: Hashable
    to: Hashable
    amount: int


@dataclass(frozen=True)
class Reserved:
    """Some balance was moved from free to reserved."""

    currency_id: Hashable
    who: Hashable
    amount: int


@dataclass(frozen=True)
class Unreserved:
    """Some balance was moved from reserved to free."""

    currency_id: Hashable
    who: Hashable
    amount: int


@dataclass(frozen=True)
class RepatriatedReserve:
    """Reserved balance was moved to another account."""

    currency_id: Hashable
    from_: Hashable
    to: Hashable
    amount: int
    status: BalanceStatus


@dataclass(frozen=True)
class BalanceSet:
    """A balance was set by root."""

    currency_id: Hashable
    who: Hashable
    free: int
    reserved: int


Event = Any