"""Account reference counting, origins and the event log."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Hashable

from .types import BadOrigin, DispatchError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Origin:
    """Who is calling: a signed account or root."""

    signer: Hashable | None = None
    is_root: bool = False

    @classmethod
    def signed(cls, who: Hashable) -> "Origin":
        """An origin signed by ``who``."""
        return cls(signer=who)

    @classmethod
    def root(cls) -> "Origin":
        """The root origin."""
        return cls(is_root=True)


def ensure_signed(origin: Origin) -> Hashable:
    """Return the signing account, or raise :class:`BadOrigin`."""
    if origin.is_root or origin.signer is None:
        raise BadOrigin()
    return origin.signer


def ensure_root(origin: Origin) -> None:
    """Raise :class:`BadOrigin` unless ``origin`` is root."""
    if not origin.is_root:
        raise BadOrigin()


@dataclass
class _AccountRefs:
    providers: int = 0
    consumers: int = 0


class System:
    """Reference counts per account and the list of emitted events.

    Events are only recorded once the block number is non-zero, so that
    whatever happens while building the genesis state leaves no trace.
    """

    def __init__(self, block_number: int = 0) -> None:
        self.block_number = block_number
        self._accounts: dict[Hashable, _AccountRefs] = {}
        self._events: list[Any] = []

    def _refs(self, who: Hashable) -> _AccountRefs:
        return self._accounts.get(who, _AccountRefs())

    def inc_providers(self, who: Hashable) -> bool:
        """Add a provider reference; return True if the account was created."""
        refs = self._accounts.setdefault(who, _AccountRefs())
        created = refs.providers == 0
        refs.providers += 1
        return created

    def dec_providers(self, who: Hashable) -> bool:
        """Drop a provider reference; return True if the account was reaped.

        Raises :class:`DispatchError` when the last provider would go while
        consumers remain.
        """
        refs = self._accounts.get(who)
        if refs is None or refs.providers == 0:
            log.error("Logic error: unexpected underflow in reducing provider")
            return False
        if refs.providers == 1:
            if refs.consumers > 0:
                raise DispatchError("ConsumerRemaining")
            del self._accounts[who]
            return True
        refs.providers -= 1
        return False

    def inc_consumers(self, who: Hashable) -> None:
        """Add a consumer reference; raise if the account has no provider."""
        refs = self._accounts.get(who)
        if refs is None or refs.providers == 0:
            raise DispatchError("NoProviders")
        refs.consumers += 1

    def dec_consumers(self, who: Hashable) -> None:
        """Drop a consumer reference, if there is one."""
        refs = self._accounts.get(who)
        if refs is None or refs.consumers == 0:
            log.error("Logic error: unexpected underflow in reducing consumer")
            return
        refs.consumers -= 1

    def can_dec_provider(self, who: Hashable) -> bool:
        """Whether a provider reference could be dropped without error."""
        refs = self._refs(who)
        return refs.consumers == 0 or refs.providers > 1

    def providers(self, who: Hashable) -> int:
        """Number of provider references held by ``who``."""
        return self._refs(who).providers

    def consumers(self, who: Hashable) -> int:
        """Number of consumer references held by ``who``."""
        return self._refs(who).consumers

    def account_exists(self, who: Hashable) -> bool:
        """Whether ``who`` has any references at all."""
        return who in self._accounts

    def deposit_event(self, event: Any) -> None:
        """Record ``event``, unless still at block zero."""
        if self.block_number == 0:
            return
        self._events.append(event)

    def events(self) -> list[Any]:
        """All recorded events, oldest first."""
        return list(self._events)

    def last_event(self) -> Any | None:
        """The most recent event, or None when none was recorded."""
        return self._events[-1] if self._events else None

    def set_block_number(self, number: int) -> None:
        """Set the current block number."""
        self.block_number = number