# multitokens

An in-memory ledger for many fungible currencies at once. Each account holds,
per currency, a free balance, a reserved balance and a frozen amount set by
locks. The ledger keeps the total issuance of every currency, enforces
existential deposits, sweeps dust from accounts that fall below them, and
counts provider and consumer references on a small account registry.

## Installing

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `multitokens.types` – `AccountData` (with `total()`), `BalanceLock`, the
  events (`Endowed`, `DustLost`, `Transfer`, `Reserved`, `Unreserved`,
  `RepatriatedReserve`, `BalanceSet`), the errors (`DispatchError` and its
  subclasses `TokensError` with an `Error` member, `ArithmeticFault` with an
  `ArithmeticKind`, `TokenFault` with a `TokenErrorKind`, and `BadOrigin`),
  `ExistenceRequirement`, `BalanceStatus`, `WithdrawReasons`,
  `DepositConsequence` and `WithdrawConsequence`. Both consequence types have
  `into_result()`, which returns on success and raises the matching error
  otherwise.
- `multitokens.system` – `System` (provider and consumer counts, event log,
  block number) and `Origin` (`Origin.signed(who)`, `Origin.root()`), with
  `ensure_signed` and `ensure_root`.
- `multitokens.ledger` – `TokensConfig`, `Ledger`, and the dust handlers
  `TransferDust` and `BurnDust`.
- `multitokens.tokens` – `Tokens`, a `Ledger` with the full interface: signed
  and root calls (`transfer`, `transfer_all`, `transfer_keep_alive`,
  `force_transfer`, `set_balance`), multi-currency operations (`deposit`,
  `withdraw`, `slash`, `update_balance`, …), locks, reserves, and the fungible
  inspect, mint/burn, transfer and hold operations.
- `multitokens.imbalances` – `PositiveImbalance` and `NegativeImbalance`.
- `multitokens.adapter` – `CurrencyAdapter`, a single-currency view over
  `Tokens` that returns imbalances.
- `multitokens.combiner` – `ConvertBalance`, `Mapper` and `Combiner`, for
  routing some assets through a balance conversion while the others go
  straight to the underlying ledger.

## Configuration

`TokensConfig` takes:

- `existential_deposits` – a mapping from currency to the minimum total an
  account must hold; currencies not listed have a minimum of zero, and such
  accounts are never reaped.
- `on_dust` – what happens to the balance of an account that drops below its
  existential deposit: `BurnDust()` (the default) withdraws it and lowers the
  issuance, `TransferDust(account)` moves it to `account`. If the handler
  fails the dust stays where it was.
- `max_locks` – the most locks one account may carry per currency (50).
- `dust_removal_whitelist` – accounts whose dust is never swept.
- `max_balance`, `min_amount`, `max_amount` – the numeric range of balances
  and of the signed amounts taken by `update_balance` (unsigned and signed
  64-bit by default).

## Example

```python
from multitokens.ledger import TokensConfig
from multitokens.system import Origin, System
from multitokens.tokens import Tokens

DOT = 1

system = System()
tokens = Tokens(TokensConfig(existential_deposits={DOT: 2}), system)
tokens.build_genesis([("alice", DOT, 100), ("bob", DOT, 100)])
system.set_block_number(1)  # events are only recorded from block 1 on

tokens.transfer(Origin.signed("alice"), "bob", DOT, 50)
assert tokens.free_balance(DOT, "alice") == 50
assert tokens.free_balance(DOT, "bob") == 150
assert tokens.total_issuance(DOT) == 200

tokens.set_lock(b"1       ", DOT, "bob", 100)
tokens.reserve(DOT, "alice", 20)
assert tokens.reserved_balance(DOT, "alice") == 20
```

Failures are raised: a `TokensError` whose `error` is an `Error` member such
as `Error.BALANCE_TOO_LOW` or `Error.KEEP_ALIVE`, an `ArithmeticFault` for
overflow and underflow, or `BadOrigin` when a call is made by the wrong
origin. Transfers, deposits and withdrawals check before they store anything,
so when they fail the balances are left as they were.
`Tokens.transfer_all_currencies` runs inside `Ledger.transactional()`, which
undoes every change made in its block if the block raises.

## Imbalances

`CurrencyAdapter(tokens, currency_id)` treats one currency as a plain
currency. `burn`, `issue`, `slash`, `withdraw`, `deposit_creating`,
`deposit_into_existing` and `make_free_balance_be` return a
`PositiveImbalance` or `NegativeImbalance`. An imbalance changes the total
issuance only when it is dropped, either by calling `drop()` or by leaving a
`with` block:

```python
from multitokens.adapter import CurrencyAdapter

dot = CurrencyAdapter(tokens, DOT)
with dot.burn(10):
    assert dot.total_issuance() == 190
assert dot.total_issuance() == 200
```

Imbalances can be `split`, `merge`d, `subsume`d and `offset` against the
opposite kind; each of these consumes the imbalance it takes, which then
holds nothing and settles nothing.

## Converted views

```python
from multitokens.combiner import Combiner, ConvertBalance, Mapper

hundredfold = ConvertBalance(lambda amount, _: amount * 100, lambda amount, _: amount // 100)
rebased = Combiner({DOT}, Mapper(tokens, hundredfold, DOT), tokens)
assert rebased.balance(DOT, "bob") == tokens.balance(DOT, "bob") * 100
```

## What it does not do

Everything lives in memory in one process: there is no persistence, no
network interface and no command-line program. Lock withdraw reasons are
accepted by `CurrencyAdapter` but not enforced; every lock freezes its amount
for all withdrawals.