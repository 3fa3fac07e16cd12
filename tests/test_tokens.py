import pytest

from multitokens.ledger import TokensConfig, TransferDust
from multitokens.system import Origin, System
from multitokens.tokens import Tokens
from multitokens.types import (
    ArithmeticFault,
    ArithmeticKind,
    BadOrigin,
    BalanceSet,
    BalanceStatus,
    DepositConsequence,
    Endowed,
    Error,
    RepatriatedReserve,
    Reserved,
    TokensError,
    Transfer,
    Unreserved,
    WithdrawConsequenceKind,
)

DOT, BTC, ETH = 1, 2, 3
ALICE, BOB, CHARLIE, DAVE = "alice", "bob", "charlie", "dave"
DUST = "dust-receiver"
ID_1, ID_2, ID_3 = b"1       ", b"2       ", b"3       "
MAX = 2**64 - 1


def build(balances=()):
    system = System()
    config = TokensConfig(
        existential_deposits={BTC: 1, DOT: 2},
        on_dust=TransferDust(DUST),
        max_locks=2,
        dust_removal_whitelist=frozenset({DAVE, DUST}),
    )
    tokens = Tokens(config, system)
    tokens.build_genesis(balances)
    system.set_block_number(1)
    return tokens


def expect_error(error, call, *args):
    with pytest.raises(TokensError) as info:
        call(*args)
    assert info.value.error is error


def test_genesis_issuance():
    t = build([(ALICE, DOT, 100), (BOB, DOT, 100)])
    assert t.free_balance(DOT, ALICE) == 100
    assert t.free_balance(DOT, BOB) == 100
    assert t.free_balance(DOT, DUST) == 0
    assert t.total_issuance(DOT) == 200


def test_transfer():
    t = build([(ALICE, DOT, 100), (BOB, DOT, 100)])
    t.transfer(Origin.signed(ALICE), BOB, DOT, 50)
    assert t.system.last_event() == Transfer(currency_id=DOT, from_=ALICE, to=BOB, amount=50)
    assert t.free_balance(DOT, ALICE) == 50
    assert t.free_balance(DOT, BOB) == 150
    assert t.total_issuance(DOT) == 200

    expect_error(Error.BALANCE_TOO_LOW, t.transfer, Origin.signed(ALICE), BOB, DOT, 60)
    expect_error(Error.EXISTENTIAL_DEPOSIT, t.transfer, Origin.signed(ALICE), CHARLIE, DOT, 1)
    t.transfer(Origin.signed(ALICE), CHARLIE, DOT, 2)

    assert t.account_exists(ALICE, DOT)
    t.transfer(Origin.signed(ALICE), BOB, DOT, 48)
    assert not t.account_exists(ALICE, DOT)
    assert t.free_balance(DOT, ALICE) == 0
    assert t.free_balance(DOT, BOB) == 198
    assert t.total_issuance(DOT) == 200


def test_transfer_keep_alive():
    t = build([(ALICE, DOT, 100), (BOB, DOT, 100)])
    expect_error(Error.KEEP_ALIVE, t.transfer_keep_alive, Origin.signed(ALICE), BOB, DOT, 99)
    t.transfer_keep_alive(Origin.signed(ALICE), BOB, DOT, 98)
    assert t.system.last_event() == Transfer(currency_id=DOT, from_=ALICE, to=BOB, amount=98)
    assert t.free_balance(DOT, ALICE) == 2
    assert t.free_balance(DOT, BOB) == 198


def test_transfer_all_keep_alive():
    t = build([(ALICE, DOT, 100), (BOB, DOT, 100)])
    t.transfer_all(Origin.signed(ALICE), CHARLIE, DOT, True)
    assert Transfer(currency_id=DOT, from_=ALICE, to=CHARLIE, amount=98) in t.system.events()
    assert t.free_balance(DOT, ALICE) == 2

    t.set_lock(ID_1, DOT, BOB, 50)
    assert t.accounts(BOB, DOT).frozen == 50
    assert t.free_balance(DOT, BOB) == 100
    t.transfer_all(Origin.signed(BOB), CHARLIE, DOT, True)
    assert Transfer(currency_id=DOT, from_=BOB, to=CHARLIE, amount=50) in t.system.events()


def test_transfer_all_allow_death():
    t = build([(ALICE, DOT, 100), (BOB, DOT, 100)])
    t.transfer_all(Origin.signed(ALICE), CHARLIE, DOT, False)
    assert t.system.last_event() == Transfer(currency_id=DOT, from_=ALICE, to=CHARLIE, amount=100)
    assert not t.account_exists(ALICE, DOT)
    assert t.free_balance(DOT, ALICE) == 0

    t.set_lock(ID_1, DOT, BOB, 50)
    assert t.accounts(BOB, DOT).frozen == 50
    t.transfer_all(Origin.signed(BOB), CHARLIE, DOT, False)
    assert t.system.last_event() == Transfer(currency_id=DOT, from_=BOB, to=CHARLIE, amount=50)


def test_force_transfer():
    t = build([(ALICE, DOT, 100), (BOB, DOT, 100)])
    with pytest.raises(BadOrigin):
        t.force_transfer(Origin.signed(ALICE), ALICE, BOB, DOT, 100)
    assert t.free_balance(DOT, ALICE) == 100

    t.force_transfer(Origin.root(), ALICE, BOB, DOT, 100)
    assert t.system.last_event() == Transfer(currency_id=DOT, from_=ALICE, to=BOB, amount=100)
    assert not t.account_exists(ALICE, DOT)
    assert t.free_balance(DOT, ALICE) == 0
    assert t.free_balance(DOT, BOB) == 200


def test_set_balance():
    t = build([(ALICE, DOT, 100), (BOB, DOT, 100)])
    with pytest.raises(BadOrigin):
        t.set_balance(Origin.signed(ALICE), ALICE, DOT, 200, 100)

    with pytest.raises(ArithmeticFault) as info:
        t.set_balance(Origin.root(), ALICE, DOT, MAX, 1)
    assert info.value.kind is ArithmeticKind.OVERFLOW

    with pytest.raises(ArithmeticFault) as info:
        t.set_balance(Origin.root(), ALICE, DOT, MAX, 0)
    assert info.value.kind is ArithmeticKind.OVERFLOW

    assert t.free_balance(DOT, ALICE) == 100
    assert t.reserved_balance(DOT, ALICE) == 0
    assert t.total_issuance(DOT) == 200

    t.set_balance(Origin.root(), ALICE, DOT, 200, 100)
    assert BalanceSet(currency_id=DOT, who=ALICE, free=200, reserved=100) in t.system.events()
    assert t.free_balance(DOT, ALICE) == 200
    assert t.reserved_balance(DOT, ALICE) == 100
    assert t.total_issuance(DOT) == 400

    t.set_balance(Origin.root(), BOB, DOT, 0, 0)
    assert BalanceSet(currency_id=DOT, who=BOB, free=0, reserved=0) in t.system.events()
    assert not t.account_exists(BOB, DOT)
    assert t.total_issuance(DOT) == 300

    t.set_balance(Origin.root(), CHARLIE, DOT, 1, 0)
    assert BalanceSet(currency_id=DOT, who=CHARLIE, free=0, reserved=0) in t.system.events()
    assert not t.account_exists(CHARLIE, DOT)
    assert t.free_balance(DOT, CHARLIE) == 0
    assert t.total_issuance(DOT) == 300


def test_multicurrency_deposit():
    t = build()
    t.deposit(DOT, CHARLIE, 10)
    assert t.account_exists(CHARLIE, DOT)
    assert t.free_balance(DOT, CHARLIE) == 10
    assert t.total_issuance(DOT) == 10


def test_multicurrency_withdraw():
    t = build([(ALICE, DOT, 100)])
    t.withdraw(DOT, ALICE, 99)
    assert not t.account_exists(ALICE, DOT)
    assert t.free_balance(DOT, ALICE) == 0
    assert t.total_issuance(DOT) == 1


def test_multicurrency_transfer():
    t = build([(ALICE, DOT, 100), (BOB, DOT, 100)])
    t.transfer_free(DOT, ALICE, BOB, 99)
    assert not t.account_exists(ALICE, DOT)
    assert t.free_balance(DOT, ALICE) == 0
    assert t.free_balance(DOT, BOB) == 199


def test_multicurrency_can_slash():
    t = build([(ALICE, DOT, 100)])
    assert not t.can_slash(DOT, ALICE, 101)
    assert t.can_slash(DOT, ALICE, 100)


def test_multicurrency_slash():
    t = build([(ALICE, DOT, 100)])
    assert t.slash(DOT, ALICE, 50) == 0
    assert t.free_balance(DOT, ALICE) == 50
    assert t.total_issuance(DOT) == 50
    assert t.slash(DOT, ALICE, 51) == 1
    assert t.free_balance(DOT, ALICE) == 0
    assert t.total_issuance(DOT) == 0


def test_update_balance():
    t = build([(ALICE, DOT, 100), (BOB, DOT, 100)])
    t.update_balance(DOT, ALICE, 50)
    assert t.free_balance(DOT, ALICE) == 150
    assert t.total_issuance(DOT) == 250
    t.update_balance(DOT, BOB, -50)
    assert t.free_balance(DOT, BOB) == 50
    assert t.total_issuance(DOT) == 200
    expect_error(Error.BALANCE_TOO_LOW, t.update_balance, DOT, BOB, -60)


def test_set_lock():
    t = build([(ALICE, DOT, 100)])
    t.set_lock(ID_1, DOT, ALICE, 10)
    assert t.accounts(ALICE, DOT).frozen == 10
    assert len(t.locks(ALICE, DOT)) == 1
    t.set_lock(ID_1, DOT, ALICE, 50)
    assert t.accounts(ALICE, DOT).frozen == 50
    assert len(t.locks(ALICE, DOT)) == 1
    t.set_lock(ID_2, DOT, ALICE, 60)
    assert t.accounts(ALICE, DOT).frozen == 60
    assert len(t.locks(ALICE, DOT)) == 2


def test_extend_lock():
    t = build([(ALICE, DOT, 100)])
    t.set_lock(ID_1, DOT, ALICE, 10)
    t.extend_lock(ID_1, DOT, ALICE, 20)
    assert len(t.locks(ALICE, DOT)) == 1
    assert t.accounts(ALICE, DOT).frozen == 20
    t.extend_lock(ID_2, DOT, ALICE, 10)
    t.extend_lock(ID_1, DOT, ALICE, 20)
    assert len(t.locks(ALICE, DOT)) == 2


def test_remove_lock():
    t = build([(ALICE, DOT, 100)])
    t.set_lock(ID_1, DOT, ALICE, 10)
    t.set_lock(ID_2, DOT, ALICE, 20)
    assert len(t.locks(ALICE, DOT)) == 2
    t.remove_lock(ID_2, DOT, ALICE)
    assert len(t.locks(ALICE, DOT)) == 1


def test_exceeding_max_locks():
    t = build([(ALICE, DOT, 100)])
    t.set_lock(ID_1, DOT, ALICE, 10)
    t.set_lock(ID_2, DOT, ALICE, 10)
    expect_error(Error.MAX_LOCKS_EXCEEDED, t.set_lock, ID_3, DOT, ALICE, 10)
    assert len(t.locks(ALICE, DOT)) == 2


def test_can_reserve():
    t = build([(ALICE, DOT, 100)])
    assert t.can_reserve(DOT, ALICE, 0)
    assert not t.can_reserve(DOT, ALICE, 101)
    assert t.can_reserve(DOT, ALICE, 100)


def test_slash_reserved():
    t = build([(ALICE, DOT, 100)])
    t.reserve(DOT, ALICE, 50)
    assert t.slash_reserved(DOT, ALICE, 0) == 0
    assert t.reserved_balance(DOT, ALICE) == 50
    assert t.total_issuance(DOT) == 100
    assert t.slash_reserved(DOT, ALICE, 100) == 50
    assert t.free_balance(DOT, ALICE) == 50
    assert t.reserved_balance(DOT, ALICE) == 0
    assert t.total_issuance(DOT) == 50


def test_reserve():
    t = build([(ALICE, DOT, 100)])
    expect_error(Error.BALANCE_TOO_LOW, t.reserve, DOT, ALICE, 101)
    t.reserve(DOT, ALICE, 0)
    assert t.reserved_balance(DOT, ALICE) == 0
    t.reserve(DOT, ALICE, 50)
    assert t.system.last_event() == Reserved(currency_id=DOT, who=ALICE, amount=50)
    assert t.free_balance(DOT, ALICE) == 50
    assert t.total_balance(DOT, ALICE) == 100
    t.reserve(DOT, ALICE, 50)
    assert t.free_balance(DOT, ALICE) == 0
    assert t.reserved_balance(DOT, ALICE) == 100
    assert not any(isinstance(e, Endowed) and e.who == ALICE for e in t.system.events())


def test_unreserve():
    t = build([(ALICE, DOT, 100)])
    assert t.unreserve(DOT, ALICE, 0) == 0
    assert t.unreserve(DOT, ALICE, 50) == 50
    assert t.system.last_event() == Unreserved(currency_id=DOT, who=ALICE, amount=0)
    t.reserve(DOT, ALICE, 30)
    assert t.free_balance(DOT, ALICE) == 70
    assert t.unreserve(DOT, ALICE, 15) == 0
    assert t.system.last_event() == Unreserved(currency_id=DOT, who=ALICE, amount=15)
    assert t.free_balance(DOT, ALICE) == 85
    assert t.unreserve(DOT, ALICE, 30) == 15
    assert t.system.last_event() == Unreserved(currency_id=DOT, who=ALICE, amount=15)
    assert t.free_balance(DOT, ALICE) == 100
    assert t.reserved_balance(DOT, ALICE) == 0


def test_repatriate_reserved():
    t = build([(ALICE, DOT, 100), (BOB, DOT, 100)])
    assert t.repatriate_reserved(DOT, ALICE, ALICE, 0, BalanceStatus.FREE) == 0
    assert t.repatriate_reserved(DOT, ALICE, ALICE, 50, BalanceStatus.FREE) == 50
    assert t.system.last_event() == Unreserved(currency_id=DOT, who=ALICE, amount=0)

    t.reserve(DOT, BOB, 50)
    assert t.repatriate_reserved(DOT, BOB, BOB, 60, BalanceStatus.RESERVED) == 10
    assert t.free_balance(DOT, BOB) == 50
    assert t.reserved_balance(DOT, BOB) == 50

    assert t.repatriate_reserved(DOT, BOB, ALICE, 30, BalanceStatus.RESERVED) == 0
    assert t.system.last_event() == RepatriatedReserve(
        currency_id=DOT, from_=BOB, to=ALICE, amount=30, status=BalanceStatus.RESERVED
    )
    assert t.reserved_balance(DOT, ALICE) == 30
    assert t.reserved_balance(DOT, BOB) == 20

    assert t.repatriate_reserved(DOT, BOB, ALICE, 30, BalanceStatus.FREE) == 10
    assert t.system.last_event() == RepatriatedReserve(
        currency_id=DOT, from_=BOB, to=ALICE, amount=20, status=BalanceStatus.FREE
    )
    assert t.free_balance(DOT, ALICE) == 120
    assert t.reserved_balance(DOT, ALICE) == 30
    assert t.free_balance(DOT, BOB) == 50
    assert t.reserved_balance(DOT, BOB) == 0


def test_slash_draws_reserved():
    t = build([(ALICE, DOT, 100)])
    t.reserve(DOT, ALICE, 50)
    assert t.slash(DOT, ALICE, 80) == 0
    assert t.free_balance(DOT, ALICE) == 0
    assert t.reserved_balance(DOT, ALICE) == 20
    assert t.total_issuance(DOT) == 20
    assert t.slash(DOT, ALICE, 50) == 30
    assert t.reserved_balance(DOT, ALICE) == 0
    assert t.total_issuance(DOT) == 0


def test_no_op_if_amount_is_zero():
    t = build()
    t.ensure_can_withdraw(DOT, ALICE, 0)
    t.transfer(Origin.signed(ALICE), BOB, DOT, 0)
    t.transfer(Origin.signed(ALICE), ALICE, DOT, 0)
    t.deposit(DOT, ALICE, 0)
    t.withdraw(DOT, ALICE, 0)
    assert t.slash(DOT, ALICE, 0) == 0
    assert t.slash(DOT, ALICE, 1) == 1
    t.update_balance(DOT, ALICE, 0)
    assert t.free_balance(DOT, ALICE) == 0
    assert t.total_issuance(DOT) == 0


def test_transfer_all_currencies():
    t = build([(ALICE, DOT, 100), (ALICE, BTC, 200)])
    t.transfer_all_currencies(ALICE, BOB)
    assert t.free_balance(DOT, ALICE) == 0
    assert t.free_balance(BTC, ALICE) == 0
    assert t.free_balance(DOT, BOB) == 100
    assert t.free_balance(BTC, BOB) == 200

    t.reserve(DOT, BOB, 1)
    t.transfer_all_currencies(BOB, ALICE)
    assert t.free_balance(DOT, ALICE) == 99
    assert t.free_balance(BTC, ALICE) == 200
    assert t.free_balance(DOT, BOB) == 0
    assert t.free_balance(BTC, BOB) == 0


def test_fungibles_inspect():
    t = build([(ALICE, DOT, 100)])
    assert t.total_issuance(DOT) == 100
    assert t.minimum_balance(DOT) == 2
    assert t.balance(DOT, ALICE) == 100
    assert t.reducible_balance(DOT, ALICE, True) == 98
    assert t.can_deposit(DOT, ALICE, 1) is DepositConsequence.SUCCESS
    assert t.can_withdraw(DOT, ALICE, 1).kind is WithdrawConsequenceKind.SUCCESS


def test_fungibles_mutate():
    t = build()
    t.mint_into(DOT, ALICE, 10)
    assert t.balance(DOT, ALICE) == 10
    assert t.burn_from(DOT, ALICE, 8) == 8
    assert t.balance(DOT, ALICE) == 2


def test_fungibles_transfer():
    t = build([(ALICE, DOT, 100), (BOB, DOT, 100)])
    assert t.fungible_transfer(DOT, ALICE, BOB, 10, True) == 10
    assert t.balance(DOT, ALICE) == 90
    assert t.balance(DOT, BOB) == 110


def test_fungibles_unbalanced():
    t = build([(ALICE, DOT, 100)])
    t.set_free(DOT, ALICE, 10)
    assert t.balance(DOT, ALICE) == 10
    assert t.total_issuance(DOT) == 100
    t.set_total_issuance(DOT, 10)
    assert t.total_issuance(DOT) == 10


def test_fungibles_inspect_hold():
    t = build([(ALICE, DOT, 100)])
    assert t.balance_on_hold(DOT, ALICE) == 0
    assert t.can_hold(DOT, ALICE, 50)
    assert not t.can_hold(DOT, ALICE, 100)


def test_fungibles_mutate_hold():
    t = build([(ALICE, DOT, 100), (BOB, DOT, 100)])
    expect_error(Error.BALANCE_TOO_LOW, t.hold, DOT, ALICE, 200)
    assert t.balance_on_hold(DOT, ALICE) == 0
    t.hold(DOT, ALICE, 100)
    assert t.balance_on_hold(DOT, ALICE) == 100
    assert t.release(DOT, ALICE, 40, False) == 40
    assert t.balance_on_hold(DOT, ALICE) == 60

    expect_error(Error.BALANCE_TOO_LOW, t.release, DOT, ALICE, 61, False)
    assert t.release(DOT, ALICE, 61, True) == 60
    assert t.balance_on_hold(DOT, ALICE) == 0

    t.hold(DOT, ALICE, 70)
    assert t.transfer_held(DOT, ALICE, BOB, 5, False, False) == 5
    assert t.balance_on_hold(DOT, ALICE) == 65
    assert t.balance(DOT, BOB) == 105
    assert t.balance_on_hold(DOT, BOB) == 0
    assert t.transfer_held(DOT, ALICE, BOB, 5, False, True) == 5
    assert t.balance_on_hold(DOT, ALICE) == 60
    assert t.balance(DOT, BOB) == 110
    assert t.balance_on_hold(DOT, BOB) == 5

    expect_error(Error.BALANCE_TOO_LOW, t.transfer_held, DOT, ALICE, BOB, 61, False, True)
    assert t.transfer_held(DOT, ALICE, BOB, 61, True, True) == 60
    assert t.balance_on_hold(DOT, ALICE) == 0
    assert t.balance(DOT, BOB) == 170
    assert t.balance_on_hold(DOT, BOB) == 65