"""Soroban ledger adapter: offline derivation and status-entry decoding."""

from __future__ import annotations

import pytest
from stellar_sdk import Keypair, Network, StrKey, scval
from stellar_sdk import xdr as stellar_xdr

from merkle_claim.errors import LedgerConfigError, SubmissionFailure
from merkle_claim.models.claims import ClaimRequest
from merkle_claim.stellar.ledger import (
    SorobanDistributorLedger,
    _claimed_flag,
    claim_status_key,
    derive_contract_address,
    distributor_salt,
)
from tests.conftest import FACTORY_CONTRACT_ID, TEST_PUBLIC
from tests.factories import DISTRIBUTOR, MINT, OTHER_MINT, VAULT, make_account

PASSPHRASE = Network.TESTNET_NETWORK_PASSPHRASE


def make_ledger(**kwargs) -> SorobanDistributorLedger:
    defaults = dict(
        rpc_url="https://soroban-testnet.stellar.org",
        network_passphrase=PASSPHRASE,
        distributor_factory=FACTORY_CONTRACT_ID,
    )
    defaults.update(kwargs)
    return SorobanDistributorLedger(**defaults)


# ── Derivation ───────────────────────────────────────────────────


def test_distributor_address_is_deterministic_per_mint():
    ledger = make_ledger()

    first = ledger.find_distributor_address(MINT)

    assert StrKey.is_valid_contract(first)
    assert ledger.find_distributor_address(MINT) == first
    assert ledger.find_distributor_address(OTHER_MINT) != first


def test_distributor_address_depends_on_network():
    salt = distributor_salt(MINT)

    testnet = derive_contract_address(FACTORY_CONTRACT_ID, salt, PASSPHRASE)
    mainnet = derive_contract_address(FACTORY_CONTRACT_ID, salt, Network.PUBLIC_NETWORK_PASSPHRASE)

    assert testnet != mainnet


def test_distributor_derivation_requires_factory():
    with pytest.raises(LedgerConfigError):
        make_ledger(distributor_factory="").find_distributor_address(MINT)


def test_claim_status_address_round_trips_to_ledger_key():
    ledger = make_ledger()

    address = ledger.find_claim_status_address(DISTRIBUTOR, TEST_PUBLIC)
    key = stellar_xdr.LedgerKey.from_xdr(address)

    assert key == claim_status_key(DISTRIBUTOR, TEST_PUBLIC)
    assert key.contract_data.durability == stellar_xdr.ContractDataDurability.PERSISTENT
    assert ledger.find_claim_status_address(DISTRIBUTOR, make_account(2)) != address


# ── Status decoding ──────────────────────────────────────────────


def test_claimed_flag_from_bool():
    assert _claimed_flag(scval.to_bool(True)) is True
    assert _claimed_flag(scval.to_bool(False)) is False


def test_claimed_flag_from_struct():
    value = stellar_xdr.SCVal(
        type=stellar_xdr.SCValType.SCV_MAP,
        map=stellar_xdr.SCMap([
            stellar_xdr.SCMapEntry(key=scval.to_symbol("amount"), val=scval.to_int128(5)),
            stellar_xdr.SCMapEntry(key=scval.to_symbol("claimed"), val=scval.to_bool(True)),
        ]),
    )

    assert _claimed_flag(value) is True


def test_claimed_flag_defaults_false():
    assert _claimed_flag(scval.to_uint32(1)) is False


# ── Submission guards ────────────────────────────────────────────


def make_request(claimant: str) -> ClaimRequest:
    return ClaimRequest(
        claimant=claimant, mint=MINT, vault=VAULT, distributor=DISTRIBUTOR,
        index=0, amount=1, proof=(),
    )


async def test_build_requires_keypair():
    with pytest.raises(LedgerConfigError):
        await make_ledger().build_claim_transaction(make_request(TEST_PUBLIC))


async def test_build_rejects_foreign_claimant():
    ledger = make_ledger(keypair=Keypair.from_raw_ed25519_seed(bytes([1]) * 32))

    with pytest.raises(SubmissionFailure, match="does not match the signing keypair"):
        await ledger.build_claim_transaction(make_request(make_account(2)))


async def test_decimals_none_without_keypair():
    assert await make_ledger().get_token_decimals(MINT) is None
