"""Soroban distributor ledger - address derivation, status reads, claim submission."""

from __future__ import annotations

import hashlib
import logging

from stellar_sdk import Address, Keypair, Network, SorobanServerAsync, StrKey, scval
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.contract import AssembledTransactionAsync, ContractClientAsync
from stellar_sdk.contract.exceptions import (
    SimulationFailedError,
    TransactionFailedError,
)

from merkle_claim.errors import LedgerConfigError, SubmissionFailure, TransportFailure
from merkle_claim.models.claims import ClaimRequest, ClaimStatusRecord
from merkle_claim.stellar.addresses import address_key

log = logging.getLogger(__name__)

CLAIM_FUNCTION = "claim"
CLAIM_STATUS_SYMBOL = "ClaimStatus"
DISTRIBUTOR_SALT_PREFIX = b"distributor"


def distributor_salt(mint: str) -> bytes:
    """Deployment salt the distributor factory uses for a token."""
    return hashlib.sha256(DISTRIBUTOR_SALT_PREFIX + address_key(mint)).digest()


def derive_contract_address(deployer: str, salt: bytes, network_passphrase: str) -> str:
    """Contract id a deployer gets for *salt* on the given network."""
    preimage = stellar_xdr.HashIDPreimage(
        type=stellar_xdr.EnvelopeType.ENVELOPE_TYPE_CONTRACT_ID,
        contract_id=stellar_xdr.HashIDPreimageContractID(
            network_id=stellar_xdr.Hash(Network(network_passphrase).network_id()),
            contract_id_preimage=stellar_xdr.ContractIDPreimage(
                type=stellar_xdr.ContractIDPreimageType.CONTRACT_ID_PREIMAGE_FROM_ADDRESS,
                from_address=stellar_xdr.ContractIDPreimageFromAddress(
                    address=Address(deployer).to_xdr_sc_address(),
                    salt=stellar_xdr.Uint256(salt),
                ),
            ),
        ),
    )
    return StrKey.encode_contract(hashlib.sha256(preimage.to_xdr_bytes()).digest())


def claim_status_key(distributor: str, claimant: str) -> stellar_xdr.LedgerKey:
    """Persistent storage key of a claimant's status entry in a distributor."""
    return stellar_xdr.LedgerKey(
        type=stellar_xdr.LedgerEntryType.CONTRACT_DATA,
        contract_data=stellar_xdr.LedgerKeyContractData(
            contract=Address(distributor).to_xdr_sc_address(),
            key=scval.to_vec([
                scval.to_symbol(CLAIM_STATUS_SYMBOL),
                scval.to_address(claimant),
            ]),
            durability=stellar_xdr.ContractDataDurability.PERSISTENT,
        ),
    )


def _claimed_flag(value: stellar_xdr.SCVal) -> bool:
    """Read the ``claimed`` flag from a status entry (bare bool or struct map)."""
    if value.type == stellar_xdr.SCValType.SCV_BOOL:
        return scval.from_bool(value)
    if value.type == stellar_xdr.SCValType.SCV_MAP and value.map is not None:
        for entry in value.map.sc_map:
            if entry.key.type != stellar_xdr.SCValType.SCV_SYMBOL:
                continue
            if scval.from_symbol(entry.key) == "claimed":
                return scval.from_bool(entry.val)
    return False


def _simulation_logs(exc: SimulationFailedError) -> list[str]:
    """Diagnostic events from a failed simulation, decoded where possible."""
    simulation = getattr(exc.assembled_transaction, "simulation", None)
    logs: list[str] = []
    for event in getattr(simulation, "events", None) or []:
        try:
            logs.append(str(stellar_xdr.DiagnosticEvent.from_xdr(event)))
        except Exception:
            logs.append(str(event))
    return logs


class SorobanDistributorLedger:
    """Ledger collaborator backed by a Soroban distributor contract.

    Read paths (derivation, status entries) need no keypair. Building and
    submitting claims does: the claimant must be the configured signer.
    Contract clients are created per contract and reused until close().
    """

    def __init__(
        self,
        rpc_url: str,
        network_passphrase: str,
        keypair: Keypair | None = None,
        distributor_factory: str = "",
        confirm_timeout: int = 60,
    ) -> None:
        self._rpc_url = rpc_url
        self._passphrase = network_passphrase
        self._keypair = keypair
        self._factory = distributor_factory
        self._confirm_timeout = confirm_timeout
        self._server: SorobanServerAsync | None = None
        self._clients: dict[str, ContractClientAsync] = {}

    def _get_server(self) -> SorobanServerAsync:
        if self._server is None:
            self._server = SorobanServerAsync(self._rpc_url)
        return self._server

    def _client(self, contract_id: str) -> ContractClientAsync:
        client = self._clients.get(contract_id)
        if client is None:
            client = ContractClientAsync(
                contract_id=contract_id,
                rpc_url=self._rpc_url,
                network_passphrase=self._passphrase,
            )
            self._clients[contract_id] = client
        return client

    async def close(self) -> None:
        """Close the underlying aiohttp sessions."""
        servers = [c.server for c in self._clients.values()]
        if self._server is not None:
            servers.append(self._server)
        for server in servers:
            try:
                await server.close()
            except Exception as exc:
                log.debug("Error closing Soroban RPC session: %s", exc)
        self._clients.clear()
        self._server = None

    # ── Derivation ────────────────────────────────────────

    def find_distributor_address(self, mint: str) -> str:
        if not self._factory:
            raise LedgerConfigError("distributor factory address is not configured")
        return derive_contract_address(self._factory, distributor_salt(mint), self._passphrase)

    def find_claim_status_address(self, distributor: str, claimant: str) -> str:
        return claim_status_key(distributor, claimant).to_xdr()

    # ── Reads ─────────────────────────────────────────────

    async def fetch_claim_status(self, address: str) -> ClaimStatusRecord | None:
        key = stellar_xdr.LedgerKey.from_xdr(address)
        try:
            resp = await self._get_server().get_ledger_entries([key])
        except Exception as exc:
            raise TransportFailure(f"Claim status lookup failed: {exc}") from exc

        if not resp.entries:
            return None
        data = stellar_xdr.LedgerEntryData.from_xdr(resp.entries[0].xdr)
        return ClaimStatusRecord(
            address=address,
            claimed=_claimed_flag(data.contract_data.val),
        )

    async def get_token_decimals(self, mint: str) -> int | None:
        """decimals() of a token contract; None for accounts or non-token contracts."""
        if self._keypair is None or not StrKey.is_valid_contract(mint):
            return None
        try:
            tx = await self._client(mint).invoke(
                "decimals",
                source=self._keypair.public_key,
                parse_result_xdr_fn=scval.from_uint32,
            )
            return tx.result()
        except SimulationFailedError as exc:
            log.debug("decimals() simulation failed for %s: %s", mint[:16], exc)
            return None
        except Exception as exc:
            raise TransportFailure(f"Token decimals lookup failed: {exc}") from exc

    # ── Claim submission ──────────────────────────────────

    async def build_claim_transaction(self, request: ClaimRequest) -> AssembledTransactionAsync:
        """Assemble and simulate a claim() invocation on the distributor."""
        if self._keypair is None:
            raise LedgerConfigError("no signing keypair configured")
        if request.claimant != self._keypair.public_key:
            raise SubmissionFailure(
                f"Claimant {request.claimant[:16]} does not match the signing keypair."
            )

        log.info(
            "Building claim for index %d on distributor %s",
            request.index, request.distributor[:16],
        )
        try:
            tx = await self._client(request.distributor).invoke(
                CLAIM_FUNCTION,
                [
                    scval.to_address(request.claimant),
                    scval.to_address(request.mint),
                    scval.to_address(request.vault),
                    scval.to_uint64(request.index),
                    scval.to_int128(request.amount),
                    scval.to_vec([scval.to_bytes(node) for node in request.proof]),
                ],
                source=request.claimant,
                signer=self._keypair,
                submit_timeout=self._confirm_timeout,
            )
        except SimulationFailedError as exc:
            log.warning("claim simulation failed for index %d: %s", request.index, exc)
            raise SubmissionFailure(
                f"Simulation failed: {exc}", logs=_simulation_logs(exc),
            ) from exc
        except Exception as exc:
            raise SubmissionFailure(f"Failed to build claim transaction: {exc}") from exc
        return tx

    async def submit_and_confirm(self, transaction: AssembledTransactionAsync) -> str:
        """Sign, send, and wait until the ledger reports the claim as applied."""
        try:
            await transaction.sign_and_submit()
        except TransactionFailedError as exc:
            tx_hash = ""
            if exc.assembled_transaction.send_transaction_response:
                tx_hash = exc.assembled_transaction.send_transaction_response.hash
            log.error("claim tx failed (tx=%s)", tx_hash[:16] if tx_hash else "?")
            raise SubmissionFailure(f"Claim transaction failed: {exc}") from exc
        except Exception as exc:
            log.error("claim submission unexpected error: %s", exc)
            raise SubmissionFailure(f"Claim submission failed: {exc}") from exc

        tx_hash = ""
        if transaction.send_transaction_response:
            tx_hash = transaction.send_transaction_response.hash
        log.info("claim confirmed (tx=%s)", tx_hash[:16] if tx_hash else "?")
        return tx_hash
