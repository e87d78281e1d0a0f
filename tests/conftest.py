"""Shared fixtures for merkle_claim tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key
from stellar_sdk import Keypair

from merkle_claim.models.config import ClaimConfig
from merkle_claim.orchestrator import ClaimOrchestrator
from merkle_claim.stellar.registry import TokenRegistryCache

from tests.factories import make_contract
from tests.mocks import MockFetcher, MockLedger

_TEST_KEYPAIR = Keypair.from_raw_ed25519_seed(bytes([1]) * 32)
TEST_SECRET = _TEST_KEYPAIR.secret
TEST_PUBLIC = _TEST_KEYPAIR.public_key

FACTORY_CONTRACT_ID = make_contract("factory")

MANIFEST_URL = "https://claims.example.com/manifest.json"

EXPLORER_BASE = "https://stellar.expert/explorer/testnet"


def stellar_expert_link(kind: str, id: str, label: str | None = None) -> str:
    """Build an HTML anchor to stellar.expert for the report."""
    url = f"{EXPLORER_BASE}/{kind}/{id}"
    text = label or f"{id[:8]}...{id[-4:]}"
    return f'<a href="{url}" target="_blank">{text}</a>'


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Stellar Testnet"
    meta["Distributor Factory"] = FACTORY_CONTRACT_ID
    meta["Claimant Account"] = TEST_PUBLIC


def pytest_html_results_summary(prefix, summary, postfix):
    """Inject clickable Stellar explorer links into the report summary."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Stellar Testnet Explorer Links</strong><br/>"
        f'Factory: {stellar_expert_link("contract", FACTORY_CONTRACT_ID, FACTORY_CONTRACT_ID)}<br/>'
        f'Claimant: {stellar_expert_link("account", TEST_PUBLIC, TEST_PUBLIC)}'
        "</div>"
    )


def make_test_config(**overrides) -> ClaimConfig:
    """Build a ClaimConfig suitable for testing."""
    defaults = dict(
        network="testnet",
        rpc_url="https://soroban-testnet.stellar.org",
        network_passphrase="Test SDF Network ; September 2015",
        keypair_secret=TEST_SECRET,
        distributor_factory=FACTORY_CONTRACT_ID,
        max_concurrent_lookups=4,
        fetch_timeout=5,
    )
    defaults.update(overrides)
    return ClaimConfig(**defaults)


@pytest.fixture
def test_config():
    """Default ClaimConfig for tests."""
    return make_test_config()


@pytest.fixture
def mock_ledger():
    return MockLedger()


@pytest.fixture
def mock_fetcher():
    return MockFetcher()


@pytest.fixture
def tokens(mock_ledger):
    return TokenRegistryCache(mock_ledger)


@pytest.fixture
def orchestrator(test_config, mock_ledger, mock_fetcher, tokens):
    """ClaimOrchestrator wired to mocks, connected as TEST_PUBLIC, reading MANIFEST_URL."""
    orch = ClaimOrchestrator(
        ledger=mock_ledger,
        fetcher=mock_fetcher,
        config=test_config,
        tokens=tokens,
    )
    orch.connect(TEST_PUBLIC)
    orch.set_manifest_override(MANIFEST_URL)
    yield orch
    orch.close()
