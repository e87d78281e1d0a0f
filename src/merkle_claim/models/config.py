"""Configuration models for the claim client."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_FALLBACK_PATH = "claims-manifest.json"


@dataclass
class ClaimConfig:
    """Complete client configuration."""

    # Client
    log_level: str = "info"
    max_concurrent_lookups: int = 8
    fetch_timeout: int = 15  # seconds
    confirm_timeout: int = 60  # seconds

    # Stellar
    network: str = "testnet"
    rpc_url: str = "https://soroban-testnet.stellar.org"
    network_passphrase: str = ""  # derived from network when empty
    keypair_secret: str = ""  # loaded from env var MERKLE_CLAIM_SECRET
    distributor_factory: str = ""  # deployer used to derive distributor contracts
    explorer_base: str = "https://stellar.expert/explorer"

    # Manifest sources (lowest two tiers; the env URL and --manifest sit above)
    manifest_env_url: str = ""
    manifest_default_url: str = ""
    manifest_fallback_path: str = DEFAULT_FALLBACK_PATH
