"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from merkle_claim.models.config import ClaimConfig

NETWORK_PASSPHRASES = {
    "testnet": "Test SDF Network ; September 2015",
    "mainnet": "Public Global Stellar Network ; September 2015",
}


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "MERKLE_CLAIM_",
) -> ClaimConfig:
    """Load client configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (MERKLE_CLAIM_SECRET, etc.)
        2. TOML config file
        3. Defaults from ClaimConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = ClaimConfig()

    # ── Client section ─────────────────────────────────────
    client = raw.get("client", {})
    if v := client.get("log_level"):
        cfg.log_level = str(v)
    if v := client.get("max_concurrent_lookups"):
        cfg.max_concurrent_lookups = int(v)
    if v := client.get("fetch_timeout"):
        cfg.fetch_timeout = int(v)
    if v := client.get("confirm_timeout"):
        cfg.confirm_timeout = int(v)

    # ── Stellar section ────────────────────────────────────
    stellar = raw.get("stellar", {})
    if v := stellar.get("network"):
        cfg.network = str(v)
    if v := stellar.get("rpc_url"):
        cfg.rpc_url = str(v)
    if v := stellar.get("network_passphrase"):
        cfg.network_passphrase = str(v)
    if v := stellar.get("keypair_secret"):
        cfg.keypair_secret = str(v)
    if v := stellar.get("distributor_factory"):
        cfg.distributor_factory = str(v)
    if v := stellar.get("explorer_base"):
        cfg.explorer_base = str(v)

    # ── Manifest section ───────────────────────────────────
    manifest = raw.get("manifest", {})
    if v := manifest.get("default_url"):
        cfg.manifest_default_url = str(v).strip()
    if v := manifest.get("fallback_path"):
        cfg.manifest_fallback_path = str(v)

    # ── Environment variable overrides (highest priority) ──
    if secret := os.environ.get(f"{env_prefix}SECRET"):
        cfg.keypair_secret = secret
    if net := os.environ.get(f"{env_prefix}NETWORK"):
        cfg.network = net
    if rpc := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.rpc_url = rpc
    if factory := os.environ.get(f"{env_prefix}DISTRIBUTOR_FACTORY"):
        cfg.distributor_factory = factory
    if url := os.environ.get(f"{env_prefix}MANIFEST_URL"):
        cfg.manifest_env_url = url.strip()

    if not cfg.network_passphrase:
        cfg.network_passphrase = NETWORK_PASSPHRASES.get(cfg.network, "")

    return cfg
