"""Formatting helpers for user-facing claim output."""

from __future__ import annotations

MAX_ERROR_LOG_LINES = 12


def format_token_amount(raw_amount: int, decimals: int) -> str:
    """Render base units as a decimal token amount, trimming trailing zeros."""
    if decimals <= 0:
        return str(raw_amount)
    precision = 10 ** decimals
    whole, fraction = divmod(raw_amount, precision)
    fraction_str = str(fraction).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{fraction_str}" if fraction_str else str(whole)


def describe_amount(raw_amount: int, decimals: int | None) -> str:
    if decimals is None:
        return f"Amount (base units): {raw_amount}"
    return (
        f"Amount: {format_token_amount(raw_amount, decimals)} token(s) "
        f"({raw_amount} base units, {decimals} decimals)"
    )


def explorer_tx_url(explorer_base: str, network: str, tx_hash: str) -> str:
    """stellar.expert transaction link for a confirmed claim."""
    slug = "public" if network in ("mainnet", "public") else network
    return f"{explorer_base.rstrip('/')}/{slug}/tx/{tx_hash}"


def format_error_with_logs(exc: BaseException, fallback: str) -> str:
    """Error message, followed by the tail of any attached simulation logs."""
    message = str(exc) or fallback
    logs = [line for line in getattr(exc, "logs", None) or [] if isinstance(line, str)]
    if not logs:
        return message
    tail = "\n".join(logs[-MAX_ERROR_LOG_LINES:])
    return f"{message}\nLogs:\n{tail}"
