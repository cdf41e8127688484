"""
Layered settlement configuration.

Precedence (lowest to highest):
1. built-in defaults
2. optional TOML settings file
3. well-known environment variables (``SOLANA_RPC_URL``, ``PLATFORM_FEE_BPS``, ...)
4. prefixed overrides, e.g. ``SWAPSETTLE__JUPITER__HTTP_TIMEOUT=20``

``.env`` is loaded once via python-dotenv before the environment is read.
Secrets are never echoed in override logs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import base58
import toml
from dotenv import load_dotenv
from loguru import logger

_SECRET_KEYS = {"private_key", "api_key"}
_COMMITMENTS = {"processed", "confirmed", "finalized"}

# Env var -> dotted settings path.
_WELL_KNOWN_ENV: Dict[str, str] = {
    "SOLANA_RPC_URL": "solana.rpc_url",
    "JUPITER_BASE_URL": "jupiter.base_url",
    "JUPITER_API_KEY": "jupiter.api_key",
    "PLATFORM_FEE_BPS": "platform_fee.bps",
    "PLATFORM_FEE_ACCOUNT": "platform_fee.account",
    "PLATFORM_PRIVATE_KEY": "platform_fee.private_key",
    "EXTRA_TOKENS": "extra_tokens",
    "LOG_LEVEL": "logging.level",
}


@dataclass(frozen=True)
class SolanaSettings:
    rpc_url: str = "https://api.mainnet-beta.solana.com"
    commitment: str = "confirmed"
    http_timeout: float = 30.0


@dataclass(frozen=True)
class JupiterSettings:
    base_url: str = "https://lite-api.jup.ag"
    api_key: str = field(default="", repr=False)
    http_timeout: float = 30.0
    only_direct_routes: bool = True
    max_retries: int = 3
    retry_delay_base: float = 1.0


@dataclass(frozen=True)
class PlatformFeeSettings:
    """Platform fee collection. An empty account disables fee collection."""

    bps: int = 0
    account: str = ""
    private_key: str = field(default="", repr=False)

    @property
    def percent(self) -> float:
        return self.bps / 100

    @property
    def enabled(self) -> bool:
        return bool(self.account)


@dataclass(frozen=True)
class ReconcileSettings:
    finality_threshold: int = 31


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class OverrideRecord:
    key: str
    source: str
    old: Any
    new: Any


@dataclass(frozen=True)
class SettlementConfig:
    solana: SolanaSettings = field(default_factory=SolanaSettings)
    jupiter: JupiterSettings = field(default_factory=JupiterSettings)
    platform_fee: PlatformFeeSettings = field(default_factory=PlatformFeeSettings)
    reconcile: ReconcileSettings = field(default_factory=ReconcileSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    extra_tokens: str = ""
    loaded_files: Tuple[str, ...] = ()
    overrides: Tuple[OverrideRecord, ...] = ()

    def log_summary(self) -> None:
        logger.info(f"CONFIG | files={', '.join(self.loaded_files) or '<none>'}")
        for o in self.overrides:
            leaf = o.key.rsplit(".", 1)[-1]
            if leaf in _SECRET_KEYS:
                logger.info(f"CONFIG_OVERRIDE | key={o.key} | source={o.source} | value=<redacted>")
            else:
                logger.info(f"CONFIG_OVERRIDE | key={o.key} | source={o.source} | old={o.old} | new={o.new}")
        logger.info(
            f"CONFIG | rpc={self.solana.rpc_url} | jupiter={self.jupiter.base_url} | "
            f"fee_bps={self.platform_fee.bps} | fee_account={self.platform_fee.account or '<disabled>'} | "
            f"signer={'yes' if self.platform_fee.private_key else 'no'}"
        )


def load_config(
    settings_path: Optional[str] = None,
    env_prefix: str = "SWAPSETTLE__",
    dotenv_path: Optional[str] = None,
) -> SettlementConfig:
    """Build the frozen config once at boot."""
    load_dotenv(dotenv_path)

    layers: List[Tuple[Dict[str, Any], str]] = []
    loaded_files: List[str] = []

    if settings_path and os.path.exists(settings_path):
        with open(settings_path, "r", encoding="utf-8") as f:
            layers.append((toml.load(f), os.path.basename(settings_path)))
        loaded_files.append(os.path.basename(settings_path))

    well_known = _load_well_known_env()
    if well_known:
        layers.append((well_known, "env"))

    env_overrides = _load_env_overrides(env_prefix)
    if env_overrides:
        layers.append((env_overrides, f"env/{env_prefix}"))

    merged: Dict[str, Any] = {}
    overrides: List[OverrideRecord] = []
    for payload, source in layers:
        _merge_dicts(merged, payload, source, overrides)

    cfg = SettlementConfig(
        solana=_build_solana(merged),
        jupiter=_build_jupiter(merged),
        platform_fee=_build_platform_fee(merged),
        reconcile=_build_reconcile(merged),
        logging=_build_logging(merged),
        extra_tokens=str(merged.get("extra_tokens", "") or ""),
        loaded_files=tuple(loaded_files),
        overrides=tuple(overrides),
    )
    cfg.log_summary()
    return cfg


def _merge_dicts(dst: Dict[str, Any], src: Dict[str, Any], source: str, overrides: List[OverrideRecord], prefix: str = "") -> None:
    for key, value in src.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict) and isinstance(dst.get(key), dict):
            _merge_dicts(dst[key], value, source, overrides, full_key)
        elif isinstance(value, dict):
            dst[key] = value.copy()
        else:
            if key in dst and dst[key] != value:
                overrides.append(OverrideRecord(full_key, source, dst[key], value))
            dst[key] = value


def _load_well_known_env() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for env_key, dotted in _WELL_KNOWN_ENV.items():
        raw = os.environ.get(env_key)
        if raw is None or raw.strip() == "":
            continue
        _assign(out, dotted.split("."), raw.strip())
    return out


def _load_env_overrides(prefix: str) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_key, env_val in os.environ.items():
        if not env_key.startswith(prefix):
            continue
        path_parts = env_key[len(prefix):].lower().split("__")
        _assign(overrides, path_parts, env_val)
    return overrides


def _assign(dst: Dict[str, Any], path_parts: List[str], raw_val: str) -> None:
    cur = dst
    for part in path_parts[:-1]:
        if part not in cur or not isinstance(cur[part], dict):
            cur[part] = {}
        cur = cur[part]
    leaf = path_parts[-1]
    # Secrets and addresses stay strings even when they look numeric.
    if leaf in _SECRET_KEYS or leaf == "account":
        cur[leaf] = raw_val
        return
    cur[leaf] = _coerce_env_value(raw_val)


def _coerce_env_value(val: str) -> Any:
    lowered = val.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    try:
        return int(val)
    except ValueError:
        pass
    try:
        return float(val)
    except ValueError:
        pass
    return val


def _to_int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{key} must be an integer, got {value!r}") from exc


def _to_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{key} must be a number, got {value!r}") from exc


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _build_solana(cfg: Dict[str, Any]) -> SolanaSettings:
    section = cfg.get("solana", {}) or {}
    rpc_url = str(section.get("rpc_url", SolanaSettings.rpc_url)).strip()
    if not rpc_url:
        raise ValueError("solana.rpc_url must not be empty")
    commitment = str(section.get("commitment", SolanaSettings.commitment)).lower()
    if commitment not in _COMMITMENTS:
        raise ValueError(f"solana.commitment must be one of {sorted(_COMMITMENTS)}, got {commitment!r}")
    return SolanaSettings(
        rpc_url=rpc_url,
        commitment=commitment,
        http_timeout=_to_float(section.get("http_timeout", SolanaSettings.http_timeout), "solana.http_timeout"),
    )


def _build_jupiter(cfg: Dict[str, Any]) -> JupiterSettings:
    section = cfg.get("jupiter", {}) or {}
    max_retries = _to_int(section.get("max_retries", JupiterSettings.max_retries), "jupiter.max_retries")
    if max_retries < 1:
        raise ValueError("jupiter.max_retries must be >= 1")
    return JupiterSettings(
        base_url=str(section.get("base_url", JupiterSettings.base_url)).rstrip("/"),
        api_key=str(section.get("api_key", "") or ""),
        http_timeout=_to_float(section.get("http_timeout", JupiterSettings.http_timeout), "jupiter.http_timeout"),
        only_direct_routes=_to_bool(section.get("only_direct_routes", True)),
        max_retries=max_retries,
        retry_delay_base=_to_float(section.get("retry_delay_base", JupiterSettings.retry_delay_base), "jupiter.retry_delay_base"),
    )


def _build_platform_fee(cfg: Dict[str, Any]) -> PlatformFeeSettings:
    section = cfg.get("platform_fee", {}) or {}
    bps = _to_int(section.get("bps", 0), "platform_fee.bps")
    if bps < 0 or bps > 10_000:
        raise ValueError(f"platform_fee.bps must be within 0-10000, got {bps}")
    account = str(section.get("account", "") or "").strip()
    private_key = str(section.get("private_key", "") or "").strip()
    if private_key:
        try:
            key_len = len(base58.b58decode(private_key))
        except ValueError as exc:
            raise ValueError("platform_fee.private_key is not valid base58") from exc
        if key_len != 64:
            raise ValueError(f"platform_fee.private_key must decode to 64 bytes, got {key_len}")
    return PlatformFeeSettings(bps=bps, account=account, private_key=private_key)


def _build_reconcile(cfg: Dict[str, Any]) -> ReconcileSettings:
    section = cfg.get("reconcile", {}) or {}
    threshold = _to_int(section.get("finality_threshold", 31), "reconcile.finality_threshold")
    if threshold < 1:
        raise ValueError("reconcile.finality_threshold must be >= 1")
    return ReconcileSettings(finality_threshold=threshold)


def _build_logging(cfg: Dict[str, Any]) -> LoggingSettings:
    section = cfg.get("logging", {}) or {}
    return LoggingSettings(
        level=str(section.get("level", "INFO")).upper(),
        file=section.get("file") or None,
    )
