import pytest
from solders.keypair import Keypair

from swapsettle.config.settings import load_config

WELL_KNOWN = (
    "SOLANA_RPC_URL",
    "JUPITER_BASE_URL",
    "JUPITER_API_KEY",
    "PLATFORM_FEE_BPS",
    "PLATFORM_FEE_ACCOUNT",
    "PLATFORM_PRIVATE_KEY",
    "EXTRA_TOKENS",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in WELL_KNOWN:
        monkeypatch.delenv(key, raising=False)
    return str(tmp_path / ".env")


def write_settings(tmp_path, body: str) -> str:
    path = tmp_path / "settings.toml"
    path.write_text(body, encoding="utf-8")
    return str(path)


def test_defaults_without_sources(clean_env) -> None:
    cfg = load_config(dotenv_path=clean_env)
    assert cfg.solana.rpc_url == "https://api.mainnet-beta.solana.com"
    assert cfg.jupiter.base_url == "https://lite-api.jup.ag"
    assert cfg.platform_fee.bps == 0
    assert cfg.platform_fee.enabled is False
    assert cfg.reconcile.finality_threshold == 31
    assert cfg.loaded_files == ()


def test_toml_then_env_layers(clean_env, tmp_path, monkeypatch) -> None:
    path = write_settings(tmp_path, """
[jupiter]
base_url = "https://jup.example/"
max_retries = 5

[platform_fee]
bps = 20
account = "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN"
""")
    monkeypatch.setenv("PLATFORM_FEE_BPS", "35")
    monkeypatch.setenv("SWAPSETTLE__JUPITER__HTTP_TIMEOUT", "12.5")
    monkeypatch.setenv("SWAPSETTLE__RECONCILE__FINALITY_THRESHOLD", "40")

    cfg = load_config(path, dotenv_path=clean_env)

    assert cfg.loaded_files == ("settings.toml",)
    assert cfg.jupiter.base_url == "https://jup.example"
    assert cfg.jupiter.max_retries == 5
    assert cfg.jupiter.http_timeout == 12.5
    assert cfg.platform_fee.bps == 35
    assert cfg.platform_fee.percent == 0.35
    assert cfg.platform_fee.enabled is True
    assert cfg.reconcile.finality_threshold == 40
    assert any(o.key == "platform_fee.bps" and o.new == 35 for o in cfg.overrides)


def test_dotenv_file_is_read(clean_env) -> None:
    with open(clean_env, "w", encoding="utf-8") as f:
        f.write("SOLANA_RPC_URL=https://rpc.example\nLOG_LEVEL=debug\n")

    cfg = load_config(dotenv_path=clean_env)

    assert cfg.solana.rpc_url == "https://rpc.example"
    assert cfg.logging.level == "DEBUG"


def test_secrets_stay_strings_and_are_not_in_repr(clean_env, monkeypatch) -> None:
    key = str(Keypair())
    monkeypatch.setenv("PLATFORM_PRIVATE_KEY", key)
    monkeypatch.setenv("JUPITER_API_KEY", "12345")

    cfg = load_config(dotenv_path=clean_env)

    assert cfg.platform_fee.private_key == key
    assert cfg.jupiter.api_key == "12345"
    assert key not in repr(cfg)
    assert "12345" not in repr(cfg.jupiter)


@pytest.mark.parametrize(
    "env, value",
    [
        ("PLATFORM_FEE_BPS", "10001"),
        ("PLATFORM_FEE_BPS", "-1"),
        ("PLATFORM_FEE_BPS", "lots"),
        ("PLATFORM_PRIVATE_KEY", "0OIl"),
        ("PLATFORM_PRIVATE_KEY", "3yZe7d"),
        ("SWAPSETTLE__SOLANA__COMMITMENT", "recent"),
        ("SWAPSETTLE__JUPITER__MAX_RETRIES", "0"),
        ("SWAPSETTLE__RECONCILE__FINALITY_THRESHOLD", "0"),
    ],
)
def test_invalid_values_fail_fast(clean_env, monkeypatch, env, value) -> None:
    monkeypatch.setenv(env, value)
    with pytest.raises(ValueError):
        load_config(dotenv_path=clean_env)
