import os
from dataclasses import dataclass
from dotenv import load_dotenv

@dataclass(frozen=True)
class Settings:
    # Mode: mock | live
    mode: str

    # Ledger / performance store (DuckDB file shared by API and worker)
    db_path: str

    # google-ads.yaml used in live mode
    google_ads_config_path: str

    # Client YAML (worker interval, batch limit, customer id)
    client_config_path: str

    # Read-side cache
    cache_ttl_seconds: int

    # Logging
    log_level: str
    log_dir: str

    # Mock
    mock_seed: int

def get_settings() -> Settings:
    load_dotenv()  # reads .env if present

    mode = os.getenv("NK_MODE", "mock").strip().lower()

    return Settings(
        mode=mode,
        db_path=os.getenv("NK_DB_PATH", "./negatives.duckdb"),
        google_ads_config_path=os.getenv("GOOGLE_ADS_CONFIG_PATH", "./secrets/google-ads.yaml"),
        client_config_path=os.getenv("NK_CLIENT_CONFIG", "./configs/client_example.yaml"),
        cache_ttl_seconds=int(os.getenv("NK_CACHE_TTL_SECONDS", "300")),
        log_level=os.getenv("NK_LOG_LEVEL", "INFO"),
        log_dir=os.getenv("NK_LOG_DIR", "logs"),
        mock_seed=int(os.getenv("NK_MOCK_SEED", "42")),
    )
