from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "invoice_service"
    db_username: str = "invoice_service"
    db_password: str = "secret"

    pdf_engine: str = "pdfplumber"
    enrichment_dpi: int = 300
    max_slot_size_bytes: int = 10 * 1024 * 1024

    token_max_attempts: int = 10

    validator_provider: str = "local"
    validator_base_url: str = ""
    validator_timeout_seconds: int = 30

    signing_keystore_path: str = ""
    signing_keystore_password: str = ""

    audit_sink: str = "log"
    audit_log_path: str = "audit.jsonl"
