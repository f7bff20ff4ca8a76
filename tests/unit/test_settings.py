import pytest
from pydantic import ValidationError

from invoice_service.config.settings import Settings


class TestSettingsDefaults:
    def test_default_log_level(self) -> None:
        s = Settings()
        assert s.log_level == "INFO"

    def test_default_db_port(self) -> None:
        s = Settings()
        assert s.db_port == 5432

    def test_default_pdf_engine(self) -> None:
        s = Settings()
        assert s.pdf_engine == "pdfplumber"

    def test_default_slot_size_limit_is_ten_mebibytes(self) -> None:
        s = Settings()
        assert s.max_slot_size_bytes == 10 * 1024 * 1024

    def test_default_token_attempts(self) -> None:
        s = Settings()
        assert s.token_max_attempts == 10

    def test_default_validator_provider(self) -> None:
        s = Settings()
        assert s.validator_provider == "local"

    def test_default_audit_sink(self) -> None:
        s = Settings()
        assert s.audit_sink == "log"


class TestSettingsFromEnv:
    def test_loads_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        s = Settings()
        assert s.log_level == "DEBUG"

    def test_loads_db_host(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_HOST", "db.example.com")
        s = Settings()
        assert s.db_host == "db.example.com"

    def test_loads_token_max_attempts(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOKEN_MAX_ATTEMPTS", "3")
        s = Settings()
        assert s.token_max_attempts == 3

    def test_loads_signing_keystore(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SIGNING_KEYSTORE_PATH", "/etc/keys/seal.p12")
        monkeypatch.setenv("SIGNING_KEYSTORE_PASSWORD", "changeit")
        s = Settings()
        assert s.signing_keystore_path == "/etc/keys/seal.p12"
        assert s.signing_keystore_password == "changeit"


class TestSettingsValidation:
    def test_invalid_db_port_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DB_PORT", "not_a_number")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_slot_size_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_SLOT_SIZE_BYTES", "ten")
        with pytest.raises(ValidationError):
            Settings()
