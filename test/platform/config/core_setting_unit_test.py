from pydantic import ValidationError
import pytest

from src.platform.config.core_setting import Settings


class TestSettings:
    def test_environment_overrides_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv('LEG_LEDGER_BACKEND', 'segment_tree')
        monkeypatch.setenv('BACKEND_CORS_ORIGINS', '["http://a.test", "http://b.test"]')

        settings = Settings()

        assert settings.LEG_LEDGER_BACKEND == 'segment_tree'
        assert settings.BACKEND_CORS_ORIGINS == ['http://a.test', 'http://b.test']

    def test_unknown_ledger_backend_is_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv('LEG_LEDGER_BACKEND', 'fenwick')

        with pytest.raises(ValidationError):
            Settings()

    def test_default_ttl_cannot_exceed_max(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv('DEFAULT_HOLD_TTL_SECONDS', '7200')
        monkeypatch.setenv('MAX_HOLD_TTL_SECONDS', '3600')

        with pytest.raises(ValidationError):
            Settings()
