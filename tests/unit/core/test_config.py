import json

import pytest

from bdd_e2e.core import (
    Attachment,
    BrowserSettings,
    ConfigManager,
    ConfigurationError,
    ScenarioStatus,
    parse_bool,
)


class TestParseBool:
    """Test boolean environment flags"""

    @pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes", " on "])
    def test_true_values(self, value):
        assert parse_bool(value, default=False) is True

    @pytest.mark.parametrize("value", ["false", "False", "0", "no", "off"])
    def test_false_values(self, value):
        assert parse_bool(value, default=True) is False

    def test_unset_uses_default(self):
        assert parse_bool(None, default=True) is True
        assert parse_bool("", default=False) is False

    def test_invalid_value(self):
        with pytest.raises(ConfigurationError):
            parse_bool("sometimes", default=True)


class TestBrowserSettings:
    """Test BrowserSettings"""

    def test_defaults(self):
        """Unset environment gives headless chromium"""
        settings = BrowserSettings.from_env({})

        assert settings.browser == "chromium"
        assert settings.headless is True
        assert settings.base_url == ""
        assert settings.environment == "dev"

    def test_from_env(self):
        settings = BrowserSettings.from_env({
            "BROWSER": "WebKit",
            "HEADLESS": "false",
            "BASE_URL": "https://staging.example.com",
            "ENV": "staging",
        })

        assert settings.browser == "webkit"
        assert settings.headless is False
        assert settings.base_url == "https://staging.example.com"
        assert settings.environment == "staging"

    def test_blank_values_use_defaults(self):
        settings = BrowserSettings.from_env({"BROWSER": "  ", "HEADLESS": " "})

        assert settings.browser == "chromium"
        assert settings.headless is True

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("BROWSER", "firefox")
        monkeypatch.delenv("HEADLESS", raising=False)

        settings = BrowserSettings.from_env()

        assert settings.browser == "firefox"
        assert settings.headless is True

    def test_validate(self):
        BrowserSettings(browser="firefox").validate()

        with pytest.raises(ConfigurationError, match="Unsupported browser"):
            BrowserSettings(browser="opera").validate()


class TestConfigManager:
    """Test runner profile loading"""

    def test_defaults_without_file(self, tmp_path):
        manager = ConfigManager(tmp_path / "missing.yaml")

        assert manager.get('runner.parallel') == 2
        assert manager.get('runner.timeout') == 30000
        assert manager.get('runner.retry') == 0
        assert "junit:reports/cucumber-report.xml" in manager.get('runner.formats')
        assert manager.get('runner.unknown', 'fallback') == 'fallback'

    def test_yaml_profile_overrides_defaults(self, tmp_path):
        path = tmp_path / "bdd-e2e.yaml"
        path.write_text("runner:\n  parallel: 4\n  tags: '@smoke'\n")

        manager = ConfigManager(path)

        assert manager.get('runner.parallel') == 4
        assert manager.get('runner.tags') == '@smoke'
        assert manager.get('runner.retry') == 0

    def test_json_profile(self, tmp_path):
        path = tmp_path / "profile.json"
        path.write_text(json.dumps({"runner": {"retry": 2}}))

        assert ConfigManager(path).get_module_config('runner')['retry'] == 2

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "profile.toml"
        path.write_text("[runner]\n")

        with pytest.raises(ConfigurationError):
            ConfigManager(path)

    def test_env_variable_selects_profile(self, tmp_path, monkeypatch):
        path = tmp_path / "ci.yaml"
        path.write_text("general:\n  log_level: DEBUG\n")
        monkeypatch.setenv("BDD_E2E_CONFIG", str(path))

        manager = ConfigManager()

        assert manager.config_path == path
        assert manager.get('general.log_level') == 'DEBUG'

    def test_set_and_save(self, tmp_path):
        path = tmp_path / "nested" / "bdd-e2e.yaml"
        manager = ConfigManager(path)

        manager.set('runner.names', ['login'])
        manager.save()

        assert ConfigManager(path).get('runner.names') == ['login']


class TestScenarioStatus:
    """Test status normalization"""

    def test_from_value(self):
        assert ScenarioStatus.from_value("failed") is ScenarioStatus.FAILED
        assert ScenarioStatus.from_value(" Passed ") is ScenarioStatus.PASSED
        assert ScenarioStatus.from_value(ScenarioStatus.SKIPPED) is ScenarioStatus.SKIPPED

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            ScenarioStatus.from_value("flaky")

    def test_attachment_to_dict(self):
        attachment = Attachment(b"png", "image/png", "shot.png")

        assert attachment.to_dict() == {
            'name': 'shot.png',
            'media_type': 'image/png',
            'data': 'cG5n',
        }
