import pytest

from sauce_bdd.core.config import ConfigManager
from sauce_bdd.core.exceptions import ConfigurationError


class TestConfigManager:
    """Test layered configuration"""

    def test_defaults_when_file_missing(self, tmp_path):
        manager = ConfigManager(tmp_path / "sauce-bdd.yaml")

        assert manager.get('executor.browser') == 'chromium'
        assert manager.get('executor.headless') is True
        assert manager.get('reporter.formats') == ['html']
        assert manager.get('executor.missing', 'fallback') == 'fallback'

    def test_file_values_layer_over_defaults(self, tmp_path):
        path = tmp_path / "sauce-bdd.yaml"
        path.write_text("executor:\n  browser: firefox\n  retries: 2\nreporter:\n  formats: [junit]\n")

        manager = ConfigManager(path)

        assert manager.get('executor.browser') == 'firefox'
        assert manager.get('executor.retries') == 2
        assert manager.get('executor.timeout') == 30000
        assert manager.get_module_config('reporter')['formats'] == ['junit']

    def test_json_config(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"executor": {"parallel_workers": 4}}')

        assert ConfigManager(path).get('executor.parallel_workers') == 4

    def test_env_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("general:\n  log_level: DEBUG\n")
        monkeypatch.setenv("SAUCE_BDD_CONFIG", str(path))

        manager = ConfigManager()

        assert manager.config_path == path
        assert manager.get('general.log_level') == 'DEBUG'

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[executor]\n")

        with pytest.raises(ConfigurationError):
            ConfigManager(path)

    def test_non_mapping_is_rejected(self, tmp_path):
        path = tmp_path / "sauce-bdd.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError):
            ConfigManager(path)

    def test_set_and_save(self, tmp_path):
        path = tmp_path / "out" / "sauce-bdd.yaml"
        manager = ConfigManager(path)

        manager.set('executor.browser', 'webkit')
        manager.set('custom.nested.value', 1)
        manager.save()

        reloaded = ConfigManager(path)
        assert reloaded.get('executor.browser') == 'webkit'
        assert reloaded.get('custom.nested.value') == 1
