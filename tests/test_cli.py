import logging
import pytest
from pathlib import Path
from unittest.mock import patch
from click.testing import CliRunner

from sauce_bdd import __version__
from sauce_bdd.cli import cli
from sauce_bdd.core.exceptions import BrowserLaunchError

FEATURES_DIR = Path(__file__).resolve().parents[1] / "features"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "sauce-bdd.yaml"
    path.write_text(
        "executor:\n"
        f"  config_path: {tmp_path / 'env.yaml'}\n"
        "reporter:\n"
        f"  output_dir: {tmp_path / 'results'}\n"
    )
    return str(path)


def run_results(failed=0):
    return {
        'status': 'failed' if failed else 'passed',
        'summary': {'total': 2, 'passed': 2 - failed, 'failed': failed, 'steps_skipped': failed},
        'features': [{
            'feature': 'Login',
            'scenarios': [
                {'name': 'Successful Login', 'status': 'passed'},
                {'name': 'Locked Out User', 'status': 'failed' if failed else 'passed',
                 'failure_kind': 'assertion', 'error': 'expected error banner'},
            ],
        }],
        'reports': ['test-results/report.html'],
    }


class TestCli:
    """Test the command line interface"""

    def test_version(self, runner):
        result = runner.invoke(cli, ['version'])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_list_steps(self, runner, config_file):
        result = runner.invoke(cli, ['-c', config_file, 'list-steps'])

        assert result.exit_code == 0
        assert "GIVEN Steps:" in result.output
        assert "I am on the login page" in result.output
        assert "I fill in my information with {string}, {string}, {string}" in result.output

    def test_dry_run_bundled_features(self, runner, config_file):
        result = runner.invoke(cli, ['-c', config_file, 'dry-run', str(FEATURES_DIR)])

        assert result.exit_code == 0
        assert "All steps are defined" in result.output

    def test_dry_run_reports_undefined_steps(self, runner, config_file, tmp_path):
        feature = tmp_path / "wip.feature"
        feature.write_text("Feature: WIP\n  Scenario: S\n    Given I am on the login page\n    When I dance\n")

        result = runner.invoke(cli, ['-c', config_file, 'dry-run', str(feature)])

        assert result.exit_code == 1
        assert "UNDEFINED" in result.output
        assert "I dance" in result.output

    def test_preview(self, runner):
        result = runner.invoke(cli, ['preview', str(FEATURES_DIR / "checkout.feature")])

        assert result.exit_code == 0
        assert "Feature: Checkout Flow" in result.output
        assert "Scenario: Complete Checkout Flow" in result.output

    def test_validate(self, runner, config_file, tmp_path):
        (tmp_path / "env.yaml").write_text(
            "base_url: https://www.saucedemo.com\n"
            "roles:\n"
            "  standard:\n"
            "    username: standard_user\n"
            "    password: secret_sauce\n"
        )

        result = runner.invoke(cli, ['-c', config_file, 'validate'])

        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
        assert "standard" in result.output

    def test_run_passes_options_to_executor(self, runner, config_file):
        with patch('sauce_bdd.cli.TestExecutor') as executor_class:
            executor_class.return_value.run.return_value = run_results()

            result = runner.invoke(cli, [
                '-c', config_file, 'run', str(FEATURES_DIR),
                '--browser', 'firefox', '--headed', '--retries', '1',
                '-t', '@smoke,~@wip', '-r', 'html', '-r', 'junit',
            ])

        assert result.exit_code == 0
        config = executor_class.call_args[0][0]
        assert config.browser == 'firefox'
        assert config.headless is False
        assert config.retries == 1
        assert config.tags == ['@smoke', '~@wip']
        assert config.report_formats == ['html', 'junit']
        assert "Passed: 2" in result.output

    def test_run_with_failures_exits_1(self, runner, config_file):
        with patch('sauce_bdd.cli.TestExecutor') as executor_class:
            executor_class.return_value.run.return_value = run_results(failed=1)

            result = runner.invoke(cli, ['-c', config_file, 'run', str(FEATURES_DIR)])

        assert result.exit_code == 1
        assert "Login: Locked Out User" in result.output
        assert "[assertion] expected error banner" in result.output

    def test_aborted_run_exits_2(self, runner, config_file):
        with patch('sauce_bdd.cli.TestExecutor') as executor_class:
            executor_class.return_value.run.side_effect = BrowserLaunchError("Executable doesn't exist")

            result = runner.invoke(cli, ['-c', config_file, 'run', str(FEATURES_DIR)])

        assert result.exit_code == 2

    def test_run_device_and_trace_options(self, runner, config_file):
        with patch('sauce_bdd.cli.TestExecutor') as executor_class:
            executor_class.return_value.run.return_value = run_results()

            result = runner.invoke(cli, [
                '-c', config_file, 'run', str(FEATURES_DIR),
                '--device', 'Pixel 5', '--trace', 'on-first-retry',
            ])

        assert result.exit_code == 0
        config = executor_class.call_args[0][0]
        assert config.device == 'Pixel 5'
        assert config.trace == 'on-first-retry'

    def test_run_without_features_directory_exits_2(self, runner, tmp_path):
        config_path = tmp_path / "sauce-bdd.yaml"
        config_path.write_text(f"executor:\n  config_path: {tmp_path / 'env.yaml'}\n")

        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ['-c', str(config_path), 'run'])

        assert result.exit_code == 2
        assert "Run aborted" in result.output

    def test_dry_run_without_features_directory_exits_2(self, runner, config_file, tmp_path):
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(cli, ['-c', config_file, 'dry-run'])

        assert result.exit_code == 2


class TestLogging:
    """Test how the log level is chosen"""

    def test_log_level_from_config(self, runner, tmp_path):
        path = tmp_path / "sauce-bdd.yaml"
        path.write_text("general:\n  log_level: WARNING\n")

        with patch('sauce_bdd.cli.logging.basicConfig') as basic_config:
            result = runner.invoke(cli, ['-c', str(path), 'version'])

        assert result.exit_code == 0
        assert basic_config.call_args.kwargs['level'] == logging.WARNING

    def test_verbose_overrides_config(self, runner, tmp_path):
        path = tmp_path / "sauce-bdd.yaml"
        path.write_text("general:\n  log_level: WARNING\n")

        with patch('sauce_bdd.cli.logging.basicConfig') as basic_config:
            runner.invoke(cli, ['-c', str(path), '-v', 'version'])

        assert basic_config.call_args.kwargs['level'] == logging.DEBUG

    def test_unknown_log_level_falls_back_to_info(self, runner, tmp_path):
        path = tmp_path / "sauce-bdd.yaml"
        path.write_text("general:\n  log_level: chatty\n")

        with patch('sauce_bdd.cli.logging.basicConfig') as basic_config:
            runner.invoke(cli, ['-c', str(path), 'version'])

        assert basic_config.call_args.kwargs['level'] == logging.INFO
