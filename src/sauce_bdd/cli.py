import click
import logging
from pathlib import Path

from .core import ConfigManager, SauceBDDError
from .bdd import FeatureParser
from .executor import TestExecutor, ExecutorConfig
from . import __version__


def _executor_config(manager: ConfigManager, **overrides) -> ExecutorConfig:
    """Executor settings from the config file, overridden by command line options"""
    values = dict(manager.get_module_config('executor'))
    values.setdefault('report_formats', manager.get('reporter.formats', ['html']))
    values.setdefault('output_dir', manager.get('reporter.output_dir', 'test-results'))
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ExecutorConfig.from_dict(values)


@click.group()
@click.option('--config', '-c', type=click.Path(), help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, config, verbose):
    """sauce-bdd - Gherkin scenarios for the storefront, run with Playwright"""
    # Load configuration
    config_path = Path(config) if config else None
    manager = ConfigManager(config_path)
    ctx.obj = manager

    # Setup logging; -v wins over general.log_level
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, str(manager.get('general.log_level', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@cli.command()
def version():
    """Show version information"""
    click.echo(f"sauce-bdd v{__version__}")


@cli.command()
@click.argument('paths', nargs=-1, type=click.Path(exists=True))
@click.option('-e', '--env', default=None, help='Environment to use (dev, staging, ...)')
@click.option('-b', '--browser', default=None, type=click.Choice(['chromium', 'firefox', 'webkit']),
              help='Browser to use')
@click.option('--headless/--headed', default=None, help='Run in headless mode')
@click.option('-p', '--parallel', default=None, type=int, help='Scenarios to run at once')
@click.option('--retries', default=None, type=int, help='Times to re-run a failed scenario')
@click.option('--env-config', default=None, help='Path to environment config file')
@click.option('--base-url', default=None, help='Storefront base URL')
@click.option('-t', '--tags', default=None, help='Tag filter, comma-separated (e.g. @smoke,~@wip)')
@click.option('-r', '--report', multiple=True, type=click.Choice(['html', 'json', 'junit']),
              help='Report format (repeatable)')
@click.option('--timeout', default=None, type=int, help='Interaction timeout in milliseconds')
@click.option('--run-timeout', default=None, type=float, help='Cancel the whole run after this many seconds')
@click.option('--device', default=None, help="Emulated device, e.g. 'Desktop Chrome' or 'Pixel 5'")
@click.option('--trace', default=None, type=click.Choice(['off', 'on', 'on-first-retry']),
              help='Record Playwright traces')
@click.pass_obj
def run(manager, paths, env, browser, headless, parallel, retries, env_config, base_url,
        tags, report, timeout, run_timeout, device, trace):
    """
    Execute feature files

    Examples:
        sauce-bdd run features/login.feature
        sauce-bdd run features/ --browser firefox --headed
        sauce-bdd run -t @smoke -r html -r junit
    """
    executor_config = _executor_config(
        manager,
        environment=env,
        browser=browser,
        headless=headless,
        parallel_workers=parallel,
        retries=retries,
        config_path=env_config,
        base_url=base_url,
        tags=[t.strip() for t in tags.split(',')] if tags else None,
        report_formats=list(report) or None,
        timeout=timeout,
        run_timeout=run_timeout,
        device=device,
        trace=trace,
    )

    try:
        executor = TestExecutor(executor_config)
        results = executor.run(paths or ['features/'])
    except (SauceBDDError, FileNotFoundError) as e:
        click.echo(f"Run aborted: {e}", err=True)
        raise SystemExit(2)

    summary = results.get('summary', {})
    click.echo("\nTest Execution Summary:")
    click.echo(f"  Scenarios: {summary.get('total', 0)}")
    click.echo(f"  Passed: {summary.get('passed', 0)}")
    click.echo(f"  Failed: {summary.get('failed', 0)}")
    click.echo(f"  Skipped steps: {summary.get('steps_skipped', 0)}")

    if summary.get('failed', 0) > 0:
        click.echo("\nFailed Scenarios:")
        for feature in results.get('features', []):
            for scenario in feature.get('scenarios', []):
                if scenario['status'] == 'failed':
                    click.echo(f"  - {feature['feature']}: {scenario['name']}")
                    click.echo(f"    [{scenario.get('failure_kind')}] {scenario.get('error')}")

    for report_path in results.get('reports', []):
        click.echo(f"\nReport: {report_path}")

    raise SystemExit(0 if summary.get('failed', 0) == 0 else 1)


@cli.command(name='dry-run')
@click.argument('paths', nargs=-1, type=click.Path(exists=True))
@click.pass_obj
def dry_run(manager, paths):
    """Check that every step resolves to exactly one step definition"""
    executor = TestExecutor(_executor_config(manager))

    try:
        report = executor.dry_run(paths or ['features/'])
    except (SauceBDDError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(2)

    click.echo(f"Checked {report.checked} step(s)")
    for entry in report.undefined:
        click.echo(f"  UNDEFINED  {entry['file']}:{entry['line']}  {entry['step']}")
    for entry in report.ambiguous:
        click.echo(f"  AMBIGUOUS  {entry['file']}:{entry['line']}  {entry['step']}")
        for expression in entry['expressions']:
            click.echo(f"             matches: {expression}")
    for entry in report.conversion_errors:
        click.echo(f"  CONVERSION {entry['file']}:{entry['line']}  {entry['error']}")

    if report.ok:
        click.echo("✓ All steps are defined")
    raise SystemExit(0 if report.ok else 1)


@cli.command(name='list-steps')
@click.pass_obj
def list_steps(manager):
    """List all available step definitions"""
    executor = TestExecutor(_executor_config(manager))
    definitions = executor.list_all_steps()

    click.echo("Available Step Definitions:")
    click.echo("=" * 60)

    grouped = {}
    for defn in definitions:
        grouped.setdefault(defn['keyword'].upper(), []).append(defn)

    for keyword in ['GIVEN', 'WHEN', 'THEN', 'STEP']:
        if keyword in grouped:
            click.echo(f"\n{keyword} Steps:")
            click.echo("-" * 40)
            for defn in grouped[keyword]:
                click.echo(f"  {defn['pattern']}")
                if defn.get('description'):
                    click.echo(f"    {defn['description']}")

    click.echo("\nNote: any keyword can use any step; And/But take the role of the previous step")


@cli.command()
@click.option('-e', '--env', default=None, help='Environment to check')
@click.option('--env-config', default=None, help='Path to environment config file')
@click.pass_obj
def validate(manager, env, env_config):
    """Validate test configuration"""
    try:
        executor = TestExecutor(_executor_config(manager, environment=env, config_path=env_config))
    except SauceBDDError as e:
        click.echo(f"Error validating configuration: {e}", err=True)
        raise SystemExit(1)

    if not executor.validate():
        click.echo("✗ Configuration validation failed", err=True)
        raise SystemExit(1)

    click.echo("✓ Configuration is valid")
    click.echo(f"  Base URL: {executor.base_url}")
    roles = executor.env_config.get('roles', {})
    if roles:
        click.echo(f"  Configured roles: {', '.join(roles.keys())}")


@cli.command()
@click.argument('feature_file', type=click.Path(exists=True))
def preview(feature_file):
    """Show the ordered steps of every scenario in a feature file"""
    try:
        feature = FeatureParser().parse_file(feature_file)
    except SauceBDDError as e:
        click.echo(f"Error parsing feature file: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Feature: {feature.name}")
    for scenario in feature.scenarios:
        click.echo(f"\n  Scenario: {scenario.name}")
        if scenario.tags:
            click.echo(f"    Tags: {' '.join('@' + tag for tag in scenario.tags)}")
        for step in scenario.steps:
            click.echo(f"    {step.keyword} {step.text}  ({step.role.value})")

    click.echo(f"\nTotal scenarios: {len(feature.scenarios)}")


def main():
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()
