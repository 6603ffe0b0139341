import asyncio
import yaml
from typing import Dict, List, Any, Optional, Union, Iterable
from pathlib import Path
from datetime import datetime
import logging
from dataclasses import dataclass, field, fields

from playwright.async_api import (
    async_playwright,
    Browser,
    Error as PlaywrightError,
)

from ..bdd.parser import FeatureParser, Feature, Scenario, Step
from ..core.base import (
    ScenarioStatus,
    StepStatus,
    FailureKind,
    StepResult,
    ScenarioResult,
)
from ..core.exceptions import (
    ConfigurationError,
    UndefinedStepError,
    AmbiguousStepError,
    ParameterConversionError,
    ExecutionError,
    BrowserLaunchError,
)
from .step_definitions import StepDefinitionRegistry, ValidationReport
from .test_context import TestContext, safe_filename
from .report_collector import ReportCollector

logger = logging.getLogger(__name__)

SUPPORTED_BROWSERS = ('chromium', 'firefox', 'webkit')
TRACE_MODES = ('off', 'on', 'on-first-retry')
DEFAULT_BASE_URL = "https://www.saucedemo.com"
LIST_OPTIONS = ('tags', 'report_formats')


@dataclass
class ExecutorConfig:
    """Configuration for Test Executor"""
    browser: str = "chromium"
    headless: bool = True
    timeout: int = 30000
    viewport: Dict[str, int] = field(default_factory=lambda: {"width": 1280, "height": 720})
    screenshot_on_failure: bool = True
    video_recording: bool = False
    parallel_workers: int = 1
    retries: int = 0
    environment: str = "dev"
    config_path: Optional[str] = None
    base_url: Optional[str] = None
    slow_mo: int = 0
    devtools: bool = False
    tags: List[str] = field(default_factory=list)
    run_timeout: Optional[float] = None
    report_formats: List[str] = field(default_factory=lambda: ["html"])
    output_dir: str = "test-results"
    screenshot_dir: str = "screenshots"
    device: Optional[str] = None
    trace: str = "off"
    trace_dir: str = "traces"

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "ExecutorConfig":
        """
        Build a config from a mapping, ignoring keys that are not config fields.

        List options may also be given as comma-separated strings
        (``tags: "@smoke,~@wip"``).
        """
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            logger.debug(f"Ignoring unknown executor options: {sorted(unknown)}")

        options = {k: v for k, v in values.items() if k in known}
        for name in LIST_OPTIONS:
            if isinstance(options.get(name), str):
                options[name] = [item.strip() for item in options[name].split(',') if item.strip()]
        # YAML reads a bare on/off as a boolean
        if isinstance(options.get('trace'), bool):
            options['trace'] = 'on' if options['trace'] else 'off'
        return cls(**options)


def classify_failure(error: BaseException) -> FailureKind:
    """Map a step exception onto the failure taxonomy"""
    if isinstance(error, UndefinedStepError):
        return FailureKind.UNDEFINED
    if isinstance(error, AmbiguousStepError):
        return FailureKind.AMBIGUOUS
    if isinstance(error, ParameterConversionError):
        return FailureKind.CONVERSION
    if isinstance(error, AssertionError):
        return FailureKind.ASSERTION
    if isinstance(error, PlaywrightError):
        return FailureKind.INTERACTION
    return FailureKind.ERROR


def select_by_tags(scenario: Scenario, tags: Iterable[str]) -> bool:
    """
    Tag filter: plain tags include (any of them), '~'-prefixed tags exclude.

    With no include tags every scenario that is not excluded runs.
    """
    include = []
    exclude = []
    for tag in tags:
        tag = tag.strip()
        if not tag:
            continue
        if tag.startswith('~'):
            exclude.append(tag[1:].lstrip('@'))
        else:
            include.append(tag.lstrip('@'))

    if any(tag in scenario.tags for tag in exclude):
        return False
    if include and not any(tag in scenario.tags for tag in include):
        return False
    return True


class TestExecutor:
    """
    Executes BDD feature files using Playwright

    One browser is launched per run; every scenario gets its own browser
    context (TestContext) and runs its steps strictly in order.
    """
    __test__ = False  # not a pytest test class

    def __init__(self, config: Optional[Union[Dict, ExecutorConfig]] = None,
                 step_registry: Optional[StepDefinitionRegistry] = None,
                 load_default_steps: bool = True):
        if isinstance(config, dict):
            self.config = ExecutorConfig.from_dict(config)
        else:
            self.config = config or ExecutorConfig()

        self.parser = FeatureParser()
        self.step_registry = step_registry or StepDefinitionRegistry()
        self.report_collector = ReportCollector(self.config.output_dir)
        self.env_config = self._load_environment_config()

        if load_default_steps and step_registry is None:
            self._register_builtin_steps()

    @property
    def base_url(self) -> str:
        return self.config.base_url or self.env_config.get('base_url') or DEFAULT_BASE_URL

    def _load_environment_config(self) -> Dict[str, Any]:
        """Load environment-specific configuration"""
        if self.config.config_path:
            config_path = Path(self.config.config_path)
        else:
            # Default config location
            config_path = Path("config/environments") / f"{self.config.environment}.yaml"

        if config_path.exists():
            with open(config_path, 'r') as f:
                env_config = yaml.safe_load(f) or {}
            if not isinstance(env_config, dict):
                raise ConfigurationError(f"Environment config {config_path} must contain a mapping")
            logger.info(f"Loaded environment config from {config_path}")
            return env_config

        logger.warning(f"Environment config not found: {config_path}")
        return {}

    def _register_builtin_steps(self):
        """Register the storefront step definitions"""
        from ..steps import load_default_steps
        load_default_steps(self.step_registry)
        logger.debug(f"Registered {len(self.step_registry.definitions)} step definitions")

    def list_all_steps(self) -> List[Dict[str, str]]:
        """List all registered step definitions"""
        return self.step_registry.list_definitions()

    def validate(self) -> bool:
        """Validate executor configuration"""
        if self.config.browser not in SUPPORTED_BROWSERS:
            logger.error(f"Unsupported browser: {self.config.browser}")
            return False

        if self.config.parallel_workers < 1:
            logger.error("parallel_workers must be at least 1")
            return False

        if self.config.retries < 0:
            logger.error("retries cannot be negative")
            return False

        if self.config.trace not in TRACE_MODES:
            logger.error(f"Unsupported trace mode: {self.config.trace}")
            return False

        return True

    def load_features(self, paths: Iterable[Union[str, Path]]) -> List[Feature]:
        return self.parser.parse_paths(list(paths))

    def dry_run(self, paths: Iterable[Union[str, Path]]) -> ValidationReport:
        """Resolve every step of the given features against the registry without a browser"""
        features = self.load_features(paths)
        report = self.step_registry.validate(features)

        for entry in report.undefined:
            logger.warning(f"Undefined step {entry['file']}:{entry['line']}: {entry['step']}")
        for entry in report.ambiguous:
            logger.error(f"Ambiguous step {entry['file']}:{entry['line']}: {entry['step']}")

        return report

    async def execute_feature(self, feature_path: Union[str, Path]) -> Dict[str, Any]:
        """Execute a single feature file"""
        results = await self.execute_features([feature_path])
        return results['features'][0]

    async def execute_features(self, paths: Iterable[Union[str, Path]]) -> Dict[str, Any]:
        """Parse, check and run features; the browser is launched once for the whole run"""
        if not self.validate():
            raise ConfigurationError("Invalid executor configuration")

        features = self.load_features(paths)

        # Ambiguity is an authoring error and stops the run before any browser starts
        report = self.step_registry.validate(features)
        report.raise_for_ambiguity()
        for entry in report.undefined:
            logger.warning(f"Undefined step {entry['file']}:{entry['line']}: {entry['step']}")
        self.step_registry.freeze()

        results = {
            'features': [],
            'summary': {},
            'start_time': datetime.now().isoformat(),
        }

        run = self._run_features(features)
        if self.config.run_timeout:
            try:
                feature_results = await asyncio.wait_for(run, timeout=self.config.run_timeout)
            except asyncio.TimeoutError:
                raise ExecutionError(f"Test run exceeded {self.config.run_timeout}s and was cancelled")
        else:
            feature_results = await run

        results['features'] = feature_results
        results['summary'] = self._summarize(feature_results)
        results['status'] = 'failed' if results['summary']['failed'] else 'passed'
        results['end_time'] = datetime.now().isoformat()
        return results

    async def _run_features(self, features: List[Feature]) -> List[Dict[str, Any]]:
        async with async_playwright() as p:
            context_options = self._context_options(p)
            browser = await self._launch_browser(p)
            try:
                semaphore = asyncio.Semaphore(self.config.parallel_workers)

                async def run_one(scenario: Scenario) -> ScenarioResult:
                    async with semaphore:
                        return await self._execute_scenario(browser, scenario, context_options)

                # one pool for every selected scenario of every feature
                selected = [
                    (index, scenario)
                    for index, feature in enumerate(features)
                    for scenario in feature.scenarios
                    if self._should_run_scenario(scenario)
                ]
                started = datetime.now().isoformat()
                scenario_results = await asyncio.gather(*(run_one(s) for _, s in selected))

                by_feature: Dict[int, List[ScenarioResult]] = {i: [] for i in range(len(features))}
                for (index, _), result in zip(selected, scenario_results):
                    by_feature[index].append(result)

                feature_results = []
                for index, feature in enumerate(features):
                    results = by_feature[index]
                    feature_results.append({
                        'feature': feature.name,
                        'file': feature.file,
                        'tags': list(feature.tags),
                        'scenarios': [r.to_dict() for r in results],
                        'status': 'failed' if any(not r.passed for r in results) else 'passed',
                        'start_time': min(r.start_time for r in results).isoformat() if results else started,
                        'end_time': max(r.end_time for r in results).isoformat() if results else started,
                    })
                return feature_results
            finally:
                await browser.close()

    def _context_options(self, playwright) -> Dict[str, Any]:
        """new_context() keyword arguments for the configured device, if any"""
        if not self.config.device:
            return {}

        try:
            descriptor = dict(playwright.devices[self.config.device])
        except KeyError:
            raise ConfigurationError(f"Unknown device: {self.config.device}") from None

        # only used to pick the browser, not a context option
        default_browser = descriptor.pop('default_browser_type', None)
        if default_browser and default_browser != self.config.browser:
            logger.warning(
                f"Device '{self.config.device}' is normally run on {default_browser}, "
                f"not {self.config.browser}"
            )
        return descriptor

    async def _launch_browser(self, playwright) -> Browser:
        """Launch browser with configuration"""
        browser_type = getattr(playwright, self.config.browser)

        launch_args = {
            'headless': self.config.headless,
            'slow_mo': self.config.slow_mo,
        }

        if self.config.devtools:
            launch_args['devtools'] = True

        try:
            browser = await browser_type.launch(**launch_args)
        except PlaywrightError as e:
            raise BrowserLaunchError(f"Could not launch {self.config.browser}: {e}") from e

        logger.info(f"Launched {self.config.browser} (headless={self.config.headless})")
        return browser

    async def _execute_scenario(self, browser: Browser, scenario: Scenario,
                                context_options: Optional[Dict[str, Any]] = None) -> ScenarioResult:
        """Run a scenario, re-running it from scratch up to `retries` times on failure"""
        result = None
        for attempt in range(1, self.config.retries + 2):
            result = await self._run_attempt(browser, scenario, attempt, context_options)
            result.attempts = attempt
            if result.passed:
                break
            if attempt <= self.config.retries:
                logger.warning(
                    f"Scenario '{scenario.name}' failed (attempt {attempt}/{self.config.retries + 1}), retrying"
                )

        logger.info(f"Scenario '{scenario.name}': {result.status.value}")
        return result

    def _trace_path(self, scenario: Scenario, attempt: int) -> Optional[str]:
        """Where to save this attempt's trace, or None when it is not traced"""
        if self.config.trace == 'on' or (self.config.trace == 'on-first-retry' and attempt == 2):
            return str(Path(self.config.trace_dir) / f"{safe_filename(scenario.name)}_attempt{attempt}.zip")
        return None

    async def _run_attempt(self, browser: Browser, scenario: Scenario, attempt: int = 1,
                           context_options: Optional[Dict[str, Any]] = None) -> ScenarioResult:
        result = ScenarioResult(
            name=scenario.name,
            feature=scenario.feature,
            tags=list(scenario.tags),
            status=ScenarioStatus.RUNNING,
            start_time=datetime.now(),
        )
        trace_path = self._trace_path(scenario, attempt)

        try:
            session = await TestContext.open(
                browser,
                timeout=self.config.timeout,
                base_url=self.base_url,
                env_config=self.env_config,
                viewport=self.config.viewport,
                record_video_dir="videos/" if self.config.video_recording else None,
                trace_path=trace_path,
                context_options=context_options,
            )
        except PlaywrightError as e:
            result.status = ScenarioStatus.FAILED
            result.failure_kind = FailureKind.INTERACTION
            result.error = f"Could not open browser session: {e}"
            result.steps = [StepResult(step.keyword, step.text, step.line) for step in scenario.steps]
            result.end_time = datetime.now()
            return result

        async with session:
            result.metadata['session_id'] = session.session_id

            for step in scenario.steps:
                if result.status == ScenarioStatus.FAILED:
                    result.steps.append(StepResult(step.keyword, step.text, step.line, StepStatus.SKIPPED))
                    continue

                step_result = await self._execute_step(session, step)
                result.steps.append(step_result)

                if step_result.status == StepStatus.FAILED:
                    result.status = ScenarioStatus.FAILED
                    result.error = step_result.error
                    result.failure_kind = step_result.failure_kind

            if result.status == ScenarioStatus.FAILED:
                if self.config.screenshot_on_failure:
                    result.screenshot = await self._capture_screenshot(session, scenario)
            else:
                result.status = ScenarioStatus.PASSED

        result.trace = session.trace_path
        result.end_time = datetime.now()
        return result

    async def _execute_step(self, context: TestContext, step: Step) -> StepResult:
        """Resolve and run one step; failures are recorded, never raised"""
        step_result = StepResult(
            keyword=step.keyword,
            name=step.text,
            line=step.line,
            start_time=datetime.now(),
        )

        try:
            match = self.step_registry.match(step.text)
            step_result.arguments = list(match.arguments)
            await match.definition.execute(context.fixtures(), match.arguments)
            step_result.status = StepStatus.PASSED

        except Exception as e:
            step_result.status = StepStatus.FAILED
            step_result.failure_kind = classify_failure(e)
            step_result.error = str(e) or e.__class__.__name__
            logger.error(f"Step failed [{step_result.failure_kind.value}]: {step.keyword} {step.text}: {step_result.error}")

        finally:
            step_result.end_time = datetime.now()

        return step_result

    async def _capture_screenshot(self, context: TestContext, scenario: Scenario) -> Optional[str]:
        try:
            return await context.take_screenshot(scenario.name, self.config.screenshot_dir)
        except PlaywrightError as e:
            logger.warning(f"Could not take screenshot for '{scenario.name}': {e}")
            return None

    def _should_run_scenario(self, scenario: Scenario) -> bool:
        """Check if scenario should be executed based on tags"""
        return select_by_tags(scenario, self.config.tags)

    @staticmethod
    def _summarize(feature_results: List[Dict[str, Any]]) -> Dict[str, int]:
        summary = {
            'features': len(feature_results),
            'total': 0,
            'passed': 0,
            'failed': 0,
            'steps_passed': 0,
            'steps_failed': 0,
            'steps_skipped': 0,
        }
        for feature in feature_results:
            for scenario in feature['scenarios']:
                summary['total'] += 1
                if scenario['status'] == ScenarioStatus.PASSED.value:
                    summary['passed'] += 1
                else:
                    summary['failed'] += 1
                for step in scenario['steps']:
                    summary[f"steps_{step['status']}"] += 1
        return summary

    def execute(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Execute feature files

        Args:
            input_data: Dict with 'feature_path' or 'feature_dir'

        Returns:
            Execution results
        """
        feature_path = input_data.get('feature_path')
        feature_dir = input_data.get('feature_dir', 'features/')

        if feature_path:
            return self.run([feature_path])
        else:
            return self.execute_directory(feature_dir)

    def execute_directory(self, feature_dir: Union[str, Path]) -> Dict[str, Any]:
        """Execute all feature files in a directory"""
        feature_dir = Path(feature_dir)

        if not feature_dir.exists():
            raise FileNotFoundError(f"Feature directory not found: {feature_dir}")

        return self.run([feature_dir])

    def run(self, paths: Iterable[Union[str, Path]]) -> Dict[str, Any]:
        """Synchronous entry point: run the features and write the configured reports"""
        results = asyncio.run(self.execute_features(paths))

        results['reports'] = [
            self.report_collector.generate_report(results, format=fmt)
            for fmt in self.config.report_formats
        ]
        return results

    @staticmethod
    def get_info() -> Dict[str, Any]:
        """Get module information"""
        return {
            'name': 'Test Executor',
            'version': '0.1.0',
            'description': 'Executes Gherkin features against the storefront using Playwright',
            'capabilities': [
                'Execute Gherkin scenarios',
                'Multi-browser support',
                'Parallel scenarios',
                'Scenario retries',
                'Screenshot on failure',
                'Playwright traces',
                'Device emulation',
                'Video recording',
            ]
        }
