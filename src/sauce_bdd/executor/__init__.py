from .executor import TestExecutor, ExecutorConfig, classify_failure, select_by_tags
from .step_definitions import (
    StepDefinitionRegistry,
    StepDefinition,
    StepMatch,
    ParameterType,
    ValidationReport,
    given,
    when,
    then,
    step,
)
from .test_context import TestContext
from .report_collector import ReportCollector

__all__ = [
    'TestExecutor',
    'ExecutorConfig',
    'classify_failure',
    'select_by_tags',
    'StepDefinitionRegistry',
    'StepDefinition',
    'StepMatch',
    'ParameterType',
    'ValidationReport',
    'TestContext',
    'ReportCollector',
    'given',
    'when',
    'then',
    'step',
]
