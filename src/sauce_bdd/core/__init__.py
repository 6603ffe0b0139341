from .base import (
    ScenarioStatus,
    StepStatus,
    FailureKind,
    StepResult,
    ScenarioResult,
)
from .config import ConfigManager
from .exceptions import (
    SauceBDDError,
    ConfigurationError,
    FeatureParseError,
    StepDefinitionError,
    UndefinedStepError,
    AmbiguousStepError,
    ParameterConversionError,
    ExecutionError,
    BrowserLaunchError,
)

__all__ = [
    # Results
    "ScenarioStatus",
    "StepStatus",
    "FailureKind",
    "StepResult",
    "ScenarioResult",

    # Configuration
    "ConfigManager",

    # Exceptions
    "SauceBDDError",
    "ConfigurationError",
    "FeatureParseError",
    "StepDefinitionError",
    "UndefinedStepError",
    "AmbiguousStepError",
    "ParameterConversionError",
    "ExecutionError",
    "BrowserLaunchError",
]
