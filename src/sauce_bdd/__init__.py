"""
sauce-bdd - Gherkin scenarios for the SauceDemo storefront, run with Playwright
"""

__version__ = "0.1.0"
__author__ = "sauce-bdd Contributors"

from .core import ConfigManager, ScenarioStatus, StepStatus, FailureKind
from .bdd import FeatureParser
from .executor import TestExecutor, ExecutorConfig, StepDefinitionRegistry

__all__ = [
    "ConfigManager",
    "ScenarioStatus",
    "StepStatus",
    "FailureKind",
    "FeatureParser",
    "TestExecutor",
    "ExecutorConfig",
    "StepDefinitionRegistry",
]
