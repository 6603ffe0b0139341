from ..executor.step_definitions import StepDefinitionRegistry
from . import login_steps, checkout_steps

STEP_MODULES = (login_steps, checkout_steps)


def load_default_steps(registry: StepDefinitionRegistry) -> StepDefinitionRegistry:
    """Register the storefront step definitions"""
    for module in STEP_MODULES:
        registry.register_from_module(module)
    return registry


__all__ = ["STEP_MODULES", "load_default_steps"]
