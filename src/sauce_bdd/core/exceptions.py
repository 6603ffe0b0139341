from typing import List, Optional


class SauceBDDError(Exception):
    """Base exception for sauce-bdd"""
    pass


class ConfigurationError(SauceBDDError):
    """Configuration-related errors"""
    pass


class FeatureParseError(SauceBDDError):
    """Feature file could not be parsed"""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Cannot parse feature file {filename}: {reason}")


class StepDefinitionError(SauceBDDError):
    """Invalid step definition or registration"""
    pass


class UndefinedStepError(SauceBDDError):
    """No step definition matches the step text"""

    def __init__(self, step_text: str):
        self.step_text = step_text
        super().__init__(f"Undefined step: {step_text}")


class AmbiguousStepError(StepDefinitionError):
    """More than one step definition matches the same step text"""

    def __init__(self, step_text: str, expressions: List[str]):
        self.step_text = step_text
        self.expressions = list(expressions)
        listed = ", ".join(repr(e) for e in self.expressions)
        super().__init__(f"Ambiguous step '{step_text}' matches: {listed}")


class ParameterConversionError(SauceBDDError):
    """A captured step parameter could not be converted to its declared type"""

    def __init__(self, type_name: str, value: str, cause: Optional[Exception] = None):
        self.type_name = type_name
        self.value = value
        self.cause = cause
        message = f"Cannot convert {value!r} to {{{type_name}}}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ExecutionError(SauceBDDError):
    """Error during test execution"""
    pass


class BrowserLaunchError(ExecutionError):
    """The browser engine could not be started; aborts the whole run"""
    pass
