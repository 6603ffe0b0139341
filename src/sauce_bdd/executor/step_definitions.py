import re
import inspect
from typing import Dict, List, Callable, Pattern, Optional, Any, Iterable, Tuple
from dataclasses import dataclass, field
import logging

from ..core.exceptions import (
    StepDefinitionError,
    UndefinedStepError,
    AmbiguousStepError,
    ParameterConversionError,
)

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r'\{([A-Za-z_][A-Za-z0-9_]*)?\}')


def _unquote(value: str) -> str:
    return value[1:-1]


@dataclass(frozen=True)
class ParameterType:
    """A named placeholder usable in step expressions as {name}"""
    name: str
    regex: str
    transformer: Callable[[str], Any] = str
    example: Optional[str] = None

    def convert(self, value: str) -> Any:
        try:
            return self.transformer(value)
        except Exception as e:
            raise ParameterConversionError(self.name, value, e) from e


BUILTIN_PARAMETER_TYPES = (
    ParameterType('string', r'"[^"]*"|\'[^\']*\'', _unquote, '"sample text"'),
    ParameterType('int', r'-?\d+', int, '42'),
    ParameterType('float', r'-?\d*\.?\d+(?:[eE][-+]?\d+)?', float, '4.2'),
    ParameterType('word', r'[^\s]+', str, 'sample'),
    # anonymous {} placeholder
    ParameterType('', r'.*', str, 'anything'),
)


@dataclass
class StepDefinition:
    """Represents a step definition with its pattern and function"""
    keyword: str  # given, when, then, step
    expression: str
    pattern: Pattern
    function: Callable
    parameter_types: Optional[Tuple[ParameterType, ...]] = None  # None for raw regex
    description: str = ""
    sample_text: Optional[str] = None

    @property
    def location(self) -> str:
        code = getattr(self.function, '__code__', None)
        if code is None:
            return getattr(self.function, '__qualname__', repr(self.function))
        return f"{code.co_filename}:{code.co_firstlineno}"

    def matches(self, step_text: str) -> Optional[re.Match]:
        return self.pattern.fullmatch(step_text.strip())

    def extract_arguments(self, step_text: str) -> Tuple[Any, ...]:
        """Extract and convert captured parameters, left to right"""
        match = self.matches(step_text)
        if not match:
            raise UndefinedStepError(step_text)

        groups = match.groups()
        if self.parameter_types is None:
            return tuple(groups)

        return tuple(
            param_type.convert(value)
            for param_type, value in zip(self.parameter_types, groups)
        )

    def bind(self, fixtures: Dict[str, Any], arguments: Tuple[Any, ...]) -> Tuple[list, dict]:
        """Split the handler signature into injected fixtures and captured arguments"""
        signature = inspect.signature(self.function)
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        remaining = list(arguments)

        for name, param in signature.parameters.items():
            if param.kind == param.VAR_POSITIONAL:
                args.extend(remaining)
                remaining = []
            elif param.kind == param.VAR_KEYWORD:
                continue
            elif name in fixtures:
                kwargs[name] = fixtures[name]
            elif remaining:
                if kwargs:
                    kwargs[name] = remaining.pop(0)
                else:
                    args.append(remaining.pop(0))
            elif param.default is param.empty:
                raise StepDefinitionError(
                    f"Step '{self.expression}' ({self.location}) requires '{name}', "
                    f"which is neither a fixture nor a captured parameter"
                )

        if remaining:
            raise StepDefinitionError(
                f"Step '{self.expression}' captured {len(arguments)} parameter(s) "
                f"but {self.function.__name__} does not accept them all"
            )

        return args, kwargs

    async def execute(self, fixtures: Dict[str, Any], arguments: Tuple[Any, ...]) -> Any:
        """Execute the step function with fixtures and extracted parameters"""
        args, kwargs = self.bind(fixtures, arguments)

        # Execute function (handle both sync and async)
        if inspect.iscoroutinefunction(self.function):
            return await self.function(*args, **kwargs)
        else:
            return self.function(*args, **kwargs)


@dataclass(frozen=True)
class StepMatch:
    """A step text resolved to its definition and converted arguments"""
    definition: StepDefinition
    step_text: str
    arguments: Tuple[Any, ...] = ()


@dataclass
class ValidationReport:
    """Outcome of resolving every step of a set of features without running them"""
    checked: int = 0
    undefined: List[Dict[str, Any]] = field(default_factory=list)
    ambiguous: List[Dict[str, Any]] = field(default_factory=list)
    conversion_errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.undefined or self.ambiguous or self.conversion_errors)

    def raise_for_ambiguity(self) -> None:
        if self.ambiguous:
            first = self.ambiguous[0]
            raise AmbiguousStepError(first['step'], first['expressions'])


class StepDefinitionRegistry:
    """Registry for step definitions"""

    def __init__(self):
        self.definitions: List[StepDefinition] = []
        self._parameter_types: Dict[str, ParameterType] = {
            param_type.name: param_type for param_type in BUILTIN_PARAMETER_TYPES
        }
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Make the step table immutable"""
        self._frozen = True
        logger.debug(f"Step registry frozen with {len(self.definitions)} definitions")

    def _check_mutable(self) -> None:
        if self._frozen:
            raise StepDefinitionError("Step registry is frozen; register steps before running")

    def register_parameter_type(self, name: str, regex: str,
                                transformer: Callable[[str], Any] = str,
                                example: Optional[str] = None) -> None:
        """Add a custom {name} placeholder"""
        self._check_mutable()
        if name in self._parameter_types:
            raise StepDefinitionError(f"Parameter type {{{name}}} is already defined")
        try:
            groups = re.compile(regex).groups
        except re.error as e:
            raise StepDefinitionError(f"Invalid regex for {{{name}}}: {e}") from e
        if groups:
            raise StepDefinitionError(f"Regex for {{{name}}} must not contain capture groups")

        self._parameter_types[name] = ParameterType(name, regex, transformer, example)

    def compile_expression(self, expression: str) -> Tuple[Pattern, Tuple[ParameterType, ...], Optional[str]]:
        """Compile a step expression into an anchored regex, its parameter types and a sample text"""
        regex_parts = []
        sample_parts = []
        types = []
        position = 0

        for placeholder in PLACEHOLDER.finditer(expression):
            literal = expression[position:placeholder.start()]
            regex_parts.append(re.escape(literal))
            sample_parts.append(literal)

            name = placeholder.group(1) or ''
            param_type = self._parameter_types.get(name)
            if param_type is None:
                raise StepDefinitionError(
                    f"Unknown parameter type {{{name}}} in step '{expression}'"
                )
            types.append(param_type)
            regex_parts.append(f"((?:{param_type.regex}))")
            sample_parts.append(param_type.example if param_type.example is not None else '')
            position = placeholder.end()

        literal = expression[position:]
        regex_parts.append(re.escape(literal))
        sample_parts.append(literal)

        pattern = re.compile(''.join(regex_parts))
        sample = ''.join(sample_parts)
        if any(t.example is None for t in types):
            sample = None
        return pattern, tuple(types), sample

    def add_definition(self, keyword: str, expression: str, function: Callable,
                       description: str = "", regex: bool = False) -> StepDefinition:
        """Add a step definition to registry"""
        self._check_mutable()

        if regex:
            try:
                pattern = re.compile(expression)
            except re.error as e:
                raise StepDefinitionError(f"Invalid step regex '{expression}': {e}") from e
            parameter_types = None
            sample = None
        else:
            pattern, parameter_types, sample = self.compile_expression(expression)

        definition = StepDefinition(
            keyword=keyword.lower(),
            expression=expression,
            pattern=pattern,
            function=function,
            parameter_types=parameter_types,
            description=description,
            sample_text=sample,
        )

        self._check_conflicts(definition)
        self.definitions.append(definition)
        logger.debug(f"Registered step: {keyword} {expression}")
        return definition

    def _check_conflicts(self, definition: StepDefinition) -> None:
        """Reject a definition that provably overlaps an existing one"""
        for existing in self.definitions:
            overlaps = existing.pattern.pattern == definition.pattern.pattern
            if not overlaps and definition.sample_text is not None:
                overlaps = existing.matches(definition.sample_text) is not None
            if not overlaps and existing.sample_text is not None:
                overlaps = definition.matches(existing.sample_text) is not None
            if overlaps:
                raise AmbiguousStepError(
                    definition.sample_text or definition.expression,
                    [existing.expression, definition.expression],
                )

    def given(self, expression: str, description: str = "", regex: bool = False):
        """Decorator for Given steps"""

        def decorator(func):
            self.add_definition('given', expression, func, description, regex)
            return func

        return decorator

    def when(self, expression: str, description: str = "", regex: bool = False):
        """Decorator for When steps"""

        def decorator(func):
            self.add_definition('when', expression, func, description, regex)
            return func

        return decorator

    def then(self, expression: str, description: str = "", regex: bool = False):
        """Decorator for Then steps"""

        def decorator(func):
            self.add_definition('then', expression, func, description, regex)
            return func

        return decorator

    def step(self, expression: str, description: str = "", regex: bool = False):
        """Decorator for any step type"""

        def decorator(func):
            self.add_definition('step', expression, func, description, regex)
            return func

        return decorator

    def candidates(self, step_text: str) -> List[StepDefinition]:
        """Every definition whose pattern matches the whole step text"""
        return [d for d in self.definitions if d.matches(step_text)]

    def match(self, step_text: str) -> StepMatch:
        """
        Resolve step text to exactly one definition

        Raises:
            UndefinedStepError: nothing matches
            AmbiguousStepError: more than one definition matches
            ParameterConversionError: a captured value fails its type conversion
        """
        candidates = self.candidates(step_text)

        if not candidates:
            logger.debug(f"No step definition found for: {step_text}")
            raise UndefinedStepError(step_text)

        if len(candidates) > 1:
            raise AmbiguousStepError(step_text, [d.expression for d in candidates])

        definition = candidates[0]
        logger.debug(f"Found matching step definition: {definition.expression}")
        return StepMatch(
            definition=definition,
            step_text=step_text,
            arguments=definition.extract_arguments(step_text),
        )

    def find_step_definition(self, step_text: str) -> Optional[StepDefinition]:
        """Find matching step definition for given step text, or None"""
        try:
            return self.match(step_text).definition
        except UndefinedStepError:
            return None
        except ParameterConversionError:
            candidates = self.candidates(step_text)
            return candidates[0] if candidates else None

    def validate(self, features: Iterable[Any]) -> ValidationReport:
        """Resolve every step of every scenario without executing anything"""
        report = ValidationReport()

        for feature in features:
            for scenario in feature.scenarios:
                for step in scenario.steps:
                    report.checked += 1
                    entry = {
                        'feature': feature.name,
                        'scenario': scenario.name,
                        'file': scenario.file,
                        'line': step.line,
                        'step': step.text,
                    }
                    try:
                        self.match(step.text)
                    except UndefinedStepError:
                        report.undefined.append(entry)
                    except AmbiguousStepError as e:
                        report.ambiguous.append({**entry, 'expressions': e.expressions})
                    except ParameterConversionError as e:
                        report.conversion_errors.append({**entry, 'error': str(e)})

        return report

    def list_definitions(self) -> List[Dict[str, str]]:
        """List all registered step definitions"""
        return [
            {
                'keyword': defn.keyword,
                'pattern': defn.expression,
                'description': defn.description,
                'function': defn.function.__name__,
                'location': defn.location,
            }
            for defn in self.definitions
        ]

    def clear(self):
        """Clear all registered definitions"""
        self._check_mutable()
        self.definitions.clear()

    def register_from_module(self, module):
        """Register the step definitions marked in a module, skipping ones it imports"""
        for name, obj in inspect.getmembers(module, callable):
            if getattr(obj, '__module__', None) != module.__name__:
                continue
            for step_info in getattr(obj, '_step_definitions', []):
                self.add_definition(
                    step_info['keyword'],
                    step_info['pattern'],
                    obj,
                    step_info.get('description', ''),
                    step_info.get('regex', False),
                )


def _marker(keyword: str, pattern: str, description: str, regex: bool):
    def decorator(func):
        markers = list(getattr(func, '_step_definitions', []))
        markers.append({
            'keyword': keyword,
            'pattern': pattern,
            'description': description,
            'regex': regex,
        })
        func._step_definitions = markers
        return func

    return decorator


# Utility decorators for marking functions as step definitions
def given(pattern: str, description: str = "", regex: bool = False):
    """Mark function as a Given step"""
    return _marker('given', pattern, description, regex)


def when(pattern: str, description: str = "", regex: bool = False):
    """Mark function as a When step"""
    return _marker('when', pattern, description, regex)


def then(pattern: str, description: str = "", regex: bool = False):
    """Mark function as a Then step"""
    return _marker('then', pattern, description, regex)


def step(pattern: str, description: str = "", regex: bool = False):
    """Mark function as a step usable with any keyword"""
    return _marker('step', pattern, description, regex)
