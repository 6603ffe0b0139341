"""
Gherkin feature parsing.

Feature files are read with behave's Gherkin parser and converted into the
small immutable model the runner works with: a Feature holds Scenarios, a
Scenario holds its ordered Steps (Background steps first, Scenario Outlines
expanded one scenario per Examples row).
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union

from behave.parser import parse_feature, ParserError

from ..core.exceptions import FeatureParseError

logger = logging.getLogger(__name__)


class StepRole(Enum):
    """Descriptive role of a step, taken from its Given/When/Then keyword"""
    CONTEXT = "context"
    ACTION = "action"
    OUTCOME = "outcome"

    @classmethod
    def from_step_type(cls, step_type: str) -> "StepRole":
        return _ROLE_BY_STEP_TYPE.get((step_type or "").lower(), cls.ACTION)


_ROLE_BY_STEP_TYPE = {
    'given': StepRole.CONTEXT,
    'when': StepRole.ACTION,
    'then': StepRole.OUTCOME,
}


@dataclass(frozen=True)
class Step:
    keyword: str
    role: StepRole
    text: str
    line: int = 0

    @property
    def full_text(self) -> str:
        return f"{self.keyword} {self.text}"


@dataclass(frozen=True)
class Scenario:
    name: str
    feature: str
    steps: Tuple[Step, ...]
    tags: Tuple[str, ...] = ()
    file: str = ""
    line: int = 0

    def has_tag(self, tag: str) -> bool:
        return tag.lstrip('@') in self.tags


@dataclass(frozen=True)
class Feature:
    name: str
    file: str
    scenarios: Tuple[Scenario, ...] = field(default_factory=tuple)
    tags: Tuple[str, ...] = ()
    description: str = ""


class FeatureParser:
    """Parses Gherkin feature files into Feature objects"""

    def __init__(self, language: Optional[str] = None):
        self.language = language

    def parse_text(self, text: str, filename: str = "<string>") -> Feature:
        """Parse Gherkin source text"""
        try:
            parsed = parse_feature(text, language=self.language, filename=filename)
        except ParserError as e:
            raise FeatureParseError(filename, str(e)) from e

        if parsed is None:
            raise FeatureParseError(filename, "no Feature found")

        return self._convert(parsed, filename)

    def parse_file(self, path: Union[str, Path]) -> Feature:
        """Parse a single .feature file"""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Feature file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()

        feature = self.parse_text(text, filename=str(path))
        logger.debug(f"Parsed {path}: {len(feature.scenarios)} scenario(s)")
        return feature

    def parse_directory(self, directory: Union[str, Path]) -> List[Feature]:
        """Parse every .feature file below a directory, in path order"""
        directory = Path(directory)
        if not directory.exists():
            raise FileNotFoundError(f"Feature directory not found: {directory}")

        return [self.parse_file(path) for path in sorted(directory.glob('**/*.feature'))]

    def parse_paths(self, paths: List[Union[str, Path]]) -> List[Feature]:
        """Parse a mix of feature files and directories"""
        features = []
        for path in paths:
            path = Path(path)
            if path.is_dir():
                features.extend(self.parse_directory(path))
            else:
                features.append(self.parse_file(path))
        return features

    def _convert(self, parsed, filename: str) -> Feature:
        background_steps = []
        if parsed.background is not None:
            background_steps = [self._convert_step(step) for step in parsed.background.steps]

        scenarios = []
        for scenario in parsed.walk_scenarios():
            steps = background_steps + [self._convert_step(step) for step in scenario.steps]
            scenarios.append(Scenario(
                name=scenario.name,
                feature=parsed.name,
                steps=tuple(steps),
                tags=tuple(str(tag) for tag in scenario.effective_tags),
                file=filename,
                line=scenario.line,
            ))

        description = "\n".join(parsed.description or [])
        return Feature(
            name=parsed.name,
            file=filename,
            scenarios=tuple(scenarios),
            tags=tuple(str(tag) for tag in parsed.tags),
            description=description,
        )

    @staticmethod
    def _convert_step(step) -> Step:
        # behave already gives And/But the type of the step before them
        return Step(
            keyword=step.keyword.strip(),
            role=StepRole.from_step_type(step.step_type),
            text=step.name,
            line=step.line,
        )
