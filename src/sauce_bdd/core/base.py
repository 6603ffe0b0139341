from typing import Any, Dict, Optional, List
from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime


class ScenarioStatus(Enum):
    """Lifecycle of a single scenario run"""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"


class StepStatus(Enum):
    """Outcome of a single step"""
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class FailureKind(Enum):
    """Why a step failed"""
    UNDEFINED = "undefined"
    AMBIGUOUS = "ambiguous"
    CONVERSION = "conversion"
    ASSERTION = "assertion"
    INTERACTION = "interaction"
    ERROR = "error"


@dataclass
class StepResult:
    """Recorded outcome of one step"""
    keyword: str
    name: str
    line: int = 0
    status: StepStatus = StepStatus.SKIPPED
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    arguments: List[Any] = field(default_factory=list)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def duration(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'keyword': self.keyword,
            'name': self.name,
            'line': self.line,
            'status': self.status.value,
            'error': self.error,
            'failure_kind': self.failure_kind.value if self.failure_kind else None,
            'arguments': list(self.arguments),
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'duration': self.duration,
        }


@dataclass
class ScenarioResult:
    """Recorded outcome of one scenario, including every attempt made"""
    name: str
    feature: str
    tags: List[str] = field(default_factory=list)
    status: ScenarioStatus = ScenarioStatus.NOT_STARTED
    steps: List[StepResult] = field(default_factory=list)
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    attempts: int = 0
    screenshot: Optional[str] = None
    trace: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.status == ScenarioStatus.PASSED

    @property
    def duration(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def steps_with_status(self, status: StepStatus) -> List[StepResult]:
        return [step for step in self.steps if step.status == status]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'feature': self.feature,
            'tags': list(self.tags),
            'status': self.status.value,
            'steps': [step.to_dict() for step in self.steps],
            'error': self.error,
            'failure_kind': self.failure_kind.value if self.failure_kind else None,
            'attempts': self.attempts,
            'screenshot': self.screenshot,
            'trace': self.trace,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'duration': self.duration,
            'metadata': dict(self.metadata),
        }
