"""PipelineStage base class and supporting dataclasses."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

Validator = Callable[[Mapping[str, Any]], None]


@dataclass
class StageResult:
    """Result of executing a pipeline stage."""

    status: str  # "completed", "failed"
    message: str = ""
    outputs_produced: tuple[str, ...] = ()
    elapsed_seconds: float = 0.0


class PipelineStage(ABC):
    """Base class for all pipeline stages.

    A stage reads named values from the pipeline context and returns new
    named values. It never mutates the context it is given.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stage identifier (e.g., 'acquire_tables', 'merge_tables')."""

    @property
    @abstractmethod
    def inputs(self) -> tuple[str, ...]:
        """Context keys this stage reads."""

    @property
    @abstractmethod
    def outputs(self) -> tuple[str, ...]:
        """Context keys this stage produces."""

    @abstractmethod
    def execute(self, context: Mapping[str, Any]) -> dict[str, Any]:
        """Run the stage and return its outputs."""

    def validate(self, context: Mapping[str, Any]) -> None:
        """Check invariants on the context after this stage ran.

        Default implementation checks nothing. Raise to abort the pipeline.
        """


class FunctionStage(PipelineStage):
    """A stage wrapping a plain function of the context."""

    def __init__(
        self,
        name: str,
        func: Callable[[Mapping[str, Any]], dict[str, Any]],
        inputs: tuple[str, ...] = (),
        outputs: tuple[str, ...] = (),
        validators: tuple[Validator, ...] = (),
    ) -> None:
        self._name = name
        self._func = func
        self._inputs = tuple(inputs)
        self._outputs = tuple(outputs)
        self._validators = tuple(validators)

    @property
    def name(self) -> str:
        return self._name

    @property
    def inputs(self) -> tuple[str, ...]:
        return self._inputs

    @property
    def outputs(self) -> tuple[str, ...]:
        return self._outputs

    def execute(self, context: Mapping[str, Any]) -> dict[str, Any]:
        return self._func(context)

    def validate(self, context: Mapping[str, Any]) -> None:
        for validator in self._validators:
            validator(context)
