"""
Tool contract shared by the analysis tools.

A tool wraps one estimator of core/audio/ behind loosely-typed keyword
arguments (JSON bodies from POST /tools/call, parsed CLI flags):

    tool(**params)  →  validate_inputs()  →  execute()  →  ToolResult

Failures never escape __call__: bad parameters and InvalidArgumentError
from the core come back as ToolResult(success=False).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from core.audio.errors import InvalidArgumentError


@dataclass(frozen=True)
class ToolParameter:
    """
    One keyword argument a tool accepts.

    Attributes:
        name: Keyword name
        type: Expected Python type (list, float, int, str)
        description: What the value means, with units
        required: Missing values fail validation when True
        default: Value execute() falls back to when omitted
    """

    name: str
    type: type
    description: str
    required: bool = True
    default: Any = None

    def validate(self, value: Any) -> tuple[bool, str | None]:
        """
        Check one value against this parameter.

        JSON has a single number type, so an int satisfies a float
        parameter. bool never satisfies a numeric one.

        Returns:
            (True, None) or (False, error message)
        """
        if value is None:
            if self.required:
                return False, f"Required parameter '{self.name}' is missing"
            return True, None

        expected = self.type.__name__
        if isinstance(value, bool) and self.type is not bool:
            return False, f"Parameter '{self.name}' must be {expected}, got bool"

        accepted = (float, int) if self.type is float else (self.type,)
        if not isinstance(value, accepted):
            return False, f"Parameter '{self.name}' must be {expected}, got {type(value).__name__}"

        return True, None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.__name__,
            "description": self.description,
            "required": self.required,
            "default": self.default,
        }


@dataclass(frozen=True)
class ToolResult:
    """
    Outcome of one tool call.

    Attributes:
        success: False when validation or the estimator failed
        data: Estimator output (bpm, key, chroma, ...)
        error: Failure description when success is False
        metadata: Supporting values (threshold, source, offending argument)
    """

    success: bool
    data: Any = None
    error: str | None = None
    metadata: dict[str, Any] | None = None


class MusicalTool(ABC):
    """
    Base class for analysis tools discovered by tools.registry.

    Subclasses provide name, description, parameters and execute().
    execute() may raise InvalidArgumentError for input the core rejects;
    __call__ turns it into a failed ToolResult that names the argument.

    Example:
        class EstimateTempo(MusicalTool):
            @property
            def name(self) -> str:
                return "estimate_tempo"

            def execute(self, **kwargs) -> ToolResult:
                return ToolResult(success=True, data={"bpm": 120})
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key, lowercase with underscores."""

    @property
    @abstractmethod
    def description(self) -> str:
        """What the tool measures, its inputs' units, and its fallbacks."""

    @property
    @abstractmethod
    def parameters(self) -> list[ToolParameter]:
        """Accepted keyword arguments, required ones first."""

    @abstractmethod
    def execute(self, **kwargs) -> ToolResult:
        """Run the estimator on already-validated arguments."""

    def validate_inputs(self, **kwargs) -> tuple[bool, str | None]:
        """Validate kwargs against parameters; stops at the first failure."""
        for param in self.parameters:
            is_valid, error = param.validate(kwargs.get(param.name))
            if not is_valid:
                return False, error
        return True, None

    def __call__(self, **kwargs) -> ToolResult:
        is_valid, error = self.validate_inputs(**kwargs)
        if not is_valid:
            return ToolResult(success=False, error=error)

        try:
            return self.execute(**kwargs)
        except InvalidArgumentError as e:
            return ToolResult(
                success=False,
                error=f"Invalid argument: {e}",
                metadata={"argument": e.argument},
            )
        except Exception as e:
            return ToolResult(success=False, error=f"Tool execution failed: {e}")

    def to_dict(self) -> dict[str, Any]:
        """Name, description and parameter schema for GET /tools/list."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters],
        }
