"""Structured pipeline events.

Every log line the pipeline produces is a PipelineEvent handed to an
EventSink. The default sink forwards events to structlog; tests use a
recording sink.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Protocol

import structlog
from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Severity of a pipeline event."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class PipelineEvent(BaseModel):
    """A single structured pipeline event.

    Attributes:
        severity: Event severity.
        message: Human-readable message.
        step: Pipeline step the event belongs to, if any.
        elapsed_seconds: Duration attached to the event, if any.
        error: Exception attached to an error event, if any.

    Example:
        >>> event = PipelineEvent(
        ...     severity=Severity.INFO,
        ...     message="Finished code generation",
        ...     step="code generation",
        ...     elapsed_seconds=0.25,
        ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    severity: Severity = Field(..., description="Event severity")
    message: str = Field(..., description="Human-readable message")
    step: str | None = Field(default=None, description="Pipeline step name")
    elapsed_seconds: float | None = Field(default=None, ge=0, description="Elapsed seconds")
    error: BaseException | None = Field(default=None, description="Attached exception")


class EventSink(Protocol):
    """Receiver for pipeline events."""

    def emit(self, event: PipelineEvent) -> None: ...


class StructlogSink:
    """Forward pipeline events to a structlog logger."""

    def __init__(self, logger: structlog.typing.FilteringBoundLogger | None = None) -> None:
        self._log = logger or structlog.get_logger("pure_compiled.pipeline")
        self._log = self._log.bind(component="pipeline")

    def emit(self, event: PipelineEvent) -> None:
        fields: dict[str, object] = {}
        if event.step is not None:
            fields["step"] = event.step
        if event.elapsed_seconds is not None:
            fields["elapsed_seconds"] = round(event.elapsed_seconds, 9)

        if event.severity is Severity.INFO:
            self._log.info(event.message, **fields)
        elif event.severity is Severity.WARNING:
            self._log.warning(event.message, **fields)
        elif event.error is not None:
            self._log.error(event.message, exc_info=event.error, **fields)
        else:
            self._log.error(event.message, **fields)


class PipelineLog:
    """Convenience wrapper that builds events and times steps.

    Example:
        >>> log = PipelineLog(StructlogSink())
        >>> start = log.begin_step("code generation")
        >>> log.complete_step("code generation", start)
    """

    def __init__(self, sink: EventSink) -> None:
        self.sink = sink

    def info(self, message: str, *, step: str | None = None) -> None:
        self.sink.emit(PipelineEvent(severity=Severity.INFO, message=message, step=step))

    def warning(self, message: str, *, step: str | None = None) -> None:
        self.sink.emit(PipelineEvent(severity=Severity.WARNING, message=message, step=step))

    def error(
        self,
        message: str,
        *,
        error: BaseException | None = None,
        step: str | None = None,
        elapsed_seconds: float | None = None,
    ) -> None:
        self.sink.emit(
            PipelineEvent(
                severity=Severity.ERROR,
                message=message,
                step=step,
                elapsed_seconds=elapsed_seconds,
                error=error,
            )
        )

    def begin_step(self, step: str) -> float:
        """Emit a 'Beginning' event and return the step's start time."""
        self.info(f"Beginning {step}", step=step)
        return time.perf_counter()

    def complete_step(self, step: str, start: float) -> float:
        """Emit a 'Finished' event carrying the step duration and return it."""
        elapsed = duration_since(start)
        self.sink.emit(
            PipelineEvent(
                severity=Severity.INFO,
                message=f"Finished {step} ({elapsed:.9f}s)",
                step=step,
                elapsed_seconds=elapsed,
            )
        )
        return elapsed


def duration_since(start: float) -> float:
    """Seconds elapsed since a ``time.perf_counter()`` reading."""
    return max(time.perf_counter() - start, 0.0)
