"""Custom exception hierarchy for pure-compiled.

This module defines the exception classes raised by the generation pipeline:
- PureCompiledError: Base exception for all pipeline errors
- UnknownRepositoryError: A requested repository does not exist
- RepositoryDefinitionError: A repository definition cannot be loaded
- RebuildCompilationError: Compiling the graph from sources failed
- MetadataSerializationError: Writing a distributed metadata unit failed
- CodeCompilationError: Generated modules failed to compile
- PipelineError: Single wrapper raised by the orchestrator

User-facing messages are safe to display; technical details are logged
internally via structlog.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from pure_compiled.compilation.models import CompileDiagnostic

logger = structlog.get_logger(__name__)


class PureCompiledError(Exception):
    """Base exception for pure-compiled.

    Args:
        user_message: Safe message to display to the user.
        internal_details: Optional technical details, logged but never shown.

    Example:
        >>> raise PureCompiledError(
        ...     "Generation failed",
        ...     internal_details="unit staging dir vanished: /tmp/x",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(user_message)
        self.user_message = user_message

        if internal_details:
            logger.error(
                "pure_compiled_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class UnknownRepositoryError(PureCompiledError):
    """Raised when requested repositories are not in the repository set.

    Attributes:
        missing: Sorted names of the unknown repositories.

    Example:
        >>> raise UnknownRepositoryError(["unknown-repo"])
        # User sees: 'Unknown repositories: "unknown-repo"'
    """

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing = sorted(missing)
        quoted = '", "'.join(self.missing)
        super().__init__(f'Unknown repositories: "{quoted}"')


class RepositoryDefinitionError(PureCompiledError):
    """Raised when a repository definition cannot be loaded or is inconsistent.

    Use this exception when:
    - An extra repository descriptor resolves to nothing
    - definition.yaml is invalid
    - Two repositories share a name
    - A repository depends on an unknown repository
    """

    pass


class RebuildCompilationError(PureCompiledError):
    """Raised when compiling the graph from repository sources fails.

    Attributes:
        source_id: Source file that failed, when known.

    Example:
        >>> raise RebuildCompilationError(
        ...     "Unresolved type 'meta::x::Missing'",
        ...     source_id="/demo/model.pure.yaml",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        source_id: str | None = None,
        internal_details: str | None = None,
    ) -> None:
        if source_id:
            user_message = f"{user_message} (in {source_id})"
        super().__init__(user_message, internal_details=internal_details)
        self.source_id = source_id


class MetadataSerializationError(PureCompiledError):
    """Raised when a distributed metadata unit cannot be written.

    Units flushed before the failure stay valid.

    Attributes:
        unit: Name of the unit that failed.
    """

    def __init__(
        self,
        unit: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        super().__init__(
            f"Error writing distributed metadata for '{unit}'",
            internal_details=internal_details,
        )
        self.unit = unit


class CodeCompilationError(PureCompiledError):
    """Raised when generated modules fail to compile.

    Attributes:
        diagnostics: Every diagnostic reported by the compiler.
    """

    def __init__(self, diagnostics: Sequence[CompileDiagnostic]) -> None:
        self.diagnostics = tuple(diagnostics)
        lines = [f"{len(self.diagnostics)} compilation error(s):"]
        lines.extend(f"  - {d.format()}" for d in self.diagnostics)
        super().__init__("\n".join(lines))


class PipelineError(PureCompiledError):
    """Raised by the orchestrator when any stage fails.

    The failing stage's exception is always chained as ``__cause__``.

    Attributes:
        elapsed_seconds: Time spent before the failure.
    """

    def __init__(self, user_message: str, *, elapsed_seconds: float) -> None:
        super().__init__(user_message)
        self.elapsed_seconds = elapsed_seconds
