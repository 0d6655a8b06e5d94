"""Async parse cycle and the document session that owns its results.

:class:`ParsePipeline` runs one parse cycle::

    content --normalize--> tree --validate--> diagnostics
                                --resolve (bounded)--> resolved --extract--> endpoints

Normalization and extraction run in a worker thread; resolution is awaited
under :func:`asyncio.wait_for` so a hung resolver ends in a diagnostic, not
a hang.  Nothing raises out of :meth:`ParsePipeline.run`: parse failures,
resolver failures, and unexpected exceptions all come back as a
:class:`~specview.models.ParseResult` with ``error`` set.

:class:`SpecSession` tracks the selected document.  Each
:meth:`SpecSession.select` call takes a generation number, and only the
latest generation may publish its result; older in-flight cycles are
discarded when they finish.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Union

from specview.exceptions import ResolutionError, ResolutionTimeoutError, SpecParseError
from specview.graph.builder import SchemaGraphBuilder
from specview.graph.expansion import GraphView
from specview.models import (
    Diagnosis,
    Diagnostic,
    ErrorCategory,
    FailureStage,
    LayoutConfig,
    ParseResult,
    ResolverConfig,
    Severity,
    SpecDocument,
    SpecFormat,
)
from specview.parser.classifier import MAX_EXPLANATION_LENGTH, brief, classify_error
from specview.parser.extractor import extract_endpoints
from specview.parser.loader import normalize_content
from specview.parser.resolver import DefaultResolver, ReferenceResolver
from specview.parser.validator import spec_version_label, validate_structure

logger = logging.getLogger(__name__)

_UNEXPECTED_DIAGNOSTIC = (
    "The API specification has errors that prevent it from being parsed correctly"
)


class ParsePipeline:
    """Run parse cycles against one resolver.

    Args:
        resolver: The reference-resolution collaborator.  Defaults to
            :class:`~specview.parser.resolver.DefaultResolver`.
        timeout: Seconds to wait for the resolver.
    """

    def __init__(
        self,
        resolver: Optional[ReferenceResolver] = None,
        timeout: float = 30.0,
    ) -> None:
        self._resolver = resolver or DefaultResolver()
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: ResolverConfig) -> "ParsePipeline":
        return cls(
            DefaultResolver(validate_schema=config.validate_schema),
            timeout=config.timeout_seconds,
        )

    @property
    def timeout(self) -> float:
        return self._timeout

    async def run(
        self,
        document: Union[SpecDocument, str, dict[str, Any]],
        declared_format: Optional[Union[SpecFormat, str]] = None,
    ) -> ParseResult:
        """Parse *document* into endpoints and diagnostics.

        Args:
            document: A library record, raw text, or an already-parsed tree.
            declared_format: Format hint for raw text.  For a
                :class:`SpecDocument` its ``format`` field is used.

        Returns:
            A fresh :class:`ParseResult`.  ``error`` is set when the cycle
            could not produce endpoints.
        """
        if isinstance(document, SpecDocument):
            content: Any = document.content
            declared_format = document.format
        else:
            content = document

        try:
            return await self._run(content, declared_format)
        except Exception as exc:
            logger.debug("Unexpected failure in parse cycle", exc_info=True)
            return ParseResult(
                error=f"Failed to process API specification: {brief(str(exc))}",
                failure=FailureStage.INTERNAL,
                diagnostics=[Diagnostic(message=_UNEXPECTED_DIAGNOSTIC, severity=Severity.ERROR)],
            )

    async def _run(
        self, content: Any, declared_format: Optional[Union[SpecFormat, str]]
    ) -> ParseResult:
        try:
            tree = await asyncio.to_thread(normalize_content, content, declared_format)
        except SpecParseError as exc:
            message = brief(str(exc), MAX_EXPLANATION_LENGTH)
            return ParseResult(
                error=f"Failed to parse API specification: {message}",
                failure=FailureStage.PARSE,
                diagnostics=[
                    Diagnostic(message=f"Content parsing error: {message}", severity=Severity.ERROR)
                ],
            )

        diagnostics = validate_structure(tree)
        info = tree.get("info") if isinstance(tree, dict) else None
        if not isinstance(info, dict):
            info = {}
        result = ParseResult(
            diagnostics=diagnostics,
            spec_version_label=spec_version_label(tree),
            title=str(info.get("title") or ""),
            api_version=str(info.get("version") or ""),
            document=tree,
        )

        if not isinstance(tree, dict):
            return result

        try:
            resolved = await self._resolve(tree)
        except ResolutionTimeoutError as exc:
            logger.debug("Resolver timed out after %ss", self._timeout)
            result.error = str(exc)
            result.failure = FailureStage.RESOLVE
            result.diagnosis = Diagnosis(
                category=ErrorCategory.GENERIC, explanation=str(exc), summary=str(exc)
            )
            result.diagnostics.append(Diagnostic(message=str(exc), severity=Severity.ERROR))
            return result
        except Exception as exc:
            # Resolver messages are untrusted; only the classified form is kept.
            diagnosis = classify_error(getattr(exc, "message", None) or str(exc))
            logger.debug("Resolution failed: %s", diagnosis.category.value)
            result.error = diagnosis.summary
            result.failure = FailureStage.RESOLVE
            result.diagnosis = diagnosis
            result.diagnostics.append(
                Diagnostic(message=diagnosis.explanation, severity=Severity.ERROR)
            )
            return result

        endpoints, warnings = await asyncio.to_thread(extract_endpoints, resolved)
        result.endpoints = endpoints
        result.diagnostics.extend(warnings)
        result.document = resolved
        logger.debug(
            "Parsed %s: %d endpoints, %d diagnostics",
            result.spec_version_label,
            len(endpoints),
            len(result.diagnostics),
        )
        return result

    async def _resolve(self, tree: dict[str, Any]) -> dict[str, Any]:
        try:
            resolved = await asyncio.wait_for(self._resolver.resolve(tree), timeout=self._timeout)
        except asyncio.TimeoutError:
            raise ResolutionTimeoutError(
                f"Reference resolution timed out after {self._timeout:g}s"
            ) from None
        if not isinstance(resolved, dict):
            raise ResolutionError(
                f"Resolver returned {type(resolved).__name__} instead of a document"
            )
        return resolved


class SpecSession:
    """The selected document, its latest parse result, and its graph view.

    Args:
        pipeline: Pipeline used for every selection.
        layout: Layout constants handed to each :class:`GraphView`.
    """

    def __init__(
        self,
        pipeline: Optional[ParsePipeline] = None,
        layout: Optional[LayoutConfig] = None,
    ) -> None:
        self._pipeline = pipeline or ParsePipeline()
        self._layout = layout or LayoutConfig()
        self._generation = 0
        self._document_id: Optional[str] = None
        self.result: Optional[ParseResult] = None
        self.view: Optional[GraphView] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def document_id(self) -> Optional[str]:
        return self._document_id

    async def select(self, document: SpecDocument) -> Optional[ParseResult]:
        """Parse *document* and publish the result unless a newer selection won.

        Expansion state carries over when *document* is the one already
        selected (a re-parse) and resets when it is a different document.

        Returns:
            The published result, or ``None`` when the cycle was superseded.
        """
        self._generation += 1
        generation = self._generation

        result = await self._pipeline.run(document)

        if generation != self._generation:
            logger.debug(
                "Discarding stale result for %s (generation %d, current %d)",
                document.id,
                generation,
                self._generation,
            )
            return None

        keep = None
        if document.id == self._document_id and self.view is not None:
            keep = self.view.expansion_state

        self._document_id = document.id
        self.result = result
        self.view = GraphView(
            SchemaGraphBuilder.from_result(result), expansion_state=keep, layout=self._layout
        )
        return result

    def toggle(self, node_id: str) -> bool:
        """Toggle a node of the current view; ``False`` when nothing is selected."""
        if self.view is None:
            return False
        return self.view.toggle(node_id)
