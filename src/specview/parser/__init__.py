"""OpenAPI/Swagger ingestion -- load, validate, resolve, extract, classify.

This sub-package is the front half of the specview pipeline: it turns raw
document text (JSON or YAML, local file, remote URL, or a library record)
into a list of :class:`~specview.models.Endpoint` records plus the
:class:`~specview.models.Diagnostic` list describing what is wrong with the
document.

Typical usage::

    from specview.parser import normalize_content, validate_structure, extract_endpoints

    document = normalize_content(text)
    diagnostics = validate_structure(document)
    endpoints, warnings = extract_endpoints(document)

The async orchestration of these steps (with the resolver and a timeout)
lives in :mod:`specview.pipeline`.

Sub-modules:

* :mod:`~specview.parser.loader` -- I/O layer (URL, file, stdin), format
  detection, normalization, and YAML/JSON conversion.
* :mod:`~specview.parser.validator` -- Ordered structural rule set.
* :mod:`~specview.parser.resolver` -- The reference-resolution collaborator
  interface and its default implementation.
* :mod:`~specview.parser.extractor` -- Per-operation endpoint mapping with
  partial-failure tolerance.
* :mod:`~specview.parser.classifier` -- Rule table turning failure strings
  into a redacted :class:`~specview.models.Diagnosis`.
"""

from specview.parser.classifier import classify_error, redact
from specview.parser.extractor import extract_endpoints
from specview.parser.loader import detect_format, load_source, normalize_content
from specview.parser.resolver import (
    CallableResolver,
    DefaultResolver,
    ReferenceResolver,
    resolve_refs,
)
from specview.parser.validator import spec_version_label, validate_structure

__all__ = [
    "CallableResolver",
    "DefaultResolver",
    "ReferenceResolver",
    "classify_error",
    "detect_format",
    "extract_endpoints",
    "load_source",
    "normalize_content",
    "redact",
    "resolve_refs",
    "spec_version_label",
    "validate_structure",
]
