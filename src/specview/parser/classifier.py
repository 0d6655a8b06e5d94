"""Turn opaque resolver/validator failure strings into a structured diagnosis.

Resolver and validator messages are untrusted: jsonschema in particular
embeds the failing instance and schema verbatim, which for an OpenAPI
document can be most of the document.  Everything surfaced to the user
therefore passes through :func:`redact` and is bounded in length.

Classification is a first-match-wins walk over :data:`_RULES`, an ordered
table of ``(category, predicate, formatter)`` rows:

=====  ============================  ====================================
Order  Predicate                     Category
=====  ============================  ====================================
1      mentions "reference"          ``reference-error``
2      "<x> is not of a type(s) <t>" ``type-error``
3      mentions "required property"  ``missing-required-property``
4      mentions "schema"             ``schema-error``
5      anything                      ``generic``
=====  ============================  ====================================

The module also carries two presentation helpers used by the CLI:
:func:`summarize_diagnostics` and :func:`suggest_fix`.
"""

from __future__ import annotations

import re
from typing import Callable, Optional, Sequence

from specview.models import Diagnosis, Diagnostic, ErrorCategory, Severity

MAX_EXPLANATION_LENGTH = 200
MAX_BRIEF_LENGTH = 100

PLACEHOLDER = "{...}"

# A brace pair with no brace inside.  Applied repeatedly, with a brace-free
# sentinel standing in for collapsed literals, it collapses nested objects
# from the inside out.
_INNERMOST_OBJECT_RE = re.compile(r"\{[^{}]*\}")
_SENTINEL = "\x00"
_LONG_DOUBLE_QUOTED_RE = re.compile(r'"[^"]{50,}"')
_LONG_SINGLE_QUOTED_RE = re.compile(r"'[^']{50,}'")
_LOCATION_RE = re.compile(r"line \d+,? column \d+")

_REF_TOKEN_RE = re.compile(r"\$ref['\":=\s]*([^\s'\",]+)")
_TYPE_RES = (
    re.compile(r"([\w.]+) is not of a type\(s\) ([\w, ]+)"),
    # jsonschema: "'abc' is not of type 'integer'" / "... 'string', 'null'"
    re.compile(r"(\S+) is not of type ((?:'\w+'(?:, )?)+)"),
)
_REQUIRED_RES = (
    re.compile(r"missing required property ['\"]([^'\"]+)['\"]"),
    re.compile(r"['\"]([^'\"]+)['\"] is a required property"),
)
_SCHEMA_CLAUSE_RE = re.compile(r"[\w.]+ (?:is|requires|must|should) [^.]+")


# ---------------------------------------------------------------------------
# Redaction
# ---------------------------------------------------------------------------


def redact(text: str) -> str:
    """Strip document content from *text*.

    * every ``{...}`` object literal, nested ones included, becomes ``{...}``;
    * quoted values of 50 or more characters become ``"[...]"``;
    * ``line N, column M`` becomes ``specific location``.

    >>> redact('bad value {"a": {"b": 1}} at line 3, column 7')
    'bad value {...} at specific location'
    """
    collapsed = text.replace(_SENTINEL, "")
    while True:
        replaced = _INNERMOST_OBJECT_RE.sub(_SENTINEL, collapsed)
        if replaced == collapsed:
            break
        collapsed = replaced
    collapsed = collapsed.replace(_SENTINEL, PLACEHOLDER)

    collapsed = _LONG_DOUBLE_QUOTED_RE.sub('"[...]"', collapsed)
    collapsed = _LONG_SINGLE_QUOTED_RE.sub('"[...]"', collapsed)
    return _LOCATION_RE.sub("specific location", collapsed)


def truncate(text: str, limit: int) -> str:
    """Cut *text* to *limit* characters, marking the cut with ``...``."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def brief(message: str, limit: int = MAX_BRIEF_LENGTH) -> str:
    """Redact and shorten *message* for a one-line error banner."""
    return truncate(redact(message), limit)


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

# (explanation, summary)
_Formatted = tuple[str, str]


def _mentions(needle: str) -> Callable[[str], bool]:
    return lambda message: needle in message.lower()


def _is_type_error(message: str) -> bool:
    return "is not of a type" in message or "is not of type" in message


def _format_reference(message: str) -> _Formatted:
    match = _REF_TOKEN_RE.search(message)
    reference = match.group(1).rstrip(":.;") if match else ""
    reference = reference or "a reference"
    return (
        f"Reference error: Could not resolve {reference}",
        f"Invalid reference in specification: Could not resolve {reference}",
    )


def _format_type(message: str) -> _Formatted:
    for pattern in _TYPE_RES:
        match = pattern.search(message)
        if match:
            token = match.group(1)
            expected = match.group(2).replace("'", "").strip(" ,")
            text = f"Type error: {token} should be {expected}"
            return text, text
    return (
        "Type error in specification",
        f"Type error in specification: {redact(message)}",
    )


def _format_required(message: str) -> _Formatted:
    for pattern in _REQUIRED_RES:
        match = pattern.search(message)
        if match:
            text = f"Missing required property: '{match.group(1)}'"
            return text, text
    text = "Missing required property in specification"
    return text, text


def _format_schema(message: str) -> _Formatted:
    match = _SCHEMA_CLAUSE_RE.search(message)
    clause = match.group(0).strip() if match else "Schema format is invalid"
    return f"Schema error: {clause}", f"Schema validation failed: {clause}"


def _format_generic(message: str) -> _Formatted:
    text = truncate(redact(message), MAX_EXPLANATION_LENGTH)
    return text, f"Failed to parse specification: {text}"


_RULES: list[tuple[ErrorCategory, Callable[[str], bool], Callable[[str], _Formatted]]] = [
    (ErrorCategory.REFERENCE, _mentions("reference"), _format_reference),
    (ErrorCategory.TYPE, _is_type_error, _format_type),
    (ErrorCategory.MISSING_REQUIRED, _mentions("required property"), _format_required),
    (ErrorCategory.SCHEMA, _mentions("schema"), _format_schema),
    (ErrorCategory.GENERIC, lambda message: True, _format_generic),
]


def classify_error(message: object) -> Diagnosis:
    """Classify a resolver/validator failure message.

    Args:
        message: The raw failure text.  Non-strings are converted with
            ``str()``; ``None`` and empty text classify as ``generic``.

    Returns:
        A :class:`~specview.models.Diagnosis` whose ``explanation`` and
        ``summary`` are redacted and at most
        :data:`MAX_EXPLANATION_LENGTH` characters (plus the ``...`` marker).
    """
    text = "" if message is None else str(message)
    if not text.strip():
        text = "Unknown error"

    for category, matches, formatter in _RULES:
        if matches(text):
            explanation, summary = formatter(text)
            return Diagnosis(
                category=category,
                explanation=truncate(redact(explanation), MAX_EXPLANATION_LENGTH),
                summary=truncate(redact(summary), MAX_EXPLANATION_LENGTH),
            )

    raise AssertionError("generic rule must match")  # pragma: no cover


# ---------------------------------------------------------------------------
# Presentation helpers
# ---------------------------------------------------------------------------


def summarize_diagnostics(diagnostics: Sequence[Diagnostic]) -> str:
    """One-sentence count of errors and warnings.

    >>> summarize_diagnostics([])
    ''
    """
    if not diagnostics:
        return ""

    errors = sum(1 for d in diagnostics if d.severity == Severity.ERROR)
    warnings = sum(1 for d in diagnostics if d.severity == Severity.WARNING)

    parts: list[str] = []
    if errors:
        parts.append(f"{errors} {'error' if errors == 1 else 'errors'}")
    if warnings:
        parts.append(f"{warnings} {'warning' if warnings == 1 else 'warnings'}")

    target = "errors" if errors else "issues"
    return (
        f"Your API specification has {' and '.join(parts)}. "
        f"Please fix {target} to ensure proper visualization."
    )


_SUGGESTIONS: list[tuple[tuple[str, ...], str]] = [
    (
        ("openapi", "swagger"),
        "Add the OpenAPI/Swagger version identifier at the root of your specification.",
    ),
    (
        ("title", "info object", '"info"'),
        'Add the required "info" object with "title" and "version" properties.',
    ),
    (
        ("reference",),
        "Check that all references ($ref) in your specification point to valid objects.",
    ),
    (
        ("no paths", "no endpoints", "no http operations"),
        "Add at least one path with HTTP methods to your specification.",
    ),
    (
        ("schema",),
        "Verify that your schema definitions match the OpenAPI specification format.",
    ),
    (
        ("timed out",),
        "Increase the resolver timeout with SPECVIEW_RESOLVE_TIMEOUT or --timeout.",
    ),
]


def suggest_fix(diagnostic: Diagnostic) -> Optional[str]:
    """Return a next step for a common diagnostic, or ``None``."""
    message = diagnostic.message.lower()
    for needles, suggestion in _SUGGESTIONS:
        if any(needle in message for needle in needles):
            return suggestion
    return None
