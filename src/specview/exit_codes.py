"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a failure category and is referenced by the matching
:class:`~specview.exceptions.SpecviewError` subclass.  Shell wrappers and CI
jobs can branch on the code instead of scraping stderr.

Example::

    $ specview inspect validate broken.yaml
    $ echo $?
    9   # EXIT_VALIDATION_FAILURE -- the document has error diagnostics
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required input."""

EXIT_NOT_FOUND = 4
"""A library document with the requested ID does not exist."""

EXIT_SPEC_PARSE_ERROR = 7
"""The document text could not be parsed as JSON or YAML."""

EXIT_RESOLUTION_ERROR = 8
"""Reference resolution failed or timed out."""

EXIT_VALIDATION_FAILURE = 9
"""The document parsed but carries error-severity diagnostics."""
