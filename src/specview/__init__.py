"""specview -- Inspect and visualize OpenAPI/Swagger documents from the terminal.

This package ingests an OpenAPI 3.x or Swagger 2.0 document, reports
structural problems as diagnostics, extracts its operations, and derives an
expandable node/edge graph with a deterministic layout.

Typical workflow::

    specview inspect validate openapi.yaml   # diagnostics, exit 9 on errors
    specview inspect endpoints openapi.yaml  # operation table
    specview graph show openapi.yaml --all   # fully expanded tree
    specview library add openapi.yaml        # keep it for later

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    pipeline: Async parse cycle and document session.
    config: XDG-aware configuration and the document library.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
