"""Built-in CLI sub-commands for specview.

This package groups the Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~specview.commands.inspect` -- validate a document and list its
  endpoints, info, and diagnostics.
* :mod:`~specview.commands.graph` -- render or export the schema graph.
* :mod:`~specview.commands.library` -- manage stored documents.
* :mod:`~specview.commands.config` -- view and modify global settings.

:mod:`~specview.commands.source` holds the plumbing shared by every
command that reads a document.
"""
