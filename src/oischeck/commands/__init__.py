"""Built-in CLI sub-commands for oischeck.

This package groups the Typer sub-command modules that form the CLI's
top-level command tree:

* :mod:`~oischeck.commands.validate` -- validate a document and report issues.
* :mod:`~oischeck.commands.inspect` -- tabulate the endpoints and API
  operations of a structurally valid document.

:mod:`~oischeck.commands.common` holds the configuration and loading steps
that every command performs before doing its own work.
"""
