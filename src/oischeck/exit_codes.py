"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific failure category and is referenced by the
corresponding :class:`~oischeck.exceptions.OischeckError` subclass.
CI jobs can branch on the exit code without parsing the issue report.

Example::

    $ oischeck validate ois.json
    $ echo $?
    3   # EXIT_INVALID_DOCUMENT -- the document has validation issues
"""

EXIT_SUCCESS = 0
"""The document is valid (or the command completed successfully)."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or configuration."""

EXIT_INVALID_DOCUMENT = 3
"""The document was loaded but failed validation."""

EXIT_LOAD_ERROR = 4
"""The document could not be read or decoded."""
