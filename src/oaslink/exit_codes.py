"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~oaslink.exceptions.OaslinkError` subclass.
Build scripts can inspect the exit code to tell a broken input document
apart from a bad invocation without parsing stderr.

Example::

    $ oaslink resolve users.yaml orders.yaml
    $ echo $?
    7   # EXIT_SPEC_PARSE_ERROR -- a document could not be loaded or a $ref is broken
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_SPEC_PARSE_ERROR = 7
"""A description document could not be loaded, parsed, or dereferenced."""
