"""Numeric process exit codes for the ``tfopenapigen`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~tfopenapigen.exceptions.TfOpenAPIGenError` subclass.
CI pipelines that regenerate the Framework IR can inspect the exit code to
tell a broken configuration from a broken OpenAPI document without parsing
stderr.

Example::

    $ tfopenapigen generate --config gen.yml openapi.json
    $ echo $?
    5   # EXIT_ENTITY_ERROR -- at least one resource could not be generated
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CONFIG_ERROR = 3
"""The generator configuration could not be read or failed validation."""

EXIT_SPEC_PARSE_ERROR = 4
"""The OpenAPI document could not be loaded, parsed or resolved."""

EXIT_ENTITY_ERROR = 5
"""A resource, data source or the provider could not be mapped to IR."""

EXIT_INTERRUPTED = 130
"""The run was cancelled with Ctrl-C."""
