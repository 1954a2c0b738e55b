"""Built-in CLI sub-commands for tfopenapigen.

* :mod:`~tfopenapigen.commands.generate` -- produce the Framework IR.
* :mod:`~tfopenapigen.commands.inspect` -- list operations and show how the
  configured entities resolve.

``generate`` is a plain callback registered directly on the root app;
``inspect`` is a :class:`typer.Typer` sub-application.
"""
