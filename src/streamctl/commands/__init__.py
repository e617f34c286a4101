"""Built-in CLI sub-commands for streamctl.

* :mod:`~streamctl.commands.auth` -- ``login``, ``logout`` and the
  ``auth`` group.
* :mod:`~streamctl.commands.config` -- view and modify global settings.

Multi-command groups export a :class:`typer.Typer` sub-application;
single commands are plain callbacks registered on the root app.
"""
