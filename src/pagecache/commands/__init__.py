"""Built-in CLI sub-commands for pagecache.

* :mod:`~pagecache.commands.cache` -- inspect, summarise and clear the page
  cache.
* :mod:`~pagecache.commands.config` -- view and modify global settings.

Each module exports a :class:`typer.Typer` sub-application registered on the
root app in :func:`pagecache.app.main`.
"""
