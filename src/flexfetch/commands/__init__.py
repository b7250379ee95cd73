"""Built-in CLI sub-commands for flexfetch.

Each module in this package defines a Typer sub-application or command
function that is registered on the root app in :func:`flexfetch.app.main`:

Modules:
    cache: ``flexfetch cache`` -- inspect and clear the response cache.
    config: ``flexfetch config`` -- show the effective configuration.
"""
