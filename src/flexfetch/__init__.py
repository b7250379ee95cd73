"""flexfetch -- resilient fetch-with-cache client for a JSON recipe server.

Reads JSON resources by path from a single origin, revalidates cached
copies with ``If-Modified-Since``, retries transient failures, and falls
back to stale cached data when the origin cannot be reached.

Typical use::

    from flexfetch.client import create_downloader
    from flexfetch.config import resolve_config

    with create_downloader(resolve_config()) as downloader:
        aliases = downloader.get("/aliases.json")

Modules:
    app: Typer application and CLI entry point.
    client: The downloader, response entity, and transport.
    cache: Disk-backed response store.
    config: XDG-aware configuration and precedence resolution.
    models: Pydantic configuration models.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
