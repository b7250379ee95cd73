"""Cache commands -- inspect and clear the per-endpoint response cache.

Each endpoint has its own cache directory (see
:func:`~flexfetch.config.endpoint_cache_dir`), so both commands accept
``--endpoint`` and otherwise act on the configured one.
"""

from __future__ import annotations

from typing import Optional

import typer

from flexfetch.output import format_response, info, success


cache_app = typer.Typer(no_args_is_help=True)


def _open_cache(endpoint: Optional[str]):
    from flexfetch.cache import ResponseCache
    from flexfetch.config import endpoint_cache_dir, resolve_config

    config = resolve_config(cli_endpoint=endpoint)
    return config, ResponseCache(endpoint_cache_dir(config.endpoint), config.cache)


@cache_app.command("stats")
def cache_stats(
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", "-e", help="Endpoint whose cache to inspect."
    ),
) -> None:
    """Show cache statistics for an endpoint.

    Example::

        flexfetch cache stats
        flexfetch --json cache stats --endpoint https://flex.example.com
    """
    config, cache = _open_cache(endpoint)
    with cache:
        info(f"Endpoint: {config.endpoint}")
        format_response(cache.stats())


@cache_app.command("clear")
def cache_clear(
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", "-e", help="Endpoint whose cache to clear."
    ),
) -> None:
    """Remove every cached response for an endpoint.

    The next fetch of each path goes to the origin unconditionally.
    """
    config, cache = _open_cache(endpoint)
    with cache:
        removed = cache.clear()
    success(f"Removed {removed} cached response(s) for {config.endpoint}")
