import asyncio
import json

import click
import httpx
import uvicorn
from dotenv import load_dotenv

load_dotenv()


@click.group()
def main():
    """Courierly - send messages through a single persistent messaging session."""


@main.command()
@click.option("--host", "host", default=None, help="Bind address (defaults to API_HOST)")
@click.option("--port", "port", default=None, type=int, help="Bind port (defaults to API_PORT)")
def serve(host, port):
    """Run the dispatch API."""
    from courierly.logging_config import get_logging_config
    from courierly.modules.config import get_config

    config = get_config()
    uvicorn.run(
        "courierly.main:app",
        host=host or config.get("host"),
        port=port or config.get("port"),
        log_level=config.get("log_level").lower(),
        log_config=get_logging_config(config.get("log_level")),
    )


async def _clear_auth_state() -> str:
    from courierly.modules.config import get_config
    from courierly.modules.storage import build_auth_store

    config = get_config()
    redis_client = None
    if config.get("auth_store_backend") == "redis":
        from courierly.main import get_redis_client

        redis_client = await get_redis_client()

    try:
        store = build_auth_store(config, redis_client)
        await store.clear()
        return store.location
    finally:
        if redis_client:
            await redis_client.close()


@main.command("reset-auth")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
def reset_auth(yes: bool):
    """Clear the stored authentication state so the session can be paired again."""
    if not yes:
        click.confirm(
            "This removes the stored credentials; the session must be paired again. Continue?",
            abort=True,
        )
    location = asyncio.run(_clear_auth_state())
    click.echo(f"Cleared auth state at {location}")


@main.command()
@click.option("--url", "url", default="http://localhost:3000", help="Base URL of a running service")
@click.option("--api-key", "api_key", envvar="COURIERLY_API_KEY", default=None)
def status(url: str, api_key):
    """Show the session status of a running service."""
    headers = {"X-API-Key": api_key} if api_key else {}
    try:
        response = httpx.get(f"{url.rstrip('/')}/status", headers=headers, timeout=10.0)
    except httpx.HTTPError as e:
        raise click.ClickException(f"Could not reach {url}: {e}")

    if response.status_code != 200:
        raise click.ClickException(f"Status request failed ({response.status_code}): {response.text}")

    click.echo(json.dumps(response.json(), indent=2))


if __name__ == "__main__":
    main()
