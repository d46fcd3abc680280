"""CLI for LLM Gateway - provider catalog and title generation."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from llm_gateway.models.catalog import PROVIDER_IDS, ComplexModel, Model

app = typer.Typer(
    name="llm-gateway",
    help="One contract over many LLM provider APIs: model catalog, streaming and titles.",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        from llm_gateway import __version__

        typer.echo(f"llm-gateway v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """One contract over many LLM provider APIs."""
    from llm_gateway.logging import configure_logging
    from llm_gateway.settings import settings

    configure_logging(json_output=False, log_level=settings.log_level)


def _pricing_label(model: Model) -> str:
    if not isinstance(model, ComplexModel):
        return ""
    pricing = model.pricing
    if pricing.points is not None:
        return f"{pricing.points} pts"
    if pricing.min_points is not None:
        return f"min {pricing.min_points} pts"
    if pricing.input_points_per_1k is not None or pricing.output_points_per_1k is not None:
        return f"{pricing.input_points_per_1k}/{pricing.output_points_per_1k} pts/1k"
    if pricing.input_price_per_1k is not None or pricing.output_price_per_1k is not None:
        return f"${pricing.input_price_per_1k}/${pricing.output_price_per_1k} per 1k"
    return ""


@app.command()
def info() -> None:
    """Show gateway configuration and catalog cache status."""
    from llm_gateway import __version__
    from llm_gateway.catalog import ProviderCatalogManager
    from llm_gateway.keys import KeyProvider
    from llm_gateway.selector import titling_providers
    from llm_gateway.settings import settings

    manager = ProviderCatalogManager.from_settings(settings)
    age = asyncio.run(manager.cache_age_seconds())

    console.print(f"[bold]LLM Gateway[/bold] v{__version__}")
    console.print()
    console.print("[bold]Configuration:[/bold]")
    console.print(f"  Catalog URL: {settings.catalog_url}")
    console.print(f"  Cache Dir: {settings.cache_dir}")
    console.print(f"  Conversations Dir: {settings.conversations_dir}")
    console.print(f"  Catalog TTL: {settings.catalog_ttl_seconds}s")
    console.print(f"  Titles: {'enabled' if settings.title_enabled else 'disabled'}")
    console.print(f"  Title Provider: {settings.title_provider}")
    console.print(f"  Server: {settings.host}:{settings.port}")

    if age is None:
        console.print("  Catalog Cache: [yellow]never fetched[/yellow]")
    elif age < settings.catalog_ttl_seconds:
        console.print(f"  Catalog Cache: [green]fresh[/green] ({int(age)}s old)")
    else:
        console.print(f"  Catalog Cache: [yellow]expired[/yellow] ({int(age)}s old)")

    console.print()
    keys = KeyProvider(settings).get_configured_providers()
    console.print("[bold]API Keys:[/bold]")
    for provider_id, configured in keys.items():
        if configured:
            console.print(f"  {provider_id}: [green]configured[/green]")
        else:
            console.print(f"  {provider_id}: [dim]not configured[/dim]")

    choices = titling_providers({provider_id for provider_id, ok in keys.items() if ok})
    console.print()
    console.print(f"[bold]Title Providers:[/bold] {', '.join(choices) or 'none'}")


@app.command()
def refresh(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Fetch even if the cache is still valid"),
    ] = False,
) -> None:
    """Refresh the cached model catalog."""
    from llm_gateway.catalog import ProviderCatalogManager
    from llm_gateway.settings import settings

    manager = ProviderCatalogManager.from_settings(settings)

    if force:
        success, error = asyncio.run(manager.force_refresh())
        if not success:
            error_console.print(f"[red]Catalog refresh failed:[/red] {error}")
            raise typer.Exit(1)
        console.print("[green]Catalog refreshed[/green]")
        return

    if asyncio.run(manager.refresh_if_needed()):
        console.print("[green]Catalog refreshed[/green]")
    else:
        console.print("Catalog unchanged (cache still valid or fetch failed)")


@app.command()
def models(
    provider: Annotated[
        str | None,
        typer.Argument(help="Only show this provider's models"),
    ] = None,
) -> None:
    """List models per provider, from the cache or the built-in defaults."""
    from llm_gateway.catalog import ProviderCatalogManager
    from llm_gateway.models.budgets import (
        default_thinking_value,
        format_temperature_value,
        format_thinking_value,
        temperature_config_for,
    )
    from llm_gateway.settings import settings

    if provider is not None and provider not in PROVIDER_IDS:
        error_console.print(f"[red]Unknown provider:[/red] {provider}")
        error_console.print(f"Known providers: {', '.join(PROVIDER_IDS)}")
        raise typer.Exit(1)

    manager = ProviderCatalogManager.from_settings(settings)
    providers = asyncio.run(manager.build_providers())
    if provider is not None:
        providers = [p for p in providers if p.provider == provider]

    for entry in providers:
        table = Table(title=entry.provider, title_justify="left")
        table.add_column("Model")
        table.add_column("Thinking")
        table.add_column("Temperature")
        table.add_column("Pricing")

        for model in entry.models:
            thinking = model.thinking_config
            temperature = temperature_config_for(entry.provider, model)
            table.add_row(
                model.name,
                format_thinking_value(default_thinking_value(thinking), thinking),
                format_temperature_value(temperature.default) if temperature else "",
                _pricing_label(model),
            )

        console.print(table)


@app.command()
def title(
    conversation_id: Annotated[str, typer.Argument(help="Conversation to title")],
    provider: Annotated[
        str | None,
        typer.Option("--provider", "-p", help="Preferred provider (default: settings)"),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", help="User whose API keys are used"),
    ] = None,
    save: Annotated[
        bool,
        typer.Option("--save/--no-save", help="Store the title on the conversation"),
    ] = False,
) -> None:
    """Generate a title for a stored conversation."""
    from llm_gateway.catalog import ProviderCatalogManager
    from llm_gateway.client import LLMClient
    from llm_gateway.errors import StorageError
    from llm_gateway.keys import KeyProvider
    from llm_gateway.settings import settings
    from llm_gateway.storage import ConversationStorage
    from llm_gateway.titles import TitleGenerator, TitleSettings

    title_settings = TitleSettings.from_settings(settings)
    if not title_settings.enabled:
        error_console.print("[yellow]Title generation is disabled[/yellow]")
        raise typer.Exit(1)

    storage = ConversationStorage(settings.conversations_dir)
    manager = ProviderCatalogManager.from_settings(settings)
    generator = TitleGenerator(
        load_conversation=storage.get,
        load_providers=manager.build_providers,
        load_active_keys=KeyProvider(settings).load_active_keys,
        client=LLMClient(timeout=settings.stream_timeout),
        default_title=settings.default_title,
    )

    async def run() -> str:
        result = await generator.generate_title(
            user, conversation_id, provider or title_settings.preferred_provider
        )
        if save and result != generator.default_title:
            try:
                await storage.update_title(conversation_id, result)
            except StorageError as e:
                error_console.print(f"[yellow]Title not saved:[/yellow] {e}")
        return result

    console.print(asyncio.run(run()))


@app.command()
def serve(
    host: Annotated[
        str | None,
        typer.Option("--host", "-h", help="Host to bind to"),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Port to bind to"),
    ] = None,
    reload: Annotated[
        bool,
        typer.Option("--reload", help="Enable auto-reload for development"),
    ] = False,
) -> None:
    """Start the gateway server."""
    import uvicorn

    from llm_gateway.settings import settings

    actual_host = host or settings.host
    actual_port = port or settings.port

    console.print("[green]Starting LLM Gateway...[/green]")
    console.print(f"  Host: {actual_host}")
    console.print(f"  Port: {actual_port}")
    console.print(f"  Catalog: {settings.catalog_url}")
    console.print()
    console.print(f"  API: http://{actual_host}:{actual_port}/")
    console.print(f"  Health: http://{actual_host}:{actual_port}/health")
    console.print()

    uvicorn.run(
        "llm_gateway.server:app",
        host=actual_host,
        port=actual_port,
        reload=reload,
    )
