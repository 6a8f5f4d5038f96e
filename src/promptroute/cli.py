"""CLI interface for promptroute.

Settings come from ~/.promptroute/config.yaml and the API key from
$OPEN_ROUTER_API_KEY (or `promptroute config --set-key`).

Quick start:
    promptroute config --set-key sk-or-...          # Store the API key once
    promptroute recommend "fix this SQL query"       # Pick a model
    promptroute classify "write me a sonnet"         # Just the category
    promptroute profiles --category coding -n 5      # Best coding models
    promptroute serve                                # HTTP API
"""

import asyncio
import json

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from promptroute import __version__
from promptroute.classification import KeywordClassifier
from promptroute.config import (
    get_config_path,
    load_config,
    load_router_config,
    save_config,
    save_credential,
)
from promptroute.errors import PromptRouteError
from promptroute.logging_setup import configure_logging
from promptroute.profiling import rank_models_for_category
from promptroute.routing.router import PromptRouter
from promptroute.types import PromptProperties, PromptType

app = typer.Typer(
    name="promptroute",
    help="Route each prompt to the best-suited LLM",
    no_args_is_help=True,
)

console = Console()


def _build_router(verbose: bool = False) -> PromptRouter:
    config = load_router_config()
    configure_logging("DEBUG" if verbose else config.log_level)
    return PromptRouter(config)


def _fail(error: Exception) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    raise typer.Exit(1)


@app.command()
def recommend(
    prompt: str = typer.Argument(..., help="The prompt to route"),
    accuracy: float = typer.Option(0.5, "--accuracy", "-a", min=0.0, max=1.0,
                                   help="Accuracy priority (1 = highest)"),
    cost: float = typer.Option(0.5, "--cost", "-c", min=0.0, max=1.0,
                               help="Cost tolerance (0 = very cost-sensitive, 1 = no object)"),
    speed: float = typer.Option(0.5, "--speed", "-s", min=0.0, max=1.0,
                                help="Speed priority (1 = fastest)"),
    token_limit: int = typer.Option(4000, "--token-limit", "-t", min=1,
                                    help="Minimum context window needed"),
    reasoning: bool = typer.Option(False, "--reasoning", "-r",
                                   help="Only consider reasoning models"),
    json_output: bool = typer.Option(False, "--json", help="Print JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Recommend a model for a prompt.

    Examples:
        promptroute recommend "Write a regex for emails" -a 0.9 -r
        promptroute recommend "Hi there!" --cost 0.1 --json
    """
    router = _build_router(verbose)
    properties = PromptProperties(
        accuracy=accuracy,
        cost=cost,
        speed=speed,
        token_limit=token_limit,
        reasoning=reasoning,
    )

    async def run():
        await router.initialize()
        try:
            return await router.recommend(prompt, properties)
        finally:
            await router.shutdown()

    try:
        selection = asyncio.run(run())
    except PromptRouteError as e:
        _fail(e)

    if json_output:
        console.print_json(json.dumps(selection.to_dict()))
        return

    style = "yellow" if selection.fallback else "green"
    console.print(Panel(
        f"[bold {style}]{selection.model}[/bold {style}]\n\n"
        f"{selection.reason}\n\n"
        f"[dim]Category: {selection.category.type.value} "
        f"({selection.category.confidence:.0%}) | "
        f"Confidence: {selection.confidence:.0%} | "
        f"Candidates: {len(selection.candidates)}[/dim]",
        title="Recommended Model",
        border_style=style,
    ))


@app.command()
def classify(
    prompt: str = typer.Argument(..., help="The prompt to classify"),
    keyword_only: bool = typer.Option(
        False, "--keyword-only", "-k", help="Skip semantic classification (no API calls)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Classify a prompt into a task category."""
    if keyword_only:
        configure_logging("DEBUG" if verbose else "WARNING")
        classifier = KeywordClassifier()
        category = classifier.classify(prompt)
        console.print(
            f"[bold]{category.type.value}[/bold] ({category.confidence:.0%})")
        console.print(f"[dim]{classifier.explain(prompt)}[/dim]")
        return

    router = _build_router(verbose)
    try:
        result = asyncio.run(router.classify(prompt))
    except PromptRouteError as e:
        _fail(e)

    table = Table(title="Classification")
    table.add_column("Method", style="cyan")
    table.add_column("Category")
    table.add_column("Confidence", justify="right")
    for name, category in (("semantic", result.semantic), ("keyword", result.keyword)):
        if category is None:
            table.add_row(name, "[dim]failed[/dim]", "-")
        else:
            table.add_row(name, category.type.value, f"{category.confidence:.0%}")
    table.add_row(
        f"[bold]{result.method}[/bold]",
        f"[bold]{result.category.type.value}[/bold]",
        f"[bold]{result.category.confidence:.0%}[/bold]",
    )
    console.print(table)


@app.command()
def profiles(
    category: PromptType = typer.Option(
        None, "--category", "-c", help="Rank by capability in this category"),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Rows to show"),
    reasoning: bool = typer.Option(
        False, "--reasoning", "-r", help="Only reasoning models"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """List profiled models from the catalog."""
    router = _build_router(verbose)

    async def run():
        await router.initialize()
        try:
            return await router.list_profiles()
        finally:
            await router.shutdown()

    try:
        all_profiles = asyncio.run(run())
    except PromptRouteError as e:
        _fail(e)

    if reasoning:
        all_profiles = [p for p in all_profiles if p.characteristics.is_reasoning]

    table = Table(title=f"Model Profiles ({len(all_profiles)} total)")
    table.add_column("Model", style="cyan")
    table.add_column("Speed")
    table.add_column("Cost")
    table.add_column("Accuracy")
    table.add_column("Context", justify="right")

    if category is not None:
        table.add_column("Score", justify="right", style="green")
        ranking = rank_models_for_category(all_profiles, category, limit=limit)
        for entry in ranking.ranked:
            p = entry.profile
            c = p.characteristics
            table.add_row(p.id, c.speed.value, c.cost.value, c.accuracy.value,
                          f"{p.context_length:,}", f"{entry.score:.0%}")
    else:
        for p in sorted(all_profiles, key=lambda p: p.id)[:limit]:
            c = p.characteristics
            table.add_row(p.id, c.speed.value, c.cost.value, c.accuracy.value,
                          f"{p.context_length:,}")

    console.print(table)


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    set_key: str = typer.Option(None, "--set-key", help="Store the OpenRouter API key"),
    selector_model: str = typer.Option(
        None, "--selector-model", help="Set the model that makes the final pick"),
) -> None:
    """Manage promptroute configuration."""
    if set_key:
        save_credential(set_key)
        console.print("[green]API key saved[/green]")

    if selector_model:
        data = load_config()
        data["selector_model"] = selector_model
        save_config(data)
        console.print(f"[green]Selector model set to: {selector_model}[/green]")

    if show or not (set_key or selector_model):
        try:
            settings = load_router_config()
        except PromptRouteError as e:
            _fail(e)
        key = settings.api_key
        masked = f"{key[:6]}...{key[-4:]}" if len(key) > 12 else ("set" if key else "[red]missing[/red]")
        console.print(Panel(
            f"[bold]API key:[/bold] {masked}\n"
            f"[bold]Selector model:[/bold] {settings.selector_model}\n"
            f"[bold]Embedding model:[/bold] "
            f"{settings.embedding_model if settings.semantic_enabled else 'disabled'}\n"
            f"[bold]Catalog TTL:[/bold] {settings.catalog_ttl_seconds:.0f}s\n"
            f"[bold]Allowed providers:[/bold] {settings.allowed_providers or 'all'}\n"
            f"[bold]Blocked providers:[/bold] {settings.blocked_providers or 'none'}\n"
            f"[bold]Analytics:[/bold] {'on' if settings.analytics.enabled else 'off'}\n"
            f"[bold]Config file:[/bold] {get_config_path()}",
            title="Configuration",
        ))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Host to bind to"),
    port: int = typer.Option(8420, "--port", "-p", help="Port to listen on"),
) -> None:
    """Serve the HTTP API."""
    import uvicorn

    from promptroute.web import create_app

    router = _build_router()
    console.print(Panel(
        f"[bold cyan]promptroute API[/bold cyan]\n\n"
        f"Listening on http://{host}:{port}\n"
        f"Selector model: {router.config.selector_model}",
        border_style="cyan",
    ))
    uvicorn.run(create_app(router), host=host, port=port, log_level="warning")


@app.command()
def version() -> None:
    """Show the promptroute version."""
    console.print(f"promptroute version {__version__}")


if __name__ == "__main__":
    app()
