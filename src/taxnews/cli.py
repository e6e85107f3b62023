"""CLI entry point for taxnews."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from taxnews.api import create_app
from taxnews.config import Settings, get_settings
from taxnews.core import AggregationError, ConfigurationError, NewsItem, Priority
from taxnews.log import configure_logging
from taxnews.use_cases import NewsService

app = typer.Typer(help="Greek tax and business news aggregator.", no_args_is_help=True)

PRIORITY_MARKS = {
    Priority.HIGH: "🔴",
    Priority.MEDIUM: "🟡",
    Priority.LOW: "⚪",
}

ConfigOption = typer.Option(None, "--config", "-c", help="Path to YAML config (default: $TAXNEWS_CONFIG or config.yaml)")


def _load(config: Optional[Path]) -> Settings:
    try:
        settings = get_settings(config)
    except ConfigurationError as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        raise typer.Exit(code=2)
    configure_logging(settings.log_level)
    return settings


def _build_service(settings: Settings) -> NewsService:
    try:
        return NewsService.from_settings(settings)
    except ConfigurationError as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        raise typer.Exit(code=2)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address"),
    port: Optional[int] = typer.Option(None, help="Port (default: $PORT or 3001)"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """Run the HTTP API with background refresh."""
    settings = _load(config)
    service = _build_service(settings)

    host = host or settings.api.host
    port = port or settings.api.port
    print(f"🚀 TaxNews API Server running on port {port}")
    uvicorn.run(create_app(service, settings), host=host, port=port, log_config=None)


@app.command()
def news(
    limit: int = typer.Option(20, help="Maximum number of items to print"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """Fetch all feeds once and print the merged news."""
    settings = _load(config)
    service = _build_service(settings)

    try:
        snapshot = asyncio.run(service.refresh_news())
    except AggregationError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)

    print(f"\n📰 {snapshot.total} articles (generated {snapshot.generated_at:%Y-%m-%d %H:%M} UTC)\n")
    for item in snapshot.items[:limit]:
        _print_item(item)


@app.command()
def sources(config: Optional[Path] = ConfigOption) -> None:
    """List configured feeds."""
    settings = _load(config)
    service = _build_service(settings)

    print(f"\n📡 Sources ({len(service.registry)}):")
    for source in service.list_sources():
        print(f"  • {source.name} [{source.id}] {source.category}/{source.priority.value}")
        print(f"    └─ {source.url}")


def _print_item(item: NewsItem) -> None:
    mark = PRIORITY_MARKS.get(item.priority, "•")
    breaking = " ⚡ BREAKING" if item.is_breaking else ""
    tags = f" [{', '.join(item.tags)}]" if item.tags else ""
    print(f"{mark} {item.title}{breaking}{tags}")
    print(f"  └─ {item.source_name} · {item.published_at:%Y-%m-%d %H:%M} · {item.url}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
