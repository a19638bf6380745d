"""CLI entrypoint (Typer).

- `mango goals` / `mango prompts`: list cached backend collections
- `mango models [QUERY]`: search the OpenRouter model catalog
- `mango logs`: page through recorded LLM calls
- `mango set-key KEY`: rotate the backend's OpenRouter key
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer

from mango_client.config import get_settings
from mango_client.context import MangoContext
from mango_client.errors import MangoClientError
from mango_client.schemas import LogFilter

app = typer.Typer(help="LLMango client CLI.")


def build_context() -> MangoContext:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return MangoContext.from_settings(settings)


def _run(coro) -> None:
    try:
        asyncio.run(coro)
    except MangoClientError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


@app.command()
def goals():
    """List goals with their prompt counts."""

    async def main() -> None:
        async with build_context() as ctx:
            await ctx.initialize()
            for goal in ctx.goals.store.values():
                prompts = ctx.prompts_by_goal.get(goal.uid, [])
                typer.echo(f"{goal.uid}\t{goal.title}\t{len(prompts)} prompts\t{len(goal.solutions)} solutions")

    _run(main())


@app.command()
def prompts(goal: Optional[str] = typer.Option(None, "--goal", help="Only prompts of this goal")):
    """List prompts."""

    async def main() -> None:
        async with build_context() as ctx:
            await ctx.prompts.ensure_loaded()
            items = ctx.prompts_by_goal.get(goal, []) if goal else ctx.prompts.store.values()
            for prompt in items:
                typer.echo(f"{prompt.uid}\t{prompt.goal_uid}\t{prompt.model}\tweight={prompt.weight}")

    _run(main())


@app.command()
def models(
    query: str = typer.Argument("", help="Case-insensitive id/name filter"),
    refresh: bool = typer.Option(False, "--refresh", help="Fetch a fresh listing first"),
):
    """Search the model catalog, newest first."""

    async def main() -> None:
        async with build_context() as ctx:
            if refresh:
                if not await ctx.catalog.reload():
                    typer.echo(f"Refresh failed: {ctx.catalog.error}", err=True)
            await ctx.catalog.initialize()
            for model in ctx.catalog.filter_models(query):
                typer.echo(f"{model.id}\t{model.name}")

    _run(main())


@app.command()
def logs(
    goal: Optional[str] = typer.Option(None, "--goal"),
    prompt: Optional[str] = typer.Option(None, "--prompt"),
    limit: int = typer.Option(10, "--limit", min=1),
    offset: int = typer.Option(0, "--offset", min=0),
):
    """Show recorded LLM calls."""

    async def main() -> None:
        log_filter = LogFilter(limit=limit, offset=offset)
        async with build_context() as ctx:
            if goal:
                response = await ctx.logs.query_goal_logs(goal, log_filter)
            elif prompt:
                response = await ctx.logs.query_prompt_logs(prompt, log_filter)
            else:
                response = await ctx.logs.query_logs(log_filter)

            for entry in response.logs:
                status = entry.error or "ok"
                typer.echo(
                    f"{entry.timestamp}\t{entry.goal_uid}\t{entry.prompt_uid}\t"
                    f"{entry.input_tokens}/{entry.output_tokens} tokens\t${entry.cost:.6f}\t{status}"
                )
            page = response.pagination
            typer.echo(f"page {page.page}/{page.total_pages} ({page.total} total)")

    _run(main())


@app.command("set-key")
def set_key(key: str):
    """Update the OpenRouter API key used by the backend."""

    async def main() -> None:
        async with build_context() as ctx:
            await ctx.mutations.update_api_key(key)
            typer.echo("API key updated")

    _run(main())


if __name__ == "__main__":
    app()
