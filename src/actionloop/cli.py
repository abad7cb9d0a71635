"""CLI entry point for actionloop."""

from __future__ import annotations

import asyncio
import logging
import os

import typer

from actionloop.agent.loop import AgentLoop
from actionloop.agent.types import ActionExecution, AgentLoopResult
from actionloop.config import ActionLoopConfig
from actionloop.llm.provider import create_provider

app = typer.Typer(
    name="actionloop",
    help="Chat with a language model that can call actions.",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_config(
    config_file: str | None, model: str | None, max_steps: int | None
) -> ActionLoopConfig:
    config = ActionLoopConfig.load(config_file)
    if model:
        config.llm.model = model
    if max_steps:
        config.loop = config.loop.model_copy(update={"max_steps": max_steps})
    return config


def _build_loop(config: ActionLoopConfig) -> AgentLoop:
    provider = create_provider(
        config.llm.model,
        temperature=config.llm.temperature,
        max_tokens=config.llm.max_tokens,
    )

    def _on_user_output(message: str) -> None:
        typer.echo(f"[Agent]: {message}")

    def _on_action_executed(execution: ActionExecution) -> None:
        typer.echo(f"  -> {execution.action_name} {execution.parameters}", err=True)

    def _on_invalid_output(attempt: int, error: str, output: str) -> None:
        typer.echo(f"  !! invalid output (attempt {attempt}): {error}", err=True)

    return AgentLoop(
        provider,
        config.loop,
        on_user_output=_on_user_output,
        on_action_executed=_on_action_executed,
        on_invalid_output=_on_invalid_output,
    )


def _show_api_key_status(config: ActionLoopConfig) -> None:
    """Warn when the API key for the configured provider is missing."""
    provider_prefix = config.llm.model.split("/")[0] if "/" in config.llm.model else ""
    key_env_map = {
        "anthropic": "ANTHROPIC_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "openai": "OPENAI_API_KEY",
    }
    env_var = key_env_map.get(provider_prefix, "")
    if env_var and not os.environ.get(env_var):
        typer.echo(
            f"WARNING: {env_var} is not set! Set it in .env or your shell.",
            err=True,
        )


def _print_reply(loop: AgentLoop, result: AgentLoopResult) -> None:
    """Show the plain reply when the model answered without actions."""
    if not result.success:
        typer.echo(f"Error: {result.error}", err=True)
        return
    if not result.outputs:
        history = loop.history
        if history and history[-1].role == "assistant":
            typer.echo(history[-1].content)


@app.command()
def run(
    message: str = typer.Argument(help="Message to send to the agent."),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="LLM model to use (default: from env/config).",
    ),
    max_steps: int | None = typer.Option(
        None, "--max-steps", help="Model rounds allowed for this turn."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Send one message and print the agent's output."""
    setup_logging(verbose)
    config = _load_config(config_file, model, max_steps)
    _show_api_key_status(config)

    loop = _build_loop(config)
    result = asyncio.run(loop.run(message))
    _print_reply(loop, result)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def chat(
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="LLM model to use (default: from env/config).",
    ),
    max_steps: int | None = typer.Option(
        None, "--max-steps", help="Model rounds allowed per turn."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Interactive conversation. Type 'exit' to quit, 'reset' to clear history."""
    setup_logging(verbose)
    config = _load_config(config_file, model, max_steps)
    typer.echo(f"Model: {config.llm.model}")
    _show_api_key_status(config)
    typer.echo("---")

    loop = _build_loop(config)

    async def _repl() -> None:
        while True:
            try:
                message = input("You: ").strip()
            except (EOFError, KeyboardInterrupt):
                typer.echo("")
                break
            if not message:
                continue
            if message in ("exit", "quit"):
                break
            if message == "reset":
                loop.clear_history()
                typer.echo("History cleared.")
                continue

            result = await loop.run(message)
            _print_reply(loop, result)

    asyncio.run(_repl())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
