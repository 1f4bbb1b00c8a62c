"""
promptguard CLI

Command-line interface for checking the monitor setup and scoring
text by hand.

Commands:
    promptguard score "text" [--tool NAME]   — Score text with the configured classifier
    promptguard score -                      — Read the text from stdin
    promptguard status                       — Show monitor configuration

The classifier is selected exactly as inside an agent session:
PI_MONITOR_API_KEY first, then the provider given by --model.
"""

from __future__ import annotations

import asyncio
import json
import sys

import click

from promptguard import __version__
from promptguard.config import (
    ENV_API_BASE,
    ENV_API_KEY,
    ENV_ENABLED,
    ExplicitEndpoint,
    MonitorConfig,
    has_monitor_credentials,
    is_monitor_enabled,
    resolve_monitor_model,
)
from promptguard.exceptions import PromptGuardError
from promptguard.monitor.classifier import PROMPT_INJECTION_THRESHOLD, score_for_prompt_injection
from promptguard.monitor.wrapper import MIN_TEXT_LENGTH


@click.group()
@click.version_option(version=__version__, prog_name="promptguard")
def cli() -> None:
    """promptguard — prompt injection monitor for agent tools"""
    pass


@cli.command()
@click.argument("text")
@click.option("--tool", "tool_name", default="cli", help="Tool name shown to the classifier")
@click.option("--model", default=None, help='Provider model ref, e.g. "openai/gpt-4o-mini"')
@click.option("--json-output", is_flag=True, help="Output as JSON")
def score(text: str, tool_name: str, model: str | None, json_output: bool) -> None:
    """Score TEXT for prompt injection ("-" reads stdin)."""
    if text == "-":
        text = sys.stdin.read()

    cfg = MonitorConfig(model=model)
    try:
        verdict = asyncio.run(score_for_prompt_injection(text, tool_name, cfg))
    except PromptGuardError as e:
        raise click.ClickException(f"Scoring failed: {e}") from e

    redacted = verdict.score >= PROMPT_INJECTION_THRESHOLD
    if json_output:
        click.echo(json.dumps({
            "tool": tool_name,
            "score": verdict.score,
            "reasoning": verdict.reasoning,
            "threshold": PROMPT_INJECTION_THRESHOLD,
            "redacted": redacted,
        }, indent=2))
        return

    click.echo(f"  Score:     {verdict.score}/100")
    click.echo(f"  Reasoning: {verdict.reasoning or '-'}")
    click.echo(f"  Verdict:   {'REDACT' if redacted else 'PASS'} (threshold {PROMPT_INJECTION_THRESHOLD})")


@cli.command()
def status() -> None:
    """Show prompt injection monitor configuration."""
    _print_header("promptguard Monitor Status")
    click.echo(f"  Version: {__version__}")
    click.echo(f"  Python: {sys.version.split()[0]}")

    cfg = MonitorConfig()
    click.echo(f"\n  Enabled ({ENV_ENABLED}): {'yes' if is_monitor_enabled(cfg) else 'no'}")

    endpoint = ExplicitEndpoint.from_env()
    if endpoint is not None:
        click.echo(f"  Backend: explicit endpoint ({ENV_API_KEY})")
        click.echo(f"    {ENV_API_BASE}: {endpoint.api_base}")
        click.echo(f"    Model: {endpoint.model}")
    else:
        provider, model = resolve_monitor_model(cfg)
        click.echo(f"  Backend: provider {provider}/{model}")
    click.echo(f"  Credentials: {'found' if has_monitor_credentials(cfg) else 'MISSING'}")

    click.echo(f"\n  Threshold: {PROMPT_INJECTION_THRESHOLD}/100")
    click.echo(f"  Min text length: {MIN_TEXT_LENGTH} chars")


def _print_header(title: str) -> None:
    """Print a formatted header."""
    click.echo(f"\n  {'=' * 60}")
    click.echo(f"  {title}")
    click.echo(f"  {'=' * 60}\n")


if __name__ == "__main__":
    cli()
