"""Help Scout metrics CLI - run the metrics job once or on a timer."""

import asyncio
import json
import logging
import sys
import time
from functools import wraps
from typing import Annotated, Callable

import typer

from helpscout_metrics import __version__
from helpscout_metrics.client import (
    CONFIG_PATH,
    HelpScoutClient,
    HelpScoutClientError,
    delete_credentials,
    get_api_key,
    get_auth_status,
    get_mailboxes,
    save_credentials,
    save_slack_config,
)
from helpscout_metrics.plugin import HelpScoutMetrics
from helpscout_metrics.sink import MemorySink, SlackSink

# Main app
app = typer.Typer(
    name="helpscout-metrics",
    help="Help Scout metrics - aggregate mailbox conversations into reporting metrics.",
    no_args_is_help=True,
    add_completion=False,
)

# Auth subcommand group
auth_app = typer.Typer(
    help="Authentication management - configure the API key, mailboxes and Slack.",
    no_args_is_help=True,
)
app.add_typer(auth_app, name="auth")


def output_json(data: dict) -> None:
    """Output JSON to stdout."""
    print(json.dumps(data, indent=2, default=str))


def output_error(message: str, exit_code: int = 1) -> None:
    """Output error and exit."""
    print(json.dumps({"error": message}), file=sys.stderr)
    raise typer.Exit(exit_code)


def run_async(coro):
    """Run async coroutine synchronously."""
    return asyncio.run(coro)


def helpscout_command(func: Callable) -> Callable:
    """Decorator to handle common error patterns for CLI commands."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (HelpScoutClientError, ValueError) as e:
            output_error(str(e))
    return wrapper


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        output_json({"version": __version__})
        raise typer.Exit()


def _resolve_mailboxes(mailboxes: list[str] | None) -> list[str]:
    resolved = mailboxes or get_mailboxes()
    if not resolved:
        raise ValueError(
            "No mailboxes configured. Pass --mailbox, set HELPSCOUT_MAILBOXES "
            "or run 'helpscout-metrics auth login'."
        )
    return resolved


async def _tick(job: HelpScoutMetrics, slack: bool) -> dict:
    """Run one tick and return its output."""
    sink = SlackSink() if slack else MemorySink()
    ok = await job.collect(sink)
    if not ok:
        return {"success": False, "error": "Failed to query Help Scout mailboxes. See log for details."}

    result = {"success": True, "metrics": sink.as_dict()}
    if slack:
        result["slack"] = await sink.flush()
    return result


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version", "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option("--log-level", "-l", help="Logging level (DEBUG, INFO, WARNING, ERROR)."),
    ] = "WARNING",
) -> None:
    """Help Scout metrics - active tickets, weekly trends and leaderboards."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# =============================================================================
# Auth Commands
# =============================================================================


@auth_app.command("login")
def auth_login_cmd(
    api_key: Annotated[
        str | None,
        typer.Option("--api-key", "-k", help="Help Scout API key"),
    ] = None,
    mailboxes: Annotated[
        list[str] | None,
        typer.Option("--mailbox", "-m", help="Mailbox ID to report on (repeatable)"),
    ] = None,
) -> None:
    """Configure the Help Scout API key and mailboxes.

    Prompts for the API key when it isn't given. The key is validated by
    listing mailboxes before it is saved.
    """
    if not api_key:
        typer.echo("Configure Help Scout authentication\n")
        api_key = typer.prompt("API Key", hide_input=True)

    typer.echo("\nValidating API key...")
    try:
        available = run_async(HelpScoutClient(api_key=api_key).list_mailboxes())
    except HelpScoutClientError as e:
        output_error(f"Authentication failed: {e}")

    config_path = save_credentials(api_key, mailboxes)
    output_json({
        "success": True,
        "message": f"API key can access {len(available)} mailbox(es)",
        "mailboxes": available,
        "config_path": str(config_path),
    })


@auth_app.command("status")
def auth_status_cmd() -> None:
    """Check current configuration status and validate the API key."""
    status = get_auth_status()
    if not status["configured"]:
        status["authenticated"] = False
        status["guidance"] = (
            "No Help Scout API key configured. Set up using:\n"
            "1. CLI: helpscout-metrics auth login\n"
            "2. Environment variables: HELPSCOUT_API_KEY, HELPSCOUT_MAILBOXES\n"
            f"3. Config file: {status['config_path']}"
        )
        output_json(status)
        return

    try:
        run_async(HelpScoutClient(api_key=get_api_key()).list_mailboxes())
        status["authenticated"] = True
    except HelpScoutClientError as e:
        status["authenticated"] = False
        status["error"] = str(e)
    output_json(status)


@auth_app.command("logout")
def auth_logout_cmd() -> None:
    """Remove the saved API key and mailboxes from the config file.

    Note: Does not affect environment variables if set.
    """
    status = get_auth_status()
    deleted = delete_credentials()
    output = {
        "deleted": deleted,
        "config_path": str(CONFIG_PATH),
        "message": "Credentials removed from config file." if deleted else "No saved credentials found.",
    }
    if status["env_vars_set"]:
        output["warning"] = (
            f"Environment variables still set: {', '.join(status['env_vars_set'])}. "
            "These will continue to provide configuration."
        )
    output_json(output)


@auth_app.command("login-slack")
def auth_login_slack_cmd(
    webhook_url: Annotated[
        str,
        typer.Option("--webhook", "-w", help="Slack incoming webhook URL", prompt="Webhook URL"),
    ],
    channel: Annotated[
        str,
        typer.Option("--channel", "-c", help="Slack channel (e.g., #support-metrics)", prompt="Channel"),
    ],
) -> None:
    """Configure the Slack webhook used by 'run --slack'."""
    if not channel.startswith("#"):
        channel = f"#{channel}"
    config_path = save_slack_config(webhook_url, channel)
    output_json({
        "success": True,
        "message": f"Slack configured for channel {channel}",
        "channel": channel,
        "config_path": str(config_path),
    })


# =============================================================================
# Metrics Commands
# =============================================================================


@app.command("mailboxes")
@helpscout_command
def mailboxes_cmd() -> None:
    """List the mailboxes the API key can access."""
    result = run_async(HelpScoutClient().list_mailboxes())
    output_json({"mailboxes": result})


@app.command("run")
@helpscout_command
def run_cmd(
    mailboxes: Annotated[
        list[str] | None,
        typer.Option("--mailbox", "-m", help="Mailbox ID (repeatable; default: configured mailboxes)"),
    ] = None,
    slack: Annotated[bool, typer.Option("--slack", help="Also post the metrics to Slack")] = False,
) -> None:
    """Fetch all mailboxes once and print the metrics."""
    job = HelpScoutMetrics(None, _resolve_mailboxes(mailboxes))
    result = run_async(_tick(job, slack))
    if not result["success"]:
        output_error(result["error"])
    output_json(result)


@app.command("watch")
@helpscout_command
def watch_cmd(
    interval: Annotated[
        float,
        typer.Option("--interval", "-i", min=1.0, help="Seconds between ticks"),
    ] = 300.0,
    mailboxes: Annotated[
        list[str] | None,
        typer.Option("--mailbox", "-m", help="Mailbox ID (repeatable; default: configured mailboxes)"),
    ] = None,
    slack: Annotated[bool, typer.Option("--slack", help="Also post each tick to Slack")] = False,
) -> None:
    """Run the metrics job on a timer until interrupted.

    A failed tick is logged and skipped; the next tick tries again.
    """
    job = HelpScoutMetrics(None, _resolve_mailboxes(mailboxes))
    try:
        while True:
            result = run_async(_tick(job, slack))
            if result["success"]:
                print(json.dumps(result, default=str), flush=True)
            time.sleep(interval)
    except KeyboardInterrupt:
        raise typer.Exit()


def main_cli() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main_cli()
