import logging
import os
import sys
import traceback
from collections.abc import Callable

import click
import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from ruleset_reconcile.policy_sync.models import ConflictPolicy
from ruleset_reconcile.status import ExitCodes
from ruleset_reconcile.utils.config import ConfigNotFound
from ruleset_reconcile.utils.exceptions import DiscoveryError
from ruleset_reconcile.utils.runtime.environment import init_env
from ruleset_reconcile.utils.threaded import MAX_THREAD_POOL_SIZE

# Enable Sentry
if os.getenv("SENTRY_DSN"):
    match os.environ.get("SENTRY_EVENT_LEVEL", "CRITICAL").upper():
        case "CRITICAL":
            sentry_event_level = logging.CRITICAL
        case "ERROR":
            sentry_event_level = logging.ERROR
        case _:
            raise ValueError(
                "Invalid value for SENTRY_EVENT_LEVEL. Must be CRITICAL or ERROR."
            )

    sentry_sdk.init(
        os.environ["SENTRY_DSN"],
        integrations=[
            LoggingIntegration(event_level=sentry_event_level),
        ],
    )


def config_file(function: Callable) -> Callable:
    help_msg = "Path to configuration file in toml format."
    function = click.option(
        "--config",
        "configfile",
        default=os.environ.get("RULESET_RECONCILE_CONFIG"),
        help=help_msg,
    )(function)
    return function


def log_level(function: Callable) -> Callable:
    function = click.option(
        "--log-level",
        help="log-level of the command. Defaults to INFO.",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    )(function)
    return function


def dry_run(function: Callable) -> Callable:
    help_msg = (
        "If `true`, it will only print the planned actions "
        "that would be performed, without executing them."
    )

    function = click.option("--dry-run/--no-dry-run", default=False, help=help_msg)(
        function
    )
    return function


def threaded(default: int = 1) -> Callable:
    def f(function: Callable) -> Callable:
        opt = "--thread-pool-size"
        msg = "number of repositories to reconcile in parallel."
        function = click.option(
            opt,
            type=click.IntRange(1, MAX_THREAD_POOL_SIZE),
            default=default,
            help=msg,
        )(function)
        return function

    return f


def conflict_policy(function: Callable) -> Callable:
    help_msg = (
        "What to do when the ruleset already exists on a repository: "
        "`skip` preserves it, `replace` deletes and recreates it."
    )
    function = click.option(
        "--conflict-policy",
        type=click.Choice([p.value for p in ConflictPolicy]),
        default=ConflictPolicy.SKIP_IF_EXISTS.value,
        show_default=True,
        help=help_msg,
    )(function)
    return function


def owner(function: Callable) -> Callable:
    function = click.option(
        "--owner",
        help="organization or user owning the repositories. "
        "Qualifies bare repository names and is required with --all.",
        default=None,
    )(function)
    return function


def split_targets(
    ctx: click.Context, param: click.Parameter, value: tuple[str, ...]
) -> list[str]:
    return [t.strip() for v in value for t in v.split(",") if t.strip()]


@click.group()
@config_file
@dry_run
@log_level
@click.pass_context
def integration(
    ctx: click.Context,
    configfile: str | None,
    dry_run: bool,
    log_level: str | None,
) -> None:
    ctx.ensure_object(dict)
    try:
        init_env(log_level=log_level, config_file=configfile, dry_run=dry_run)
    except ConfigNotFound as e:
        sys.stderr.write(str(e) + "\n")
        sys.exit(ExitCodes.ERROR)
    ctx.obj["dry_run"] = dry_run


@integration.command(short_help="Apply the branch ruleset to repositories.")
@click.option(
    "--targets",
    multiple=True,
    callback=split_targets,
    help="comma separated list of repositories (owner/name). Can be repeated.",
)
@click.option(
    "--all",
    "discover_all",
    is_flag=True,
    default=False,
    help="reconcile every repository of the owner.",
)
@click.option(
    "--include-forks/--exclude-forks",
    default=False,
    help="with --all, also reconcile forked repositories.",
)
@click.option(
    "--include-archived/--exclude-archived",
    default=False,
    help="with --all, also reconcile archived repositories.",
)
@conflict_policy
@owner
@threaded()
@click.pass_context
def sync(
    ctx: click.Context,
    targets: list[str],
    discover_all: bool,
    include_forks: bool,
    include_archived: bool,
    conflict_policy: str,
    owner: str | None,
    thread_pool_size: int,
) -> None:
    """Reconcile the branch ruleset of repositories.

    Without --targets or --all, repositories are read from standard input,
    one per line, until an empty line.
    """
    import ruleset_reconcile.policy_sync.integration

    if targets and discover_all:
        raise click.UsageError("--targets and --all are mutually exclusive.")

    try:
        summary = ruleset_reconcile.policy_sync.integration.run(
            dry_run=ctx.obj["dry_run"],
            targets=targets,
            discover_all=discover_all,
            conflict_policy=ConflictPolicy(conflict_policy),
            owner=owner,
            include_forks=include_forks,
            include_archived=include_archived,
            thread_pool_size=thread_pool_size,
            stdin=click.get_text_stream("stdin"),
            prompt=lambda msg: click.echo(msg, err=True),
        )
    except DiscoveryError as e:
        sys.stderr.write(str(e) + "\n")
        sys.exit(ExitCodes.ERROR)
    except Exception:
        traceback.print_exc(file=sys.stderr)
        sys.exit(ExitCodes.ERROR)

    if summary.cancelled:
        sys.exit(ExitCodes.CANCELLED)
    sys.exit(ExitCodes.SUCCESS if summary.ok else ExitCodes.ERROR)
