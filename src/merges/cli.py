# -----------------------------------------------------------------------------
# /*
#  * Copyright (C) 2025 CodeStory
#  *
#  * This program is free software; you can redistribute it and/or modify
#  * it under the terms of the GNU General Public License as published by
#  * the Free Software Foundation; Version 2.
#  *
#  * This program is distributed in the hope that it will be useful,
#  * but WITHOUT ANY WARRANTY; without even the implied warranty of
#  * MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
#  * GNU General Public License for more details.
#  *
#  * You should have received a copy of the GNU General Public License
#  * along with this program; if not, you can contact us at support@codestory.build
#  */
# -----------------------------------------------------------------------------

import sys
from pathlib import Path

import typer
from colorama import init
from dotenv import load_dotenv
from loguru import logger

from merges.commands import (
    add,
    clean,
    doctor,
    init as init_command,
    mcp,
    move,
    push,
    split,
    status,
    sync,
)
from merges.constants import APP_NAME
from merges.context import GlobalContext
from merges.core.config.config_loader import ConfigLoader
from merges.core.exceptions import handle_merges_exception
from merges.core.logging.logging import setup_logger
from merges.core.validation import validate_git_repository
from merges.runtimeutil import (
    ensure_utf8_output,
    get_log_dir_callback,
    setup_signal_handlers,
    version_callback,
)

# Initialize colorama (colored output in terminal)
init(autoreset=True)

# main cli app
app = typer.Typer(
    help=f"{APP_NAME}: split a big branch into small, reviewable pull requests",
    pretty_exceptions_show_locals=False,
    pretty_exceptions_enable=False,
    add_completion=False,
)

app.command(name="init")(init_command.main)
app.command(name="split")(split.main)
app.command(name="push")(push.main)
app.command(name="sync")(sync.main)
app.command(name="status")(status.main)
app.command(name="add")(add.main)
app.command(name="move")(move.main)
app.command(name="clean")(clean.main)
app.command(name="doctor")(doctor.main)
app.command(name="mcp")(mcp.main)

# stdout belongs to the protocol for these
protocol_commands = {"mcp"}


def load_global_config(custom_config_path: str | None, repo_path: Path, **input_args):
    # input args are the "runtime overrides" for configs
    loader = ConfigLoader(
        repo_path,
        custom_config_path=Path(custom_config_path)
        if custom_config_path is not None
        else None,
    )
    return loader.load(input_args)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        help="Show version and exit",
    ),
    log_path: bool = typer.Option(
        False,
        "--log-dir",
        "-LD",
        callback=get_log_dir_callback,
        help="Show log path (where logs for merges live) and exit",
    ),
    repo_path: str = typer.Option(
        ".",
        "--repo",
        help="Path to the git repository to operate on.",
    ),
    custom_config: str | None = typer.Option(
        None,
        "--custom-config",
        help="Path to a custom config file",
    ),
    verbose: bool | None = typer.Option(
        None,
        "--verbose",
        "-v",
        help="Enable verbose logging.",
    ),
    silent: bool | None = typer.Option(
        None,
        "--silent",
        "-s",
        help="Do not output any text to the console, except for prompts",
    ),
    auto_accept: bool | None = typer.Option(
        None, "--yes", "-y", help="Automatically accept all prompts"
    ),
    parallel: bool | None = typer.Option(
        None,
        "--parallel/--sequential",
        help="Rebase and push chunks concurrently (requires worktree mode).",
    ),
    max_workers: int | None = typer.Option(
        None, "--max-workers", help="Thread count for parallel operations."
    ),
    remote_name: str | None = typer.Option(
        None, "--remote-name", help="Git remote that hosts the pull requests."
    ),
) -> None:
    """
    Global setup callback. Initialize global context/config used by commands
    """
    with handle_merges_exception(exit_on_fail=True):
        if ctx.invoked_subcommand is None:
            print(ctx.get_help())
            raise typer.Exit()

        # skip --help in subcommands
        if any(arg in ctx.help_option_names for arg in sys.argv):
            return

        repo = Path(repo_path)
        config, used_config_sources, _ = load_global_config(
            custom_config,
            repo,
            verbose=verbose,
            silent=silent,
            auto_accept=auto_accept,
            parallel=parallel,
            max_workers=max_workers,
            remote_name=remote_name,
        )

        setup_logger(
            ctx.invoked_subcommand,
            debug=config.verbose,
            silent=config.silent,
            stderr=ctx.invoked_subcommand in protocol_commands,
        )

        logger.debug(f"Used {used_config_sources} to build global context.")
        global_context = GlobalContext.from_global_config(config, repo)
        # fail immediately if we arent in a valid git repo as we expect one
        validate_git_repository(global_context.git_commands)

        setup_signal_handlers()

        ctx.obj = global_context


def run_app():
    """Run the application with global exception handling."""
    # force stdout to be utf8
    ensure_utf8_output()
    # load any .env files (config values possibly set through env)
    load_dotenv()
    # launch cli
    app(prog_name=APP_NAME)


if __name__ == "__main__":
    run_app()
