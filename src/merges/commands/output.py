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


import json

import typer
from loguru import logger

from merges.core.data.results import OperationReport, OutcomeStatus
from merges.core.logging.logging import log_operation

_STYLES = {
    OutcomeStatus.CREATED: "green",
    OutcomeStatus.REBASED: "green",
    OutcomeStatus.PUSHED: "green",
    OutcomeStatus.UP_TO_DATE: "dim",
    OutcomeStatus.SKIPPED: "dim",
    OutcomeStatus.CONFLICT: "yellow",
    OutcomeStatus.FAILED: "red",
}


def log_report(report: OperationReport) -> None:
    log_operation(
        report.operation,
        report.ok,
        chunks=len(report.outcomes),
        failed=[o.chunk for o in report.failed],
    )
    for outcome in report.outcomes:
        style = _STYLES[outcome.status]
        line = f"[{style}]{outcome.status.value:<10}[/{style}] {outcome.chunk} ({outcome.branch})"
        if outcome.message:
            line += f": {outcome.message}"
        logger.info(line)
        for path in outcome.conflicts:
            logger.info(f"    [yellow]conflict[/yellow] {path}")
        if outcome.pr_url:
            logger.info(f"    {outcome.pr_url}")

    if report.ok:
        logger.success(f"{report.operation} finished for {len(report.outcomes)} chunk(s)")
    else:
        logger.error(
            f"{report.operation}: {len(report.failed)} of {len(report.outcomes)} chunk(s) need attention"
        )


def finish(report: OperationReport) -> None:
    """Log the report and exit non-zero when any chunk did not succeed."""
    log_report(report)
    if not report.ok:
        raise typer.Exit(1)


def echo_json(data) -> None:
    typer.echo(json.dumps(data, indent=2))
