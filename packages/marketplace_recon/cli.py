# ruff: noqa: I001
"""CLI for the ``marketplace_recon`` package.

This module exposes callable command handlers (``cmd_import_report``,
``cmd_analyze``, ...) and a Typer-based console interface. Environment
variables (notably ``DATABASE_URL``) are loaded from a local ``.env`` using
``python-dotenv`` in the root callback. Business logic lives in
``marketplace_recon.api`` and ``marketplace_recon.persistence``.

Exit codes: ``0`` success, ``1`` the report (or an argument) was rejected,
``2`` the database was unavailable or failed.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError
from typer.models import OptionInfo

from .errors import ReportImportError
from .logging_setup import configure_logging
from .models import Platform, ProductPrice, ReportFile

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_STORAGE = 2


def _read_report(path: str) -> ReportFile | None:
    """Load ``path`` as a :class:`ReportFile`, printing errors to stderr."""

    try:
        return ReportFile.from_path(path)
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
    except PermissionError:
        print(f"Error: Permission denied: {path}", file=sys.stderr)
    except IsADirectoryError:
        print(f"Error: Not a file: {path}", file=sys.stderr)
    return None


def _load_price_sheet(path: str) -> tuple[ProductPrice, ...] | None:
    from .api import extract_report

    report_file = _read_report(path)
    if report_file is None:
        return None
    try:
        report = extract_report(report_file)
    except ReportImportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None
    if not report.prices:
        print(f"Warning: no SKU prices found in {path}", file=sys.stderr)
    return report.prices


# ---- Command handlers --------------------------------------------------------


def cmd_import_report(
    file_path: str,
    *,
    database_url: str | None = None,
    amazon_preamble_lines: int | None = None,
) -> int:
    """Import one marketplace report into the database.

    Prints a one-line JSON result on success. Rejected files return ``1``
    without touching the database; database failures return ``2``.
    """

    from db.client import session_scope

    from .api import import_report
    from .persistence import SqlTransactionStore

    report_file = _read_report(file_path)
    if report_file is None:
        return EXIT_REJECTED

    try:
        with session_scope(database_url=database_url) as session:
            result = import_report(
                report_file,
                SqlTransactionStore(session),
                amazon_preamble_lines=amazon_preamble_lines,
            )
    except ReportImportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_REJECTED
    except (SQLAlchemyError, RuntimeError) as e:
        print(f"Error: database unavailable: {e}", file=sys.stderr)
        return EXIT_STORAGE

    payload = {
        "importId": result.import_id,
        "platform": result.platform.value,
        "parsed": result.parsed,
        "inserted": result.inserted,
        "duplicatesSkipped": result.duplicates_skipped,
        "prices": len(result.prices),
    }
    print(json.dumps(payload))
    if result.parsed == 0:
        print("Warning: the report matched no transactions", file=sys.stderr)
    return EXIT_OK


def cmd_analyze(
    *,
    database_url: str | None = None,
    platform: Platform | None = None,
    prices_file: str | None = None,
    by_alias: bool = True,
) -> int:
    """Print the financial summary of every stored transaction as JSON."""

    from db.client import session_scope

    from .api import analyze_store
    from .persistence import SqlTransactionStore

    prices: tuple[ProductPrice, ...] = ()
    if prices_file is not None:
        loaded = _load_price_sheet(prices_file)
        if loaded is None:
            return EXIT_REJECTED
        prices = loaded

    try:
        with session_scope(database_url=database_url) as session:
            summary = analyze_store(SqlTransactionStore(session), prices=prices, platform=platform)
    except (SQLAlchemyError, RuntimeError) as e:
        print(f"Error: database unavailable: {e}", file=sys.stderr)
        return EXIT_STORAGE

    print(summary.model_dump_json(by_alias=by_alias, indent=2))
    return EXIT_OK


def cmd_rollback_import(import_id: str, *, database_url: str | None = None) -> int:
    """Delete the transactions written by one import."""

    from db.client import session_scope

    from .persistence import rollback_import

    try:
        with session_scope(database_url=database_url) as session:
            deleted = rollback_import(session, import_id)
    except (SQLAlchemyError, RuntimeError) as e:
        print(f"Error: database unavailable: {e}", file=sys.stderr)
        return EXIT_STORAGE

    if deleted == 0:
        print(f"Warning: no transactions found for import {import_id}", file=sys.stderr)
    print(json.dumps({"importId": import_id, "deleted": deleted}))
    return EXIT_OK


def cmd_migrate_category_cost(category_id: str, *, database_url: str | None = None) -> int:
    """Replace a category's custom product prices by their average."""

    from db.client import session_scope

    from .persistence import migrate_product_cost_prices, products_inheriting_cost

    try:
        with session_scope(database_url=database_url) as session:
            price = migrate_product_cost_prices(session, category_id)
            inheriting = products_inheriting_cost(session, category_id)
    except LookupError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return EXIT_REJECTED
    except (SQLAlchemyError, RuntimeError) as e:
        print(f"Error: database unavailable: {e}", file=sys.stderr)
        return EXIT_STORAGE

    payload = {
        "categoryId": category_id,
        "costPrice": price,
        "inheritingProducts": [p.sku for p in inheriting],
    }
    print(json.dumps(payload))
    return EXIT_OK


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import Amazon and Flipkart settlement reports and summarize sales, "
        "expenses and profit. Loads DATABASE_URL from a local .env."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults).
FILE_PATH_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--file-path",
    help="Path to an Amazon CSV export or a Flipkart P&L workbook",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files with exit code 1
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    "--database-url", help="Override DATABASE_URL (falls back to env var)."
)


@app.command("import-report")
def import_report_cmd(
    file_path: Annotated[Path, FILE_PATH_OPTION],
    *,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
    amazon_preamble_lines: int | None = typer.Option(
        None,
        min=0,
        help=(
            "Lines to skip before the Amazon CSV header "
            "(default 11 or $MR_AMAZON_PREAMBLE_LINES)."
        ),
    ),
) -> None:
    """Import a report; rows already stored are skipped."""

    code = cmd_import_report(
        str(file_path),
        database_url=database_url,
        amazon_preamble_lines=amazon_preamble_lines,
    )
    raise typer.Exit(code)


@app.command("analyze")
def analyze_cmd(
    *,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
    platform: Platform | None = typer.Option(
        None, case_sensitive=False, help="Only summarize one marketplace."
    ),
    prices_file: Path | None = typer.Option(
        None,
        "--prices-file",
        dir_okay=False,
        help="Flipkart workbook whose SKU sheet prices SKUs the default table lacks.",
    ),
    by_alias: bool = typer.Option(
        True, "--by-alias/--no-by-alias", help="Emit camelCase keys (default) or snake_case."
    ),
) -> None:
    """Print the summary of all stored transactions as JSON."""

    code = cmd_analyze(
        database_url=database_url,
        platform=platform,
        prices_file=str(prices_file) if prices_file is not None else None,
        by_alias=by_alias,
    )
    raise typer.Exit(code)


@app.command("rollback-import")
def rollback_import_cmd(
    import_id: str = typer.Option(..., "--import-id", help="Import id printed by import-report."),
    *,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Delete every transaction written by one import."""

    raise typer.Exit(cmd_rollback_import(import_id, database_url=database_url))


@app.command("migrate-category-cost")
def migrate_category_cost_cmd(
    category_id: str = typer.Option(..., "--category-id", help="Category to migrate."),
    *,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Set a category's cost price to its products' average custom price."""

    raise typer.Exit(cmd_migrate_category_cost(category_id, database_url=database_url))


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    *,
    log_level: str | None = typer.Option(
        None, "--log-level", help="Override MARKETPLACE_RECON_LOG_LEVEL (e.g. DEBUG)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    # Running as a module: `python -m marketplace_recon.cli`
    app()
