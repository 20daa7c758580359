from __future__ import annotations

import json
import sys
from decimal import Decimal, InvalidOperation
from typing import Optional

import typer

from benefits.config import get_settings
from benefits.domain.errors import BenefitError
from benefits.domain.models import BenefitDraft
from benefits.engine.transfer import build_transfer_executor
from benefits.infrastructure.db_factory import build_dsn, ensure_schema
from benefits.presentation import status_for
from benefits.reporter import print_receipt, print_records, print_stress_report
from benefits.service import BenefitService
from benefits.stores import available_stores, build_store
from benefits.stress import StressConfig, run_stress
from benefits.utils.logging import configure_logging

app = typer.Typer(help="Benefit records and optimistic-locking transfers.")

BACKEND_HELP = f"Store backend ({', '.join(available_stores())}); defaults to STORE_BACKEND."


def _parse_decimal(raw: Optional[str], name: str) -> Optional[Decimal]:
    if raw is None:
        return None
    try:
        return Decimal(raw)
    except InvalidOperation:
        raise typer.BadParameter(f"{name} must be a decimal number, got {raw!r}") from None


def _service(backend: Optional[str]) -> BenefitService:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    store = build_store(settings, backend=backend)
    return BenefitService(store, build_transfer_executor(store, settings))


def _fail(exc: BenefitError) -> None:
    typer.echo(f"[{status_for(exc)}] {exc.kind}: {exc.message}", err=True)
    raise typer.Exit(code=1)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"store={settings.store_backend} max_attempts={settings.transfer_max_attempts} "
        f"pool=({settings.db_pool_min_size},{settings.db_pool_max_size})"
    )


@app.command("init-db")
def init_db(
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
) -> None:
    """
    Create the benefits table if it is missing.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    ensure_schema(dsn or build_dsn(settings))
    typer.echo("Schema ready.")


@app.command("list")
def list_benefits(
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help=BACKEND_HELP),
) -> None:
    """
    List all benefits.
    """
    service = _service(backend)
    try:
        print_records(service.list_all())
    finally:
        service.store.close()


@app.command()
def create(
    name: str = typer.Option(..., "--name", "-n", help="Benefit name."),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    value: Optional[str] = typer.Option(None, "--value", "-v", help="Initial value (default 0)."),
    inactive: bool = typer.Option(False, "--inactive", help="Create the benefit as inactive."),
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help=BACKEND_HELP),
) -> None:
    """
    Create a benefit.
    """
    service = _service(backend)
    try:
        record = service.create(
            BenefitDraft(
                name=name,
                description=description,
                value=_parse_decimal(value, "value"),
                active=False if inactive else None,
            )
        )
        print_records([record])
    except BenefitError as exc:
        _fail(exc)
    finally:
        service.store.close()


@app.command()
def transfer(
    from_id: int = typer.Argument(..., help="Source benefit id."),
    to_id: int = typer.Argument(..., help="Target benefit id."),
    amount: str = typer.Argument(..., help="Amount to move, e.g. 12.50."),
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help=BACKEND_HELP),
) -> None:
    """
    Move value from one benefit to another.
    """
    service = _service(backend)
    try:
        print_receipt(service.transfer(from_id, to_id, amount))
    except BenefitError as exc:
        _fail(exc)
    finally:
        service.store.close()


@app.command()
def stress(
    records: int = typer.Option(10, "--records", help="Number of fresh records to seed."),
    transfers: int = typer.Option(1_000, "--transfers", "-t", help="Transfers to attempt."),
    workers: int = typer.Option(8, "--workers", "-w", help="Concurrent worker threads."),
    initial_value: str = typer.Option("100.00", "--initial-value", help="Seed value per record."),
    max_amount: str = typer.Option("50.00", "--max-amount", help="Largest random transfer."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    max_attempts: Optional[int] = typer.Option(
        None, "--max-attempts", help="Override TRANSFER_MAX_ATTEMPTS."
    ),
    backend: Optional[str] = typer.Option(None, "--backend", "-b", help=BACKEND_HELP),
    persist: bool = typer.Option(False, "--persist", help="Write the report to results/."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON report."),
) -> None:
    """
    Hammer a fresh set of records with concurrent transfers and check invariants.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    try:
        config = StressConfig(
            records=records,
            transfers=transfers,
            workers=workers,
            initial_value=_parse_decimal(initial_value, "initial-value") or Decimal("0"),
            max_amount=_parse_decimal(max_amount, "max-amount") or Decimal("0"),
            seed=seed,
            backend=backend,
            max_attempts=max_attempts,
            persist=persist,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from None
    report = run_stress(config)
    if as_json:
        typer.echo(json.dumps(report, indent=2, default=str))
    else:
        print_stress_report(report)
    if not (report["conservation_ok"] and report["no_negative_balance"]):
        raise typer.Exit(code=2)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
