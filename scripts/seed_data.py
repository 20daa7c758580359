"""
Seed data generation and loading script for the benefit transfer service.

Implements deterministic pseudo-random benefit generation, CSV emission, and
Postgres COPY loading. Every loaded row starts at version 0.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
from decimal import Decimal
from pathlib import Path

import psycopg
import typer

from benefits.infrastructure.db_factory import build_dsn, ensure_schema

app = typer.Typer(help="Generate benefit records and load them into Postgres (CSV + COPY).")

CSV_HEADER = ["name", "description", "value", "active"]

_PROGRAMS = ["meal", "transport", "health", "education", "culture", "childcare"]
_TIERS = ["basic", "plus", "premium"]


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _generate_rows_csv(
    csv_path: Path, rows: int, batch_size: int, seed: int, inactive_ratio: float = 0.1
) -> None:
    rng = random.Random(seed)

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)

        buffer: list[list[str]] = []
        for i in range(rows):
            program = rng.choice(_PROGRAMS)
            tier = rng.choice(_TIERS)
            value = Decimal(rng.randint(0, 1_000_000)).scaleb(-2)
            active = rng.random() >= inactive_ratio
            buffer.append(
                [
                    f"{program}-{tier}-{i + 1}",
                    f"{program.capitalize()} benefit, {tier} tier",
                    f"{value:.2f}",
                    "t" if active else "f",
                ]
            )
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)


def _copy_into_db(dsn: str, csv_path: Path) -> int:
    """Stream the CSV into public.benefits; returns the number of rows copied."""
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            with cur.copy(
                """
                COPY public.benefits (name, description, value, active)
                FROM STDIN WITH (FORMAT csv, HEADER TRUE)
                """
            ) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            copied = cur.rowcount
            conn.commit()
    return copied


@app.command()
def main(
    rows: int = typer.Option(
        1_000,
        "--rows",
        "-r",
        help="Number of benefits to generate.",
    ),
    batch_size: int = typer.Option(
        500,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    inactive_ratio: float = typer.Option(
        0.1,
        "--inactive-ratio",
        min=0.0,
        max=1.0,
        help="Share of generated benefits created inactive.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate benefits and optionally load them into Postgres using COPY.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="benefits_csv_"))
        csv_path = tmpdir / "benefits.csv"

    typer.echo(f"Generating {rows:,} benefits -> {csv_path} (batch={batch_size}, seed={seed})")
    _generate_rows_csv(
        csv_path, rows=rows, batch_size=batch_size, seed=seed, inactive_ratio=inactive_ratio
    )
    typer.echo(f"CSV generation completed in {time.perf_counter() - start:.2f}s")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    conn_dsn = _build_dsn(dsn)
    ensure_schema(conn_dsn)
    typer.echo("Loading CSV into Postgres via COPY...")
    copied = _copy_into_db(conn_dsn, csv_path)
    typer.echo(
        f"Loaded {copied:,} benefits in {time.perf_counter() - load_start:.2f}s. "
        f"Total time {time.perf_counter() - start:.2f}s."
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
