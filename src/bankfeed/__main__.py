"""CLI entry point for bankfeed."""

import logging
import sys
from pathlib import Path

import click
import yaml

from .adapters.ocr import create_ocr_pipeline
from .adapters.pdf import PdfPlumberAdapter
from .adapters.storage import YamlLedgerAdapter
from .config import Settings, load_settings
from .domain.errors import BankfeedError
from .domain.extractor import DocumentExtractor
from .domain.models import ProcessingResult, RawDocument
from .domain.period import parse_statement_period
from .domain.services import IngestionService
from .domain.validation import (
    FiscalPeriodBoundaryValidator,
    TransactionDuplicateChecker,
    TransactionFieldValidator,
)

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_extractor(settings: Settings) -> DocumentExtractor:
    pdf = PdfPlumberAdapter()
    return DocumentExtractor(
        text_layer=pdf,
        ocr=create_ocr_pipeline(settings.ocr, rasterizer=pdf),
        config=settings.extraction,
    )


def build_service(settings: Settings, ledger: YamlLedgerAdapter) -> IngestionService:
    return IngestionService(
        extractor=build_extractor(settings),
        ledger=ledger,
        store=ledger,
        duplicates=TransactionDuplicateChecker(ledger),
        fiscal_validator=FiscalPeriodBoundaryValidator(ledger),
        validator=TransactionFieldValidator(),
        config=settings.ingest,
    )


def read_document(path: Path) -> RawDocument:
    return RawDocument(content=path.read_bytes(), filename=path.name)


def result_to_report(result: ProcessingResult) -> dict:
    """Plain-data summary of a processing result for YAML output."""
    return {
        "account_number": result.account_number,
        "strategy": result.strategy.value if result.strategy else None,
        "statement_period": {
            "raw": result.statement_period_raw,
            "start": result.statement_period_start.isoformat()
            if result.statement_period_start
            else None,
            "end": result.statement_period_end.isoformat()
            if result.statement_period_end
            else None,
        },
        "counts": {
            "processed_lines": result.processed_lines,
            "valid": result.valid_count,
            "duplicate": result.duplicate_count,
            "out_of_period": result.out_of_period_count,
            "invalid": result.invalid_count,
        },
        "transactions": [
            {
                "id": t.id,
                "date": t.date.isoformat(),
                "description": t.description,
                "debit": str(t.debit),
                "credit": str(t.credit),
                "balance": str(t.balance) if t.balance is not None else None,
                "fiscal_period_id": t.fiscal_period_id,
            }
            for t in result.transactions
        ],
        "rejected": [
            {
                "date": r.date.isoformat(),
                "description": r.description,
                "reason": r.reason.value,
                "detail": r.detail,
            }
            for r in result.rejected
        ],
        "errors": list(result.errors),
    }


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("-c", "--config", type=click.Path(exists=True), help="Config file path")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str | None) -> None:
    """Bankfeed - bank statement ingestion."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else None


@cli.command()
@click.argument("file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def extract(ctx: click.Context, file: Path) -> None:
    """Extract lines and metadata from a statement without ingesting it."""
    settings = load_settings(ctx.obj["config_path"])
    extractor = build_extractor(settings)

    try:
        result = extractor.parse_document(read_document(file))
    except BankfeedError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    period = parse_statement_period(result.statement_period_raw)
    click.echo(f"strategy: {result.strategy.value}")
    click.echo(f"account_number: {result.account_number}")
    click.echo(f"statement_period: {result.statement_period_raw}")
    if period:
        click.echo(f"period_start: {period.start}")
        click.echo(f"period_end: {period.end}")
    click.echo(f"lines: {len(result.lines)}")
    for line in result.lines:
        click.echo(f"  {line}")


@cli.command()
@click.argument("file", type=click.Path(exists=True, path_type=Path))
@click.option("--company", "company_id", type=int, required=True, help="Company ID")
@click.option("--fiscal-period", "fiscal_period_id", type=int, help="Target fiscal period ID")
@click.option(
    "--report",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write a YAML report to this path",
)
@click.pass_context
def process(
    ctx: click.Context,
    file: Path,
    company_id: int,
    fiscal_period_id: int | None,
    report: Path | None,
) -> None:
    """Ingest a bank statement into the ledger."""
    settings = load_settings(ctx.obj["config_path"])
    ledger = YamlLedgerAdapter(settings.ledger.path)
    service = build_service(settings, ledger)

    try:
        result = service.process_statement(
            read_document(file), company_id, fiscal_period_id
        )
    except BankfeedError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"processed_lines: {result.processed_lines}")
    click.echo(f"valid: {result.valid_count}")
    click.echo(f"duplicate: {result.duplicate_count}")
    click.echo(f"out_of_period: {result.out_of_period_count}")
    click.echo(f"invalid: {result.invalid_count}")
    for rejected in result.rejected:
        click.echo(f"  {rejected.reason.value}: {rejected.detail}")
    for error in result.errors:
        click.echo(f"  error: {error}", err=True)

    if report:
        report.write_text(
            yaml.dump(
                result_to_report(result),
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
        )
        click.echo(f"report: {report}")


@cli.command()
@click.argument("text")
def period(text: str) -> None:
    """Parse a statement period like '1 January 2024 to 31 January 2024'."""
    parsed = parse_statement_period(text)
    if parsed is None:
        click.echo("Unable to parse statement period", err=True)
        sys.exit(1)
    click.echo(f"start: {parsed.start}")
    click.echo(f"end: {parsed.end}")


if __name__ == "__main__":
    cli()
