"""Domain services - orchestrate business logic."""

import logging
from collections.abc import Callable

from ..config import IngestConfig
from ..ports.ledger import (
    DuplicateCheckerPort,
    FiscalPeriodValidatorPort,
    LedgerPort,
    TransactionStorePort,
    TransactionValidatorPort,
)
from .errors import (
    FiscalPeriodOverlapMismatch,
    OversizedInput,
    ParserError,
    StatementPeriodUnparseable,
    UnknownCompany,
    UnknownFiscalPeriod,
)
from .extractor import DocumentExtractor
from .models import (
    ZERO,
    FiscalPeriod,
    ParsedTransaction,
    ParsingContext,
    ProcessingResult,
    RawDocument,
    RejectedTransaction,
    RejectionReason,
    StatementPeriod,
    TransactionKind,
    TransactionRecord,
)
from .parsers import (
    FormatParser,
    StandardBankTabularParser,
    StatefulFormatParser,
    default_parsers,
)
from .period import parse_statement_period, statement_date_for

logger = logging.getLogger(__name__)


class ParserChain:
    """Dispatches lines to a layout-specific stateful parser and fallbacks.

    The stateful parser is built fresh for every document.
    """

    def __init__(
        self,
        primary: Callable[[], StatefulFormatParser] | None = StandardBankTabularParser,
        fallbacks: list[FormatParser] | None = None,
    ) -> None:
        self.primary = primary
        self.fallbacks = fallbacks if fallbacks is not None else default_parsers()

    def parse_lines(
        self, lines: list[str], context: ParsingContext
    ) -> tuple[list[ParsedTransaction], list[str]]:
        """Parse every line; returns transactions and per-line error messages.

        A line the stateful parser claims but fails on is offered to the
        fallbacks. A fallback failure skips the line.
        """
        stateful = self.primary() if self.primary else None
        transactions: list[ParsedTransaction] = []
        errors: list[str] = []

        try:
            for line in lines:
                if not line.strip():
                    continue

                if stateful is not None and stateful.can_parse(line, context):
                    try:
                        parsed = stateful.parse(line, context)
                    except Exception as e:
                        logger.debug(f"{stateful.name} rejected line '{line}': {e}")
                    else:
                        if parsed is not None:
                            transactions.append(parsed)
                        continue

                parser = next(
                    (p for p in self.fallbacks if p.can_parse(line, context)), None
                )
                if parser is None:
                    continue
                try:
                    parsed = parser.parse(line, context)
                except Exception as e:
                    error = ParserError(parser.name, line, str(e))
                    logger.warning(str(error))
                    errors.append(str(error))
                    continue
                if parsed is not None:
                    transactions.append(parsed)

            if stateful is not None:
                last = stateful.finalize_parsing()
                if last is not None:
                    transactions.append(last)
        finally:
            if stateful is not None:
                stateful.reset()

        return transactions, errors


def to_record(parsed: ParsedTransaction, company_id: int, source: str) -> TransactionRecord:
    """Map a parsed transaction onto the debit or credit column."""
    is_credit = parsed.kind == TransactionKind.CREDIT
    return TransactionRecord(
        company_id=company_id,
        date=parsed.date,
        description=parsed.description,
        debit=ZERO if is_credit else parsed.amount,
        credit=parsed.amount if is_credit else ZERO,
        balance=parsed.balance,
        service_fee=parsed.service_fee,
        source_file=source,
        reference=parsed.reference,
    )


def resolve_fiscal_period(
    record: TransactionRecord, periods: list[FiscalPeriod]
) -> FiscalPeriod | None:
    """First period (most recent first) containing the record's date."""
    return next((p for p in periods if p.contains(record.date)), None)


def check_period_overlap(
    raw: str | None, period: StatementPeriod | None, fiscal: FiscalPeriod
) -> None:
    """Raise unless the statement period overlaps the target fiscal period."""
    if period is None:
        raise StatementPeriodUnparseable(raw)
    if period.end < fiscal.start or period.start > fiscal.end:
        raise FiscalPeriodOverlapMismatch(
            period.start, period.end, fiscal.start, fiscal.end, fiscal.id
        )


class IngestionService:
    """Orchestrates statement ingestion.

    Pipeline:
        1. Reject oversized uploads and unknown company / fiscal period
        2. Extract lines and metadata from the document
        3. Check the statement period against the target fiscal period
        4. Parse lines into transactions
        5. Assign fiscal periods and classify each record
    """

    def __init__(
        self,
        extractor: DocumentExtractor,
        ledger: LedgerPort,
        store: TransactionStorePort,
        duplicates: DuplicateCheckerPort,
        fiscal_validator: FiscalPeriodValidatorPort,
        validator: TransactionValidatorPort,
        parsers: ParserChain | None = None,
        config: IngestConfig | None = None,
    ) -> None:
        self.extractor = extractor
        self.ledger = ledger
        self.store = store
        self.duplicates = duplicates
        self.fiscal_validator = fiscal_validator
        self.validator = validator
        self.parsers = parsers or ParserChain()
        self.config = config or IngestConfig()

    def process_statement(
        self,
        document: RawDocument,
        company_id: int,
        fiscal_period_id: int | None = None,
    ) -> ProcessingResult:
        if document.size > self.config.max_upload_bytes:
            raise OversizedInput(document.size, self.config.max_upload_bytes)
        if not self.ledger.company_exists(company_id):
            raise UnknownCompany(company_id)

        target: FiscalPeriod | None = None
        if fiscal_period_id is not None:
            target = self.ledger.get_fiscal_period(fiscal_period_id)
            if target is None:
                raise UnknownFiscalPeriod(fiscal_period_id)

        logger.info(f"Processing statement: {document.filename} ({document.size} bytes)")
        extraction = self.extractor.parse_document(document)
        period = parse_statement_period(extraction.statement_period_raw)

        if target is not None:
            check_period_overlap(extraction.statement_period_raw, period, target)

        result = ProcessingResult(
            extracted_lines=extraction.lines,
            processed_lines=sum(1 for line in extraction.lines if line.strip()),
            account_number=extraction.account_number,
            strategy=extraction.strategy,
            statement_period_raw=extraction.statement_period_raw,
            statement_period=period,
        )

        context = ParsingContext(
            statement_date=statement_date_for(period, self.config.fallback_statement_date),
            source=document.filename,
            account_number=extraction.account_number,
            statement_period_raw=extraction.statement_period_raw,
        )
        parsed, errors = self.parsers.parse_lines(extraction.lines, context)
        result.errors.extend(errors)
        logger.info(f"Parsed {len(parsed)} transactions from {result.processed_lines} lines")

        records = [to_record(p, company_id, document.filename) for p in parsed]
        self._assign_fiscal_periods(records, company_id, fiscal_period_id)

        for record in records:
            self._classify(record, result, fiscal_period_id)

        logger.info(
            f"Statement {document.filename}: {result.valid_count} valid, "
            f"{result.duplicate_count} duplicate, "
            f"{result.out_of_period_count} out of period, "
            f"{result.invalid_count} invalid"
        )
        return result

    def _assign_fiscal_periods(
        self,
        records: list[TransactionRecord],
        company_id: int,
        fiscal_period_id: int | None,
    ) -> None:
        if fiscal_period_id is not None:
            for record in records:
                record.fiscal_period_id = fiscal_period_id
            return

        periods = self.ledger.fiscal_periods_for_company(company_id)
        for record in records:
            found = resolve_fiscal_period(record, periods)
            if found is None:
                logger.warning(
                    f"No fiscal period for transaction on {record.date}: "
                    f"{record.description}"
                )
                continue
            record.fiscal_period_id = found.id

    def _classify(
        self,
        record: TransactionRecord,
        result: ProcessingResult,
        fiscal_period_id: int | None,
    ) -> None:
        if self.duplicates.is_duplicate(record):
            existing = self.duplicates.find_duplicate(record)
            if existing is not None and existing.id is not None:
                detail = (
                    f"Duplicate of transaction ID {existing.id} "
                    f"(uploaded {existing.created_at})"
                )
            else:
                detail = "Duplicate transaction already exists in database"
            self._reject(result, record, RejectionReason.DUPLICATE, detail)
            return

        if fiscal_period_id is not None:
            if not self.fiscal_validator.is_within_fiscal_period(record):
                detail = self.fiscal_validator.explain(record)
                self._reject(result, record, RejectionReason.OUT_OF_PERIOD, detail)
                return

        validation = self.validator.validate(record)
        if not validation.valid:
            detail = f"Invalid transaction: {record.description} - {validation.describe()}"
            self._reject(result, record, RejectionReason.VALIDATION_ERROR, detail)
            return

        try:
            saved = self.store.save(record)
        except Exception as e:
            logger.exception(f"Failed to save transaction {record.description}: {e}")
            result.errors.append(f"Failed to save transaction {record.description}: {e}")
            return
        result.transactions.append(saved)

    def _reject(
        self,
        result: ProcessingResult,
        record: TransactionRecord,
        reason: RejectionReason,
        detail: str,
    ) -> None:
        logger.debug(f"Rejected ({reason.value}): {detail}")
        result.rejected.append(RejectedTransaction.from_record(record, reason, detail))
