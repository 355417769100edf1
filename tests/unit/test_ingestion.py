"""Unit tests for the ingestion orchestrator and parser chain."""

from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from bankfeed.adapters.storage import YamlLedgerAdapter
from bankfeed.config import IngestConfig
from bankfeed.domain.errors import (
    FiscalPeriodOverlapMismatch,
    OversizedInput,
    StatementPeriodUnparseable,
    UnknownCompany,
    UnknownFiscalPeriod,
)
from bankfeed.domain.extractor import DocumentExtractor
from bankfeed.domain.models import (
    ExtractionStrategy,
    FiscalPeriod,
    ParsedTransaction,
    ParsingContext,
    RawDocument,
    RejectionReason,
    TransactionKind,
    TransactionRecord,
    ValidationResult,
)
from bankfeed.domain.ocr import OcrPipeline
from bankfeed.domain.parsers import FormatParser, StatefulFormatParser
from bankfeed.domain.services import IngestionService, ParserChain, to_record
from bankfeed.domain.validation import (
    FiscalPeriodBoundaryValidator,
    TransactionDuplicateChecker,
    TransactionFieldValidator,
)

NO_PERIOD_STATEMENT = """\
BANK STATEMENT
Account Number: 1234 5678 90
CREDIT TRANSFER FROM JOHN DOE 1,500.00
DEPOSIT REF 12345678 500.00
PAYMENT FROM CUSTOMER 750.50
MONTHLY INTEREST CREDIT 12.40
SALARY DEPOSIT 9,000.00
"""


@pytest.fixture
def service(
    mock_text_layer: MagicMock,
    mock_ledger: MagicMock,
    mock_store: MagicMock,
    mock_duplicates: MagicMock,
    mock_fiscal_validator: MagicMock,
    mock_validator: MagicMock,
) -> IngestionService:
    extractor = DocumentExtractor(
        text_layer=mock_text_layer, ocr=MagicMock(spec=OcrPipeline)
    )
    return IngestionService(
        extractor=extractor,
        ledger=mock_ledger,
        store=mock_store,
        duplicates=mock_duplicates,
        fiscal_validator=mock_fiscal_validator,
        validator=mock_validator,
    )


class TestPreflight:
    """Checks that run before extraction."""

    def test_oversized_input(
        self, service: IngestionService, mock_text_layer: MagicMock
    ) -> None:
        service.config = IngestConfig(max_upload_bytes=10)
        document = RawDocument(content=b"x" * 11)

        with pytest.raises(OversizedInput) as exc:
            service.process_statement(document, company_id=1)

        assert "exceeds maximum allowed size of 10 bytes" in str(exc.value)
        mock_text_layer.extract_text.assert_not_called()

    def test_at_limit_is_accepted(self, service: IngestionService) -> None:
        service.config = IngestConfig(max_upload_bytes=21)
        document = RawDocument(content=b"%PDF-1.4 test content")

        result = service.process_statement(document, company_id=1)

        assert result.valid_count == 5

    def test_unknown_company(
        self, service: IngestionService, document: RawDocument, mock_ledger: MagicMock
    ) -> None:
        mock_ledger.company_exists.return_value = False

        with pytest.raises(UnknownCompany):
            service.process_statement(document, company_id=99)

    def test_unknown_fiscal_period(
        self, service: IngestionService, document: RawDocument, mock_ledger: MagicMock
    ) -> None:
        mock_ledger.get_fiscal_period.return_value = None

        with pytest.raises(UnknownFiscalPeriod):
            service.process_statement(document, company_id=1, fiscal_period_id=99)


class TestProcessStatement:
    """Tests for IngestionService.process_statement."""

    def test_all_transactions_saved(
        self, service: IngestionService, document: RawDocument, mock_store: MagicMock
    ) -> None:
        result = service.process_statement(document, company_id=1)

        assert result.valid_count == 5
        assert result.rejected == []
        assert result.errors == []
        assert result.account_number == "1234567890"
        assert result.strategy == ExtractionStrategy.TEXT_LAYER
        assert result.statement_period_start == date(2024, 3, 1)
        assert result.statement_period_end == date(2024, 3, 31)
        assert mock_store.save.call_count == 5

    def test_records_dated_and_assigned(
        self, service: IngestionService, document: RawDocument
    ) -> None:
        result = service.process_statement(document, company_id=1)

        assert {t.date for t in result.transactions} == {date(2024, 6, 30)}
        assert {t.fiscal_period_id for t in result.transactions} == {7}
        fees = [t for t in result.transactions if t.service_fee]
        assert [t.debit for t in fees] == [Decimal("35.00"), Decimal("8.90")]
        assert all(t.credit == Decimal("0") for t in fees)

    def test_fiscal_period_unresolved(
        self,
        service: IngestionService,
        document: RawDocument,
        mock_ledger: MagicMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        mock_ledger.fiscal_periods_for_company.return_value = []

        result = service.process_statement(document, company_id=1)

        assert {t.fiscal_period_id for t in result.transactions} == {None}
        assert "No fiscal period for transaction" in caplog.text

    def test_target_period_overrides_resolution(
        self,
        service: IngestionService,
        document: RawDocument,
        mock_fiscal_validator: MagicMock,
    ) -> None:
        result = service.process_statement(document, company_id=1, fiscal_period_id=7)

        assert result.valid_count == 5
        assert mock_fiscal_validator.is_within_fiscal_period.call_count == 5

    def test_duplicate_with_existing_id(
        self,
        service: IngestionService,
        document: RawDocument,
        mock_duplicates: MagicMock,
        sample_record: TransactionRecord,
    ) -> None:
        sample_record.id = 42
        sample_record.created_at = datetime(2024, 7, 1, 9, 30)
        mock_duplicates.is_duplicate.side_effect = [False, True, False, False, False]
        mock_duplicates.find_duplicate.return_value = sample_record

        result = service.process_statement(document, company_id=1)

        assert result.valid_count == 4
        assert result.duplicate_count == 1
        rejected = result.rejected[0]
        assert rejected.description == "DEPOSIT REF 12345678"
        assert rejected.detail == (
            "Duplicate of transaction ID 42 (uploaded 2024-07-01 09:30:00)"
        )

    def test_duplicate_without_existing_id(
        self, service: IngestionService, document: RawDocument, mock_duplicates: MagicMock
    ) -> None:
        mock_duplicates.is_duplicate.return_value = True

        result = service.process_statement(document, company_id=1)

        assert result.duplicate_count == 5
        assert {r.detail for r in result.rejected} == {
            "Duplicate transaction already exists in database"
        }

    def test_duplicate_checked_before_period(
        self,
        service: IngestionService,
        document: RawDocument,
        mock_duplicates: MagicMock,
        mock_fiscal_validator: MagicMock,
    ) -> None:
        mock_duplicates.is_duplicate.return_value = True
        mock_fiscal_validator.is_within_fiscal_period.return_value = False

        result = service.process_statement(document, company_id=1, fiscal_period_id=7)

        assert result.duplicate_count == 5
        assert result.out_of_period_count == 0

    def test_out_of_period(
        self,
        service: IngestionService,
        document: RawDocument,
        mock_fiscal_validator: MagicMock,
        mock_store: MagicMock,
    ) -> None:
        mock_fiscal_validator.is_within_fiscal_period.return_value = False

        result = service.process_statement(document, company_id=1, fiscal_period_id=7)

        assert result.out_of_period_count == 5
        assert result.rejected[0].detail == "outside fiscal period"
        mock_store.save.assert_not_called()

    def test_period_check_skipped_without_target(
        self,
        service: IngestionService,
        document: RawDocument,
        mock_fiscal_validator: MagicMock,
    ) -> None:
        mock_fiscal_validator.is_within_fiscal_period.return_value = False

        result = service.process_statement(document, company_id=1)

        assert result.valid_count == 5
        mock_fiscal_validator.is_within_fiscal_period.assert_not_called()

    def test_validation_error(
        self, service: IngestionService, document: RawDocument, mock_validator: MagicMock
    ) -> None:
        invalid = ValidationResult()
        invalid.add("date", "Transaction date cannot be in the future")
        mock_validator.validate.return_value = invalid

        result = service.process_statement(document, company_id=1)

        assert result.invalid_count == 5
        assert result.rejected[0].detail == (
            "Invalid transaction: CREDIT TRANSFER FROM JOHN DOE - "
            "date: Transaction date cannot be in the future"
        )

    def test_save_failure_recorded(
        self, service: IngestionService, document: RawDocument, mock_store: MagicMock
    ) -> None:
        mock_store.save.side_effect = RuntimeError("disk full")

        result = service.process_statement(document, company_id=1)

        assert result.valid_count == 0
        assert len(result.errors) == 5
        assert "disk full" in result.errors[0]


class TestStatementPeriodGate:
    """Statement period against the target fiscal period."""

    def test_mismatch_aborts(
        self,
        service: IngestionService,
        document: RawDocument,
        mock_ledger: MagicMock,
        mock_store: MagicMock,
    ) -> None:
        mock_ledger.get_fiscal_period.return_value = FiscalPeriod(
            id=3, company_id=1, name="FY2022", start=date(2022, 3, 1), end=date(2023, 2, 28)
        )

        with pytest.raises(FiscalPeriodOverlapMismatch) as exc:
            service.process_statement(document, company_id=1, fiscal_period_id=3)

        assert str(exc.value) == (
            "Statement period 2024-03-01 to 2024-03-31 does not overlap specified "
            "fiscal period 2022-03-01 to 2023-02-28 (ID: 3)."
        )
        mock_store.save.assert_not_called()

    def test_partial_overlap_is_accepted(
        self, service: IngestionService, document: RawDocument, mock_ledger: MagicMock
    ) -> None:
        mock_ledger.get_fiscal_period.return_value = FiscalPeriod(
            id=6, company_id=1, name="FY2023", start=date(2023, 3, 1), end=date(2024, 3, 1)
        )

        result = service.process_statement(document, company_id=1, fiscal_period_id=6)

        assert result.statement_period_start == date(2024, 3, 1)

    def test_unparseable_with_target(
        self,
        service: IngestionService,
        document: RawDocument,
        mock_text_layer: MagicMock,
    ) -> None:
        mock_text_layer.extract_text.return_value = NO_PERIOD_STATEMENT

        with pytest.raises(StatementPeriodUnparseable):
            service.process_statement(document, company_id=1, fiscal_period_id=7)

    def test_unparseable_without_target_uses_fallback_date(
        self,
        service: IngestionService,
        document: RawDocument,
        mock_text_layer: MagicMock,
    ) -> None:
        mock_text_layer.extract_text.return_value = NO_PERIOD_STATEMENT

        result = service.process_statement(document, company_id=1)

        assert result.statement_period is None
        assert result.valid_count == 5
        assert {t.date for t in result.transactions} == {date(2025, 6, 30)}


class TestParserChain:
    """Tests for ParserChain.parse_lines."""

    def test_fallback_failure_recorded(self, context: ParsingContext) -> None:
        broken = MagicMock(spec=FormatParser)
        broken.name = "broken"
        broken.can_parse.return_value = True
        broken.parse.side_effect = ValueError("bad amount")
        chain = ParserChain(primary=None, fallbacks=[broken])

        transactions, errors = chain.parse_lines(["SOMETHING 1.00", "", "OTHER"], context)

        assert transactions == []
        assert len(errors) == 2
        assert errors[0] == "broken failed to parse line 'SOMETHING 1.00': bad amount"

    def test_first_claiming_parser_wins(self, context: ParsingContext) -> None:
        chain = ParserChain(primary=None)

        transactions, _ = chain.parse_lines(
            ["DEPOSIT 100.00", "FEE-ELECTRONIC ACCOUNT PAYMENT 8.90-"], context
        )

        assert [t.kind for t in transactions] == [
            TransactionKind.CREDIT,
            TransactionKind.SERVICE_FEE,
        ]

    def test_stateful_parser_created_per_call(self, context: ParsingContext) -> None:
        created: list[MagicMock] = []

        def factory() -> MagicMock:
            parser = MagicMock(spec=StatefulFormatParser)
            parser.can_parse.return_value = False
            parser.finalize_parsing.return_value = None
            created.append(parser)
            return parser

        chain = ParserChain(primary=factory, fallbacks=[])
        chain.parse_lines(["a"], context)
        chain.parse_lines(["b"], context)

        assert len(created) == 2
        for parser in created:
            parser.finalize_parsing.assert_called_once()
            parser.reset.assert_called_once()

    def test_reset_after_unexpected_error(self, context: ParsingContext) -> None:
        stateful = MagicMock(spec=StatefulFormatParser)
        stateful.can_parse.side_effect = RuntimeError("boom")
        chain = ParserChain(primary=lambda: stateful, fallbacks=[])

        with pytest.raises(RuntimeError):
            chain.parse_lines(["line"], context)

        stateful.reset.assert_called_once()

    def test_stateful_failure_falls_through(self, context: ParsingContext) -> None:
        stateful = MagicMock(spec=StatefulFormatParser)
        stateful.name = "stateful"
        stateful.can_parse.return_value = True
        stateful.parse.side_effect = ValueError("incomplete row")
        stateful.finalize_parsing.return_value = None
        chain = ParserChain(primary=lambda: stateful)

        transactions, errors = chain.parse_lines(["CREDIT TRANSFER 100.00"], context)

        assert errors == []
        assert transactions[0].amount == Decimal("100.00")

    def test_finalized_transaction_appended(self, context: ParsingContext) -> None:
        last = ParsedTransaction(
            date=date(2024, 3, 31),
            description="CASH DEPOSIT",
            amount=Decimal("10.00"),
            kind=TransactionKind.CREDIT,
        )
        stateful = MagicMock(spec=StatefulFormatParser)
        stateful.can_parse.return_value = True
        stateful.parse.return_value = None
        stateful.finalize_parsing.return_value = last
        chain = ParserChain(primary=lambda: stateful, fallbacks=[])

        transactions, _ = chain.parse_lines(["CASH DEPOSIT 10.00 03 31 10.00"], context)

        assert transactions == [last]


class TestToRecord:
    """Tests for to_record."""

    def test_credit_column(self) -> None:
        parsed = ParsedTransaction(
            date=date(2024, 3, 2),
            description="DEPOSIT",
            amount=Decimal("50.00"),
            kind=TransactionKind.CREDIT,
            reference="12345678",
        )

        record = to_record(parsed, company_id=1, source="march.pdf")

        assert record.credit == Decimal("50.00")
        assert record.debit == Decimal("0")
        assert record.reference == "12345678"
        assert record.source_file == "march.pdf"

    def test_service_fee_is_debit(self) -> None:
        parsed = ParsedTransaction(
            date=date(2024, 3, 2),
            description="MONTHLY FEE",
            amount=Decimal("35.00"),
            kind=TransactionKind.SERVICE_FEE,
        )

        record = to_record(parsed, company_id=1, source="march.pdf")

        assert record.debit == Decimal("35.00")
        assert record.service_fee is True


REPEATED_LINE_STATEMENT = """\
BANK STATEMENT
Statement Period: 1 March 2024 to 31 March 2024
CREDIT TRANSFER FROM JOHN DOE 1,500.00
CREDIT TRANSFER FROM JOHN DOE 1,500.00
PAYMENT FROM CUSTOMER 750.50
"""

LEDGER = """\
companies:
  - id: 1
    name: Acme Trading
fiscal_periods:
  - id: 7
    company_id: 1
    name: FY2024
    start: 2024-03-01
    end: 2025-02-28
"""


class TestDuplicatesWithinUpload:
    """Identical rows in one statement against a real ledger."""

    def test_second_identical_row_is_duplicate(
        self, tmp_path: Path, mock_text_layer: MagicMock, document: RawDocument
    ) -> None:
        path = tmp_path / "ledger.yaml"
        path.write_text(LEDGER)
        ledger = YamlLedgerAdapter(path)
        mock_text_layer.extract_text.return_value = REPEATED_LINE_STATEMENT
        service = IngestionService(
            extractor=DocumentExtractor(
                text_layer=mock_text_layer, ocr=MagicMock(spec=OcrPipeline)
            ),
            ledger=ledger,
            store=ledger,
            duplicates=TransactionDuplicateChecker(ledger),
            fiscal_validator=FiscalPeriodBoundaryValidator(ledger),
            validator=TransactionFieldValidator(today=lambda: date(2025, 1, 31)),
        )

        result = service.process_statement(document, company_id=1)

        assert result.valid_count == 2
        assert result.duplicate_count == 1
        rejected = result.rejected[0]
        assert rejected.description == "CREDIT TRANSFER FROM JOHN DOE"
        assert rejected.detail.startswith("Duplicate of transaction ID 1 ")
        assert len(YamlLedgerAdapter(path).transactions()) == 2
