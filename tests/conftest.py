"""Shared test fixtures."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from bankfeed.domain.models import (
    FiscalPeriod,
    ParsingContext,
    RawDocument,
    TransactionRecord,
    ValidationResult,
)
from bankfeed.ports.ledger import (
    DuplicateCheckerPort,
    FiscalPeriodValidatorPort,
    LedgerPort,
    TransactionStorePort,
    TransactionValidatorPort,
)
from bankfeed.ports.ocr import ExternalRasterizerPort, OCRPort
from bankfeed.ports.pdf import RasterizerPort, TextLayerPort

GOOD_STATEMENT = """\
BANK STATEMENT
Account Number: 1234 5678 90
Statement Period: 1 March 2024 to 31 March 2024
01/03/2024 Opening balance 10,000.00
CREDIT TRANSFER FROM JOHN DOE 1,500.00
DEPOSIT REF 12345678 500.00
PAYMENT FROM CUSTOMER 750.50
## MONTHLY SERVICE FEE ## 35.00
FEE-ELECTRONIC ACCOUNT PAYMENT 8.90-
Closing balance 12,706.60
"""


@pytest.fixture
def statement_text() -> str:
    """Text layer of a well-formed March 2024 statement."""
    return GOOD_STATEMENT


@pytest.fixture
def context() -> ParsingContext:
    """Parsing context for a March 2024 statement."""
    return ParsingContext(statement_date=date(2024, 6, 30), source="statement.pdf")


@pytest.fixture
def document() -> RawDocument:
    return RawDocument(content=b"%PDF-1.4 test content", filename="statement.pdf")


@pytest.fixture
def fiscal_period() -> FiscalPeriod:
    return FiscalPeriod(
        id=7, company_id=1, name="FY2024", start=date(2024, 3, 1), end=date(2025, 2, 28)
    )


@pytest.fixture
def sample_record() -> TransactionRecord:
    return TransactionRecord(
        company_id=1,
        fiscal_period_id=7,
        date=date(2024, 3, 15),
        description="PAYMENT FROM CUSTOMER",
        credit=Decimal("750.50"),
        balance=Decimal("11250.50"),
    )


@pytest.fixture
def mock_text_layer() -> MagicMock:
    """Mock text layer port."""
    mock = MagicMock(spec=TextLayerPort)
    mock.is_available.return_value = True
    mock.extract_text.return_value = GOOD_STATEMENT
    return mock


@pytest.fixture
def mock_rasterizer() -> MagicMock:
    """Mock page rasterizer with two pages."""
    mock = MagicMock(spec=RasterizerPort)
    mock.page_count.return_value = 2
    mock.render_page.side_effect = lambda doc, index, dpi: f"image-{index}"
    return mock


@pytest.fixture
def mock_ocr() -> MagicMock:
    """Mock OCR engine."""
    mock = MagicMock(spec=OCRPort)
    mock.recognize.return_value = "PAYMENT FROM CUSTOMER 750.50"
    return mock


@pytest.fixture
def mock_external() -> MagicMock:
    """Mock external rasterizer."""
    return MagicMock(spec=ExternalRasterizerPort)


@pytest.fixture
def mock_ledger(fiscal_period: FiscalPeriod) -> MagicMock:
    """Mock ledger with one company and one fiscal period."""
    mock = MagicMock(spec=LedgerPort)
    mock.company_exists.return_value = True
    mock.fiscal_periods_for_company.return_value = [fiscal_period]
    mock.get_fiscal_period.return_value = fiscal_period
    return mock


@pytest.fixture
def mock_store() -> MagicMock:
    """Mock transaction store that echoes saved records."""
    mock = MagicMock(spec=TransactionStorePort)
    mock.save.side_effect = lambda record: record
    mock.find_matching.return_value = None
    return mock


@pytest.fixture
def mock_duplicates() -> MagicMock:
    mock = MagicMock(spec=DuplicateCheckerPort)
    mock.is_duplicate.return_value = False
    mock.find_duplicate.return_value = None
    return mock


@pytest.fixture
def mock_fiscal_validator() -> MagicMock:
    mock = MagicMock(spec=FiscalPeriodValidatorPort)
    mock.is_within_fiscal_period.return_value = True
    mock.explain.return_value = "outside fiscal period"
    return mock


@pytest.fixture
def mock_validator() -> MagicMock:
    mock = MagicMock(spec=TransactionValidatorPort)
    mock.validate.return_value = ValidationResult()
    return mock
