"""Ports - interfaces for external dependencies."""

from .ledger import (
    DuplicateCheckerPort,
    FiscalPeriodValidatorPort,
    LedgerPort,
    TransactionStorePort,
    TransactionValidatorPort,
)
from .ocr import ExternalRasterizerPort, OCRPort
from .pdf import RasterizerPort, TextLayerPort

__all__ = [
    "DuplicateCheckerPort",
    "ExternalRasterizerPort",
    "FiscalPeriodValidatorPort",
    "LedgerPort",
    "OCRPort",
    "RasterizerPort",
    "TextLayerPort",
    "TransactionStorePort",
    "TransactionValidatorPort",
]
