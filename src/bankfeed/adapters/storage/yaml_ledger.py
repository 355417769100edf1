"""Ledger adapter backed by a single YAML file."""

import logging
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from ...domain.models import ZERO, FiscalPeriod, TransactionRecord
from ...ports.ledger import LedgerPort, TransactionStorePort

logger = logging.getLogger(__name__)


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _as_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def record_to_dict(record: TransactionRecord) -> dict:
    return {
        "id": record.id,
        "company_id": record.company_id,
        "fiscal_period_id": record.fiscal_period_id,
        "date": record.date.isoformat(),
        "description": record.description,
        "debit": str(record.debit),
        "credit": str(record.credit),
        "balance": str(record.balance) if record.balance is not None else None,
        "service_fee": record.service_fee,
        "reference": record.reference,
        "source_file": record.source_file,
        "created_at": record.created_at.isoformat() if record.created_at else None,
    }


def record_from_dict(data: dict) -> TransactionRecord:
    created = data.get("created_at")
    if isinstance(created, str):
        created = datetime.fromisoformat(created)
    return TransactionRecord(
        id=data.get("id"),
        company_id=data["company_id"],
        fiscal_period_id=data.get("fiscal_period_id"),
        date=_as_date(data["date"]),
        description=data.get("description", ""),
        debit=_as_decimal(data.get("debit")) or ZERO,
        credit=_as_decimal(data.get("credit")) or ZERO,
        balance=_as_decimal(data.get("balance")),
        service_fee=bool(data.get("service_fee", False)),
        reference=data.get("reference"),
        source_file=data.get("source_file"),
        created_at=created,
    )


def _same_transaction(a: TransactionRecord, b: TransactionRecord) -> bool:
    return (
        a.company_id == b.company_id
        and a.date == b.date
        and a.debit == b.debit
        and a.credit == b.credit
        and a.description.strip().lower() == b.description.strip().lower()
        and a.balance == b.balance
    )


class YamlLedgerAdapter(LedgerPort, TransactionStorePort):
    """Companies, fiscal periods and stored transactions in one YAML file.

    Layout::

        companies:
          - id: 1
            name: Acme Trading
        fiscal_periods:
          - id: 7
            company_id: 1
            name: FY2024
            start: 2024-03-01
            end: 2025-02-28
        transactions: []
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data = self._load()

    def _load(self) -> dict:
        if not self.path.exists():
            logger.info(f"Ledger not found, starting empty: {self.path}")
            return {"companies": [], "fiscal_periods": [], "transactions": []}
        data = yaml.safe_load(self.path.read_text()) or {}
        data.setdefault("companies", [])
        data.setdefault("fiscal_periods", [])
        data.setdefault("transactions", [])
        return data

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            yaml.dump(self._data, default_flow_style=False, allow_unicode=True, sort_keys=False)
        )

    def company_exists(self, company_id: int) -> bool:
        return any(c.get("id") == company_id for c in self._data["companies"])

    def fiscal_periods_for_company(self, company_id: int) -> list[FiscalPeriod]:
        periods = [
            self._period(p)
            for p in self._data["fiscal_periods"]
            if p.get("company_id") == company_id
        ]
        return sorted(periods, key=lambda p: p.start, reverse=True)

    def get_fiscal_period(self, fiscal_period_id: int) -> FiscalPeriod | None:
        for p in self._data["fiscal_periods"]:
            if p.get("id") == fiscal_period_id:
                return self._period(p)
        return None

    def transactions(self) -> list[TransactionRecord]:
        return [record_from_dict(t) for t in self._data["transactions"]]

    def find_matching(self, record: TransactionRecord) -> TransactionRecord | None:
        for stored in self.transactions():
            if _same_transaction(stored, record):
                return stored
        return None

    def save(self, record: TransactionRecord) -> TransactionRecord:
        ids = [t.get("id") or 0 for t in self._data["transactions"]]
        record.id = max(ids, default=0) + 1
        record.created_at = datetime.now().replace(microsecond=0)
        self._data["transactions"].append(record_to_dict(record))
        self._write()
        logger.debug(f"Saved transaction {record.id}: {record.description}")
        return record

    @staticmethod
    def _period(data: dict) -> FiscalPeriod:
        return FiscalPeriod(
            id=data["id"],
            company_id=data["company_id"],
            name=data.get("name", str(data["id"])),
            start=_as_date(data["start"]),
            end=_as_date(data["end"]),
        )
