"""Storage adapters."""

from .yaml_ledger import YamlLedgerAdapter

__all__ = ["YamlLedgerAdapter"]
