"""Canonical data model, raw-bundle builder and output contract."""

from __future__ import annotations

from metrics_engine.data.builder import build_company, validate_raw_data
from metrics_engine.data.models import CompanyData

__all__ = ["CompanyData", "build_company", "validate_raw_data"]
