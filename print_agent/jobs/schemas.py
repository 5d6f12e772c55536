from __future__ import annotations

"""
Pydantic schemas for the queue payloads.

A Job is what the queue hands out on fetch; its `print_data` is kept as the raw
JSON value and only validated into PrintData at render time, so a malformed
invoice counts as a failed print attempt rather than a failed fetch.

Numeric fields are left untyped on purpose: the queue sends money as strings
or numbers and the renderer normalises them (invalid -> zero).
"""

from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PRINTED = "printed"
    FAILED = "failed"


# Statuses the agent itself is allowed to report
TERMINAL_STATUSES = (JobStatus.PRINTED, JobStatus.FAILED)


def _text(v: Any) -> str:
    if v is None:
        return ""
    return str(v)


class LineItem(BaseModel):
    """One invoice line. `total` may be omitted; the renderer derives it."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    quantity: Any = None
    price: Any = None
    total: Any = None

    @field_validator("name", mode="before")
    @classmethod
    def _name_text(cls, v: Any) -> str:
        return _text(v)


class PrintData(BaseModel):
    """The structured invoice payload embedded in a job."""

    model_config = ConfigDict(extra="ignore")

    company_name: str = ""
    company_address: str = ""
    vat_reg_no: str = ""

    invoice_id: str = ""
    date: str = ""
    member_name: str = ""
    department_name: str = ""
    payment_type_id: str = ""

    discount: Any = None
    service: Any = None
    vat: Any = None
    invoice_discount_amount: Any = None
    total: Any = None
    total_in_words: str = ""

    products: List[LineItem] = Field(default_factory=list)

    @field_validator(
        "company_name",
        "company_address",
        "vat_reg_no",
        "invoice_id",
        "date",
        "member_name",
        "department_name",
        "payment_type_id",
        "total_in_words",
        mode="before",
    )
    @classmethod
    def _to_text(cls, v: Any) -> str:
        return _text(v)

    @field_validator("products", mode="before")
    @classmethod
    def _products_list(cls, v: Any) -> Any:
        # Anything that isn't a list means "no line items"
        if not isinstance(v, (list, tuple)):
            return []
        return v


class Job(BaseModel):
    """A print job as returned by GET /printers/jobs."""

    model_config = ConfigDict(extra="ignore")

    id: Union[int, str]
    printer_id: Optional[Union[int, str]] = None
    status: JobStatus = JobStatus.PROCESSING
    print_data: Any

    @field_validator("status", mode="before")
    @classmethod
    def _status_lower(cls, v: Any) -> Any:
        # The queue owns pending/processing; unknown values are not ours to reject
        value = str(v or "").strip().lower()
        if value not in {s.value for s in JobStatus}:
            return JobStatus.PROCESSING
        return value


__all__ = ["Job", "JobStatus", "LineItem", "PrintData", "TERMINAL_STATUSES"]
