# Ensure the repository root is on sys.path so `print_agent` can be imported in tests.

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    # This file lives at: <repo_root>/tests/conftest.py
    # We want to add <repo_root> to sys.path (if not already present).
    here = Path(__file__).resolve()
    repo_root = here.parent.parent
    repo_str = str(repo_root)
    if repo_str not in sys.path:
        sys.path.insert(0, repo_str)


_ensure_repo_root_on_syspath()


@pytest.fixture
def agent_config():
    from print_agent.core.config import AgentConfig

    return AgentConfig(
        printer_id="2",
        base_url="http://queue.test/api/v1/client/public",
        api_key="secret-key",
        poll_interval_ms=5000,
        max_retries=3,
        retry_delay_ms=0,
        request_timeout_ms=1000,
        printer_type="dummy",
    )


@pytest.fixture
def sample_print_data():
    return {
        "company_name": "Acme",
        "company_address": "1 Market Street",
        "vat_reg_no": "VAT-123",
        "invoice_id": "INV-42",
        "date": "2024-05-01",
        "member_name": "Jane",
        "department_name": "Bar",
        "payment_type_id": "cash",
        "products": [{"name": "Tea", "quantity": 2, "price": "5.50"}],
        "discount": "0",
        "service": "1.10",
        "vat": 0.55,
        "invoice_discount_amount": None,
        "total": "11.00",
        "total_in_words": "Eleven only",
    }
