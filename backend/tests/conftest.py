"""Shared fixtures for the tradeline engine test suite."""
import json
from pathlib import Path

import pytest

from tradeline_engine.models import Bureau, BureauAccount

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def equifax_pass_text():
    return read_fixture("equifax_pass.txt")


@pytest.fixture
def equifax_low_coverage_text():
    return read_fixture("equifax_low_coverage.txt")


@pytest.fixture
def experian_beta_pass_text():
    return read_fixture("experian_beta_pass.txt")


@pytest.fixture
def transunion_beta_fail_text():
    return read_fixture("transunion_beta_fail.txt")


@pytest.fixture
def multi_bureau_payload():
    return json.loads(read_fixture("multi_bureau.json"))


@pytest.fixture
def multi_bureau_accounts(multi_bureau_payload):
    """The multi-bureau dataset as BureauAccounts, in file order."""
    accounts = []
    for raw in multi_bureau_payload["accounts"]:
        values = dict(raw)
        values["bureau"] = Bureau.coerce(values["bureau"])
        accounts.append(BureauAccount(**values))
    return accounts
