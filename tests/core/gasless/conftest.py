"""Shared quote fixtures for gasless core tests."""

from typing import Any, Dict

import pytest

from quote_factory import PERMIT_APPROVAL, SPENDER, make_quote_data


@pytest.fixture
def permit_quote_data() -> Dict[str, Any]:
    return make_quote_data(approval=PERMIT_APPROVAL)


@pytest.fixture
def allowance_quote_data() -> Dict[str, Any]:
    return make_quote_data(allowance={"actual": "0", "spender": SPENDER})


@pytest.fixture
def clean_quote_data() -> Dict[str, Any]:
    return make_quote_data()
