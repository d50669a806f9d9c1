"""Quote payload builders for gasless core tests."""

from typing import Any, Dict, Optional


SELL_TOKEN = "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"
BUY_TOKEN = "0xfde4c96c8593536e31f229ea8f37b2ada2699bb2"
SPENDER = "0x0000000000001ff3684f28c67538d4d072c22734"


def _typed_data(primary_type: str, message: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "chainId", "type": "uint256"},
            ],
            primary_type: [{"name": "value", "type": "uint256"}],
        },
        "domain": {"name": "Test", "chainId": 8453},
        "primaryType": primary_type,
        "message": message,
    }


def make_quote_data(
    *,
    approval: Optional[Dict[str, Any]] = None,
    allowance: Optional[Dict[str, Any]] = None,
    sell_quantity: str = "1000000",
    liquidity_available: bool = True,
) -> Dict[str, Any]:
    return {
        "allowance_target": SPENDER,
        "approval": approval,
        "block_number": 123,
        "buy_quantity": "999000",
        "buy_token": BUY_TOKEN,
        "liquidity_available": liquidity_available,
        "min_buy_quantity": "989010",
        "sell_quantity": sell_quantity,
        "sell_token": SELL_TOKEN,
        "target": SPENDER,
        "trade": {
            "type": "settler_metatransaction",
            "hash": "0x" + "aa" * 32,
            "eip712": _typed_data("MetaTransaction", {"value": 1}),
        },
        "zid": "0xzid",
        "issues": {
            "allowance": allowance,
            "balance": None,
            "simulation_incomplete": False,
            "invalid_sources_passed": [],
        },
    }


PERMIT_APPROVAL = {
    "type": "permit",
    "hash": "0x" + "bb" * 32,
    "eip712": _typed_data("Permit", {"value": 1000000}),
}
