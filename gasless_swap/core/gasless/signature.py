"""
Compact ECDSA signature decoding.

The relay expects signatures split into ``{r, s, v, recoveryParam,
signatureType}`` with ``r`` and ``s`` always 32 bytes wide.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict

from .errors import SignatureDecodeError


SIGNATURE_BYTES = 65
COMPONENT_HEX_LENGTH = 64

_HEX_EXTRACTOR = re.compile(r"^0[xX](?P<hex>\w+)$")
_HEX_BODY = re.compile(r"[0-9a-fA-F]*")


class SignatureType(IntEnum):
    ILLEGAL = 0
    INVALID = 1
    EIP712 = 2
    ETH_SIGN = 3


@dataclass(frozen=True)
class NormalizedSignature:
    r: str
    s: str
    v: int
    recovery_param: int
    signature_type: SignatureType = SignatureType.EIP712

    def to_dict(self) -> Dict[str, Any]:
        return {
            "r": self.r,
            "s": self.s,
            "v": self.v,
            "recoveryParam": self.recovery_param,
            "signatureType": int(self.signature_type),
        }

    def to_compact(self) -> str:
        """Re-encode as the 65-byte ``r || s || v`` hex string."""
        return "0x" + self.r[2:] + self.s[2:] + format(self.v, "02x")


def pad_component(value: str) -> str:
    """
    Left-pad a ``0x``-prefixed hex component to 64 characters.

    Some encoders drop leading zero bytes when turning r/s into hex. Values that
    do not look like ``0x<hex>`` are returned unchanged.
    """
    match = _HEX_EXTRACTOR.match(value)
    if not match:
        return value
    hex_part = match.group("hex")
    if len(hex_part) > COMPONENT_HEX_LENGTH:
        raise SignatureDecodeError(
            f"Signature component is {len(hex_part)} hex characters, expected at most {COMPONENT_HEX_LENGTH}"
        )
    if len(hex_part) != COMPONENT_HEX_LENGTH:
        return "0x" + hex_part.rjust(COMPONENT_HEX_LENGTH, "0")
    return value


def _decode(raw_signature: str) -> bytes:
    if not isinstance(raw_signature, str) or not raw_signature.startswith(("0x", "0X")):
        raise SignatureDecodeError("Signature must be a 0x-prefixed hex string")
    body = raw_signature[2:]
    if len(body) != SIGNATURE_BYTES * 2:
        raise SignatureDecodeError(
            f"Signature must be {SIGNATURE_BYTES} bytes, got {len(body)} hex characters"
        )
    # fromhex skips whitespace, so a padded body would decode short
    if not _HEX_BODY.fullmatch(body):
        raise SignatureDecodeError("Signature is not valid hex")
    return bytes.fromhex(body)


def normalize(raw_signature: str) -> NormalizedSignature:
    """Split a raw 65-byte signature into canonical, zero-padded components."""
    raw = _decode(raw_signature)

    r = int.from_bytes(raw[0:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    v = raw[64]

    # hex() drops leading zeros, so r/s may come back short until padded
    return NormalizedSignature(
        r=pad_component(hex(r)),
        s=pad_component(hex(s)),
        v=v,
        recovery_param=1 - (v % 2),
        signature_type=SignatureType.EIP712,
    )


class SignatureCodec:
    """Object facade over :func:`normalize` for injection into the orchestrator."""

    def normalize(self, raw_signature: str) -> NormalizedSignature:
        return normalize(raw_signature)
