import base64
import binascii

from upload_quarantine.errors import DecodeError


def decode(provider_encoded_hash: str) -> str:
    """Turn a base64 digest (as storage reports it) into lowercase hex."""
    if not provider_encoded_hash:
        raise DecodeError("empty hash encoding")
    try:
        raw = base64.b64decode(provider_encoded_hash, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"invalid base64 hash {provider_encoded_hash!r}: {exc}") from exc
    if not raw:
        raise DecodeError("hash encoding decodes to zero bytes")
    return raw.hex()


def encode(hex_digest: str) -> str:
    try:
        raw = bytes.fromhex(hex_digest)
    except ValueError as exc:
        raise DecodeError(f"invalid hex digest {hex_digest!r}") from exc
    return base64.b64encode(raw).decode("ascii")
