"""Signed vault configuration artifact.

A compact JWS (HS256) signed with the masterkey. The payload carries the
vault id, format version and cipher combination, and the header's kid
names the key file that unlocks the vault.
"""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .crypto import Masterkey, b64url_decode, b64url_encode, hmac_sha256, verify_hmac_sha256
from .exceptions import InvalidVaultFormat
from .masterkey_file import write_atomic

VAULT_FORMAT = 1
CIPHER_COMBO = "SIV_GCM"
KID_PREFIX = "masterkeyfile:"


def _segment(obj: dict[str, Any]) -> str:
    return b64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def create(path: Path, masterkey: Masterkey, masterkey_filename: str) -> dict[str, Any]:
    """Write a new signed vault config. Returns the payload."""
    header = {"kid": f"{KID_PREFIX}{masterkey_filename}", "typ": "JWT", "alg": "HS256"}
    payload = {
        "jti": str(uuid.uuid4()),
        "format": VAULT_FORMAT,
        "cipherCombo": CIPHER_COMBO,
        "createdAt": datetime.now(timezone.utc).isoformat(timespec="seconds"),
    }
    signing_input = f"{_segment(header)}.{_segment(payload)}"
    signature = hmac_sha256(masterkey.raw, signing_input.encode("ascii"))
    write_atomic(path, f"{signing_input}.{b64url_encode(signature)}".encode("ascii"))
    return payload


def _split(token: str, path: Path) -> tuple[str, str, str]:
    parts = token.strip().split(".")
    if len(parts) != 3:
        raise InvalidVaultFormat(f"Invalid vault config (not a JWT): {path}")
    return parts[0], parts[1], parts[2]


def read_unverified(path: Path) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Decode header and payload without checking the signature.

    Used for inspection, which has no key to verify with.
    """
    try:
        token = Path(path).read_text(encoding="ascii")
    except FileNotFoundError:
        raise InvalidVaultFormat(f"Vault config not found: {path}")
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidVaultFormat(f"Cannot read vault config {path}: {e}")
    header_b64, payload_b64, _ = _split(token, path)
    try:
        header = json.loads(b64url_decode(header_b64))
        payload = json.loads(b64url_decode(payload_b64))
    except ValueError as e:
        raise InvalidVaultFormat(f"Failed to decode vault config {path}: {e}")
    if not isinstance(header, dict) or not isinstance(payload, dict):
        raise InvalidVaultFormat(f"Failed to decode vault config {path}")
    return header, payload


def load(path: Path, masterkey: Masterkey) -> dict[str, Any]:
    """Read and verify the vault config. Returns the payload."""
    header, payload = read_unverified(path)
    if header.get("alg") != "HS256":
        raise InvalidVaultFormat(f"Unsupported vault config algorithm: {header.get('alg')}")
    token = Path(path).read_text(encoding="ascii").strip()
    signing_input, _, signature = token.rpartition(".")
    try:
        signature_bytes = b64url_decode(signature)
    except ValueError:
        raise InvalidVaultFormat(f"Malformed vault config signature: {path}")
    if not verify_hmac_sha256(masterkey.raw, signing_input.encode("ascii"), signature_bytes):
        raise InvalidVaultFormat(f"Vault config signature mismatch: {path}")
    if payload.get("format") != VAULT_FORMAT:
        raise InvalidVaultFormat(f"Unsupported vault format: {payload.get('format')}")
    return payload
