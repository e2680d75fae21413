"""Password-protected masterkey file.

The file is JSON: the two halves of the masterkey are AES-key-wrapped
under a scrypt-derived key-encryption key. Writes go to a temporary file
in the same directory and are moved into place with os.replace, so a
failed write never leaves a half-written key file behind.
"""

import base64
import json
import os
import tempfile
from pathlib import Path
from typing import Any

from cryptography.hazmat.primitives.keywrap import InvalidUnwrap, aes_key_unwrap, aes_key_wrap

from .crypto import KEY_SIZE, KeyDerivation, Masterkey, RandomSource, hmac_sha256, verify_hmac_sha256
from .exceptions import InvalidPassphrase, InvalidVaultFormat

MASTERKEY_FILE_VERSION = 1
DEFAULT_BLOCK_SIZE = 8
WRAPPED_KEY_SIZE = KEY_SIZE + 8  # RFC 3394 adds one 64-bit block


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(data: str) -> bytes:
    return base64.b64decode(data.encode("ascii"))


def _version_bytes(version: int) -> bytes:
    return version.to_bytes(4, "big")


def write_atomic(path: Path, data: bytes) -> None:
    """Write data to path via a sibling temp file and os.replace."""
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def read_masterkey_json(path: Path) -> dict[str, Any]:
    """Read the key file as JSON without unlocking it."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        raise InvalidVaultFormat(f"Key file not found: {path}")
    except OSError as e:
        raise InvalidVaultFormat(f"Cannot read key file {path}: {e}")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise InvalidVaultFormat(f"Malformed key file {path}: {e}")

    if not isinstance(data, dict):
        raise InvalidVaultFormat(f"Malformed key file {path}")
    return data


def persist(
    masterkey: Masterkey,
    path: Path,
    passphrase: str,
    cost_param: int,
    rng: RandomSource,
    block_size: int = DEFAULT_BLOCK_SIZE,
) -> None:
    """
    Wrap the masterkey under passphrase and write it to path atomically.

    Args:
        masterkey: Key material to protect
        path: Destination key file
        passphrase: Password protecting the key
        cost_param: scrypt N
        rng: Random source for the salt
        block_size: scrypt r
    """
    salt = KeyDerivation.generate_salt(rng)
    kek = KeyDerivation.derive_kek(passphrase, salt, cost_param, block_size)
    document = {
        "version": MASTERKEY_FILE_VERSION,
        "scryptSalt": _b64(salt),
        "scryptCostParam": cost_param,
        "scryptBlockSize": block_size,
        "primaryMasterKey": _b64(aes_key_wrap(kek, masterkey.enc_key)),
        "hmacMasterKey": _b64(aes_key_wrap(kek, masterkey.mac_key)),
        "versionMac": _b64(hmac_sha256(masterkey.mac_key, _version_bytes(MASTERKEY_FILE_VERSION))),
    }
    write_atomic(path, json.dumps(document, indent=2).encode("utf-8"))


def load(path: Path, passphrase: str) -> Masterkey:
    """
    Unlock the key file at path.

    Raises:
        InvalidVaultFormat: If the file is missing or malformed
        InvalidPassphrase: If the passphrase does not unwrap the keys
    """
    data = read_masterkey_json(path)
    try:
        salt = _unb64(data["scryptSalt"])
        cost_param = int(data["scryptCostParam"])
        block_size = int(data["scryptBlockSize"])
        wrapped_enc = _unb64(data["primaryMasterKey"])
        wrapped_mac = _unb64(data["hmacMasterKey"])
        version = int(data.get("version", MASTERKEY_FILE_VERSION))
        version_mac = _unb64(data["versionMac"])
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise InvalidVaultFormat(f"Malformed key file {path}: {e}")

    if len(wrapped_enc) != WRAPPED_KEY_SIZE or len(wrapped_mac) != WRAPPED_KEY_SIZE:
        raise InvalidVaultFormat(f"Malformed key file {path}: wrapped keys must be {WRAPPED_KEY_SIZE} bytes")

    try:
        kek = KeyDerivation.derive_kek(passphrase, salt, cost_param, block_size)
    except ValueError as e:
        raise InvalidVaultFormat(f"Invalid key derivation parameters in {path}: {e}")

    try:
        enc_key = aes_key_unwrap(kek, wrapped_enc)
        mac_key = aes_key_unwrap(kek, wrapped_mac)
    except InvalidUnwrap:
        raise InvalidPassphrase()

    masterkey = Masterkey(enc_key, mac_key)
    if not verify_hmac_sha256(masterkey.mac_key, _version_bytes(version), version_mac):
        masterkey.destroy()
        raise InvalidVaultFormat(f"Key file version MAC mismatch: {path}")
    return masterkey
