"""Core cryptographic primitives for the storage provider.

Uses the cryptography library for:
- scrypt key derivation of the key-encryption key
- RFC 3394 AES key wrap of the masterkey
- AES-SIV (deterministic) encryption of file and directory names
- AES-256-GCM chunked encryption of file contents
"""

import base64
import secrets
from typing import BinaryIO, Iterator, Protocol

from cryptography.exceptions import InvalidSignature, InvalidTag
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, AESSIV
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from .exceptions import DecryptionError

KEY_SIZE = 32  # 256 bits, for both the encryption and the MAC key
SALT_SIZE = 8

# Content encryption parameters
CHUNK_SIZE = 32 * 1024  # 32KB cleartext per chunk
NONCE_SIZE = 12  # 96 bits for AES-GCM
TAG_SIZE = 16  # 128-bit authentication tag
CHUNK_OVERHEAD = NONCE_SIZE + TAG_SIZE
HEADER_SIZE = NONCE_SIZE + KEY_SIZE + TAG_SIZE

HEADER_AAD = b"cryptvault-file-header"


class RandomSource(Protocol):
    """Source of cryptographically secure random bytes."""

    def token_bytes(self, n: int) -> bytes: ...


class SystemRandom:
    """Random source backed by the operating system CSPRNG."""

    def token_bytes(self, n: int) -> bytes:
        return secrets.token_bytes(n)


def _wipe(buf: bytearray) -> None:
    buf[:] = bytes(len(buf))


def b64url_encode(data: bytes) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str | bytes) -> bytes:
    """Decode URL-safe base64, tolerating missing padding."""
    if isinstance(data, str):
        data = data.encode("ascii")
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))


class Masterkey:
    """
    Decrypted key set governing a vault.

    Holds a 256-bit encryption key and a 256-bit MAC key in mutable
    buffers so they can be zeroed with destroy(). Usable as a context
    manager that destroys the keys on exit.
    """

    def __init__(self, enc_key: bytes, mac_key: bytes):
        if len(enc_key) != KEY_SIZE or len(mac_key) != KEY_SIZE:
            raise ValueError(f"Masterkey parts must be {KEY_SIZE} bytes each")
        self._enc_key = bytearray(enc_key)
        self._mac_key = bytearray(mac_key)
        self._destroyed = False

    @classmethod
    def generate(cls, rng: RandomSource) -> "Masterkey":
        """Generate a fresh masterkey from the given random source."""
        return cls(rng.token_bytes(KEY_SIZE), rng.token_bytes(KEY_SIZE))

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    @property
    def enc_key(self) -> bytes:
        self._check()
        return bytes(self._enc_key)

    @property
    def mac_key(self) -> bytes:
        self._check()
        return bytes(self._mac_key)

    @property
    def raw(self) -> bytes:
        """Encryption key followed by MAC key."""
        self._check()
        return bytes(self._enc_key + self._mac_key)

    def copy(self) -> "Masterkey":
        """Return an independent copy that must be destroyed separately."""
        self._check()
        return Masterkey(bytes(self._enc_key), bytes(self._mac_key))

    def destroy(self) -> None:
        """Zero both keys in place. Safe to call more than once."""
        _wipe(self._enc_key)
        _wipe(self._mac_key)
        self._destroyed = True

    def _check(self) -> None:
        if self._destroyed:
            raise ValueError("Masterkey has been destroyed")

    def __enter__(self) -> "Masterkey":
        return self

    def __exit__(self, *_) -> None:
        self.destroy()

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else "live"
        return f"Masterkey(<{state}>)"


class KeyDerivation:
    """Derives key-encryption keys from passphrases using scrypt."""

    @staticmethod
    def generate_salt(rng: RandomSource) -> bytes:
        return rng.token_bytes(SALT_SIZE)

    @staticmethod
    def derive_kek(passphrase: str, salt: bytes, cost_param: int, block_size: int) -> bytes:
        """
        Derive a 256-bit key-encryption key.

        Args:
            passphrase: Vault password
            salt: Random salt stored in the key file
            cost_param: scrypt N (power of two)
            block_size: scrypt r

        Returns:
            32-byte derived key
        """
        kdf = Scrypt(salt=salt, length=KEY_SIZE, n=cost_param, r=block_size, p=1)
        return kdf.derive(passphrase.encode("utf-8"))


def hmac_sha256(key: bytes, data: bytes) -> bytes:
    h = hmac.HMAC(key, hashes.SHA256())
    h.update(data)
    return h.finalize()


def verify_hmac_sha256(key: bytes, data: bytes, signature: bytes) -> bool:
    h = hmac.HMAC(key, hashes.SHA256())
    h.update(data)
    try:
        h.verify(signature)
        return True
    except InvalidSignature:
        return False


class NameEncryption:
    """
    Deterministic AES-SIV encryption of path segments.

    The parent directory's virtual path is bound as associated data, so
    the same name encrypts differently in different directories.
    """

    def __init__(self, masterkey: Masterkey):
        self._siv = AESSIV(masterkey.mac_key + masterkey.enc_key)

    def encrypt(self, name: str, parent: str) -> str:
        ct = self._siv.encrypt(name.encode("utf-8"), [parent.encode("utf-8")])
        return b64url_encode(ct)

    def decrypt(self, encrypted: str, parent: str) -> str:
        try:
            pt = self._siv.decrypt(b64url_decode(encrypted), [parent.encode("utf-8")])
        except (InvalidTag, ValueError):
            raise DecryptionError(f"Cannot decrypt name: {encrypted}")
        return pt.decode("utf-8")


class ContentEncryption:
    """
    AES-256-GCM chunked encryption of file contents.

    File format:
    [header nonce (12)] [GCM(content key) (48)] [chunk0] [chunk1] ...
    Each chunk: [nonce (12)] [ciphertext] [tag (16)], authenticated with
    the header nonce and the chunk index so chunks cannot be reordered.
    """

    def __init__(self, masterkey: Masterkey, rng: RandomSource):
        self._header_cipher = AESGCM(masterkey.enc_key)
        self._rng = rng

    @staticmethod
    def _chunk_aad(header_nonce: bytes, index: int) -> bytes:
        return header_nonce + index.to_bytes(8, "big")

    def encrypt_stream(self, infile: BinaryIO, outfile: BinaryIO) -> int:
        """Encrypt infile into outfile. Returns the cleartext byte count."""
        header_nonce = self._rng.token_bytes(NONCE_SIZE)
        content_key = self._rng.token_bytes(KEY_SIZE)
        outfile.write(header_nonce)
        outfile.write(self._header_cipher.encrypt(header_nonce, content_key, HEADER_AAD))

        cipher = AESGCM(content_key)
        total = 0
        index = 0
        while True:
            chunk = infile.read(CHUNK_SIZE)
            if not chunk:
                break
            nonce = self._rng.token_bytes(NONCE_SIZE)
            outfile.write(nonce)
            outfile.write(cipher.encrypt(nonce, chunk, self._chunk_aad(header_nonce, index)))
            total += len(chunk)
            index += 1
        return total

    def decrypt_chunks(self, infile: BinaryIO) -> Iterator[bytes]:
        """
        Iterate over decrypted chunks.

        Yields:
            Cleartext chunks in order
        """
        header = infile.read(HEADER_SIZE)
        if len(header) < HEADER_SIZE:
            raise DecryptionError("Invalid encrypted file header")
        header_nonce = header[:NONCE_SIZE]
        try:
            content_key = self._header_cipher.decrypt(header_nonce, header[NONCE_SIZE:], HEADER_AAD)
        except InvalidTag:
            raise DecryptionError("File header authentication failed")

        cipher = AESGCM(content_key)
        index = 0
        while True:
            encrypted_chunk = infile.read(CHUNK_SIZE + CHUNK_OVERHEAD)
            if not encrypted_chunk:
                break
            if len(encrypted_chunk) <= CHUNK_OVERHEAD:
                raise DecryptionError("Unexpected end of file")
            nonce = encrypted_chunk[:NONCE_SIZE]
            try:
                yield cipher.decrypt(nonce, encrypted_chunk[NONCE_SIZE:], self._chunk_aad(header_nonce, index))
            except InvalidTag:
                raise DecryptionError(f"Chunk {index} authentication failed")
            index += 1

    def decrypt_stream(self, infile: BinaryIO, outfile: BinaryIO) -> int:
        """Decrypt infile into outfile. Returns the cleartext byte count."""
        total = 0
        for chunk in self.decrypt_chunks(infile):
            outfile.write(chunk)
            total += len(chunk)
        return total


def cleartext_size(ciphertext_size: int) -> int:
    """Compute the cleartext size of an encrypted file from its on-disk size."""
    body = ciphertext_size - HEADER_SIZE
    if body <= 0:
        return 0
    full_chunks, remainder = divmod(body, CHUNK_SIZE + CHUNK_OVERHEAD)
    return full_chunks * CHUNK_SIZE + max(remainder - CHUNK_OVERHEAD, 0)
