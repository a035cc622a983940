"""RSA request signing.

Canonical form:
    json.dumps(params, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    encoded as UTF-8. Keys are ordered lexicographically at every nesting
    level. The remote side recomputes the same bytes, so this form must not
    change.

Scheme:
    RSA PKCS#1 v1.5 over SHA-256, signature encoded as standard base64.

Key material:
    PEM in PKCS#1 ("RSA PRIVATE KEY") or PKCS#8 ("PRIVATE KEY") containers.
    Bare base64 bodies (no armor) are re-armored before parsing.
"""

from __future__ import annotations

import base64
import json
import re
import textwrap
from dataclasses import dataclass
from typing import Any, Mapping

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from huifu_gateway.errors import KeyMaterialError, SigningError

PKCS1_LABEL = "RSA PRIVATE KEY"
PKCS8_LABEL = "PRIVATE KEY"
PRIVATE_KEY_LABELS = (PKCS1_LABEL, PKCS8_LABEL)
PUBLIC_KEY_LABEL = "PUBLIC KEY"

_ARMOR_RE = re.compile(
    r"-----BEGIN ([A-Z0-9 ]+)-----(.*?)-----END \1-----",
    re.DOTALL,
)


def _armor(label: str, body: str) -> bytes:
    lines = "\n".join(textwrap.wrap(body, 64))
    return f"-----BEGIN {label}-----\n{lines}\n-----END {label}-----\n".encode("ascii")


def _pem_candidates(material: str | bytes, labels: tuple[str, ...]) -> list[bytes]:
    """Return armored PEM variants of key material to attempt, in order.

    Armored input keeps its own label first. Long single-line bodies are
    re-wrapped at 64 columns.
    """
    text = material.decode("utf-8", "replace") if isinstance(material, bytes) else material
    text = text.strip().replace("\\n", "\n")
    if not text:
        return []

    match = _ARMOR_RE.search(text)
    if match:
        label = match.group(1).strip()
        body = "".join(match.group(2).split())
        ordered = (label,) + tuple(lbl for lbl in labels if lbl != label)
    else:
        body = "".join(text.split())
        ordered = labels

    return [_armor(label, body) for label in ordered]


def load_private_key(material: str | bytes) -> rsa.RSAPrivateKey:
    """Parse RSA private key material.

    Raises:
        KeyMaterialError: if neither container format parses or the key
            is not an RSA key.
    """
    key = None
    for candidate in _pem_candidates(material, PRIVATE_KEY_LABELS):
        try:
            key = serialization.load_pem_private_key(candidate, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm):
            continue
        break

    if key is None:
        raise KeyMaterialError(
            "Failed to parse private key: attempted PKCS#1 "
            f"({PKCS1_LABEL}) and PKCS#8 ({PKCS8_LABEL}) containers"
        )
    if not isinstance(key, rsa.RSAPrivateKey):
        raise KeyMaterialError("Not an RSA private key")
    return key


def load_public_key(material: str | bytes) -> rsa.RSAPublicKey:
    """Parse an RSA public key (SubjectPublicKeyInfo), armored or bare."""
    key = None
    for candidate in _pem_candidates(material, (PUBLIC_KEY_LABEL,)):
        try:
            key = serialization.load_pem_public_key(candidate)
        except (ValueError, UnsupportedAlgorithm):
            continue
        break

    if key is None:
        raise KeyMaterialError(f"Failed to parse public key ({PUBLIC_KEY_LABEL})")
    if not isinstance(key, rsa.RSAPublicKey):
        raise KeyMaterialError("Not an RSA public key")
    return key


def canonicalize(params: Mapping[str, Any]) -> bytes:
    """Serialize a parameter mapping to its canonical signing bytes."""
    try:
        text = json.dumps(
            params,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as exc:
        raise SigningError(f"Parameters are not JSON-compatible: {exc}") from exc
    return text.encode("utf-8")


def verify_signature(
    params: Mapping[str, Any],
    signature: str,
    public_key: rsa.RSAPublicKey,
) -> bool:
    """Check a base64 signature over the canonical form of params."""
    try:
        raw = base64.b64decode(signature, validate=True)
    except ValueError:
        return False
    try:
        public_key.verify(raw, canonicalize(params), padding.PKCS1v15(), hashes.SHA256())
    except InvalidSignature:
        return False
    return True


class Signer:
    """Signs canonicalized parameter maps with one tenant's private key.

    The key handle is private to the signer and never exported or logged.
    """

    def __init__(self, private_key: rsa.RSAPrivateKey):
        self._key = private_key

    @classmethod
    def from_pem(cls, material: str | bytes) -> Signer:
        """Build a signer from PEM (or bare base64) key material."""
        return cls(load_private_key(material))

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self._key.public_key()

    def sign(self, params: Mapping[str, Any]) -> str:
        """Return the base64 RSA-SHA256 signature of params."""
        payload = canonicalize(params)
        try:
            signature = self._key.sign(payload, padding.PKCS1v15(), hashes.SHA256())
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise SigningError(f"Signature computation failed: {exc}") from exc
        return base64.b64encode(signature).decode("ascii")

    def verify(self, params: Mapping[str, Any], signature: str) -> bool:
        """Verify a signature produced by this signer's key."""
        return verify_signature(params, signature, self.public_key)

    def __repr__(self) -> str:
        return f"Signer(key_size={self._key.key_size})"


@dataclass(frozen=True)
class TestKeyPair:
    """A freshly generated RSA key pair in PEM text."""

    __test__ = False

    private_key: str
    public_key: str


def generate_test_key_pair(bits: int = 2048) -> TestKeyPair:
    """Generate an RSA key pair (PKCS#1 private, SPKI public) for sandbox use."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return TestKeyPair(
        private_key=private_pem.decode("ascii"),
        public_key=public_pem.decode("ascii"),
    )
