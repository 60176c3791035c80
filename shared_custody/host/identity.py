"""
Principal identity utilities and caller attestation
"""

import hashlib
import logging
import os
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac
from ecdsa import BadSignatureError, SECP256k1, SigningKey, VerifyingKey
from ecdsa.errors import MalformedPointError

from ..errors import Unauthorized

logger = logging.getLogger(__name__)

ADDRESS_BYTES = 20
NULL_ADDRESS = "0x" + "00" * ADDRESS_BYTES

_CHALLENGE_DOMAIN = b"SHARED_CUSTODY_CHALLENGE_V1"
_ATTESTATION_DOMAIN = b"SHARED_CUSTODY_CALLER_V1"


def hash160(data: bytes) -> bytes:
    """20-byte digest used for addresses (double SHA256, truncated)"""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()[:ADDRESS_BYTES]


def address_from_public_key(public_key: bytes) -> str:
    return "0x" + hash160(public_key).hex()


def make_address(seed: str) -> str:
    """Deterministic address for contracts and fixtures"""
    return "0x" + hashlib.sha256(seed.encode()).digest()[:ADDRESS_BYTES].hex()


def is_address(value) -> bool:
    if not isinstance(value, str) or len(value) != 2 + 2 * ADDRESS_BYTES:
        return False
    if not value.lower().startswith("0x"):
        return False
    try:
        bytes.fromhex(value[2:])
    except ValueError:
        return False
    return True


def normalize_address(value) -> Optional[str]:
    """Return lowercase address, or None when value is not an address"""
    if not is_address(value):
        return None
    return value.lower()


def is_null_address(value) -> bool:
    return normalize_address(value) == NULL_ADDRESS


class PrincipalKey:
    """secp256k1 key held by a principal"""

    def __init__(self, private_key: bytes = None):
        if private_key:
            self.private_key = SigningKey.from_string(private_key, curve=SECP256k1)
        else:
            self.private_key = SigningKey.generate(curve=SECP256k1)

        self.public_key = self.private_key.get_verifying_key()

    def get_public_key_hex(self) -> str:
        """Get compressed public key in hex format"""
        return self.public_key.to_string("compressed").hex()

    @property
    def address(self) -> str:
        return address_from_public_key(self.public_key.to_string("compressed"))

    def sign_message(self, message: bytes) -> str:
        """Sign message and return signature in hex"""
        signature = self.private_key.sign(message, hashfunc=hashlib.sha256)
        return signature.hex()

    @staticmethod
    def verify_signature(message: bytes, signature_hex: str, pubkey_hex: str) -> bool:
        """Verify signature against message and compressed or raw public key"""
        try:
            vk = VerifyingKey.from_string(bytes.fromhex(pubkey_hex), curve=SECP256k1)
            return vk.verify(bytes.fromhex(signature_hex), message, hashfunc=hashlib.sha256)
        except (BadSignatureError, MalformedPointError, ValueError):
            return False

    @staticmethod
    def generate_key_pair() -> Tuple[str, str]:
        """Generate new key pair and return (private_key_hex, address)"""
        key = PrincipalKey()
        return key.private_key.to_string().hex(), key.address


@dataclass(frozen=True)
class AttestedCaller:
    """Caller identity vouched for by the host; only the issuing attestor can verify it"""
    address: str
    tag: bytes

    def token(self) -> str:
        """Compact form for transport in headers"""
        return f"{self.address}.{self.tag.hex()}"

    @classmethod
    def from_token(cls, token: str) -> 'AttestedCaller':
        address, sep, tag_hex = token.partition(".")
        if not sep:
            raise Unauthorized("Malformed caller token")
        try:
            tag = bytes.fromhex(tag_hex)
        except ValueError:
            raise Unauthorized("Malformed caller token") from None
        return cls(address.lower(), tag)


class CallerAttestor:
    """Host-side authority that binds callers to addresses.

    Principals prove key possession by signing a one-time challenge. The
    resulting AttestedCaller carries an HMAC over the address under a secret
    only this attestor holds, so a caller cannot mint one for another address.
    """

    def __init__(self, secret: bytes = None):
        self._secret = secret or os.urandom(32)
        self._challenges: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def _tag(self, address: str) -> bytes:
        h = hmac.HMAC(self._secret, hashes.SHA256())
        h.update(_ATTESTATION_DOMAIN)
        h.update(address.encode())
        return h.finalize()

    def challenge(self, address: str) -> bytes:
        """Issue a fresh single-use challenge for address"""
        normalized = normalize_address(address)
        if normalized is None:
            raise Unauthorized(f"Not an address: {address!r}", address=address)

        nonce = os.urandom(32)
        with self._lock:
            self._challenges[normalized] = nonce
        return nonce

    @staticmethod
    def challenge_message(challenge: bytes) -> bytes:
        return _CHALLENGE_DOMAIN + challenge

    def attest(self, public_key_hex: str, signature_hex: str) -> AttestedCaller:
        """Verify a signed challenge and return the attested caller"""
        try:
            address = address_from_public_key(bytes.fromhex(public_key_hex))
        except ValueError:
            raise Unauthorized("Malformed public key") from None

        with self._lock:
            challenge = self._challenges.pop(address, None)

        if challenge is None:
            raise Unauthorized(f"No outstanding challenge for {address}", address=address)

        if not PrincipalKey.verify_signature(self.challenge_message(challenge), signature_hex, public_key_hex):
            raise Unauthorized(f"Challenge signature invalid for {address}", address=address)

        logger.debug("Attested caller %s", address)
        return self.vouch(address)

    def vouch(self, address: str) -> AttestedCaller:
        """Issue an attestation without a challenge (host-internal callers)"""
        normalized = normalize_address(address)
        if normalized is None:
            raise Unauthorized(f"Not an address: {address!r}", address=address)
        return AttestedCaller(normalized, self._tag(normalized))

    def verify(self, caller) -> str:
        """Return the attested address or raise Unauthorized"""
        if not isinstance(caller, AttestedCaller):
            raise Unauthorized("Caller identity is not attested")

        h = hmac.HMAC(self._secret, hashes.SHA256())
        h.update(_ATTESTATION_DOMAIN)
        h.update(caller.address.encode())
        try:
            h.verify(caller.tag)
        except InvalidSignature:
            raise Unauthorized(f"Attestation rejected for {caller.address}", address=caller.address) from None

        return caller.address
