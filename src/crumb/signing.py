"""HMAC cookie signing with key rotation.

A ``Signer`` holds an ordered tuple of secrets. The first secret signs new
values; every secret, in order, is tried when verifying. To rotate keys,
build a new ``Signer`` with the new secret in front and the old ones
behind it. Cookies signed with an old secret still verify, and
``UnsignResult.renew`` tells the caller to re-sign them with the current
key.

Wire format::

    <value>.<base64 HMAC digest, "=" padding stripped>

The value is split from its digest at the *last* ``.``, so values may
contain dots. Digests are compared with ``hmac.compare_digest``.

Usage::

    from crumb.signing import Signer

    signer = Signer(["new-secret", "old-secret"])
    token = signer.sign("user-42")
    result = signer.unsign(token)
    # UnsignResult(valid=True, renew=False, value='user-42')
"""

from __future__ import annotations

import base64
import hmac
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, TypeAlias, runtime_checkable

from itsdangerous.encoding import want_bytes

from crumb.errors import InvalidArgument, UnsupportedAlgorithm

logger = logging.getLogger("crumb.signing")

SecretKey: TypeAlias = str | bytes | bytearray
Secrets: TypeAlias = SecretKey | Sequence[SecretKey]

DEFAULT_ALGORITHM = "sha256"

_SECRET_TYPES = (str, bytes, bytearray)


@dataclass(frozen=True, slots=True)
class UnsignResult:
    """Outcome of ``Signer.unsign``.

    ``value`` is ``None`` exactly when ``valid`` is false. ``renew`` is true
    when the signature matched a secret other than the signing key.
    """

    valid: bool
    renew: bool
    value: str | None


_INVALID = UnsignResult(valid=False, renew=False, value=None)


@runtime_checkable
class CookieSigner(Protocol):
    """Anything that can sign and verify cookie values.

    ``Signer`` satisfies it; so does any custom object with the same two
    methods, which ``CookieConfig.secret`` also accepts.
    """

    def sign(self, value: str) -> str: ...

    def unsign(self, signed_value: str) -> UnsignResult: ...


def _normalize_secrets(secrets: Secrets) -> tuple[bytes, ...]:
    """Wrap a single secret in a tuple and encode text secrets as UTF-8."""
    candidates = [secrets] if isinstance(secrets, _SECRET_TYPES) else secrets
    if not isinstance(candidates, Sequence):
        candidates = [candidates]

    keys: list[bytes] = []
    for secret in candidates:
        if not isinstance(secret, _SECRET_TYPES):
            msg = "secret key must be a string or byte buffer"
            raise InvalidArgument(msg)
        keys.append(bytes(want_bytes(secret)))

    if not keys:
        msg = "at least one secret key is required"
        raise InvalidArgument(msg)
    return tuple(keys)


def _validate_algorithm(algorithm: str) -> None:
    """Fail fast if ``hmac`` cannot compute digests with *algorithm*."""
    try:
        hmac.new(os.urandom(16), b"", algorithm).digest()
    except (TypeError, ValueError):
        msg = f"algorithm {algorithm!r} is not supported"
        raise UnsupportedAlgorithm(msg) from None


def _digest(key: bytes, value: str, algorithm: str) -> str:
    mac = hmac.new(key, value.encode("utf-8", "surrogatepass"), algorithm).digest()
    # "=" is significant in cookie syntax
    return base64.b64encode(mac).decode("ascii").rstrip("=")


def _sign(value: str, key: bytes, algorithm: str) -> str:
    if not isinstance(value, str):
        msg = "cookie value must be provided as a string"
        raise InvalidArgument(msg)
    return f"{value}.{_digest(key, value, algorithm)}"


def _unsign(signed_value: str, keys: tuple[bytes, ...], algorithm: str) -> UnsignResult:
    if not isinstance(signed_value, str):
        msg = "signed cookie value must be provided as a string"
        raise InvalidArgument(msg)

    value, sep, provided = signed_value.rpartition(".")
    if not sep:
        logger.debug("Signed value has no digest separator")
        return _INVALID

    provided_digest = provided.encode("utf-8", "surrogatepass")
    for index, key in enumerate(keys):
        expected_digest = _digest(key, value, algorithm).encode("ascii")
        if hmac.compare_digest(expected_digest, provided_digest):
            if index:
                logger.debug("Signature matched rotated secret at index %d", index)
            return UnsignResult(valid=True, renew=index != 0, value=value)

    logger.debug("Signature did not match any of %d secret(s)", len(keys))
    return _INVALID


class Signer:
    """Signs and verifies cookie values against an ordered list of secrets.

    Immutable after construction. Safe to share across threads.

    Raises ``InvalidArgument`` if a secret is neither text nor bytes, and
    ``UnsupportedAlgorithm`` if ``hashlib`` does not provide *algorithm*.
    """

    __slots__ = ("_algorithm", "_secrets")

    def __init__(self, secrets: Secrets, algorithm: str = DEFAULT_ALGORITHM) -> None:
        self._secrets = _normalize_secrets(secrets)
        _validate_algorithm(algorithm)
        self._algorithm = algorithm

    @property
    def secrets(self) -> tuple[bytes, ...]:
        """The verification chain, signing key first."""
        return self._secrets

    @property
    def signing_key(self) -> bytes:
        return self._secrets[0]

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def __repr__(self) -> str:
        return f"Signer(<{len(self._secrets)} secret(s)>, algorithm={self._algorithm!r})"

    def sign(self, value: str) -> str:
        """Return ``value.digest`` signed with the first secret."""
        return _sign(value, self._secrets[0], self._algorithm)

    def unsign(self, signed_value: str) -> UnsignResult:
        """Verify *signed_value* against each secret in order.

        Returns an invalid ``UnsignResult`` rather than raising when no
        secret matches. Raises ``InvalidArgument`` only for non-string input.
        """
        return _unsign(signed_value, self._secrets, self._algorithm)


def sign(value: str, secret: Secrets, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Sign *value* with *secret* (or the first of a list of secrets)."""
    return Signer(secret, algorithm).sign(value)


def unsign(signed_value: str, secret: Secrets, algorithm: str = DEFAULT_ALGORITHM) -> UnsignResult:
    """Verify *signed_value* against *secret* (or each of a list of secrets)."""
    return Signer(secret, algorithm).unsign(signed_value)
