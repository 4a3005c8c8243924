"""Cookie helper configuration.

CookieConfig is a frozen dataclass: immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from crumb.codec import CookieOptions
from crumb.signing import DEFAULT_ALGORITHM, CookieSigner, Secrets


@dataclass(frozen=True, slots=True)
class CookieConfig:
    """Configuration for ``Cookies``. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = CookieConfig(
            secret=["new-secret", "old-secret"],
            defaults=CookieOptions(path="/", httponly=True, samesite="lax"),
        )

    ``secret`` is only required for signing. It may be a single secret, an
    ordered list for key rotation (signing key first), or any object with
    ``sign``/``unsign`` methods (see ``CookieSigner``), such as a ``Signer``.
    """

    # Signing
    secret: Secrets | CookieSigner | None = None
    algorithm: str = DEFAULT_ALGORITHM

    # Parsing
    decode: Callable[[str], str] | None = None

    # Serialization defaults, overridden per call
    defaults: CookieOptions = field(default_factory=CookieOptions)
