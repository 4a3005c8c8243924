"""Crumb exception hierarchy.

Shared across the codec, the signer, and the cookie helpers so every
module raises and catches the same types.
"""


class CrumbError(Exception):
    """Base for all crumb-specific errors."""


class ConfigurationError(CrumbError):
    """Raised when a ``CookieConfig`` cannot support the requested operation.

    Typically raised by ``Cookies.__init__`` or by signing helpers when no
    secret was configured.
    """


class InvalidArgument(CrumbError, TypeError):  # noqa: N818
    """Malformed input to parse, serialize, or the signer.

    Always caller-recoverable: the caller supplied bad data. Subclasses
    ``TypeError`` so code catching the conventional type keeps working.
    """


class UnsupportedAlgorithm(CrumbError, ValueError):  # noqa: N818
    """The requested HMAC algorithm is not available in ``hashlib``.

    Raised at ``Signer`` construction time.
    """
