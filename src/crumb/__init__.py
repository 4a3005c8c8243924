"""Crumb: HTTP cookie parsing, serialization, and signing.

Parses ``Cookie`` request headers, serializes ``Set-Cookie`` header values,
and signs cookie values with HMAC and key rotation.

Basic usage::

    from crumb import Signer, parse_cookies, serialize_cookie

    parse_cookies("session=abc; theme=dark")
    serialize_cookie("theme", "dark", {"path": "/", "samesite": "lax"})

    signer = Signer(["new-secret", "old-secret"])
    result = signer.unsign(signer.sign("user-42"))
    if result.valid and result.renew:
        ...  # re-issue the cookie signed with the current key
"""

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "CookieConfig",
    "CookieOptions",
    "CookieSigner",
    "Cookies",
    "CrumbError",
    "InvalidArgument",
    "SetCookie",
    "Signer",
    "UnsignResult",
    "UnsupportedAlgorithm",
    "parse_cookies",
    "serialize_cookie",
    "sign",
    "unsign",
]

# name -> module that defines it
_LAZY_IMPORTS: dict[str, str] = {
    "ConfigurationError": "crumb.errors",
    "CrumbError": "crumb.errors",
    "InvalidArgument": "crumb.errors",
    "UnsupportedAlgorithm": "crumb.errors",
    "CookieOptions": "crumb.codec",
    "parse_cookies": "crumb.codec",
    "serialize_cookie": "crumb.codec",
    "CookieSigner": "crumb.signing",
    "Signer": "crumb.signing",
    "UnsignResult": "crumb.signing",
    "sign": "crumb.signing",
    "unsign": "crumb.signing",
    "CookieConfig": "crumb.config",
    "Cookies": "crumb.cookies",
    "SetCookie": "crumb.cookies",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import crumb`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)
