"""Framework-free cookie helpers.

``Cookies`` is the glue a request/response layer needs on top of the codec
and the signer: parse an inbound ``Cookie`` header, build ``Set-Cookie``
directives with configured defaults, sign and unsign values, and clear
cookies. It never touches a request or response object; each call returns
plain data for the caller to attach.

Usage::

    from crumb import CookieConfig, CookieOptions, Cookies

    cookies = Cookies(CookieConfig(
        secret="my-secret-key",
        defaults=CookieOptions(path="/", httponly=True),
    ))

    # Inbound
    jar = cookies.parse(request_headers.get("cookie"))
    result = cookies.unsign(jar["session"])

    # Outbound, one header line per directive
    directive = cookies.set_cookie("session", "user-42", {"max_age": 3600}, signed=True)
    headers.append(("Set-Cookie", directive.to_header_value()))
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from crumb.codec import CookieOptions, parse_cookies, serialize_cookie
from crumb.config import CookieConfig
from crumb.errors import ConfigurationError, InvalidArgument
from crumb.signing import CookieSigner, Signer, UnsignResult

# One millisecond past the epoch; serializes as "Thu, 01 Jan 1970 00:00:00 GMT"
_CLEARED_EXPIRES = datetime(1970, 1, 1, 0, 0, 0, 1000, tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class SetCookie:
    """A ``Set-Cookie`` directive: one header line when serialized."""

    name: str
    value: str
    options: CookieOptions = field(default_factory=CookieOptions)

    def to_header_value(self) -> str:
        """Serialize to a ``Set-Cookie`` header value string."""
        return serialize_cookie(self.name, self.value, self.options)


def _epoch_ms_to_datetime(expires: int) -> datetime:
    try:
        return datetime.fromtimestamp(expires / 1000, UTC)
    except (OverflowError, OSError, ValueError):
        msg = "option expires is invalid"
        raise InvalidArgument(msg) from None


class Cookies:
    """Parses, builds, signs and clears cookies for one ``CookieConfig``.

    Holds only immutable state, so one instance can serve every request.
    """

    __slots__ = ("_config", "_signer")

    def __init__(self, config: CookieConfig | None = None) -> None:
        config = config or CookieConfig()
        signer: CookieSigner | None = None

        if isinstance(config.secret, CookieSigner):
            signer = config.secret
        elif config.secret is not None:
            if not config.secret:
                msg = "CookieConfig.secret must not be empty."
                raise ConfigurationError(msg)
            signer = Signer(config.secret, config.algorithm)

        self._config = config
        self._signer = signer

    @property
    def config(self) -> CookieConfig:
        return self._config

    @property
    def signer(self) -> CookieSigner | None:
        return self._signer

    def _require_signer(self) -> CookieSigner:
        if self._signer is None:
            msg = (
                "Signing cookies requires a secret. "
                "Set CookieConfig(secret=...) before signing or unsigning."
            )
            raise ConfigurationError(msg)
        return self._signer

    def _options(self, options: CookieOptions | Mapping[str, Any] | None) -> CookieOptions:
        """Merge per-call *options* over the configured defaults."""
        merged = self._config.defaults.merge(options)
        expires = merged.expires
        if isinstance(expires, int) and not isinstance(expires, bool):
            # 0 means "no expiry", not the epoch
            merged = replace(merged, expires=_epoch_ms_to_datetime(expires) if expires else None)
        return merged

    # -- Inbound --

    def parse(self, header: str | None) -> dict[str, str]:
        """Parse a ``Cookie`` header. A missing header yields an empty dict."""
        if header is None:
            return {}
        return parse_cookies(header, self._config.decode)

    def unsign(self, signed_value: str) -> UnsignResult:
        return self._require_signer().unsign(signed_value)

    # -- Outbound --

    def sign(self, value: str) -> str:
        return self._require_signer().sign(value)

    def set_cookie(
        self,
        name: str,
        value: str,
        options: CookieOptions | Mapping[str, Any] | None = None,
        *,
        signed: bool = False,
    ) -> SetCookie:
        """Build a ``Set-Cookie`` directive.

        *options* are merged over ``CookieConfig.defaults``; neither is
        modified. An integer ``expires`` is read as epoch milliseconds.
        An integer ``expires`` of 0 sets no ``Expires`` attribute. With
        ``signed=True`` the value is signed before encoding.

        The directive is serialized once before it is returned, so an invalid
        name, value or option raises ``InvalidArgument`` here.
        """
        opts = self._options(options)
        if signed:
            value = self._require_signer().sign(value)
        directive = SetCookie(name=name, value=value, options=opts)
        directive.to_header_value()
        return directive

    def clear_cookie(
        self,
        name: str,
        options: CookieOptions | Mapping[str, Any] | None = None,
    ) -> SetCookie:
        """Build a directive that expires cookie *name* immediately.

        ``Path`` defaults to ``/``; ``Max-Age`` is dropped so that
        ``Expires`` (just after the epoch) governs. Validated like
        ``set_cookie``.
        """
        opts = replace(self._options(options), max_age=None, expires=_CLEARED_EXPIRES)
        if not opts.path:
            opts = replace(opts, path="/")
        directive = SetCookie(name=name, value="", options=opts)
        directive.to_header_value()
        return directive
