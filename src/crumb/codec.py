"""Cookie parsing and Set-Cookie serialization.

Consolidates the read side (``parse_cookies``, for ``Cookie`` request
headers) and the write side (``serialize_cookie`` plus ``CookieOptions``,
for ``Set-Cookie`` response headers) in one module.

Parsing is lenient: malformed segments are skipped and values that fail to
decode are kept as-is, so one bad cookie never hides the rest of the header.
Serialization is strict: every name, value and attribute is validated
against RFC 7230 field-content and rejected with ``InvalidArgument``.

Usage::

    from crumb.codec import CookieOptions, parse_cookies, serialize_cookie

    parse_cookies("theme=dark; lang=en")
    # {'theme': 'dark', 'lang': 'en'}

    serialize_cookie("session", "abc", CookieOptions(max_age=3600, httponly=True))
    # 'session=abc; Max-Age=3600; HttpOnly'
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields, replace
from datetime import UTC, datetime
from email.utils import format_datetime
from typing import Any
from urllib.parse import quote, unquote

from crumb.errors import InvalidArgument

logger = logging.getLogger("crumb.codec")

# field-content (RFC 7230 sec 3.2): VCHAR, SP, HTAB and obs-text
_FIELD_CONTENT = re.compile(r"[\t\x20-\x7e\x80-\xff]+")

# Unreserved marks encodeURIComponent leaves alone besides "_.-~"
_ENCODE_SAFE = "!'()*"

_PRIORITIES: dict[str, str] = {"low": "Low", "medium": "Medium", "high": "High"}
_SAME_SITE: dict[str, str] = {"lax": "Lax", "strict": "Strict", "none": "None"}


def percent_encode(value: str) -> str:
    """Default value encoder: percent-encode everything but URI unreserved marks."""
    return quote(value, safe=_ENCODE_SAFE)


def percent_decode(value: str) -> str:
    """Default value decoder.

    Raises ``UnicodeDecodeError`` when the escapes do not form valid UTF-8.
    Incomplete escapes such as ``%1`` are left literal.
    """
    return unquote(value, errors="strict")


def _is_field_content(value: object) -> bool:
    return isinstance(value, str) and _FIELD_CONTENT.fullmatch(value) is not None


# -- Options --


@dataclass(frozen=True, slots=True)
class CookieOptions:
    """Attributes of a ``Set-Cookie`` header. Immutable after creation.

    Only attributes that are set are emitted. ``None`` means "not set";
    ``False`` or ``""`` switch an attribute off explicitly. Callers may pass
    a plain mapping with the same keys wherever a ``CookieOptions`` is
    accepted::

        serialize_cookie("a", "b", {"max_age": 60, "samesite": "lax"})
    """

    max_age: int | float | str | None = None
    domain: str | None = None
    path: str | None = None
    priority: str | None = None
    expires: datetime | None = None
    httponly: bool | None = None
    secure: bool | None = None
    partitioned: bool | None = None
    samesite: bool | str | None = None
    encode: Callable[[str], str] | None = None

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> CookieOptions:
        """Build options from a mapping, rejecting unknown keys."""
        return _DEFAULT_OPTIONS.merge(options)

    def merge(self, overrides: CookieOptions | Mapping[str, Any] | None) -> CookieOptions:
        """Return a copy with *overrides* applied on top of this instance.

        A mapping overrides exactly the keys it names. A ``CookieOptions``
        overrides every field that is not ``None``, so ``httponly=False``
        turns off an ``httponly=True`` default.
        Neither ``self`` nor *overrides* is modified.
        """
        if overrides is None:
            return self
        if isinstance(overrides, CookieOptions):
            changes = {
                f.name: getattr(overrides, f.name)
                for f in fields(overrides)
                if getattr(overrides, f.name) is not None
            }
        elif isinstance(overrides, Mapping):
            changes = dict(overrides)
            unknown = sorted(set(changes) - _OPTION_NAMES)
            if unknown:
                msg = f"unknown cookie option(s): {', '.join(map(str, unknown))}"
                raise InvalidArgument(msg)
        else:
            msg = "options must be a CookieOptions or a mapping"
            raise InvalidArgument(msg)
        return replace(self, **changes)


_DEFAULT_OPTIONS = CookieOptions()
_OPTION_NAMES = frozenset(f.name for f in fields(CookieOptions))


def _coerce_options(options: CookieOptions | Mapping[str, Any] | None) -> CookieOptions:
    if isinstance(options, CookieOptions):
        return options
    return _DEFAULT_OPTIONS.merge(options)


# -- Parse --


def parse_cookies(
    header: str,
    decode: Callable[[str], str] | None = None,
) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Pairs are ``;``-delimited ``name=value`` segments. The first occurrence
    of a name wins. Segments without ``=`` are skipped. A value wrapped in
    double quotes is unwrapped.

    Values are passed through *decode* (percent-decoding by default) when a
    custom decoder is given or the value contains ``%``. If decoding raises,
    the raw value is kept.

    Raises ``InvalidArgument`` if *header* is not a string.
    """
    if not isinstance(header, str):
        msg = "argument header must be a string"
        raise InvalidArgument(msg)
    if decode is not None and not callable(decode):
        msg = "option decode is invalid"
        raise InvalidArgument(msg)

    decoder = decode or percent_decode
    cookies: dict[str, str] = {}
    length = len(header)
    pos = 0

    while pos < length:
        end = header.find(";", pos)
        if end == -1:
            end = length
        eq = header.find("=", pos)
        if eq == -1:
            break
        if eq > end:
            # no "=" before the next ";"
            pos = end + 1
            continue

        key = header[pos:eq].strip()
        if key not in cookies:
            value = header[eq + 1 : end].strip()
            if len(value) > 1 and value[0] == '"':
                value = value[1:-1]
            if decode is not None or "%" in value:
                value = _try_decode(key, value, decoder)
            cookies[key] = value
        pos = end + 1

    return cookies


def _try_decode(key: str, value: str, decoder: Callable[[str], str]) -> str:
    try:
        return decoder(value)
    except Exception:
        logger.debug("Cookie %r left undecoded: decoder raised", key, exc_info=True)
        return value


# -- Serialize --


def serialize_cookie(
    name: str,
    value: str,
    options: CookieOptions | Mapping[str, Any] | None = None,
) -> str:
    """Serialize a name-value pair into a ``Set-Cookie`` header value.

    Attributes are appended in a fixed order: ``Max-Age``, ``Domain``,
    ``Path``, ``Priority``, ``Expires``, ``HttpOnly``, ``Secure``,
    ``Partitioned``, ``SameSite``.

    Raises ``InvalidArgument`` for an invalid name, encoded value, encoder,
    or attribute. The caller's *options* are never modified.
    """
    opts = _coerce_options(options)
    encode = opts.encode if opts.encode is not None else percent_encode
    if not callable(encode):
        msg = "option encode is invalid"
        raise InvalidArgument(msg)

    if not _is_field_content(name):
        msg = "argument name is invalid"
        raise InvalidArgument(msg)
    if not isinstance(value, str):
        msg = "argument value must be a string"
        raise InvalidArgument(msg)

    encoded = encode(value)
    if encoded and not _is_field_content(encoded):
        msg = "argument value is invalid"
        raise InvalidArgument(msg)

    parts = [f"{name}={encoded}"]

    if opts.max_age is not None:
        parts.append(f"Max-Age={_max_age(opts.max_age)}")
    if opts.domain:
        parts.append(f"Domain={_field('domain', opts.domain)}")
    if opts.path:
        parts.append(f"Path={_field('path', opts.path)}")
    if opts.priority:
        parts.append(f"Priority={_choice('priority', opts.priority, _PRIORITIES)}")
    if opts.expires is not None:
        parts.append(f"Expires={_http_date(opts.expires)}")
    if opts.httponly:
        parts.append("HttpOnly")
    if opts.secure:
        parts.append("Secure")
    if opts.partitioned:
        parts.append("Partitioned")
    if opts.samesite is True:
        parts.append("SameSite=Strict")
    elif opts.samesite:
        parts.append(f"SameSite={_choice('samesite', opts.samesite, _SAME_SITE)}")

    return "; ".join(parts)


def _max_age(max_age: object) -> int:
    """Coerce *max_age* to whole seconds, truncating toward zero."""
    msg = "option max_age is invalid"
    if isinstance(max_age, bool):
        raise InvalidArgument(msg)
    if isinstance(max_age, int):
        return max_age
    try:
        seconds = float(max_age)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidArgument(msg) from None
    if not math.isfinite(seconds):
        raise InvalidArgument(msg)
    return math.trunc(seconds)


def _field(option: str, value: object) -> str:
    if not _is_field_content(value):
        msg = f"option {option} is invalid"
        raise InvalidArgument(msg)
    return value  # type: ignore[return-value]


def _choice(option: str, value: object, choices: dict[str, str]) -> str:
    canonical = choices.get(value.lower()) if isinstance(value, str) else None
    if canonical is None:
        msg = f"option {option} is invalid"
        raise InvalidArgument(msg)
    return canonical


def _http_date(expires: object) -> str:
    """Format *expires* as an IMF-fixdate. Naive datetimes are taken as UTC."""
    if not isinstance(expires, datetime):
        msg = "option expires is invalid"
        raise InvalidArgument(msg)
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=UTC)
    return format_datetime(expires.astimezone(UTC), usegmt=True)
