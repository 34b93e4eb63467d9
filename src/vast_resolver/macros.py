"""Macro substitution for VAST tracking URL templates.

Templates carry placeholders such as ``[ERRORCODE]`` or ``%%CACHEBUSTING%%``.
``substitute`` is pure: it never generates values itself. Runtime values
(cache busters, timestamps) are produced by ``build_macro_variables``.
"""

import re
import secrets
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Iterable, Mapping
from urllib.parse import quote


DEFAULT_MACRO_FORMATS = ("[{macro}]", "%%{macro}%%", "${{{macro}}}")

UNDEFINED_ERROR_CODE = 900

_ERROR_CODE_RE = re.compile(r"^[0-9]{3}$")


@lru_cache(maxsize=32)
def _macro_pattern(formats: tuple[str, ...]) -> re.Pattern[str]:
    """Compile one alternation regex for all configured macro formats."""
    alternatives = []
    for index, format_template in enumerate(formats):
        # Convert format template (e.g., "[{macro}]") into regex capturing macro name
        prefix, _, suffix = format_template.format(macro="\x00").partition("\x00")
        alternatives.append(
            f"{re.escape(prefix)}(?P<m{index}>[A-Za-z0-9_]+){re.escape(suffix)}"
        )
    return re.compile("|".join(alternatives))


def substitute(
    template: str,
    variables: Mapping[str, Any],
    formats: Iterable[str] = DEFAULT_MACRO_FORMATS,
) -> str:
    """Replace bracketed macros in a URL template.

    Macro names match case-insensitively. Tokens with no value in
    ``variables`` are left verbatim.

    Args:
        template: URL template, e.g. ``http://x/error?c=[ERRORCODE]``
        variables: Macro values keyed by name
        formats: Placeholder formats, ``{macro}`` marks the name

    Returns:
        The template with every known macro replaced

    Examples:
        >>> substitute("http://x/e?c=[ERRORCODE]&r=[random]", {"ERRORCODE": 303, "RANDOM": 7})
        'http://x/e?c=303&r=7'
    """
    if not template:
        return template

    values = {str(key).upper(): value for key, value in variables.items()}

    def _replace(match: re.Match[str]) -> str:
        name = next(value for value in match.groupdict().values() if value)
        value = values.get(name.upper())
        if value is None:
            return match.group(0)
        return str(value)

    return _macro_pattern(tuple(formats)).sub(_replace, template)


def resolve_url_templates(
    templates: Iterable[str | None],
    variables: Mapping[str, Any],
    formats: Iterable[str] = DEFAULT_MACRO_FORMATS,
) -> list[str]:
    """Substitute every non-empty template, preserving order."""
    formats = tuple(formats)
    return [substitute(template, variables, formats) for template in templates if template]


def _cachebuster() -> str:
    return str(secrets.randbelow(10**8)).zfill(8)


def build_macro_variables(
    variables: Mapping[str, Any] | None = None,
    static_macros: Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Build the full macro value set for one tracking dispatch.

    Args:
        variables: Caller-supplied values (e.g. ``{"ERRORCODE": 303}``)
        static_macros: Configured values, overridden by ``variables``
        now: Clock override for ``TIMESTAMP``

    Returns:
        Dictionary with ``CACHEBUSTING``, ``RANDOM``, ``TIMESTAMP`` and the
        normalized caller values
    """
    result: dict[str, Any] = {**(static_macros or {}), **(variables or {})}

    asset_uri = result.get("ASSETURI")
    if asset_uri:
        result["ASSETURI"] = quote(str(asset_uri), safe="")

    error_code = result.get("ERRORCODE")
    if error_code is not None and not _ERROR_CODE_RE.match(str(error_code)):
        result["ERRORCODE"] = UNDEFINED_ERROR_CODE

    cachebuster = _cachebuster()
    moment = now or datetime.now(timezone.utc)
    result["CACHEBUSTING"] = cachebuster
    result["RANDOM"] = cachebuster
    result["TIMESTAMP"] = quote(moment.isoformat(timespec="milliseconds"), safe="")
    return result


__all__ = [
    "DEFAULT_MACRO_FORMATS",
    "UNDEFINED_ERROR_CODE",
    "substitute",
    "resolve_url_templates",
    "build_macro_variables",
]
