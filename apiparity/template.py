"""
Placeholder substitution for endpoint path templates.

Grammar: a placeholder is `{ident}` where ident matches
[A-Za-z_][A-Za-z0-9_]*. Known placeholders are replaced with the
URL-encoded parameter value; unknown ones are left untouched.
"""

import re
from typing import Any, Dict, List, Mapping
from urllib.parse import quote

PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def placeholders(template: str) -> List[str]:
    """Names of the placeholders in a template, in order of appearance."""
    return PLACEHOLDER_RE.findall(template)


def encode_value(value: Any) -> str:
    # Matches encodeURIComponent: only unreserved marks stay literal.
    return quote(str(value), safe="-_.!~*'()")


def render_path(template: str, params: Mapping[str, Any] | None) -> str:
    if not params:
        return template

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in params:
            return match.group(0)
        return encode_value(params[name])

    return PLACEHOLDER_RE.sub(_replace, template)


def build_url(base: str, platform: str, path: str, params: Dict[str, Any] | None = None) -> str:
    """Return `{base}/{platform}/{filled path}`."""
    filled = render_path(path, params).lstrip("/")
    return f"{base.rstrip('/')}/{platform}/{filled}"
