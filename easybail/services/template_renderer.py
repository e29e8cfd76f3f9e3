"""Placeholder substitution for email templates."""

import logging
from typing import Any, Dict

from jinja2 import DebugUndefined, Environment, TemplateSyntaxError, meta

from easybail.errors import TemplateRenderError

log = logging.getLogger(__name__)


def _blank_none(value: Any) -> Any:
    return "" if value is None else value


# Values are inserted verbatim. DebugUndefined prints unknown placeholders
# back as-is.
_env = Environment(
    autoescape=False,
    undefined=DebugUndefined,
    finalize=_blank_none,
    keep_trailing_newline=True
)


def render_template(text: str, data: Dict[str, Any]) -> str:
    """
    Replace ``{{name}}`` placeholders with values from ``data``.

    Known keys with a None value render as an empty string. Unknown
    placeholders are left in the output (as ``{{ name }}``) and logged so a
    broken template is visible rather than silently blanked. Invalid template
    syntax raises TemplateRenderError.
    """
    try:
        parsed = _env.parse(text)
        rendered = _env.from_string(parsed).render(**data)
    except TemplateSyntaxError as e:
        raise TemplateRenderError(f"Invalid email template (line {e.lineno}): {e.message}") from e

    leftovers = sorted(meta.find_undeclared_variables(parsed) - set(data))
    if leftovers:
        log.warning(f"Template variables without value: {leftovers}")
    return rendered
