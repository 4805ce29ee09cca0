"""
Template rendering for cookbooks.

Each cookbook ships Jinja2 templates in its own ``templates`` directory.
Rendering is pure: the same variables always give the same text.
"""

from typing import Any

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateNotFound


def environment(cookbook: str) -> Environment:
    """Jinja2 environment loading templates from ``cookplan.cookbooks.<cookbook>``."""
    return Environment(
        loader=PackageLoader(f"cookplan.cookbooks.{cookbook}", "templates"),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )


def render_template(cookbook: str, source: str, **variables: Any) -> str:
    """
    Render a cookbook template.

    Args:
        cookbook: Cookbook name (rsyslog, elasticsearch)
        source: Template path inside the cookbook's templates directory
        **variables: Template variables

    Returns:
        Rendered text

    Raises:
        FileNotFoundError: the template does not exist
    """
    try:
        template = environment(cookbook).get_template(source)
    except TemplateNotFound:
        raise FileNotFoundError(f"Template not found: {cookbook}/{source}") from None

    return template.render(**variables)
