"""Template Engine: renders structured data into plain-text message bodies.

Each vertical registers its own renderer functions under a template name;
the engine dispatches on that name. Rendering is deterministic and never
touches the network, so a failed render is always a programming or data
error and is reported as TemplateRenderError.
"""

from typing import Any, Callable, Dict, Iterable, Optional


class TemplateRenderError(Exception):
    """A template is missing or could not render its context."""


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def fmt_text(value: Optional[str], default: str = "N/A") -> str:
    """Return *value*, or *default* when it is empty."""
    if value is None or not str(value).strip():
        return default
    return str(value)


def fmt_list(values: Optional[Iterable[str]], sep: str = ", ", default: str = "N/A") -> str:
    """Join non-empty values."""
    if not values:
        return default
    joined = sep.join(v for v in values if v)
    return joined or default


def fmt_field(label: str, value: Optional[str], default: str = "N/A") -> str:
    return f"{label}: {fmt_text(value, default)}"


# ---------------------------------------------------------------------------
# Renderer type and registry
# ---------------------------------------------------------------------------

TemplateRenderer = Callable[[Dict[str, Any]], str]

_TEMPLATES: Dict[str, TemplateRenderer] = {}


def register_template(name: str, renderer: TemplateRenderer) -> None:
    """Register a renderer under *name*.

    Example::

        def render_reserves(context):
            return "\\n".join(...)

        register_template("reserves.txt", render_reserves)
    """
    _TEMPLATES[name] = renderer


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class TemplateEngine:
    """Renders registered templates.

    Usage::

        body = TemplateEngine.render("reserves.txt", {"request": ..., "items": [...]})
    """

    @staticmethod
    def render(name: str, context: Dict[str, Any]) -> str:
        renderer = _TEMPLATES.get(name)
        if renderer is None:
            raise TemplateRenderError(f"no template registered as {name}")
        try:
            return renderer(context)
        except (KeyError, AttributeError, TypeError, ValueError) as exc:
            raise TemplateRenderError(f"unable to render {name}: {exc}") from exc
