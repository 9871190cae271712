"""Template rendering for pipeline configuration and Kubernetes manifests.

Templates use shell-style ``${VAR}`` placeholders, the same form the
blueprint's variables file uses, and must render to valid YAML.
"""

import logging
import os
from pathlib import Path
from string import Template
from typing import Dict, List, Mapping, Optional

import yaml

from modules.exceptions import TemplateRenderError

logger = logging.getLogger(__name__)


def parse_overrides(pairs: List[str]) -> Dict[str, str]:
    """Turn ``KEY=VALUE`` strings (from repeated ``--set``) into a dict.

    Raises:
        TemplateRenderError: If a pair has no ``=`` or an empty key
    """
    overrides: Dict[str, str] = dict()
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise TemplateRenderError(
                f"Invalid override '{pair}', expected KEY=VALUE",
                context={"override": pair},
            )
        overrides[key.strip()] = value
    return overrides


def placeholders(text: str) -> List[str]:
    """List the distinct placeholder names used in a template, in order."""
    names: List[str] = list()
    for match in Template.pattern.finditer(text):
        name = match.group("named") or match.group("braced")
        if name and name not in names:
            names.append(name)
    return names


def render_text(text: str, values: Mapping[str, str], source: str = "<string>") -> str:
    """Substitute placeholders and check the result parses as YAML.

    A placeholder whose value is empty counts as missing.

    Raises:
        TemplateRenderError: If a placeholder has no value or the output is
            not valid YAML
    """
    missing = [name for name in placeholders(text) if not values.get(name)]
    if missing:
        raise TemplateRenderError(
            f"No value for placeholder(s): {', '.join(missing)}",
            context={"template": source},
        )
    try:
        rendered = Template(text).substitute(values)
    except ValueError as e:
        raise TemplateRenderError(
            f"Malformed placeholder: {e}", context={"template": source}
        ) from e
    try:
        list(yaml.safe_load_all(rendered))
    except yaml.YAMLError as e:
        raise TemplateRenderError(
            "Rendered template is not valid YAML",
            context={"template": source, "error": str(e).splitlines()[0]},
        ) from e
    return rendered


def render_template(
    path: str,
    overrides: Optional[Mapping[str, str]] = None,
    environ: Optional[Mapping[str, str]] = None,
    defaults: Optional[Mapping[str, str]] = None,
) -> str:
    """Render a template file from defaults, the environment and explicit overrides.

    Args:
        path: Template file
        overrides: Values that take precedence over the environment
        environ: Environment mapping (default: os.environ)
        defaults: Values used only when neither of the above sets a placeholder

    Returns:
        Rendered text
    """
    template_path = Path(path)
    if not template_path.is_file():
        raise TemplateRenderError(
            f"Template not found: {path}", context={"template": path}
        )
    values: Dict[str, str] = dict(defaults or {})
    environ = os.environ if environ is None else environ
    values.update({k: v for k, v in environ.items() if v})
    values.update(overrides or {})
    logger.debug(f"Rendering {path}")
    return render_text(template_path.read_text(encoding="utf8"), values, str(path))
