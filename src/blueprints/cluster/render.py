"""Manifest rendering for add-ons.

Turns a named template plus a value map into structured documents ready to
be handed to a ResourceApplier.
"""

import logging
from pathlib import Path
from typing import Any, Protocol

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, TemplateNotFound

from blueprints.utils.errors import RenderError

logger = logging.getLogger(__name__)

# Template directory containing built-in add-on manifests
_TEMPLATE_DIR = Path(__file__).parent / "templates"


class ManifestRenderer(Protocol):
    """Renders a template reference into structured documents."""

    def render(self, template_ref: str, values: dict[str, Any]) -> list[dict[str, Any]]:
        ...


class TemplateRenderer:
    """Jinja2 based renderer for multi-document YAML templates."""

    def __init__(self, template_dir: Path | None = None):
        """Initialize the renderer.

        Args:
            template_dir: Directory to load templates from (default: built-in templates)
        """
        self.template_dir = Path(template_dir) if template_dir else _TEMPLATE_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def render(self, template_ref: str, values: dict[str, Any]) -> list[dict[str, Any]]:
        """Render a template file into a list of documents.

        Args:
            template_ref: Template file name relative to the template directory
            values: Template variables

        Returns:
            Non-empty documents parsed from the rendered YAML stream

        Raises:
            RenderError: If the template is missing, references an undefined
                value, or renders invalid YAML
        """
        try:
            template = self.env.get_template(template_ref)
        except TemplateNotFound as e:
            raise RenderError(f"Template not found: {template_ref}") from e

        try:
            text = template.render(**values)
        except TemplateError as e:
            raise RenderError(f"Failed to render template {template_ref}: {e}") from e

        documents = load_documents(text, source=template_ref)
        logger.debug(f"Rendered {len(documents)} document(s) from {template_ref}")
        return documents


def load_documents(text: str, source: str = "<string>") -> list[dict[str, Any]]:
    """Parse a YAML stream into its non-empty documents.

    Raises:
        RenderError: If the YAML is invalid or a document is not a mapping
    """
    try:
        documents = [doc for doc in yaml.safe_load_all(text) if doc is not None]
    except yaml.YAMLError as e:
        raise RenderError(f"Invalid YAML in {source}: {e}") from e

    for doc in documents:
        if not isinstance(doc, dict):
            raise RenderError(f"Document in {source} is not a mapping: {doc!r}")
    return documents


def set_path(values: dict[str, Any], path: str, value: Any) -> dict[str, Any]:
    """Set a nested value using a dotted path, creating parents as needed.

    Example:
        >>> values = {}
        >>> set_path(values, "controller.clusterName", "dev")
        {'controller': {'clusterName': 'dev'}}
    """
    keys = path.split(".")
    current = values
    for key in keys[:-1]:
        child = current.get(key)
        if not isinstance(child, dict):
            child = {}
            current[key] = child
        current = child
    current[keys[-1]] = value
    return values


def convert_to_spec(specs: dict[str, list[str]]) -> list[dict[str, Any]]:
    """Convert a label -> allowed values map into scheduling requirements.

    Example:
        >>> convert_to_spec({"node.kubernetes.io/instance-type": ["m5.large"]})
        [{'key': 'node.kubernetes.io/instance-type', 'operator': 'In', 'values': ['m5.large']}]
    """
    return [{"key": key, "operator": "In", "values": list(values)} for key, values in specs.items()]
