import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml
from jinja2 import Template

from ..constants import DEFAULT_PROMPT_SECTIONS

logger = logging.getLogger("ShowScribe.Templates")

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"


def load_template(template_name: str, templates_dir: Optional[Path] = None) -> Tuple[Optional[str], Optional[Path]]:
    """
    Finds and reads a Jinja2 template.
    Looks for templates in showscribe/templates/{template_name}.j2

    Returns:
        Tuple[str, Path]: The content of the template and its path, or (None, None) if not found.
    """
    base_dir = templates_dir or TEMPLATES_DIR
    template_path = base_dir / f"{template_name}.j2"
    if template_path.exists():
        with open(template_path, "r", encoding="utf-8") as f:
            return f.read(), template_path
    return None, None


def load_prompt_sections(templates_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Read the preamble and the instruction/example pairs for every prompt section."""
    path = (templates_dir or TEMPLATES_DIR) / "prompt_sections.yaml"
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def available_sections(templates_dir: Optional[Path] = None) -> List[str]:
    return list(load_prompt_sections(templates_dir).get("sections", {}))


def build_prompt(sections: Optional[Iterable[str]] = None, templates_dir: Optional[Path] = None) -> str:
    """
    Assemble the instruction prompt sent ahead of a transcript.

    All requested sections' instructions come first, then a single
    "Format the output like so:" block with their examples, in the
    order requested. Unknown section names are skipped with a warning.
    """
    requested = list(sections) if sections is not None else list(DEFAULT_PROMPT_SECTIONS)
    data = load_prompt_sections(templates_dir)
    known = data.get("sections", {})

    selected = []
    for name in requested:
        section = known.get(name)
        if section is None:
            logger.warning(f"Unknown prompt section '{name}', skipping")
            continue
        selected.append(section)

    content, path = load_template("prompt", templates_dir)
    if content is None:
        raise FileNotFoundError(f"Prompt template not found in {templates_dir or TEMPLATES_DIR}")

    rendered = Template(content).render(preamble=data.get("preamble", ""), sections=selected)
    logger.debug(f"Built prompt from {path} with sections: {', '.join(requested)}")
    return rendered
