"""
Template rendering for generated configuration files
Templates live in the package's templates/ directory
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, PackageLoader, StrictUndefined


class TemplateRenderer:
    """Renders the bundled Jinja2 templates"""

    def __init__(self, environment: Optional[Environment] = None):
        self.environment = environment or Environment(
            loader=PackageLoader("ubuntu_automation", "templates"),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, /, **context: Any) -> str:
        """Render a template by file name"""
        context.setdefault("generated_at", datetime.now().strftime("%Y-%m-%d %H:%M:%S"))
        return self.environment.get_template(template_name).render(**context)

    def write(self, template_name: str, target: Path, /, mode: Optional[int] = None, **context: Any) -> Path:
        """Render a template straight to a file"""
        content = self.render(template_name, **context)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        if mode is not None:
            target.chmod(mode)
        return target
