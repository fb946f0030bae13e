# backend/tutorhub/services/template_service.py
"""
Template Service for the TutorHub platform

Renders the Jinja2 email templates under tutorhub/templates.
"""

from datetime import datetime
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from ..core.config import settings
from ..core.constants import BRAND_NAME
from ..core.exceptions import ServiceException

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


class TemplateService:
    """Jinja2 environment with the platform's common filters and context."""

    def __init__(self, template_dir: Optional[Path] = None):
        self.env = Environment(
            loader=FileSystemLoader(template_dir or TEMPLATE_DIR),
            autoescape=True,  # Enable autoescaping for security
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._register_custom_filters()

    def _register_custom_filters(self) -> None:
        def format_date(value: datetime, format_str: str = "%A, %B %d, %Y") -> str:
            if isinstance(value, str):
                return value  # Already formatted
            return value.strftime(format_str)

        def format_time(value: datetime, format_str: str = "%H:%M") -> str:
            if isinstance(value, str):
                return value
            return value.strftime(format_str)

        self.env.filters["format_date"] = format_date
        self.env.filters["format_time"] = format_time

    def get_common_context(self) -> Dict[str, Any]:
        return {
            "brand_name": BRAND_NAME,
            "frontend_url": settings.frontend_url,
            "current_year": datetime.now().year,
        }

    def render_template(self, template_name: str, context: Optional[Dict[str, Any]] = None) -> str:
        """
        Render a template with the common context merged in.

        Raises:
            TemplateNotFound: If the template doesn't exist
            ServiceException: If rendering fails for any other reason
        """
        full_context = {**self.get_common_context(), **(context or {})}
        try:
            template = self.env.get_template(template_name)
            return template.render(**full_context)
        except TemplateNotFound:
            logger.error(f"Template not found: {template_name}")
            raise
        except Exception as e:
            logger.error(f"Error rendering template {template_name}: {str(e)}")
            raise ServiceException(f"Template rendering failed: {str(e)}")
