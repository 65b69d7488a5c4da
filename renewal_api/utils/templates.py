"""
Jinja2 templates for the HTML diagnostic pages.

Templates live in ``renewal_api/templates`` and are autoescaped, so values
coming back from QuickBooks or Resend are safe to render as-is.
"""

from pathlib import Path

from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
