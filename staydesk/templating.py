from pathlib import Path

from fastapi.templating import Jinja2Templates
from jinja2 import Environment, FileSystemLoader, select_autoescape
from .config import settings
from .services.currency import format_amount

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

def money_filter(amount: int, currency_code: str | None = None) -> str:
    """A Jinja2 filter rendering an amount in the configured (or given) currency."""
    return format_amount(amount, currency_code or settings.CURRENCY)

# Plain-text email templates must not be HTML-escaped
_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
    keep_trailing_newline=True,
)

# Create a single, shared Jinja2Templates instance
templates = Jinja2Templates(env=_env)
# Add the custom filter to the environment
templates.env.filters["money"] = money_filter
