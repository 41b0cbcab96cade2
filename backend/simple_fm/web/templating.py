"""
Jinja2 environment for the server-rendered pages
"""
from pathlib import Path
from typing import Optional

from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def format_grams(value: Optional[int]) -> str:
    """1234 -> "1,234 g" """
    if value is None:
        return "–"
    return f"{value:,} g"


def format_eur(value: Optional[float]) -> str:
    if value is None:
        return "–"
    return f"{value:.2f} €"


def text_color_for(color_hex: Optional[str]) -> str:
    """Black or white text, whichever reads better on the swatch."""
    if not color_hex:
        return "#000000"
    r, g, b = (int(color_hex[i:i + 2], 16) for i in (1, 3, 5))
    luminance = 0.299 * r + 0.587 * g + 0.114 * b
    return "#000000" if luminance > 150 else "#ffffff"


templates.env.filters["grams"] = format_grams
templates.env.filters["eur"] = format_eur
templates.env.filters["text_color"] = text_color_for
