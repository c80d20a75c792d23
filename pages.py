import os
from typing import Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")
templates = Jinja2Templates(directory=TEMPLATES_DIR)


def home_page(request: Request, error: Optional[str] = None, status_code: int = 200):
    return templates.TemplateResponse(request, "home.html", {"error": error}, status_code=status_code)


def result_page(request: Request, long_url: str, short_url: str):
    return templates.TemplateResponse(request, "result.html",
                                      {"long_url": long_url, "short_url": short_url})
