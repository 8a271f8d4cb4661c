from __future__ import annotations

import json

import colorama
import httpx


class CanvifyException(Exception):
    pass


def safe_json(response: httpx.Response) -> dict | list | None:
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def color_text(text: str, color) -> str:
    return color + text + colorama.Style.RESET_ALL
