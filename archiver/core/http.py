from __future__ import annotations

import requests

from archiver.settings import settings


def build_session(user_agent: str | None = None) -> requests.Session:
    """Session shared by the availability and save calls of one run."""
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent or settings.user_agent})
    return session
