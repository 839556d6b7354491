"""Parser for the portal home page."""

from __future__ import annotations

import logging
from typing import Any

from bs4 import BeautifulSoup

from .base import ResponseParser

_LOGGER = logging.getLogger(__name__)

# Icon classes of the master status link, most specific first.
_LEVEL_CLASSES = (
    ("icon-alarm-total", "on"),
    ("icon-alarm-on", "on"),
    ("icon-alarm-partial", "half"),
    ("icon-alarm-half", "half"),
    ("icon-alarm-off", "off"),
)


class HomeParser(ResponseParser):
    """Read the alarm level and the site name shown on the home page."""

    def __init__(self) -> None:
        """Initialise with nothing found."""

        super().__init__()
        self.alarm_level: str | None = None
        self.site_name: str | None = None
        self.status_classes: list[str] = []

    def parse(self, body: str) -> None:
        soup = BeautifulSoup(body, "html.parser")

        for span in soup.select("div#masterStatus > a > span.icon"):
            classes = span.get("class") or []
            self.status_classes.extend(classes)
        for css_class, level in _LEVEL_CLASSES:
            if css_class in self.status_classes:
                self.alarm_level = level
                break
        if self.status_classes and self.alarm_level is None:
            _LOGGER.debug("Unknown master status classes: %s", self.status_classes)

        site = soup.select_one("div#userPanel span.site > a")
        if site is not None:
            self.site_name = site.get_text(" ", strip=True) or None

    def result(self) -> dict[str, Any]:
        return {"alarm_level": self.alarm_level, "site_name": self.site_name}


__all__ = ["HomeParser"]
