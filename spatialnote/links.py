"""Client for the remote quick-link registry.

The registry keeps the user's custom links in one list:
``GET /api/links`` returns it and ``POST /api/links`` replaces it. It is
optional; every failure is logged and the caller keeps its local copy.
"""

import logging
from typing import Dict, List, Optional, Any

import requests

from spatialnote.settings import get_links_url

logger = logging.getLogger(__name__)


class LinkRegistry:
    """Best-effort HTTP client for the link registry"""

    def __init__(self, base_url: Optional[str] = None, timeout: float = 5.0,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url if base_url is not None else get_links_url() or "").rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.base_url}/api/links"

    def fetch(self) -> List[Dict[str, Any]]:
        """
        Get the registry's link list

        Returns:
            list: link dicts ({'id', 'name', 'url'}), empty on any failure
        """
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            links = response.json()
        except (requests.RequestException, ValueError):
            logger.exception("Failed to load links from %s", self.url)
            return []

        if not isinstance(links, list):
            logger.warning("Link registry returned %s, expected a list", type(links).__name__)
            return []
        return links

    def publish(self, links: List[Dict[str, Any]]) -> bool:
        """Replace the registry's list; True when the server confirmed."""
        try:
            response = self.session.post(self.url, json=links, timeout=self.timeout)
            response.raise_for_status()
            return bool(response.json().get("success"))
        except (requests.RequestException, ValueError, AttributeError):
            logger.exception("Failed to sync links to %s", self.url)
            return False
