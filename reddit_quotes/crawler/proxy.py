"""Rotating proxy configuration shared by HTTP fetches and browser sessions."""

import itertools
import logging
import threading
from typing import Dict, Iterable, Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


class ProxyConfiguration:
    """Round-robin pool of proxy URLs."""

    def __init__(self, proxy_urls: Iterable[str]):
        self.proxy_urls = [u for u in proxy_urls if u]
        self._cycle = itertools.cycle(self.proxy_urls) if self.proxy_urls else None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, enabled: bool, proxy_urls: Iterable[str]) -> Optional["ProxyConfiguration"]:
        """
        Build a proxy configuration, or None when proxies are disabled.

        Args:
            enabled: Proxy toggle from the run configuration
            proxy_urls: Candidate proxy URLs

        Returns:
            ProxyConfiguration, or None if disabled or no URLs are configured
        """
        urls = [u for u in (proxy_urls or []) if u]
        if not enabled:
            logger.info("Proxy: disabled by configuration")
            return None
        if not urls:
            logger.info("Proxy: enabled but no proxy URLs configured, using direct connections")
            return None
        logger.info(f"Proxy: rotating over {len(urls)} proxy URL(s)")
        return cls(urls)

    def new_url(self) -> Optional[str]:
        """Return the next proxy URL in rotation."""
        if self._cycle is None:
            return None
        with self._lock:
            return next(self._cycle)

    def new_playwright_proxy(self) -> Optional[Dict[str, str]]:
        """Return the next proxy in the shape Playwright's ``new_context(proxy=...)`` expects."""
        url = self.new_url()
        if not url:
            return None

        parts = urlsplit(url)
        server = f"{parts.scheme}://{parts.hostname}"
        if parts.port:
            server = f"{server}:{parts.port}"

        proxy = {"server": server}
        if parts.username:
            proxy["username"] = parts.username
        if parts.password:
            proxy["password"] = parts.password
        return proxy
