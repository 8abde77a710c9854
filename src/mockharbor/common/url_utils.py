"""
MockHarbor URL Utilities

Shared URL parsing and matching utilities for request templates.
"""

import re
from urllib.parse import urlparse, urljoin


class URLMatcher:
    """Handles URL matching logic for template URL expressions."""

    @staticmethod
    def path_and_query(url: str) -> str:
        """
        Strip scheme and host from a URL.

        Args:
            url: Absolute or relative URL

        Returns:
            The path (always starting with '/') plus any query string
        """
        parsed = urlparse(url)
        path = parsed.path or '/'
        if not path.startswith('/'):
            path = '/' + path

        if parsed.query:
            return f"{path}?{parsed.query}"
        return path

    @staticmethod
    def is_bare_path(expression: str) -> bool:
        """Check if a template URL expression carries no scheme or host."""
        # Regex URLs like "https?://api\.x/.*" parse without a scheme
        scheme, separator, _ = expression.partition('://')
        if separator and '/' not in scheme:
            return False
        parsed = urlparse(expression)
        return not parsed.scheme and not parsed.netloc

    @staticmethod
    def urls_match(expression: str, url: str) -> bool:
        """
        Check whether a template URL expression accepts a request URL.

        The expression is tried, in order, as:
        - an exact string
        - a bare path compared with the path and query of the URL
        - a regular expression that must match the whole URL (or, for
          bare path expressions, the whole path and query)

        Args:
            expression: Template URL or URL pattern
            url: Incoming request URL

        Returns:
            True if the expression accepts the URL
        """
        if not expression:
            return False

        if expression == url:
            return True

        bare = URLMatcher.is_bare_path(expression)
        target = URLMatcher.path_and_query(url) if bare else url

        if bare and expression == target:
            return True

        try:
            return re.fullmatch(expression, target) is not None
        except re.error:
            # Not a valid pattern, so only literal equality counts
            return False

    @staticmethod
    def rebase_url(url: str, base_url: str) -> str:
        """
        Move the path and query of a URL onto another base URL.

        Used when relaying an unmatched request to the fallback server.

        Args:
            url: Incoming request URL (typically on localhost)
            base_url: Real server base URL, including scheme

        Returns:
            The rebased absolute URL
        """
        base = base_url if base_url.endswith('/') else base_url + '/'
        return urljoin(base, URLMatcher.path_and_query(url).lstrip('/'))
