"""Mobile deep-link URIs of the form ``scheme://path?query``."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode


class DeepLinkCodec:
    """Builds, validates and parses application deep links.

    Deep links are not hierarchical URLs (the "host" is really the first path
    segment), so they are handled as plain strings rather than via urlparse.
    """

    @staticmethod
    def prefix(scheme: str) -> str:
        return f"{scheme}://"

    def build(
        self, scheme: str, path: str, query_params: dict[str, str] | None = None
    ) -> str:
        """Build ``scheme://path`` with an optional query string."""
        uri = self.prefix(scheme) + path.lstrip("/")
        if query_params:
            uri += "?" + urlencode(query_params)
        return uri

    def is_valid(self, uri: str, scheme: str | None) -> bool:
        """True iff ``uri`` starts with ``scheme://``."""
        if not scheme or not uri:
            return False
        return uri.startswith(self.prefix(scheme))

    def parse(self, uri: str, scheme: str | None) -> tuple[str, dict[str, str]]:
        """Split a deep link into its path and query parameters.

        Returns empty results when the scheme does not match. Repeated query
        keys keep their last value.
        """
        if not self.is_valid(uri, scheme):
            return "", {}

        remainder = uri[len(self.prefix(scheme)) :]
        path, _, query = remainder.partition("?")
        return path, dict(parse_qsl(query, keep_blank_values=True))
