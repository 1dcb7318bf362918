"""requests transport adapters that rewrite outgoing URLs."""

from typing import Any
from urllib.parse import urlsplit, urlunsplit

from requests import PreparedRequest, Response
from requests.adapters import HTTPAdapter


class RewritingAdapter(HTTPAdapter):
    """HTTP adapter that rewrites each request URL before sending it.

    Subclasses implement :meth:`rewrite`. When ``verify_ssl`` is False the
    adapter also skips certificate verification for the hosts it is mounted
    on.
    """

    def __init__(self, verify_ssl: bool = True, **kwargs: Any) -> None:
        self.verify_ssl = verify_ssl
        super().__init__(**kwargs)

    def rewrite(self, path: str, query: str) -> tuple[str, str]:
        raise NotImplementedError

    def send(self, request: PreparedRequest, **kwargs: Any) -> Response:
        scheme, netloc, path, query, fragment = urlsplit(request.url or "")
        new_path, new_query = self.rewrite(path, query)
        if (new_path, new_query) != (path, query):
            request.url = urlunsplit((scheme, netloc, new_path, new_query, fragment))
        return super().send(request, **kwargs)

    def cert_verify(self, conn: Any, url: str, verify: Any, cert: Any | None) -> None:
        if not self.verify_ssl:
            verify = False
        super().cert_verify(conn, url, verify=verify, cert=cert)
