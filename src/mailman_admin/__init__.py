"""mailman_admin package.

Client for the Mailman 2 HTML admin interface (no API): login, member roster
(including per-letter pages), mass subscribe/unsubscribe and address change.

Entry point: `mailman-admin` (console script).
"""

from .client import AdminClient, TokenFetcher
from .http_session import TransportError
from .layout import PageLayout, load_layout

__all__ = [
    "AdminClient",
    "PageLayout",
    "TokenFetcher",
    "TransportError",
    "load_layout",
]
