import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

CHECKOUT = "/checkout"
TICKETS = "/tickets"
PAYMENT = "/payment"
BOOKING = "/booking"
ADMIN_SCANNER = "/admin/scanner"
ADMIN_TICKETS = "/admin/tickets"
ADMIN_SCREENINGS = "/admin/screenings"
ADMIN_PRODUCTS = "/admin/products"
ADMIN_SEATS = "/admin/seats"
SCHEDULE = "/schedule"

_listeners: List[Callable[[List[str]], None]] = []


def add_listener(listener: Callable[[List[str]], None]) -> None:
    _listeners.append(listener)


def remove_listener(listener: Callable[[List[str]], None]) -> None:
    if listener in _listeners:
        _listeners.remove(listener)


def revalidate_paths(*paths: str) -> List[str]:
    """Signal that cached pages under `paths` are stale. Returns the paths."""
    stale = list(dict.fromkeys(paths))
    logger.debug("Revalidating %s", ", ".join(stale))
    for listener in list(_listeners):
        try:
            listener(stale)
        except Exception:
            # Listener failures never fail the operation that signalled
            logger.exception("Revalidation listener %r failed", listener)
    return stale
