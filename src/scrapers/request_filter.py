# src/scrapers/request_filter.py

"""Allow/deny predicate for outgoing browser requests."""

from collections.abc import Callable, Iterable

from src.config.settings import Settings

RequestPredicate = Callable[[str, str], bool]


def build_request_filter(
    block_images: bool = True,
    blocked_urls: Iterable[str] | None = None,
    blocked_types: Iterable[str] | None = None,
) -> RequestPredicate:
    """Build a predicate returning True for requests that may proceed.

    Requests to ad/tracking hosts and non-essential resource types are
    denied. Images are denied unless *block_images* is False.
    """
    url_exclusions = tuple(
        Settings.BLOCKED_URL_SUBSTRINGS if blocked_urls is None
        else blocked_urls
    )
    type_exclusions = set(
        Settings.BLOCKED_RESOURCE_TYPES if blocked_types is None
        else blocked_types
    )
    if block_images:
        type_exclusions.add("image")

    def allow(url: str, resource_type: str) -> bool:
        if resource_type in type_exclusions:
            return False
        return not any(excluded in url for excluded in url_exclusions)

    return allow
