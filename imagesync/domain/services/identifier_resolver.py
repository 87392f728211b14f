"""Map local filenames and delivery URLs to remote store identifiers.

Local files are named ``<epoch-millis>-<sanitized-name>.<ext>`` while remote
objects are keyed without the timestamp and without the extension. Older
uploads (and restores) were keyed by the full filename instead, so both
conventions are tried, in order, for every file.
"""
from __future__ import annotations

from collections.abc import Callable, Iterator
from urllib.parse import urlparse

CandidateGenerator = Callable[[str], str]


def strip_extension(name: str) -> str:
    """Drop everything from the first ``.`` on: ``a.b.jpg`` -> ``a``."""
    return name.split(".", 1)[0]


def rest_of_name(filename: str) -> str:
    """``1700000000000-cat.jpg`` -> ``cat``."""
    _, sep, rest = filename.partition("-")
    if not sep:
        return ""
    return strip_extension(rest)


def full_filename(filename: str) -> str:
    """``1700000000000-cat.jpg`` -> ``1700000000000-cat``."""
    return strip_extension(filename)


# Order matters: when both objects exist, the timestamp-free id wins.
DEFAULT_GENERATORS: tuple[CandidateGenerator, ...] = (rest_of_name, full_filename)


def candidate_ids(
    filename: str, generators: tuple[CandidateGenerator, ...] = DEFAULT_GENERATORS
) -> Iterator[str]:
    """Yield remote id candidates for a local filename, skipping blanks and repeats."""
    seen: set[str] = set()
    for generate in generators:
        candidate = generate(filename)
        if candidate and candidate not in seen:
            seen.add(candidate)
            yield candidate


def default_public_id(original_name: str) -> str:
    return strip_extension(original_name)


def public_id_from_url(url: str) -> str:
    """Last path segment of a delivery URL without its extension."""
    path = urlparse(url).path or url
    return strip_extension(path.rstrip("/").split("/")[-1])
