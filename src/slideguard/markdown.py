"""Extraction of externally referenced image URLs from Markdown."""

import re

# ![alt](url) / ![alt](<url>) / ![alt](url "title"). The alt text is matched
# non-greedily so nested brackets (![a [b] c](url)) are still found, and the
# destination may contain one level of balanced parentheses.
IMAGE_REFERENCE_PATTERN = re.compile(
    r"!\[.*?\]\(\s*(?:<([^>\n]*)>|((?:[^\s()]|\([^\s()]*\))*))"
    r"(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*\)"
)

# [label]: url, indented by at most three spaces
REFERENCE_DEFINITION_PATTERN = re.compile(
    r"^ {0,3}\[([^\]\n]+)\]:[ \t]*(?:<([^>\n]*)>|(\S+))",
    re.MULTILINE,
)

# ![alt][label], ![label][] and ![label]
REFERENCE_IMAGE_PATTERN = re.compile(r"!\[(.*?)\](?!\()(?:\[([^\]\n]*)\])?")

_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def is_local_reference(url: str) -> bool:
    """
    Check whether an image reference stays inside the document bundle.

    Local references are ``data:`` URIs, root-relative paths and relative
    paths. Protocol-relative references (``//host/x.png``) name a remote
    host and are not local.
    """
    if url.lower().startswith("data:"):
        return True
    if url.startswith("//"):
        return False
    if url.startswith("/"):
        return True
    return not _SCHEME.match(url)


def _normalize_label(label: str) -> str:
    return " ".join(label.split()).casefold()


def _reference_definitions(markdown: str) -> dict[str, str]:
    definitions: dict[str, str] = {}
    for match in REFERENCE_DEFINITION_PATTERN.finditer(markdown):
        label = _normalize_label(match.group(1))
        url = match.group(2) if match.group(2) is not None else match.group(3)
        # First definition wins, as in CommonMark
        definitions.setdefault(label, url.strip())
    return definitions


def _candidate_urls(markdown: str):
    """Yield (offset, url) for inline and reference-style images."""
    for match in IMAGE_REFERENCE_PATTERN.finditer(markdown):
        url = match.group(1) if match.group(1) is not None else match.group(2)
        yield match.start(), url.strip()

    definitions = _reference_definitions(markdown)
    if not definitions:
        return
    for match in REFERENCE_IMAGE_PATTERN.finditer(markdown):
        label = match.group(2) or match.group(1)
        url = definitions.get(_normalize_label(label))
        if url is not None:
            yield match.start(), url


def extract_image_urls(markdown: str) -> list[str]:
    """
    Find every remote image URL referenced by ``![...](...)`` syntax or by a
    reference-style image (``![alt][label]`` with a ``[label]: url``
    definition).

    Args:
        markdown: Markdown source of the slide deck

    Returns:
        Distinct remote URLs in order of first appearance
    """
    urls: list[str] = []
    seen: set[str] = set()

    for _, url in sorted(_candidate_urls(markdown), key=lambda item: item[0]):
        if not url or is_local_reference(url):
            continue
        if url not in seen:
            seen.add(url)
            urls.append(url)

    return urls
