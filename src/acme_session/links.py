"""Parsing of ``Link`` response headers (RFC 8288).

Each link value has the shape ``<absolute-url>; rel="relation"`` with
optional extra parameters, which are ignored. The HTTP stack folds
repeated ``Link`` headers into a single comma separated value, so a header
is first split into link values with `split_links`, and every value is
then parsed on its own with `parse_link`.

"""
import logging
from typing import Dict
from typing import Iterable
from typing import List
from typing import Tuple
from urllib.parse import urlsplit

from acme_session import errors

logger = logging.getLogger(__name__)


def split_links(header: str) -> List[str]:
    """Split a header value into link values on top-level commas.

    Commas inside ``<...>`` or inside quoted strings do not separate
    links. Empty values are dropped.

    """
    values = []
    current: List[str] = []
    in_url = in_quotes = False
    for char in header:
        if char == '"' and not in_url:
            in_quotes = not in_quotes
        elif char == '<' and not in_quotes:
            in_url = True
        elif char == '>' and not in_quotes:
            in_url = False
        elif char == ',' and not in_url and not in_quotes:
            values.append(''.join(current))
            current = []
            continue
        current.append(char)
    values.append(''.join(current))
    return [value.strip() for value in values if value.strip()]


def parse_link(value: str) -> Tuple[str, str]:
    """Parse a single link value.

    :param str value: Link value, e.g. ``<https://example.com/1>; rel="up"``.

    :returns: ``(relation, url)`` pair.
    :rtype: tuple

    :raises .LinkFormatError: if the URL segment is not an absolute URL in
        angle brackets, or if no non-empty ``rel`` parameter is present.

    """
    # The URL may itself contain ';', so cut it off at the closing bracket.
    target, closed, params = value.strip().partition('>')
    if not target.startswith('<') or not closed:
        raise errors.LinkFormatError(value, 'URL must be enclosed in angle brackets')
    segments = params.split(';')
    if segments[0].strip():
        raise errors.LinkFormatError(value, 'unexpected text after URL')
    url = target[1:].strip()
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise errors.LinkFormatError(value, 'URL {0!r} is not absolute'.format(url))

    for segment in segments[1:]:
        param = segment.strip()
        if param.lower().startswith('rel='):
            relation = param[len('rel='):].strip().strip('"').strip()
            if not relation:
                raise errors.LinkFormatError(value, 'empty rel parameter')
            return relation, url
    raise errors.LinkFormatError(value, 'missing rel parameter')


def parse_links(headers: Iterable[str]) -> Dict[str, List[str]]:
    """Group all links found in ``headers`` by relation.

    URLs of one relation keep the order in which they appear.

    """
    links: Dict[str, List[str]] = {}
    for header in headers:
        for value in split_links(header):
            relation, url = parse_link(value)
            logger.debug('Found %s link: %s', relation, url)
            links.setdefault(relation, []).append(url)
    return links
