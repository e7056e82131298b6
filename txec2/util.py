"""
Helpers shared by every service family: request signing digests, timestamps,
URL splitting, response parsing and the mapping between AWS parameter names
and Python option names.
"""

from base64 import b64encode
from hashlib import sha1, sha256
import hmac
import re
import time
from urllib.parse import urlparse, urlunparse

from lxml import etree


__all__ = ["hmac_sha1", "hmac_sha256", "iso8601time", "XML", "parse",
           "canonicalize", "camel_case"]


_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])|([A-Z]+)([A-Z][a-z])")


def _to_bytes(value):
    if isinstance(value, str):
        return value.encode("utf-8")
    return value


def hmac_sha1(secret, data):
    digest = hmac.new(_to_bytes(secret), _to_bytes(data), sha1).digest()
    return b64encode(digest).decode("ascii")


def hmac_sha256(secret, data):
    digest = hmac.new(_to_bytes(secret), _to_bytes(data), sha256).digest()
    return b64encode(digest).decode("ascii")


def iso8601time(time_tuple):
    """
    The C{Timestamp} of a request: C{time_tuple}, or the current UTC time when
    it is C{None}, in ISO 8601 form.
    """
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time_tuple or time.gmtime())


def _strip_namespace(tag):
    if "}" in tag:
        tag = tag.split("}", 1)[1]
    return tag


def XML(text):
    """
    Parse an AWS response document into an L{lxml.etree} element.

    Namespaces are stripped from every tag, so that callers can use plain
    paths such as C{"reservationSet/item"} regardless of the API version the
    document was produced for.

    @raise lxml.etree.XMLSyntaxError: If C{text} is not well-formed.
    """
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    root = etree.fromstring(_to_bytes(text), parser)
    for element in root.iter(tag=etree.Element):
        element.tag = _strip_namespace(element.tag)
    etree.cleanup_namespaces(root)
    return root


def canonicalize(name):
    """
    Turn an option name into the snake_case form used as a canonical key.

    C{"DBInstanceIdentifier"}, C{"-db_instance_identifier"} and
    C{"db_instance_identifier"} all become C{"db_instance_identifier"}.
    """
    name = name.lstrip("-")
    if "_" in name or name.islower():
        return name.lower()

    def split(match):
        if match.group(1):
            return match.group(1) + "_" + match.group(2)
        return match.group(3) + "_" + match.group(4)

    return _CAMEL_BOUNDARY.sub(split, name).lower()


def camel_case(name, upper=False):
    """
    Turn a snake_case attribute name into the camelCase (EC2) or
    PascalCase (Query APIs) element name.
    """
    words = name.split("_")
    head = words[0].capitalize() if upper else words[0]
    return head + "".join(word.capitalize() for word in words[1:])


def parse(url, defaultPort=True):
    """
    Split an endpoint URL into its scheme, host, port and path.

    @param defaultPort: Whether to fill in 443 or 80, by scheme, when the URL
        names no port.
    @return: A C{(scheme, host, port, path)} tuple; the path keeps any query
        string, and the port is an C{int} or C{None}.
    """
    parsed = urlparse(url.strip())
    host, _, port = parsed.netloc.partition(":")
    port = int(port) if port.isdigit() else None
    if port is None and defaultPort:
        port = 443 if parsed.scheme == "https" else 80
    path = urlunparse(("", "") + parsed[2:]) or "/"
    return (parsed.scheme, host, port, path)
