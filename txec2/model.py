# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Base class of the result objects built from AWS responses.
"""

from dateutil.parser import parse as parse_timestamp

from txec2.util import canonicalize


__all__ = ["Generic", "tag_set"]


_LIST_ITEMS = ("item", "member")


def _elements(element):
    return [child for child in element if isinstance(child.tag, str)]


def _is_list(element, children):
    """
    Whether C{element} holds a list: EC2 C{*Set} elements and C{item} or
    C{member} children, or the Query API style of named entries
    (C{<Subnets><Subnet>...}) and repeated entries.
    """
    first = children[0].tag
    if element.tag.endswith("Set") or first in _LIST_ITEMS:
        return True
    if element.tag in (first + "s", first + "es"):
        return True
    return len(children) > 1 and all(c.tag == first for c in children)


def tag_set(element):
    """
    Read an EC2 C{tagSet} (or Query API C{Tags}) element into a dict.
    """
    tags = {}
    if element is None:
        return tags
    for item in _elements(element):
        key = item.findtext("key") or item.findtext("Key")
        if key is not None:
            tags[key] = item.findtext("value") or item.findtext("Value")
    return tags


class Generic(object):
    """
    A result object backed by an element of an AWS response.

    The element's children are exposed as snake_case attributes:
    C{<dnsName>} as C{dns_name}, C{<DBInstanceIdentifier>} as
    C{db_instance_identifier}.  Leaf elements give their text, list elements
    (those holding C{item} or C{member} children, or named C{*Set}) give a
    list, and other elements give a nested L{Generic}.  Attributes for
    elements absent from the response raise L{AttributeError}; use L{get} for
    optional fields.

    @ivar element: The response element.
    @ivar client: The client that issued the request, used by result objects
        which can refresh themselves or act on the resource.
    """

    #: The field naming the resource, used for C{repr} and C{str}.
    primary_id = None

    def __init__(self, element, client=None):
        self.element = element
        self.client = client
        self._children = None

    @classmethod
    def from_element(cls, element, client=None):
        return cls(element, client)

    def __repr__(self):
        identifier = self.get(self.primary_id) if self.primary_id else None
        if identifier is None:
            return "<%s>" % (self.__class__.__name__,)
        return "<%s %s>" % (self.__class__.__name__, identifier)

    def __str__(self):
        if self.primary_id:
            identifier = self.get(self.primary_id)
            if identifier is not None:
                return identifier
        return repr(self)

    def __eq__(self, other):
        if not isinstance(other, Generic) or self.primary_id is None:
            return NotImplemented
        return (type(self) is type(other)
                and self.get(self.primary_id) == other.get(other.primary_id))

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        if self.primary_id is None:
            return id(self)
        return hash((type(self), self.get(self.primary_id)))

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        child = self._child(name)
        if child is None:
            raise AttributeError(
                "%s has no field %r" % (self.__class__.__name__, name))
        return self._convert(child)

    def _child(self, name):
        if self._children is None:
            self._children = dict(
                (canonicalize(child.tag), child)
                for child in _elements(self.element))
        return self._children.get(name)

    def _convert(self, child):
        children = _elements(child)
        if not children:
            if child.tag.endswith("Set"):
                return []
            return child.text
        if _is_list(child, children):
            return [self._convert_item(item) for item in children]
        return Generic(child, self.client)

    def _convert_item(self, item):
        if _elements(item):
            return Generic(item, self.client)
        return item.text

    def get(self, name, default=None):
        """
        The field C{name}, or C{default} if the response does not have it.
        """
        child = self._child(name)
        if child is None:
            return default
        return self._convert(child)

    def get_time(self, name):
        """
        The timestamp field C{name} as a L{datetime}, or C{None}.
        """
        text = self.get(name)
        if not text:
            return None
        return parse_timestamp(text)

    def fields(self):
        """The snake_case names of the fields present."""
        self._child(None)
        return sorted(self._children)

    @property
    def tags(self):
        """The resource tags, as a dict."""
        element = self._child("tag_set")
        if element is None:
            element = self._child("tags")
        if element is None:
            element = self._child("tag_list")
        return tag_set(element)
