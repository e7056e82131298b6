# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Shaping of parsed responses into the values returned by action methods.

Each action has at most one L{DispatchRule}.  Rules are collected in an
immutable L{DispatchTable}; a client holds one table for its lifetime.
"""

import attr
from attr import validators

from constantly import Names, NamedConstant

from pyrsistent import pmap

from twisted.logger import Logger

from txec2.util import XML


__all__ = ["RuleKind", "DispatchRule", "DispatchTable", "PageResult",
           "boolean", "fetch_one", "fetch_list", "fetch_list_iterator",
           "custom", "member_values", "find_field"]


class RuleKind(Names):
    """
    The ways a response can be turned into a return value.
    """
    BOOLEAN = NamedConstant()
    FETCH_ONE = NamedConstant()
    FETCH_LIST = NamedConstant()
    FETCH_LIST_ITERATOR = NamedConstant()
    CUSTOM = NamedConstant()


def find_field(root, path):
    """
    Find C{path} directly below the response root or below its C{*Result}
    wrapper element, which the non-EC2 Query APIs add.

    @return: The element, or C{None}.
    """
    element = root.find(path)
    if element is not None:
        return element
    for wrapper in root:
        if isinstance(wrapper.tag, str) and wrapper.tag.endswith("Result"):
            element = wrapper.find(path)
            if element is not None:
                return element
    return None


def _elements(container):
    return [child for child in container if isinstance(child.tag, str)]


@attr.s(frozen=True)
class PageResult(object):
    """
    The items of one page and the cursor for the next, or C{None}.
    """
    items = attr.ib()
    next_token = attr.ib(default=None)


@attr.s(frozen=True)
class DispatchRule(object):
    """
    @ivar kind: A L{RuleKind}.
    @ivar tag: The path of the result field in the response.
    @ivar result_type: The class whose C{from_element(element, client)}
        builds a result object.
    @ivar cursor: The response field holding the pagination cursor.
    @ivar transform: For L{RuleKind.CUSTOM}, a function of the response root
        and the client.
    """
    kind = attr.ib(validator=validators.in_(list(RuleKind.iterconstants())))
    tag = attr.ib(default=None)
    result_type = attr.ib(default=None)
    cursor = attr.ib(default=None)
    transform = attr.ib(default=None)

    @property
    def cursor_parameter(self):
        """
        The request parameter a cursor is sent back as: C{nextToken} in a
        response is sent as C{NextToken}, C{Marker} as C{Marker}.
        """
        if self.cursor is None:
            return None
        return self.cursor[0].upper() + self.cursor[1:]

    def apply(self, root, client):
        if self.kind is RuleKind.BOOLEAN:
            element = find_field(root, self.tag or "return")
            if element is None:
                return True
            return (element.text or "").strip().lower() == "true"
        if self.kind is RuleKind.FETCH_ONE:
            element = root if self.tag is None else find_field(root, self.tag)
            if element is None:
                return None
            return self.result_type.from_element(element, client)
        if self.kind is RuleKind.FETCH_LIST:
            return self._items(root, client)
        if self.kind is RuleKind.FETCH_LIST_ITERATOR:
            token = find_field(root, self.cursor)
            if token is not None:
                token = (token.text or "").strip() or None
            return PageResult(self._items(root, client), token)
        return self.transform(root, client)

    def _items(self, root, client):
        container = find_field(root, self.tag)
        if container is None:
            return []
        return [self.result_type.from_element(child, client)
                for child in _elements(container)]


def boolean(tag=None):
    """
    The action succeeded; its C{return} field (or C{tag}) says whether it
    took effect.  A response without the field means C{True}.
    """
    return DispatchRule(RuleKind.BOOLEAN, tag=tag)


def fetch_one(tag, result_type):
    """
    Wrap the single field C{tag} (the whole response if C{None}).
    """
    return DispatchRule(RuleKind.FETCH_ONE, tag=tag, result_type=result_type)


def fetch_list(tag, result_type):
    """
    Wrap each element below the list field C{tag}.
    """
    return DispatchRule(RuleKind.FETCH_LIST, tag=tag, result_type=result_type)


def fetch_list_iterator(tag, result_type, cursor="nextToken"):
    """
    Like L{fetch_list}, also capturing the pagination cursor.
    """
    return DispatchRule(
        RuleKind.FETCH_LIST_ITERATOR, tag=tag, result_type=result_type,
        cursor=cursor)


def custom(transform):
    """
    Shape the response with C{transform(root, client)}, which may return a
    Deferred.
    """
    return DispatchRule(RuleKind.CUSTOM, transform=transform)


@attr.s(frozen=True)
class DispatchTable(object):
    """
    An immutable mapping of action names to L{DispatchRule}s.

    Actions without a rule dispatch to the parsed response tree itself.
    """
    _log = Logger()

    _rules = attr.ib(default=pmap(), converter=pmap)

    @classmethod
    def from_rules(cls, *mappings):
        rules = pmap()
        for mapping in mappings:
            rules = rules.update(mapping)
        return cls(rules)

    def with_rules(self, rules):
        """
        Return a new table with C{rules} added or overriding existing ones.
        """
        return DispatchTable(self._rules.update(rules))

    def __contains__(self, action):
        return action in self._rules

    def actions(self):
        return set(self._rules.keys())

    def rule_for(self, action):
        return self._rules.get(action)

    def dispatch(self, body, action, client):
        """
        Parse the response C{body} and shape it for C{action}.
        """
        root = XML(body)
        rule = self.rule_for(action)
        if rule is None:
            self._log.debug(
                u"No dispatch rule for {action}, returning the response tree",
                action=action)
            return root
        return rule.apply(root, client)


def member_values(root, tag, field=None):
    """
    The text of each element below the list field C{tag}, or of the
    C{field} child of each element, e.g. C{Instances/member/InstanceId}.
    """
    container = find_field(root, tag)
    if container is None:
        return []
    if field is None:
        return [(child.text or "").strip() for child in _elements(container)]
    return [child.findtext(field) for child in _elements(container)]
