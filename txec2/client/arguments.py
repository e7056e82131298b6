# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Normalization of the arguments given to an action method.

Every public action method accepts either bare positional values, which are
stored under the action's default key, or keyword options.  Options may be
spelled in snake_case or in the AWS PascalCase form (C{DBInstanceClass}); both
are canonicalized to snake_case before anything else looks at them.
"""

from collections.abc import Mapping

import attr
from attr import validators

from pyrsistent import pmap

from txec2.client._validators import tuple_of
from txec2.exception import (
    MissingArgumentError, InvalidArgumentCombinationError)
from txec2.util import canonicalize


__all__ = ["Positional", "Named", "ArgumentBag", "ArgumentNormalizer",
           "is_present"]


_string = validators.instance_of(str)


def is_present(value):
    """
    Whether C{value} counts as supplied.

    C{None}, empty strings and empty collections do not; C{0} and C{False}
    do.
    """
    if value is None:
        return False
    if isinstance(value, (str, bytes, list, tuple, set, frozenset, Mapping)):
        return len(value) > 0
    return True


def _freeze_groups(groups):
    return tuple(tuple(group) for group in groups)


def _freeze_aliases(aliases):
    return pmap(dict(
        (canonical, tuple(names)) for canonical, names in aliases.items()))


@attr.s(frozen=True)
class Positional(object):
    """Bare values passed without option names."""
    values = attr.ib(converter=tuple)


@attr.s(frozen=True)
class Named(object):
    """Canonicalized options passed by name."""
    options = attr.ib(converter=pmap)


@attr.s
class ArgumentBag(object):
    """
    The canonical options of a single call.

    A bag is created per call, updated while aliases and defaults are
    resolved, and discarded once the request parameters are encoded.
    """
    _values = attr.ib(default=attr.Factory(dict))

    def __contains__(self, key):
        return self.present(key)

    def present(self, key):
        return is_present(self._values.get(key))

    def get(self, key, default=None):
        value = self._values.get(key)
        if value is None:
            return default
        return value

    def set(self, key, value):
        self._values[key] = value

    def pop(self, key, default=None):
        return self._values.pop(key, default)

    def keys(self):
        return self._values.keys()

    def as_map(self):
        return pmap(self._values)


@attr.s(frozen=True)
class ArgumentNormalizer(object):
    """
    Declares how one action accepts its arguments.

    @ivar action: The AWS action name, used in error messages.
    @ivar default_key: The canonical key bare positional values are stored
        under, or C{None} if the action accepts none.
    @ivar aliases: Mapping from a canonical key to the alternative names it
        may be given as.  If the canonical key is already set it wins;
        otherwise the first alias present, in the declared order, is used.
    @ivar defaults: Values filled in for canonical keys left unset.
    @ivar required: Canonical keys which must be present.
    @ivar exclusive: Groups of canonical keys of which at most one may be
        present.
    @ivar required_any: Groups of canonical keys of which at least one must
        be present.
    """
    action = attr.ib(validator=_string)
    default_key = attr.ib(
        default=None, validator=validators.optional(_string))
    aliases = attr.ib(default=pmap(), converter=_freeze_aliases)
    defaults = attr.ib(default=pmap(), converter=pmap)
    required = attr.ib(
        default=(), converter=tuple, validator=tuple_of(_string))
    exclusive = attr.ib(default=(), converter=_freeze_groups)
    required_any = attr.ib(default=(), converter=_freeze_groups)

    def classify(self, args, kwargs):
        """
        Decide once whether a call passed positional values or named options.

        @return: L{Positional} or L{Named}.
        @raise TypeError: If positional values are given to an action with no
            default key, or together with the default key by name.
        """
        options = dict(
            (canonicalize(name), value) for name, value in kwargs.items())
        if not options:
            if len(args) == 1 and isinstance(args[0], Mapping):
                return Named({"filter": args[0]})
            return Positional(args)
        if args:
            if self.default_key is None:
                raise TypeError(
                    "%s takes no positional arguments" % (self.action,))
            if self.default_key in options:
                raise TypeError("%s got multiple values for %r" % (
                    self.action, self.default_key))
            options[self.default_key] = _collapse(args)
        return Named(options)

    def bag(self, arguments):
        """
        Build the L{ArgumentBag} for classified C{arguments}.
        """
        if isinstance(arguments, Named):
            return ArgumentBag(dict(arguments.options))
        if not arguments.values:
            return ArgumentBag()
        if self.default_key is None:
            raise TypeError(
                "%s takes no positional arguments" % (self.action,))
        return ArgumentBag({self.default_key: _collapse(arguments.values)})

    def resolve_aliases(self, bag):
        for canonical, names in self.aliases.items():
            for name in names:
                value = bag.pop(name)
                if not bag.present(canonical) and is_present(value):
                    bag.set(canonical, value)
        return bag

    def validate(self, bag):
        for key in self.required:
            if not bag.present(key):
                raise MissingArgumentError(self.action, key)
        for group in self.required_any:
            if not any(bag.present(key) for key in group):
                raise MissingArgumentError(self.action, " or ".join(group))
        for group in self.exclusive:
            supplied = [key for key in group if bag.present(key)]
            if len(supplied) > 1:
                raise InvalidArgumentCombinationError(self.action, supplied)
        return bag

    def normalize(self, args=(), kwargs=None):
        """
        Turn the raw arguments of a call into a validated L{ArgumentBag}.

        @raise MissingArgumentError: A required option is absent.
        @raise InvalidArgumentCombinationError: Exclusive options were both
            supplied.
        """
        bag = self.bag(self.classify(args, kwargs or {}))
        self.resolve_aliases(bag)
        for key, value in self.defaults.items():
            if not bag.present(key):
                bag.set(key, value)
        return self.validate(bag)


def _collapse(values):
    if len(values) == 1:
        return values[0]
    return tuple(values)
