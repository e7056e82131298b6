# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Invocation of Query API actions: normalize, encode, submit, dispatch.
"""

import attr

from pyrsistent import pvector

from twisted.logger import Logger

from txec2.client.arguments import ArgumentNormalizer
from txec2.client.base import BaseClient
from txec2.client.dispatch import DispatchTable
from txec2.client.paging import Page
from txec2.client.parameters import Encoding
from txec2.client.query import Query
from txec2.service import EC2


__all__ = ["Action", "action", "QueryClient"]


@attr.s(frozen=True)
class Action(object):
    """
    How one AWS action takes its arguments and encodes its parameters.
    """
    normalizer = attr.ib(validator=attr.validators.instance_of(
        ArgumentNormalizer))
    encoding = attr.ib(default=attr.Factory(Encoding))

    @property
    def name(self):
        return self.normalizer.action

    def prepare(self, args=(), kwargs=None):
        """
        @return: The validated L{ArgumentBag} and the encoded parameters.
        """
        bag = self.normalizer.normalize(args, kwargs)
        return bag, self.encoding.bundle(bag)


def action(name, *parameters, **options):
    """
    Declare an L{Action}.

    @param name: The AWS action name.
    @param parameters: The parameter shapes of its encoding.
    @param options: Passed to L{ArgumentNormalizer}: C{default_key},
        C{aliases}, C{defaults}, C{required}, C{exclusive}, C{required_any}.
    """
    return Action(ArgumentNormalizer(name, **options), Encoding(*parameters))


def _with_parameter(params, name, value):
    return pvector([(key, text) for key, text in params if key != name]
                   + [(name, value)])


class QueryClient(BaseClient):
    """
    A client issuing Query API actions in one or more L{EndpointContext}s.

    @param dispatch_table: The L{DispatchTable} shaping responses, replacing
        the class default.
    """

    _log = Logger()

    dispatch_table = DispatchTable()

    def __init__(self, creds=None, endpoint=None, query_factory=None,
                 reactor=None, dispatch_table=None):
        if query_factory is None:
            query_factory = Query
        super(QueryClient, self).__init__(
            creds=creds, endpoint=endpoint, query_factory=query_factory,
            reactor=reactor)
        if dispatch_table is not None:
            self.dispatch_table = dispatch_table

    def invoke(self, action_name, params=(), context=EC2):
        """
        Submit an action and shape its response.

        @param action_name: The AWS action name.
        @param params: The encoded parameters.
        @param context: The L{EndpointContext} of the issuing service.

        @return: A L{Deferred} firing with the dispatched result.
        """
        endpoint = context.endpoint_for(self.endpoint)
        self._log.debug(
            u"Invoking {action} at {host} (API {version})",
            action=action_name, host=endpoint.get_canonical_host(),
            version=context.version)
        query = self.query_factory(
            action=action_name, creds=self.creds, endpoint=endpoint,
            other_params=params, api_version=context.version,
            reactor=self.reactor)
        d = query.submit()
        d.addCallback(self.dispatch_table.dispatch, action_name, self)
        return d

    def call(self, action, args=(), kwargs=None, context=EC2):
        """
        Normalize and encode the arguments of C{action}, then invoke it.

        Argument errors are raised immediately, before anything is sent.
        """
        _, params = action.prepare(args, kwargs)
        return self.invoke(action.name, params, context)

    def paginate(self, action_name, params=(), context=EC2):
        """
        Invoke a paginated action.

        @return: A L{Deferred} firing with the first L{Page}.
        """
        rule = self.dispatch_table.rule_for(action_name)
        d = self.invoke(action_name, params, context)

        def to_page(result):
            if result.next_token is None:
                return Page(result.items)

            def fetch(token):
                return self.paginate(
                    action_name,
                    _with_parameter(params, rule.cursor_parameter, token),
                    context)

            return Page(result.items, result.next_token, fetch)

        return d.addCallback(to_page)

    def call_paginated(self, action, args=(), kwargs=None, context=EC2):
        _, params = action.prepare(args, kwargs)
        return self.paginate(action.name, params, context)
