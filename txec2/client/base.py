# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
HTTP plumbing shared by every Query API request: the agent a request is made
with, the collection of the response body and the translation of error
responses into L{AWSError}s.
"""

import os
from io import BytesIO
from urllib.parse import urlparse

from lxml.etree import XMLSyntaxError

from zope.interface import implementer

from twisted.internet.defer import Deferred, fail
from twisted.internet.endpoints import TCP4ClientEndpoint
from twisted.internet.protocol import Protocol
from twisted.internet.ssl import CertificateOptions
from twisted.python.failure import Failure
from twisted.web import http
from twisted.web.client import (
    Agent, FileBodyProducer, ProxyAgent, ResponseDone)
from twisted.web.error import Error as TwistedWebError
from twisted.web.http import PotentialDataLoss
from twisted.web.http_headers import Headers
from twisted.web.iweb import IPolicyForHTTPS, UNKNOWN_LENGTH

from txec2.credentials import AWSCredentials
from txec2.exception import AWSResponseParseError
from txec2.service import AWSServiceEndpoint
from txec2.util import parse


def error_wrapper(error, error_class):
    """
    Translate the failure of a request into the error callers should see.

    Responses with a 4xx or 5xx status whose body is an AWS error document
    become C{error_class}; with any other body they stay L{TwistedWebError}s.
    A 2xx status reported as an error gives its message back.  Failures
    which are not HTTP errors at all are re-raised untouched.
    """
    if not error.check(TwistedWebError):
        error.raiseException()
    web_error = error.value
    status = int(web_error.status) if web_error.status else 0
    if 200 <= status < 300:
        return str(web_error)
    if status < 400 or not web_error.response:
        error.raiseException()
    try:
        aws_error = error_class(
            web_error.response, web_error.status, str(web_error),
            web_error.response)
    except (XMLSyntaxError, AWSResponseParseError):
        raise TwistedWebError(
            status, http.RESPONSES.get(status), web_error.response)
    raise aws_error


class BaseClient(object):
    """
    The credentials and endpoint requests are made with.

    @param creds: The L{AWSCredentials}, looked up in the environment when
        not given.
    @param endpoint: The L{AWSServiceEndpoint} of the client's region.
    @param query_factory: A callable building the query object for one
        request.
    @param reactor: The reactor timed polls run on; the global reactor when
        C{None}.
    """
    def __init__(self, creds=None, endpoint=None, query_factory=None,
                 reactor=None):
        self.creds = creds if creds is not None else AWSCredentials()
        self.endpoint = (
            endpoint if endpoint is not None else AWSServiceEndpoint())
        self.query_factory = query_factory
        self._reactor = reactor

    @property
    def reactor(self):
        if self._reactor is None:
            from twisted.internet import reactor
            self._reactor = reactor
        return self._reactor


class StreamingError(Exception):
    """
    The response body was longer or shorter than its C{Content-Length}.
    """


class StreamingBodyReceiver(Protocol):
    """
    Collect a response body in memory.

    @ivar finished: A L{Deferred} fired with the body once the connection
        closes, or failed with L{StreamingError} if the body was cut short.
    @ivar content_length: The announced length, or L{UNKNOWN_LENGTH}.
    """
    finished = None
    content_length = None

    def __init__(self):
        self._buffer = BytesIO()

    def _received(self):
        return self._buffer.tell()

    def dataReceived(self, data):
        if (self.content_length is not UNKNOWN_LENGTH
                and self._received() > self.content_length):
            self.transport.loseConnection()
            raise StreamingError(
                "Received more than the %d bytes announced"
                % (self.content_length,))
        self._buffer.write(data)

    def connectionLost(self, reason):
        reason.trap(ResponseDone, PotentialDataLoss)
        finished, self.finished = self.finished, None
        if (self.content_length is UNKNOWN_LENGTH
                or self._received() == self.content_length):
            finished.callback(self._buffer.getvalue())
        else:
            finished.errback(Failure(StreamingError(
                "Connection lost after %d of %d bytes"
                % (self._received(), self.content_length))))


@implementer(IPolicyForHTTPS)
class _UnverifiedPolicyForHTTPS(object):
    """
    TLS policy for endpoints configured without certificate verification.
    """

    def creatorForNetloc(self, hostname, port):
        return CertificateOptions(verify=False)


def _get_agent(scheme, host, reactor, verify=True):
    """
    The agent for a request: through the proxy C{http_proxy} or
    C{https_proxy} names, if set, and otherwise direct.
    """
    proxy = os.environ.get("%s_proxy" % (scheme,))
    if proxy:
        proxy_url = urlparse(proxy)
        return ProxyAgent(TCP4ClientEndpoint(
            reactor, proxy_url.hostname, proxy_url.port))
    if scheme == "https" and not verify:
        return Agent(reactor, _UnverifiedPolicyForHTTPS())
    return Agent(reactor)


class BaseQuery(object):
    """
    A single HTTP exchange with an AWS endpoint.

    @ivar status: The status of the response, once it has arrived.
    @ivar timeout: Seconds after which an outstanding request is cancelled,
        or C{None} to wait indefinitely.
    """

    timeout = None

    def __init__(self, action=None, creds=None, endpoint=None, reactor=None):
        if not action:
            raise TypeError("The query requires an action parameter.")
        self.action = action
        self.creds = creds
        self.endpoint = endpoint
        if reactor is None:
            from twisted.internet import reactor
        self.reactor = reactor
        self.request_headers = None
        self.response_headers = None
        self.status = None

    def get_page(self, url, method="GET", postdata=None, headers=None):
        """
        Issue the request.

        @return: A L{Deferred} firing with the response body, or failing
            with L{TwistedWebError} for an error status.
        """
        scheme, host = parse(url)[:2]
        self.request_headers = Headers(
            dict((name, [value]) for name, value in (headers or {}).items()))
        producer = None
        if postdata is not None:
            producer = FileBodyProducer(BytesIO(postdata.encode("utf-8")))
        agent = _get_agent(
            scheme, host, self.reactor,
            verify=self.endpoint.ssl_hostname_verification)
        d = agent.request(
            method.encode("ascii"), url.encode("utf-8"),
            self.request_headers, producer)
        if self.timeout:
            d.addTimeout(self.timeout, self.reactor)
        return d.addCallback(self._handle_response)

    def _raw_headers(self, headers):
        if headers is None:
            return None
        return dict(
            (name, values[0]) for name, values in headers.getAllRawHeaders())

    def get_request_headers(self):
        """The headers sent with the request, for debugging."""
        return self._raw_headers(self.request_headers)

    def get_response_headers(self):
        return self._raw_headers(self.response_headers)

    def _handle_response(self, response):
        self.status = response.code
        self.response_headers = response.headers
        receiver = StreamingBodyReceiver()
        receiver.finished = d = Deferred()
        receiver.content_length = response.length
        response.deliverBody(receiver)
        if response.code >= 400:
            d.addCallback(lambda body: fail(Failure(
                TwistedWebError(response.code, response=body))))
        return d
