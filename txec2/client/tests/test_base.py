"""
Tests for L{txec2.client.base}.
"""

import os

import attr

from twisted.internet.defer import succeed
from twisted.internet.error import ConnectionRefusedError
from twisted.python.failure import Failure
from twisted.web.client import Agent, ProxyAgent, ResponseDone
from twisted.web.error import Error as TwistedWebError
from twisted.web.http_headers import Headers

from txec2.client import base
from txec2.client.base import (
    BaseClient, BaseQuery, StreamingBodyReceiver, StreamingError,
    error_wrapper)
from txec2.credentials import AWSCredentials
from txec2.ec2.exception import EC2Error
from txec2.service import AWSServiceEndpoint
from txec2.testing import payload
from txec2.testing.base import TXEC2TestCase


class ErrorWrapperTestCase(TXEC2TestCase):

    def test_204_no_content(self):
        failure = Failure(TwistedWebError(204, b"No content"))
        self.assertEquals(
            error_wrapper(failure, EC2Error), str(failure.value))

    def test_302_found(self):
        failure = Failure(TwistedWebError(302, b"Found"))
        error = self.assertRaises(
            TwistedWebError, error_wrapper, failure, EC2Error)
        self.assertNotIsInstance(error, EC2Error)

    def test_aws_error(self):
        failure = Failure(TwistedWebError(
            400, b"Bad Request",
            payload.sample_ec2_error_message.encode("utf-8")))
        error = self.assertRaises(EC2Error, error_wrapper, failure, EC2Error)
        self.assertEquals(error.get_error_codes(), "Error.Code")

    def test_unparseable_body(self):
        failure = Failure(TwistedWebError(503, b"Unavailable", b"not xml"))
        error = self.assertRaises(
            TwistedWebError, error_wrapper, failure, EC2Error)
        self.assertNotIsInstance(error, EC2Error)
        self.assertEquals(error.response, b"not xml")

    def test_html_body(self):
        failure = Failure(TwistedWebError(
            502, b"Bad Gateway", b"<html><body>Bad gateway</body></html>"))
        error = self.assertRaises(
            TwistedWebError, error_wrapper, failure, EC2Error)
        self.assertNotIsInstance(error, EC2Error)

    def test_empty_body(self):
        failure = Failure(TwistedWebError(500, b"Internal Server Error", b""))
        self.assertRaises(TwistedWebError, error_wrapper, failure, EC2Error)

    def test_other_errors_reraised(self):
        failure = Failure(ConnectionRefusedError("refused"))
        self.assertRaises(
            ConnectionRefusedError, error_wrapper, failure, EC2Error)


class BaseClientTestCase(TXEC2TestCase):

    def test_creation(self):
        client = BaseClient("creds", "endpoint", "query factory", "reactor")
        self.assertEquals(client.creds, "creds")
        self.assertEquals(client.endpoint, "endpoint")
        self.assertEquals(client.query_factory, "query factory")
        self.assertEquals(client.reactor, "reactor")

    def test_defaults(self):
        os.environ["AWS_ACCESS_KEY_ID"] = "foo"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "bar"
        client = BaseClient()
        self.assertEquals(client.creds, AWSCredentials("foo", "bar"))
        self.assertIsInstance(client.endpoint, AWSServiceEndpoint)

    def test_global_reactor(self):
        from twisted.internet import reactor
        client = BaseClient(AWSCredentials("foo", "bar"))
        self.assertIdentical(client.reactor, reactor)


class StreamingBodyReceiverTestCase(TXEC2TestCase):

    def test_readback(self):
        results = []

        class Finished(object):
            def callback(self, data):
                results.append(data)

        receiver = StreamingBodyReceiver()
        receiver.finished = Finished()
        receiver.content_length = 6
        receiver.dataReceived(b"abc")
        receiver.dataReceived(b"def")
        receiver.connectionLost(Failure(ResponseDone()))
        self.assertEquals(results, [b"abcdef"])

    def test_short_body(self):
        failures = []

        class Finished(object):
            def errback(self, failure):
                failures.append(failure)

        receiver = StreamingBodyReceiver()
        receiver.finished = Finished()
        receiver.content_length = 10
        receiver.dataReceived(b"abc")
        receiver.connectionLost(Failure(ResponseDone()))
        self.assertEquals(len(failures), 1)
        failures[0].trap(StreamingError)


@attr.s
class FakeResponse(object):
    code = attr.ib()
    body = attr.ib()
    headers = attr.ib(default=attr.Factory(Headers))

    @property
    def length(self):
        return len(self.body)

    def deliverBody(self, protocol):
        protocol.dataReceived(self.body)
        protocol.connectionLost(Failure(ResponseDone()))


@attr.s
class FakeAgent(object):
    response = attr.ib()
    requests = attr.ib(default=attr.Factory(list))

    def request(self, method, uri, headers=None, bodyProducer=None):
        self.requests.append((method, uri, headers, bodyProducer))
        return succeed(self.response)


class BaseQueryTestCase(TXEC2TestCase):

    def setUp(self):
        super(BaseQueryTestCase, self).setUp()
        self.endpoint = AWSServiceEndpoint("http://endpoint/")

    def use_agent(self, response):
        agent = FakeAgent(response)
        self.patch(
            base, "_get_agent",
            lambda scheme, host, reactor, verify=True: agent)
        return agent

    def test_creation(self):
        query = BaseQuery("an action", "creds", "http://endpoint")
        self.assertEquals(query.action, "an action")
        self.assertEquals(query.creds, "creds")
        self.assertEquals(query.endpoint, "http://endpoint")

    def test_init_requires_action(self):
        self.assertRaises(TypeError, BaseQuery)

    def test_get_page(self):
        agent = self.use_agent(FakeResponse(200, b"0123456789"))
        query = BaseQuery("an action", "creds", self.endpoint)
        d = query.get_page("http://endpoint/?Action=Foo")
        d.addCallback(self.assertEquals, b"0123456789")

        def check_request(ignored):
            [(method, uri, headers, producer)] = agent.requests
            self.assertEquals(method, b"GET")
            self.assertEquals(uri, b"http://endpoint/?Action=Foo")
            self.assertIdentical(producer, None)
            self.assertEquals(query.status, 200)
        return d.addCallback(check_request)

    def test_post_body(self):
        agent = self.use_agent(FakeResponse(200, b""))
        query = BaseQuery("an action", "creds", self.endpoint)
        d = query.get_page(
            "http://endpoint/", method="POST", postdata="Action=Foo",
            headers={"Content-Type": "application/x-www-form-urlencoded"})

        def check_request(ignored):
            [(method, uri, headers, producer)] = agent.requests
            self.assertEquals(method, b"POST")
            self.assertIsNot(producer, None)
            self.assertEquals(
                headers.getRawHeaders(b"content-type"),
                [b"application/x-www-form-urlencoded"])
        return d.addCallback(check_request)

    def test_error_status(self):
        self.use_agent(FakeResponse(
            400, payload.sample_ec2_error_message.encode("utf-8")))
        query = BaseQuery("an action", "creds", self.endpoint)
        d = query.get_page("http://endpoint/")
        self.assertFailure(d, TwistedWebError)

        def check_error(error):
            self.assertEquals(
                error.response,
                payload.sample_ec2_error_message.encode("utf-8"))
        return d.addCallback(check_error)

    def test_no_headers_before_request(self):
        query = BaseQuery("an action", "creds", self.endpoint)
        self.assertEquals(query.get_request_headers(), None)
        self.assertEquals(query.get_response_headers(), None)


class GetAgentTestCase(TXEC2TestCase):

    def test_agent(self):
        os.environ.pop("https_proxy", None)
        from twisted.internet import reactor
        agent = base._get_agent("https", "ec2.amazonaws.com", reactor)
        self.assertIsInstance(agent, Agent)

    def test_unverified_agent(self):
        os.environ.pop("https_proxy", None)
        from twisted.internet import reactor
        agent = base._get_agent(
            "https", "ec2.amazonaws.com", reactor, verify=False)
        self.assertIsInstance(agent, Agent)

    def test_proxy(self):
        os.environ["http_proxy"] = "http://proxy.example.com:3128"
        from twisted.internet import reactor
        agent = base._get_agent("http", "ec2.amazonaws.com", reactor)
        self.assertIsInstance(agent, ProxyAgent)
