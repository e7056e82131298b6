"""
Tests for L{txec2.client.query}.
"""

from twisted.internet.defer import fail, succeed
from twisted.python.failure import Failure
from twisted.web.error import Error as TwistedWebError

from txec2 import version
from txec2.client.query import Query, Signature
from txec2.credentials import AWSCredentials
from txec2.ec2.exception import EC2Error
from txec2.service import AWSServiceEndpoint
from txec2.testing import payload
from txec2.testing.base import TXEC2TestCase
from txec2.util import hmac_sha1, hmac_sha256


class QueryTestCase(TXEC2TestCase):

    def setUp(self):
        super(QueryTestCase, self).setUp()
        self.creds = AWSCredentials("foo", "bar")
        self.endpoint = AWSServiceEndpoint(
            uri="https://ec2.us-east-1.amazonaws.com/")
        self.time_tuple = (2009, 8, 17, 13, 14, 15, 0, 229, 0)

    def make_query(self, other_params=None, endpoint=None, **kwargs):
        return Query(
            action="DescribeInstances", creds=self.creds,
            endpoint=endpoint or self.endpoint, other_params=other_params,
            time_tuple=self.time_tuple, **kwargs)

    def capture_page(self, query, result=None):
        calls = []

        def get_page(url, method="GET", postdata=None, headers=None):
            calls.append((url, method, postdata, headers))
            if result is not None:
                return result
            return succeed(payload.sample_describe_instances_empty_result)
        self.patch(query, "get_page", get_page)
        return calls

    def test_init_minimum(self):
        query = self.make_query()
        self.assertEquals(
            query.params,
            {"AWSAccessKeyId": "foo",
             "SignatureVersion": "2",
             "Timestamp": "2009-08-17T13:14:15Z",
             "Version": version.ec2_api,
             "Action": "DescribeInstances"})

    def test_session_token(self):
        """
        Temporary credentials send their session token as C{SecurityToken}.
        """
        self.creds = AWSCredentials("foo", "bar", session_token="token")
        query = self.make_query()
        self.assertEquals(query.params["SecurityToken"], "token")

    def test_init_requires_action(self):
        self.assertRaises(TypeError, Query)

    def test_api_version(self):
        query = self.make_query(api_version=version.elb_api)
        self.assertEquals(query.params["Version"], version.elb_api)

    def test_init_other_args_are_params(self):
        query = self.make_query(
            other_params={"InstanceId.1": "i-1234"})
        self.assertEquals(query.params["InstanceId.1"], "i-1234")

    def test_other_params_as_pairs(self):
        query = self.make_query(
            other_params=[("InstanceId.1", "i-1"), ("InstanceId.2", "i-2")])
        self.assertEquals(query.params["InstanceId.1"], "i-1")
        self.assertEquals(query.params["InstanceId.2"], "i-2")

    def test_no_timestamp_if_expires_in_other_params(self):
        """
        If Expires is present in other_params, Timestamp won't be added,
        since AWS requires that just one of them is present.
        """
        query = self.make_query(
            other_params={"Expires": "2009-08-17T13:19:15Z"})
        self.assertEquals(query.params["Expires"], "2009-08-17T13:19:15Z")
        self.assertNotIn("Timestamp", query.params)

    def test_sign(self):
        query = self.make_query()
        expected = self.make_query()
        expected.params["SignatureMethod"] = "HmacSHA256"
        text = expected.signature.signing_text()
        query.sign()
        self.assertEquals(query.params["SignatureMethod"], "HmacSHA256")
        self.assertEquals(
            query.params["Signature"],
            hmac_sha256("bar", text.encode("utf-8")))

    def test_sign_sha1(self):
        query = self.make_query()
        expected = self.make_query()
        expected.params["SignatureMethod"] = "HmacSHA1"
        text = expected.signature.signing_text()
        query.sign(hash_type="sha1")
        self.assertEquals(query.params["SignatureMethod"], "HmacSHA1")
        self.assertEquals(
            query.params["Signature"], hmac_sha1("bar", text.encode("utf-8")))

    def test_unsupported_sign(self):
        query = self.make_query(other_params={"SignatureVersion": "1"})
        self.assertRaises(RuntimeError, query.sign)

    def test_sign_twice(self):
        query = self.make_query()
        query.sign()
        self.assertRaises(RuntimeError, query.sign)

    def test_submit_get(self):
        query = self.make_query(other_params={"InstanceId.1": "i-1234"})
        calls = self.capture_page(query)
        d = query.submit()

        def check(body):
            self.assertEquals(
                body, payload.sample_describe_instances_empty_result)
            [(url, method, postdata, headers)] = calls
            prefix = "https://ec2.us-east-1.amazonaws.com/?"
            self.assertTrue(url.startswith(prefix))
            self.assertEquals(
                url[len(prefix):],
                query.signature.get_canonical_query_params())
            self.assertIn("Action=DescribeInstances", url)
            self.assertIn("InstanceId.1=i-1234", url)
            self.assertIn("Signature=", url)
            self.assertEquals(method, "GET")
            self.assertIdentical(postdata, None)
            self.assertEquals(headers, {})
        return d.addCallback(check)

    def test_submit_post(self):
        endpoint = AWSServiceEndpoint(
            uri="https://ec2.us-east-1.amazonaws.com/", method="POST")
        query = self.make_query(endpoint=endpoint)
        calls = self.capture_page(query)
        d = query.submit()

        def check(ignored):
            [(url, method, postdata, headers)] = calls
            self.assertEquals(url, "https://ec2.us-east-1.amazonaws.com/")
            self.assertEquals(method, "POST")
            self.assertEquals(
                postdata, query.signature.get_canonical_query_params())
            self.assertEquals(
                headers,
                {"Content-Type": "application/x-www-form-urlencoded"})
        return d.addCallback(check)

    def test_submit_with_port(self):
        """
        A non-standard port is part of the signed host and is sent in the
        C{Host} header.
        """
        endpoint = AWSServiceEndpoint(
            uri="http://nova.example.com:8773/services/Cloud")
        query = self.make_query(endpoint=endpoint)
        calls = self.capture_page(query)
        d = query.submit()

        def check(ignored):
            [(url, method, postdata, headers)] = calls
            self.assertTrue(url.startswith(
                "http://nova.example.com:8773/services/Cloud?"))
            self.assertEquals(headers, {"Host": "nova.example.com:8773"})
            self.assertTrue(query.signature.signing_text().startswith(
                "GET\nnova.example.com:8773\n/services/Cloud\n"))
        return d.addCallback(check)

    def test_submit_error(self):
        """
        An error status carrying an EC2 error document fails with
        L{EC2Error}.
        """
        query = self.make_query()
        error = TwistedWebError(
            400, b"Bad Request",
            payload.sample_ec2_error_message.encode("utf-8"))
        self.capture_page(query, fail(Failure(error)))
        d = query.submit()
        self.assertFailure(d, EC2Error)

        def check(error):
            self.assertEquals(error.get_error_codes(), "Error.Code")
            self.assertEquals(
                error.request_id, "0ef9fc37-6230-4d81-b2e6-1b36277d4247")
        return d.addCallback(check)


class SignatureTestCase(TXEC2TestCase):

    def setUp(self):
        super(SignatureTestCase, self).setUp()
        self.creds = AWSCredentials("foo", "bar")
        self.endpoint = AWSServiceEndpoint(
            uri="https://ec2.us-east-1.amazonaws.com/")
        self.params = {}

    def test_encode_unreserved(self):
        all_unreserved = ("ABCDEFGHIJKLMNOPQRSTUVWXYZ"
                          "abcdefghijklmnopqrstuvwxyz0123456789-_.~")
        signature = Signature(self.creds, self.endpoint, self.params)
        self.assertEquals(all_unreserved, signature.encode(all_unreserved))

    def test_encode_space(self):
        """This may be just 'url encode', but the AWS manual isn't clear."""
        signature = Signature(self.creds, self.endpoint, self.params)
        self.assertEquals("a%20space", signature.encode("a space"))

    def test_encode_slash(self):
        signature = Signature(self.creds, self.endpoint, self.params)
        self.assertEquals("a%2Fb", signature.encode("a/b"))

    def test_encode_unicode(self):
        signature = Signature(self.creds, self.endpoint, self.params)
        self.assertEquals("%C3%A9", signature.encode(u"\xe9"))

    def test_canonical_query_params(self):
        self.params.update({"b": "x y", "a": "1", "B": "2"})
        signature = Signature(self.creds, self.endpoint, self.params)
        self.assertEquals(
            signature.get_canonical_query_params(), "B=2&a=1&b=x%20y")

    def test_signing_text(self):
        self.params.update({"Action": "DescribeRegions", "Version": "1"})
        signature = Signature(self.creds, self.endpoint, self.params)
        self.assertEquals(
            signature.signing_text(),
            "GET\nec2.us-east-1.amazonaws.com\n/\n"
            "Action=DescribeRegions&Version=1")
