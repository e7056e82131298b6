# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Signed (signature version 2) Query API requests.
"""

from urllib.parse import quote

from twisted.logger import Logger

from txec2 import version
from txec2.client.base import BaseQuery, error_wrapper
from txec2.ec2.exception import EC2Error
from txec2.util import iso8601time


__all__ = ["Query", "Signature", "ec2_error_wrapper"]


def ec2_error_wrapper(error):
    error_wrapper(error, EC2Error)


class Query(BaseQuery):
    """A query that may be submitted to EC2 or any other Query API."""

    _log = Logger()

    timeout = 30

    def __init__(self, other_params=None, time_tuple=None, api_version=None,
                 *args, **kwargs):
        """
        @param other_params: The action's parameters, as a mapping or as a
            sequence of C{(key, value)} pairs.
        @param time_tuple: The time to sign into the request, defaulting to
            now.
        @param api_version: The C{Version} parameter; EC2's by default.
        """
        super(Query, self).__init__(*args, **kwargs)
        if api_version is None:
            api_version = version.ec2_api
        other_params = dict(other_params or ())
        self.params = {
            "Version": api_version,
            "SignatureVersion": "2",
            "Action": self.action,
            "AWSAccessKeyId": self.creds.access_key,
            }
        if self.creds.session_token:
            self.params["SecurityToken"] = self.creds.session_token
        if "Expires" not in other_params:
            # Only add a Timestamp parameter, if Expires isn't used,
            # since both can't be used in the same request.
            self.params["Timestamp"] = iso8601time(time_tuple)
        self.params.update(other_params)
        self.signature = Signature(self.creds, self.endpoint, self.params)

    def sign(self, hash_type="sha256"):
        """Sign this query using its built in credentials.

        @param hash_type: The type of hash to use, either "sha1" or
            "sha256". It defaults to the latter.

        This prepares it to be sent, and should be done as the last step before
        submitting the query. Signing is done automatically - this is a public
        method to facilitate testing.
        """
        self.params["SignatureMethod"] = "Hmac%s" % hash_type.upper()
        self.params["Signature"] = self.signature.compute()

    def submit(self):
        """Submit this query.

        @return: A deferred from get_page
        """
        self.sign()
        url = self.endpoint.get_uri()
        method = self.endpoint.method
        params = self.signature.get_canonical_query_params()
        headers = {}
        postdata = None
        if method == "POST":
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            postdata = params
        else:
            url += "?%s" % params
        if self.endpoint.get_host() != self.endpoint.get_canonical_host():
            headers["Host"] = self.endpoint.get_canonical_host()
        self._log.info(
            u"Submitting query: {action} {method} {host} {version}",
            action=self.action,
            method=method,
            host=self.endpoint.get_canonical_host(),
            version=self.params["Version"],
        )
        d = self.get_page(url, method=method, postdata=postdata,
                          headers=headers)
        return d.addErrback(ec2_error_wrapper)


class Signature(object):
    """Compute EC2-compliant signatures for requests.

    @ivar creds: The L{AWSCredentials} to use to compute the signature.
    @ivar endpoint: The {AWSServiceEndpoint} to consider.
    @ivar params: A C{dict} of parameters to consider.
    """

    def __init__(self, creds, endpoint, params):
        self.creds = creds
        self.endpoint = endpoint
        self.params = params

    def compute(self):
        """Compute and return the signature according to the given data."""
        if "Signature" in self.params:
            raise RuntimeError("Existing signature in parameters")
        signature_version = self.params["SignatureVersion"]
        if signature_version != "2":
            raise RuntimeError(
                "Unsupported SignatureVersion: '%s'" % signature_version)
        hash_type = self.params["SignatureMethod"][len("Hmac"):].lower()
        return self.creds.sign(
            self.signing_text().encode("utf-8"), hash_type)

    def signing_text(self):
        """Return the text to be signed when signing the query."""
        result = "%s\n%s\n%s\n%s" % (self.endpoint.method,
                                     self.endpoint.get_canonical_host(),
                                     self.endpoint.path,
                                     self.get_canonical_query_params())
        return result

    def get_canonical_query_params(self):
        """Return the canonical query params (used in signing)."""
        result = []
        for key, value in self.sorted_params():
            result.append("%s=%s" % (self.encode(key), self.encode(value)))
        return "&".join(result)

    def encode(self, string):
        """Encode a_string as per the canonicalisation encoding rules.

        See the AWS dev reference page 90 (2008-12-01 version).
        @return: a_string encoded.
        """
        return quote(str(string), safe="~")

    def sorted_params(self):
        """Return the query parameters sorted appropriately for signing."""
        return sorted(self.params.items())
