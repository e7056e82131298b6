# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Service endpoints, the per-service endpoint/version contexts, and regions.
"""

import os
import warnings

import attr
from attr import validators

from txec2 import version
from txec2.credentials import AWSCredentials
from txec2.util import parse


__all__ = ["AWSServiceEndpoint", "EndpointContext", "AWSServiceRegion",
           "EC2", "AUTOSCALING", "ELB", "RDS", "STS"]


ENV_EC2_URL = "EC2_URL"

REGION_US_EAST_1 = "us-east-1"
REGION_US_WEST_1 = "us-west-1"
REGION_US_WEST_2 = "us-west-2"
REGION_EU_WEST_1 = "eu-west-1"
REGION_AP_SOUTHEAST_1 = "ap-southeast-1"
REGION_AP_SOUTHEAST_2 = "ap-southeast-2"
REGION_AP_NORTHEAST_1 = "ap-northeast-1"
REGION_SA_EAST_1 = "sa-east-1"

ALL_REGIONS = (
    REGION_US_EAST_1, REGION_US_WEST_1, REGION_US_WEST_2, REGION_EU_WEST_1,
    REGION_AP_SOUTHEAST_1, REGION_AP_SOUTHEAST_2, REGION_AP_NORTHEAST_1,
    REGION_SA_EAST_1,
)

EC2_ENDPOINT = "https://ec2.amazonaws.com/"
EC2_REGION_ENDPOINT = "https://ec2.%s.amazonaws.com/"
STS_ENDPOINT = "https://sts.amazonaws.com/"


def get_ec2_endpoint(region):
    """Return the EC2 endpoint URI for the named region."""
    if region not in ALL_REGIONS:
        raise ValueError("Unknown region: %r" % (region,))
    return EC2_REGION_ENDPOINT % (region,)


class AWSServiceEndpoint(object):
    """
    @param uri: The URL for the service.
    @param method: The HTTP method used when accessing a service.
    @param ssl_hostname_verification: Whether or not SSL hotname verification
        will be done when connecting to the endpoint.
    """

    def __init__(self, uri="", method="GET", ssl_hostname_verification=True):
        self.host = ""
        self.port = None
        self.path = "/"
        self.method = method
        self.ssl_hostname_verification = ssl_hostname_verification
        if not self.ssl_hostname_verification:
            warnings.warn(
                "Operating with certificate verification disabled!",
                stacklevel=2,
            )
        self._parse_uri(uri)
        if not self.scheme:
            self.scheme = "http"

    def _parse_uri(self, uri):
        scheme, host, port, path = parse(str(uri), defaultPort=False)
        self.scheme = scheme
        self.host = host
        self.port = port
        self.path = path

    def __repr__(self):
        return "<%s %s %s>" % (
            self.__class__.__name__, self.method, self.get_uri())

    def copy(self, uri=None):
        """
        Return a new endpoint with the same method and verification policy,
        pointed at C{uri} or at this endpoint's own URI.
        """
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            return AWSServiceEndpoint(
                uri=uri or self.get_uri(), method=self.method,
                ssl_hostname_verification=self.ssl_hostname_verification)

    def set_host(self, host):
        self.host = host

    def get_host(self):
        return self.host

    def get_canonical_host(self):
        """
        Return the canonical host as for the Host HTTP header specification.
        """
        host = self.host.lower()
        if self.port is not None:
            host = "%s:%s" % (host, self.port)
        return host

    def get_uri(self):
        """Get a URL representation of the service."""
        uri = "%s://%s%s" % (self.scheme, self.get_canonical_host(), self.path)
        return uri


@attr.s(frozen=True)
class EndpointContext(object):
    """
    The endpoint and API version used by one service family.

    A context never changes the endpoint it is given; L{endpoint_for}
    builds a fresh endpoint for the duration of a single call.

    @ivar service: The token substituted for C{"ec2"} in the host of the
        client's base endpoint, or C{None} to use the base endpoint as is.
    @ivar version: The API version string sent with every request.
    @ivar uri: A fixed endpoint URI for services which are not regional.
    """
    service = attr.ib(validator=validators.optional(
        validators.instance_of(str)))
    version = attr.ib(validator=validators.instance_of(str))
    uri = attr.ib(default=None, validator=validators.optional(
        validators.instance_of(str)))

    def endpoint_for(self, base):
        """
        @param base: The client's configured L{AWSServiceEndpoint}.
        @return: The L{AWSServiceEndpoint} requests in this context go to.
        """
        if self.uri is not None:
            return base.copy(self.uri)
        endpoint = base.copy()
        if self.service is not None:
            endpoint.set_host(endpoint.get_host().replace(
                "ec2", self.service, 1))
        return endpoint


EC2 = EndpointContext(service=None, version=version.ec2_api)
AUTOSCALING = EndpointContext(
    service="autoscaling", version=version.autoscaling_api)
ELB = EndpointContext(
    service="elasticloadbalancing", version=version.elb_api)
RDS = EndpointContext(service="rds", version=version.rds_api)
STS = EndpointContext(
    service="sts", version=version.sts_api, uri=STS_ENDPOINT)


class AWSServiceRegion(object):
    """
    This object represents a collection of client factories that use the same
    credentials and the same region.

    @param creds: an AWSCredentials instance, optional.
    @param access_key: The access key to use. This is only checked if no creds
        parameter was passed.
    @param secret_key: The secret key to use. This is only checked if no creds
        parameter was passed.
    @param region: The name of the region, e.g. C{"eu-west-1"}.  Ignored when
        C{uri} is given.
    @param uri: An endpoint URI that overrides the region.  When neither is
        given the EC2_URL environment variable is consulted, then the global
        EC2 endpoint is used.
    @param method: The method argument forwarded to L{AWSServiceEndpoint}.
    @param environ: The environment. If unspecified, L{os.environ} is used.
    """
    def __init__(self, creds=None, access_key="", secret_key="",
                 region=None, uri="", method="GET", environ=os.environ):
        if not creds:
            creds = AWSCredentials(access_key, secret_key, environ=environ)
        self.creds = creds
        if not uri and region:
            uri = get_ec2_endpoint(region)
        if not uri:
            uri = environ.get(ENV_EC2_URL) or EC2_ENDPOINT
        self._clients = {}
        self.ec2_endpoint = AWSServiceEndpoint(uri=uri, method=method)

    def get_client(self, cls, purge_cache=False, *args, **kwds):
        """
        This is a general method for getting a client: if present, it is pulled
        from the cache; if not, a new one is instantiated and then put into the
        cache. This method should not be called directly, but rather by other
        client-specific methods (e.g., get_ec2_client).
        """
        key = str(cls) + str(args) + str(sorted(kwds.items()))
        instance = self._clients.get(key)
        if purge_cache or not instance:
            instance = cls(*args, **kwds)
        self._clients[key] = instance
        return instance

    def get_ec2_client(self, creds=None, purge_cache=False):
        from txec2.ec2.client import EC2Client

        if creds:
            self.creds = creds
        return self.get_client(EC2Client, purge_cache, creds=self.creds,
                               endpoint=self.ec2_endpoint)
