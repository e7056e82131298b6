# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
The keys requests are signed with, and where they are looked up.

Keys given explicitly win.  Otherwise the AWS environment variables are
consulted, and then the shared credentials file (C{~/.aws/credentials}, or
C{AWS_SHARED_CREDENTIALS_FILE}) under the profile C{AWS_PROFILE} names.
"""

import configparser
import os

import attr

from txec2.exception import CredentialsNotFoundError
from txec2.util import hmac_sha256, hmac_sha1


__all__ = ["AWSCredentials"]


ENV_ACCESS_KEY = "AWS_ACCESS_KEY_ID"
ENV_PROFILE = "AWS_PROFILE"
ENV_SECRET_KEY = "AWS_SECRET_ACCESS_KEY"
ENV_SESSION_TOKEN = "AWS_SESSION_TOKEN"
ENV_SHARED_CREDENTIALS_FILE = "AWS_SHARED_CREDENTIALS_FILE"

_SIGNERS = {"sha256": hmac_sha256, "sha1": hmac_sha1}


@attr.s(init=False)
class AWSCredentials(object):
    """
    An access key and its secret.

    @ivar access_key: The access key ID, sent with every request.
    @ivar secret_key: The secret requests are signed with.
    @ivar session_token: The token of temporary credentials issued by STS,
        sent as C{SecurityToken}; otherwise C{None}.
    """

    access_key = attr.ib()
    secret_key = attr.ib(repr=False)
    session_token = attr.ib(default=None, repr=False)

    def __init__(self, access_key="", secret_key="", environ=os.environ,
                 profile=None, session_token=None):
        """
        @param environ: The environment to look keys up in, L{os.environ}
            by default.
        @param profile: The section of the shared credentials file to read,
            defaulting to C{AWS_PROFILE} or C{"default"}.
        @raise CredentialsNotFoundError: If either key is neither given nor
            found.
        """
        if not (access_key and secret_key):
            found = _from_environment(environ)
            if found is None:
                found = _from_shared_file(environ, profile)
            access_key = access_key or found[0]
            secret_key = secret_key or found[1]
            if session_token is None:
                session_token = found[2]
        self.access_key = access_key
        self.secret_key = secret_key
        self.session_token = session_token

    def sign(self, data, hash_type="sha256"):
        """
        Sign C{data} with the secret key.

        @return: The base64 encoded HMAC of C{data}.
        @raise RuntimeError: For a hash type other than C{"sha256"} and
            C{"sha1"}.
        """
        signer = _SIGNERS.get(hash_type)
        if signer is None:
            raise RuntimeError("Unsupported hash type: '%s'" % hash_type)
        return signer(self.secret_key, data)


def _from_environment(environ):
    access_key = environ.get(ENV_ACCESS_KEY)
    secret_key = environ.get(ENV_SECRET_KEY)
    if not (access_key and secret_key):
        return None
    return access_key, secret_key, environ.get(ENV_SESSION_TOKEN) or None


def _from_shared_file(environ, profile):
    if profile is None:
        profile = environ.get(ENV_PROFILE, "default")
    path = environ.get(
        ENV_SHARED_CREDENTIALS_FILE,
        os.path.expanduser("~/.aws/credentials"))
    parser = configparser.ConfigParser()
    if not parser.read([path]):
        raise CredentialsNotFoundError(
            "Could not find credentials in the environment or at %s" % (
                path,))
    if not parser.has_section(profile):
        raise CredentialsNotFoundError("No such profile %r" % (profile,))
    section = parser[profile]
    for option in ("aws_access_key_id", "aws_secret_access_key"):
        if option not in section:
            raise CredentialsNotFoundError(
                "Profile %r has no %r" % (profile, option))
    return (section["aws_access_key_id"], section["aws_secret_access_key"],
            section.get("aws_session_token"))
