# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Security Token Service actions.

STS is not regional: its requests always go to the global STS endpoint.
"""

from txec2.client.dispatch import custom, fetch_one, find_field
from txec2.client.invoker import action
from txec2.client.parameters import Single
from txec2.service import STS
from txec2.sts.model import FederatedUser, TemporaryCredentials


__all__ = ["STSMixin", "RULES"]


_GET_SESSION_TOKEN = action(
    "GetSessionToken", Single("DurationSeconds"), Single("SerialNumber"),
    Single("TokenCode"),
    default_key="duration_seconds",
    aliases={"duration_seconds": ("duration",)})

_GET_FEDERATION_TOKEN = action(
    "GetFederationToken", Single("Name"), Single("Policy"),
    Single("DurationSeconds"),
    default_key="name",
    required=("name",),
    aliases={"duration_seconds": ("duration",)})


def federation_credentials(root, client):
    """
    The credentials of a C{GetFederationToken} response, knowing the
    L{FederatedUser} they were issued to.
    """
    user = find_field(root, "FederatedUser")
    if user is not None:
        user = FederatedUser(user, client)
    return TemporaryCredentials(
        find_field(root, "Credentials"), client, federated_user=user)


RULES = {
    "GetSessionToken": fetch_one("Credentials", TemporaryCredentials),
    "GetFederationToken": custom(federation_credentials),
}


class STSMixin(object):
    """STS actions of L{EC2Client}."""

    def get_session_token(self, *args, **kwargs):
        """
        Get temporary credentials for the calling account.

        @param duration_seconds: Their lifetime.
        @param serial_number: The MFA device, when MFA is required.
        @param token_code: The code shown by the MFA device.
        @return: A C{Deferred} that will fire with L{TemporaryCredentials}.
        """
        return self.call(_GET_SESSION_TOKEN, args, kwargs, STS)

    def get_federation_token(self, *args, **kwargs):
        """
        Get temporary credentials for a federated user.

        @param name: The name of the federated user.
        @param policy: A JSON policy restricting the credentials.
        @return: A C{Deferred} that will fire with L{TemporaryCredentials}.
        """
        return self.call(_GET_FEDERATION_TOKEN, args, kwargs, STS)
