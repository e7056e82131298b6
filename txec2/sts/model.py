# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

from txec2.credentials import AWSCredentials
from txec2.model import Generic


class TemporaryCredentials(Generic):
    """
    Temporary security credentials issued by STS.

    @ivar access_key_id: The temporary access key.
    @ivar secret_access_key: Its secret.
    @ivar session_token: The token to send with requests signed by them.
    @ivar federated_user: The L{FederatedUser} the credentials were issued
        to, for C{GetFederationToken}; otherwise C{None}.
    """
    primary_id = "access_key_id"

    def __init__(self, element, client=None, federated_user=None):
        super(TemporaryCredentials, self).__init__(element, client)
        self.federated_user = federated_user

    @property
    def expiration(self):
        return self.get_time("expiration")

    def as_credentials(self):
        """
        @return: L{AWSCredentials} with the temporary key, secret and session
            token, ready to sign requests with.
        """
        return AWSCredentials(
            self.access_key_id, self.secret_access_key,
            session_token=self.session_token)


class FederatedUser(Generic):
    """
    @ivar arn: The ARN of the federated user.
    @ivar federated_user_id: Its account qualified name.
    """
    primary_id = "arn"
