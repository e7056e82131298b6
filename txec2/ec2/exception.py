# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

from txec2.exception import AWSError


class EC2Error(AWSError):
    """
    An error response from EC2 or from one of the services reached through
    an L{EC2Client}.
    """
