# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Twisted client for the Amazon EC2 Query API and the Auto Scaling, Elastic
Load Balancing, RDS and STS services that share its wire conventions.
"""

from txec2._version import __version__

__all__ = ["__version__"]
