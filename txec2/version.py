# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""API versions pinned by each service family."""

from txec2._version import __version__

txec2 = __version__.public()
ec2_api = "2014-06-15"
autoscaling_api = "2011-01-01"
elb_api = "2012-06-01"
rds_api = "2013-02-12"
sts_api = "2011-06-15"
