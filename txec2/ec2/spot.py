# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Spot instance actions: price history, requests and the data feed.
"""

from txec2.client.dispatch import (
    boolean, fetch_list, fetch_list_iterator, fetch_one)
from txec2.client.invoker import action
from txec2.client.parameters import (
    Base64, BlockDeviceMapping, Boolean, Filter, List, NetworkInterface,
    Prefix, Single)
from txec2.ec2.model import (
    SpotDatafeedSubscription, SpotInstanceRequest, SpotPriceHistory)
from txec2.service import EC2


__all__ = ["SpotMixin", "RULES"]


_LAUNCH_SPECIFICATION = Prefix("LaunchSpecification", fields=(
    Single("ImageId"), Single("KeyName"),
    List("SecurityGroup", key="security_group"),
    List("SecurityGroupId", key="security_group_id"),
    Base64("UserData"), Single("InstanceType"),
    Prefix("Placement", fields=(
        Single("AvailabilityZone"), Single("GroupName"))),
    Single("KernelId"), Single("RamdiskId"), BlockDeviceMapping(),
    Boolean("Monitoring.Enabled", key="monitoring_enabled"),
    Single("SubnetId"), NetworkInterface(),
    Single("IamInstanceProfile.Arn", key="iam_instance_profile_arn"),
    Single("IamInstanceProfile.Name", key="iam_instance_profile_name"),
    Boolean("EbsOptimized")))

_DESCRIBE_SPOT_PRICE_HISTORY = action(
    "DescribeSpotPriceHistory", Single("StartTime"), Single("EndTime"),
    List("InstanceType"), List("ProductDescription"),
    Single("AvailabilityZone"), Single("MaxResults"), Filter(),
    aliases={
        "instance_type": ("instance_types",),
        "product_description": ("product_descriptions",),
        "availability_zone": ("zone",),
    })

_REQUEST_SPOT_INSTANCES = action(
    "RequestSpotInstances", Single("SpotPrice"), Single("InstanceCount"),
    Single("Type"), Single("ValidFrom"), Single("ValidUntil"),
    Single("LaunchGroup"), Single("AvailabilityZoneGroup"),
    _LAUNCH_SPECIFICATION,
    required=("spot_price", "image_id"),
    aliases={
        "instance_count": ("count",),
        "security_group": ("security_groups",),
        "security_group_id": ("security_group_ids",),
        "availability_zone": ("zone", "placement_zone"),
        "group_name": ("placement_group",),
        "monitoring_enabled": ("monitoring",),
        "block_device_mapping": ("block_devices",),
        "network_interface": ("network_interfaces",),
        "iam_instance_profile_arn": ("iam_arn",),
        "iam_instance_profile_name": ("iam_name",),
    },
    exclusive=(("network_interface", "subnet_id"),))

_DESCRIBE_SPOT_INSTANCE_REQUESTS = action(
    "DescribeSpotInstanceRequests", List("SpotInstanceRequestId"),
    Filter(), default_key="spot_instance_request_id")

_CANCEL_SPOT_INSTANCE_REQUESTS = action(
    "CancelSpotInstanceRequests", List("SpotInstanceRequestId"),
    default_key="spot_instance_request_id",
    required=("spot_instance_request_id",))

_CREATE_SPOT_DATAFEED_SUBSCRIPTION = action(
    "CreateSpotDatafeedSubscription", Single("Bucket"), Single("Prefix"),
    default_key="bucket", required=("bucket",))

_DESCRIBE_SPOT_DATAFEED_SUBSCRIPTION = action(
    "DescribeSpotDatafeedSubscription")

_DELETE_SPOT_DATAFEED_SUBSCRIPTION = action(
    "DeleteSpotDatafeedSubscription")


RULES = {
    "DescribeSpotPriceHistory": fetch_list_iterator(
        "spotPriceHistorySet", SpotPriceHistory),
    "RequestSpotInstances": fetch_list(
        "spotInstanceRequestSet", SpotInstanceRequest),
    "DescribeSpotInstanceRequests": fetch_list(
        "spotInstanceRequestSet", SpotInstanceRequest),
    "CancelSpotInstanceRequests": fetch_list(
        "spotInstanceRequestSet", SpotInstanceRequest),
    "CreateSpotDatafeedSubscription": fetch_one(
        "spotDatafeedSubscription", SpotDatafeedSubscription),
    "DescribeSpotDatafeedSubscription": fetch_one(
        "spotDatafeedSubscription", SpotDatafeedSubscription),
    "DeleteSpotDatafeedSubscription": boolean(),
}


class SpotMixin(object):
    """Spot instance actions of L{EC2Client}."""

    def describe_spot_price_history(self, *args, **kwargs):
        """
        Fetch spot price history, a page at a time.

        @param start_time: A C{datetime} or ISO 8601 string.
        @param end_time: A C{datetime} or ISO 8601 string.
        @param max_results: The page size.
        @return: A C{Deferred} that will fire with the first L{Page} of
            L{SpotPriceHistory} entries; call its C{next_page} for more.
        """
        return self.call_paginated(
            _DESCRIBE_SPOT_PRICE_HISTORY, args, kwargs, EC2)

    def request_spot_instances(self, *args, **kwargs):
        """
        Request spot instances at C{spot_price}.

        The launch specification options (C{image_id}, C{instance_type},
        C{key_name}, C{security_group}, C{availability_zone} and so on) are
        accepted with the same names as for C{run_instances}.

        @return: A C{Deferred} that will fire with a list of
            L{SpotInstanceRequest}s.
        """
        return self.call(_REQUEST_SPOT_INSTANCES, args, kwargs, EC2)

    def describe_spot_instance_requests(self, *args, **kwargs):
        return self.call(_DESCRIBE_SPOT_INSTANCE_REQUESTS, args, kwargs, EC2)

    def cancel_spot_instance_requests(self, *args, **kwargs):
        """
        Cancel spot requests.  Instances already launched for them keep
        running.
        """
        return self.call(_CANCEL_SPOT_INSTANCE_REQUESTS, args, kwargs, EC2)

    def create_spot_datafeed_subscription(self, *args, **kwargs):
        return self.call(
            _CREATE_SPOT_DATAFEED_SUBSCRIPTION, args, kwargs, EC2)

    def describe_spot_datafeed_subscription(self):
        return self.call(_DESCRIBE_SPOT_DATAFEED_SUBSCRIPTION, context=EC2)

    def delete_spot_datafeed_subscription(self):
        return self.call(_DELETE_SPOT_DATAFEED_SUBSCRIPTION, context=EC2)
