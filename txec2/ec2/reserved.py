# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""Reserved instance actions."""

from txec2.client.dispatch import custom, fetch_list
from txec2.client.invoker import action
from txec2.client.parameters import Filter, List, Single
from txec2.ec2.model import ReservedInstance, ReservedInstancesOffering
from txec2.service import EC2


__all__ = ["ReservedInstancesMixin", "RULES"]


_DESCRIBE_RESERVED_INSTANCES = action(
    "DescribeReservedInstances", List("ReservedInstancesId"),
    Single("OfferingType"), Filter(),
    default_key="reserved_instances_id")

_DESCRIBE_RESERVED_INSTANCES_OFFERINGS = action(
    "DescribeReservedInstancesOfferings",
    List("ReservedInstancesOfferingId"), Single("InstanceType"),
    Single("AvailabilityZone"), Single("ProductDescription"),
    Single("InstanceTenancy"), Single("OfferingType"), Single("MaxResults"),
    Filter(),
    default_key="reserved_instances_offering_id",
    aliases={"availability_zone": ("zone",)})

_PURCHASE_RESERVED_INSTANCES_OFFERING = action(
    "PurchaseReservedInstancesOffering",
    Single("ReservedInstancesOfferingId"), Single("InstanceCount"),
    default_key="reserved_instances_offering_id",
    required=("reserved_instances_offering_id",),
    defaults={"instance_count": 1},
    aliases={"instance_count": ("count",)})


def purchased_reserved_instances(root, client):
    """
    Describe the reserved instances bought by a
    C{PurchaseReservedInstancesOffering} request.
    """
    return client.describe_reserved_instances(
        root.findtext("reservedInstancesId"))


RULES = {
    "DescribeReservedInstances": fetch_list(
        "reservedInstancesSet", ReservedInstance),
    "DescribeReservedInstancesOfferings": fetch_list(
        "reservedInstancesOfferingsSet", ReservedInstancesOffering),
    "PurchaseReservedInstancesOffering": custom(
        purchased_reserved_instances),
}


class ReservedInstancesMixin(object):
    """Reserved instance actions of L{EC2Client}."""

    def describe_reserved_instances(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with a list of
            L{ReservedInstance}s.
        """
        return self.call(_DESCRIBE_RESERVED_INSTANCES, args, kwargs, EC2)

    def describe_reserved_instances_offerings(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with a list of
            L{ReservedInstancesOffering}s.
        """
        return self.call(
            _DESCRIBE_RESERVED_INSTANCES_OFFERINGS, args, kwargs, EC2)

    def purchase_reserved_instances_offering(self, *args, **kwargs):
        """
        Buy C{instance_count} (by default one) reserved instances of an
        offering.

        @return: A C{Deferred} that will fire with the list of
            L{ReservedInstance}s purchased.
        """
        return self.call(
            _PURCHASE_RESERVED_INSTANCES_OFFERING, args, kwargs, EC2)
