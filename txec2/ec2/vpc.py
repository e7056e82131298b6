# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
VPC, subnet and VPC peering connection actions.

These are EC2 actions and go to the EC2 endpoint with the EC2 API version.
"""

from txec2.client.dispatch import boolean, custom, fetch_list, fetch_one
from txec2.client.invoker import action
from txec2.client.parameters import Filter, List, Single, Value
from txec2.ec2.model import VPC, Subnet, VPCPeeringConnection
from txec2.service import EC2


__all__ = ["VPCMixin", "RULES"]


_DESCRIBE_VPCS = action(
    "DescribeVpcs", List("VpcId"), Filter(), default_key="vpc_id")

_CREATE_VPC = action(
    "CreateVpc", Single("CidrBlock"), Single("InstanceTenancy"),
    default_key="cidr_block", required=("cidr_block",),
    aliases={"instance_tenancy": ("tenancy",)})

_DELETE_VPC = action(
    "DeleteVpc", Single("VpcId"),
    default_key="vpc_id", required=("vpc_id",))

_DESCRIBE_VPC_ATTRIBUTE = action(
    "DescribeVpcAttribute", Single("VpcId"), Single("Attribute"),
    required=("vpc_id", "attribute"))

_MODIFY_VPC_ATTRIBUTE = action(
    "ModifyVpcAttribute", Single("VpcId"), Value("EnableDnsSupport"),
    Value("EnableDnsHostnames"),
    required=("vpc_id",),
    required_any=(("enable_dns_support", "enable_dns_hostnames"),),
    exclusive=(("enable_dns_support", "enable_dns_hostnames"),))

_DESCRIBE_SUBNETS = action(
    "DescribeSubnets", List("SubnetId"), Filter(), default_key="subnet_id")

_CREATE_SUBNET = action(
    "CreateSubnet", Single("VpcId"), Single("CidrBlock"),
    Single("AvailabilityZone"),
    required=("vpc_id", "cidr_block"),
    aliases={"availability_zone": ("zone",)})

_DELETE_SUBNET = action(
    "DeleteSubnet", Single("SubnetId"),
    default_key="subnet_id", required=("subnet_id",))

_DESCRIBE_VPC_PEERING_CONNECTIONS = action(
    "DescribeVpcPeeringConnections", List("VpcPeeringConnectionId"),
    Filter(), default_key="vpc_peering_connection_id")

_CREATE_VPC_PEERING_CONNECTION = action(
    "CreateVpcPeeringConnection", Single("VpcId"), Single("PeerVpcId"),
    Single("PeerOwnerId"),
    required=("vpc_id", "peer_vpc_id"))

_ACCEPT_VPC_PEERING_CONNECTION = action(
    "AcceptVpcPeeringConnection", Single("VpcPeeringConnectionId"),
    default_key="vpc_peering_connection_id",
    required=("vpc_peering_connection_id",))

_REJECT_VPC_PEERING_CONNECTION = action(
    "RejectVpcPeeringConnection", Single("VpcPeeringConnectionId"),
    default_key="vpc_peering_connection_id",
    required=("vpc_peering_connection_id",))

_DELETE_VPC_PEERING_CONNECTION = action(
    "DeleteVpcPeeringConnection", Single("VpcPeeringConnectionId"),
    default_key="vpc_peering_connection_id",
    required=("vpc_peering_connection_id",))


def vpc_attribute_value(root, client):
    """
    The boolean value of the attribute in a C{DescribeVpcAttribute}
    response.
    """
    for name in ("enableDnsSupport", "enableDnsHostnames"):
        value = root.findtext("%s/value" % (name,))
        if value is not None:
            return value.strip() == "true"
    return None


RULES = {
    "DescribeVpcs": fetch_list("vpcSet", VPC),
    "CreateVpc": fetch_one("vpc", VPC),
    "DeleteVpc": boolean(),
    "DescribeVpcAttribute": custom(vpc_attribute_value),
    "ModifyVpcAttribute": boolean(),
    "DescribeSubnets": fetch_list("subnetSet", Subnet),
    "CreateSubnet": fetch_one("subnet", Subnet),
    "DeleteSubnet": boolean(),
    "DescribeVpcPeeringConnections": fetch_list(
        "vpcPeeringConnectionSet", VPCPeeringConnection),
    "CreateVpcPeeringConnection": fetch_one(
        "vpcPeeringConnection", VPCPeeringConnection),
    "AcceptVpcPeeringConnection": fetch_one(
        "vpcPeeringConnection", VPCPeeringConnection),
    "RejectVpcPeeringConnection": boolean(),
    "DeleteVpcPeeringConnection": boolean(),
}


class VPCMixin(object):
    """VPC actions of L{EC2Client}."""

    def describe_vpcs(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with a list of L{VPC}s.
        """
        return self.call(_DESCRIBE_VPCS, args, kwargs, EC2)

    def create_vpc(self, *args, **kwargs):
        """
        Create a VPC with the given CIDR block, e.g. C{"10.0.0.0/16"}.

        @return: A C{Deferred} that will fire with the new L{VPC}.
        """
        return self.call(_CREATE_VPC, args, kwargs, EC2)

    def delete_vpc(self, *args, **kwargs):
        return self.call(_DELETE_VPC, args, kwargs, EC2)

    def describe_vpc_attribute(self, vpc_id, attribute):
        """
        @param attribute: C{"enableDnsSupport"} or C{"enableDnsHostnames"}.
        @return: A C{Deferred} that will fire with the attribute's boolean
            value.
        """
        return self.call(
            _DESCRIBE_VPC_ATTRIBUTE, (),
            {"vpc_id": vpc_id, "attribute": attribute}, EC2)

    def modify_vpc_attribute(self, *args, **kwargs):
        """
        Change one of C{enable_dns_support} or C{enable_dns_hostnames}; AWS
        accepts only one per request.
        """
        return self.call(_MODIFY_VPC_ATTRIBUTE, args, kwargs, EC2)

    def describe_subnets(self, *args, **kwargs):
        return self.call(_DESCRIBE_SUBNETS, args, kwargs, EC2)

    def create_subnet(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with the new L{Subnet}.
        """
        return self.call(_CREATE_SUBNET, args, kwargs, EC2)

    def delete_subnet(self, *args, **kwargs):
        return self.call(_DELETE_SUBNET, args, kwargs, EC2)

    def describe_vpc_peering_connections(self, *args, **kwargs):
        return self.call(_DESCRIBE_VPC_PEERING_CONNECTIONS, args, kwargs, EC2)

    def create_vpc_peering_connection(self, *args, **kwargs):
        """
        Request a peering connection from C{vpc_id} to C{peer_vpc_id},
        owned by C{peer_owner_id} when it is in another account.

        @return: A C{Deferred} that will fire with the new
            L{VPCPeeringConnection}.
        """
        return self.call(_CREATE_VPC_PEERING_CONNECTION, args, kwargs, EC2)

    def accept_vpc_peering_connection(self, *args, **kwargs):
        return self.call(_ACCEPT_VPC_PEERING_CONNECTION, args, kwargs, EC2)

    def reject_vpc_peering_connection(self, *args, **kwargs):
        return self.call(_REJECT_VPC_PEERING_CONNECTION, args, kwargs, EC2)

    def delete_vpc_peering_connection(self, *args, **kwargs):
        return self.call(_DELETE_VPC_PEERING_CONNECTION, args, kwargs, EC2)
