# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""Result objects for EC2, VPC, spot and reserved instance actions."""

from base64 import b64decode

from txec2.model import Generic


class Region(Generic):
    """An EC2 region.

    @ivar region_name: The name of the region, e.g. C{"eu-west-1"}.
    @ivar region_endpoint: The EC2 host name of the region.
    """
    primary_id = "region_name"


class AvailabilityZone(Generic):
    """An availability zone.

    @ivar zone_name: The name of the zone.
    @ivar zone_state: C{"available"} or C{"unavailable"}.
    @ivar region_name: The region the zone belongs to.
    """
    primary_id = "zone_name"

    @property
    def messages(self):
        return [item.message for item in self.get("message_set", [])]


class Reservation(Generic):
    """A reservation: the instances launched by one request.

    @ivar reservation_id: Unique ID of the reservation.
    @ivar owner_id: AWS account ID of the user who owns the reservation.
    """
    primary_id = "reservation_id"

    @property
    def groups(self):
        return [group.get("group_id") or group.get("group_name")
                for group in self.get("group_set", [])]

    @property
    def instances(self):
        items = self.element.find("instancesSet")
        if items is None:
            return []
        return [Instance(item, self.client, reservation=self)
                for item in items]


class Instance(Generic):
    """An Amazon EC2 instance.

    @ivar instance_id: The instance ID of this instance.
    @ivar instance_type: The instance type.
    @ivar image_id: Image ID of the AMI used to launch the instance.
    @ivar private_dns_name: The private DNS name assigned to the instance.
    @ivar dns_name: The public DNS name assigned to the instance, empty until
        the instance is running.
    @ivar key_name: The key pair the instance was launched with.
    @ivar reservation: The L{Reservation} this instance belongs to, when it
        was returned from a describe or run call.
    """
    primary_id = "instance_id"

    def __init__(self, element, client=None, reservation=None):
        super(Instance, self).__init__(element, client)
        self.reservation = reservation

    @property
    def state(self):
        """The state name: pending, running, stopping, stopped and so on."""
        return self.element.findtext("instanceState/name")

    @property
    def placement_zone(self):
        return self.element.findtext("placement/availabilityZone")

    @property
    def groups(self):
        if self.element.find("groupSet") is not None:
            return [group.get("group_id")
                    for group in self.get("group_set", [])]
        if self.reservation is not None:
            return self.reservation.groups
        return []

    @property
    def launch_time(self):
        return self.get_time("launch_time")

    def current_status(self):
        """
        Fetch the current state name of this instance.

        @return: A L{Deferred} firing with the state name.
        """
        d = self.client.describe_instances(self.instance_id)
        return d.addCallback(lambda instances: instances[0].state)


class InstanceStateChange(Generic):
    """The state transition of an instance that was started or stopped."""
    primary_id = "instance_id"

    @property
    def current_state(self):
        return self.element.findtext("currentState/name")

    @property
    def previous_state(self):
        return self.element.findtext("previousState/name")


class InstanceStatus(Generic):
    """
    The status checks and scheduled events of a running instance.
    """
    primary_id = "instance_id"

    @property
    def state(self):
        return self.element.findtext("instanceState/name")

    @property
    def system_status(self):
        return self.element.findtext("systemStatus/status")

    @property
    def instance_status(self):
        return self.element.findtext("instanceStatus/status")

    @property
    def events(self):
        return self.get("events_set", [])


class ConsoleOutput(Generic):
    """The console output of an instance.

    @ivar instance_id: The instance ID.
    @ivar timestamp: When the output was last updated.
    """
    primary_id = "instance_id"

    @property
    def output(self):
        """The decoded console text."""
        text = self.element.findtext("output")
        if not text:
            return ""
        return b64decode(text).decode("utf-8", "replace")


class Image(Generic):
    """An Amazon machine image."""
    primary_id = "image_id"

    @property
    def state(self):
        return self.get("image_state")

    @property
    def block_device_mapping(self):
        return self.get("block_device_mapping", [])


class Attachment(Generic):
    """The attachment of a volume to an instance.

    @ivar volume_id: The attached volume.
    @ivar instance_id: The instance it is attached to.
    @ivar device: The device name exposed to the instance.
    @ivar status: attaching, attached, detaching or detached.
    """

    def __repr__(self):
        return "<Attachment %s to %s>" % (
            self.get("volume_id"), self.get("instance_id"))

    @property
    def attach_time(self):
        return self.get_time("attach_time")

    def current_status(self):
        """
        Fetch the current status of this attachment; C{"detached"} when the
        volume is no longer attached to the instance.
        """
        instance_id = self.get("instance_id")

        def find(volumes):
            for volume in volumes:
                for attachment in volume.attachments:
                    if attachment.get("instance_id") == instance_id:
                        return attachment.status
            return "detached"

        d = self.client.describe_volumes(self.volume_id)
        return d.addCallback(find)


class Volume(Generic):
    """An EBS volume.

    @ivar volume_id: The unique ID of this volume.
    @ivar size: The size in GiB.
    @ivar snapshot_id: The snapshot the volume was created from, if any.
    @ivar availability_zone: The zone the volume lives in.
    @ivar status: creating, available, in-use, deleting, deleted or error.
    """
    primary_id = "volume_id"

    @property
    def create_time(self):
        return self.get_time("create_time")

    @property
    def attachments(self):
        attachments = self.element.find("attachmentSet")
        if attachments is None:
            return []
        return [Attachment(item, self.client) for item in attachments]

    def current_status(self):
        """
        Fetch the current status of this volume.
        """
        d = self.client.describe_volumes(self.volume_id)
        return d.addCallback(
            lambda volumes: volumes[0].status if volumes else "deleted")


class VolumeStatus(Generic):
    """The health of a volume and the events and actions pending on it."""
    primary_id = "volume_id"

    @property
    def status(self):
        return self.element.findtext("volumeStatus/status")


class Snapshot(Generic):
    """An EBS snapshot.

    @ivar snapshot_id: The unique ID of this snapshot.
    @ivar volume_id: The volume the snapshot was taken from.
    @ivar status: pending, completed or error.
    @ivar progress: The progress as a percentage string.
    """
    primary_id = "snapshot_id"

    @property
    def start_time(self):
        return self.get_time("start_time")

    def current_status(self):
        d = self.client.describe_snapshots(self.snapshot_id)
        return d.addCallback(lambda snapshots: snapshots[0].status)


class SecurityGroup(Generic):
    """An EC2 security group.

    @ivar group_id: The unique ID of the group.
    @ivar group_name: The name of the security group.
    @ivar group_description: The description of this security group.
    @ivar owner_id: The AWS account ID of the owner of this security group.
    """
    primary_id = "group_id"

    @property
    def ip_permissions(self):
        return self.get("ip_permissions", [])


class KeyPair(Generic):
    """A key pair.

    @ivar key_name: The name of the key pair.
    @ivar key_fingerprint: Its fingerprint.
    @ivar key_material: The unencrypted private key, only present in the
        response to C{CreateKeyPair}.
    """
    primary_id = "key_name"


class Tag(Generic):
    """A tag on a resource, as returned by C{DescribeTags}."""

    def __repr__(self):
        return "<Tag %s=%s on %s>" % (
            self.get("key"), self.get("value"), self.get("resource_id"))


class ElasticAddress(Generic):
    """An elastic IP address.

    @ivar public_ip: The address.
    @ivar instance_id: The instance it is associated with, if any.
    @ivar allocation_id: For VPC addresses, the allocation ID.
    """
    primary_id = "public_ip"


class VPC(Generic):
    """A virtual private cloud."""
    primary_id = "vpc_id"


class Subnet(Generic):
    """A subnet of a VPC."""
    primary_id = "subnet_id"


class VPCPeeringConnection(Generic):
    """A peering connection between two VPCs.

    @ivar vpc_peering_connection_id: The unique ID of the connection.
    """
    primary_id = "vpc_peering_connection_id"

    @property
    def status(self):
        return self.element.findtext("status/code")

    @property
    def requester_vpc_id(self):
        return self.element.findtext("requesterVpcInfo/vpcId")

    @property
    def accepter_vpc_id(self):
        return self.element.findtext("accepterVpcInfo/vpcId")


class SpotPriceHistory(Generic):
    """One spot price observation."""

    def __repr__(self):
        return "<SpotPriceHistory %s %s %s>" % (
            self.get("instance_type"), self.get("spot_price"),
            self.get("timestamp"))

    @property
    def timestamp(self):
        return self.get_time("timestamp")


class SpotInstanceRequest(Generic):
    """A spot instance request.

    @ivar spot_instance_request_id: The unique ID of the request.
    @ivar state: open, active, cancelled, closed or failed.
    @ivar instance_id: The instance launched for the request, once any is.
    """
    primary_id = "spot_instance_request_id"

    @property
    def launch_specification(self):
        return self.get("launch_specification")


class SpotDatafeedSubscription(Generic):
    """The account's spot instance data feed."""

    def __repr__(self):
        return "<SpotDatafeedSubscription %s/%s>" % (
            self.get("bucket"), self.get("prefix"))


class ReservedInstance(Generic):
    """A purchased reserved instance."""
    primary_id = "reserved_instances_id"


class ReservedInstancesOffering(Generic):
    """A reserved instance offering that can be purchased."""
    primary_id = "reserved_instances_offering_id"

    def purchase(self, instance_count=1):
        """
        Purchase this offering.

        @return: A L{Deferred} firing with the list of L{ReservedInstance}s.
        """
        return self.client.purchase_reserved_instances_offering(
            self.reserved_instances_offering_id,
            instance_count=instance_count)
