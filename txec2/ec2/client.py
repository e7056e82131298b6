# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""EC2 client support."""

from txec2.autoscaling.client import AutoScalingMixin
from txec2.autoscaling.client import RULES as AUTOSCALING_RULES
from txec2.client.dispatch import (
    DispatchTable, boolean, custom, fetch_list, fetch_list_iterator,
    fetch_one, find_field)
from txec2.client.invoker import QueryClient, action
from txec2.client.parameters import (
    Base64, BlockDeviceMapping, Boolean, Filter, List, NetworkInterface,
    PermissionList, Prefix, Single, StructureList, TagList, Value)
from txec2.client.polling import (
    WAIT_INTERVAL, WAIT_TIMEOUT, poll_until, wait_for_terminal_state)
from txec2.ec2 import model
from txec2.ec2.exception import EC2Error
from txec2.ec2.reserved import RULES as RESERVED_RULES
from txec2.ec2.reserved import ReservedInstancesMixin
from txec2.ec2.spot import RULES as SPOT_RULES
from txec2.ec2.spot import SpotMixin
from txec2.ec2.vpc import RULES as VPC_RULES
from txec2.ec2.vpc import VPCMixin
from txec2.elb.client import ELBMixin
from txec2.elb.client import RULES as ELB_RULES
from txec2.rds.client import RDSMixin
from txec2.rds.client import RULES as RDS_RULES
from txec2.service import EC2
from txec2.sts.client import STSMixin
from txec2.sts.client import RULES as STS_RULES
from txec2.util import canonicalize


__all__ = ["EC2Client", "RULES"]


INSTANCE_TERMINAL_STATES = ("running", "stopped", "terminated")
VOLUME_TERMINAL_STATES = ("available", "in-use", "deleted", "error")
ATTACHMENT_TERMINAL_STATES = ("attached", "detached")
SNAPSHOT_TERMINAL_STATES = ("completed", "error")

_ATTRIBUTE_OWNERS = (
    "requestId", "instanceId", "imageId", "snapshotId", "volumeId", "vpcId")


# Regions and zones

_DESCRIBE_REGIONS = action(
    "DescribeRegions", List("RegionName"), Filter(),
    default_key="region_name")

_DESCRIBE_AVAILABILITY_ZONES = action(
    "DescribeAvailabilityZones", List("ZoneName"), Filter(),
    default_key="zone_name", aliases={"zone_name": ("zone",)})


# Instances

_DESCRIBE_INSTANCES = action(
    "DescribeInstances", List("InstanceId"), Filter(),
    default_key="instance_id")

_RUN_INSTANCES = action(
    "RunInstances",
    Single("ImageId"), Single("MinCount"), Single("MaxCount"),
    Single("KeyName"), List("SecurityGroup", key="security_group"),
    List("SecurityGroupId", key="security_group_id"),
    Base64("UserData"), Single("InstanceType"),
    Prefix("Placement", fields=(
        Single("AvailabilityZone"), Single("GroupName"), Single("Tenancy"))),
    Single("KernelId"), Single("RamdiskId"), BlockDeviceMapping(),
    Boolean("Monitoring.Enabled", key="monitoring_enabled"),
    Single("SubnetId"), Boolean("DisableApiTermination"),
    Single("InstanceInitiatedShutdownBehavior"), Single("PrivateIpAddress"),
    Single("ClientToken"), NetworkInterface(),
    Single("IamInstanceProfile.Arn", key="iam_instance_profile_arn"),
    Single("IamInstanceProfile.Name", key="iam_instance_profile_name"),
    Boolean("EbsOptimized"),
    default_key="image_id",
    required=("image_id",),
    aliases={
        "security_group": ("security_groups",),
        "security_group_id": ("security_group_ids",),
        "availability_zone": ("zone", "placement_zone"),
        "group_name": ("placement_group",),
        "monitoring_enabled": ("monitoring",),
        "instance_initiated_shutdown_behavior": ("shutdown_behavior",),
        "block_device_mapping": ("block_devices",),
        "network_interface": ("network_interfaces",),
        "iam_instance_profile_arn": ("iam_arn",),
        "iam_instance_profile_name": ("iam_name",),
    },
    defaults={"min_count": 1},
    exclusive=(("network_interface", "subnet_id"),))

_START_INSTANCES = action(
    "StartInstances", List("InstanceId"),
    default_key="instance_id", required=("instance_id",))

_STOP_INSTANCES = action(
    "StopInstances", List("InstanceId"), Boolean("Force"),
    default_key="instance_id", required=("instance_id",))

_TERMINATE_INSTANCES = action(
    "TerminateInstances", List("InstanceId"),
    default_key="instance_id", required=("instance_id",))

_REBOOT_INSTANCES = action(
    "RebootInstances", List("InstanceId"),
    default_key="instance_id", required=("instance_id",))

_DESCRIBE_INSTANCE_STATUS = action(
    "DescribeInstanceStatus", List("InstanceId"),
    Boolean("IncludeAllInstances"), Single("MaxResults"), Filter(),
    default_key="instance_id")

_GET_CONSOLE_OUTPUT = action(
    "GetConsoleOutput", Single("InstanceId"),
    default_key="instance_id", required=("instance_id",))

_DESCRIBE_INSTANCE_ATTRIBUTE = action(
    "DescribeInstanceAttribute", Single("InstanceId"), Single("Attribute"),
    required=("instance_id", "attribute"))

_MODIFY_INSTANCE_ATTRIBUTE = action(
    "ModifyInstanceAttribute", Single("InstanceId"),
    Value("InstanceType"), Value("Kernel"), Value("Ramdisk"),
    Value("DisableApiTermination"),
    Value("InstanceInitiatedShutdownBehavior"), Value("EbsOptimized"),
    Value("SourceDestCheck"), List("GroupId"), BlockDeviceMapping(),
    required=("instance_id",),
    aliases={
        "kernel": ("kernel_id",),
        "ramdisk": ("ramdisk_id",),
        "instance_initiated_shutdown_behavior": ("shutdown_behavior",),
        "group_id": ("security_group_id",),
        "block_device_mapping": ("block_devices",),
    })

_RESET_INSTANCE_ATTRIBUTE = action(
    "ResetInstanceAttribute", Single("InstanceId"), Single("Attribute"),
    required=("instance_id", "attribute"))


# Images

_DESCRIBE_IMAGES = action(
    "DescribeImages", List("ImageId"), List("Owner"), List("ExecutableBy"),
    Filter(),
    default_key="image_id", aliases={"owner": ("owners",)})

_CREATE_IMAGE = action(
    "CreateImage", Single("InstanceId"), Single("Name"),
    Single("Description"), Boolean("NoReboot"), BlockDeviceMapping(),
    required=("instance_id", "name"),
    aliases={"block_device_mapping": ("block_devices",)})

_REGISTER_IMAGE = action(
    "RegisterImage", Single("ImageLocation"), Single("Name"),
    Single("Description"), Single("Architecture"), Single("KernelId"),
    Single("RamdiskId"), Single("RootDeviceName"), BlockDeviceMapping(),
    Single("VirtualizationType"),
    required=("name",),
    aliases={"block_device_mapping": ("block_devices",)})

_COPY_IMAGE = action(
    "CopyImage", Single("SourceRegion"), Single("SourceImageId"),
    Single("Name"), Single("Description"), Single("ClientToken"),
    required=("source_region", "source_image_id"))

_DEREGISTER_IMAGE = action(
    "DeregisterImage", Single("ImageId"),
    default_key="image_id", required=("image_id",))

_DESCRIBE_IMAGE_ATTRIBUTE = action(
    "DescribeImageAttribute", Single("ImageId"), Single("Attribute"),
    required=("image_id", "attribute"))

_MODIFY_IMAGE_ATTRIBUTE = action(
    "ModifyImageAttribute", Single("ImageId"), Value("Description"),
    PermissionList("LaunchPermission", key="launch_add", operation="Add"),
    PermissionList(
        "LaunchPermission", key="launch_remove", operation="Remove"),
    List("ProductCode"),
    required=("image_id",),
    aliases={"product_code": ("product_codes",)})

_RESET_IMAGE_ATTRIBUTE = action(
    "ResetImageAttribute", Single("ImageId"), Single("Attribute"),
    required=("image_id", "attribute"))


# Volumes

_DESCRIBE_VOLUMES = action(
    "DescribeVolumes", List("VolumeId"), Filter(),
    default_key="volume_id")

_CREATE_VOLUME = action(
    "CreateVolume", Single("AvailabilityZone"), Single("Size"),
    Single("SnapshotId"), Single("VolumeType"), Single("Iops"),
    Boolean("Encrypted"),
    required=("availability_zone",),
    required_any=(("size", "snapshot_id"),),
    aliases={"availability_zone": ("zone",)})

_DELETE_VOLUME = action(
    "DeleteVolume", Single("VolumeId"),
    default_key="volume_id", required=("volume_id",))

_ATTACH_VOLUME = action(
    "AttachVolume", Single("VolumeId"), Single("InstanceId"),
    Single("Device"),
    required=("volume_id", "instance_id", "device"))

_DETACH_VOLUME = action(
    "DetachVolume", Single("VolumeId"), Single("InstanceId"),
    Single("Device"), Boolean("Force"),
    default_key="volume_id", required=("volume_id",))

_DESCRIBE_VOLUME_STATUS = action(
    "DescribeVolumeStatus", List("VolumeId"), Single("MaxResults"),
    Filter(),
    default_key="volume_id")

_ENABLE_VOLUME_IO = action(
    "EnableVolumeIO", Single("VolumeId"),
    default_key="volume_id", required=("volume_id",))


# Snapshots

_DESCRIBE_SNAPSHOTS = action(
    "DescribeSnapshots", List("SnapshotId"), List("Owner"),
    List("RestorableBy"), Filter(),
    default_key="snapshot_id", aliases={"owner": ("owners",)})

_CREATE_SNAPSHOT = action(
    "CreateSnapshot", Single("VolumeId"), Single("Description"),
    default_key="volume_id", required=("volume_id",))

_DELETE_SNAPSHOT = action(
    "DeleteSnapshot", Single("SnapshotId"),
    default_key="snapshot_id", required=("snapshot_id",))

_COPY_SNAPSHOT = action(
    "CopySnapshot", Single("SourceRegion"), Single("SourceSnapshotId"),
    Single("Description"),
    required=("source_region", "source_snapshot_id"),
    aliases={"source_snapshot_id": ("snapshot_id",)})

_MODIFY_SNAPSHOT_ATTRIBUTE = action(
    "ModifySnapshotAttribute", Single("SnapshotId"),
    PermissionList(
        "CreateVolumePermission", key="create_volume_add", operation="Add"),
    PermissionList(
        "CreateVolumePermission", key="create_volume_remove",
        operation="Remove"),
    required=("snapshot_id",))

_RESET_SNAPSHOT_ATTRIBUTE = action(
    "ResetSnapshotAttribute", Single("SnapshotId"), Single("Attribute"),
    required=("snapshot_id", "attribute"))


# Security groups

_GROUP_PAIRS = StructureList(
    "Groups", fields=("UserId", "GroupName", "GroupId"), member=False)
_IP_RANGES = StructureList("IpRanges", fields=("CidrIp",), member=False)
_IP_PERMISSIONS = StructureList(
    "IpPermissions",
    fields=("IpProtocol", "FromPort", "ToPort", _GROUP_PAIRS, _IP_RANGES),
    member=False)
_SECURITY_GROUP_RULE = (
    Single("GroupName"), Single("GroupId"), Single("SourceSecurityGroupName"),
    Single("SourceSecurityGroupOwnerId"), Single("IpProtocol"),
    Single("FromPort"), Single("ToPort"), Single("CidrIp"), _IP_PERMISSIONS)
_SECURITY_GROUP_RULE_OPTIONS = dict(
    required_any=(("group_name", "group_id"),),
    exclusive=(("group_name", "group_id"),),
    aliases={
        "ip_protocol": ("protocol",),
        "cidr_ip": ("cidr",),
        "source_security_group_name": ("source_group_name",),
        "source_security_group_owner_id": ("source_group_owner_id",),
    })

_DESCRIBE_SECURITY_GROUPS = action(
    "DescribeSecurityGroups", List("GroupName"), List("GroupId"), Filter(),
    default_key="group_name")

_CREATE_SECURITY_GROUP = action(
    "CreateSecurityGroup", Single("GroupName"), Single("GroupDescription"),
    Single("VpcId"),
    required=("group_name", "group_description"),
    aliases={
        "group_name": ("name",),
        "group_description": ("description",),
    })

_DELETE_SECURITY_GROUP = action(
    "DeleteSecurityGroup", Single("GroupName"), Single("GroupId"),
    default_key="group_name",
    required_any=(("group_name", "group_id"),),
    exclusive=(("group_name", "group_id"),))

_AUTHORIZE_SECURITY_GROUP_INGRESS = action(
    "AuthorizeSecurityGroupIngress", *_SECURITY_GROUP_RULE,
    **_SECURITY_GROUP_RULE_OPTIONS)

_AUTHORIZE_SECURITY_GROUP_EGRESS = action(
    "AuthorizeSecurityGroupEgress", *_SECURITY_GROUP_RULE,
    **_SECURITY_GROUP_RULE_OPTIONS)

_REVOKE_SECURITY_GROUP_INGRESS = action(
    "RevokeSecurityGroupIngress", *_SECURITY_GROUP_RULE,
    **_SECURITY_GROUP_RULE_OPTIONS)

_REVOKE_SECURITY_GROUP_EGRESS = action(
    "RevokeSecurityGroupEgress", *_SECURITY_GROUP_RULE,
    **_SECURITY_GROUP_RULE_OPTIONS)


# Key pairs

_DESCRIBE_KEY_PAIRS = action(
    "DescribeKeyPairs", List("KeyName"), Filter(), default_key="key_name")

_CREATE_KEY_PAIR = action(
    "CreateKeyPair", Single("KeyName"),
    default_key="key_name", required=("key_name",))

_IMPORT_KEY_PAIR = action(
    "ImportKeyPair", Single("KeyName"), Base64("PublicKeyMaterial"),
    required=("key_name", "public_key_material"))

_DELETE_KEY_PAIR = action(
    "DeleteKeyPair", Single("KeyName"),
    default_key="key_name", required=("key_name",))


# Tags

_CREATE_TAGS = action(
    "CreateTags", List("ResourceId"),
    TagList("Tag", key="tag", member=False, empty_value=""),
    required=("resource_id", "tag"), aliases={"tag": ("tags",)})

_DELETE_TAGS = action(
    "DeleteTags", List("ResourceId"),
    TagList("Tag", key="tag", member=False),
    required=("resource_id",), aliases={"tag": ("tags",)})

_DESCRIBE_TAGS = action(
    "DescribeTags", Filter(), Single("MaxResults"))


# Elastic addresses

_DESCRIBE_ADDRESSES = action(
    "DescribeAddresses", List("PublicIp"), List("AllocationId"), Filter(),
    default_key="public_ip")

_ALLOCATE_ADDRESS = action(
    "AllocateAddress", Single("Domain"))

_ASSOCIATE_ADDRESS = action(
    "AssociateAddress", Single("PublicIp"), Single("AllocationId"),
    Single("InstanceId"), Single("NetworkInterfaceId"),
    Single("PrivateIpAddress"), Boolean("AllowReassociation"),
    required_any=(("public_ip", "allocation_id"),
                  ("instance_id", "network_interface_id")),
    exclusive=(("public_ip", "allocation_id"),))

_DISASSOCIATE_ADDRESS = action(
    "DisassociateAddress", Single("PublicIp"), Single("AssociationId"),
    default_key="public_ip",
    required_any=(("public_ip", "association_id"),),
    exclusive=(("public_ip", "association_id"),))

_RELEASE_ADDRESS = action(
    "ReleaseAddress", Single("PublicIp"), Single("AllocationId"),
    default_key="public_ip",
    required_any=(("public_ip", "allocation_id"),),
    exclusive=(("public_ip", "allocation_id"),))


def reservation_instances(root, client):
    """
    Flatten the reservations of a C{DescribeInstances} response into their
    instances, each knowing its L{model.Reservation}.
    """
    instances = []
    reservations = find_field(root, "reservationSet")
    if reservations is None:
        return instances
    for item in reservations:
        instances.extend(model.Reservation(item, client).instances)
    return instances


def run_instances_result(root, client):
    """
    The instances launched by C{RunInstances}, with their reservation.
    """
    return model.Reservation(root, client).instances


def attribute_value(root, client):
    """
    The value of a C{Describe*Attribute} response: the text of a single
    valued attribute, or a list for list valued ones (launch permissions,
    block device mappings and so on).
    """
    for child in root:
        if not isinstance(child.tag, str) or child.tag in _ATTRIBUTE_OWNERS:
            continue
        value = child.find("value")
        if value is not None:
            return value.text
        return model.Generic(root, client).get(canonicalize(child.tag))
    return None


def _until_visible(describe, not_found_code, description, client):
    """
    Poll C{describe} until it returns the new resource, treating
    C{not_found_code} and empty results as not yet visible.
    """
    def not_yet_visible(failure):
        failure.trap(EC2Error)
        if not failure.value.has_error(not_found_code):
            return failure
        return []

    def check():
        return describe().addErrback(not_yet_visible)

    d = poll_until(check, description, client.reactor)
    return d.addCallback(lambda found: found[0])


def _describe_created_image(root, client):
    image_id = root.findtext("imageId")
    return _until_visible(
        lambda: client.describe_images(image_id), "InvalidAMIID.NotFound",
        "image %s" % (image_id,), client)


def _describe_created_group(root, client):
    group_id = root.findtext("groupId")
    return _until_visible(
        lambda: client.describe_security_groups(group_id=group_id),
        "InvalidGroup.NotFound", "security group %s" % (group_id,), client)


def associate_address_result(root, client):
    """
    The association ID of a VPC address association, or whether an
    EC2-Classic association succeeded.
    """
    association_id = root.findtext("associationId")
    if association_id:
        return association_id
    return (root.findtext("return") or "").strip() == "true"


def copy_snapshot_result(root, client):
    """
    Wait until the copied snapshot is visible to C{DescribeSnapshots}, then
    fire with it.
    """
    snapshot_id = root.findtext("snapshotId")
    return _until_visible(
        lambda: client.describe_snapshots(snapshot_id),
        "InvalidSnapshot.NotFound", "snapshot %s" % (snapshot_id,), client)


RULES = {
    "DescribeRegions": fetch_list("regionInfo", model.Region),
    "DescribeAvailabilityZones": fetch_list(
        "availabilityZoneInfo", model.AvailabilityZone),
    "DescribeInstances": custom(reservation_instances),
    "RunInstances": custom(run_instances_result),
    "StartInstances": fetch_list(
        "instancesSet", model.InstanceStateChange),
    "StopInstances": fetch_list("instancesSet", model.InstanceStateChange),
    "TerminateInstances": fetch_list(
        "instancesSet", model.InstanceStateChange),
    "RebootInstances": boolean(),
    "DescribeInstanceStatus": fetch_list_iterator(
        "instanceStatusSet", model.InstanceStatus),
    "GetConsoleOutput": fetch_one(None, model.ConsoleOutput),
    "DescribeInstanceAttribute": custom(attribute_value),
    "ModifyInstanceAttribute": boolean(),
    "ResetInstanceAttribute": boolean(),
    "DescribeImages": fetch_list("imagesSet", model.Image),
    "CreateImage": custom(_describe_created_image),
    "RegisterImage": custom(_describe_created_image),
    "CopyImage": custom(_describe_created_image),
    "DeregisterImage": boolean(),
    "DescribeImageAttribute": custom(attribute_value),
    "ModifyImageAttribute": boolean(),
    "ResetImageAttribute": boolean(),
    "DescribeVolumes": fetch_list("volumeSet", model.Volume),
    "CreateVolume": fetch_one(None, model.Volume),
    "DeleteVolume": boolean(),
    "AttachVolume": fetch_one(None, model.Attachment),
    "DetachVolume": fetch_one(None, model.Attachment),
    "DescribeVolumeStatus": fetch_list_iterator(
        "volumeStatusSet", model.VolumeStatus),
    "EnableVolumeIO": boolean(),
    "DescribeSnapshots": fetch_list("snapshotSet", model.Snapshot),
    "CreateSnapshot": fetch_one(None, model.Snapshot),
    "DeleteSnapshot": boolean(),
    "CopySnapshot": custom(copy_snapshot_result),
    "ModifySnapshotAttribute": boolean(),
    "ResetSnapshotAttribute": boolean(),
    "DescribeSecurityGroups": fetch_list(
        "securityGroupInfo", model.SecurityGroup),
    "CreateSecurityGroup": custom(_describe_created_group),
    "DeleteSecurityGroup": boolean(),
    "AuthorizeSecurityGroupIngress": boolean(),
    "AuthorizeSecurityGroupEgress": boolean(),
    "RevokeSecurityGroupIngress": boolean(),
    "RevokeSecurityGroupEgress": boolean(),
    "DescribeKeyPairs": fetch_list("keySet", model.KeyPair),
    "CreateKeyPair": fetch_one(None, model.KeyPair),
    "ImportKeyPair": fetch_one(None, model.KeyPair),
    "DeleteKeyPair": boolean(),
    "CreateTags": boolean(),
    "DeleteTags": boolean(),
    "DescribeTags": fetch_list("tagSet", model.Tag),
    "DescribeAddresses": fetch_list("addressesSet", model.ElasticAddress),
    "AllocateAddress": fetch_one(None, model.ElasticAddress),
    "AssociateAddress": custom(associate_address_result),
    "DisassociateAddress": boolean(),
    "ReleaseAddress": boolean(),
}


class EC2Client(VPCMixin, SpotMixin, ReservedInstancesMixin,
                AutoScalingMixin, ELBMixin, RDSMixin, STSMixin, QueryClient):
    """
    A client for EC2 and the services addressed through the same base
    endpoint: VPC, spot and reserved instances, Auto Scaling, Elastic Load
    Balancing, RDS and STS.

    Every action method accepts either bare positional values, for the
    action's main identifier, or keyword options named after the AWS
    parameters in snake_case (C{instance_type}) or their own spelling
    (C{InstanceType}).  Argument errors are raised before any request is
    sent; everything else is reported through the returned L{Deferred}.
    """

    dispatch_table = DispatchTable.from_rules(
        RULES, VPC_RULES, SPOT_RULES, RESERVED_RULES, AUTOSCALING_RULES,
        ELB_RULES, RDS_RULES, STS_RULES)

    def describe_regions(self, *args, **kwargs):
        """
        Describe the regions available to the account.

        @return: A C{Deferred} that will fire with a list of L{model.Region}s.
        """
        return self.call(_DESCRIBE_REGIONS, args, kwargs, EC2)

    def describe_availability_zones(self, *args, **kwargs):
        """
        Describe the availability zones of the region.

        @return: A C{Deferred} that will fire with a list of
            L{model.AvailabilityZone}s.
        """
        return self.call(_DESCRIBE_AVAILABILITY_ZONES, args, kwargs, EC2)

    def describe_instances(self, *args, **kwargs):
        """Describe current instances.

        @param args: Optionally, the IDs of the instances to describe.
        @param filter: A mapping of filter names to values.
        @return: A C{Deferred} that will fire with a list of
            L{model.Instance}s.
        """
        return self.call(_DESCRIBE_INSTANCES, args, kwargs, EC2)

    def run_instances(self, *args, **kwargs):
        """Run new instances.

        The image ID may be given positionally.  C{min_count} defaults to 1
        and C{max_count} to C{min_count}.  C{user_data} is base64 encoded
        before being sent.  C{block_device_mapping} and C{network_interface}
        take the string forms described by L{BlockDeviceMapping} and
        L{NetworkInterface}.

        @return: A C{Deferred} that will fire with the list of launched
            L{model.Instance}s.
        """
        if "max_count" not in kwargs and "MaxCount" not in kwargs:
            kwargs["max_count"] = kwargs.get(
                "min_count", kwargs.get("MinCount", 1))
        return self.call(_RUN_INSTANCES, args, kwargs, EC2)

    def start_instances(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with a list of
            L{model.InstanceStateChange}s.
        """
        return self.call(_START_INSTANCES, args, kwargs, EC2)

    def stop_instances(self, *args, **kwargs):
        return self.call(_STOP_INSTANCES, args, kwargs, EC2)

    def terminate_instances(self, *args, **kwargs):
        """Terminate some instances.

        @param args: The ids of the instances to terminate.
        @return: A C{Deferred} that will fire with a list of
            L{model.InstanceStateChange}s.
        """
        return self.call(_TERMINATE_INSTANCES, args, kwargs, EC2)

    def reboot_instances(self, *args, **kwargs):
        return self.call(_REBOOT_INSTANCES, args, kwargs, EC2)

    def describe_instance_status(self, *args, **kwargs):
        """
        Describe the status checks of instances, a page at a time.

        @param max_results: The page size.
        @return: A C{Deferred} that will fire with the first L{Page} of
            L{model.InstanceStatus}es.
        """
        return self.call_paginated(
            _DESCRIBE_INSTANCE_STATUS, args, kwargs, EC2)

    def get_console_output(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with a L{model.ConsoleOutput}.
        """
        return self.call(_GET_CONSOLE_OUTPUT, args, kwargs, EC2)

    def describe_instance_attribute(self, instance_id, attribute):
        """
        @param attribute: The attribute name, e.g. C{"instanceType"}.
        @return: A C{Deferred} that will fire with the attribute value.
        """
        return self.call(
            _DESCRIBE_INSTANCE_ATTRIBUTE, (),
            {"instance_id": instance_id, "attribute": attribute}, EC2)

    def modify_instance_attribute(self, *args, **kwargs):
        return self.call(_MODIFY_INSTANCE_ATTRIBUTE, args, kwargs, EC2)

    def reset_instance_attribute(self, instance_id, attribute):
        return self.call(
            _RESET_INSTANCE_ATTRIBUTE, (),
            {"instance_id": instance_id, "attribute": attribute}, EC2)

    def describe_images(self, *args, **kwargs):
        """
        @param owner: Restrict the images to those owned by these accounts,
            or C{"self"}, C{"amazon"}.
        @return: A C{Deferred} that will fire with a list of L{model.Image}s.
        """
        return self.call(_DESCRIBE_IMAGES, args, kwargs, EC2)

    def create_image(self, *args, **kwargs):
        """
        Create an image from a running or stopped EBS backed instance.

        @return: A C{Deferred} that will fire with the new L{model.Image}.
        """
        return self.call(_CREATE_IMAGE, args, kwargs, EC2)

    def register_image(self, *args, **kwargs):
        return self.call(_REGISTER_IMAGE, args, kwargs, EC2)

    def copy_image(self, *args, **kwargs):
        """
        Copy an image from C{source_region} into this client's region.

        @return: A C{Deferred} that will fire with the new L{model.Image}.
        """
        return self.call(_COPY_IMAGE, args, kwargs, EC2)

    def deregister_image(self, *args, **kwargs):
        return self.call(_DEREGISTER_IMAGE, args, kwargs, EC2)

    def describe_image_attribute(self, image_id, attribute):
        return self.call(
            _DESCRIBE_IMAGE_ATTRIBUTE, (),
            {"image_id": image_id, "attribute": attribute}, EC2)

    def modify_image_attribute(self, *args, **kwargs):
        """
        @param launch_add: Accounts to grant launch permission to; C{"all"}
            makes the image public.
        @param launch_remove: Accounts to revoke launch permission from.
        """
        return self.call(_MODIFY_IMAGE_ATTRIBUTE, args, kwargs, EC2)

    def reset_image_attribute(self, image_id, attribute):
        return self.call(
            _RESET_IMAGE_ATTRIBUTE, (),
            {"image_id": image_id, "attribute": attribute}, EC2)

    def describe_volumes(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with a list of
            L{model.Volume}s.
        """
        return self.call(_DESCRIBE_VOLUMES, args, kwargs, EC2)

    def create_volume(self, *args, **kwargs):
        """
        Create a volume in C{availability_zone}, either empty with C{size}
        GiB or from C{snapshot_id}.

        @return: A C{Deferred} that will fire with the new L{model.Volume}.
        """
        return self.call(_CREATE_VOLUME, args, kwargs, EC2)

    def delete_volume(self, *args, **kwargs):
        return self.call(_DELETE_VOLUME, args, kwargs, EC2)

    def attach_volume(self, volume_id, instance_id, device):
        """
        @return: A C{Deferred} that will fire with a L{model.Attachment}.
        """
        return self.call(
            _ATTACH_VOLUME, (),
            {"volume_id": volume_id, "instance_id": instance_id,
             "device": device}, EC2)

    def detach_volume(self, *args, **kwargs):
        return self.call(_DETACH_VOLUME, args, kwargs, EC2)

    def describe_volume_status(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with the first L{Page} of
            L{model.VolumeStatus}es.
        """
        return self.call_paginated(_DESCRIBE_VOLUME_STATUS, args, kwargs, EC2)

    def enable_volume_io(self, *args, **kwargs):
        return self.call(_ENABLE_VOLUME_IO, args, kwargs, EC2)

    def describe_snapshots(self, *args, **kwargs):
        """Describe available snapshots.

        @return: A C{Deferred} that will fire with a list of
            L{model.Snapshot}s.
        """
        return self.call(_DESCRIBE_SNAPSHOTS, args, kwargs, EC2)

    def create_snapshot(self, *args, **kwargs):
        """Create a new snapshot of an existing volume.

        @return: A C{Deferred} that will fire with the new
            L{model.Snapshot}.
        """
        return self.call(_CREATE_SNAPSHOT, args, kwargs, EC2)

    def delete_snapshot(self, *args, **kwargs):
        return self.call(_DELETE_SNAPSHOT, args, kwargs, EC2)

    def copy_snapshot(self, *args, **kwargs):
        """
        Copy a snapshot from C{source_region} into this client's region.

        The copy is only returned once C{DescribeSnapshots} reports it.

        @return: A C{Deferred} that will fire with the new
            L{model.Snapshot}, or fail with L{WaitTimeoutError}.
        """
        return self.call(_COPY_SNAPSHOT, args, kwargs, EC2)

    def modify_snapshot_attribute(self, *args, **kwargs):
        return self.call(_MODIFY_SNAPSHOT_ATTRIBUTE, args, kwargs, EC2)

    def reset_snapshot_attribute(self, snapshot_id, attribute):
        return self.call(
            _RESET_SNAPSHOT_ATTRIBUTE, (),
            {"snapshot_id": snapshot_id, "attribute": attribute}, EC2)

    def describe_security_groups(self, *args, **kwargs):
        """Describe security groups.

        @param args: Optionally, a list of security group names to describe.
            Defaults to all security groups in the account.
        @param group_id: Security group IDs to describe instead.
        @return: A C{Deferred} that will fire with a list of
            L{model.SecurityGroup}s retrieved from the cloud.
        """
        return self.call(_DESCRIBE_SECURITY_GROUPS, args, kwargs, EC2)

    def create_security_group(self, name, description, vpc_id=None):
        """Create security group.

        @param name: Name of the new security group.
        @param description: Description of the new security group.
        @param vpc_id: The VPC to create the group in.
        @return: A C{Deferred} that will fire with the new
            L{model.SecurityGroup}.
        """
        return self.call(
            _CREATE_SECURITY_GROUP, (),
            {"group_name": name, "group_description": description,
             "vpc_id": vpc_id}, EC2)

    def delete_security_group(self, *args, **kwargs):
        return self.call(_DELETE_SECURITY_GROUP, args, kwargs, EC2)

    def authorize_security_group_ingress(self, **kwargs):
        """
        Add an ingress rule to a security group.

        The group is named by C{group_name} or C{group_id}.  A single rule
        may be given with C{ip_protocol}, C{from_port}, C{to_port} and
        C{cidr_ip} or C{source_security_group_name}; several with
        C{ip_permissions}, a list of mappings with C{IpProtocol},
        C{FromPort}, C{ToPort}, C{Groups} and C{IpRanges} entries.
        """
        return self.call(_AUTHORIZE_SECURITY_GROUP_INGRESS, (), kwargs, EC2)

    def authorize_security_group_egress(self, **kwargs):
        return self.call(_AUTHORIZE_SECURITY_GROUP_EGRESS, (), kwargs, EC2)

    def revoke_security_group_ingress(self, **kwargs):
        return self.call(_REVOKE_SECURITY_GROUP_INGRESS, (), kwargs, EC2)

    def revoke_security_group_egress(self, **kwargs):
        return self.call(_REVOKE_SECURITY_GROUP_EGRESS, (), kwargs, EC2)

    def describe_key_pairs(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with a list of
            L{model.KeyPair}s.
        """
        return self.call(_DESCRIBE_KEY_PAIRS, args, kwargs, EC2)

    def create_key_pair(self, *args, **kwargs):
        """
        Create a new key pair.  Its private key is only available from the
        returned L{model.KeyPair}'s C{key_material}.
        """
        return self.call(_CREATE_KEY_PAIR, args, kwargs, EC2)

    def import_key_pair(self, key_name, public_key_material):
        """
        Import an existing public key, which is base64 encoded before being
        sent.
        """
        return self.call(
            _IMPORT_KEY_PAIR, (),
            {"key_name": key_name,
             "public_key_material": public_key_material}, EC2)

    def delete_key_pair(self, *args, **kwargs):
        return self.call(_DELETE_KEY_PAIR, args, kwargs, EC2)

    def create_tags(self, resource_id, tag):
        """
        Tag one or several resources.

        @param resource_id: A resource ID or a list of them.
        @param tag: A mapping of tag names to values; a C{None} value
            creates the tag with an empty value.
        """
        return self.call(
            _CREATE_TAGS, (), {"resource_id": resource_id, "tag": tag}, EC2)

    def delete_tags(self, resource_id, tag=None):
        """
        Remove tags from one or several resources.

        @param tag: A mapping of tag names to values, or a list of names.  A
            tag whose value is C{None} is removed whatever its value.
        """
        if tag is not None and not isinstance(tag, dict):
            tag = [(name, None) for name in tag]
        return self.call(
            _DELETE_TAGS, (), {"resource_id": resource_id, "tag": tag}, EC2)

    def describe_tags(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with a list of L{model.Tag}s.
        """
        return self.call(_DESCRIBE_TAGS, args, kwargs, EC2)

    def describe_addresses(self, *args, **kwargs):
        """
        List the elastic IPs allocated in this account.

        @return: A C{Deferred} that will fire with a list of
            L{model.ElasticAddress}es.
        """
        return self.call(_DESCRIBE_ADDRESSES, args, kwargs, EC2)

    def allocate_address(self, vpc=False):
        """
        Acquire an elastic IP address to be attached subsequently to EC2
        instances.

        @param vpc: Allocate the address for use in a VPC.
        @return: A C{Deferred} that will fire with the new
            L{model.ElasticAddress}.
        """
        return self.call(
            _ALLOCATE_ADDRESS, (), {"domain": "vpc" if vpc else None}, EC2)

    def associate_address(self, *args, **kwargs):
        """
        Associate an elastic address, by C{public_ip} or C{allocation_id},
        with C{instance_id} or C{network_interface_id}.

        @return: A C{Deferred} that will fire with the association ID for a
            VPC address, or with C{True} for an EC2-Classic one.
        """
        return self.call(_ASSOCIATE_ADDRESS, args, kwargs, EC2)

    def disassociate_address(self, *args, **kwargs):
        return self.call(_DISASSOCIATE_ADDRESS, args, kwargs, EC2)

    def release_address(self, *args, **kwargs):
        """
        Release a previously allocated address.

        @return: A C{Deferred} that will fire with a truth value for the
            success of the operation.
        """
        return self.call(_RELEASE_ADDRESS, args, kwargs, EC2)

    def wait_for_terminal_state(self, ids, fetch_states, terminal_states,
                                timeout=WAIT_TIMEOUT, interval=WAIT_INTERVAL,
                                missing_state=None, description="resources"):
        """
        Poll C{fetch_states} with this client's reactor until every one of
        C{ids} is in one of C{terminal_states}.

        @see: L{txec2.client.polling.wait_for_terminal_state}
        """
        return wait_for_terminal_state(
            ids, fetch_states, terminal_states, self.reactor,
            timeout=timeout, interval=interval, missing_state=missing_state,
            description=description)

    def wait_for_instances(self, instance_ids, timeout=WAIT_TIMEOUT):
        """
        Wait until each instance is running, stopped or terminated.

        @return: A C{Deferred} that will fire with a mapping of instance ID
            to state.
        """
        def fetch_states(pending):
            d = self.describe_instances(*pending)
            return d.addCallback(lambda instances: dict(
                (instance.instance_id, instance.state)
                for instance in instances))

        return self.wait_for_terminal_state(
            _ids(instance_ids), fetch_states, INSTANCE_TERMINAL_STATES,
            timeout=timeout, missing_state="terminated",
            description="instances")

    def wait_for_volumes(self, volume_ids, timeout=WAIT_TIMEOUT):
        """
        Wait until each volume is available, in use, deleted or in error.
        Volumes which are no longer described count as deleted.
        """
        def fetch_states(pending):
            d = self.describe_volumes(*pending)
            return d.addCallback(lambda volumes: dict(
                (volume.volume_id, volume.status) for volume in volumes))

        return self.wait_for_terminal_state(
            _ids(volume_ids), fetch_states, VOLUME_TERMINAL_STATES,
            timeout=timeout, missing_state="deleted", description="volumes")

    def wait_for_attachments(self, attachments, timeout=WAIT_TIMEOUT):
        """
        Wait until each L{model.Attachment} is attached or detached.

        @return: A C{Deferred} that will fire with a mapping of
            C{(volume_id, instance_id)} to attachment status.
        """
        attachments = list(attachments)

        def fetch_states(pending):
            volume_ids = sorted(set(volume for volume, _ in pending))
            d = self.describe_volumes(*volume_ids)

            def statuses(volumes):
                current = {}
                for volume in volumes:
                    for attachment in volume.attachments:
                        key = (volume.volume_id,
                               attachment.get("instance_id"))
                        current[key] = attachment.get("status")
                return current
            return d.addCallback(statuses)

        return self.wait_for_terminal_state(
            [(attachment.volume_id, attachment.instance_id)
             for attachment in attachments],
            fetch_states, ATTACHMENT_TERMINAL_STATES, timeout=timeout,
            missing_state="detached", description="attachments")

    def wait_for_snapshots(self, snapshot_ids, timeout=None):
        """
        Wait until each snapshot is completed or in error.  Snapshots can
        take hours, so there is no timeout unless one is given.
        """
        def fetch_states(pending):
            d = self.describe_snapshots(*pending)
            return d.addCallback(lambda snapshots: dict(
                (snapshot.snapshot_id, snapshot.status)
                for snapshot in snapshots))

        return self.wait_for_terminal_state(
            _ids(snapshot_ids), fetch_states, SNAPSHOT_TERMINAL_STATES,
            timeout=timeout, description="snapshots")


def _ids(resources):
    """
    Identifiers of C{resources}, which may be IDs or result objects.
    """
    if isinstance(resources, str):
        resources = [resources]
    return [str(resource) for resource in resources]
