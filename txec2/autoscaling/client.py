# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Auto Scaling actions.

Requests go to the Auto Scaling endpoint of the client's region, derived from
its EC2 endpoint, with the Auto Scaling API version.
"""

from txec2.autoscaling.model import (
    AutoScalingGroup, LaunchConfiguration, ScalingPolicy)
from txec2.client.dispatch import boolean, custom, fetch_list
from txec2.client.invoker import action
from txec2.client.parameters import (
    Base64, Boolean, MemberList, Prefix, Single, StructureList)
from txec2.service import AUTOSCALING


__all__ = ["AutoScalingMixin", "RULES"]


_BLOCK_DEVICE_MAPPINGS = StructureList(
    "BlockDeviceMappings",
    fields=("DeviceName", "VirtualName", "NoDevice", Prefix(
        "Ebs", fields=(Single("SnapshotId"), Single("VolumeSize"),
                       Single("VolumeType"), Single("Iops"),
                       Boolean("DeleteOnTermination")))))

_TAGS = StructureList(
    "Tags",
    fields=("Key", "Value", "PropagateAtLaunch", "ResourceId",
            "ResourceType"))

_GROUP_OPTIONS = (
    MemberList("AvailabilityZones"), MemberList("TerminationPolicies"),
    Single("DefaultCooldown"), Single("DesiredCapacity"),
    Single("HealthCheckGracePeriod"), Single("HealthCheckType"),
    Single("PlacementGroup"), Single("VPCZoneIdentifier"))

_GROUP_ALIASES = {
    "auto_scaling_group_name": ("name",),
    "launch_configuration_name": ("launch_config",),
    "availability_zones": ("availability_zone", "zones"),
    "vpc_zone_identifier": ("subnets",),
}

_DESCRIBE_LAUNCH_CONFIGURATIONS = action(
    "DescribeLaunchConfigurations",
    MemberList("LaunchConfigurationNames"), Single("MaxRecords"),
    default_key="launch_configuration_names",
    aliases={"launch_configuration_names": ("names", "name")})

_CREATE_LAUNCH_CONFIGURATION = action(
    "CreateLaunchConfiguration",
    Single("LaunchConfigurationName"), Single("ImageId"),
    Single("InstanceType"), _BLOCK_DEVICE_MAPPINGS,
    MemberList("SecurityGroups"), Boolean("EbsOptimized"),
    Base64("UserData"),
    Boolean("InstanceMonitoring.Enabled", key="instance_monitoring"),
    Single("IamInstanceProfile"), Single("KernelId"), Single("KeyName"),
    Single("RamdiskId"), Single("SpotPrice"),
    Boolean("AssociatePublicIpAddress"),
    required=("launch_configuration_name", "image_id", "instance_type"),
    aliases={
        "launch_configuration_name": ("name",),
        "security_groups": ("security_group",),
        "block_device_mappings": ("block_devices",),
    })

_DELETE_LAUNCH_CONFIGURATION = action(
    "DeleteLaunchConfiguration", Single("LaunchConfigurationName"),
    default_key="launch_configuration_name",
    required=("launch_configuration_name",),
    aliases={"launch_configuration_name": ("name",)})

_DESCRIBE_AUTO_SCALING_GROUPS = action(
    "DescribeAutoScalingGroups", MemberList("AutoScalingGroupNames"),
    Single("MaxRecords"),
    default_key="auto_scaling_group_names",
    aliases={"auto_scaling_group_names": ("names", "name")})

_CREATE_AUTO_SCALING_GROUP = action(
    "CreateAutoScalingGroup",
    Single("AutoScalingGroupName"), Single("LaunchConfigurationName"),
    Single("MinSize"), Single("MaxSize"), MemberList("LoadBalancerNames"),
    _TAGS, *_GROUP_OPTIONS,
    required=("auto_scaling_group_name", "launch_configuration_name",
              "min_size", "max_size"),
    aliases=dict(_GROUP_ALIASES,
                 load_balancer_names=("load_balancer_name",)))

_UPDATE_AUTO_SCALING_GROUP = action(
    "UpdateAutoScalingGroup",
    Single("AutoScalingGroupName"), Single("LaunchConfigurationName"),
    Single("MinSize"), Single("MaxSize"), *_GROUP_OPTIONS,
    required=("auto_scaling_group_name",),
    aliases=_GROUP_ALIASES)

_DELETE_AUTO_SCALING_GROUP = action(
    "DeleteAutoScalingGroup", Single("AutoScalingGroupName"),
    Boolean("ForceDelete"),
    default_key="auto_scaling_group_name",
    required=("auto_scaling_group_name",),
    aliases={"auto_scaling_group_name": ("name",)})

_SUSPEND_PROCESSES = action(
    "SuspendProcesses", Single("AutoScalingGroupName"),
    MemberList("ScalingProcesses"),
    required=("auto_scaling_group_name",),
    aliases={
        "auto_scaling_group_name": ("name",),
        "scaling_processes": ("processes",),
    })

_RESUME_PROCESSES = action(
    "ResumeProcesses", Single("AutoScalingGroupName"),
    MemberList("ScalingProcesses"),
    required=("auto_scaling_group_name",),
    aliases={
        "auto_scaling_group_name": ("name",),
        "scaling_processes": ("processes",),
    })

_DESCRIBE_POLICIES = action(
    "DescribePolicies", Single("AutoScalingGroupName"),
    MemberList("PolicyNames"),
    default_key="auto_scaling_group_name",
    aliases={
        "auto_scaling_group_name": ("name",),
        "policy_names": ("policy_name",),
    })

_PUT_SCALING_POLICY = action(
    "PutScalingPolicy", Single("AutoScalingGroupName"),
    Single("PolicyName"), Single("AdjustmentType"),
    Single("ScalingAdjustment"), Single("Cooldown"),
    Single("MinAdjustmentStep"),
    required=("auto_scaling_group_name", "policy_name", "adjustment_type",
              "scaling_adjustment"),
    aliases={"policy_name": ("name",)})

_DELETE_POLICY = action(
    "DeletePolicy", Single("AutoScalingGroupName"), Single("PolicyName"),
    required=("policy_name",),
    aliases={"policy_name": ("name",)})

_EXECUTE_POLICY = action(
    "ExecutePolicy", Single("AutoScalingGroupName"), Single("PolicyName"),
    Boolean("HonorCooldown"),
    required=("policy_name",),
    aliases={"policy_name": ("name",)})


def policy_arn(root, client):
    """The ARN of the policy a C{PutScalingPolicy} request created."""
    for element in root.iter("PolicyARN"):
        return element.text
    return None


RULES = {
    "DescribeLaunchConfigurations": fetch_list(
        "LaunchConfigurations", LaunchConfiguration),
    "CreateLaunchConfiguration": boolean(),
    "DeleteLaunchConfiguration": boolean(),
    "DescribeAutoScalingGroups": fetch_list(
        "AutoScalingGroups", AutoScalingGroup),
    "CreateAutoScalingGroup": boolean(),
    "UpdateAutoScalingGroup": boolean(),
    "DeleteAutoScalingGroup": boolean(),
    "SuspendProcesses": boolean(),
    "ResumeProcesses": boolean(),
    "DescribePolicies": fetch_list("ScalingPolicies", ScalingPolicy),
    "PutScalingPolicy": custom(policy_arn),
    "DeletePolicy": boolean(),
    "ExecutePolicy": boolean(),
}


class AutoScalingMixin(object):
    """Auto Scaling actions of L{EC2Client}."""

    def describe_launch_configurations(self, *args, **kwargs):
        """
        @param args: Optionally, the names of the configurations.
        @return: A C{Deferred} that will fire with a list of
            L{LaunchConfiguration}s.
        """
        return self.call(
            _DESCRIBE_LAUNCH_CONFIGURATIONS, args, kwargs, AUTOSCALING)

    def create_launch_configuration(self, **kwargs):
        """
        Create a launch configuration named C{name} from C{image_id} and
        C{instance_type}.

        @param block_device_mappings: A list of mappings with
            C{DeviceName}, C{VirtualName} and C{Ebs} entries.
        @param instance_monitoring: Whether detailed monitoring is enabled.
        """
        return self.call(
            _CREATE_LAUNCH_CONFIGURATION, (), kwargs, AUTOSCALING)

    def delete_launch_configuration(self, *args, **kwargs):
        return self.call(
            _DELETE_LAUNCH_CONFIGURATION, args, kwargs, AUTOSCALING)

    def describe_auto_scaling_groups(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with a list of
            L{AutoScalingGroup}s.
        """
        return self.call(
            _DESCRIBE_AUTO_SCALING_GROUPS, args, kwargs, AUTOSCALING)

    def create_auto_scaling_group(self, **kwargs):
        """
        Create a group named C{name} running C{launch_config} with between
        C{min_size} and C{max_size} instances.

        @param tags: A list of mappings with C{Key}, C{Value} and
            C{PropagateAtLaunch} entries.
        """
        return self.call(_CREATE_AUTO_SCALING_GROUP, (), kwargs, AUTOSCALING)

    def update_auto_scaling_group(self, **kwargs):
        return self.call(_UPDATE_AUTO_SCALING_GROUP, (), kwargs, AUTOSCALING)

    def delete_auto_scaling_group(self, *args, **kwargs):
        return self.call(_DELETE_AUTO_SCALING_GROUP, args, kwargs, AUTOSCALING)

    def suspend_processes(self, name, *processes):
        """
        Suspend scaling processes of a group, all of them when none are
        named.
        """
        return self.call(
            _SUSPEND_PROCESSES, (),
            {"auto_scaling_group_name": name,
             "scaling_processes": processes}, AUTOSCALING)

    def resume_processes(self, name, *processes):
        return self.call(
            _RESUME_PROCESSES, (),
            {"auto_scaling_group_name": name,
             "scaling_processes": processes}, AUTOSCALING)

    def describe_policies(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with a list of
            L{ScalingPolicy}s.
        """
        return self.call(_DESCRIBE_POLICIES, args, kwargs, AUTOSCALING)

    def put_scaling_policy(self, **kwargs):
        """
        @return: A C{Deferred} that will fire with the ARN of the policy.
        """
        return self.call(_PUT_SCALING_POLICY, (), kwargs, AUTOSCALING)

    def delete_policy(self, **kwargs):
        return self.call(_DELETE_POLICY, (), kwargs, AUTOSCALING)

    def execute_policy(self, **kwargs):
        return self.call(_EXECUTE_POLICY, (), kwargs, AUTOSCALING)
