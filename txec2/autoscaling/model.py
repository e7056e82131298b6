# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""Auto Scaling result objects."""

from txec2.model import Generic


class LaunchConfiguration(Generic):
    """
    @ivar launch_configuration_name: The name of the configuration.
    @ivar image_id: The AMI instances are launched from.
    @ivar instance_type: The type of the instances launched.
    """
    primary_id = "launch_configuration_name"

    @property
    def created_time(self):
        return self.get_time("created_time")


class AutoScalingGroup(Generic):
    """An Auto Scaling group.

    @ivar auto_scaling_group_name: The name of the group.
    @ivar launch_configuration_name: The configuration new instances are
        launched with.
    @ivar min_size: The minimum size of the group, as text.
    @ivar max_size: The maximum size of the group, as text.
    """
    primary_id = "auto_scaling_group_name"

    @property
    def instance_ids(self):
        return [instance.instance_id
                for instance in self.get("instances", [])]

    @property
    def suspended_processes(self):
        return [process.process_name
                for process in self.get("suspended_processes", [])]


class ScalingPolicy(Generic):
    primary_id = "policy_name"
