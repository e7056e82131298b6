# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""RDS result objects."""

from txec2.model import Generic


class DBInstance(Generic):
    """A database instance.

    @ivar db_instance_identifier: The user supplied identifier.
    @ivar db_instance_class: The compute and memory class, e.g.
        C{"db.m1.small"}.
    @ivar engine: The database engine.
    @ivar db_instance_status: creating, available, modifying, deleting and
        so on.
    """
    primary_id = "db_instance_identifier"

    @property
    def status(self):
        return self.get("db_instance_status")

    @property
    def address(self):
        """The host name clients connect to, once the instance is up."""
        return self.element.findtext("Endpoint/Address")

    @property
    def port(self):
        port = self.element.findtext("Endpoint/Port")
        if port is None:
            return None
        return int(port)

    @property
    def instance_create_time(self):
        return self.get_time("instance_create_time")

    def current_status(self):
        """
        Fetch the current status of this instance.

        @return: A L{Deferred} firing with the status text.
        """
        d = self.client.describe_db_instances(self.db_instance_identifier)
        return d.addCallback(lambda page: page[0].status)


class DBSnapshot(Generic):
    """
    @ivar db_snapshot_identifier: The snapshot's identifier.
    @ivar db_instance_identifier: The instance it was taken from.
    @ivar status: creating, available and so on.
    """
    primary_id = "db_snapshot_identifier"

    @property
    def snapshot_create_time(self):
        return self.get_time("snapshot_create_time")


class DBSecurityGroup(Generic):
    primary_id = "db_security_group_name"

    @property
    def ip_ranges(self):
        return [(ip_range.cidrip, ip_range.status)
                for ip_range in self.get("ip_ranges", [])]


class DBParameterGroup(Generic):
    primary_id = "db_parameter_group_name"


class DBParameter(Generic):
    """
    One parameter of a parameter group.

    @ivar parameter_name: Its name.
    @ivar parameter_value: Its value, absent when the engine default
        applies.
    @ivar apply_method: C{"immediate"} or C{"pending-reboot"}.
    """
    primary_id = "parameter_name"


class DBSubnetGroup(Generic):
    primary_id = "db_subnet_group_name"

    @property
    def subnet_ids(self):
        return [subnet.subnet_identifier
                for subnet in self.get("subnets", [])]


class DBEngineVersion(Generic):
    """An engine version RDS can run."""

    def __repr__(self):
        return "<DBEngineVersion %s %s>" % (
            self.get("engine"), self.get("engine_version"))


class EngineDefaults(Generic):
    """The default parameters of a parameter group family."""

    @property
    def parameters(self):
        element = self.element.find("Parameters")
        if element is None:
            return []
        return [DBParameter(item, self.client) for item in element]


class Event(Generic):
    """An RDS event.

    @ivar source_identifier: The resource the event concerns.
    @ivar message: The event text.
    """

    def __repr__(self):
        return "<Event %s: %s>" % (
            self.get("source_identifier"), self.get("message"))

    @property
    def date(self):
        return self.get_time("date")
