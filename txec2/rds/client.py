# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Relational Database Service actions.

Requests go to the RDS endpoint of the client's region, derived from its EC2
endpoint, with the RDS API version.  The describe actions page their results
with a C{Marker}; they fire with a L{Page}.
"""

from txec2.client.dispatch import (
    boolean, custom, fetch_list_iterator, fetch_one, find_field)
from txec2.client.invoker import action
from txec2.client.parameters import (
    Boolean, MemberList, Single, StructureList, TagList)
from txec2.model import tag_set
from txec2.rds.model import (
    DBEngineVersion, DBInstance, DBParameter, DBParameterGroup,
    DBSecurityGroup, DBSnapshot, DBSubnetGroup, EngineDefaults, Event)
from txec2.service import RDS


__all__ = ["RDSMixin", "RULES"]


_PAGING = (Single("Marker"), Single("MaxRecords"))

_INSTANCE_OPTIONS = (
    Boolean("AutoMinorVersionUpgrade"), Boolean("MultiAZ"),
    Boolean("PubliclyAccessible"),
    Single("AllocatedStorage"), Single("AvailabilityZone"),
    Single("BackupRetentionPeriod"), Single("DBInstanceClass"),
    Single("DBParameterGroupName"), Single("EngineVersion"), Single("Iops"),
    Single("MasterUserPassword"), Single("OptionGroupName"),
    Single("PreferredBackupWindow"), Single("PreferredMaintenanceWindow"),
    MemberList("VpcSecurityGroupIds"), MemberList("DBSecurityGroups"))

_INSTANCE_ALIASES = {
    "db_instance_identifier": ("db_instance_id", "db_id"),
    "availability_zone": ("zone",),
    "db_security_groups": ("db_security_group",),
    "vpc_security_group_ids": ("vpc_security_group_id",),
}

_CREATE_DB_INSTANCE = action(
    "CreateDBInstance", Single("DBInstanceIdentifier"), Single("Engine"),
    Single("MasterUsername"), Single("DBName"), Single("DBSubnetGroupName"),
    Single("CharacterSetName"), Single("LicenseModel"), Single("Port"),
    TagList("Tags"), *_INSTANCE_OPTIONS,
    required=("allocated_storage", "db_instance_class",
              "db_instance_identifier", "engine", "master_user_password",
              "master_username"),
    aliases=_INSTANCE_ALIASES)

_CREATE_DB_INSTANCE_READ_REPLICA = action(
    "CreateDBInstanceReadReplica", Single("DBInstanceIdentifier"),
    Single("SourceDBInstanceIdentifier"), Single("DBInstanceClass"),
    Single("AvailabilityZone"), Single("Iops"), Single("OptionGroupName"),
    Single("Port"), Boolean("AutoMinorVersionUpgrade"),
    Boolean("PubliclyAccessible"),
    required=("db_instance_identifier", "source_db_instance_identifier"),
    aliases=dict(_INSTANCE_ALIASES,
                 source_db_instance_identifier=("source",)))

_MODIFY_DB_INSTANCE = action(
    "ModifyDBInstance", Single("DBInstanceIdentifier"),
    Single("NewDBInstanceIdentifier"), Boolean("ApplyImmediately"),
    Boolean("AllowMajorVersionUpgrade"), *_INSTANCE_OPTIONS,
    default_key="db_instance_identifier",
    required=("db_instance_identifier",),
    aliases=_INSTANCE_ALIASES)

_DELETE_DB_INSTANCE = action(
    "DeleteDBInstance", Single("DBInstanceIdentifier"),
    Boolean("SkipFinalSnapshot"), Single("FinalDBSnapshotIdentifier"),
    default_key="db_instance_identifier",
    required=("db_instance_identifier",),
    required_any=(("skip_final_snapshot", "final_db_snapshot_identifier"),),
    exclusive=(("skip_final_snapshot", "final_db_snapshot_identifier"),),
    aliases=_INSTANCE_ALIASES)

_REBOOT_DB_INSTANCE = action(
    "RebootDBInstance", Single("DBInstanceIdentifier"),
    Boolean("ForceFailover"),
    default_key="db_instance_identifier",
    required=("db_instance_identifier",),
    aliases=_INSTANCE_ALIASES)

_DESCRIBE_DB_INSTANCES = action(
    "DescribeDBInstances", Single("DBInstanceIdentifier"), *_PAGING,
    default_key="db_instance_identifier",
    aliases=_INSTANCE_ALIASES)

_CREATE_DB_SNAPSHOT = action(
    "CreateDBSnapshot", Single("DBInstanceIdentifier"),
    Single("DBSnapshotIdentifier"),
    required=("db_instance_identifier", "db_snapshot_identifier"),
    aliases=dict(_INSTANCE_ALIASES,
                 db_snapshot_identifier=("snapshot_id", "db_snap_id")))

_COPY_DB_SNAPSHOT = action(
    "CopyDBSnapshot", Single("SourceDBSnapshotIdentifier"),
    Single("TargetDBSnapshotIdentifier"),
    required=("source_db_snapshot_identifier",
              "target_db_snapshot_identifier"),
    aliases={
        "source_db_snapshot_identifier": ("source",),
        "target_db_snapshot_identifier": ("target",),
    })

_DELETE_DB_SNAPSHOT = action(
    "DeleteDBSnapshot", Single("DBSnapshotIdentifier"),
    default_key="db_snapshot_identifier",
    required=("db_snapshot_identifier",),
    aliases={"db_snapshot_identifier": ("snapshot_id", "db_snap_id")})

_DESCRIBE_DB_SNAPSHOTS = action(
    "DescribeDBSnapshots", Single("DBInstanceIdentifier"),
    Single("DBSnapshotIdentifier"), Single("SnapshotType"), *_PAGING,
    default_key="db_snapshot_identifier",
    exclusive=(("db_instance_identifier", "db_snapshot_identifier"),),
    aliases=dict(_INSTANCE_ALIASES,
                 db_snapshot_identifier=("snapshot_id", "db_snap_id")))

_SECURITY_GROUP_ALIASES = {
    "db_security_group_name": ("name", "group_name"),
    "db_security_group_description": ("description",),
}

_SECURITY_GROUP_INGRESS = (
    Single("DBSecurityGroupName"), Single("CIDRIP"),
    Single("EC2SecurityGroupId"), Single("EC2SecurityGroupName"),
    Single("EC2SecurityGroupOwnerId"))

_CREATE_DB_SECURITY_GROUP = action(
    "CreateDBSecurityGroup", Single("DBSecurityGroupName"),
    Single("DBSecurityGroupDescription"),
    required=("db_security_group_name", "db_security_group_description"),
    aliases=_SECURITY_GROUP_ALIASES)

_DELETE_DB_SECURITY_GROUP = action(
    "DeleteDBSecurityGroup", Single("DBSecurityGroupName"),
    default_key="db_security_group_name",
    required=("db_security_group_name",),
    aliases=_SECURITY_GROUP_ALIASES)

_DESCRIBE_DB_SECURITY_GROUPS = action(
    "DescribeDBSecurityGroups", Single("DBSecurityGroupName"), *_PAGING,
    default_key="db_security_group_name",
    aliases=_SECURITY_GROUP_ALIASES)

_AUTHORIZE_DB_SECURITY_GROUP_INGRESS = action(
    "AuthorizeDBSecurityGroupIngress", *_SECURITY_GROUP_INGRESS,
    required=("db_security_group_name",),
    required_any=(("cidrip", "ec2_security_group_id",
                   "ec2_security_group_name"),),
    aliases=dict(_SECURITY_GROUP_ALIASES, cidrip=("cidr", "cidr_ip")))

_REVOKE_DB_SECURITY_GROUP_INGRESS = action(
    "RevokeDBSecurityGroupIngress", *_SECURITY_GROUP_INGRESS,
    required=("db_security_group_name",),
    required_any=(("cidrip", "ec2_security_group_id",
                   "ec2_security_group_name"),),
    aliases=dict(_SECURITY_GROUP_ALIASES, cidrip=("cidr", "cidr_ip")))

_PARAMETER_GROUP_ALIASES = {
    "db_parameter_group_name": ("name", "group_name"),
    "db_parameter_group_family": ("family",),
}

_PARAMETERS = StructureList(
    "Parameters", fields=("ParameterName", "ParameterValue", "ApplyMethod"))

_CREATE_DB_PARAMETER_GROUP = action(
    "CreateDBParameterGroup", Single("DBParameterGroupName"),
    Single("DBParameterGroupFamily"), Single("Description"),
    required=("db_parameter_group_name", "db_parameter_group_family",
              "description"),
    aliases=_PARAMETER_GROUP_ALIASES)

_DELETE_DB_PARAMETER_GROUP = action(
    "DeleteDBParameterGroup", Single("DBParameterGroupName"),
    default_key="db_parameter_group_name",
    required=("db_parameter_group_name",),
    aliases=_PARAMETER_GROUP_ALIASES)

_DESCRIBE_DB_PARAMETER_GROUPS = action(
    "DescribeDBParameterGroups", Single("DBParameterGroupName"), *_PAGING,
    default_key="db_parameter_group_name",
    aliases=_PARAMETER_GROUP_ALIASES)

_DESCRIBE_DB_PARAMETERS = action(
    "DescribeDBParameters", Single("DBParameterGroupName"), Single("Source"),
    *_PAGING,
    default_key="db_parameter_group_name",
    required=("db_parameter_group_name",),
    aliases=_PARAMETER_GROUP_ALIASES)

_MODIFY_DB_PARAMETER_GROUP = action(
    "ModifyDBParameterGroup", Single("DBParameterGroupName"), _PARAMETERS,
    required=("db_parameter_group_name", "parameters"),
    aliases=_PARAMETER_GROUP_ALIASES)

_RESET_DB_PARAMETER_GROUP = action(
    "ResetDBParameterGroup", Single("DBParameterGroupName"),
    Boolean("ResetAllParameters"), _PARAMETERS,
    default_key="db_parameter_group_name",
    required=("db_parameter_group_name",),
    required_any=(("reset_all_parameters", "parameters"),),
    aliases=_PARAMETER_GROUP_ALIASES)

_DESCRIBE_ENGINE_DEFAULT_PARAMETERS = action(
    "DescribeEngineDefaultParameters", Single("DBParameterGroupFamily"),
    *_PAGING,
    default_key="db_parameter_group_family",
    required=("db_parameter_group_family",),
    aliases=_PARAMETER_GROUP_ALIASES)

_SUBNET_GROUP_ALIASES = {
    "db_subnet_group_name": ("name", "group_name"),
    "db_subnet_group_description": ("description",),
    "subnet_ids": ("subnet_id",),
}

_CREATE_DB_SUBNET_GROUP = action(
    "CreateDBSubnetGroup", Single("DBSubnetGroupName"),
    Single("DBSubnetGroupDescription"), MemberList("SubnetIds"),
    required=("db_subnet_group_name", "db_subnet_group_description",
              "subnet_ids"),
    aliases=_SUBNET_GROUP_ALIASES)

_DELETE_DB_SUBNET_GROUP = action(
    "DeleteDBSubnetGroup", Single("DBSubnetGroupName"),
    default_key="db_subnet_group_name",
    required=("db_subnet_group_name",),
    aliases=_SUBNET_GROUP_ALIASES)

_DESCRIBE_DB_SUBNET_GROUPS = action(
    "DescribeDBSubnetGroups", Single("DBSubnetGroupName"), *_PAGING,
    default_key="db_subnet_group_name",
    aliases=_SUBNET_GROUP_ALIASES)

_DESCRIBE_DB_ENGINE_VERSIONS = action(
    "DescribeDBEngineVersions", Single("DBParameterGroupFamily"),
    Boolean("DefaultOnly"), Single("Engine"), Single("EngineVersion"),
    Boolean("ListSupportedCharacterSets"), *_PAGING,
    default_key="engine",
    aliases=_PARAMETER_GROUP_ALIASES)

_DESCRIBE_EVENTS = action(
    "DescribeEvents", Single("Duration"), Single("StartTime"),
    Single("EndTime"), Single("SourceIdentifier"), Single("SourceType"),
    MemberList("EventCategories"), *_PAGING,
    default_key="source_identifier")

_ADD_TAGS_TO_RESOURCE = action(
    "AddTagsToResource", Single("ResourceName"), TagList("Tags"),
    required=("resource_name", "tags"))

_REMOVE_TAGS_FROM_RESOURCE = action(
    "RemoveTagsFromResource", Single("ResourceName"), MemberList("TagKeys"),
    required=("resource_name", "tag_keys"),
    aliases={"tag_keys": ("keys", "tags")})

_LIST_TAGS_FOR_RESOURCE = action(
    "ListTagsForResource", Single("ResourceName"),
    default_key="resource_name", required=("resource_name",))


def resource_tags(root, client):
    """The tags of a C{ListTagsForResource} response, as a dict."""
    return tag_set(find_field(root, "TagList"))


def parameter_group_name(root, client):
    """
    The name of the group changed by C{ModifyDBParameterGroup} or
    C{ResetDBParameterGroup}.
    """
    element = find_field(root, "DBParameterGroupName")
    if element is None:
        return None
    return element.text


def _paged(tag, result_type):
    return fetch_list_iterator(tag, result_type, cursor="Marker")


RULES = {
    "CreateDBInstance": fetch_one("DBInstance", DBInstance),
    "CreateDBInstanceReadReplica": fetch_one("DBInstance", DBInstance),
    "ModifyDBInstance": fetch_one("DBInstance", DBInstance),
    "DeleteDBInstance": fetch_one("DBInstance", DBInstance),
    "RebootDBInstance": fetch_one("DBInstance", DBInstance),
    "DescribeDBInstances": _paged("DBInstances", DBInstance),
    "CreateDBSnapshot": fetch_one("DBSnapshot", DBSnapshot),
    "CopyDBSnapshot": fetch_one("DBSnapshot", DBSnapshot),
    "DeleteDBSnapshot": fetch_one("DBSnapshot", DBSnapshot),
    "DescribeDBSnapshots": _paged("DBSnapshots", DBSnapshot),
    "CreateDBSecurityGroup": fetch_one("DBSecurityGroup", DBSecurityGroup),
    "DeleteDBSecurityGroup": boolean(),
    "DescribeDBSecurityGroups": _paged("DBSecurityGroups", DBSecurityGroup),
    "AuthorizeDBSecurityGroupIngress": fetch_one(
        "DBSecurityGroup", DBSecurityGroup),
    "RevokeDBSecurityGroupIngress": fetch_one(
        "DBSecurityGroup", DBSecurityGroup),
    "CreateDBParameterGroup": fetch_one(
        "DBParameterGroup", DBParameterGroup),
    "DeleteDBParameterGroup": boolean(),
    "DescribeDBParameterGroups": _paged(
        "DBParameterGroups", DBParameterGroup),
    "DescribeDBParameters": _paged("Parameters", DBParameter),
    "ModifyDBParameterGroup": custom(parameter_group_name),
    "ResetDBParameterGroup": custom(parameter_group_name),
    "DescribeEngineDefaultParameters": fetch_one(
        "EngineDefaults", EngineDefaults),
    "CreateDBSubnetGroup": fetch_one("DBSubnetGroup", DBSubnetGroup),
    "DeleteDBSubnetGroup": boolean(),
    "DescribeDBSubnetGroups": _paged("DBSubnetGroups", DBSubnetGroup),
    "DescribeDBEngineVersions": _paged("DBEngineVersions", DBEngineVersion),
    "DescribeEvents": _paged("Events", Event),
    "AddTagsToResource": boolean(),
    "RemoveTagsFromResource": boolean(),
    "ListTagsForResource": custom(resource_tags),
}


class RDSMixin(object):
    """RDS actions of L{EC2Client}."""

    def create_db_instance(self, **kwargs):
        """
        Create a database instance.

        @param db_instance_identifier: The identifier of the new instance.
        @param allocated_storage: Its storage in GiB.
        @param db_instance_class: Its class, e.g. C{"db.m1.small"}.
        @param engine: The engine, e.g. C{"mysql"}.
        @param master_username: The name of the master user.
        @param master_user_password: The password of the master user.
        @param tags: A mapping of tag names to values.
        @return: A C{Deferred} that will fire with the new L{DBInstance}.
        @raise MissingArgumentError: If any of the above but C{tags} is
            missing; nothing is sent.
        """
        return self.call(_CREATE_DB_INSTANCE, (), kwargs, RDS)

    def create_db_instance_read_replica(self, **kwargs):
        return self.call(_CREATE_DB_INSTANCE_READ_REPLICA, (), kwargs, RDS)

    def modify_db_instance(self, *args, **kwargs):
        """
        Change the settings of an instance.  Changes wait for the next
        maintenance window unless C{apply_immediately} is true.
        """
        return self.call(_MODIFY_DB_INSTANCE, args, kwargs, RDS)

    def delete_db_instance(self, *args, **kwargs):
        """
        Delete an instance, either with C{skip_final_snapshot} or after
        taking the snapshot C{final_db_snapshot_identifier}.
        """
        return self.call(_DELETE_DB_INSTANCE, args, kwargs, RDS)

    def reboot_db_instance(self, *args, **kwargs):
        return self.call(_REBOOT_DB_INSTANCE, args, kwargs, RDS)

    def describe_db_instances(self, *args, **kwargs):
        """
        @param args: Optionally, the identifier of one instance.
        @param max_records: The page size.
        @return: A C{Deferred} that will fire with the first L{Page} of
            L{DBInstance}s.
        """
        return self.call_paginated(_DESCRIBE_DB_INSTANCES, args, kwargs, RDS)

    def create_db_snapshot(self, **kwargs):
        return self.call(_CREATE_DB_SNAPSHOT, (), kwargs, RDS)

    def copy_db_snapshot(self, **kwargs):
        return self.call(_COPY_DB_SNAPSHOT, (), kwargs, RDS)

    def delete_db_snapshot(self, *args, **kwargs):
        return self.call(_DELETE_DB_SNAPSHOT, args, kwargs, RDS)

    def describe_db_snapshots(self, *args, **kwargs):
        """
        Describe the snapshots of C{db_instance_identifier}, or the single
        snapshot C{db_snapshot_identifier}; not both.
        """
        return self.call_paginated(_DESCRIBE_DB_SNAPSHOTS, args, kwargs, RDS)

    def create_db_security_group(self, **kwargs):
        return self.call(_CREATE_DB_SECURITY_GROUP, (), kwargs, RDS)

    def delete_db_security_group(self, *args, **kwargs):
        return self.call(_DELETE_DB_SECURITY_GROUP, args, kwargs, RDS)

    def describe_db_security_groups(self, *args, **kwargs):
        return self.call_paginated(
            _DESCRIBE_DB_SECURITY_GROUPS, args, kwargs, RDS)

    def authorize_db_security_group_ingress(self, **kwargs):
        """
        Allow access to a DB security group from a CIDR range (C{cidrip}) or
        from an EC2 security group.
        """
        return self.call(_AUTHORIZE_DB_SECURITY_GROUP_INGRESS, (), kwargs, RDS)

    def revoke_db_security_group_ingress(self, **kwargs):
        return self.call(_REVOKE_DB_SECURITY_GROUP_INGRESS, (), kwargs, RDS)

    def create_db_parameter_group(self, **kwargs):
        return self.call(_CREATE_DB_PARAMETER_GROUP, (), kwargs, RDS)

    def delete_db_parameter_group(self, *args, **kwargs):
        return self.call(_DELETE_DB_PARAMETER_GROUP, args, kwargs, RDS)

    def describe_db_parameter_groups(self, *args, **kwargs):
        return self.call_paginated(
            _DESCRIBE_DB_PARAMETER_GROUPS, args, kwargs, RDS)

    def describe_db_parameters(self, *args, **kwargs):
        return self.call_paginated(_DESCRIBE_DB_PARAMETERS, args, kwargs, RDS)

    def modify_db_parameter_group(self, **kwargs):
        """
        Change parameters of a group.

        @param parameters: A list of mappings with C{ParameterName},
            C{ParameterValue} and C{ApplyMethod} entries, or of
            L{DBParameter}s.
        @return: A C{Deferred} that will fire with the group name.
        """
        return self.call(_MODIFY_DB_PARAMETER_GROUP, (), kwargs, RDS)

    def reset_db_parameter_group(self, *args, **kwargs):
        return self.call(_RESET_DB_PARAMETER_GROUP, args, kwargs, RDS)

    def describe_engine_default_parameters(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with the L{EngineDefaults} of
            a parameter group family.
        """
        return self.call(
            _DESCRIBE_ENGINE_DEFAULT_PARAMETERS, args, kwargs, RDS)

    def create_db_subnet_group(self, **kwargs):
        return self.call(_CREATE_DB_SUBNET_GROUP, (), kwargs, RDS)

    def delete_db_subnet_group(self, *args, **kwargs):
        return self.call(_DELETE_DB_SUBNET_GROUP, args, kwargs, RDS)

    def describe_db_subnet_groups(self, *args, **kwargs):
        return self.call_paginated(
            _DESCRIBE_DB_SUBNET_GROUPS, args, kwargs, RDS)

    def describe_db_engine_versions(self, *args, **kwargs):
        return self.call_paginated(
            _DESCRIBE_DB_ENGINE_VERSIONS, args, kwargs, RDS)

    def describe_events(self, *args, **kwargs):
        """
        @param duration: Minutes of events to return, counted back from
            now.
        @return: A C{Deferred} that will fire with the first L{Page} of
            L{Event}s.
        """
        return self.call_paginated(_DESCRIBE_EVENTS, args, kwargs, RDS)

    def add_tags_to_resource(self, resource_name, tags):
        """
        @param resource_name: The ARN of the resource.
        @param tags: A mapping of tag names to values.
        """
        return self.call(
            _ADD_TAGS_TO_RESOURCE, (),
            {"resource_name": resource_name, "tags": tags}, RDS)

    def remove_tags_from_resource(self, resource_name, *tag_keys):
        return self.call(
            _REMOVE_TAGS_FROM_RESOURCE, (),
            {"resource_name": resource_name, "tag_keys": tag_keys}, RDS)

    def list_tags_for_resource(self, *args, **kwargs):
        """
        @return: A C{Deferred} that will fire with a dict of the resource's
            tags.
        """
        return self.call(_LIST_TAGS_FOR_RESOURCE, args, kwargs, RDS)
