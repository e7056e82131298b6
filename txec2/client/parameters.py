# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Encoding of canonical options into flat Query API parameters.

Each parameter shape reads one canonical key from an L{ArgumentBag} and emits
zero or more C{(key, value)} pairs.  Absent, C{None} and empty values emit
nothing.  Every index is 1-based and contiguous: values dropped because they
are C{None} do not leave gaps.
"""

from base64 import b64encode
from collections.abc import Mapping
from datetime import datetime
import re

import attr
from attr import validators

from dateutil.tz import tzutc

from pyrsistent import pvector

from txec2.client.arguments import ArgumentBag, is_present
from txec2.util import canonicalize


__all__ = ["Single", "Boolean", "List", "MemberList", "StructureList",
           "TagList", "Filter", "Prefix", "Base64", "Value",
           "BlockDeviceMapping", "NetworkInterface", "PermissionList",
           "Encoding", "format_value"]


DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.000Z"

_BLOCK_DEVICE = re.compile(r"^([^=]+)=([^=]+)$")
_NETWORK_INTERFACE = re.compile(r"^eth(\d+)\s*=\s*([^=]+)$")
_IP_ADDRESS = re.compile(r"^\d+\.\d+\.\d+\.\d+$")
_BOOLEAN_TEXT = ("true", "false", "1", "0")


def format_value(value):
    """
    Render a scalar as the text AWS expects.

    Booleans become C{"true"}/C{"false"}, datetimes are rendered in UTC
    (naive datetimes are taken to be UTC already), bytes are decoded.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tzutc())
        return value.strftime(DATE_FORMAT)
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def as_list(value):
    """
    Treat a scalar as a one element list and drop C{None} elements.
    """
    if value is None:
        return []
    if isinstance(value, (str, bytes, Mapping)) or not _is_iterable(value):
        return [value]
    return [element for element in value if element is not None]


def _is_iterable(value):
    try:
        iter(value)
    except TypeError:
        return False
    return True


def _key_for(parameter):
    return canonicalize(parameter.name)


def _field(item, name):
    """
    Read the field C{name} from a mapping or from an object's attributes.

    Mappings may use the wire spelling or the snake_case spelling.
    """
    key = canonicalize(name)
    if isinstance(item, Mapping):
        value = item.get(name)
        if value is None:
            value = item.get(key)
        return value
    value = getattr(item, key, None)
    if value is None:
        value = getattr(item, name, None)
    return value


def _is_tag_structure(mapping):
    """
    Whether C{mapping} is one C{Key}/C{Value} structure rather than a mapping
    of tag keys to values.
    """
    return set(mapping) in ({"Key", "Value"}, {"key", "value"})


@attr.s(frozen=True)
class Parameter(object):
    """
    Base shape.  C{name} is the wire name; C{key} the canonical option,
    derived from the wire name unless given.
    """
    name = attr.ib(validator=validators.instance_of(str))
    key = attr.ib(default=attr.Factory(_key_for, takes_self=True))

    def format(self, bag):
        value = bag.get(self.key)
        if not is_present(value):
            return []
        return self.encode(value, self.name)

    def encode(self, value, prefix):
        raise NotImplementedError()


@attr.s(frozen=True)
class Single(Parameter):
    """C{Name=value}"""

    def encode(self, value, prefix):
        return [(prefix, format_value(value))]


@attr.s(frozen=True)
class Boolean(Parameter):
    """
    C{Name=true} or C{Name=false}.

    An absent option emits nothing unless a C{default} is declared.
    """
    default = attr.ib(default=None)

    def format(self, bag):
        value = bag.get(self.key)
        if not is_present(value):
            value = self.default
        if value is None:
            return []
        return self.encode(value, self.name)

    def encode(self, value, prefix):
        if isinstance(value, (str, bytes)):
            value = format_value(value).lower() in ("true", "1", "yes")
        return [(prefix, "true" if value else "false")]


@attr.s(frozen=True)
class Base64(Parameter):
    """C{Name=base64(value)}, encoded exactly once."""

    def encode(self, value, prefix):
        if isinstance(value, str):
            value = value.encode("utf-8")
        return [(prefix, b64encode(value).decode("ascii"))]


@attr.s(frozen=True)
class Value(Parameter):
    """C{Name.Value=value}, as used by the attribute modifying actions."""

    def encode(self, value, prefix):
        return [(prefix + ".Value", format_value(value))]


@attr.s(frozen=True)
class List(Parameter):
    """C{Name.1=v1, Name.2=v2, ...}"""

    infix = ""

    def encode(self, value, prefix):
        return [
            ("%s.%s%d" % (prefix, self.infix, index), format_value(element))
            for index, element in enumerate(as_list(value), 1)
        ]


@attr.s(frozen=True)
class MemberList(List):
    """C{Name.member.1=v1, Name.member.2=v2, ...}"""

    infix = "member."


@attr.s(frozen=True)
class StructureList(Parameter):
    """
    A list of structures, each emitting its fields under its index:
    C{Name.member.N.Field=value} (or C{Name.N.Field} with C{member=False}).

    Elements may be mappings or objects exposing the fields as snake_case
    attributes; both produce the same parameters.  A field may itself be a
    L{Parameter}, which is then encoded from the element under
    C{Name.member.N.<its name>}.
    """
    fields = attr.ib(default=(), converter=tuple)
    member = attr.ib(default=True)

    def encode(self, value, prefix):
        pairs = []
        index = 0
        for item in as_list(value):
            item_pairs = []
            for field in self.fields:
                if isinstance(field, Parameter):
                    nested = _field(item, field.name)
                    if is_present(nested):
                        item_pairs.extend(field.encode(nested, field.name))
                    continue
                field_value = _field(item, field)
                if is_present(field_value):
                    item_pairs.append((field, format_value(field_value)))
            if not item_pairs:
                continue
            index += 1
            if self.member:
                item_prefix = "%s.member.%d" % (prefix, index)
            else:
                item_prefix = "%s.%d" % (prefix, index)
            pairs.extend(
                ("%s.%s" % (item_prefix, key), text)
                for key, text in item_pairs)
        return pairs


@attr.s(frozen=True)
class TagList(Parameter):
    """
    Key/value pairs as C{Name.member.N.Key} and C{Name.member.N.Value}
    (C{Name.N.Key} with C{member=False}).

    Accepts a mapping of keys to values, a sequence of mappings with C{Key}
    and C{Value} entries, or C{"key=value"} strings.  A key whose value is
    C{None} is sent without a value, or with C{empty_value} when one is
    declared.
    """
    member = attr.ib(default=True)
    empty_value = attr.ib(default=None)

    def _pairs(self, value):
        if isinstance(value, Mapping) and not _is_tag_structure(value):
            return list(value.items())
        pairs = []
        for item in as_list(value):
            if isinstance(item, str):
                key, _, text = item.partition("=")
                pairs.append((key.strip(), text.strip() or None))
            elif isinstance(item, tuple):
                pairs.append(item)
            else:
                pairs.append((_field(item, "Key"), _field(item, "Value")))
        return pairs

    def encode(self, value, prefix):
        pairs = []
        for index, (key, text) in enumerate(self._pairs(value), 1):
            if self.member:
                item_prefix = "%s.member.%d" % (prefix, index)
            else:
                item_prefix = "%s.%d" % (prefix, index)
            pairs.append((item_prefix + ".Key", format_value(key)))
            if text is None:
                text = self.empty_value
            if text is not None:
                pairs.append((item_prefix + ".Value", format_value(text)))
        return pairs


@attr.s(frozen=True)
class Filter(Parameter):
    """
    C{Filter.N.Name=name, Filter.N.Value.M=value} for each filter in a
    mapping of filter names to one or several values.
    """
    name = attr.ib(default="Filter", validator=validators.instance_of(str))
    key = attr.ib(default="filter")

    def encode(self, value, prefix):
        pairs = []
        index = 0
        for filter_name, filter_value in value.items():
            values = as_list(filter_value)
            if not values:
                continue
            index += 1
            pairs.append(("%s.%d.Name" % (prefix, index), filter_name))
            pairs.extend(
                ("%s.%d.Value.%d" % (prefix, index, value_index),
                 format_value(element))
                for value_index, element in enumerate(values, 1))
        return pairs


@attr.s(frozen=True)
class Prefix(Parameter):
    """
    Routes a set of shapes under C{Name.}, e.g. C{HealthCheck.Target}.

    The sub-options are read from the call's own options, or from a mapping
    given under the prefix's key (C{health_check={"Target": ...}}).
    """
    fields = attr.ib(default=(), converter=tuple)

    def format(self, bag):
        value = bag.get(self.key)
        if isinstance(value, Mapping) or attr.has(type(value)):
            return self.encode(value, self.name)
        return self._encode_bag(bag, self.name)

    def encode(self, value, prefix):
        if attr.has(type(value)):
            value = attr.asdict(value, recurse=False)
        return self._encode_bag(ArgumentBag(dict(
            (canonicalize(name), element)
            for name, element in value.items())), prefix)

    def _encode_bag(self, bag, prefix):
        pairs = []
        for field in self.fields:
            pairs.extend(
                ("%s.%s" % (prefix, key), text)
                for key, text in field.format(bag))
        return pairs


@attr.s(frozen=True)
class BlockDeviceMapping(Parameter):
    """
    Block device mappings given as C{"device=target"} strings:

      - C{"/dev/sdb=ephemeral0"}: an instance store volume;
      - C{"/dev/sdc=none"}: suppress a mapping present in the image;
      - C{"/dev/sdd=vol-12345:true"}: an existing volume;
      - C{"/dev/sde=snap-12345:20:true:io1:500"}: a volume from a snapshot,
        with optional size, delete-on-termination, type and IOPS.  The
        snapshot may be left empty to create a blank volume of a size.
    """
    name = attr.ib(
        default="BlockDeviceMapping", validator=validators.instance_of(str))
    key = attr.ib(default="block_device_mapping")

    def encode(self, value, prefix):
        pairs = []
        for index, mapping in enumerate(as_list(value), 1):
            item = "%s.%d" % (prefix, index)
            match = _BLOCK_DEVICE.match(mapping)
            if match is None:
                raise ValueError(
                    "block device mapping must be in format "
                    "/dev/sdXX=device-name, not %r" % (mapping,))
            device, target = match.groups()
            pairs.append((item + ".DeviceName", device))
            if target.startswith("vol-"):
                volume, _, delete = target.partition(":")
                pairs.append((item + ".Ebs.VolumeId", volume))
                if delete in _BOOLEAN_TEXT:
                    pairs.append((item + ".Ebs.DeleteOnTermination", delete))
            elif target == "none":
                pairs.append((item + ".NoDevice", ""))
            elif re.match(r"^ephemeral\d$", target):
                pairs.append((item + ".VirtualName", target))
            else:
                fields = (target.split(":") + [""] * 5)[:5]
                snapshot, size, delete, volume_type, iops = fields
                if snapshot:
                    pairs.append((item + ".Ebs.SnapshotId", snapshot))
                if size:
                    pairs.append((item + ".Ebs.VolumeSize", size))
                if delete in _BOOLEAN_TEXT:
                    pairs.append((item + ".Ebs.DeleteOnTermination", delete))
                if volume_type:
                    pairs.append((item + ".Ebs.VolumeType", volume_type))
                if iops:
                    pairs.append((item + ".Ebs.Iops", iops))
        return pairs


@attr.s(frozen=True)
class NetworkInterface(Parameter):
    """
    Network interfaces given as C{"ethN=..."} strings:

      - C{"eth0=eni-12345"}: attach an existing interface;
      - C{"eth1=10.0.0.5,10.0.0.6:subnet-1:sg-1,sg-2:true:description"}:
        create one with a primary and secondary addresses;
      - C{"eth1=10.0.0.5,2:subnet-1:sg-1"}: a primary address and a count of
        secondary addresses to assign.
    """
    name = attr.ib(
        default="NetworkInterface", validator=validators.instance_of(str))
    key = attr.ib(default="network_interface")

    def encode(self, value, prefix):
        pairs = []
        for index, interface in enumerate(as_list(value), 1):
            item = "%s.%d" % (prefix, index)
            match = _NETWORK_INTERFACE.match(interface)
            if match is None:
                raise ValueError(
                    "network interface must be in format ethX=option-string, "
                    "not %r" % (interface,))
            device_index, options = match.groups()
            pairs.append((item + ".DeviceIndex", device_index))
            options = options.split(":")
            if len(options) == 1:
                pairs.append((item + ".NetworkInterfaceId", options[0]))
                continue
            addresses, subnet, groups, delete, description = (
                options + [""] * 5)[:5]
            address_index = 0
            for position, address in enumerate(
                    re.split(r"\s*,\s*", addresses)):
                if _IP_ADDRESS.match(address):
                    address_index += 1
                    address_prefix = "%s.PrivateIpAddresses.%d" % (
                        item, address_index)
                    pairs.append(
                        (address_prefix + ".PrivateIpAddress", address))
                    pairs.append((address_prefix + ".Primary",
                                  "true" if position == 0 else "false"))
                elif address.isdigit() and position > 0:
                    pairs.append(
                        (item + ".SecondaryPrivateIpAddressCount", address))
            for group_index, group in enumerate(
                    [group for group in groups.split(",") if group], 1):
                pairs.append(
                    ("%s.SecurityGroupId.%d" % (item, group_index), group))
            if subnet:
                pairs.append((item + ".SubnetId", subnet))
            if delete:
                pairs.append((item + ".DeleteOnTermination", delete))
            if description:
                pairs.append((item + ".Description", description))
        return pairs


@attr.s(frozen=True)
class PermissionList(Parameter):
    """
    C{LaunchPermission.Add.N.UserId=account} style permission changes.

    The value C{"all"} is sent as C{Group} rather than C{UserId}.
    """
    operation = attr.ib(default="Add")

    def encode(self, value, prefix):
        pairs = []
        for index, account in enumerate(as_list(value), 1):
            field = "Group" if account == "all" else "UserId"
            pairs.append(("%s.%s.%d.%s" % (
                prefix, self.operation, index, field), format_value(account)))
        return pairs


class Encoding(object):
    """
    The full set of parameter shapes for one action.

    @param parameters: The shapes, emitted in declaration order.
    """

    def __init__(self, *parameters):
        self.parameters = tuple(parameters)

    def __add__(self, other):
        return Encoding(*(self.parameters + other.parameters))

    def bundle(self, bag):
        """
        Encode C{bag} into the action's parameter list.

        @return: A L{pyrsistent.PVector} of C{(key, value)} pairs.
        @raise ValueError: If two shapes emit the same key.
        """
        pairs = []
        seen = set()
        for parameter in self.parameters:
            for key, value in parameter.format(bag):
                if key in seen:
                    raise ValueError("Parameter %r encoded twice" % (key,))
                seen.add(key)
                pairs.append((key, value))
        return pvector(pairs)
