# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Elastic Load Balancing actions.

Requests go to the C{elasticloadbalancing} endpoint of the client's region,
derived from its EC2 endpoint, with the ELB API version.
"""

from txec2.client.dispatch import (
    boolean, custom, fetch_list, fetch_one, member_values)
from txec2.client.invoker import action
from txec2.client.parameters import (
    Filter, MemberList, Prefix, Single, StructureList)
from txec2.client.polling import (
    MATERIALIZE_INTERVAL, MATERIALIZE_TIMEOUT, poll_until)
from txec2.ec2.exception import EC2Error
from txec2.elb.model import (
    HealthCheck, InstanceState, LoadBalancer, PolicyDescription,
    PolicyTypeDescription)
from txec2.service import ELB


__all__ = ["ELBMixin", "RULES"]


_NAME = Single("LoadBalancerName")
_NAME_ALIASES = {"load_balancer_name": ("lb_name", "name")}

_LISTENERS = StructureList(
    "Listeners",
    fields=("Protocol", "LoadBalancerPort", "InstancePort",
            "InstanceProtocol", "SSLCertificateId"))

_INSTANCES = StructureList("Instances", fields=("InstanceId",))

_POLICY_ATTRIBUTES = StructureList(
    "PolicyAttributes", fields=("AttributeName", "AttributeValue"))


def _elb_action(name, *parameters, **options):
    """
    Declare an action addressing one load balancer by name.
    """
    aliases = dict(_NAME_ALIASES)
    aliases.update(options.pop("aliases", {}))
    required = ("load_balancer_name",) + tuple(options.pop("required", ()))
    return action(name, _NAME, *parameters, required=required,
                  aliases=aliases, **options)


_DESCRIBE_LOAD_BALANCERS = action(
    "DescribeLoadBalancers", MemberList("LoadBalancerNames"), Filter(),
    default_key="load_balancer_names",
    aliases={"load_balancer_names": (
        "lb_name", "lb_names", "load_balancer_name")})

_CREATE_LOAD_BALANCER = _elb_action(
    "CreateLoadBalancer", _LISTENERS, MemberList("AvailabilityZones"),
    Single("Scheme"), MemberList("SecurityGroups"), MemberList("Subnets"),
    required=("listeners",),
    required_any=(("availability_zones", "subnets"),),
    aliases={
        "availability_zones": ("zones",),
        "listeners": ("listener",),
    })

_DELETE_LOAD_BALANCER = _elb_action(
    "DeleteLoadBalancer", default_key="load_balancer_name")

_CONFIGURE_HEALTH_CHECK = _elb_action(
    "ConfigureHealthCheck",
    Prefix("HealthCheck", fields=(
        Single("Target"), Single("Interval"), Single("Timeout"),
        Single("UnhealthyThreshold"), Single("HealthyThreshold"))),
    required_any=(("health_check", "target"),))

_CREATE_APP_COOKIE_STICKINESS_POLICY = _elb_action(
    "CreateAppCookieStickinessPolicy", Single("CookieName"),
    Single("PolicyName"),
    required=("cookie_name", "policy_name"))

_CREATE_LB_COOKIE_STICKINESS_POLICY = _elb_action(
    "CreateLBCookieStickinessPolicy", Single("CookieExpirationPeriod"),
    Single("PolicyName"),
    required=("cookie_expiration_period", "policy_name"))

_CREATE_LOAD_BALANCER_LISTENERS = _elb_action(
    "CreateLoadBalancerListeners", _LISTENERS,
    required=("listeners",), aliases={"listeners": ("listener",)})

_DELETE_LOAD_BALANCER_LISTENERS = _elb_action(
    "DeleteLoadBalancerListeners", MemberList("LoadBalancerPorts"),
    required=("load_balancer_ports",),
    aliases={"load_balancer_ports": ("ports", "port")})

_ENABLE_AVAILABILITY_ZONES = _elb_action(
    "EnableAvailabilityZonesForLoadBalancer",
    MemberList("AvailabilityZones"),
    required=("availability_zones",),
    aliases={"availability_zones": ("zones",)})

_DISABLE_AVAILABILITY_ZONES = _elb_action(
    "DisableAvailabilityZonesForLoadBalancer",
    MemberList("AvailabilityZones"),
    required=("availability_zones",),
    aliases={"availability_zones": ("zones",)})

_REGISTER_INSTANCES = _elb_action(
    "RegisterInstancesWithLoadBalancer", _INSTANCES,
    required=("instances",))

_DEREGISTER_INSTANCES = _elb_action(
    "DeregisterInstancesFromLoadBalancer", _INSTANCES,
    required=("instances",))

_DESCRIBE_INSTANCE_HEALTH = _elb_action(
    "DescribeInstanceHealth", _INSTANCES)

_SET_LISTENER_SSL_CERTIFICATE = _elb_action(
    "SetLoadBalancerListenerSSLCertificate", Single("LoadBalancerPort"),
    Single("SSLCertificateId"),
    required=("load_balancer_port", "ssl_certificate_id"),
    aliases={
        "load_balancer_port": ("port",),
        "ssl_certificate_id": ("cert_id",),
    })

_CREATE_LOAD_BALANCER_POLICY = _elb_action(
    "CreateLoadBalancerPolicy", Single("PolicyName"),
    Single("PolicyTypeName"), _POLICY_ATTRIBUTES,
    required=("policy_name", "policy_type_name"))

_DELETE_LOAD_BALANCER_POLICY = _elb_action(
    "DeleteLoadBalancerPolicy", Single("PolicyName"),
    required=("policy_name",))

_DESCRIBE_LOAD_BALANCER_POLICIES = action(
    "DescribeLoadBalancerPolicies", _NAME, MemberList("PolicyNames"),
    default_key="load_balancer_name",
    aliases=dict(_NAME_ALIASES, policy_names=("policy_name",)))

_DESCRIBE_LOAD_BALANCER_POLICY_TYPES = action(
    "DescribeLoadBalancerPolicyTypes", MemberList("PolicyTypeNames"),
    default_key="policy_type_names",
    aliases={"policy_type_names": ("names",)})

_SET_POLICIES_OF_LISTENER = _elb_action(
    "SetLoadBalancerPoliciesOfListener", Single("LoadBalancerPort"),
    MemberList("PolicyNames"),
    required=("load_balancer_port", "policy_names"),
    aliases={"load_balancer_port": ("port",)})

_SET_POLICIES_FOR_BACKEND_SERVER = _elb_action(
    "SetLoadBalancerPoliciesForBackendServer", Single("InstancePort"),
    MemberList("PolicyNames"),
    required=("instance_port", "policy_names"),
    aliases={"instance_port": ("port",)})

_APPLY_SECURITY_GROUPS = _elb_action(
    "ApplySecurityGroupsToLoadBalancer", MemberList("SecurityGroups"),
    required=("security_groups",))

_ATTACH_TO_SUBNETS = _elb_action(
    "AttachLoadBalancerToSubnets", MemberList("Subnets"),
    required=("subnets",))

_DETACH_FROM_SUBNETS = _elb_action(
    "DetachLoadBalancerFromSubnets", MemberList("Subnets"),
    required=("subnets",))


def _described(tag, field, describe):
    """
    Shape a response listing resource IDs under C{tag} by describing those
    resources with the client method named C{describe}.
    """
    def transform(root, client):
        ids = member_values(root, tag, field)
        if not ids:
            return []
        return getattr(client, describe)(*ids)
    return custom(transform)


def load_balancer_dns_name(root, client):
    """The DNS name of a load balancer created by C{CreateLoadBalancer}."""
    for element in root.iter("DNSName"):
        return element.text
    return None


RULES = {
    "DescribeLoadBalancers": fetch_list(
        "LoadBalancerDescriptions", LoadBalancer),
    "CreateLoadBalancer": custom(load_balancer_dns_name),
    "DeleteLoadBalancer": boolean(),
    "ConfigureHealthCheck": fetch_one("HealthCheck", HealthCheck),
    "CreateAppCookieStickinessPolicy": boolean(),
    "CreateLBCookieStickinessPolicy": boolean(),
    "CreateLoadBalancerListeners": boolean(),
    "DeleteLoadBalancerListeners": boolean(),
    "EnableAvailabilityZonesForLoadBalancer": _described(
        "AvailabilityZones", None, "describe_availability_zones"),
    "DisableAvailabilityZonesForLoadBalancer": _described(
        "AvailabilityZones", None, "describe_availability_zones"),
    "RegisterInstancesWithLoadBalancer": _described(
        "Instances", "InstanceId", "describe_instances"),
    "DeregisterInstancesFromLoadBalancer": _described(
        "Instances", "InstanceId", "describe_instances"),
    "DescribeInstanceHealth": fetch_list("InstanceStates", InstanceState),
    "SetLoadBalancerListenerSSLCertificate": boolean(),
    "CreateLoadBalancerPolicy": boolean(),
    "DeleteLoadBalancerPolicy": boolean(),
    "DescribeLoadBalancerPolicies": fetch_list(
        "PolicyDescriptions", PolicyDescription),
    "DescribeLoadBalancerPolicyTypes": fetch_list(
        "PolicyTypeDescriptions", PolicyTypeDescription),
    "SetLoadBalancerPoliciesOfListener": boolean(),
    "SetLoadBalancerPoliciesForBackendServer": boolean(),
    "ApplySecurityGroupsToLoadBalancer": _described(
        "SecurityGroups", None, "_describe_security_group_ids"),
    "AttachLoadBalancerToSubnets": _described(
        "Subnets", None, "describe_subnets"),
    "DetachLoadBalancerFromSubnets": _described(
        "Subnets", None, "describe_subnets"),
}


def _instances(instance_ids):
    return [{"InstanceId": str(instance_id)} for instance_id in instance_ids]


class ELBMixin(object):
    """Elastic Load Balancing actions of L{EC2Client}."""

    def describe_load_balancers(self, *args, **kwargs):
        """
        @param args: Optionally, the names of the load balancers.
        @return: A C{Deferred} that will fire with a list of
            L{LoadBalancer}s.
        """
        return self.call(_DESCRIBE_LOAD_BALANCERS, args, kwargs, ELB)

    def create_load_balancer(self, **kwargs):
        """
        Create a load balancer.

        The new load balancer is only returned once
        C{DescribeLoadBalancers} reports it; this takes a few seconds.

        @param load_balancer_name: The name of the load balancer.
        @param listeners: A list of L{Listener}s or of mappings with
            C{Protocol}, C{LoadBalancerPort}, C{InstancePort} and optionally
            C{InstanceProtocol} and C{SSLCertificateId} entries.
        @param availability_zones: The zones to serve; required unless
            C{subnets} are given.
        @return: A C{Deferred} that will fire with the new L{LoadBalancer},
            or fail with L{WaitTimeoutError}.
        """
        bag, params = _CREATE_LOAD_BALANCER.prepare((), kwargs)
        name = bag.get("load_balancer_name")
        d = self.invoke(_CREATE_LOAD_BALANCER.name, params, ELB)
        return d.addCallback(lambda _: self._wait_for_load_balancer(name))

    def _wait_for_load_balancer(self, name):
        def not_yet_visible(failure):
            failure.trap(EC2Error)
            if not failure.value.has_error("LoadBalancerNotFound"):
                return failure
            return []

        def check():
            d = self.describe_load_balancers(name)
            return d.addErrback(not_yet_visible)

        d = poll_until(
            check, "load balancer %s" % (name,), self.reactor,
            interval=MATERIALIZE_INTERVAL, timeout=MATERIALIZE_TIMEOUT)
        return d.addCallback(lambda balancers: balancers[0])

    def delete_load_balancer(self, *args, **kwargs):
        return self.call(_DELETE_LOAD_BALANCER, args, kwargs, ELB)

    def configure_health_check(self, **kwargs):
        """
        Configure the health check of a load balancer.

        The check is given either as C{target}, C{interval}, C{timeout},
        C{unhealthy_threshold} and C{healthy_threshold} options, or as a
        C{health_check} mapping with the AWS field names.

        @return: A C{Deferred} that will fire with the new L{HealthCheck}.
        """
        return self.call(_CONFIGURE_HEALTH_CHECK, (), kwargs, ELB)

    def create_app_cookie_stickiness_policy(self, **kwargs):
        return self.call(
            _CREATE_APP_COOKIE_STICKINESS_POLICY, (), kwargs, ELB)

    def create_lb_cookie_stickiness_policy(self, **kwargs):
        return self.call(
            _CREATE_LB_COOKIE_STICKINESS_POLICY, (), kwargs, ELB)

    def create_load_balancer_listeners(self, **kwargs):
        return self.call(_CREATE_LOAD_BALANCER_LISTENERS, (), kwargs, ELB)

    def delete_load_balancer_listeners(self, **kwargs):
        return self.call(_DELETE_LOAD_BALANCER_LISTENERS, (), kwargs, ELB)

    def enable_availability_zones_for_load_balancer(self, **kwargs):
        """
        @return: A C{Deferred} that will fire with the
            L{AvailabilityZone}s now served by the load balancer.
        """
        return self.call(_ENABLE_AVAILABILITY_ZONES, (), kwargs, ELB)

    def disable_availability_zones_for_load_balancer(self, **kwargs):
        return self.call(_DISABLE_AVAILABILITY_ZONES, (), kwargs, ELB)

    def register_instances_with_load_balancer(self, load_balancer_name,
                                              *instance_ids):
        """
        @return: A C{Deferred} that will fire with the L{Instance}s now
            registered with the load balancer.
        """
        return self.call(
            _REGISTER_INSTANCES, (),
            {"load_balancer_name": load_balancer_name,
             "instances": _instances(instance_ids)}, ELB)

    def deregister_instances_from_load_balancer(self, load_balancer_name,
                                                *instance_ids):
        """
        @return: A C{Deferred} that will fire with the L{Instance}s still
            registered with the load balancer.
        """
        return self.call(
            _DEREGISTER_INSTANCES, (),
            {"load_balancer_name": load_balancer_name,
             "instances": _instances(instance_ids)}, ELB)

    def describe_instance_health(self, load_balancer_name, *instance_ids):
        """
        @return: A C{Deferred} that will fire with a list of
            L{InstanceState}s.
        """
        return self.call(
            _DESCRIBE_INSTANCE_HEALTH, (),
            {"load_balancer_name": load_balancer_name,
             "instances": _instances(instance_ids)}, ELB)

    def set_load_balancer_listener_ssl_certificate(self, **kwargs):
        return self.call(_SET_LISTENER_SSL_CERTIFICATE, (), kwargs, ELB)

    def create_load_balancer_policy(self, **kwargs):
        """
        @param policy_attributes: A list of L{PolicyAttribute}s or of
            mappings with C{AttributeName} and C{AttributeValue} entries.
        """
        return self.call(_CREATE_LOAD_BALANCER_POLICY, (), kwargs, ELB)

    def delete_load_balancer_policy(self, **kwargs):
        return self.call(_DELETE_LOAD_BALANCER_POLICY, (), kwargs, ELB)

    def describe_load_balancer_policies(self, *args, **kwargs):
        return self.call(_DESCRIBE_LOAD_BALANCER_POLICIES, args, kwargs, ELB)

    def describe_load_balancer_policy_types(self, *args, **kwargs):
        return self.call(
            _DESCRIBE_LOAD_BALANCER_POLICY_TYPES, args, kwargs, ELB)

    def set_load_balancer_policies_of_listener(self, **kwargs):
        return self.call(_SET_POLICIES_OF_LISTENER, (), kwargs, ELB)

    def set_load_balancer_policies_for_backend_server(self, **kwargs):
        return self.call(_SET_POLICIES_FOR_BACKEND_SERVER, (), kwargs, ELB)

    def apply_security_groups_to_load_balancer(self, **kwargs):
        """
        @return: A C{Deferred} that will fire with the L{SecurityGroup}s now
            applied to the load balancer.
        """
        return self.call(_APPLY_SECURITY_GROUPS, (), kwargs, ELB)

    def attach_load_balancer_to_subnets(self, **kwargs):
        """
        @return: A C{Deferred} that will fire with the L{Subnet}s the load
            balancer is now attached to.
        """
        return self.call(_ATTACH_TO_SUBNETS, (), kwargs, ELB)

    def detach_load_balancer_from_subnets(self, **kwargs):
        return self.call(_DETACH_FROM_SUBNETS, (), kwargs, ELB)

    def _describe_security_group_ids(self, *group_ids):
        return self.describe_security_groups(group_id=group_ids)
