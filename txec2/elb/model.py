# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Elastic Load Balancing result objects, and the listener and policy attribute
values accepted by the load balancer actions.
"""

import attr

from txec2.model import Generic


@attr.s(frozen=True)
class Listener(object):
    """
    A load balancer listener, as passed to C{create_load_balancer} and
    C{create_load_balancer_listeners}.  A mapping with the AWS field names
    (C{Protocol}, C{LoadBalancerPort} and so on) is accepted in its place.
    """
    protocol = attr.ib()
    load_balancer_port = attr.ib()
    instance_port = attr.ib()
    instance_protocol = attr.ib(default=None)
    ssl_certificate_id = attr.ib(default=None)


@attr.s(frozen=True)
class PolicyAttribute(object):
    """
    A load balancer policy attribute, as passed to
    C{create_load_balancer_policy}.
    """
    attribute_name = attr.ib()
    attribute_value = attr.ib()


class LoadBalancer(Generic):
    """A load balancer.

    @ivar load_balancer_name: The name of the load balancer.
    @ivar dns_name: Its DNS name.
    @ivar availability_zones: The names of the zones it serves.
    @ivar health_check: Its L{HealthCheck} configuration.
    """
    primary_id = "load_balancer_name"

    @property
    def listeners(self):
        return [description.listener
                for description in self.get("listener_descriptions", [])]

    @property
    def instance_ids(self):
        return [instance.instance_id
                for instance in self.get("instances", [])]

    @property
    def created_time(self):
        return self.get_time("created_time")

    def describe_instance_health(self, *instance_ids):
        """
        @return: A C{Deferred} that will fire with the L{InstanceState} of
            each registered instance, or of each of C{instance_ids}.
        """
        return self.client.describe_instance_health(
            self.load_balancer_name, *instance_ids)


class HealthCheck(Generic):
    """
    @ivar target: The checked target, e.g. C{"HTTP:80/ping"}.
    @ivar interval: Seconds between checks.
    @ivar timeout: Seconds before a check fails.
    @ivar healthy_threshold: Successes before an instance is healthy.
    @ivar unhealthy_threshold: Failures before it is unhealthy.
    """

    def __repr__(self):
        return "<HealthCheck %s>" % (self.get("target"),)


class InstanceState(Generic):
    """
    The health of an instance behind a load balancer.

    @ivar state: C{"InService"} or C{"OutOfService"}.
    """
    primary_id = "instance_id"


class PolicyDescription(Generic):
    primary_id = "policy_name"

    @property
    def attributes(self):
        return dict(
            (attribute.attribute_name, attribute.get("attribute_value"))
            for attribute in self.get("policy_attribute_descriptions", []))


class PolicyTypeDescription(Generic):
    primary_id = "policy_type_name"
