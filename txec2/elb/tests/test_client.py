from twisted.internet.task import Clock

from txec2.credentials import AWSCredentials
from txec2.ec2.client import EC2Client
from txec2.ec2.exception import EC2Error
from txec2.elb.model import Listener, PolicyAttribute
from txec2.exception import MissingArgumentError, WaitTimeoutError
from txec2.service import AWSServiceEndpoint
from txec2.testing import payload
from txec2.testing.base import TXEC2TestCase
from txec2.testing.query import StubQueryFactory, aws_error


class ELBTestCase(TXEC2TestCase):

    def setUp(self):
        super(ELBTestCase, self).setUp()
        self.clock = Clock()
        self.factory = StubQueryFactory({
            "DescribeLoadBalancers":
                payload.sample_describe_load_balancers_result,
            "CreateLoadBalancer": payload.sample_create_load_balancer_result,
            "DeleteLoadBalancer": payload.sample_delete_load_balancer_result,
        })
        self.client = EC2Client(
            creds=AWSCredentials("foo", "bar"),
            endpoint=AWSServiceEndpoint(
                "https://ec2.us-east-1.amazonaws.com/"),
            query_factory=self.factory, reactor=self.clock)

    def respond(self, action, response):
        self.factory.responses[action] = response

    @property
    def query(self):
        return self.factory.queries[-1]


class LoadBalancersTestCase(ELBTestCase):

    def test_describe_load_balancers(self):
        d = self.client.describe_load_balancers("my-loadbalancer")

        def check_load_balancers(balancers):
            [balancer] = balancers
            self.assertEquals(balancer.load_balancer_name, "my-loadbalancer")
            self.assertEquals(
                balancer.dns_name,
                "my-loadbalancer-1234567890.us-east-1.elb.amazonaws.com")
            self.assertEquals(balancer.health_check.target, "HTTP:80/")
            self.assertEquals(balancer.health_check.interval, "90")
            [listener] = balancer.listeners
            self.assertEquals(listener.protocol, "HTTP")
            self.assertEquals(listener.load_balancer_port, "80")
            self.assertEquals(listener.instance_port, "80")
            self.assertEquals(balancer.instance_ids, ["i-e4cbe38d"])
            self.assertEquals(balancer.availability_zones, ["us-east-1a"])
            self.assertEquals(balancer.created_time.year, 2013)
            self.assertEquals(
                self.query.params,
                {"LoadBalancerNames.member.1": "my-loadbalancer"})
            self.assertEquals(
                self.query.host,
                "elasticloadbalancing.us-east-1.amazonaws.com")
            self.assertEquals(self.query.api_version, "2012-06-01")

        return d.addCallback(check_load_balancers)

    def test_create_load_balancer(self):
        """
        The new load balancer is returned once it can be described.
        """
        self.respond(
            "DescribeLoadBalancers",
            [aws_error(payload.sample_load_balancer_not_found_error),
             payload.sample_describe_load_balancers_result])
        d = self.client.create_load_balancer(
            name="my-loadbalancer",
            listeners=[Listener("HTTP", 80, 80)],
            zones=["us-east-1a"])
        self.assertNoResult(d)
        self.assertEquals(
            self.factory.queries[0].params, {
                "LoadBalancerName": "my-loadbalancer",
                "Listeners.member.1.Protocol": "HTTP",
                "Listeners.member.1.LoadBalancerPort": "80",
                "Listeners.member.1.InstancePort": "80",
                "AvailabilityZones.member.1": "us-east-1a",
            })
        self.clock.advance(1)
        balancer = self.successResultOf(d)
        self.assertEquals(balancer.load_balancer_name, "my-loadbalancer")
        self.assertEquals(self.factory.actions, [
            "CreateLoadBalancer", "DescribeLoadBalancers",
            "DescribeLoadBalancers"])
        self.assertEquals(
            self.query.params,
            {"LoadBalancerNames.member.1": "my-loadbalancer"})

    def test_create_load_balancer_listener_mappings(self):
        self.successResultOf(self.client.create_load_balancer(
            load_balancer_name="my-loadbalancer",
            listener={"Protocol": "HTTPS", "LoadBalancerPort": 443,
                      "InstancePort": 80, "InstanceProtocol": "HTTP",
                      "SSLCertificateId": "arn:aws:iam::1:server-cert/x"},
            subnets=["subnet-1"], scheme="internal"))
        self.assertEquals(self.factory.queries[0].params, {
            "LoadBalancerName": "my-loadbalancer",
            "Listeners.member.1.Protocol": "HTTPS",
            "Listeners.member.1.LoadBalancerPort": "443",
            "Listeners.member.1.InstancePort": "80",
            "Listeners.member.1.InstanceProtocol": "HTTP",
            "Listeners.member.1.SSLCertificateId":
                "arn:aws:iam::1:server-cert/x",
            "Scheme": "internal",
            "Subnets.member.1": "subnet-1",
        })

    def test_create_load_balancer_timeout(self):
        self.respond(
            "DescribeLoadBalancers",
            aws_error(payload.sample_load_balancer_not_found_error))
        d = self.client.create_load_balancer(
            name="my-loadbalancer", listeners=[Listener("TCP", 22, 22)],
            zones="us-east-1a")
        self.clock.pump([1] * 60)
        failure = self.failureResultOf(d, WaitTimeoutError)
        self.assertEquals(
            failure.value.description, "load balancer my-loadbalancer")

    def test_create_load_balancer_other_error(self):
        self.respond(
            "DescribeLoadBalancers",
            aws_error(payload.sample_query_api_error_message))
        d = self.client.create_load_balancer(
            name="my-loadbalancer", listeners=[Listener("TCP", 22, 22)],
            zones="us-east-1a")
        self.failureResultOf(d, EC2Error)

    def test_create_load_balancer_needs_zones_or_subnets(self):
        error = self.assertRaises(
            MissingArgumentError, self.client.create_load_balancer,
            name="my-loadbalancer", listeners=[Listener("TCP", 22, 22)])
        self.assertEquals(error.option, "availability_zones or subnets")
        self.assertEquals(self.factory.queries, [])

    def test_delete_load_balancer(self):
        self.assertTrue(self.successResultOf(
            self.client.delete_load_balancer("my-loadbalancer")))
        self.assertEquals(
            self.query.params, {"LoadBalancerName": "my-loadbalancer"})

    def test_configure_health_check(self):
        self.respond(
            "ConfigureHealthCheck",
            payload.sample_configure_health_check_result)
        check = self.successResultOf(self.client.configure_health_check(
            name="my-loadbalancer", target="HTTP:80/ping", interval=30,
            timeout=3, healthy_threshold=2, unhealthy_threshold=2))
        self.assertEquals(check.target, "HTTP:80/ping")
        self.assertEquals(check.interval, "30")
        self.assertEquals(repr(check), "<HealthCheck HTTP:80/ping>")
        self.assertEquals(self.query.params, {
            "LoadBalancerName": "my-loadbalancer",
            "HealthCheck.Target": "HTTP:80/ping",
            "HealthCheck.Interval": "30",
            "HealthCheck.Timeout": "3",
            "HealthCheck.UnhealthyThreshold": "2",
            "HealthCheck.HealthyThreshold": "2",
        })

    def test_configure_health_check_mapping(self):
        self.respond(
            "ConfigureHealthCheck",
            payload.sample_configure_health_check_result)
        self.successResultOf(self.client.configure_health_check(
            name="my-loadbalancer",
            health_check={"Target": "TCP:22", "Interval": 10}))
        self.assertEquals(self.query.params, {
            "LoadBalancerName": "my-loadbalancer",
            "HealthCheck.Target": "TCP:22",
            "HealthCheck.Interval": "10",
        })


class InstancesTestCase(ELBTestCase):

    def test_register_instances(self):
        """
        Registering instances fires with the instances now registered, as
        described by EC2.
        """
        self.respond(
            "RegisterInstancesWithLoadBalancer",
            payload.sample_register_instances_result)
        self.respond(
            "DescribeInstances", payload.sample_describe_instances_result)
        instances = self.successResultOf(
            self.client.register_instances_with_load_balancer(
                "my-loadbalancer", "i-abcdef01", "i-abcdef02"))
        self.assertEquals(
            [instance.instance_id for instance in instances],
            ["i-abcdef01", "i-abcdef02"])
        register, describe = self.factory.queries
        self.assertEquals(register.params, {
            "LoadBalancerName": "my-loadbalancer",
            "Instances.member.1.InstanceId": "i-abcdef01",
            "Instances.member.2.InstanceId": "i-abcdef02",
        })
        self.assertEquals(
            register.host, "elasticloadbalancing.us-east-1.amazonaws.com")
        self.assertEquals(describe.params, {
            "InstanceId.1": "i-abcdef01", "InstanceId.2": "i-abcdef02"})
        self.assertEquals(describe.host, "ec2.us-east-1.amazonaws.com")
        self.assertEquals(describe.api_version, "2014-06-15")

    def test_deregister_last_instance(self):
        """
        Nothing is described when no instance remains registered.
        """
        self.respond(
            "DeregisterInstancesFromLoadBalancer",
            "<DeregisterInstancesFromLoadBalancerResponse>"
            "<DeregisterInstancesFromLoadBalancerResult><Instances/>"
            "</DeregisterInstancesFromLoadBalancerResult>"
            "</DeregisterInstancesFromLoadBalancerResponse>")
        self.assertEquals(
            self.successResultOf(
                self.client.deregister_instances_from_load_balancer(
                    "my-loadbalancer", "i-e4cbe38d")),
            [])
        self.assertEquals(
            self.factory.actions, ["DeregisterInstancesFromLoadBalancer"])

    def test_describe_instance_health(self):
        self.respond(
            "DescribeInstanceHealth",
            payload.sample_describe_instance_health_result)
        [balancer] = self.successResultOf(
            self.client.describe_load_balancers())
        states = self.successResultOf(balancer.describe_instance_health())
        self.assertEquals(
            [(state.instance_id, state.state) for state in states],
            [("i-90d8c2a5", "InService"), ("i-06ea3e60", "OutOfService")])
        self.assertEquals(states[1].reason_code, "Instance")
        self.assertEquals(
            self.query.params, {"LoadBalancerName": "my-loadbalancer"})

    def test_enable_availability_zones(self):
        self.respond(
            "EnableAvailabilityZonesForLoadBalancer",
            "<EnableAvailabilityZonesForLoadBalancerResponse>"
            "<EnableAvailabilityZonesForLoadBalancerResult>"
            "<AvailabilityZones><member>us-east-1a</member>"
            "<member>us-east-1b</member></AvailabilityZones>"
            "</EnableAvailabilityZonesForLoadBalancerResult>"
            "</EnableAvailabilityZonesForLoadBalancerResponse>")
        self.respond(
            "DescribeAvailabilityZones",
            payload.sample_describe_availability_zones_multiple_results)
        zones = self.successResultOf(
            self.client.enable_availability_zones_for_load_balancer(
                name="my-loadbalancer", zones=["us-east-1b"]))
        self.assertEquals(
            [zone.zone_name for zone in zones], ["us-east-1a", "us-east-1b"])
        self.assertEquals(self.factory.queries[0].params, {
            "LoadBalancerName": "my-loadbalancer",
            "AvailabilityZones.member.1": "us-east-1b",
        })
        self.assertEquals(self.query.params, {
            "ZoneName.1": "us-east-1a", "ZoneName.2": "us-east-1b"})


class PoliciesTestCase(ELBTestCase):

    def test_create_load_balancer_policy(self):
        self.respond(
            "CreateLoadBalancerPolicy",
            payload.sample_delete_load_balancer_result)
        self.successResultOf(self.client.create_load_balancer_policy(
            name="my-loadbalancer", policy_name="EnableProxyProtocol",
            policy_type_name="ProxyProtocolPolicyType",
            policy_attributes=[PolicyAttribute("ProxyProtocol", True)]))
        self.assertEquals(self.query.params, {
            "LoadBalancerName": "my-loadbalancer",
            "PolicyName": "EnableProxyProtocol",
            "PolicyTypeName": "ProxyProtocolPolicyType",
            "PolicyAttributes.member.1.AttributeName": "ProxyProtocol",
            "PolicyAttributes.member.1.AttributeValue": "true",
        })

    def test_describe_load_balancer_policies(self):
        self.respond(
            "DescribeLoadBalancerPolicies",
            payload.sample_describe_load_balancer_policies_result)
        [policy] = self.successResultOf(
            self.client.describe_load_balancer_policies("my-loadbalancer"))
        self.assertEquals(policy.policy_name, "MyDurationStickyPolicy")
        self.assertEquals(
            policy.attributes, {"CookieExpirationPeriod": "60"})
        self.assertEquals(
            self.query.params, {"LoadBalancerName": "my-loadbalancer"})

    def test_describe_load_balancer_policies_without_name(self):
        """
        Without a load balancer name the sample policies are described.
        """
        self.respond(
            "DescribeLoadBalancerPolicies",
            payload.sample_describe_load_balancer_policies_result)
        self.successResultOf(self.client.describe_load_balancer_policies(
            policy_names=["ELBSample-OpenSSLDefaultNegotiationPolicy"]))
        self.assertEquals(self.query.params, {
            "PolicyNames.member.1":
                "ELBSample-OpenSSLDefaultNegotiationPolicy",
        })

    def test_set_policies_of_listener(self):
        self.respond(
            "SetLoadBalancerPoliciesOfListener",
            payload.sample_delete_load_balancer_result)
        self.successResultOf(
            self.client.set_load_balancer_policies_of_listener(
                name="my-loadbalancer", port=80,
                policy_names=["MyDurationStickyPolicy"]))
        self.assertEquals(self.query.params, {
            "LoadBalancerName": "my-loadbalancer",
            "LoadBalancerPort": "80",
            "PolicyNames.member.1": "MyDurationStickyPolicy",
        })
