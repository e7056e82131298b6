"""
Tests for L{txec2.client.dispatch}.
"""

from twisted.trial.unittest import TestCase

from txec2.client.dispatch import (
    DispatchRule, DispatchTable, PageResult, RuleKind, boolean, custom,
    fetch_list, fetch_list_iterator, fetch_one, find_field, member_values)
from txec2.model import Generic
from txec2.util import XML


class Thing(Generic):
    primary_id = "name"


EC2_RESPONSE = b"""\
<DescribeThingsResponse xmlns="http://ec2.amazonaws.com/doc/2014-06-15/">
  <requestId>59dbff89-35bd-4eac-99ed-be587EXAMPLE</requestId>
  <thingSet>
    <item><name>a</name></item>
    <item><name>b</name></item>
  </thingSet>
  <nextToken>token-2</nextToken>
</DescribeThingsResponse>
"""

QUERY_RESPONSE = b"""\
<DescribeThingsResponse xmlns="https://rds.amazonaws.com/doc/2013-02-12/">
  <DescribeThingsResult>
    <Things>
      <Thing><Name>a</Name></Thing>
    </Things>
    <Marker></Marker>
  </DescribeThingsResult>
  <ResponseMetadata><RequestId>1</RequestId></ResponseMetadata>
</DescribeThingsResponse>
"""


class FindFieldTestCase(TestCase):

    def test_direct(self):
        root = XML(EC2_RESPONSE)
        self.assertEquals(find_field(root, "nextToken").text, "token-2")

    def test_result_wrapper(self):
        root = XML(QUERY_RESPONSE)
        self.assertEquals(find_field(root, "Things").tag, "Things")

    def test_missing(self):
        self.assertIdentical(find_field(XML(QUERY_RESPONSE), "Nope"), None)


class DispatchRuleTestCase(TestCase):

    def test_boolean(self):
        rule = boolean()
        self.assertTrue(rule.apply(XML(
            "<R><return>true</return></R>"), None))
        self.assertFalse(rule.apply(XML(
            "<R><return>false</return></R>"), None))

    def test_boolean_without_return(self):
        """
        A response acknowledging the action without a C{return} field means
        success.
        """
        self.assertTrue(boolean().apply(XML(
            "<R><requestId>1</requestId></R>"), None))

    def test_boolean_tag(self):
        rule = boolean("Success")
        self.assertFalse(rule.apply(XML(
            "<R><RResult><Success>false</Success></RResult></R>"), None))

    def test_fetch_one(self):
        rule = fetch_one("thingSet/item", Thing)
        thing = rule.apply(XML(EC2_RESPONSE), "client")
        self.assertEquals(thing.name, "a")
        self.assertEquals(thing.client, "client")

    def test_fetch_one_missing(self):
        self.assertIdentical(
            fetch_one("Nope", Thing).apply(XML(EC2_RESPONSE), None), None)

    def test_fetch_one_whole_response(self):
        thing = fetch_one(None, Generic).apply(XML(EC2_RESPONSE), None)
        self.assertEquals(thing.next_token, "token-2")

    def test_fetch_list(self):
        things = fetch_list("thingSet", Thing).apply(XML(EC2_RESPONSE), None)
        self.assertEquals([thing.name for thing in things], ["a", "b"])

    def test_fetch_list_result_wrapper(self):
        things = fetch_list("Things", Thing).apply(XML(QUERY_RESPONSE), None)
        self.assertEquals([thing.name for thing in things], ["a"])

    def test_fetch_list_missing(self):
        self.assertEquals(
            fetch_list("Nope", Thing).apply(XML(EC2_RESPONSE), None), [])

    def test_fetch_list_iterator(self):
        result = fetch_list_iterator("thingSet", Thing).apply(
            XML(EC2_RESPONSE), None)
        self.assertIsInstance(result, PageResult)
        self.assertEquals(len(result.items), 2)
        self.assertEquals(result.next_token, "token-2")

    def test_empty_cursor(self):
        result = fetch_list_iterator("Things", Thing, cursor="Marker").apply(
            XML(QUERY_RESPONSE), None)
        self.assertIdentical(result.next_token, None)

    def test_custom(self):
        rule = custom(lambda root, client: (root.tag, client))
        self.assertEquals(
            rule.apply(XML(EC2_RESPONSE), "client"),
            ("DescribeThingsResponse", "client"))

    def test_cursor_parameter(self):
        self.assertEquals(
            fetch_list_iterator("thingSet", Thing).cursor_parameter,
            "NextToken")
        self.assertEquals(
            fetch_list_iterator("Things", Thing, "Marker").cursor_parameter,
            "Marker")
        self.assertIdentical(boolean().cursor_parameter, None)

    def test_invalid_kind(self):
        self.assertRaises(ValueError, DispatchRule, "FETCH")

    def test_kinds(self):
        self.assertIs(boolean().kind, RuleKind.BOOLEAN)
        self.assertIs(custom(None).kind, RuleKind.CUSTOM)


class DispatchTableTestCase(TestCase):

    def setUp(self):
        self.table = DispatchTable.from_rules(
            {"DescribeThings": fetch_list("thingSet", Thing)},
            {"DeleteThing": boolean()})

    def test_dispatch(self):
        things = self.table.dispatch(EC2_RESPONSE, "DescribeThings", None)
        self.assertEquals([thing.name for thing in things], ["a", "b"])

    def test_dispatch_str_body(self):
        self.assertTrue(self.table.dispatch(
            "<DeleteThingResponse><return>true</return></DeleteThingResponse>",
            "DeleteThing", None))

    def test_unknown_action(self):
        """
        Without a rule the parsed response tree is returned.
        """
        root = self.table.dispatch(EC2_RESPONSE, "FrobThings", None)
        self.assertEquals(root.tag, "DescribeThingsResponse")
        self.assertEquals(root.findtext("nextToken"), "token-2")

    def test_with_rules(self):
        table = self.table.with_rules({"FrobThings": boolean()})
        self.assertIn("FrobThings", table)
        self.assertNotIn("FrobThings", self.table)
        self.assertEquals(
            table.actions(), set(["DescribeThings", "DeleteThing",
                                  "FrobThings"]))

    def test_override(self):
        table = self.table.with_rules({"DeleteThing": boolean("Success")})
        self.assertEquals(table.rule_for("DeleteThing").tag, "Success")
        self.assertIdentical(self.table.rule_for("DeleteThing").tag, None)


class MemberValuesTestCase(TestCase):

    def test_text(self):
        root = XML(
            "<R><RResult><Zones><member>us-east-1a</member>"
            "<member>us-east-1b</member></Zones></RResult></R>")
        self.assertEquals(
            member_values(root, "Zones"), ["us-east-1a", "us-east-1b"])

    def test_field(self):
        root = XML(
            "<R><Instances><member><InstanceId>i-1</InstanceId></member>"
            "</Instances></R>")
        self.assertEquals(
            member_values(root, "Instances", "InstanceId"), ["i-1"])

    def test_missing(self):
        self.assertEquals(member_values(XML("<R/>"), "Instances"), [])
