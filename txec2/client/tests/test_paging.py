"""
Tests for L{txec2.client.paging} and paginated invocation.
"""

from twisted.internet.defer import succeed

from txec2.client.dispatch import DispatchTable, fetch_list_iterator
from txec2.client.invoker import QueryClient, action
from txec2.client.paging import Page
from txec2.client.parameters import Single
from txec2.credentials import AWSCredentials
from txec2.model import Generic
from txec2.service import RDS, AWSServiceEndpoint
from txec2.testing.base import TXEC2TestCase
from txec2.testing.query import StubQueryFactory


def things_page(names, token=None, cursor="nextToken"):
    items = "".join(
        "<item><name>%s</name></item>" % (name,) for name in names)
    cursor_element = ""
    if token is not None:
        cursor_element = "<%s>%s</%s>" % (cursor, token, cursor)
    return ("<DescribeThingsResponse><thingSet>%s</thingSet>%s"
            "</DescribeThingsResponse>" % (items, cursor_element))


_DESCRIBE_THINGS = action(
    "DescribeThings", Single("MaxResults"), Single("Owner"))


class PageTestCase(TXEC2TestCase):

    def test_list(self):
        page = Page(["a", "b"])
        self.assertEquals(page, ["a", "b"])
        self.assertFalse(page.more)
        self.assertIdentical(page.next_token, None)

    def test_repr(self):
        self.assertEquals(
            repr(Page(["a"], "t", lambda token: None)),
            "<Page of 1 items, next_token='t'>")

    def test_last_page(self):
        d = Page(["a"]).next_page()
        d.addCallback(self.assertEquals, Page())
        return d

    def test_next_page(self):
        tokens = []

        def fetch(token):
            tokens.append(token)
            return succeed(Page(["b"]))

        page = Page(["a"], "token-2", fetch)
        self.assertTrue(page.more)
        d = page.next_page()
        d.addCallback(self.assertEquals, ["b"])
        d.addCallback(lambda _: self.assertEquals(tokens, ["token-2"]))
        return d


class PaginateTestCase(TXEC2TestCase):

    def setUp(self):
        super(PaginateTestCase, self).setUp()
        self.factory = StubQueryFactory()
        self.client = QueryClient(
            creds=AWSCredentials("foo", "bar"),
            endpoint=AWSServiceEndpoint(
                "https://ec2.us-east-1.amazonaws.com/"),
            query_factory=self.factory,
            dispatch_table=DispatchTable.from_rules({
                "DescribeThings": fetch_list_iterator("thingSet", Generic),
                "DescribeMarkedThings": fetch_list_iterator(
                    "thingSet", Generic, cursor="Marker"),
            }))

    def test_pages(self):
        """
        Each page is fetched with the original parameters and the cursor of
        the page before it.
        """
        self.factory.responses["DescribeThings"] = [
            things_page(["a", "b"], "token-2"),
            things_page(["c"], "token-3"),
            things_page(["d"]),
        ]
        pages = []

        def collect(page):
            pages.append([thing.name for thing in page])
            if page.more:
                return page.next_page().addCallback(collect)

        d = self.client.call_paginated(
            _DESCRIBE_THINGS, (), {"max_results": 2, "owner": "self"})
        d.addCallback(collect)

        def check(ignored):
            self.assertEquals(pages, [["a", "b"], ["c"], ["d"]])
            self.assertEquals(
                [query.params for query in self.factory.queries],
                [{"MaxResults": "2", "Owner": "self"},
                 {"MaxResults": "2", "Owner": "self",
                  "NextToken": "token-2"},
                 {"MaxResults": "2", "Owner": "self",
                  "NextToken": "token-3"}])
        return d.addCallback(check)

    def test_single_page(self):
        self.factory.responses["DescribeThings"] = things_page(["a"])
        d = self.client.call_paginated(_DESCRIBE_THINGS)

        def check(page):
            self.assertEquals(len(page), 1)
            self.assertFalse(page.more)
            return page.next_page()
        d.addCallback(check)
        d.addCallback(self.assertEquals, [])
        d.addCallback(
            lambda _: self.assertEquals(len(self.factory.queries), 1))
        return d

    def test_independent_iterations(self):
        """
        Two pages of the same action each fetch their own successor.
        """
        self.factory.responses["DescribeThings"] = [
            things_page(["a"], "token-a"),
            things_page(["x"], "token-x"),
            things_page(["b"]),
            things_page(["y"]),
        ]
        first = []
        d = self.client.call_paginated(_DESCRIBE_THINGS)
        d.addCallback(first.append)
        d.addCallback(lambda _: self.client.call_paginated(_DESCRIBE_THINGS))
        d.addCallback(first.append)
        d.addCallback(lambda _: first[1].next_page())
        d.addCallback(lambda _: first[0].next_page())

        def check(ignored):
            self.assertEquals(
                [query.params.get("NextToken")
                 for query in self.factory.queries],
                [None, None, "token-x", "token-a"])
        return d.addCallback(check)

    def test_marker_cursor(self):
        self.factory.responses["DescribeMarkedThings"] = [
            things_page(["a"], "m-1", cursor="Marker"),
            things_page(["b"]),
        ]
        d = self.client.paginate(
            "DescribeMarkedThings", [("MaxRecords", "20")], RDS)
        d.addCallback(lambda page: page.next_page())

        def check(page):
            self.assertEquals([thing.name for thing in page], ["b"])
            self.assertEquals(
                self.factory.queries[1].params,
                {"MaxRecords": "20", "Marker": "m-1"})
            self.assertEquals(
                self.factory.queries[1].host, "rds.us-east-1.amazonaws.com")
        return d.addCallback(check)

    def test_replaces_cursor(self):
        self.factory.responses["DescribeMarkedThings"] = [
            things_page(["a"], "m-2", cursor="Marker"),
            things_page(["b"]),
        ]
        d = self.client.paginate(
            "DescribeMarkedThings", [("Marker", "m-1")], RDS)
        d.addCallback(lambda page: page.next_page())

        def check(ignored):
            self.assertEquals(
                self.factory.queries[1].params, {"Marker": "m-2"})
        return d.addCallback(check)
