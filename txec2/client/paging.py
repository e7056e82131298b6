# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

from twisted.internet.defer import succeed


__all__ = ["Page"]


class Page(list):
    """
    One page of results from a paginated describe action.

    A page is a list of result objects which also knows how to fetch the page
    following it.  Each page carries its own cursor, so several iterations
    over the same action can be in progress at once.

    @ivar next_token: The cursor AWS returned with this page, or C{None}
        when this is the last page.
    """

    def __init__(self, items=(), next_token=None, fetch=None):
        super(Page, self).__init__(items)
        self.next_token = next_token
        self._fetch = fetch

    def __repr__(self):
        return "<Page of %d items, next_token=%r>" % (
            len(self), self.next_token)

    @property
    def more(self):
        """Whether AWS indicated that another page follows."""
        return self.next_token is not None and self._fetch is not None

    def next_page(self):
        """
        Fetch the following page with the original parameters.

        @return: A L{Deferred} firing with the next L{Page}; with an empty
            L{Page} once there are no more.
        """
        if not self.more:
            return succeed(Page())
        return self._fetch(self.next_token)
