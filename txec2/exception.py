# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Errors reported by AWS and errors raised before a request is sent.
"""

from twisted.web.error import Error

from txec2.util import XML


class AWSError(Error):
    """
    An AWS error response.

    EC2 wraps its errors in C{Response/Errors/Error}; the other Query APIs
    use C{ErrorResponse/Error}.  Both layouts are understood, as is the bare
    C{Error} document of a server error.

    @ivar original: The error document.
    @ivar errors: One dict per error, mapping child tags such as C{Code} and
        C{Message} to their text.
    @ivar request_id: The ID AWS assigned to the failed request, or C{""}.
    """
    def __init__(self, xml_bytes, status, message=None, response=None):
        super(AWSError, self).__init__(status, message, response)
        if not xml_bytes:
            raise ValueError("XML cannot be empty.")
        self.original = xml_bytes
        self.errors = []
        self.request_id = ""
        self.host_id = ""
        self.parse()

    def __str__(self):
        if len(self.errors) > 1:
            return "%s." % (self.get_error_messages(),)
        return "Error Message: %s" % (self.get_error_messages(),)

    def __repr__(self):
        if len(self.errors) > 1:
            summary = "Error count: %s" % (self.get_error_codes(),)
        else:
            summary = "Error code: %s" % (self.get_error_codes(),)
        return "<%s object with %s>" % (self.__class__.__name__, summary)

    def _node_to_dict(self, node):
        return dict(
            (child.tag, child.text) for child in node
            if isinstance(child.tag, str) and child.text)

    def _error_nodes(self, tree, status):
        container = tree.find(".//Errors")
        if container is not None:
            return list(container)
        nodes = tree.findall(".//Error")
        if not nodes and status >= 500:
            nodes = [tree]
        return nodes

    def parse(self, xml_bytes=b""):
        """
        Read the error document, C{xml_bytes} or the one this error was
        created with.

        @raise AWSResponseParseError: If the document is an HTML page, as
            proxies and load balancers return.
        """
        if xml_bytes:
            self.original = xml_bytes
        tree = XML(self.original.strip())
        if tree.tag == "html":
            raise AWSResponseParseError(
                "Could not parse HTML in the response.")
        for path in (".//RequestID", ".//RequestId"):
            text = tree.findtext(path)
            if text:
                self.request_id = text
                break
        self.host_id = tree.findtext(".//HostID") or ""
        status = int(self.status) if self.status else 400
        for node in self._error_nodes(tree, status):
            data = self._node_to_dict(node)
            if data:
                self.errors.append(data)

    def has_error(self, code):
        """Whether any of the errors carries C{code}."""
        return any(code in error.values() for error in self.errors)

    def get_error_codes(self):
        """
        @return: The code of the only error, the number of errors when there
            are several, or C{None} when there are none.
        """
        if len(self.errors) > 1:
            return len(self.errors)
        if self.errors:
            return self.errors[0].get("Code")
        return None

    def get_error_messages(self):
        if len(self.errors) > 1:
            return "Multiple AWS errors"
        if self.errors:
            return self.errors[0].get("Message")
        return "Empty error list"


class AWSResponseParseError(Exception):
    """
    txEC2 was unable to parse the server response.
    """


class CredentialsNotFoundError(Exception):
    """
    Raised when no credentials could be located.
    """


class ArgumentError(ValueError):
    """
    The arguments given to an action could not be turned into a request.

    Raised before any request is sent.

    @ivar action: The name of the AWS action being prepared.
    """
    def __init__(self, action, message):
        super(ArgumentError, self).__init__(message)
        self.action = action


class MissingArgumentError(ArgumentError):
    """
    A required option was absent or empty after alias resolution.

    @ivar option: The canonical name of the missing option.
    """
    def __init__(self, action, option):
        super(MissingArgumentError, self).__init__(
            action, "%s requires the %r argument" % (action, option))
        self.option = option


class InvalidArgumentCombinationError(ArgumentError):
    """
    Options which exclude each other were supplied together.

    @ivar options: The canonical names of the conflicting options.
    """
    def __init__(self, action, options):
        super(InvalidArgumentCombinationError, self).__init__(
            action, "%s accepts only one of %s" % (
                action, ", ".join(repr(option) for option in options)))
        self.options = tuple(options)


class WaitTimeoutError(TimeoutError):
    """
    A poll loop reached its deadline before the awaited state appeared.

    @ivar description: What was being waited for.
    @ivar last_state: The last state observed, or C{None} if nothing was
        ever observed.
    """
    def __init__(self, description, timeout, last_state=None):
        super(WaitTimeoutError, self).__init__(
            "Timed out after %s seconds waiting for %s" % (
                timeout, description))
        self.description = description
        self.timeout = timeout
        self.last_state = last_state
