# Licenced under the txEC2 licence available at /LICENSE in the txEC2 source.

"""
Bounded poll loops over describe actions.
"""

from twisted.internet.defer import inlineCallbacks
from twisted.internet.task import deferLater
from twisted.logger import Logger

from txec2.exception import WaitTimeoutError


__all__ = ["poll_until", "wait_for_terminal_state",
           "MATERIALIZE_INTERVAL", "MATERIALIZE_TIMEOUT",
           "WAIT_INTERVAL", "WAIT_TIMEOUT"]


MATERIALIZE_INTERVAL = 1
MATERIALIZE_TIMEOUT = 60
WAIT_INTERVAL = 3
WAIT_TIMEOUT = 600

_log = Logger()


def _sleep(clock, seconds):
    return deferLater(clock, seconds, lambda: None)


@inlineCallbacks
def poll_until(check, description, clock, interval=MATERIALIZE_INTERVAL,
               timeout=MATERIALIZE_TIMEOUT):
    """
    Call C{check} until it fires with a true value.

    @param check: A no-argument callable returning a L{Deferred}.
    @param description: What is awaited, for logs and the timeout error.
    @param clock: An L{IReactorTime} provider.
    @param interval: Seconds between checks.
    @param timeout: Seconds after which to give up.

    @return: A L{Deferred} firing with the first true result, or failing with
        L{WaitTimeoutError} carrying the last result.
    """
    deadline = clock.seconds() + timeout
    while True:
        result = yield check()
        if result:
            return result
        if clock.seconds() >= deadline:
            _log.warn(
                u"Gave up waiting for {description} after {timeout}s",
                description=description, timeout=timeout)
            raise WaitTimeoutError(description, timeout, result)
        _log.debug(u"Still waiting for {description}",
                   description=description)
        yield _sleep(clock, interval)


@inlineCallbacks
def wait_for_terminal_state(ids, fetch_states, terminal_states, clock,
                            timeout=WAIT_TIMEOUT, interval=WAIT_INTERVAL,
                            missing_state=None, description="resources"):
    """
    Poll the state of several resources until each reaches a terminal state.

    @param ids: The identifiers to wait for.
    @param fetch_states: A callable taking a list of identifiers and
        returning a L{Deferred} firing with a mapping of identifier to state.
    @param terminal_states: The states which end the wait for a resource.
    @param clock: An L{IReactorTime} provider.
    @param timeout: Seconds after which to give up; C{None} or C{0} waits
        indefinitely.
    @param interval: Seconds between polls.
    @param missing_state: The state of a resource absent from a describe
        response, or C{None} to keep waiting for it.

    @return: A L{Deferred} firing with a mapping of identifier to terminal
        state, or failing with L{WaitTimeoutError} whose C{last_state} is the
        mapping of identifier to last observed state.
    """
    ids = list(ids)
    terminal_states = frozenset(terminal_states)
    states = dict.fromkeys(ids)
    deadline = None
    if timeout:
        deadline = clock.seconds() + timeout
    while True:
        pending = [i for i in ids if states[i] not in terminal_states]
        if not pending:
            return states
        current = yield fetch_states(pending)
        for identifier in pending:
            state = current.get(identifier, missing_state)
            if state is not None:
                states[identifier] = state
        if all(states[i] in terminal_states for i in ids):
            return states
        if deadline is not None and clock.seconds() >= deadline:
            _log.warn(
                u"Gave up waiting for {description} after {timeout}s: "
                u"{states}",
                description=description, timeout=timeout, states=states)
            raise WaitTimeoutError(description, timeout, dict(states))
        _log.debug(u"Waiting for {description}: {states}",
                   description=description, states=states)
        yield _sleep(clock, interval)
