"""Wait for readiness on file descriptors and run the matching callbacks."""

from __future__ import annotations

import enum
import errno
import select
from dataclasses import dataclass
from typing import Callable, List, Optional, Set, Tuple

from .file_descriptor import FileDescriptor
from .util import UnixError, system_call


class Direction(enum.IntEnum):
    """Whether a rule waits for its descriptor to become readable or writable."""

    IN = select.POLLIN
    OUT = select.POLLOUT


class EventLoopResult(enum.Enum):
    """The outcome of one EventLoop.wait_next_event call."""

    SUCCESS = enum.auto()
    TIMEOUT = enum.auto()
    EXIT = enum.auto()


def _always() -> bool:
    return True


def _nothing() -> None:
    return None


@dataclass(eq=False)
class _Rule:
    fd: FileDescriptor
    direction: Direction
    callback: Callable[[], None]
    interest: Callable[[], bool]
    cancel: Callable[[], None]

    def service_count(self) -> int:
        if self.direction is Direction.IN:
            return self.fd.read_count
        return self.fd.write_count


class EventLoop:
    """Polls the descriptors of its rules and calls back those that are ready.

    A rule is dropped (and its ``cancel`` called) when its descriptor is
    closed, when a readable descriptor reaches EOF, or when the only event
    reported for it is a hangup. Every callback must read or write its
    descriptor, or its ``interest`` must turn false; otherwise a busy wait
    is reported with RuntimeError.
    """

    def __init__(self) -> None:
        self._rules: List[_Rule] = []

    def add_rule(
        self,
        fd: FileDescriptor,
        direction: Direction,
        callback: Callable[[], None],
        interest: Optional[Callable[[], bool]] = None,
        cancel: Optional[Callable[[], None]] = None,
    ) -> None:
        """Call ``callback`` whenever ``fd`` is ready in ``direction`` and ``interest()`` holds."""
        self._rules.append(
            _Rule(
                fd.duplicate(),
                Direction(direction),
                callback,
                interest if interest is not None else _always,
                cancel if cancel is not None else _nothing,
            )
        )

    def wait_next_event(self, timeout_ms: int) -> EventLoopResult:
        """Poll once (waiting at most ``timeout_ms``; negative waits forever) and dispatch."""
        removed: Set[int] = set()
        polled: List[Tuple[_Rule, int]] = []
        requests: dict = {}
        something_to_poll = False

        for rule in list(self._rules):
            if (rule.direction is Direction.IN and rule.fd.eof) or rule.fd.closed:
                rule.cancel()
                removed.add(id(rule))
                continue
            events = int(rule.direction) if rule.interest() else 0
            something_to_poll = something_to_poll or bool(events)
            polled.append((rule, events))
            fd_num = rule.fd.fileno()
            requests[fd_num] = requests.get(fd_num, 0) | events

        self._drop(removed)
        if not something_to_poll:
            return EventLoopResult.EXIT

        poller = select.poll()
        for fd_num, mask in requests.items():
            poller.register(fd_num, mask)

        revents: dict = {}
        try:
            ready_list = system_call("poll", poller.poll, timeout_ms)
        except UnixError as exc:
            if exc.code == errno.EINTR:
                return EventLoopResult.EXIT
        else:
            if not ready_list:
                return EventLoopResult.TIMEOUT
            revents = dict(ready_list)

        removed = set()
        try:
            for rule, events in polled:
                rev = revents.get(rule.fd.fileno(), 0)
                if rev & (select.POLLERR | select.POLLNVAL):
                    raise RuntimeError("EventLoop: error on polled file descriptor")

                ready = bool(rev & events)
                hangup = bool(rev & select.POLLHUP)
                if hangup and events and not ready:
                    # the only condition was a hangup: this descriptor is defunct
                    rule.cancel()
                    removed.add(id(rule))
                    continue

                if ready:
                    count_before = rule.service_count()
                    rule.callback()
                    if count_before == rule.service_count() and rule.interest():
                        raise RuntimeError(
                            "EventLoop: busy wait detected: callback did not read/write fd "
                            "and is still interested"
                        )
        finally:
            self._drop(removed)

        return EventLoopResult.SUCCESS

    def _drop(self, removed: Set[int]) -> None:
        if removed:
            self._rules = [rule for rule in self._rules if id(rule) not in removed]

    def __len__(self) -> int:
        return len(self._rules)