"""Ports for collaborators owned by other parts of the application.

Circle membership and RSVP handling live outside the scheduling engine.
The engine only asks whether a user belongs to a circle, and tells the RSVP
side when an event's time has been fixed.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

from scheduling.domain import CircleId, ScheduledEvent
from scheduling.signals import event_scheduled

logger = logging.getLogger(__name__)


class MembershipChecker(ABC):
    """Answers circle membership questions."""

    @abstractmethod
    def is_member(self, circle_id: CircleId, user_id: str) -> bool:
        ...


class RsvpNotifier(ABC):
    """Receives scheduled events so attendance responses can open."""

    @abstractmethod
    def schedule_fixed(self, event: ScheduledEvent) -> None:
        ...


class StaticMembership(MembershipChecker):
    """Membership backed by a fixed circle -> members mapping."""

    def __init__(self, members: Mapping[CircleId, Iterable[str]] | None = None) -> None:
        self._members = {
            circle_id: frozenset(user_ids) for circle_id, user_ids in (members or {}).items()
        }

    def is_member(self, circle_id: CircleId, user_id: str) -> bool:
        return user_id in self._members.get(circle_id, frozenset())


class AllowAllMembership(MembershipChecker):
    """Treats every authenticated user as a member.

    Only suitable for development; deployments point
    SCHEDULING_MEMBERSHIP_CHECKER at the circles service adapter.
    """

    def is_member(self, circle_id: CircleId, user_id: str) -> bool:
        return bool(user_id)


class SignalRsvpNotifier(RsvpNotifier):
    """Publishes the event_scheduled signal for RSVP receivers."""

    def schedule_fixed(self, event: ScheduledEvent) -> None:
        responses = event_scheduled.send_robust(sender=self.__class__, event=event)
        for receiver, response in responses:
            if isinstance(response, Exception):
                logger.error(
                    "event_scheduled receiver failed",
                    exc_info=response,
                    extra={"event_id": str(event.id), "receiver": repr(receiver)},
                )


class RecordingRsvpNotifier(RsvpNotifier):
    """Keeps notified events in memory."""

    def __init__(self) -> None:
        self.events: list[ScheduledEvent] = []

    def schedule_fixed(self, event: ScheduledEvent) -> None:
        self.events.append(event)
