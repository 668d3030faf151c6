"""
The purchase order transition table.

This is the single authority on which events are legal from which status.
The workflow consults it before every change, and the dashboard uses
available_events() to decide which actions to offer on a PO.

  draft         --submit-->           pending
  pending       --approve-->          approved
  pending       --reject-->           rejected      (terminal)
  approved      --send-->             sent
  sent          --acknowledge-->      acknowledged
  acknowledged  --record_delivery-->  acknowledged | delivered
  any non-terminal --cancel-->        cancelled     (terminal)

record_delivery is the only event with two possible targets: the PO stays
acknowledged until every item has been received in full.
"""
from enum import Enum
from typing import Optional

from models.purchase_order import POStatus, TERMINAL_STATUSES


class POEvent(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    SEND = "send"
    ACKNOWLEDGE = "acknowledge"
    RECORD_DELIVERY = "record_delivery"
    CANCEL = "cancel"


TRANSITIONS: dict[tuple[POStatus, POEvent], POStatus] = {
    (POStatus.DRAFT,        POEvent.SUBMIT):          POStatus.PENDING,
    (POStatus.PENDING,      POEvent.APPROVE):         POStatus.APPROVED,
    (POStatus.PENDING,      POEvent.REJECT):          POStatus.REJECTED,
    (POStatus.APPROVED,     POEvent.SEND):            POStatus.SENT,
    (POStatus.SENT,         POEvent.ACKNOWLEDGE):     POStatus.ACKNOWLEDGED,
    (POStatus.ACKNOWLEDGED, POEvent.RECORD_DELIVERY): POStatus.ACKNOWLEDGED,
}

# cancel is legal from every non-terminal status
for _status in POStatus:
    if _status not in TERMINAL_STATUSES:
        TRANSITIONS[(_status, POEvent.CANCEL)] = POStatus.CANCELLED


def next_status(status: POStatus, event: POEvent) -> Optional[POStatus]:
    """Return the target status, or None when the event is illegal from status."""
    return TRANSITIONS.get((POStatus(status), POEvent(event)))


def is_allowed(status: POStatus, event: POEvent) -> bool:
    return next_status(status, event) is not None


def available_events(status: POStatus) -> list[POEvent]:
    """Events that may be raised from status, in table order."""
    status = POStatus(status)
    return [event for (source, event) in TRANSITIONS if source == status]


def reachable_statuses(start: POStatus = POStatus.DRAFT) -> set[POStatus]:
    """Every status reachable from start through the table (including delivered)."""
    seen = {POStatus(start)}
    frontier = [POStatus(start)]
    while frontier:
        current = frontier.pop()
        targets = [target for (source, _), target in TRANSITIONS.items() if source == current]
        if current == POStatus.ACKNOWLEDGED:
            targets.append(POStatus.DELIVERED)
        for target in targets:
            if target not in seen:
                seen.add(target)
                frontier.append(target)
    return seen
