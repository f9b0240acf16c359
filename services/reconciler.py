"""
services/reconciler.py

Responsibility: Derives the ordered list of Create/Update/Delete actions that
brings the zone's A records in line with the network membership.
Does NOT: perform I/O, apply actions, log audit events, or mutate its inputs.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable

from domain.models import Action, ActualState, Create, Delete, DesiredState, Update

logger = logging.getLogger(__name__)


def reconcile(desired: DesiredState, actual: ActualState) -> list[Action]:
    """
    Compares the desired and actual snapshots and returns the actions to apply.

    Creates and updates come first (members in name order), then deletes
    (records in label order). A record is only ever deleted when its label
    is not a member name AND its address lies inside one of the network's
    pools; anything else in the zone is left alone. With no pools configured
    nothing is deleted.

    Args:
        desired: Membership snapshot from the network controller.
        actual: The zone's A records keyed by label.

    Returns:
        The ordered action list; empty when the zone is already in sync.
    """
    actions: list[Action] = []

    for name in sorted(desired.members):
        member = desired.members[name]
        record = actual.get(name)
        if record is None:
            actions.append(Create(label=name, address=member.address))
        elif record.address != member.address:
            actions.append(Update(handle=record.handle, label=name, address=member.address))

    for label in sorted(actual):
        if label in desired.members:
            continue
        record = actual[label]
        if not desired.in_managed_pool(record.address):
            logger.debug("Leaving %s (%s) alone: outside managed pools.", label, record.address)
            continue
        actions.append(Delete(handle=record.handle, label=label, address=record.address))

    return actions


def summarize(actions: Iterable[Action]) -> dict[str, int]:
    """
    Counts actions per kind.

    Returns:
        A dict with "create", "update" and "delete" keys, always present.
    """
    counts = Counter(action.kind for action in actions)
    return {kind: counts.get(kind, 0) for kind in ("create", "update", "delete")}
