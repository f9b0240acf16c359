"""
tests/unit/test_reconciler.py

Unit tests for services/reconciler.py.
The reconciler is pure, so every test builds snapshots in memory.
"""

from __future__ import annotations

import random
from ipaddress import IPv4Address
from types import MappingProxyType

from domain.models import AddressPool, Create, Delete, DesiredState, DnsRecord, Member, Update
from services.reconciler import reconcile, summarize

_POOL = AddressPool(IPv4Address("10.0.0.0"), IPv4Address("10.0.0.255"))


def _desired(members: dict[str, str], pools=(_POOL,)) -> DesiredState:
    return DesiredState.build(
        [Member(name, IPv4Address(addr)) for name, addr in members.items()], pools
    )


def _actual(records: dict[str, tuple[str, str]]) -> dict[str, DnsRecord]:
    return {
        label: DnsRecord(label=label, address=IPv4Address(addr), handle=handle)
        for label, (addr, handle) in records.items()
    }


def _apply(actual: dict[str, DnsRecord], actions) -> dict[str, DnsRecord]:
    """Simulates a provider applying every action; new records get fresh handles."""
    result = dict(actual)
    by_handle = {r.handle: r.label for r in actual.values()}
    for n, action in enumerate(actions):
        if isinstance(action, Create):
            result[action.label] = DnsRecord(action.label, action.address, f"new{n}")
        elif isinstance(action, Update):
            result[action.label] = DnsRecord(action.label, action.address, action.handle)
        else:
            del result[by_handle[action.handle]]
    return result


# ---------------------------------------------------------------------------
# Reference scenarios
# ---------------------------------------------------------------------------


def test_creates_record_for_new_member():
    """A member without a record gets a Create."""
    actions = reconcile(_desired({"host1": "10.0.0.5"}), _actual({}))

    assert actions == [Create(label="host1", address=IPv4Address("10.0.0.5"))]


def test_updates_record_with_stale_address():
    """A member whose record points elsewhere gets an Update on the record's handle."""
    actions = reconcile(
        _desired({"host1": "10.0.0.5"}),
        _actual({"host1": ("10.0.0.9", "h1")}),
    )

    assert actions == [Update(handle="h1", label="host1", address=IPv4Address("10.0.0.5"))]


def test_deletes_departed_member_inside_pool():
    """A record for a departed member whose address is in a pool is deleted."""
    actions = reconcile(_desired({}), _actual({"old": ("10.0.0.3", "h2")}))

    assert actions == [Delete(handle="h2", label="old", address=IPv4Address("10.0.0.3"))]


def test_leaves_record_outside_pool_alone():
    """A record whose address is outside every pool is never touched."""
    actions = reconcile(_desired({}), _actual({"external": ("192.168.1.1", "h3")}))

    assert actions == []


def test_no_action_when_in_sync():
    """A record already matching its member produces nothing."""
    actions = reconcile(
        _desired({"host1": "10.0.0.5"}),
        _actual({"host1": ("10.0.0.5", "h1")}),
    )

    assert actions == []


# ---------------------------------------------------------------------------
# Edge cases
# ---------------------------------------------------------------------------


def test_empty_inputs_give_empty_list():
    """Nothing desired and nothing present means nothing to do."""
    assert reconcile(DesiredState(), {}) == []


def test_empty_pools_never_delete():
    """Without pools the delete pass is disabled entirely."""
    actual = _actual({"old": ("10.0.0.3", "h2"), "gone": ("10.9.9.9", "h4")})

    actions = reconcile(_desired({}, pools=()), actual)

    assert actions == []


def test_malformed_pool_matches_nothing():
    """A pool whose start is above its end protects every record instead of raising."""
    bad = AddressPool(IPv4Address("10.0.0.255"), IPv4Address("10.0.0.0"))

    actions = reconcile(_desired({}, pools=(bad,)), _actual({"old": ("10.0.0.3", "h2")}))

    assert actions == []


def test_pool_bounds_are_inclusive():
    """Addresses equal to either pool bound count as managed."""
    actual = _actual({"low": ("10.0.0.0", "h1"), "high": ("10.0.0.255", "h2"), "out": ("10.0.1.0", "h3")})

    actions = reconcile(_desired({}), actual)

    assert [a.handle for a in actions] == ["h2", "h1"]


def test_any_pool_is_enough_to_delete():
    """A record matching the second of several pools is still managed."""
    pools = (
        AddressPool(IPv4Address("10.0.0.0"), IPv4Address("10.0.0.10")),
        AddressPool(IPv4Address("172.16.0.0"), IPv4Address("172.16.0.255")),
    )

    actions = reconcile(_desired({}, pools=pools), _actual({"old": ("172.16.0.7", "h9")}))

    assert actions == [Delete(handle="h9", label="old", address=IPv4Address("172.16.0.7"))]


def test_member_record_outside_pool_is_still_updated():
    """Pools only guard deletes; a member's own record is updated wherever it points."""
    actions = reconcile(
        _desired({"host1": "10.0.0.5"}),
        _actual({"host1": ("8.8.8.8", "h1")}),
    )

    assert actions == [Update(handle="h1", label="host1", address=IPv4Address("10.0.0.5"))]


def test_creates_and_updates_come_before_deletes():
    """Pass one (create/update) is emitted in full before pass two (delete)."""
    actions = reconcile(
        _desired({"zeta": "10.0.0.20", "alpha": "10.0.0.1", "mid": "10.0.0.7"}),
        _actual({"aaa": ("10.0.0.50", "d1"), "mid": ("10.0.0.8", "u1")}),
    )

    assert [a.kind for a in actions] == ["create", "update", "create", "delete"]
    assert [a.label for a in actions] == ["alpha", "mid", "zeta", "aaa"]


def test_inputs_are_not_mutated():
    """reconcile never changes the snapshots it is given."""
    desired = _desired({"host1": "10.0.0.5"})
    actual = _actual({"host1": ("10.0.0.9", "h1"), "old": ("10.0.0.3", "h2")})
    before = dict(actual)

    reconcile(desired, actual)

    assert actual == before
    assert list(desired.members) == ["host1"]


def test_accepts_read_only_actual_state():
    """The zone snapshot is a read-only mapping in production."""
    actual = MappingProxyType(_actual({"old": ("10.0.0.3", "h2")}))

    assert len(reconcile(_desired({}), actual)) == 1


def test_summarize_counts_every_kind():
    actions = [
        Create("a", IPv4Address("10.0.0.1")),
        Create("b", IPv4Address("10.0.0.2")),
        Delete("h1", "c", IPv4Address("10.0.0.3")),
    ]

    assert summarize(actions) == {"create": 2, "update": 0, "delete": 1}
    assert summarize([]) == {"create": 0, "update": 0, "delete": 0}


# ---------------------------------------------------------------------------
# Properties over generated snapshots
# ---------------------------------------------------------------------------


def _random_case(rng: random.Random):
    labels = [f"host{i}" for i in range(12)]
    members = {
        name: f"10.0.0.{rng.randint(1, 40)}" for name in rng.sample(labels, rng.randint(0, 8))
    }
    records = {}
    for n, label in enumerate(rng.sample(labels, rng.randint(0, 8))):
        subnet = rng.choice(["10.0.0", "192.168.1"])
        records[label] = (f"{subnet}.{rng.randint(1, 40)}", f"h{n}")
    pools = rng.choice([(), (_POOL,)])
    return _desired(members, pools=pools), _actual(records)


def test_properties_hold_for_generated_snapshots():
    """Idempotence, completeness, no orphan deletes and empty-pool conservation."""
    rng = random.Random(20240601)

    for _ in range(300):
        desired, actual = _random_case(rng)
        actions = reconcile(desired, actual)

        # Each label appears in at most one action
        labels = [a.label for a in actions]
        assert len(labels) == len(set(labels))

        # No orphan deletes
        for action in actions:
            if isinstance(action, Delete):
                assert action.label not in desired.members
                assert desired.in_managed_pool(actual[action.label].address)

        # Conservation under empty pools
        if not desired.pools:
            assert not any(isinstance(a, Delete) for a in actions)

        after = _apply(actual, actions)

        # Completeness: every member has its address, unmanaged records untouched
        for name, m in desired.members.items():
            assert after[name].address == m.address
        for label, rec in actual.items():
            if label not in desired.members and not desired.in_managed_pool(rec.address):
                assert after[label] == rec

        # Idempotence
        assert reconcile(desired, after) == []
