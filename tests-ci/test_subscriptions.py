"""
Tests for kickapi/subscriptions.py (desired set, brokenness, reconciliation)
"""
from dataclasses import FrozenInstanceError

import pytest

from kickapi.subscriptions import (
    DESIRED_SUBSCRIPTIONS,
    DesiredSubscription,
    ReconciliationResult,
    RemoteSubscription,
    is_remote_broken,
    reconcile_subscriptions,
)

REFERENCE = (
    DesiredSubscription("chat.message.sent", 1),
    DesiredSubscription("channel.followed", 1),
    DesiredSubscription("livestream.status.updated", 1),
)


def apply(current, result):
    """Simulate Kick after a perfectly applied reconciliation"""
    survivors = [sub for sub in current if not (sub.id and sub.id in result.delete)]
    created = [
        RemoteSubscription(id=f"new-{i}", event=d.name, version=d.version)
        for i, d in enumerate(result.create)
    ]
    return survivors + created


@pytest.mark.unit
class TestDesiredSet:
    """Tests of the fixed desired set"""

    def test_has_nine_entries(self):
        assert len(DESIRED_SUBSCRIPTIONS) == 9

    def test_entries_are_unique(self):
        assert len({d.key for d in DESIRED_SUBSCRIPTIONS}) == len(DESIRED_SUBSCRIPTIONS)

    def test_entries_are_immutable(self):
        with pytest.raises(FrozenInstanceError):
            DESIRED_SUBSCRIPTIONS[0].name = "other"

    def test_payload_format(self):
        assert DesiredSubscription("kicks.gifted", 1).to_payload() == {"name": "kicks.gifted", "version": 1}


@pytest.mark.unit
class TestRemoteSubscription:
    """Parsing of API records"""

    def test_from_dict(self):
        sub = RemoteSubscription.from_dict({
            "id": "01ABC",
            "event": "chat.message.sent",
            "version": 1,
            "broadcaster_user_id": 42,
            "method": "webhook",
        })
        assert sub.id == "01ABC"
        assert sub.key == ("chat.message.sent", 1)
        assert sub.broadcaster_user_id == 42

    @pytest.mark.parametrize("raw_id", [None, "", "missing"])
    def test_empty_id_becomes_none(self, raw_id):
        raw = {"event": "chat.message.sent", "version": 1}
        if raw_id != "missing":
            raw["id"] = raw_id
        assert RemoteSubscription.from_dict(raw).id is None

    def test_describe_without_id(self):
        sub = RemoteSubscription(id=None, event="foo", version=2)
        assert sub.describe() == "unknown-id: foo (v2)"


@pytest.mark.unit
class TestBrokennessDetector:
    """Tests of is_remote_broken"""

    def test_valid_and_unique(self, make_sub):
        current = [
            make_sub("1", "chat.message.sent"),
            make_sub("2", "channel.followed"),
            make_sub("3", "livestream.status.updated"),
        ]
        assert is_remote_broken(current, REFERENCE) is False

    def test_empty_is_not_broken(self):
        assert is_remote_broken([], REFERENCE) is False
        assert is_remote_broken([], []) is False

    def test_subset_is_not_broken(self, make_sub):
        current = [make_sub("1", "chat.message.sent"), make_sub("2", "channel.followed")]
        assert is_remote_broken(current, REFERENCE) is False

    def test_duplicate_is_broken(self, make_sub):
        current = [
            make_sub("1", "chat.message.sent"),
            make_sub("2", "chat.message.sent"),
            make_sub("3", "channel.followed"),
        ]
        assert is_remote_broken(current, REFERENCE) is True

    def test_duplicates_without_ids_are_broken(self, make_sub):
        current = [make_sub(None, "chat.message.sent"), make_sub(None, "chat.message.sent")]
        assert is_remote_broken(current, REFERENCE) is True

    def test_versions_are_distinct_pairs(self, make_sub):
        reference = [DesiredSubscription("chat.message.sent", 1), DesiredSubscription("chat.message.sent", 2)]
        current = [make_sub("1", "chat.message.sent", 1), make_sub("2", "chat.message.sent", 2)]
        assert is_remote_broken(current, reference) is False

    def test_unknown_event_is_broken(self, make_sub):
        current = [make_sub("1", "chat.message.sent"), make_sub("2", "unknown.event")]
        assert is_remote_broken(current, REFERENCE) is True

    def test_unknown_version_is_broken(self, make_sub):
        current = [make_sub("1", "chat.message.sent"), make_sub("2", "channel.followed", 2)]
        assert is_remote_broken(current, REFERENCE) is True

    @pytest.mark.parametrize("event,version", [("", 1), ("chat.message.sent", 0), ("chat.message.sent", -1)])
    def test_edge_values_are_broken(self, make_sub, event, version):
        current = [make_sub("1", event, version), make_sub("2", "channel.followed")]
        assert is_remote_broken(current, REFERENCE) is True


@pytest.mark.unit
class TestReconciler:
    """Tests of reconcile_subscriptions (non-broken path)"""

    def test_scenario_a_creates_all_when_none_exist(self):
        result = reconcile_subscriptions([], DESIRED_SUBSCRIPTIONS)
        assert len(result.create) == 9
        assert result.create == list(DESIRED_SUBSCRIPTIONS)
        assert result.delete == []

    def test_scenario_b_duplicate_and_unrelated(self, make_sub, all_present):
        current = list(all_present)
        current.insert(1, make_sub("dup", "chat.message.sent"))
        current.append(make_sub("extra", "not-needed"))

        result = reconcile_subscriptions(current, DESIRED_SUBSCRIPTIONS)

        assert len(result.create) == 0
        assert sorted(result.delete) == ["dup", "extra"]

    def test_scenario_d_nothing_to_do(self, all_present):
        result = reconcile_subscriptions(all_present, DESIRED_SUBSCRIPTIONS)
        assert result.create == []
        assert result.delete == []
        assert result.is_empty

    def test_deletes_all_if_none_needed(self, make_sub):
        current = [make_sub("1", "foo"), make_sub("2", "bar")]
        result = reconcile_subscriptions(current, DESIRED_SUBSCRIPTIONS)
        assert len(result.create) == 9
        assert result.delete == ["1", "2"]

    def test_mixed_create_and_delete(self, make_sub):
        current = [
            make_sub("1", "chat.message.sent"),
            make_sub("2", "channel.followed"),
            make_sub("3", "channel.subscription.gifts"),
            make_sub("4", "extra"),
        ]
        result = reconcile_subscriptions(current, DESIRED_SUBSCRIPTIONS)
        assert len(result.create) == 6
        assert result.delete == ["4"]
        assert DesiredSubscription("livestream.status.updated", 1) in result.create

    def test_empty_ids_never_deleted(self, make_sub):
        current = [
            make_sub(None, "chat.message.sent"),
            make_sub(None, "channel.followed"),
            make_sub(None, "channel.followed"),
            make_sub(None, "unrelated"),
        ]
        result = reconcile_subscriptions(current, DESIRED_SUBSCRIPTIONS)
        assert len(result.create) == 7
        assert result.delete == []

    @pytest.mark.parametrize("copies", [2, 3, 5])
    def test_duplicate_collapse(self, make_sub, all_present, copies):
        extra = [make_sub(f"dup-{i}", "moderation.banned") for i in range(copies - 1)]
        # moderation.banned already present once in all_present
        current = all_present + extra

        result = reconcile_subscriptions(current, DESIRED_SUBSCRIPTIONS)

        matching_ids = {sub.id for sub in current if sub.event == "moderation.banned"}
        deleted = [sub_id for sub_id in result.delete if sub_id in matching_ids]
        assert len(deleted) == copies - 1
        assert len(matching_ids - set(deleted)) == 1
        assert DesiredSubscription("moderation.banned", 1) not in result.create

    def test_first_duplicate_survives(self, make_sub):
        current = [make_sub("a", "kicks.gifted"), make_sub("b", "kicks.gifted")]
        result = reconcile_subscriptions(current, DESIRED_SUBSCRIPTIONS)
        assert "a" not in result.delete
        assert "b" in result.delete

    @pytest.mark.parametrize("present_count", [0, 1, 4, 8, 9])
    def test_set_difference_property(self, make_sub, present_count):
        present = DESIRED_SUBSCRIPTIONS[:present_count]
        current = [make_sub(f"id-{i}", d.name, d.version) for i, d in enumerate(present)]

        result = reconcile_subscriptions(current, DESIRED_SUBSCRIPTIONS)

        assert result.create == list(DESIRED_SUBSCRIPTIONS[present_count:])
        assert result.delete == []

    @pytest.mark.parametrize("scenario", ["empty", "partial", "duplicates", "unknown", "mixed"])
    def test_idempotent_after_apply(self, make_sub, all_present, scenario):
        current = {
            "empty": [],
            "partial": all_present[:4],
            "duplicates": all_present + [make_sub("x", "chat.message.sent"), make_sub("y", "kicks.gifted")],
            "unknown": all_present[2:] + [make_sub("u1", "foo"), make_sub("u2", "channel.followed", 3)],
            "mixed": all_present[:3] + [make_sub("x", "chat.message.sent"), make_sub("u", "bar")],
        }[scenario]

        first = reconcile_subscriptions(current, DESIRED_SUBSCRIPTIONS)
        second = reconcile_subscriptions(apply(current, first), DESIRED_SUBSCRIPTIONS)

        assert second.create == []
        assert second.delete == []


@pytest.mark.unit
class TestReconcilerBrokenPath:
    """Full reset when Kick's bookkeeping is broken"""

    def test_full_reset(self, make_sub, all_present):
        current = all_present + [make_sub("dup", "chat.message.sent"), make_sub(None, "foo")]

        result = reconcile_subscriptions(current, DESIRED_SUBSCRIPTIONS, broken=True)

        assert result.create == list(DESIRED_SUBSCRIPTIONS)
        assert result.delete == [sub.id for sub in current if sub.id]
        assert None not in result.delete

    def test_full_reset_on_empty_list(self):
        result = reconcile_subscriptions([], DESIRED_SUBSCRIPTIONS, broken=True)
        assert result.create == list(DESIRED_SUBSCRIPTIONS)
        assert result.delete == []

    def test_broken_path_is_not_idempotent(self, all_present):
        result = reconcile_subscriptions(all_present, DESIRED_SUBSCRIPTIONS, broken=True)
        assert len(result.create) == 9
        assert len(result.delete) == 9

    def test_result_defaults(self):
        result = ReconciliationResult()
        assert result.create == [] and result.delete == []
        assert result.is_empty
