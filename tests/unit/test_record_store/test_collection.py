"""Tests for Collection – the keyed record store."""

import pytest

from record_store import BaseRecord, Collection, ConfigurationError

from conftest import User, Users


class TestConstruction:
    def test_collection_without_record_class_raises(self):
        with pytest.raises(ConfigurationError, match="record_class"):
            Collection()

    def test_name_defaults_to_class_name(self, users):
        assert users.name == "users"

    def test_collection_name_override(self):
        class Staff(Collection[User]):
            record_class = User
            collection_name = "staff-members"

        assert Staff().name == "staff-members"


class TestSetAndGet:
    def test_set_then_has_and_get(self, users):
        users.set({"id": 1, "name": "ada"})
        assert users.has(1)
        assert 1 in users
        fetched = users.get(1)
        assert isinstance(fetched, User)
        assert fetched.name == "ada"

    def test_set_twice_keeps_identity(self, users):
        first = users.set({"id": 1, "name": "ada"})
        second = users.set({"id": 1, "name": "ada lovelace", "role": "admin"})
        assert first is second
        assert first.name == "ada lovelace"
        assert first.role == "admin"
        assert users.size == 1

    def test_set_without_primary_key_generates_one(self, users):
        r = users.set({"name": "anon"})
        assert users.get(r.primary_key) is r

    def test_get_missing_returns_none(self, users):
        assert users.get("ghost") is None
        assert users.has("ghost") is False

    def test_get_returns_stored_instance(self, users):
        r = users.set({"id": 1})
        r.name = "edited"
        assert users.get(1).name == "edited"

    def test_set_record_replaces_without_merge(self, users):
        original = users.set({"id": 1, "name": "ada", "role": "admin"})
        replacement = User(id=1, name="other")
        assert users.set_record(replacement) is replacement
        assert users.get(1) is replacement
        assert users.get(1) is not original
        assert users.get(1).role == ""

    def test_set_many_preserves_order(self, users):
        records = users.set_many([{"id": 2}, {"id": 1}, {"id": 3}])
        assert [r.primary_key for r in records] == [2, 1, 3]
        assert users.size == 3


class TestQueries:
    def test_get_many_preserves_order_and_omits_missing(self, users):
        users.set_many([{"id": 1}, {"id": 2}, {"id": 3}])
        found = users.get_many([3, 99, 1])
        assert [r.primary_key for r in found] == [3, 1]

    def test_where_prop_eq(self, users):
        users.set_many([
            {"id": 1, "role": "admin"},
            {"id": 2, "role": "member"},
            {"id": 3, "role": "admin"},
        ])
        admins = users.where_prop_eq("role", "admin")
        assert [r.primary_key for r in admins] == [1, 3]

    def test_where_prop_eq_on_extra_property(self, users):
        users.set_many([{"id": 1, "team": "x"}, {"id": 2}])
        assert [r.primary_key for r in users.where_prop_eq("team", "x")] == [1]

    def test_where_prop_eq_none_ignores_missing_property(self, users):
        users.set_many([{"id": 1, "team": None}, {"id": 2}])
        assert [r.primary_key for r in users.where_prop_eq("team", None)] == [1]

    def test_items_and_primary_keys(self, users):
        users.set_many([{"id": "a"}, {"id": "b"}])
        assert users.items_primary_keys == ["a", "b"]
        assert [r.primary_key for r in users.items] == ["a", "b"]
        assert [r.primary_key for r in users] == ["a", "b"]
        assert len(users) == 2

    def test_items_is_stable_without_mutation(self, users):
        users.set_many([{"id": 1}, {"id": 2}, {"id": 3}])
        first = users.items
        second = users.items
        assert len(first) == len(second)
        assert all(a is b for a, b in zip(first, second))

    def test_items_is_a_snapshot(self, users):
        users.set({"id": 1})
        snapshot = users.items
        users.set({"id": 2})
        assert len(snapshot) == 1
        assert users.size == 2


class TestRemoval:
    def test_unset(self, users):
        users.set_many([{"id": 1}, {"id": 2}])
        users.unset(1)
        assert users.size == 1
        assert users.has(1) is False

    def test_unset_missing_is_noop(self, users):
        users.set({"id": 1})
        assert users.unset("ghost") is users
        assert users.size == 1

    def test_unset_many_and_chaining(self, users):
        users.set_many([{"id": 1}, {"id": 2}, {"id": 3}])
        users.unset_many([1, 99]).unset(2)
        assert users.items_primary_keys == [3]

    def test_clear(self, users):
        users.set_many([{"id": 1}, {"id": 2}])
        assert users.clear() is users
        assert users.size == 0


class TestRekeying:
    def test_update_primary_key_moves_same_instance(self, users):
        r = users.set({"id": 1, "name": "ada"})
        users.update_record_primary_key(1, 2)
        assert users.get(1) is None
        assert users.get(2) is r
        assert r.primary_key == 2

    def test_update_primary_key_overwrites_target(self, users):
        moved = users.set({"id": 1, "name": "moved"})
        users.set({"id": 2, "name": "overwritten"})
        users.update_record_primary_key(1, 2)
        assert users.get(2) is moved
        assert users.size == 1

    def test_update_missing_primary_key_is_noop(self, users):
        users.set({"id": 2, "name": "kept"})
        users.update_record_primary_key(1, 2)
        assert users.get(2).name == "kept"
        assert users.size == 1

    def test_set_after_rekey_updates_moved_instance(self, users):
        r = users.set({"id": "tmp-1", "name": "draft"})
        users.update_record_primary_key("tmp-1", 10)
        assert users.set({"id": 10, "name": "saved"}) is r
        assert r.name == "saved"


class Ticket(BaseRecord):
    primary_key_field = "ticket_no"
    ticket_no: int = 0


class Tickets(Collection[Ticket]):
    record_class = Ticket


class TestCustomPrimaryKey:
    def test_collection_uses_record_primary_key_field(self):
        tickets = Tickets()
        t = tickets.set({"ticket_no": 5, "title": "broken"})
        assert tickets.get(5) is t
        assert tickets.set({"ticket_no": 5, "title": "fixed"}) is t
        tickets.update_record_primary_key(5, 6)
        assert t.ticket_no == 6

    def test_set_with_coercible_key_keeps_identity(self):
        tickets = Tickets()
        first = tickets.set({"ticket_no": "5"})
        second = tickets.set({"ticket_no": "5", "title": "x"})
        assert first is second
        assert second.title == "x"
        assert tickets.items_primary_keys == [5]
        assert tickets.get(5) is first

    def test_update_with_string_key_keeps_index_type(self):
        tickets = Tickets()
        t = tickets.set({"ticket_no": 5})
        tickets.set({"ticket_no": "5", "title": "x"})
        assert t.primary_key == 5
        assert tickets.get(t.primary_key) is t

    def test_rekey_with_string_key_indexes_coerced_value(self):
        tickets = Tickets()
        t = tickets.set({"ticket_no": 1})
        tickets.update_record_primary_key(1, "2")
        assert tickets.get(2) is t
        assert tickets.items_primary_keys == [2]
