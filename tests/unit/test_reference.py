"""Unit tests for the Reference value type."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from inventory_graph.reference import Reference


class TestBuild:
    def test_scalar_is_shorthand_for_first_key(self):
        ref = Reference.build("vm-1", "manager_ref", ("ems_ref",), primary=True)
        assert ref.full_reference == {"ems_ref": "vm-1"}
        assert ref.primary is True

    def test_mapping_is_copied(self):
        data = {"ems_ref": "vm-1"}
        ref = Reference.build(data, "manager_ref", ("ems_ref",))
        data["ems_ref"] = "vm-2"
        assert ref["ems_ref"] == "vm-1"

    def test_extra_attributes_are_kept(self):
        ref = Reference.build({"ems_ref": "vm-1", "name": "web"}, "manager_ref", ("ems_ref",))
        assert ref["name"] == "web"
        assert ref.index_data() == {"ems_ref": "vm-1"}


class TestStringifiedReference:
    def test_composite_keys_are_joined(self):
        ref = Reference.build(
            {"hardware": "hw-1", "device_name": "sda"},
            "manager_ref",
            ("hardware", "device_name"),
        )
        assert ref.stringified_reference == "hw-1__sda"
        assert str(ref) == "hw-1__sda"

    def test_null_values_become_empty(self):
        ref = Reference.build({"hardware": "hw-1"}, "manager_ref", ("hardware", "device_name"))
        assert ref.stringified_reference == "hw-1__"

    def test_lazy_values_use_their_reference(self, hosts):
        handle = hosts.lazy_find({"ems_ref": "host-1"})
        ref = Reference.build({"host": handle}, "by_host", ("host",))
        assert ref.stringified_reference == "host-1"


class TestLoadable:
    def test_all_keys_present(self):
        ref = Reference.build({"a": 1, "b": 0}, "manager_ref", ("a", "b"))
        assert ref.loadable is True

    def test_any_null_key(self):
        ref = Reference.build({"a": 1, "b": None}, "manager_ref", ("a", "b"))
        assert ref.loadable is False

    def test_missing_key(self):
        ref = Reference.build({"a": 1}, "manager_ref", ("a", "b"))
        assert ref.loadable is False


class TestNestedLazyDetection:
    def test_concrete_values(self):
        ref = Reference.build({"stack": 42}, "by_stack", ("stack",))
        assert ref.nested_lazy_keys == []
        assert ref.nested_secondary_index is False

    def test_primary_lazy_value(self, stacks):
        ref = Reference.build({"stack": stacks.lazy_find("s-1")}, "by_stack", ("stack",))
        assert ref.nested_lazy_keys == ["stack"]
        assert ref.nested_secondary_index is False

    def test_secondary_lazy_value(self, stacks):
        handle = stacks.lazy_find({"ems_ref": "x"}, ref="by_ems_ref", key="id")
        ref = Reference.build({"stack": handle}, "by_stack", ("stack",))
        assert ref.nested_secondary_index is True

    def test_lazy_value_outside_keys_is_ignored(self, stacks):
        handle = stacks.lazy_find({"ems_ref": "x"}, ref="by_ems_ref", key="id")
        ref = Reference.build({"stack": 1, "other": handle}, "by_stack", ("stack",))
        assert ref.nested_secondary_index is False


class TestImmutability:
    def test_assignment_rejected(self):
        ref = Reference.build("vm-1", "manager_ref", ("ems_ref",))
        with pytest.raises(ValidationError):
            ref.ref = "other"

    def test_with_values_returns_new_reference(self):
        ref = Reference.build({"stack": "lazy"}, "by_stack", ("stack",))
        rebuilt = ref.with_values({"stack": 42})
        assert rebuilt is not ref
        assert rebuilt.full_reference == {"stack": 42}
        assert rebuilt.ref == "by_stack"
        assert ref.full_reference == {"stack": "lazy"}
