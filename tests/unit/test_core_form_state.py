"""
Unit tests for core/form_state.py
"""

from formengine.core import FormState


class TestFormState:
    """Test values / touched / dirty bookkeeping."""

    def test_defaults_from_schema(self, contact_schema):
        state = FormState(contact_schema)
        assert state.values["hasReferral"] is False
        assert state.values["name"] == ""
        assert state.touched == {name: False for name in state.values}
        assert state.pristine

    def test_explicit_initial_values(self, contact_schema):
        state = FormState(contact_schema, {"name": "Ada"})
        assert state.get("name") == "Ada"
        assert state.get("missing", "fallback") == "fallback"

    def test_set_value_tracks_dirty(self, contact_schema):
        state = FormState(contact_schema)
        state.set_value("name", "Ada")
        assert state.is_dirty("name")
        assert not state.pristine

        state.set_value("name", "")
        assert not state.is_dirty("name")
        assert state.pristine

    def test_snapshots_are_not_mutated(self, contact_schema):
        state = FormState(contact_schema)
        before = state.values
        state.set_value("name", "Ada")
        assert before["name"] == ""

        before["email"] = "leak"
        assert state.get("email") == ""

    def test_replace_values(self, contact_schema):
        state = FormState(contact_schema)
        updated = state.values
        updated["phone"] = "(555)"
        state.replace_values(updated)
        assert state.dirty["phone"] is True
        assert state.dirty["name"] is False

    def test_touched(self, contact_schema):
        state = FormState(contact_schema)
        state.mark_touched("email")
        assert state.is_touched("email")
        state.mark_touched("email", False)
        assert not state.is_touched("email")

    def test_set_initial_values(self, contact_schema):
        state = FormState(contact_schema)
        state.set_value("name", "Ada")
        state.set_initial_values(state.values)
        assert state.pristine
        state.reset()
        assert state.get("name") == "Ada"

    def test_reset(self, contact_schema):
        state = FormState(contact_schema)
        state.set_value("name", "Ada")
        state.mark_touched("name")
        state.reset()
        assert state.get("name") == ""
        assert not state.is_touched("name")
        assert state.pristine
