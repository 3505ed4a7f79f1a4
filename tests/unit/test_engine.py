"""Tests for the request-time engine facade."""

import pytest

from form_engine.engine import (
    active_fields,
    compile_form,
    evaluate_form,
    is_ready,
    resolve_canonical_values,
    visible_fields,
)
from form_engine.errors import UnknownOperation, ValidationError
from form_engine.runtime.schema_loader import load_schema
from form_engine.schemas.compile_result import CompileStatus
from form_engine.schemas.violations import ViolationCode


class TestVisibility:
    """Tests for visible_fields."""

    def test_unconditional_fields_always_visible(self, mail_schema):
        assert {"operation", "credential", "limit"} <= visible_fields(mail_schema, {})

    def test_branch_fields_follow_discriminator(self, mail_schema):
        visible = visible_fields(mail_schema, {"operation": "read"})
        assert {"folder", "manualFolder"} <= visible
        assert "id" not in visible
        assert "mediaIds" not in visible

    def test_visible_but_unready_field_stays_visible(self, mail_schema):
        assert "folder" in visible_fields(mail_schema, {"operation": "read"})
        assert not is_ready(mail_schema, "folder", {"operation": "read"})


class TestReadiness:
    """Tests for readiness and the active field set."""

    def test_ready_once_dependency_set(self, mail_schema):
        assert is_ready(mail_schema, "folder", {"operation": "read", "credential": "tok"})

    def test_unknown_field(self, mail_schema):
        with pytest.raises(KeyError):
            is_ready(mail_schema, "ghost", {})

    def test_active_excludes_unready(self, mail_schema):
        active = active_fields(mail_schema, {"operation": "read"})
        assert "manualFolder" in active
        assert "folder" not in active

    def test_unready_chain_propagates(self):
        schema = load_schema({
            "blockType": "chain",
            "fields": [
                {"id": "a"},
                {"id": "b", "dependsOn": ["a"]},
                {"id": "c", "dependsOn": ["b"]},
            ],
        })
        state = evaluate_form(schema, {"b": "x", "c": "y"})
        assert state.active == frozenset({"a"})
        assert set(state.not_ready) == {"b", "c"}
        assert state.canonical_values == {}

    def test_hidden_dependency_does_not_supply_value(self):
        schema = load_schema({
            "blockType": "hidden_dep",
            "fields": [
                {"id": "mode"},
                {"id": "token", "condition": {"field": "mode", "value": "oauth"}},
                {"id": "account", "dependsOn": ["token"]},
            ],
        })
        assert not is_ready(schema, "account", {"mode": "basic", "token": "t"})
        assert is_ready(schema, "account", {"mode": "oauth", "token": "t"})


class TestCanonicalValues:
    """Tests for resolve_canonical_values."""

    def test_manual_entry_fills_blank_picker(self, mail_schema):
        values = {"operation": "read", "folder": "", "manualFolder": "Archive"}
        assert resolve_canonical_values(mail_schema, values)["folder"] == "Archive"

    def test_hidden_fields_do_not_contribute(self, mail_schema):
        values = {"operation": "send", "manualFolder": "Archive", "id": "m-1"}
        resolved = resolve_canonical_values(mail_schema, values)
        assert "folder" not in resolved
        assert "id" not in resolved

    def test_unready_picker_does_not_contribute(self, mail_schema):
        values = {"operation": "read", "folder": "INBOX", "manualFolder": "Archive"}
        assert resolve_canonical_values(mail_schema, values)["folder"] == "Archive"

    def test_ready_picker_wins(self, mail_schema):
        values = {"operation": "read", "credential": "tok", "folder": "INBOX", "manualFolder": "Archive"}
        assert resolve_canonical_values(mail_schema, values)["folder"] == "INBOX"


class TestCompileForm:
    """End-to-end compilation."""

    def test_default_fills_folder(self, mail_schema):
        result = compile_form(mail_schema, {"operation": "read"})
        assert result.status == CompileStatus.VALID
        assert result.action_id == "read"
        assert result.payload == {"folder": "INBOX"}

    def test_manual_folder_compiled(self, mail_schema):
        values = {"operation": "read", "folder": "", "manualFolder": "Archive", "limit": "5"}
        result = compile_form(mail_schema, values)
        assert result.payload == {"limit": 5, "folder": "Archive"}

    def test_unknown_operation(self, mail_schema):
        result = compile_form(mail_schema, {"operation": "archive"})
        assert not result.ok
        assert result.action_id is None
        assert isinstance(result.error, UnknownOperation)
        assert result.error.value == "archive"
        assert result.error.messages == ["Unknown operation: 'archive'"]

    def test_missing_operation_is_unknown(self, mail_schema):
        result = compile_form(mail_schema, {})
        assert isinstance(result.error, UnknownOperation)

    def test_missing_required_aggregated(self, mail_schema):
        result = compile_form(mail_schema, {"operation": "delete"})
        assert result.action_id == "B"
        assert isinstance(result.error, ValidationError)
        assert len(result.error.messages) == 2

    def test_delete_compiles_typed_values(self, mail_schema):
        result = compile_form(mail_schema, {"operation": "delete", "id": " m-1 ", "confirm": "true"})
        assert result.payload == {"id": " m-1 ", "confirm": True}

    def test_array_value_split(self, mail_schema):
        result = compile_form(mail_schema, {"operation": "send", "mediaIds": "a, b ,,c"})
        assert result.payload == {"mediaIds": ["a", "b", "c"]}

    def test_payload_keys_are_declared_keys(self, mail_schema):
        values = {
            "operation": "send",
            "credential": "tok",
            "mediaIds": "a",
            "limit": "3",
            "manualFolder": "Archive",
            "id": "m-1",
        }
        result = compile_form(mail_schema, values)
        declared = set(mail_schema.requirements["A"].declared_keys)
        assert set(result.payload) == declared

    def test_values_not_modified(self, mail_schema):
        values = {"operation": " read ", "folder": "", "manualFolder": "Archive", "limit": "5"}
        snapshot = dict(values)
        compile_form(mail_schema, values)
        assert values == snapshot

    def test_repeatable(self, mail_schema):
        values = {"operation": "read", "manualFolder": "Archive"}
        assert compile_form(mail_schema, values) == compile_form(mail_schema, values)

    @pytest.mark.parametrize(
        "forward",
        [
            {"operation": "read", "credential": "tok", "folder": "INBOX", "manualFolder": "Archive"},
            {"operation": "read", "credential": "tok", "folder": "", "manualFolder": "Archive", "limit": "5"},
            {"operation": "delete", "id": "m-1"},
        ],
    )
    def test_independent_of_insertion_order(self, mail_schema, forward):
        reverse = dict(reversed(list(forward.items())))
        assert resolve_canonical_values(mail_schema, forward) == resolve_canonical_values(mail_schema, reverse)
        assert compile_form(mail_schema, forward).to_dict() == compile_form(mail_schema, reverse).to_dict()

    def test_single_action_block(self, feed_schema):
        result = compile_form(feed_schema, {"limit": "25", "tags": ""})
        assert result.action_id == "feed"
        assert result.payload == {"limit": 25}

    def test_single_action_block_empty_limit(self, feed_schema):
        assert compile_form(feed_schema, {"limit": ""}).payload == {}

    def test_operation_via_canonical_value(self):
        schema = load_schema({
            "blockType": "picker_op",
            "fields": [
                {"id": "operation"},
                {"id": "manualOperation", "canonicalParamId": "operation", "mode": "advanced"},
            ],
            "operation": {"discriminatorField": "operation", "mapping": {"run": "do_run"}},
        })
        result = compile_form(schema, {"manualOperation": "run"})
        assert result.action_id == "do_run"
        assert result.payload == {}


class TestDependencyEscalation:
    """Required values missing because their field waits on a dependency."""

    def test_unready_required_reported_as_dependency(self, github_schema):
        values = {"operation": "create_issue", "title": "Bug", "repository": "acme/app"}
        result = compile_form(github_schema, values)

        by_key = {v.canonical_id: v for v in result.error.violations}
        assert by_key["repository"].code == ViolationCode.DEPENDENCY_NOT_READY
        assert by_key["credential"].code == ViolationCode.MISSING_REQUIRED
        assert len(result.error.violations) == 2

    def test_manual_entry_bypasses_dependency(self, github_schema):
        values = {"operation": "create_issue", "title": "Bug", "manualRepository": "acme/app"}
        result = compile_form(github_schema, values)
        (violation,) = result.error.violations
        assert violation.canonical_id == "credential"
        assert violation.code == ViolationCode.MISSING_REQUIRED


@pytest.fixture
def note_schema():
    """Single-action block whose fields carry the ``required`` flag."""
    return load_schema({
        "blockType": "note",
        "fields": [
            {"id": "kind"},
            {"id": "subject", "required": True},
            {"id": "manualSubject", "canonicalParamId": "subject", "mode": "advanced"},
            {
                "id": "url",
                "required": True,
                "condition": {"field": "kind", "value": "link"},
            },
        ],
    })


class TestRequiredFields:
    """Fields marked ``required`` must have a value while they are visible."""

    def test_blank_required_field_rejected(self, note_schema):
        result = compile_form(note_schema, {"subject": ""})
        assert result.action_id == "note"
        (violation,) = result.error.violations
        assert violation.code == ViolationCode.MISSING_REQUIRED
        assert violation.canonical_id == "subject"

    def test_group_member_satisfies_requirement(self, note_schema):
        assert compile_form(note_schema, {"subject": "", "manualSubject": "Hi"}).ok

    def test_hidden_required_field_not_enforced(self, note_schema):
        assert compile_form(note_schema, {"subject": "Hi", "kind": "text"}).ok

    def test_shown_required_field_enforced(self, note_schema):
        result = compile_form(note_schema, {"subject": "Hi", "kind": "link"})
        assert [v.canonical_id for v in result.error.violations] == ["url"]

    def test_state_lists_required_canonical_ids(self, note_schema):
        assert evaluate_form(note_schema, {}).required == ("subject",)
        assert evaluate_form(note_schema, {"kind": "link"}).required == ("subject", "url")

    def test_bundled_block_flags(self, gmail_schema):
        state = evaluate_form(gmail_schema, {"operation": "move"})
        assert state.required == ("operation", "credential")
