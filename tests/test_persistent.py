"""Behaviour of the Persistent base class, exercised through small test classes."""

from __future__ import annotations

from typing import Any, List

import pytest

from learning_plans import persistent
from learning_plans.config import get_settings
from learning_plans.errors import (
    InvalidPersistentError,
    NotPersistedError,
    ProgrammingError,
    RecordNotFoundError,
    SchemaDefinitionError,
    UnknownPropertyError,
)
from learning_plans.models import (
    Competency,
    CompetencyFramework,
    Plan,
    PlanCompetency,
    Scale,
    Template,
    UserCompetency,
    UserCompetencyCourse,
)
from learning_plans.persistent import Persistent
from learning_plans.store import SQLAlchemyRecordStore
from learning_plans.validation import (
    FORMAT_HTML,
    INVALID_DATA_MESSAGE,
    REQUIRED_MESSAGE,
    TEXT_FORMATS,
    ErrorMessage,
    ParamType,
)

FORBIDDEN_MESSAGE = ErrorMessage("forbiddenname", "tool_lp")


class Note(Persistent):
    TABLE = "lp_template"

    @classmethod
    def define_properties(cls):
        return {
            "shortname": {"type": ParamType.TEXT},
            "idnumber": {"type": ParamType.TEXT, "default": ""},
            "description": {"type": ParamType.TEXT, "default": ""},
            "descriptionformat": {"type": ParamType.INT, "default": FORMAT_HTML, "choices": TEXT_FORMATS},
            "duedate": {"type": ParamType.INT, "default": 0, "message": ErrorMessage("invalidduedate", "tool_lp")},
            "visible": {"type": ParamType.BOOL, "default": True},
            "contextid": {"type": ParamType.INT, "default": 1},
        }

    def validate_shortname(self, value):
        if value == "forbidden":
            return FORBIDDEN_MESSAGE
        return True


class ColouredNote(Note):
    @classmethod
    def define_properties(cls):
        properties = super().define_properties()
        properties["colour"] = {"type": ParamType.ALPHANUMEXT, "default": "blue"}
        return properties


class HookedNote(Note):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.calls: List[str] = []
        super().__init__(*args, **kwargs)

    def before_validate(self) -> None:
        self.calls.append("before_validate")

    def before_create(self) -> None:
        self.calls.append("before_create")

    def after_create(self) -> None:
        self.calls.append("after_create")

    def before_update(self) -> None:
        self.calls.append("before_update")

    def after_update(self, result: bool) -> None:
        self.calls.append(f"after_update:{result}")

    def before_delete(self) -> None:
        self.calls.append("before_delete")

    def after_delete(self, result: bool) -> None:
        self.calls.append(f"after_delete:{result}")


class SloppyNote(Note):
    def validate_description(self, value):
        return "not an error message"


@pytest.fixture()
def developer_debug(monkeypatch):
    monkeypatch.setenv("LP_DEBUG_DEVELOPER", "1")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def frozen_clock(monkeypatch):
    clock = {"now": 1000}
    monkeypatch.setattr(persistent, "_now", lambda: clock["now"])
    return clock


# Schema


@pytest.mark.parametrize(
    "entity_class",
    [Scale, CompetencyFramework, Competency, Template, Plan, PlanCompetency, UserCompetency, UserCompetencyCourse, Note],
)
def test_every_schema_is_typed_and_carries_the_standard_properties(entity_class) -> None:
    definitions = entity_class.properties_definition()

    for name in ("id", "timecreated", "timemodified", "usermodified"):
        assert name in definitions
        assert definitions[name].type is ParamType.INT
        assert definitions[name].default == 0
    assert all(definition.has_type for definition in definitions.values())


def test_schema_is_cached_per_class() -> None:
    assert Note.properties_definition() is Note.properties_definition()
    assert "colour" in ColouredNote.properties_definition()
    assert "colour" not in Note.properties_definition()


def test_schema_is_read_only() -> None:
    with pytest.raises(TypeError):
        Note.properties_definition()["extra"] = None  # type: ignore[index]


def test_property_helpers() -> None:
    assert Note.has_property("shortname")
    assert not Note.has_property("colour")
    assert Note.is_property_required("shortname")
    assert not Note.is_property_required("description")
    assert Note.get_property_default_value("descriptionformat") == FORMAT_HTML
    assert Note.get_property_error_message("duedate") == ErrorMessage("invalidduedate", "tool_lp")
    assert Note.get_property_error_message("shortname") == INVALID_DATA_MESSAGE


def test_strict_mode_requires_a_type(developer_debug) -> None:
    class Untyped(Persistent):
        TABLE = "lp_template"

        @classmethod
        def define_properties(cls):
            return {"shortname": {"default": ""}}

    with pytest.raises(SchemaDefinitionError, match="Missing type"):
        Untyped.properties_definition()


def test_strict_mode_requires_structured_messages(developer_debug) -> None:
    class PlainMessage(Persistent):
        TABLE = "lp_template"

        @classmethod
        def define_properties(cls):
            return {"shortname": {"type": ParamType.TEXT, "message": "Bad name"}}

    with pytest.raises(SchemaDefinitionError, match="Invalid error message"):
        PlainMessage.properties_definition()


@pytest.mark.parametrize("reserved", ["errors", "records", "records_select"])
def test_strict_mode_rejects_reserved_names(developer_debug, reserved) -> None:
    class Reserved(Persistent):
        TABLE = "lp_template"

        @classmethod
        def define_properties(cls):
            return {reserved: {"type": ParamType.RAW}}

    with pytest.raises(SchemaDefinitionError, match="cannot be defined"):
        Reserved.properties_definition()


def test_missing_type_validates_as_raw_outside_strict_mode(store: SQLAlchemyRecordStore) -> None:
    class Loose(Persistent):
        TABLE = "lp_template"

        @classmethod
        def define_properties(cls):
            return {"shortname": {}}

    assert Loose(store, 0, {"shortname": "<b>kept</b>"}).is_valid()


def test_malformed_definition_is_rejected() -> None:
    class Broken(Persistent):
        TABLE = "lp_template"

        @classmethod
        def define_properties(cls):
            return {"shortname": {"type": "colour"}}

    with pytest.raises(SchemaDefinitionError):
        Broken.properties_definition()


# get / set


def test_unknown_properties_cannot_be_read_or_written(store: SQLAlchemyRecordStore) -> None:
    note = Note(store)
    with pytest.raises(UnknownPropertyError):
        note.get("colour")
    with pytest.raises(UnknownPropertyError):
        note.set("colour", "red")
    with pytest.raises(UnknownPropertyError):
        Note(store, 0, {"colour": "red"})


def test_required_property_without_value_reads_as_none(store: SQLAlchemyRecordStore) -> None:
    assert Note(store).get("shortname") is None


def test_first_read_materialises_the_default_and_invalidates(store: SQLAlchemyRecordStore) -> None:
    created = Note(store, 0, {"shortname": "Lazy"}).create()
    note = ColouredNote(store, created.get("id"))
    assert note.validated

    assert note.get("colour") == "blue"
    assert not note.validated
    assert note.to_record()["colour"] == "blue"


def test_set_only_invalidates_on_change(store: SQLAlchemyRecordStore) -> None:
    note = Note(store, 0, {"shortname": "Stable"})
    assert note.validate() is True

    note.set("shortname", "Stable")
    assert note.validated

    note.set("shortname", "Changed")
    assert not note.validated


@pytest.mark.parametrize(("stored", "new"), [(1, True), (0, "0"), (1, 1.0)])
def test_dirty_checking_is_type_strict(store: SQLAlchemyRecordStore, stored, new) -> None:
    note = Note(store, 0, {"shortname": "Typed", "duedate": stored})
    note.validate()

    note.set("duedate", new)

    assert not note.validated


def test_record_round_trip(store: SQLAlchemyRecordStore) -> None:
    note = Note(store, 0, {"shortname": "Round", "description": "trip", "duedate": 5, "visible": False})

    copy = Note(store).from_record(note.to_record())

    assert copy.to_record() == note.to_record()


# Validation


def test_missing_required_property_reports_every_error(store: SQLAlchemyRecordStore) -> None:
    note = Note(store, 0, {"descriptionformat": 99, "duedate": "soon"})

    errors = note.validate()

    assert errors == {
        "shortname": REQUIRED_MESSAGE,
        "descriptionformat": INVALID_DATA_MESSAGE,
        "duedate": ErrorMessage("invalidduedate", "tool_lp"),
    }
    assert note.validated
    assert not note.is_valid()
    assert note.get_errors() == errors


def test_custom_validator_error_is_recorded(store: SQLAlchemyRecordStore) -> None:
    note = Note(store, 0, {"shortname": "forbidden"})
    assert note.get_errors() == {"shortname": FORBIDDEN_MESSAGE}


def test_custom_validator_must_return_true_or_an_error_message(store: SQLAlchemyRecordStore) -> None:
    with pytest.raises(ProgrammingError):
        SloppyNote(store, 0, {"shortname": "Sloppy"}).validate()


def test_false_is_accepted_for_bool_properties(store: SQLAlchemyRecordStore) -> None:
    assert Note(store, 0, {"shortname": "Hidden", "visible": False}).is_valid()


def test_validation_result_is_cached_until_a_change(store: SQLAlchemyRecordStore) -> None:
    note = HookedNote(store, 0, {"shortname": "Cached"})

    note.validate()
    note.validate()
    assert note.calls.count("before_validate") == 1

    note.set("description", "changed")
    note.validate()
    assert note.calls.count("before_validate") == 2


# CRUD


def test_create_stamps_framework_fields_and_stores_the_record(
    store: SQLAlchemyRecordStore, frozen_clock
) -> None:
    note = Note(store, 0, {"shortname": "Stamped"}, user_id=7).create()

    assert note.get("id") > 0
    assert note.validated
    stored = store.get_by_id("lp_template", note.get("id"))
    assert stored["timecreated"] == 1000
    assert stored["timemodified"] == 1000
    assert stored["usermodified"] == 7
    assert stored == note.to_record()


def test_invalid_create_raises_without_inserting(store: SQLAlchemyRecordStore) -> None:
    with pytest.raises(InvalidPersistentError) as excinfo:
        Note(store).create()

    assert excinfo.value.errors == {"shortname": REQUIRED_MESSAGE}
    assert Note.count_records(store) == 0


def test_update_keeps_timecreated(store: SQLAlchemyRecordStore, frozen_clock) -> None:
    note = Note(store, 0, {"shortname": "Before"}, user_id=3).create()
    frozen_clock["now"] = 2000

    editor = Note(store, note.get("id"), user_id=4)
    editor.set("shortname", "After")
    editor.set("timecreated", 5)
    assert editor.update() is True

    stored = store.get_by_id("lp_template", note.get("id"))
    assert stored["shortname"] == "After"
    assert stored["timecreated"] == 1000
    assert stored["timemodified"] == 2000
    assert stored["usermodified"] == 4


def test_invalid_update_raises(store: SQLAlchemyRecordStore) -> None:
    note = Note(store, 0, {"shortname": "Valid"}).create()
    note.set("shortname", "forbidden")

    with pytest.raises(InvalidPersistentError) as excinfo:
        note.update()
    assert excinfo.value.errors == {"shortname": FORBIDDEN_MESSAGE}
    assert store.get_by_id("lp_template", note.get("id"))["shortname"] == "Valid"


def test_transient_entities_cannot_be_read_updated_or_deleted(store: SQLAlchemyRecordStore) -> None:
    note = Note(store, 0, {"shortname": "Transient"})
    with pytest.raises(NotPersistedError):
        note.update()
    with pytest.raises(NotPersistedError):
        note.delete()
    with pytest.raises(NotPersistedError):
        note.read()


def test_persisted_entities_cannot_be_created_again(store: SQLAlchemyRecordStore) -> None:
    note = Note(store, 0, {"shortname": "Once"}).create()
    with pytest.raises(ProgrammingError):
        note.create()
    assert Note.count_records(store) == 1


def test_delete_returns_the_entity_to_transient(store: SQLAlchemyRecordStore, frozen_clock) -> None:
    note = Note(store, 0, {"shortname": "Gone"}).create()
    record_id = note.get("id")

    assert note.delete() is True

    assert note.get("id") == 0
    assert note.get("timecreated") == 1000
    assert not Note.record_exists(store, record_id)

    note.create()
    assert note.get("id") > 0
    assert Note.record_exists(store, note.get("id"))


def test_loading_an_unknown_id_raises(store: SQLAlchemyRecordStore) -> None:
    with pytest.raises(RecordNotFoundError):
        Note(store, 404)


def test_constructor_applies_the_record_over_the_loaded_data(store: SQLAlchemyRecordStore) -> None:
    note = Note(store, 0, {"shortname": "Stored"}).create()

    edited = Note(store, note.get("id"), {"shortname": "Edited"})

    assert edited.get("shortname") == "Edited"
    assert edited.get("id") == note.get("id")
    assert not edited.validated


def test_hooks_run_around_each_operation(store: SQLAlchemyRecordStore) -> None:
    note = HookedNote(store, 0, {"shortname": "Hooked"})

    note.create()
    note.set("description", "updated")
    note.update()
    note.delete()

    assert note.calls == [
        "before_validate",
        "before_create",
        "after_create",
        "before_validate",
        "before_update",
        "after_update:True",
        "before_delete",
        "after_delete:True",
    ]


# Bulk queries


def test_bulk_queries_hydrate_independent_instances(store: SQLAlchemyRecordStore) -> None:
    for name, duedate in [("b", 0), ("a", 0), ("c", 9)]:
        Note(store, 0, {"shortname": name, "duedate": duedate}, user_id=2).create()

    notes = Note.get_records(store, {"duedate": 0}, sort="shortname", order="DESC")
    assert [note.get("shortname") for note in notes] == ["b", "a"]
    assert all(note.user_id == 0 for note in notes)

    notes[0].set("shortname", "changed")
    assert Note.get_records(store, {"duedate": 0}, sort="shortname", order="DESC")[0].get("shortname") == "b"

    assert [note.get("shortname") for note in Note.get_records(store, sort="shortname", skip=1, limit=1)] == ["b"]

    selected = Note.get_records_select(store, "duedate > :due", {"due": 1}, fields="id, shortname", user_id=5)
    assert [note.get("shortname") for note in selected] == ["c"]
    assert selected[0].user_id == 5

    assert Note.count_records(store) == 3
    assert Note.count_records(store, {"duedate": 9}) == 1
    assert Note.count_records_select(store, "shortname IN :names", {"names": ["a", "c"]}) == 2
    assert Note.record_exists(store, selected[0].get("id"))
    assert not Note.record_exists(store, 12345)


def test_entity_without_table_cannot_query(store: SQLAlchemyRecordStore) -> None:
    class Tableless(Persistent):
        pass

    with pytest.raises(ProgrammingError):
        Tableless.count_records(store)
