"""Base class for learning plans objects saved to the record store.

Subclasses declare their table and their properties::

    class Widget(Persistent):
        TABLE = "widget"

        @classmethod
        def define_properties(cls):
            return {
                "name": {"type": ParamType.TEXT},                 # required
                "colour": {"type": ParamType.ALPHANUMEXT, "default": "red"},
                "size": {"type": ParamType.INT, "default": None, "null": NULL_ALLOWED},
                "kind": {"type": ParamType.INT, "default": 1, "choices": [1, 2]},
            }

        def validate_name(self, value):
            if value == "forbidden":
                return ErrorMessage("invalidname", "tool_widget")
            return True

Every schema also carries ``id``, ``timecreated``, ``timemodified`` and
``usermodified``. All reads and writes go through :meth:`Persistent.get` and
:meth:`Persistent.set`; helper accessors defined on subclasses are never used
by :meth:`Persistent.to_record` or :meth:`Persistent.from_record`.
"""

from __future__ import annotations

import logging
import time
from types import MappingProxyType
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import ValidationError

from .config import get_settings
from .errors import (
    InvalidPersistentError,
    NotPersistedError,
    ProgrammingError,
    SchemaDefinitionError,
    UnknownPropertyError,
)
from .store import Record, RecordStore
from .validation import (
    INVALID_DATA_MESSAGE,
    REQUIRED_MESSAGE,
    ErrorMessage,
    InvalidParameterError,
    ParamType,
    PropertyDefinition,
    validate_param,
)

logger = logging.getLogger(__name__)

P = TypeVar("P", bound="Persistent")

PropertyDeclaration = Union[PropertyDefinition, Mapping[str, Any]]

# Names clashing with the framework's own accessors.
RESERVED_PROPERTIES = frozenset(
    {"errors", "records", "records_select", "property_default_value", "property_error_message"}
)

_STANDARD_PROPERTIES: Dict[str, Dict[str, Any]] = {
    "id": {"default": 0, "type": ParamType.INT},
    "timecreated": {"default": 0, "type": ParamType.INT},
    "timemodified": {"default": 0, "type": ParamType.INT},
    "usermodified": {"default": 0, "type": ParamType.INT},
}

_definitions: Dict[type, Mapping[str, PropertyDefinition]] = {}


def _now() -> int:
    return int(time.time())


def _differs(current: Any, new: Any) -> bool:
    return type(current) is not type(new) or current != new


class Persistent:
    """Active-record style base class with declarative, lazily validated properties."""

    TABLE: ClassVar[Optional[str]] = None

    def __init__(
        self,
        store: RecordStore,
        record_id: int = 0,
        record: Optional[Mapping[str, Any]] = None,
        *,
        user_id: int = 0,
    ) -> None:
        """Create an instance bound to ``store``.

        ``record_id`` loads an existing row; ``record`` is then applied with
        :meth:`from_record`. ``user_id`` identifies the acting user stamped into
        ``usermodified`` on create and update.
        """
        self._store = store
        self._user_id = user_id
        self._data: Dict[str, Any] = {}
        self._errors: Dict[str, ErrorMessage] = {}
        self._validated = False

        if record_id > 0:
            self.set("id", record_id)
            self.read()
        if record:
            self.from_record(record)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self._data.get('id', 0)}>"

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def user_id(self) -> int:
        return self._user_id

    @property
    def validated(self) -> bool:
        return self._validated

    # Schema

    @classmethod
    def define_properties(cls) -> Dict[str, PropertyDeclaration]:
        """Return the subclass properties, keyed by name.

        Each declaration accepts ``type`` (mandatory), ``default`` (its presence
        makes the property optional), ``null`` (``NULL_ALLOWED`` or
        ``NULL_NOT_ALLOWED``), ``choices`` and ``message`` (an ``ErrorMessage``
        reported instead of the generic invalid data message).
        """
        return {}

    @classmethod
    def properties_definition(cls) -> Mapping[str, PropertyDefinition]:
        """Return the full schema of this class, computed once per class."""
        cached = _definitions.get(cls)
        if cached is not None:
            return cached

        declared: Dict[str, PropertyDeclaration] = dict(cls.define_properties())
        declared.update(_STANDARD_PROPERTIES)

        strict = get_settings().debug_developer
        definitions: Dict[str, PropertyDefinition] = {}
        for name, declaration in declared.items():
            definition = cls._build_definition(name, declaration)
            if strict:
                cls._check_definition(name, definition)
            definitions[name] = definition

        frozen = MappingProxyType(definitions)
        _definitions[cls] = frozen
        return frozen

    @staticmethod
    def _build_definition(name: str, declaration: PropertyDeclaration) -> PropertyDefinition:
        if isinstance(declaration, PropertyDefinition):
            return declaration
        if not isinstance(declaration, Mapping):
            raise SchemaDefinitionError(f"Invalid definition for: {name}")
        try:
            return PropertyDefinition.model_validate(dict(declaration))
        except ValidationError as exc:
            raise SchemaDefinitionError(f"Invalid definition for {name}: {exc}") from exc

    @staticmethod
    def _check_definition(name: str, definition: PropertyDefinition) -> None:
        if not definition.has_type:
            raise SchemaDefinitionError(f"Missing type for: {name}")
        if definition.message is not None and not isinstance(definition.message, ErrorMessage):
            raise SchemaDefinitionError(f"Invalid error message for: {name}")
        if name in RESERVED_PROPERTIES:
            raise SchemaDefinitionError(f"This property cannot be defined: {name}")

    @classmethod
    def has_property(cls, name: str) -> bool:
        return name in cls.properties_definition()

    @classmethod
    def is_property_required(cls, name: str) -> bool:
        """A property with a declared default, even ``None``, is not required."""
        return not cls.properties_definition()[name].has_default

    @classmethod
    def get_property_default_value(cls, name: str) -> Any:
        return cls.properties_definition()[name].default

    @classmethod
    def get_property_error_message(cls, name: str) -> ErrorMessage:
        message = cls.properties_definition()[name].message
        return message if message is not None else INVALID_DATA_MESSAGE

    @classmethod
    def _table_name(cls) -> str:
        if not cls.TABLE:
            raise ProgrammingError(f"{cls.__name__} does not declare a TABLE.")
        return cls.TABLE

    # Data access

    def get(self, name: str) -> Any:
        """Return a property value, materialising its default on first read."""
        if not self.has_property(name):
            raise UnknownPropertyError(name)
        if name not in self._data and not self.is_property_required(name):
            self.set(name, self.get_property_default_value(name))
        return self._data.get(name)

    def set(self, name: str, value: Any) -> None:
        """Store a property value; a changed value invalidates the last validation."""
        if not self.has_property(name):
            raise UnknownPropertyError(name)
        if name not in self._data or _differs(self._data[name], value):
            self._validated = False
        self._data[name] = value

    def from_record(self: P, record: Mapping[str, Any]) -> P:
        """Populate the instance from a stored record, bypassing custom setters."""
        for name, value in record.items():
            self.set(name, value)
        return self

    def to_record(self) -> Record:
        """Return every declared property as stored, bypassing custom getters."""
        return {name: self.get(name) for name in self.properties_definition()}

    def _persisted_id(self) -> int:
        return int(self.get("id") or 0)

    def get_stored_record(self) -> Optional[Record]:
        """Return the row as currently stored, or ``None`` for an unsaved instance.

        Lets validators and hooks compare pending changes with the stored state.
        """
        record_id = self._persisted_id()
        if record_id <= 0:
            return None
        found = self._store.get_by_filter(self._table_name(), {"id": record_id}, limit=1)
        return found[0] if found else None

    # Validation

    def before_validate(self) -> None:
        """Hook run once per validation pass, before any property is checked.

        Useful to set internal properties that need validating. It cannot
        affect the results in any other way.
        """

    def validate(self) -> Union[bool, Dict[str, ErrorMessage]]:
        """Validate every property; return ``True`` or the property -> error map.

        A custom check is any method named ``validate_<property>``. It receives
        the stored value and returns ``True`` or an :class:`ErrorMessage`.
        The result is cached until a property value changes.
        """
        if not self._validated:
            self.before_validate()

            errors: Dict[str, ErrorMessage] = {}
            for name, definition in self.properties_definition().items():
                value = self.get(name)

                if value is None and self.is_property_required(name):
                    errors[name] = REQUIRED_MESSAGE
                    continue

                checked = 0 if definition.type is ParamType.BOOL and value is False else value
                try:
                    validate_param(checked, definition.type, definition.null)
                except InvalidParameterError:
                    errors[name] = self.get_property_error_message(name)
                    continue

                if definition.choices is not None and value not in definition.choices:
                    errors[name] = self.get_property_error_message(name)
                    continue

                validator = getattr(self, f"validate_{name}", None)
                if validator is not None:
                    outcome = validator(value)
                    if outcome is not True:
                        if not isinstance(outcome, ErrorMessage):
                            raise ProgrammingError(f"Unexpected error message from validate_{name}.")
                        errors[name] = outcome

            self._validated = True
            self._errors = errors

        return True if not self._errors else dict(self._errors)

    def is_valid(self) -> bool:
        return self.validate() is True

    def get_errors(self) -> Dict[str, ErrorMessage]:
        self.validate()
        return dict(self._errors)

    # Lifecycle hooks. Data set in the before_* hooks is not validated again.

    def before_create(self) -> None:
        pass

    def after_create(self) -> None:
        pass

    def before_update(self) -> None:
        pass

    def after_update(self, result: bool) -> None:
        pass

    def before_delete(self) -> None:
        pass

    def after_delete(self, result: bool) -> None:
        pass

    # CRUD

    def read(self: P) -> P:
        """Load the data from the store; stored data is considered valid."""
        record_id = self._persisted_id()
        if record_id <= 0:
            raise NotPersistedError("id is required to load")
        record = self._store.get_by_id(self._table_name(), record_id)
        self.from_record(record)
        self._validated = True
        return self

    def create(self: P) -> P:
        """Insert a new record and capture its id."""
        if self._persisted_id() > 0:
            raise ProgrammingError("Cannot create a record that is already persisted.")
        if not self.is_valid():
            raise InvalidPersistentError(self._errors)

        self.before_create()

        # Framework-owned values, set past validation.
        now = _now()
        self.set("id", 0)
        self.set("timecreated", now)
        self.set("timemodified", now)
        self.set("usermodified", self._user_id)

        record_id = self._store.insert(self._table_name(), self.to_record())
        self.set("id", record_id)
        self._validated = True
        logger.debug("Created %s id=%s", self._table_name(), record_id)

        self.after_create()
        return self

    def update(self) -> bool:
        """Write the current data over the existing record; ``timecreated`` is kept."""
        record_id = self._persisted_id()
        if record_id <= 0:
            raise NotPersistedError("id is required to update")
        if not self.is_valid():
            raise InvalidPersistentError(self._errors)

        self.before_update()

        self.set("timemodified", _now())
        self.set("usermodified", self._user_id)

        record = self.to_record()
        record.pop("timecreated", None)
        result = self._store.update_by_id(self._table_name(), record)
        self._validated = True
        logger.debug("Updated %s id=%s result=%s", self._table_name(), record_id, result)

        self.after_update(result)
        return result

    def delete(self) -> bool:
        """Delete the record; on success the instance becomes transient again."""
        record_id = self._persisted_id()
        if record_id <= 0:
            raise NotPersistedError("id is required to delete")

        self.before_delete()
        result = self._store.delete_by_id(self._table_name(), record_id)
        self.after_delete(result)

        if result:
            self.set("id", 0)
        logger.debug("Deleted %s id=%s result=%s", self._table_name(), record_id, result)
        return result

    # Bulk queries

    @classmethod
    def get_records(
        cls: Type[P],
        store: RecordStore,
        filters: Optional[Mapping[str, Any]] = None,
        sort: str = "",
        order: str = "ASC",
        skip: int = 0,
        limit: int = 0,
        *,
        user_id: int = 0,
    ) -> List[P]:
        orderby = f"{sort} {order}" if sort else ""
        records = store.get_by_filter(cls._table_name(), filters or {}, orderby, "*", skip, limit)
        return [cls(store, 0, record, user_id=user_id) for record in records]

    @classmethod
    def get_records_select(
        cls: Type[P],
        store: RecordStore,
        select: str,
        params: Optional[Mapping[str, Any]] = None,
        sort: str = "",
        fields: str = "*",
        limitfrom: int = 0,
        limitnum: int = 0,
        *,
        user_id: int = 0,
    ) -> List[P]:
        records = store.get_by_predicate(cls._table_name(), select, params or {}, sort, fields, limitfrom, limitnum)
        return [cls(store, 0, record, user_id=user_id) for record in records]

    @classmethod
    def count_records(cls, store: RecordStore, filters: Optional[Mapping[str, Any]] = None) -> int:
        return store.count_by_filter(cls._table_name(), filters or {})

    @classmethod
    def count_records_select(cls, store: RecordStore, select: str, params: Optional[Mapping[str, Any]] = None) -> int:
        return store.count_by_predicate(cls._table_name(), select, params or {})

    @classmethod
    def record_exists(cls, store: RecordStore, record_id: int) -> bool:
        return store.exists_by_id(cls._table_name(), record_id)


__all__ = ["Persistent", "RESERVED_PROPERTIES"]
