"""Flatten persistents into the records returned by the webservice."""

from __future__ import annotations

from typing import Any, ClassVar, Dict, Optional, Type

from .errors import ProgrammingError
from .models import Competency, CompetencyFramework
from .persistent import Persistent
from .validation import ParamType, validate_param


class PersistentExporter:
    """Export ``to_record()`` plus the values declared in ``OTHER_PROPERTIES``."""

    PERSISTENT_CLASS: ClassVar[Optional[Type[Persistent]]] = None
    OTHER_PROPERTIES: ClassVar[Dict[str, ParamType]] = {}

    def __init__(self, persistent: Persistent) -> None:
        expected = self.PERSISTENT_CLASS
        if expected is None or not isinstance(persistent, expected):
            raise ProgrammingError(f"{type(self).__name__} cannot export {type(persistent).__name__}.")
        self.persistent = persistent

    def get_other_values(self) -> Dict[str, Any]:
        return {}

    def export(self) -> Dict[str, Any]:
        data = self.persistent.to_record()
        other = self.get_other_values()
        missing = set(self.OTHER_PROPERTIES) - set(other)
        if missing:
            raise ProgrammingError(f"Missing exported values: {', '.join(sorted(missing))}")
        for name, param_type in self.OTHER_PROPERTIES.items():
            data[name] = validate_param(other[name], param_type)
        return data


class CompetencyFrameworkExporter(PersistentExporter):

    PERSISTENT_CLASS = CompetencyFramework
    OTHER_PROPERTIES = {"competenciescount": ParamType.INT}

    def get_other_values(self) -> Dict[str, Any]:
        filters = {"competencyframeworkid": self.persistent.get("id")}
        return {"competenciescount": Competency.count_records(self.persistent.store, filters)}


__all__ = ["CompetencyFrameworkExporter", "PersistentExporter"]
