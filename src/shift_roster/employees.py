"""Employee Directory: resolves survey names and aliases to employee handles."""

from typing import Dict, List, Optional

from .data_manager import DataManager, Employee
from .errors import UnknownEmployeeError


class EmployeeDirectory:
    """Lookup of active employees by handle (name) or alias"""

    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager
        self._by_alias_and_handle: Optional[Dict[str, Employee]] = None

    def all(self) -> List[Employee]:
        return self.data_manager.get_employees()

    def _lookup(self) -> Dict[str, Employee]:
        if self._by_alias_and_handle is None:
            lookup: Dict[str, Employee] = {}
            for emp in self.all():
                lookup[emp.name] = emp
                if emp.alias:
                    lookup[emp.alias] = emp
            self._by_alias_and_handle = lookup
        return self._by_alias_and_handle

    def refresh(self) -> None:
        """Drop the cached lookup after the employee list changed"""
        self._by_alias_and_handle = None

    def resolve(self, name_or_alias: str) -> str:
        """Handle of the employee known by the given name or alias"""
        emp = self._lookup().get(str(name_or_alias).strip())
        if emp is None:
            raise UnknownEmployeeError(str(name_or_alias))
        return emp.name

    def is_known_handle(self, name: str) -> bool:
        emp = self._lookup().get(name)
        return emp is not None and emp.name == name
