"""
Data Manager for the Shift Roster system

Handles JSON persistence of the roster data file: the assignment log, the
notes, the employee directory and application settings.
"""

import json
import logging
from datetime import datetime
from typing import Dict, List, Optional, Any
from dataclasses import dataclass
from pathlib import Path

from . import config


class DataManagerError(Exception):
    """Base exception for DataManager operations"""
    pass


class DataFileCorruptedError(DataManagerError):
    """Raised when the data file is corrupted"""
    pass


class DataFileNotFoundError(DataManagerError):
    """Raised when the data file is not found"""
    pass


class DataSaveError(DataManagerError):
    """Raised when saving data fails"""
    pass


class DataValidationError(DataManagerError):
    """Raised when data validation fails"""
    pass


@dataclass
class Employee:
    """Employee known to the roster, with an optional alias used in surveys"""
    id: int
    name: str
    alias: str = ""
    is_active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "alias": self.alias,
            "isActive": self.is_active
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Employee':
        return cls(
            id=data["id"],
            name=data["name"],
            alias=data.get("alias", ""),
            is_active=data.get("isActive", True)
        )


class DataManager:
    """Manages persistence of all roster data and employee CRUD"""

    REQUIRED_SECTIONS = ["settings", "employees", "log", "notes"]

    def __init__(self, data_file: Optional[str] = None):
        if data_file is None:
            data_file = config.DEFAULT_DATA_FILE
        self.data_file = Path(data_file)
        self.data = self._load_or_create_data()

    def _read(self, path: Path) -> Dict[str, Any]:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _recover_from_backup(self, backup_file: Path) -> Dict[str, Any]:
        try:
            logging.info(f"Attempting recovery from backup file {backup_file}")
            data = self._read(backup_file)
            backup_file.replace(self.data_file)
            logging.info("Successfully recovered data from backup")
            return self._validate_and_migrate_data(data)
        except (json.JSONDecodeError, IOError) as backup_e:
            logging.error(f"Backup file corrupted: {backup_e}")
            logging.info("Creating default data due to corrupted backup")
            return self._create_default_data()

    def _load_or_create_data(self) -> Dict[str, Any]:
        """Load existing data or create default structure with recovery from backup"""
        backup_file = self.data_file.with_suffix('.bak')
        if self.data_file.exists():
            try:
                return self._validate_and_migrate_data(self._read(self.data_file))
            except (json.JSONDecodeError, IOError) as e:
                logging.error(f"Error loading main data file {self.data_file}: {e}")
                if backup_file.exists():
                    return self._recover_from_backup(backup_file)
                raise DataFileCorruptedError(f"Main data file corrupted and no backup available: {e}")
        if backup_file.exists():
            logging.info(f"Main data file missing, recovering from backup {backup_file}")
            return self._recover_from_backup(backup_file)
        logging.info("No data file found, creating default data")
        return self._create_default_data()

    def _validate_and_migrate_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and migrate data structure to current version"""
        default_data = self._create_default_data()

        # Merge with defaults to ensure all keys exist
        for key in default_data:
            if key not in data:
                data[key] = default_data[key]

        # Older files stored employees as plain names
        employees = []
        for ndx, emp in enumerate(data.get("employees", []), start=1):
            if isinstance(emp, str):
                emp = {"id": ndx, "name": emp}
            emp.setdefault("alias", "")
            emp.setdefault("isActive", True)
            employees.append(emp)
        data["employees"] = employees

        return data

    def _create_default_data(self) -> Dict[str, Any]:
        """Create default data structure"""
        return {
            "settings": {
                "appVersion": config.APP_VERSION,
                "lastSync": None,
                "dataFile": str(self.data_file)
            },
            "employees": [],
            "log": [],  # one line per employee per slot, kept sorted
            "notes": []  # {date, index, text}, kept sorted
        }

    def _validate_saved_data(self) -> bool:
        """Validate that the saved data file matches current data"""
        try:
            if not self.data_file.exists():
                raise DataFileNotFoundError(f"Saved data file {self.data_file} does not exist")

            saved_data = self._read(self.data_file)

            for key in self.REQUIRED_SECTIONS:
                if key not in saved_data:
                    raise DataValidationError(f"Required section '{key}' missing from saved data")

            if saved_data.get("settings", {}).get("appVersion") != self.data.get("settings", {}).get("appVersion"):
                raise DataValidationError("App version mismatch in saved data")

            if len(saved_data["log"]) != len(self.data["log"]):
                raise DataValidationError("Log line count mismatch in saved data")

            return True

        except (json.JSONDecodeError, IOError) as e:
            raise DataValidationError(f"Failed to validate saved data: {e}")

    def save_data(self) -> bool:
        """Save current data to file atomically with validation"""
        temp_file = None
        backup_file = self.data_file.with_suffix('.bak')

        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            if self.data_file.exists():
                self.data_file.replace(backup_file)

            temp_file = self.data_file.with_suffix('.tmp')
            self.data["settings"]["lastSync"] = datetime.now().isoformat(timespec="seconds")

            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=2, ensure_ascii=False)

            temp_file.replace(self.data_file)

            self._validate_saved_data()

            return True

        except DataValidationError as e:
            logging.error(f"Data validation failed after save: {e}", exc_info=True)
            if backup_file.exists():
                try:
                    backup_file.replace(self.data_file)
                except OSError as restore_e:
                    logging.error(f"Failed to restore from backup: {restore_e}", exc_info=True)
            raise DataSaveError(f"Save operation failed validation: {e}")

        except (IOError, OSError) as e:
            logging.error(f"I/O error during save operation: {e}", exc_info=True)
            raise DataSaveError(f"Failed to save data due to I/O error: {e}")

        finally:
            if temp_file and temp_file.exists():
                try:
                    temp_file.unlink()
                except OSError as cleanup_e:
                    logging.error(f"Failed to clean up temporary file {temp_file}: {cleanup_e}", exc_info=True)

    # Employee Management
    def get_employees(self, active_only: bool = True) -> List[Employee]:
        """Get list of employees"""
        employees = []
        for emp_data in self.data.get("employees", []):
            emp = Employee.from_dict(emp_data)
            if not active_only or emp.is_active:
                employees.append(emp)
        return employees

    def get_employee_by_name(self, name: str) -> Optional[Employee]:
        """Get employee by name"""
        for emp_data in self.data.get("employees", []):
            if emp_data["name"] == name:
                return Employee.from_dict(emp_data)
        return None

    def add_employee(self, name: str, alias: str = "", is_active: bool = True) -> Employee:
        """Add new employee"""
        existing_ids = [emp["id"] for emp in self.data.get("employees", [])]
        next_id = max(existing_ids, default=0) + 1

        employee = Employee(id=next_id, name=name, alias=alias, is_active=is_active)
        self.data.setdefault("employees", []).append(employee.to_dict())
        return employee

    def update_employee(self, emp_id: int, name: str = None, alias: str = None,
                        is_active: bool = None) -> bool:
        """Update employee information"""
        for emp_data in self.data.get("employees", []):
            if emp_data["id"] == emp_id:
                if name is not None:
                    emp_data["name"] = name
                if alias is not None:
                    emp_data["alias"] = alias
                if is_active is not None:
                    emp_data["isActive"] = is_active
                return True
        return False

    def delete_employee(self, emp_id: int) -> bool:
        """Delete employee from the directory; log lines are history and stay"""
        employees = self.data.get("employees", [])
        remaining = [emp for emp in employees if emp["id"] != emp_id]
        self.data["employees"] = remaining
        return len(remaining) != len(employees)
