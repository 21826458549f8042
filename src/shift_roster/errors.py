"""
Exceptions for the Shift Roster system

Value conversion, parse and lookup errors are fatal to the operation raising
them.  Inconsistent grid geometry is logged by the coordinate mapper and never
propagated.
"""

from typing import Any, Optional


class RosterError(Exception):
    """Base exception for roster operations"""
    pass


class ValueConversionError(RosterError):
    """Raised when a cell does not hold the expected type"""

    def __init__(self, expected: str, got: Any, row: Optional[int] = None,
                 column: Optional[int] = None):
        self.expected = expected
        self.got = got
        self.row = row
        self.column = column
        super().__init__(self._message())

    def _message(self) -> str:
        where = ""
        if self.row is not None and self.column is not None:
            where = f" at row {self.row}, column {self.column}"
        return f"Expected {self.expected} but got {self.got!r}{where}"

    def at(self, row: int, column: int) -> 'ValueConversionError':
        """Attach the cell position and refresh the message"""
        self.row = row
        self.column = column
        self.args = (self._message(),)
        return self


class ParseError(RosterError):
    """Raised when text cannot be parsed"""

    def __init__(self, message: str, text: Any):
        self.text = text
        super().__init__(f"{message}: {text!r}")


class SlotTextParseError(ParseError):
    """Raised for malformed slot cell text"""
    pass


class DoodleParseError(ParseError):
    """Raised when a survey header cell cannot be decoded"""

    def __init__(self, header: str, text: Any, column: int):
        self.header = header
        self.column = column
        super().__init__(f"Cannot parse {header} header in column {column}", text)


class RosterLookupError(RosterError):
    """Raised when a name cannot be resolved"""

    kind = "name"

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unknown {self.kind}: {key!r}")


class UnknownEmployeeError(RosterLookupError):
    kind = "employee"


class UnknownShiftError(RosterLookupError):
    kind = "shift"


class UnknownLocationError(RosterLookupError):
    kind = "location"


class UnresolvableShiftError(RosterError):
    """Raised when a survey time range matches none of the catalog shifts"""

    def __init__(self, start_minute: int, stop_minute: int):
        self.start_minute = start_minute
        self.stop_minute = stop_minute
        super().__init__(
            f"No shift matches survey time range "
            f"{start_minute // 60:02d}:{start_minute % 60:02d}-"
            f"{stop_minute // 60:02d}:{stop_minute % 60:02d}"
        )


class InconsistentCellError(RosterError):
    """A grid position that maps to no valid shift offset"""

    def __init__(self, row: int, column: int):
        self.row = row
        self.column = column
        super().__init__(f"Inconsistent cell (row={row}) (column={column})")
