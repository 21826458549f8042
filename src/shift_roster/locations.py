"""Location Catalog: the ordered work locations, one column block each."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List

from .errors import UnknownLocationError


@dataclass(frozen=True)
class Location:
    name: str
    index: int


_LOCATIONS: List[Location] = [
    Location(name, index)
    for index, name in enumerate(["Ammergasse", "Buero", "Marktgasse", "Xtras"])
]


def all_locations() -> List[Location]:
    return list(_LOCATIONS)


@lru_cache(maxsize=None)
def _by_name() -> Dict[str, Location]:
    return {loc.name: loc for loc in _LOCATIONS}


def location_by_name(name: str) -> Location:
    try:
        return _by_name()[name]
    except KeyError:
        raise UnknownLocationError(name) from None
