"""
Identity extraction for attendance records.

Records reach the display and the lookup endpoint in several shapes: flat
(``firstName``, ``companyName``, ``image``), nested under ``user``, or
partially empty. Every field is resolved through an ordered chain of lookup
paths over the raw mapping; the first usable value wins and each chain ends
in a literal default, so extraction never fails.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

Path = tuple[str, ...]

UNKNOWN_NAME = "Unknown"
UNKNOWN_COMPANY = "Unknown Company"
UNKNOWN_POSITION = "Unknown Position"

NAME_CHAIN: tuple[Path, ...] = (("user", "name"), ("name",))
COMPANY_CHAIN: tuple[Path, ...] = (("user", "company"), ("companyName",), ("company",))
POSITION_CHAIN: tuple[Path, ...] = (("user", "position"), ("position",), ("user", "role"))
IMAGE_CHAIN: tuple[Path, ...] = (
    ("image",),
    ("user", "imageUrl"),
    ("user", "image"),
    ("imageUrl",),
    ("user", "photo"),
    ("photo",),
)


@dataclass(frozen=True)
class DisplayedIdentity:
    name: str
    company: str
    position: str
    image_url: str | None = None

    def to_dict(self) -> dict[str, str]:
        out = {
            "name": self.name,
            "company": self.company,
            "position": self.position,
        }
        if self.image_url:
            out["imageUrl"] = self.image_url
        return out


def lookup(record: Any, path: Path) -> Any:
    node = record
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def as_text(value: Any) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def as_image(value: Any) -> str | None:
    # lists count by their first element only
    if isinstance(value, list):
        return as_text(value[0]) if value else None
    return as_text(value)


def first_text(record: Any, chain: Iterable[Path], default: str | None = None) -> str | None:
    for path in chain:
        text = as_text(lookup(record, path))
        if text:
            return text
    return default


def first_image(record: Any, chain: Iterable[Path] = IMAGE_CHAIN) -> str | None:
    for path in chain:
        url = as_image(lookup(record, path))
        if url:
            return url
    return None


def resolve_name(record: Any) -> str:
    first = as_text(lookup(record, ("firstName",)))
    last = as_text(lookup(record, ("lastName",)))
    if first and last:
        return f"{first} {last}"
    return first_text(record, NAME_CHAIN, UNKNOWN_NAME) or UNKNOWN_NAME


def extract_identity(record: Any) -> DisplayedIdentity:
    return DisplayedIdentity(
        name=resolve_name(record),
        company=first_text(record, COMPANY_CHAIN, UNKNOWN_COMPANY) or UNKNOWN_COMPANY,
        position=first_text(record, POSITION_CHAIN, UNKNOWN_POSITION) or UNKNOWN_POSITION,
        image_url=first_image(record),
    )
