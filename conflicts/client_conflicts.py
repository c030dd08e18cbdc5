"""
Conflict-of-interest matching between a prospective client and existing clients.

Two client records conflict when any one identity field (email, phone or
tax identifier) is present on both and equal. Matching is exact string
equality; an absent or empty field never matches anything. A record never
conflicts with itself: pass its id as ``exclude_id`` when re-checking an
update.

``find_conflicts`` is a linear scan. ``ClientConflictIndex`` gives the same
answers from per-field hash indexes for callers holding many records.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from conflicts.models import ClientRecord

IDENTITY_FIELDS: Tuple[str, ...] = ("email", "phone", "tax_id")


@dataclass
class ClientConflictGroup:
    """All existing clients sharing one identity value with the candidate."""
    field_name: str
    value: str
    clients: List[ClientRecord] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "type": self.field_name,
            "field": self.field_name,
            "value": self.value,
            "conflicts": [client.to_dict() for client in self.clients],
        }


def _identity_value(record: ClientRecord, field_name: str) -> Optional[str]:
    value = getattr(record, field_name)
    return value if value else None


def matching_fields(candidate: ClientRecord, other: ClientRecord) -> List[str]:
    """Get the identity fields on which ``candidate`` and ``other`` collide."""
    matches = []
    for field_name in IDENTITY_FIELDS:
        value = _identity_value(candidate, field_name)
        if value is not None and value == _identity_value(other, field_name):
            matches.append(field_name)
    return matches


def _eligible(record: ClientRecord, exclude_id: Optional[str]) -> bool:
    if not record.is_active:
        return False
    return exclude_id is None or record.id != exclude_id


def find_conflicts(
    candidate: ClientRecord,
    existing_active_clients: Iterable[ClientRecord],
    exclude_id: Optional[str] = None,
) -> List[ClientRecord]:
    """
    Find every existing client that conflicts with ``candidate``.

    Args:
        candidate: The client being created or updated
        existing_active_clients: Clients to check against
        exclude_id: Id of the candidate's own stored version, if any

    Returns:
        All conflicting records, in input order. Empty when there is no conflict.
    """
    return [
        record for record in existing_active_clients
        if _eligible(record, exclude_id) and matching_fields(candidate, record)
    ]


def group_conflicts_by_field(
    candidate: ClientRecord,
    conflicts: Iterable[ClientRecord],
) -> List[ClientConflictGroup]:
    """
    Arrange conflicts per matching field, e.g. "this email is used by client X".

    A client matching on several fields appears in several groups. Groups are
    ordered email, phone, tax_id and only present when non-empty.
    """
    groups: Dict[str, ClientConflictGroup] = {}
    for record in conflicts:
        for field_name in matching_fields(candidate, record):
            if field_name not in groups:
                groups[field_name] = ClientConflictGroup(
                    field_name=field_name,
                    value=_identity_value(candidate, field_name),
                )
            groups[field_name].clients.append(record)
    return [groups[name] for name in IDENTITY_FIELDS if name in groups]


class ClientConflictIndex:
    """
    Hash index over client identity fields.

    Usage:
        index = ClientConflictIndex(active_clients)
        conflicts = index.find(candidate, exclude_id=candidate.id)
    """

    def __init__(self, records: Iterable[ClientRecord] = ()):
        self._records: List[ClientRecord] = []
        self._by_field: Dict[str, Dict[str, List[int]]] = {
            name: defaultdict(list) for name in IDENTITY_FIELDS
        }
        for record in records:
            self.add(record)

    def __len__(self) -> int:
        return len(self._records)

    def add(self, record: ClientRecord) -> None:
        if not record.is_active:
            return
        position = len(self._records)
        self._records.append(record)
        for field_name in IDENTITY_FIELDS:
            value = _identity_value(record, field_name)
            if value is not None:
                self._by_field[field_name][value].append(position)

    def find(self, candidate: ClientRecord, exclude_id: Optional[str] = None) -> List[ClientRecord]:
        """Same result as ``find_conflicts`` over the indexed records."""
        positions = set()
        for field_name in IDENTITY_FIELDS:
            value = _identity_value(candidate, field_name)
            if value is not None:
                positions.update(self._by_field[field_name].get(value, ()))

        return [
            self._records[i] for i in sorted(positions)
            if _eligible(self._records[i], exclude_id)
        ]
