"""
Data model for the Sanctions Screening Engine

Queries, watchlist candidate records, and the match results produced by
the scorer. Absent fields are None (or empty collections); an empty
string is treated the same as an absent value by every comparator.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Iterable, Mapping

RESULT_POTENTIAL_MATCH = 'POTENTIAL_MATCH'
RESULT_PASSED = 'PASSED'

CATEGORY_ALL = 'all'


class InvalidRecordError(ValueError):
    """Raised when a record-store row cannot be turned into a CandidateRecord"""
    pass


def _first_present(data: Mapping[str, Any], *keys: str) -> Optional[Any]:
    """Return the first non-None value among the given keys"""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _as_list(value: Any) -> List[Any]:
    """Collection field of a row as a list; a lone string or mapping is one item"""
    if value is None:
        return []
    if isinstance(value, (str, Mapping)):
        return [value]
    if isinstance(value, Iterable):
        return list(value)
    return []


def _address_from_row(data: Mapping[str, Any]) -> 'Address':
    """Address parts from a flat row or from a nested address mapping"""
    source = data
    street = data.get('street')
    if isinstance(data.get('address'), Mapping):
        source = data['address']
        street = _first_present(source, 'street', 'address')
    elif street is None:
        street = data.get('address')
    return Address(
        street=_optional_str(street),
        city=_optional_str(source.get('city')),
        state=_optional_str(source.get('state')),
        country=_optional_str(source.get('country'))
    )


@dataclass
class Name:
    """Personal or entity name split into parts"""
    first: Optional[str] = None
    middle: Optional[str] = None
    last: Optional[str] = None

    def full_name(self) -> str:
        return ' '.join(part for part in (self.first, self.middle, self.last) if part)

    def is_empty(self) -> bool:
        return not (self.first or self.middle or self.last)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {'first': self.first, 'middle': self.middle, 'last': self.last}

    @classmethod
    def from_dict(cls, data: Any) -> 'Name':
        """Build from a camelCase or snake_case mapping, or a bare string

        A bare string is stored as the last name, which is how the watchlist
        feed delivers aliases.
        """
        if isinstance(data, str):
            return cls(last=_optional_str(data))
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            first=_optional_str(_first_present(data, 'firstName', 'first_name', 'first')),
            middle=_optional_str(_first_present(data, 'middleName', 'middle_name', 'middle')),
            last=_optional_str(_first_present(data, 'lastName', 'last_name', 'last'))
        )


@dataclass
class Address:
    """Postal address parts"""
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            'street': self.street,
            'city': self.city,
            'state': self.state,
            'country': self.country
        }


@dataclass
class Identifier:
    """Typed credential such as a passport or national ID number"""
    kind: str = 'ID'
    number: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {'kind': self.kind, 'number': self.number}


@dataclass
class Query:
    """Screening query assembled from user-supplied fields"""
    name: Name = field(default_factory=Name)
    date_of_birth: Optional[str] = None
    address: Optional[Address] = None
    identifier_number: Optional[str] = None
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name.to_dict(),
            'date_of_birth': self.date_of_birth,
            'address': self.address.to_dict() if self.address else None,
            'identifier_number': self.identifier_number,
            'category': self.category
        }


@dataclass
class CandidateRecord:
    """One watchlist entry. Owned by the record store; never mutated here."""
    uid: str
    name: Name = field(default_factory=Name)
    display_name: str = ''
    category: str = 'Entity'
    date_of_birth: Optional[str] = None
    address: Address = field(default_factory=Address)
    identifiers: List[Identifier] = field(default_factory=list)
    aliases: List[Name] = field(default_factory=list)
    programs: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'uid': self.uid,
            'name': self.name.to_dict(),
            'display_name': self.display_name,
            'category': self.category,
            'date_of_birth': self.date_of_birth,
            'address': self.address.to_dict(),
            'identifiers': [i.to_dict() for i in self.identifiers],
            'aliases': [a.to_dict() for a in self.aliases],
            'programs': list(self.programs)
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'CandidateRecord':
        """Build a record from a record-store row

        Accepts the watchlist row shape (uid, firstName, lastName, fullName,
        type, programs, dob, address, city, state, country, ids, aliases)
        as well as snake_case keys.

        Raises:
            InvalidRecordError: If the row is not a mapping
        """
        if not isinstance(data, Mapping):
            raise InvalidRecordError(
                f"Record must be a mapping, got {type(data).__name__}"
            )

        name = Name.from_dict(data)
        display_name = _first_present(data, 'fullName', 'display_name', 'name')
        if not isinstance(display_name, str) or not display_name.strip():
            display_name = name.full_name()

        programs = _first_present(data, 'programs', 'program')
        if isinstance(programs, str):
            programs = [p.strip() for p in programs.split(';') if p.strip()]
        programs = _as_list(programs)

        identifiers = []
        for raw_id in _as_list(_first_present(data, 'ids', 'identifiers')):
            if isinstance(raw_id, Mapping):
                identifiers.append(Identifier(
                    kind=str(_first_present(raw_id, 'type', 'kind') or 'ID'),
                    number=_optional_str(raw_id.get('number'))
                ))
            elif raw_id:
                identifiers.append(Identifier(number=_optional_str(raw_id)))

        aliases = [Name.from_dict(a) for a in _as_list(data.get('aliases'))]
        aliases = [a for a in aliases if not a.is_empty()]

        return cls(
            uid=str(_first_present(data, 'uid', 'id') or ''),
            name=name,
            display_name=display_name.strip(),
            category=str(_first_present(data, 'type', 'category') or 'Entity'),
            date_of_birth=_optional_str(_first_present(data, 'dob', 'date_of_birth', 'dateOfBirth')),
            address=_address_from_row(data),
            identifiers=identifiers,
            aliases=aliases,
            programs=[str(p) for p in programs]
        )


@dataclass
class FieldScore:
    """Score of one field group in [0, 100] and the weight it carried"""
    value: int = 0
    weight: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {'value': self.value, 'weight': self.weight}


@dataclass
class MatchResult:
    """Scored comparison of a query against one candidate record"""
    record: CandidateRecord
    score: int = 0
    name_score: FieldScore = field(default_factory=FieldScore)
    address_score: FieldScore = field(default_factory=FieldScore)
    dob_match: bool = False
    id_match: bool = False
    reasons: List[str] = field(default_factory=list)
    matched_name: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'record': self.record.to_dict(),
            'score': self.score,
            'name_score': self.name_score.to_dict(),
            'address_score': self.address_score.to_dict(),
            'dob_match': self.dob_match,
            'id_match': self.id_match,
            'reasons': list(self.reasons),
            'matched_name': self.matched_name
        }


@dataclass
class ScreeningSummary:
    """Outcome of one screening run against a record-store snapshot"""
    screening_id: str
    screened_at: str
    query: Query
    threshold: int
    candidate_count: int
    matches: List[MatchResult] = field(default_factory=list)
    algorithm_version: str = ''

    @property
    def is_hit(self) -> bool:
        return len(self.matches) > 0

    @property
    def match_count(self) -> int:
        return len(self.matches)

    @property
    def result(self) -> str:
        return RESULT_POTENTIAL_MATCH if self.is_hit else RESULT_PASSED

    @property
    def top_score(self) -> int:
        return self.matches[0].score if self.matches else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'screening_id': self.screening_id,
            'screened_at': self.screened_at,
            'query': self.query.to_dict(),
            'threshold': self.threshold,
            'candidate_count': self.candidate_count,
            'result': self.result,
            'is_hit': self.is_hit,
            'match_count': self.match_count,
            'matches': [m.to_dict() for m in self.matches],
            'algorithm_version': self.algorithm_version
        }
