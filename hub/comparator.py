from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

NUMERIC_TOLERANCE = 0.01

Fields = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


@dataclass(frozen=True)
class FieldComparison:
    field: str
    current: Any
    recommended: Any
    matches: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "current": self.current, "recommended": self.recommended, "matches": self.matches}


@dataclass
class ComparisonResult:
    fields: List[FieldComparison] = field(default_factory=list)
    extra: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def matched(self) -> int:
        return sum(1 for f in self.fields if f.matches)

    @property
    def score(self) -> float:
        if not self.fields:
            return 100.0
        return round(self.matched * 100.0 / len(self.fields), 1)

    def mismatches(self) -> List[FieldComparison]:
        return [f for f in self.fields if not f.matches]

    def summary(self) -> Dict[str, Any]:
        return {"matched": self.matched, "total": len(self.fields), "score": self.score}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fields": [f.to_dict() for f in self.fields],
            "extra": list(self.extra),
            "summary": self.summary(),
        }


def _key(name: Any) -> str:
    return str(name).strip().casefold()


def _index(fields: Fields) -> Dict[str, Tuple[str, Any]]:
    items = fields.items() if isinstance(fields, Mapping) else fields
    out: Dict[str, Tuple[str, Any]] = {}
    for name, value in items:
        key, entry = _key(name), (str(name), value)
        # Names equal up to case collide; keep the smallest so input order never matters
        if key not in out or (entry[0], repr(entry[1])) < (out[key][0], repr(out[key][1])):
            out[key] = entry
    return out


def values_equal(current: Any, recommended: Any) -> bool:
    if current is None or recommended is None:
        return current is None and recommended is None
    if isinstance(current, bool) or isinstance(recommended, bool):
        return isinstance(current, bool) and isinstance(recommended, bool) and current == recommended
    if isinstance(current, (int, float)) and isinstance(recommended, (int, float)):
        return math.isclose(float(current), float(recommended), rel_tol=0.0, abs_tol=NUMERIC_TOLERANCE)
    if isinstance(current, str) and isinstance(recommended, str):
        return current.strip().casefold() == recommended.strip().casefold()
    if isinstance(current, (list, tuple, set)) and isinstance(recommended, (list, tuple, set)):
        return _multiset_equal(list(current), list(recommended))
    if isinstance(current, Mapping) and isinstance(recommended, Mapping):
        a, b = _index(current), _index(recommended)
        return a.keys() == b.keys() and all(values_equal(a[k][1], b[k][1]) for k in a)
    return current == recommended


def _multiset_equal(a: List[Any], b: List[Any]) -> bool:
    if len(a) != len(b):
        return False
    remaining = list(b)
    for item in a:
        for i, other in enumerate(remaining):
            if values_equal(item, other):
                del remaining[i]
                break
        else:
            return False
    return True


def compare(current: Fields, recommended: Fields) -> ComparisonResult:
    """Diff live configuration fields against recommended ones, matched by name.

    Names match case-insensitively. A recommended field missing from ``current``
    is reported with ``current=None`` and ``matches=False``; fields only found in
    ``current`` land in ``extra``. Output is sorted by field key so the result
    does not depend on input order.
    """
    cur = _index(current)
    rec = _index(recommended)

    fields = []
    for key in sorted(rec):
        name, rec_value = rec[key]
        if key in cur:
            cur_value = cur[key][1]
            matches = values_equal(cur_value, rec_value)
        else:
            cur_value, matches = None, False
        fields.append(FieldComparison(field=name, current=cur_value, recommended=rec_value, matches=matches))

    extra = [{"field": cur[key][0], "current": cur[key][1]} for key in sorted(cur) if key not in rec]
    return ComparisonResult(fields=fields, extra=extra)
