"""
Audience resolution: who may see a task or an event.

Rows have used three shapes over time:
- is_for_all (bool) plus assigned_to (list of user ids)
- assigned_to holding {id, name} objects instead of bare ids
- a single assigned_user_id (string, or a list of {id, name} objects)

normalize_audience() folds every shape into one Audience value. It is the
only function that knows about the shapes; is_visible() and filter_visible()
only ever see an Audience.

Rules:
- for_all wins over any explicit list, even a populated one.
- Otherwise the viewer must be in the explicit set.
- The creator gets no implicit access.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field

FOR_ALL_KEYS = ('is_for_all', 'isForAll')
ASSIGNED_TO_KEYS = ('assigned_to', 'assignedTo')
LEGACY_ASSIGNEE_KEYS = ('assigned_user_id', 'assignedUserId')


@dataclass(frozen=True)
class Audience:
    """Canonical audience: everyone, or an explicit set of user ids."""

    for_all: bool = False
    explicit_ids: frozenset = field(default_factory=frozenset)

    @classmethod
    def everyone(cls):
        return cls(for_all=True)

    @classmethod
    def only(cls, user_ids):
        return cls(for_all=False, explicit_ids=frozenset(_collect_ids(user_ids)))

    def includes(self, viewer_id):
        if self.for_all:
            return True
        return viewer_id is not None and str(viewer_id) in self.explicit_ids


def _collect_ids(value):
    """Yield user ids from a string, an {id: ...} object, or a list of either."""
    if value is None:
        return
    if isinstance(value, Mapping):
        if value.get('id'):
            yield str(value['id'])
        return
    if isinstance(value, (list, tuple, set, frozenset)):
        for entry in value:
            yield from _collect_ids(entry)
        return
    value = str(value).strip()
    if value:
        yield value


def _read(record, keys):
    """Return (found, value) for the first of keys present on record."""
    for key in keys:
        if isinstance(record, Mapping):
            if key in record:
                return True, record[key]
        elif hasattr(record, key):
            return True, getattr(record, key)
    return False, None


def normalize_audience(record):
    """
    Build the Audience for a store row or model instance.

    A record with no audience columns at all (tests) is visible to everyone.
    """
    has_flag, for_all = _read(record, FOR_ALL_KEYS)
    has_list, assigned_to = _read(record, ASSIGNED_TO_KEYS)
    has_legacy, legacy = _read(record, LEGACY_ASSIGNEE_KEYS)

    if not (has_flag or has_list or has_legacy):
        return Audience.everyone()

    if for_all:
        return Audience.everyone()

    ids = set(_collect_ids(assigned_to))
    ids.update(_collect_ids(legacy))
    return Audience(for_all=False, explicit_ids=frozenset(ids))


def audience_columns(audience):
    """Column values that store an Audience in the current row shape."""
    return {
        'is_for_all': audience.for_all,
        'assigned_to': [] if audience.for_all else sorted(audience.explicit_ids),
        'assigned_user_id': None,
    }


def audience_of(item):
    """Return the item's Audience, normalizing raw rows on the way."""
    audience = item if isinstance(item, Audience) else getattr(item, 'audience', None)
    if isinstance(audience, Audience):
        return audience
    return normalize_audience(item)


def is_visible(item, viewer_id):
    """True when viewer_id may see item."""
    return audience_of(item).includes(viewer_id)


def may_delete(item, viewer_id):
    """
    Only the creator may delete an item. Rows with no recorded creator can be
    deleted by anyone who sees them.
    """
    found, creator = _read(item, ('created_by_id', 'created_by', 'createdBy'))
    if not found or creator is None:
        return True
    creator = getattr(creator, 'pk', creator)
    return viewer_id is not None and str(creator) == str(viewer_id)


def filter_visible(items, viewer_id):
    """Lazily yield the items viewer_id may see, in input order."""
    for item in items:
        if is_visible(item, viewer_id):
            yield item
