"""
registry/creators.py -- Resolve an attendee's polymorphic creator reference.

The registry does not know about account storage. Callers pass one lookup
function per CreatorKind; resolve_creator() dispatches on the tag and returns
whatever the lookup returns, or None.
"""

from typing import Callable, Mapping, Optional, TypeVar

from core.models import CreatorKind
from registry.models import CreatorRef

T = TypeVar("T")

CreatorLookups = Mapping[CreatorKind, Callable[[int], Optional[T]]]


def resolve_creator(ref: Optional[CreatorRef], lookups: CreatorLookups) -> Optional[T]:
    """Return the record ref points at, or None if it is missing or dangling.

    A missing reference, a kind without a lookup, and an id the lookup cannot
    find all yield None. None never fails the surrounding request.
    """
    if ref is None:
        return None
    lookup = lookups.get(ref.kind)
    if lookup is None:
        return None
    return lookup(ref.id)
