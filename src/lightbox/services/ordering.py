"""Ordering rules for curated collections.

Four collections are managed here, each a partition of one table with its own
nullable integer position column:

- ``masthead``: media rows flagged ``is_masthead``, ranked by ``masthead_order``
- ``featured``: media rows flagged ``is_featured``, ranked by ``featured_order``
- ``featured-stories``: stories flagged ``is_featured``, ranked by ``featured_order``
- ``story-images``: every image of one story, ranked by ``order_index``

Membership and position always change together through :func:`set_membership`.
Functions here only flush; the caller owns the transaction, so a request's
writes commit or roll back as a unit.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from lightbox.models import Media, Story, StoryImage

__all__ = [
    "CollectionName",
    "Direction",
    "DuplicateEntryError",
    "EntityNotFoundError",
    "Member",
    "NotAMemberError",
    "NotMember",
    "OrderedCollection",
    "OrderingError",
    "UnknownCollectionError",
    "assign_position",
    "assign_positions",
    "clear_position",
    "get_collection",
    "list_ordered",
    "membership_of",
    "move_adjacent",
    "next_position",
    "reorder",
    "set_membership",
]


class OrderingError(ValueError):
    """Base class for rejected ordering requests."""


class UnknownCollectionError(OrderingError):
    """Raised when a collection name is not recognised."""


class EntityNotFoundError(OrderingError):
    """Raised when a referenced entity does not exist in the collection's table."""

    def __init__(self, collection: str, entity_id: int) -> None:
        super().__init__(f"{collection}: entity {entity_id} not found")
        self.entity_id = entity_id


class NotAMemberError(OrderingError):
    """Raised when an operation references entities outside the collection."""

    def __init__(self, collection: str, entity_ids: Sequence[int]) -> None:
        ids = ", ".join(str(i) for i in entity_ids)
        super().__init__(f"{collection}: not members: {ids}")
        self.entity_ids = list(entity_ids)


class DuplicateEntryError(OrderingError):
    """Raised when a reorder list names the same entity more than once."""

    def __init__(self, collection: str, entity_ids: Sequence[int]) -> None:
        ids = ", ".join(str(i) for i in entity_ids)
        super().__init__(f"{collection}: duplicate ids in order list: {ids}")
        self.entity_ids = list(entity_ids)


class CollectionName(str, Enum):
    """Wire names of the curated collections."""

    MASTHEAD = "masthead"
    FEATURED_MEDIA = "featured"
    FEATURED_STORIES = "featured-stories"
    STORY_IMAGES = "story-images"


class Direction(str, Enum):
    """Direction of a pairwise move, relative to display order."""

    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class NotMember:
    """The entity is outside the collection and holds no position."""


@dataclass(frozen=True)
class Member:
    """The entity is in the collection at ``position``."""

    position: int


Membership = NotMember | Member


@dataclass(frozen=True)
class OrderedCollection:
    """Column mapping for one collection.

    ``flag_attr`` is None for collections whose membership is implicit;
    ``parent_attr`` names the column that scopes such a collection.
    """

    name: CollectionName
    model: type[Any]
    position_attr: str
    flag_attr: str | None = None
    parent_attr: str | None = None

    @property
    def position_column(self) -> Any:
        return getattr(self.model, self.position_attr)

    def member_filter(self, parent_id: int | None = None) -> list[Any]:
        """Return SQL criteria selecting the members of this collection."""
        if self.flag_attr is not None:
            return [getattr(self.model, self.flag_attr).is_(True)]
        if self.parent_attr is not None:
            if parent_id is None:
                raise OrderingError(f"{self.name.value}: parent id is required")
            return [getattr(self.model, self.parent_attr) == parent_id]
        return []


_COLLECTIONS: dict[CollectionName, OrderedCollection] = {
    CollectionName.MASTHEAD: OrderedCollection(
        name=CollectionName.MASTHEAD,
        model=Media,
        position_attr="masthead_order",
        flag_attr="is_masthead",
    ),
    CollectionName.FEATURED_MEDIA: OrderedCollection(
        name=CollectionName.FEATURED_MEDIA,
        model=Media,
        position_attr="featured_order",
        flag_attr="is_featured",
    ),
    CollectionName.FEATURED_STORIES: OrderedCollection(
        name=CollectionName.FEATURED_STORIES,
        model=Story,
        position_attr="featured_order",
        flag_attr="is_featured",
    ),
    CollectionName.STORY_IMAGES: OrderedCollection(
        name=CollectionName.STORY_IMAGES,
        model=StoryImage,
        position_attr="order_index",
        parent_attr="story_id",
    ),
}


def get_collection(name: str | CollectionName) -> OrderedCollection:
    """Return the collection registered under ``name``.

    Raises:
        UnknownCollectionError: If ``name`` is not a known collection.
    """
    try:
        key = CollectionName(name)
    except ValueError as err:
        raise UnknownCollectionError(f"unknown collection: {name!r}") from err
    return _COLLECTIONS[key]


def membership_of(entity: Any, collection: OrderedCollection) -> Membership:
    """Read the membership variant of ``entity`` in ``collection``."""
    position = getattr(entity, collection.position_attr)
    if collection.flag_attr is None:
        return Member(position)
    if getattr(entity, collection.flag_attr) and position is not None:
        return Member(position)
    return NotMember()


def set_membership(entity: Any, collection: OrderedCollection, membership: Membership) -> None:
    """Write the flag and position of ``entity`` together.

    This is the only place the flag/position pair is assigned, so a member
    always has a position and a non-member never does.
    """
    if isinstance(membership, Member):
        if collection.flag_attr is not None:
            setattr(entity, collection.flag_attr, True)
        setattr(entity, collection.position_attr, membership.position)
        return
    if collection.flag_attr is None:
        raise OrderingError(f"{collection.name.value}: membership cannot be revoked")
    setattr(entity, collection.flag_attr, False)
    setattr(entity, collection.position_attr, None)


def _parent_of(entity: Any, collection: OrderedCollection) -> int | None:
    if collection.parent_attr is None:
        return None
    return getattr(entity, collection.parent_attr)


def _load(db: Session, collection: OrderedCollection, entity_id: int) -> Any:
    entity = db.get(collection.model, entity_id)
    if entity is None:
        raise EntityNotFoundError(collection.name.value, entity_id)
    return entity


def _max_position(
    db: Session,
    collection: OrderedCollection,
    parent_id: int | None,
    exclude_id: int | None = None,
) -> int:
    """Return the highest position among members, or -1 for an empty collection."""
    db.flush()
    criteria = collection.member_filter(parent_id)
    if exclude_id is not None:
        criteria.append(collection.model.id != exclude_id)
    stmt = select(func.coalesce(func.max(collection.position_column), -1)).where(*criteria)
    return int(db.execute(stmt).scalar_one())


def _resolve(collection: str | CollectionName | OrderedCollection) -> OrderedCollection:
    if isinstance(collection, OrderedCollection):
        return collection
    return get_collection(collection)


def assign_position(
    db: Session,
    collection: str | CollectionName | OrderedCollection,
    entity_id: int,
) -> int:
    """Append ``entity_id`` to the end of ``collection`` and return its position.

    The new position is one past the current maximum among members (0 for an
    empty collection). An entity that is already a member keeps its position.
    For scoped collections the sibling set is taken from the entity's parent.

    Raises:
        EntityNotFoundError: If the entity does not exist.
    """
    coll = _resolve(collection)
    entity = _load(db, coll, entity_id)
    return _assign(db, coll, entity)


def next_position(
    db: Session,
    collection: str | CollectionName | OrderedCollection,
    parent_id: int | None = None,
) -> int:
    """Return the position a new member appended now would receive."""
    coll = _resolve(collection)
    return _max_position(db, coll, parent_id) + 1


def _assign(db: Session, coll: OrderedCollection, entity: Any) -> int:
    current = membership_of(entity, coll)
    if isinstance(current, Member) and coll.flag_attr is not None:
        return current.position
    position = _max_position(db, coll, _parent_of(entity, coll), exclude_id=entity.id) + 1
    set_membership(entity, coll, Member(position))
    db.flush()
    return position


def assign_positions(
    db: Session,
    collection: str | CollectionName | OrderedCollection,
    entity_ids: Iterable[int],
) -> dict[int, int]:
    """Append several entities in the order given.

    Returns a mapping of entity id to its position. Existing members keep
    their positions and do not take a slot at the end.

    Raises:
        EntityNotFoundError: If any id does not exist; nothing is flushed then.
    """
    coll = _resolve(collection)
    entities = [_load(db, coll, entity_id) for entity_id in entity_ids]
    return {entity.id: _assign(db, coll, entity) for entity in entities}


def clear_position(
    db: Session,
    collection: str | CollectionName | OrderedCollection,
    entity_id: int,
) -> None:
    """Remove ``entity_id`` from ``collection``.

    Only this collection's flag and position change; other members are not
    renumbered and other collections on the same row are untouched. Clearing
    a non-member is a no-op.

    Raises:
        EntityNotFoundError: If the entity does not exist.
        OrderingError: For collections whose membership is implicit.
    """
    coll = _resolve(collection)
    entity = _load(db, coll, entity_id)
    set_membership(entity, coll, NotMember())
    db.flush()


def list_ordered(
    db: Session,
    collection: str | CollectionName | OrderedCollection,
    parent_id: int | None = None,
) -> list[Any]:
    """Return the members of ``collection`` in display order.

    Position ascending with unpositioned rows last, then newest first; the
    primary key breaks any remaining tie so the order is deterministic.
    """
    coll = _resolve(collection)
    db.flush()
    stmt = (
        select(coll.model)
        .where(*coll.member_filter(parent_id))
        .order_by(
            coll.position_column.asc().nulls_last(),
            coll.model.created_at.desc(),
            coll.model.id.desc(),
        )
    )
    return list(db.execute(stmt).scalars())


def reorder(
    db: Session,
    collection: str | CollectionName | OrderedCollection,
    ordered_ids: Sequence[int],
    parent_id: int | None = None,
) -> list[Any]:
    """Rewrite positions so that ``ordered_ids[i]`` sits at position ``i``.

    Every id must already be a member; membership is never granted here.
    Validation happens before any write. An empty list changes nothing.

    Returns:
        The reordered entities, in list order.

    Raises:
        DuplicateEntryError: If an id appears more than once.
        NotAMemberError: If any id is unknown or not a member.
    """
    coll = _resolve(collection)
    if not ordered_ids:
        return []

    duplicates = sorted(i for i, count in Counter(ordered_ids).items() if count > 1)
    if duplicates:
        raise DuplicateEntryError(coll.name.value, duplicates)

    members = {entity.id: entity for entity in list_ordered(db, coll, parent_id)}
    missing = [i for i in ordered_ids if i not in members]
    if missing:
        raise NotAMemberError(coll.name.value, missing)

    entities = [members[i] for i in ordered_ids]
    for index, entity in enumerate(entities):
        set_membership(entity, coll, Member(index))
    db.flush()
    return entities


def move_adjacent(
    db: Session,
    collection: str | CollectionName | OrderedCollection,
    entity_id: int,
    direction: str | Direction,
    parent_id: int | None = None,
) -> list[Any]:
    """Swap ``entity_id`` with its neighbour in ``direction``.

    Moving the first member up or the last member down changes nothing.
    Otherwise exactly two rows exchange position values. If the two share a
    position (or lack one), only the run around them is spread out first so
    the swap takes effect; later members shift only where they would
    otherwise collide.

    Returns:
        The collection in its new display order.

    Raises:
        NotAMemberError: If ``entity_id`` is not a member.
    """
    coll = _resolve(collection)
    try:
        step = -1 if Direction(direction) is Direction.UP else 1
    except ValueError as err:
        raise OrderingError(f"unknown direction: {direction!r}") from err
    ordered = list_ordered(db, coll, parent_id)
    index = next((i for i, entity in enumerate(ordered) if entity.id == entity_id), None)
    if index is None:
        raise NotAMemberError(coll.name.value, [entity_id])

    neighbour_index = index + step
    if neighbour_index < 0 or neighbour_index >= len(ordered):
        return ordered

    entity = ordered[index]
    neighbour = ordered[neighbour_index]
    entity_pos = getattr(entity, coll.position_attr)
    neighbour_pos = getattr(neighbour, coll.position_attr)
    if entity_pos == neighbour_pos or entity_pos is None or neighbour_pos is None:
        _spread_run(ordered, coll, min(index, neighbour_index), max(index, neighbour_index))
        entity_pos = getattr(entity, coll.position_attr)
        neighbour_pos = getattr(neighbour, coll.position_attr)

    set_membership(entity, coll, Member(neighbour_pos))
    set_membership(neighbour, coll, Member(entity_pos))
    db.flush()

    ordered[index], ordered[neighbour_index] = neighbour, entity
    return ordered


def _spread_run(ordered: list[Any], coll: OrderedCollection, lo: int, hi: int) -> None:
    """Give ``ordered[lo..hi]`` strictly increasing positions in display order.

    The walk starts at the head of the tied or unpositioned run containing
    ``lo`` and stops at the first member past ``hi`` that already sits above
    its predecessor. Members outside that window are not written.
    """
    start = lo
    while start > 0:
        before = getattr(ordered[start - 1], coll.position_attr)
        current = getattr(ordered[start], coll.position_attr)
        if before is not None and (current is None or before < current):
            break
        start -= 1

    previous = getattr(ordered[start - 1], coll.position_attr) if start > 0 else None
    for i in range(start, len(ordered)):
        position = getattr(ordered[i], coll.position_attr)
        if position is not None and (previous is None or position > previous):
            if i > hi:
                break
        else:
            position = 0 if previous is None else previous + 1
            set_membership(ordered[i], coll, Member(position))
        previous = position
