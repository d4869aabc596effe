# collections.py
# Child-collection replacement shared by every parent entity.

import logging
from typing import Iterable, List, Type

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def replace_children(
    db: Session,
    model: Type,
    parent_key: str,
    parent_id: int,
    rows: Iterable[dict],
) -> List:
    """
    Make the `model` rows owned by `parent_id` exactly match `rows`.

    Every existing child is deleted and each row is inserted again keyed by
    the parent, so child ids change on every call. Must run inside a
    `transaction()` block: a failed insert rolls the delete back with it.
    """
    parent_column = getattr(model, parent_key)
    removed = db.query(model).filter(parent_column == parent_id).delete(synchronize_session="fetch")

    children = [model(**{parent_key: parent_id, **row}) for row in rows]
    db.add_all(children)
    db.flush()

    logger.debug(
        f"Replaced {removed} {model.__tablename__} rows with {len(children)} for {parent_key}={parent_id}"
    )
    return children
