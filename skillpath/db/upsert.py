"""Single-statement INSERT ... ON CONFLICT DO UPDATE for the supported dialects."""
from typing import Callable, Dict, Iterable, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def upsert(
    db: Session,
    model,
    values: Dict,
    conflict_columns: Iterable[str],
    update_columns: Iterable[str],
    merge: Optional[Callable] = None,
):
    """Insert ``values`` or, when the natural key already exists, update ``update_columns``.

    Columns left out of ``update_columns`` keep their stored value on conflict,
    so insert-only fields (e.g. an initial target) are written exactly once.
    ``merge`` receives the ``excluded`` row and returns SQL expressions for
    columns whose update depends on the stored value.
    """
    dialect = db.get_bind().dialect.name
    try:
        insert = _INSERTS[dialect]
    except KeyError:
        raise NotImplementedError(f"upsert is not supported on {dialect}")

    stmt = insert(model).values(**values)
    set_ = {name: stmt.excluded[name] for name in update_columns}
    if merge is not None:
        set_.update(merge(stmt.excluded))
    stmt = stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=set_)
    return db.execute(stmt)
