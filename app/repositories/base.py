# app/repositories/base.py
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

from sqlalchemy.orm import Session

from app.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    def __init__(self, model: type[ModelType], db: Session):
        self.model = model
        self.db = db

    def query(self):
        return self.db.query(self.model)

    def get(self, id: int) -> Optional[ModelType]:
        return self.query().filter(self.model.id == id).first()

    def exists(self, id: int) -> bool:
        return self.query().filter(self.model.id == id).count() > 0

    def find_all(self, *criteria, order_by: Sequence = (), limit: Optional[int] = None,
                 offset: Optional[int] = None, options: Sequence = ()) -> List[ModelType]:
        query = self.query()
        if options:
            query = query.options(*options)
        if criteria:
            query = query.filter(*criteria)
        if order_by:
            query = query.order_by(*order_by)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(self, *criteria) -> int:
        query = self.query()
        if criteria:
            query = query.filter(*criteria)
        return query.count()

    def paginate(self, offset: int, limit: int, *criteria, order_by: Sequence = (),
                 options: Sequence = ()) -> Tuple[List[ModelType], int]:
        total = self.count(*criteria)
        rows = self.find_all(*criteria, order_by=order_by, limit=limit, offset=offset, options=options)
        return rows, total

    def create(self, obj_in: Dict[str, Any]) -> ModelType:
        obj = self.model(**obj_in)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def update(self, id: int, obj_in: Dict[str, Any]) -> int:
        """Partial update of the supplied fields; returns the affected row count"""
        if not obj_in:
            return 0
        affected = (
            self.query()
            .filter(self.model.id == id)
            .update(dict(obj_in), synchronize_session="fetch")
        )
        self.db.commit()
        return affected

    def delete(self, id: int) -> int:
        # ORM delete so relationship cascades run
        obj = self.get(id)
        if not obj:
            return 0
        self.db.delete(obj)
        self.db.commit()
        return 1
