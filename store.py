import logging
from contextlib import contextmanager
from typing import Iterator, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
import schemas
from errors import InternalError, NotFoundError

logger = logging.getLogger(__name__)


class TaskStore:
    """
    Persistence adapter for the tasks table.

    Every method runs a single statement in its own short-lived session drawn
    from the shared session factory. Store failures are logged and re-raised
    as InternalError; a missing row on fetch_one is NotFoundError. update_one
    and delete_one report affected rows and leave "zero rows" to the caller.
    """

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self, op: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Task store %s failed", op)
            raise InternalError(f"{op} failed") from exc
        finally:
            session.close()

    def insert(self, task: models.Task) -> schemas.Task:
        with self._session("insert") as session:
            session.add(task)
            session.flush()
            session.refresh(task)
            stored = schemas.Task.model_validate(task)
        logger.debug("Inserted task id=%s", stored.id)
        return stored

    def fetch_all(self) -> List[schemas.Task]:
        with self._session("fetch_all") as session:
            rows = session.query(models.Task).order_by(models.Task.id.asc()).all()
            return [schemas.Task.model_validate(r) for r in rows]

    def fetch_one(self, task_id: int) -> schemas.Task:
        with self._session("fetch_one") as session:
            row = session.query(models.Task).filter(models.Task.id == task_id).first()
            if row is None:
                raise NotFoundError(f"task {task_id} does not exist")
            return schemas.Task.model_validate(row)

    def update_one(self, task_id: int, *, title, description, due_date, updated_at) -> int:
        with self._session("update_one") as session:
            count = (
                session.query(models.Task)
                .filter(models.Task.id == task_id)
                .update(
                    {
                        models.Task.title: title,
                        models.Task.description: description,
                        models.Task.due_date: due_date,
                        models.Task.updated_at: updated_at,
                    },
                    synchronize_session=False,
                )
            )
        logger.debug("Updated task id=%s rows=%s", task_id, count)
        return count

    def delete_one(self, task_id: int) -> int:
        with self._session("delete_one") as session:
            count = (
                session.query(models.Task)
                .filter(models.Task.id == task_id)
                .delete(synchronize_session=False)
            )
        logger.debug("Deleted task id=%s rows=%s", task_id, count)
        return count
