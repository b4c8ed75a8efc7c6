import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

import database
import models
import schemas
from config import Settings, load_settings
from errors import InternalError, NotFoundError, TaskServiceError, ValidationError
from logging_setup import setup_logging
from store import TaskStore

logger = logging.getLogger(__name__)

# Path ids outside the range of the integer column cannot match a row.
_ID_RE = re.compile(r"[+-]?\d+", re.ASCII)
_ID_MIN = -(2**31)
_ID_MAX = 2**31 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_task_id(raw: str) -> int:
    """Malformed ids are reported the same way as ids with no row."""
    if not _ID_RE.fullmatch(raw):
        raise NotFoundError(f"unparseable task id {raw!r}")
    task_id = int(raw)
    if not _ID_MIN <= task_id <= _ID_MAX:
        raise NotFoundError(f"task id {raw} out of range")
    return task_id


# Dependencies to reach the injected store and clock
def get_store(request: Request) -> TaskStore:
    return request.app.state.store


def get_clock(request: Request):
    return request.app.state.clock


_ERRORS_400 = {400: {"model": schemas.ErrorResponse}}
_ERRORS_404 = {404: {"model": schemas.ErrorResponse}}
_ERRORS_500 = {500: {"model": schemas.ErrorResponse}}

router = APIRouter(responses=_ERRORS_500)


@router.post("/tasks", response_model=schemas.Task, status_code=status.HTTP_201_CREATED, responses=_ERRORS_400)
def create_task(payload: schemas.TaskIn, store: TaskStore = Depends(get_store), clock=Depends(get_clock)):
    now = clock()
    task = models.Task(
        title=payload.title,
        description=payload.description,
        due_date=payload.due_date,
        created_at=now,
        updated_at=now,
    )
    return store.insert(task)


@router.get("/tasks", response_model=List[schemas.Task])
def get_tasks(store: TaskStore = Depends(get_store)):
    return store.fetch_all()


@router.get("/tasks/{task_id}", response_model=schemas.Task, responses=_ERRORS_404)
def get_task(task_id: str, store: TaskStore = Depends(get_store)):
    return store.fetch_one(parse_task_id(task_id))


@router.put("/tasks/{task_id}", response_model=schemas.Task, responses={**_ERRORS_400, **_ERRORS_404})
def update_task(
    task_id: str,
    payload: schemas.TaskIn,
    store: TaskStore = Depends(get_store),
    clock=Depends(get_clock),
):
    tid = parse_task_id(task_id)
    count = store.update_one(
        tid,
        title=payload.title,
        description=payload.description,
        due_date=payload.due_date,
        updated_at=clock(),
    )
    if count == 0:
        raise NotFoundError(f"task {tid} does not exist")
    # Re-read so created_at reflects the stored row.
    return store.fetch_one(tid)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT, responses=_ERRORS_404)
def delete_task(task_id: str, store: TaskStore = Depends(get_store)):
    tid = parse_task_id(task_id)
    if store.delete_one(tid) == 0:
        raise NotFoundError(f"task {tid} does not exist")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def task_service_error_handler(request: Request, exc: TaskServiceError):
    if isinstance(exc, InternalError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s -> %d: %s", request.method, request.url.path, exc.status_code, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"error": ValidationError.message},
    )


async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=InternalError.status_code,
        content={"error": InternalError.message},
    )


def create_app(
    store: Optional[TaskStore] = None, settings: Optional[Settings] = None, clock=utcnow
) -> FastAPI:
    """
    Build the HTTP application around a TaskStore.

    With no store given, one is built from settings and the tasks table is
    created on startup if it is missing.
    """
    engine = None
    if store is None:
        settings = settings or load_settings()
        engine = database.make_engine(settings.sqlalchemy_url)
        store = TaskStore(database.make_session_factory(engine))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if engine is not None:
            # init_db sleeps between retries; keep it off the event loop.
            await run_in_threadpool(database.init_db, engine)
        yield
        if engine is not None:
            engine.dispose()

    app = FastAPI(title="Task Service", lifespan=lifespan)
    app.state.store = store
    app.state.clock = clock

    app.add_exception_handler(TaskServiceError, task_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
    app.include_router(router)
    return app


def run() -> None:
    settings = load_settings()
    setup_logging(settings.log_level)
    app = create_app(settings=settings)
    logger.info("Listening on :%d", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
