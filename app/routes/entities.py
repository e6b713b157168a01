"""Creation endpoints. Same schemas and writer as import ``create`` mode."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.dependencies import get_db, require_admin
from app.schemas.common import ErrorResponse
from app.schemas.entities import BlogPostIn, CategoryIn, ProductIn, UserIn
from db.enums import EntityName, ImportMode
from kureno.services._types import RecordDict
from kureno.services.records import RecordWriter, WriteOutcome
from kureno.services.registry import get_spec

router: APIRouter = APIRouter(
    prefix="/api/admin",
    tags=["entities"],
    dependencies=[Depends(require_admin)],
)

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def _create(db: Session, entity: EntityName, data: BaseModel) -> RecordDict:
    outcome: WriteOutcome = RecordWriter(db).write(entity, data, ImportMode.CREATE)
    db.refresh(outcome.row)
    return get_spec(entity).serialize(outcome.row)


@router.post("/categories", status_code=201, responses=_ERRORS)
def create_category(body: CategoryIn, db: Session = Depends(get_db)):
    return _create(db, EntityName.CATEGORIES, body)


@router.post("/products", status_code=201, responses=_ERRORS)
def create_product(body: ProductIn, db: Session = Depends(get_db)):
    return _create(db, EntityName.PRODUCTS, body)


@router.post("/users", status_code=201, responses=_ERRORS)
def create_user(body: UserIn, db: Session = Depends(get_db)):
    return _create(db, EntityName.USERS, body)


@router.post("/blog", status_code=201, responses=_ERRORS)
def create_blog_post(body: BlogPostIn, db: Session = Depends(get_db)):
    return _create(db, EntityName.BLOG, body)
