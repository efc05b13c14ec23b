import logging
import math
from typing import Any, Dict, Generic, List, Optional, TypeVar

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException

from storefront.core.errors import StorefrontError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: str = ""
    data: Optional[T] = None


class PageMeta(BaseModel):
    current_page: int
    per_page: int
    total: int
    last_page: int


class Paginated(BaseModel, Generic[T]):
    success: bool = True
    message: str = ""
    data: List[T] = []
    meta: PageMeta


def paginate(db: Session, stmt: Select, schema, page: int, per_page: int, message: str = "") -> Paginated:
    """Run ``stmt`` for one page and wrap the rows, validated through ``schema``."""
    total = db.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()
    rows = db.execute(stmt.offset((page - 1) * per_page).limit(per_page)).scalars().unique().all()
    return Paginated[schema](
        message=message,
        data=[schema.model_validate(r) for r in rows],
        meta=PageMeta(
            current_page=page,
            per_page=per_page,
            total=total,
            last_page=max(1, math.ceil(total / per_page)),
        ),
    )


def error_body(message: str, errors: Optional[Dict[str, List[str]]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message, "data": None}
    if errors:
        body["errors"] = errors
    return body


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form")]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error(request: Request, exc: StorefrontError):
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.errors))

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors: Dict[str, List[str]] = {}
        for err in exc.errors():
            errors.setdefault(_field_name(err.get("loc", ())), []).append(err.get("msg", "Invalid value"))
        logger.info("Rejected %s %s: %s", request.method, request.url.path, errors)
        return JSONResponse(
            status_code=422,
            content=jsonable_encoder(error_body("The given data was invalid.", errors)),
        )
