import json
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

from fastapi import Depends, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from storefront.core.config import settings
from storefront.core.errors import ValidationFailed
from storefront.core.security import decode_token
from storefront.db.models import Role, User
from storefront.db.session import SessionLocal
from storefront.services.storage import Upload

security = HTTPBearer(auto_error=False)

M = TypeVar("M", bound=BaseModel)

def get_db():
    db = SessionLocal()
    try: yield db
    finally: db.close()

def get_current_user(request: Request, creds: Optional[HTTPAuthorizationCredentials] = Depends(security), db: Session = Depends(get_db)) -> User:
    token = request.cookies.get(settings.AUTH_COOKIE_NAME) or (creds.credentials if creds else None)
    if not token: raise HTTPException(status_code=401, detail='Not authenticated')
    try:
        payload = decode_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail='Invalid token')
    if payload.get('type') != 'access':
        raise HTTPException(status_code=401, detail='Invalid access token')
    try:
        user = db.get(User, int(payload.get('sub')))
    except (TypeError, ValueError):
        user = None
    if not user: raise HTTPException(status_code=401, detail='User not found')
    return user

def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != Role.ADMIN.value:
        raise HTTPException(status_code=403, detail='Admin only')
    return user

class PageParams(BaseModel):
    page: int
    per_page: int

def page_params(page: int = Query(1, ge=1), per_page: int = Query(settings.DEFAULT_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE)) -> PageParams:
    return PageParams(page=page, per_page=per_page)

# Form fields that carry more than a scalar.
_LIST_FIELDS = {'cart_ids'}
_JSON_FIELDS = {'order_details'}

async def read_payload(request: Request, file_field: str) -> Tuple[Dict[str, Any], Optional[Upload]]:
    """Read a JSON or multipart body.

    Multipart bodies may repeat list fields (``cart_ids`` or ``cart_ids[]``),
    carry nested structures as JSON strings, and attach one file under
    ``file_field``.
    """
    content_type = request.headers.get('content-type', '')
    if not content_type.startswith('multipart/form-data'):
        body = await request.body()
        if not body:
            return {}, None
        try:
            data = json.loads(body)
        except ValueError:
            raise ValidationFailed({'body': ['The request body must be valid JSON.']})
        if not isinstance(data, dict):
            raise ValidationFailed({'body': ['The request body must be a JSON object.']})
        return data, None

    form = await request.form()
    data: Dict[str, Any] = {}
    upload: Optional[Upload] = None
    for key, value in form.multi_items():
        name = key[:-2] if key.endswith('[]') else key
        if isinstance(value, UploadFile):
            if name == file_field:
                upload = Upload(filename=value.filename or '', content_type=value.content_type or 'application/octet-stream', data=await value.read())
            continue
        if name == '_method':
            continue
        if name in _LIST_FIELDS:
            data.setdefault(name, []).append(value)
        elif name in _JSON_FIELDS:
            try:
                data[name] = json.loads(value)
            except ValueError:
                raise ValidationFailed({name: [f'The {name} field must be valid JSON.']})
        else:
            data[name] = value
    return data, upload

def parse_payload(model: Type[M], data: Dict[str, Any]) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise RequestValidationError([{**err, 'loc': ('body',) + tuple(err['loc'])} for err in e.errors()])
