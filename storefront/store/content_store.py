"""
CMS page content: a key -> JSON table fronted by Redis.

Entries are cached forever and refreshed on write. ``save`` is the only write
path; it refreshes the per-key entry and drops the aggregate so that
``get_all`` rebuilds it from the table on next read.
"""
import json
import logging
from typing import Any, Dict, Optional
from redis import Redis
from sqlalchemy import select
from sqlalchemy.orm import Session
from storefront.core.config import settings
from storefront.db.models import Content

logger = logging.getLogger(__name__)

ALL_CONTENTS_KEY = "contents"

def get_client() -> Redis:
    return Redis.from_url(settings.REDIS_URL, decode_responses=True)

def content_key(key: str) -> str:
    return f"content:{key}"

def get(db: Session, key: str) -> Optional[Any]:
    r = get_client()
    cached = r.get(content_key(key))
    if cached is not None:
        return json.loads(cached)
    row = db.get(Content, key)
    if row is None:
        return None
    r.set(content_key(key), json.dumps(row.value))
    return row.value

def get_all(db: Session) -> Dict[str, Any]:
    r = get_client()
    cached = r.get(ALL_CONTENTS_KEY)
    if cached is not None:
        return json.loads(cached)
    contents = {c.key: c.value for c in db.execute(select(Content).order_by(Content.key)).scalars()}
    r.set(ALL_CONTENTS_KEY, json.dumps(contents))
    return contents

def save(db: Session, key: str, value: Any) -> Content:
    row = db.get(Content, key)
    if row is None:
        row = Content(key=key, value=value)
        db.add(row)
    else:
        row.value = value
    db.commit()
    db.refresh(row)

    r = get_client()
    r.set(content_key(key), json.dumps(value))
    r.delete(ALL_CONTENTS_KEY)
    logger.info("Saved content %r", key)
    return row

def delete(db: Session, key: str) -> bool:
    row = db.get(Content, key)
    if row is None:
        return False
    db.delete(row)
    db.commit()
    get_client().delete(content_key(key), ALL_CONTENTS_KEY)
    logger.info("Deleted content %r", key)
    return True
