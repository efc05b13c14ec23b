import io, uuid
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple
from minio import Minio
from storefront.core.config import settings
from storefront.core.errors import ValidationFailed

PAYMENT_PROOF_TYPES = {'jpg': 'image/jpeg', 'jpeg': 'image/jpeg', 'png': 'image/png', 'pdf': 'application/pdf'}
PRODUCT_IMAGE_TYPES = {'jpg': 'image/jpeg', 'jpeg': 'image/jpeg', 'png': 'image/png', 'webp': 'image/webp'}
MAX_UPLOAD_BYTES = 5 * 1024 * 1024

@dataclass
class Upload:
    filename: str
    content_type: str
    data: bytes

    @property
    def ext(self) -> str:
        return self.filename.rsplit('.', 1)[-1].lower() if '.' in self.filename else ''

def validate_upload(upload: Upload, field: str, allowed: Dict[str, str], max_bytes: int = MAX_UPLOAD_BYTES) -> None:
    errors: List[str] = []
    if upload.ext not in allowed:
        errors.append(f"The {field.replace('_', ' ')} must be a file of type: {', '.join(allowed)}.")
    if len(upload.data) > max_bytes:
        errors.append(f"The {field.replace('_', ' ')} file size cannot exceed {max_bytes // (1024 * 1024)}MB.")
    if not upload.data:
        errors.append(f"The {field.replace('_', ' ')} must not be empty.")
    if errors:
        raise ValidationFailed({field: errors})

def _client():
    return Minio(settings.S3_ENDPOINT.replace('http://','').replace('https://',''), access_key=settings.S3_ACCESS_KEY, secret_key=settings.S3_SECRET_KEY, secure=settings.S3_SECURE)

def ensure_bucket():
    c = _client()
    if not c.bucket_exists(settings.S3_BUCKET):
        c.make_bucket(settings.S3_BUCKET)

def upload_bytes(data: bytes, content_type: str, prefix: str, ext: str = '') -> Tuple[str, str]:
    ensure_bucket()
    key = f"{prefix}/{uuid.uuid4().hex}{'.' + ext if ext else ''}"
    c = _client()
    c.put_object(settings.S3_BUCKET, key, io.BytesIO(data), length=len(data), content_type=content_type)
    return key, public_url(key)

def public_url(key: str) -> str:
    scheme = 'https' if settings.S3_SECURE else 'http'
    return f"{scheme}://{settings.S3_ENDPOINT.replace('http://','').replace('https://','')}/{settings.S3_BUCKET}/{key}"

def object_key(url: str) -> str:
    """Recover the object key from a URL built by ``public_url``."""
    return url.split(f"/{settings.S3_BUCKET}/", 1)[-1]

def remove_objects(keys: Iterable[str]) -> None:
    c = _client()
    for key in keys:
        c.remove_object(settings.S3_BUCKET, key)

def store_payment_proof(upload: Upload) -> str:
    _, url = upload_bytes(upload.data, PAYMENT_PROOF_TYPES.get(upload.ext, upload.content_type), 'payment_proofs', upload.ext)
    return url

def store_product_image(upload: Upload) -> Tuple[str, str]:
    return upload_bytes(upload.data, PRODUCT_IMAGE_TYPES.get(upload.ext, upload.content_type), 'products', upload.ext)
