"""Secure image handling and local storage for complaint photos."""
import io
import logging
import os
import uuid

from PIL import Image, UnidentifiedImageError
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from utils.errors import UploadError, ValidationError

ALLOWED_IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5 MB

# Pillow format name -> extensions it may arrive under.
_FORMAT_EXTENSIONS = {
    "JPEG": {"jpg", "jpeg"},
    "PNG": {"png"},
    "GIF": {"gif"},
    "WEBP": {"webp"},
}


def _fail_if(condition: bool, message: str) -> None:
    if condition:
        raise ValidationError(message)


def validate_image_file(file: FileStorage, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> tuple[bytes, str]:
    """Return the image bytes and normalized extension, or raise ValidationError."""
    _fail_if(not file, "No file provided")
    filename = secure_filename(file.filename or "")
    _fail_if(not filename or "." not in filename, "Unsupported file name")
    ext = filename.rsplit(".", 1)[1].lower()
    _fail_if(ext not in ALLOWED_IMAGE_EXTENSIONS, "Invalid file type. Only jpg, png, gif, webp allowed.")

    file.stream.seek(0, os.SEEK_END)
    size = file.stream.tell()
    file.stream.seek(0)
    _fail_if(size == 0, "Empty file")
    _fail_if(size > max_bytes, "File exceeds size limits")

    content = file.read()
    _fail_if(len(content) > max_bytes, "File exceeds size limits")

    try:
        with Image.open(io.BytesIO(content)) as img:
            detected = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValidationError("Invalid image data") from exc
    _fail_if(ext not in _FORMAT_EXTENSIONS.get(detected, set()), "Invalid image data")

    file.stream.seek(0)
    return content, "jpg" if ext == "jpeg" else ext


class LocalPhotoStorage:
    """Stores photos on local disk and hands back a public reference URL."""

    def __init__(self, upload_dir: str, base_url: str, logger: logging.Logger, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES):
        self.upload_dir = upload_dir
        self.base_url = base_url.rstrip("/")
        self.logger = logger
        self.max_bytes = max_bytes

    def upload(self, file: FileStorage) -> str:
        image_bytes, ext = validate_image_file(file, max_bytes=self.max_bytes)
        name = secure_filename(f"{uuid.uuid4().hex}.{ext}")
        path = os.path.join(self.upload_dir, name)
        try:
            os.makedirs(self.upload_dir, exist_ok=True)
            with open(path, "wb") as f:
                f.write(image_bytes)
                f.flush()
                os.fsync(f.fileno())
        except OSError as exc:
            self.logger.exception("Photo upload failed", extra={"upload_path": path})
            raise UploadError() from exc
        return f"{self.base_url}/{name}"

    def discard(self, reference: str) -> None:
        """Remove a stored photo; used when the complaint referencing it was never saved."""
        name = secure_filename(reference.rsplit("/", 1)[-1])
        if not name:
            return
        try:
            os.remove(os.path.join(self.upload_dir, name))
        except FileNotFoundError:
            return
        except OSError:
            self.logger.warning("Could not discard orphaned photo", extra={"photo": name}, exc_info=True)
