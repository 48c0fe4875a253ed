"""Logo storage: upload, replace, delete and best-effort optimization.

Storing the file and optimizing it are separate steps; a failed resize or
re-encode leaves the uploaded original in place and only logs a warning.
"""

import secrets
import string
import time
from io import BytesIO
from pathlib import PurePath

import structlog
from PIL import Image, UnidentifiedImageError

from minicrm.config import settings
from minicrm.uploads.storage import PublicStorage
from minicrm.validation import UploadedFile

logger = structlog.get_logger()

# Pillow format name -> file extension
IMAGE_EXTENSIONS = {"JPEG": "jpg", "PNG": "png", "GIF": "gif", "BMP": "bmp", "WEBP": "webp"}

RANDOM_ALPHABET = string.ascii_letters + string.digits


def detect_image_format(data: bytes) -> str | None:
    try:
        with Image.open(BytesIO(data)) as image:
            return image.format
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
        return None


class FileUploadService:
    def __init__(
        self,
        storage: PublicStorage,
        directory: str = settings.LOGO_DIRECTORY,
        max_size_kb: int = settings.LOGO_MAX_SIZE_KB,
        allowed_types: list[str] | None = None,
        min_dimension: int = settings.LOGO_MIN_DIMENSION,
        max_dimension: int = settings.LOGO_MAX_DIMENSION,
        resize_max: int = settings.LOGO_RESIZE_MAX,
        quality: int = settings.LOGO_QUALITY,
        optimize: bool = settings.OPTIMIZE_IMAGES,
    ):
        self.storage = storage
        self.directory = directory.strip("/")
        self.max_size_kb = max_size_kb
        self.allowed_types = allowed_types or settings.logo_allowed_types
        self.min_dimension = min_dimension
        self.max_dimension = max_dimension
        self.resize_max = resize_max
        self.quality = quality
        self.optimize = optimize

    def upload_logo(self, file: UploadedFile, previous_path: str | None = None) -> str:
        """Store ``file`` under the logo directory and return its relative path.

        ``previous_path`` is removed first; failing to remove it does not stop
        the upload.
        """
        if previous_path:
            self.delete_file_quietly(previous_path)

        path = f"{self.directory}/{self.generate_unique_filename(file)}"
        self.storage.put(path, file.data)
        logger.info("logo_stored", path=path, size=file.size)

        if self.optimize:
            self.optimize_image(path)
        return path

    def delete_file(self, path: str) -> bool:
        deleted = self.storage.delete(path)
        if deleted:
            logger.info("file_deleted", path=path)
        return deleted

    def delete_file_quietly(self, path: str) -> bool:
        try:
            return self.delete_file(path)
        except (OSError, ValueError) as exc:
            logger.warning("file_delete_failed", path=path, error=str(exc))
            return False

    def file_exists(self, path: str) -> bool:
        return self.storage.exists(path)

    def get_file_size(self, path: str) -> int:
        if not self.file_exists(path):
            return 0
        return self.storage.size(path)

    def get_file_url(self, path: str) -> str | None:
        if not self.file_exists(path):
            return None
        return self.storage.url(path)

    def generate_unique_filename(self, file: UploadedFile) -> str:
        extension = PurePath(file.filename).suffix.lstrip(".").lower()
        if not extension:
            extension = IMAGE_EXTENSIONS.get(detect_image_format(file.data) or "", "bin")
        suffix = "".join(secrets.choice(RANDOM_ALPHABET) for _ in range(8))
        return f"company_logo_{int(time.time())}_{suffix}.{extension}"

    def optimize_image(self, path: str) -> None:
        """Shrink to fit ``resize_max`` (aspect ratio kept) and re-encode in place."""
        try:
            full_path = self.storage.path(path)
            with Image.open(full_path) as image:
                image.load()
                image_format = image.format
                if image.width > self.resize_max or image.height > self.resize_max:
                    image.thumbnail((self.resize_max, self.resize_max))
                image.save(full_path, format=image_format, quality=self.quality)
        except Exception as exc:
            logger.warning("image_optimization_failed", path=path, error=str(exc))

    def get_upload_constraints(self) -> dict:
        return {
            "max_size_mb": self.max_size_kb / 1024,
            "min_width": self.min_dimension,
            "min_height": self.min_dimension,
            "allowed_types": list(self.allowed_types),
            "max_width": self.max_dimension,
            "max_height": self.max_dimension,
        }

    def validate_logo(self, file: UploadedFile) -> list[str]:
        """Type and size rules applied to a logo before anything is stored."""
        errors = []
        image_format = detect_image_format(file.data)
        if image_format is None:
            errors.append("Logo must be an image file.")
        if IMAGE_EXTENSIONS.get(image_format or "") not in self.allowed_types:
            errors.append("Logo must be a JPEG, PNG, or GIF file.")
        if file.size > self.max_size_kb * 1024:
            errors.append(f"Logo must not exceed {self.max_size_kb / 1024:g}MB.")
        return errors

    def validate_image_dimensions(self, file: UploadedFile) -> list[str]:
        try:
            with Image.open(BytesIO(file.data)) as image:
                width, height = image.size
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError):
            return ["Unable to process image file."]

        errors = []
        if width < self.min_dimension or height < self.min_dimension:
            errors.append(f"Image must be at least {self.min_dimension}x{self.min_dimension} pixels.")
        if width > self.max_dimension or height > self.max_dimension:
            errors.append(f"Image must not exceed {self.max_dimension}x{self.max_dimension} pixels.")
        return errors
