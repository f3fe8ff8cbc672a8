import os
import random
import time

from starlette.datastructures import UploadFile

URL_PREFIX = "/uploads"


class InvalidUpload(ValueError):
    pass


def save_task_image(upload: UploadFile, upload_dir: str, max_bytes: int) -> str:
    """
    Speichert ein hochgeladenes Bild und gibt die öffentliche URL zurück.

    Nur image/* Content-Types, höchstens max_bytes. Dateiname:
    image-<millis>-<zufall><endung>, damit nichts überschrieben wird.
    """
    if not (upload.content_type or "").startswith("image/"):
        raise InvalidUpload("Only image files are allowed")

    data = upload.file.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise InvalidUpload(f"Image exceeds {max_bytes} bytes")

    ext = os.path.splitext(upload.filename or "")[1].lower()
    filename = f"image-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"
    os.makedirs(upload_dir, exist_ok=True)
    with open(os.path.join(upload_dir, filename), "wb") as fh:
        fh.write(data)
    return f"{URL_PREFIX}/{filename}"


def delete_task_image(url: str, upload_dir: str) -> None:
    """Entfernt ein zuvor gespeichertes Bild, z.B. wenn die Aufgabe nicht gespeichert wurde."""
    path = os.path.join(upload_dir, os.path.basename(url))
    if os.path.exists(path):
        os.remove(path)
