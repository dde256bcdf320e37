# storefront/core/storage_utils.py
import time

from storefront.core.supabase_client import supabase_admin

BUCKET = "products"


def upload_to_storage(path: str, file_bytes: bytes, content_type: str) -> str:
    """
    Upload raw bytes to Supabase Storage and return a public URL.

    If a file already exists at this path, it will be overwritten
    thanks to the 'upsert' option.

    Args:
        path: Full object path inside the bucket.
              Example: "images/1718000000000_avakai.png"
        file_bytes: File content in bytes.
        content_type: MIME type stored alongside the object.

    Returns:
        Public URL to the uploaded file.

    Raises:
        Any exception raised by Supabase client if upload fails.
    """
    bucket = supabase_admin().storage.from_(BUCKET)
    bucket.upload(
        path,
        file_bytes,
        {"upsert": "true", "content-type": content_type},
    )
    return bucket.get_public_url(path)


def generate_object_path(filename: str, prefix: str = "images/") -> str:
    """
    Build a storage path that will not collide with earlier uploads
    of a file with the same name.

    Example:
        generate_object_path("avakai jar.png")
        -> 'images/1718000000000_avakai-jar.png'
    """
    safe_name = "-".join(filename.strip().split()) or "upload"
    return f"{prefix}{int(time.time() * 1000)}_{safe_name}"
