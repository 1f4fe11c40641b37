import requests
import uuid
from typing import Optional
from urllib.parse import quote
from werkzeug.utils import secure_filename
from config.config import Config
from educhain.utils.logger import get_logger

logger = get_logger(__name__)


class StorageClient:
    """Wrapper for the object storage REST API holding uploaded files"""

    def __init__(self, base_url: str = None, api_key: str = None, bucket: str = None):
        self.base_url = (base_url or Config.STORAGE_URL or '').rstrip('/')
        self.api_key = api_key or Config.STORAGE_API_KEY
        self.bucket = bucket or Config.STORAGE_BUCKET
        self.headers = {}

        if self.api_key:
            self.headers['Authorization'] = f"Bearer {self.api_key}"
        if not self.base_url:
            logger.warning("Storage URL not configured")

    @staticmethod
    def build_path(folder: str, file_name: str) -> str:
        """Unique object path that keeps the uploaded file name readable"""
        safe_name = secure_filename(file_name) or 'file'
        return f"{folder}/{uuid.uuid4().hex}-{safe_name}"

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/object/public/{self.bucket}/{quote(path)}"

    def upload(self, path: str, content: bytes, content_type: str = None) -> Optional[str]:
        """Store a file and return its public URL"""
        if not self.base_url:
            logger.error("Storage URL not configured")
            return None

        url = f"{self.base_url}/object/{self.bucket}/{quote(path)}"
        headers = dict(self.headers)
        headers['Content-Type'] = content_type or 'application/octet-stream'

        try:
            response = requests.post(url, data=content, headers=headers, timeout=30)
            response.raise_for_status()
            return self.public_url(path)
        except requests.exceptions.RequestException as e:
            logger.error(f"Storage upload error for {path}: {str(e)}")
            if getattr(e, 'response', None) is not None:
                logger.error(f"Response: {e.response.text}")
            return None

    def delete(self, file_url: str) -> bool:
        """Remove a previously uploaded file by its public URL"""
        prefix = f"{self.base_url}/object/public/{self.bucket}/"
        if not self.base_url or not file_url.startswith(prefix):
            logger.error(f"Not a managed storage URL: {file_url}")
            return False

        path = file_url[len(prefix):]
        try:
            response = requests.delete(
                f"{self.base_url}/object/{self.bucket}/{path}",
                headers=self.headers,
                timeout=30
            )
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as e:
            logger.error(f"Storage delete error for {path}: {str(e)}")
            return False
