"""
Image uploads through pre-signed URLs.

The signer function hands out a time-limited PUT URL and the storage
key it generated. The bytes go straight to object storage and the
public URL is the configured public domain plus the key.
"""
import logging
from dataclasses import dataclass

import requests

from .conf import blog_settings

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """An image could not be uploaded."""


class UploadNotConfigured(UploadError):
    """The signer URL or the public storage domain is missing."""


@dataclass
class SignedUpload:
    signed_url: str
    key: str


class ImageUploader:
    """Client for the upload signer and the object storage bucket."""

    def __init__(self, signer_url=None, public_base_url=None, timeout=None, session=None):
        self.signer_url = signer_url
        self.public_base_url = public_base_url
        self.timeout = timeout or blog_settings.UPLOAD_TIMEOUT
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls):
        return cls(
            signer_url=blog_settings.UPLOAD_SIGNER_URL,
            public_base_url=blog_settings.STORAGE_PUBLIC_URL,
        )

    @property
    def is_configured(self):
        return bool(self.signer_url and self.public_base_url)

    def request_upload_url(self, file_name, content_type, auth_token=None):
        """Ask the signer for a pre-signed PUT URL."""
        if not self.signer_url:
            raise UploadNotConfigured("No upload signer URL configured")

        headers = {}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"

        try:
            response = self.session.post(
                self.signer_url,
                json={"fileName": file_name, "fileType": content_type},
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise UploadError(f"Could not get an upload URL: {exc}") from exc

        try:
            return SignedUpload(signed_url=data["signedUrl"], key=data["fileName"])
        except (KeyError, TypeError) as exc:
            raise UploadError(f"Malformed signer response: {data!r}") from exc

    def put(self, signed, data, content_type):
        """PUT the file bytes to the pre-signed URL."""
        try:
            response = self.session.put(
                signed.signed_url,
                data=data,
                headers={"Content-Type": content_type},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise UploadError(f"Failed to upload image: {exc}") from exc

        if not response.ok:
            raise UploadError(f"Failed to upload image: storage answered {response.status_code}")

    def public_url(self, key):
        if not self.public_base_url:
            raise UploadNotConfigured("No public storage URL configured")
        return f"{self.public_base_url.rstrip('/')}/{key}"

    def upload(self, uploaded_file, auth_token=None):
        """
        Upload a Django UploadedFile and return its public URL.

        The object is not removed if a later step fails.
        """
        if not self.public_base_url:
            raise UploadNotConfigured("No public storage URL configured")

        content_type = getattr(uploaded_file, "content_type", None) or "application/octet-stream"
        signed = self.request_upload_url(uploaded_file.name, content_type, auth_token=auth_token)

        uploaded_file.seek(0)
        self.put(signed, uploaded_file.read(), content_type)

        url = self.public_url(signed.key)
        logger.info("Uploaded %s to %s", uploaded_file.name, url)
        return url


def get_uploader():
    return ImageUploader.from_settings()
