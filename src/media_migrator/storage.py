import mimetypes
from pathlib import Path
from typing import Union

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from media_migrator.config import Settings
from media_migrator.exceptions import StorageError
from media_migrator.urls import object_url

class ObjectStorage:
    def __init__(self, settings: Settings):
        self.endpoint = settings.MINIO_ENDPOINT
        self.bucket = settings.MINIO_BUCKET
        scheme = "https" if settings.MINIO_SECURE else "http"
        try:
            self.s3_client = boto3.client(
                "s3",
                aws_access_key_id=settings.MINIO_ACCESS_KEY,
                aws_secret_access_key=settings.MINIO_SECRET_KEY,
                region_name=settings.MINIO_REGION,
                endpoint_url=f"{scheme}://{self.endpoint}",
            )
        except (BotoCoreError, ValueError) as e:
            raise StorageError(f"Could not create storage client for {self.endpoint}: {e}") from e

    def upload(self, local_path: Union[Path, str], key: str) -> str:
        content_type = mimetypes.guess_type(str(local_path))[0] or "application/octet-stream"
        try:
            self.s3_client.upload_file(
                str(local_path),
                self.bucket,
                key,
                ExtraArgs={"ContentType": content_type}
            )
            return key
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as e:
            raise StorageError(f"Upload of {local_path} to {self.bucket}/{key} failed: {e}") from e

    def public_url(self, key: str) -> str:
        return object_url(key, self.endpoint, self.bucket)
