import io
import logging
from logging import Logger
from pathlib import Path
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws
from mypy_boto3_s3.client import S3Client
from PIL import Image as PILImage
from pyvips import Image  # type: ignore

from imgcache.imageservice.index import ImageService
from imgcache.imageservice.storage import BlobStore
from imgcache.log import MyJsonFormatter

BUCKET = 'imgcache-test'
REGION = 'us-east-1'


def make_image(width: int, height: int, suffix: str) -> bytes:
  if suffix == '.ico':
    buf = io.BytesIO()
    PILImage.new('RGB', (width, height)).save(buf, format='ICO', sizes=[(width, height)])
    return buf.getvalue()
  return Image.black(width, height, bands=3).write_to_buffer(suffix)


def image_size(data: bytes) -> tuple[int, int]:
  with PILImage.open(io.BytesIO(data)) as image:
    return image.size


@pytest.fixture
def aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
  monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
  monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
  monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
  monkeypatch.setenv('AWS_DEFAULT_REGION', REGION)
  for name in ['AWS_PROFILE', 'AWS_ROLE', 'AWS_ENDPOINT_URL', 'IMAGE_BUCKET', 'AWS_REGION']:
    monkeypatch.delenv(name, raising=False)
  monkeypatch.setattr(ImageService, 'instances', {})


@pytest.fixture
def s3(aws_env: None) -> Generator[S3Client, None, None]:
  with mock_aws():
    client = boto3.client('s3', region_name=REGION)
    client.create_bucket(Bucket=BUCKET)
    yield client


@pytest.fixture
def logger(request: Any, tmp_path: Path) -> Generator[Logger, None, None]:
  log = logging.getLogger(f'imgcache.test.{request.node.name}')

  log_file = open(tmp_path / 'test.log', 'w')

  log_handler = logging.StreamHandler()
  log_handler.setFormatter(MyJsonFormatter())
  log_handler.setLevel(logging.DEBUG)
  log_handler.setStream(log_file)
  log.addHandler(log_handler)
  log.setLevel(logging.DEBUG)

  yield log

  log.removeHandler(log_handler)
  log_file.close()


@pytest.fixture
def store(logger: Logger, s3: S3Client) -> BlobStore:
  return BlobStore(log=logger, s3=s3, bucket=BUCKET)


@pytest.fixture
def service(logger: Logger, store: BlobStore) -> ImageService:
  return ImageService(log=logger, store=store)


def read_object(s3: S3Client, key: str) -> bytes:
  return s3.get_object(Bucket=BUCKET, Key=key)['Body'].read()


def list_keys(s3: S3Client, prefix: str) -> list[str]:
  res = s3.list_objects_v2(Bucket=BUCKET, Prefix=prefix)
  return [obj['Key'] for obj in res.get('Contents', [])]
