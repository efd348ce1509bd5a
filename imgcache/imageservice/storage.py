import dataclasses
import os
from logging import Logger
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from mypy_boto3_s3.client import S3Client

from imgcache.typing import ImageId, S3Key

IMAGE_FOLDER = 'images/'
CACHE_FOLDER = 'cache/'

DEFAULT_REGION = 'us-east-1'


class ConfigError(Exception):
  pass


class StorageWriteFailure(Exception):
  pass


class StorageReadFailure(Exception):
  pass


@dataclasses.dataclass(eq=True, frozen=True)
class Config:
  bucket: str
  region: str = DEFAULT_REGION
  profile: Optional[str] = None
  endpoint_url: Optional[str] = None

  @classmethod
  def from_env(cls, env: Optional[dict[str, str]] = None) -> 'Config':
    environ = os.environ if env is None else env

    bucket = environ.get('IMAGE_BUCKET', '')
    if bucket == '':
      raise ConfigError('must provide s3 bucket through env var IMAGE_BUCKET')

    return cls(
        bucket=bucket,
        region=environ.get('AWS_REGION') or DEFAULT_REGION,
        profile=environ.get('AWS_ROLE') or None,
        endpoint_url=environ.get('AWS_ENDPOINT_URL') or None)


def is_not_found_client_error(exception: ClientError) -> bool:
  if 'Error' not in exception.response:
    return False
  if 'Code' not in exception.response['Error']:
    return False
  return exception.response['Error']['Code'] in ['404', 'NoSuchKey']


def original_key(image_id: ImageId) -> S3Key:
  return S3Key(f'{IMAGE_FOLDER}{image_id}')


def derived_key(image_id: ImageId, width: Optional[int], height: Optional[int]) -> S3Key:
  return S3Key(f'{CACHE_FOLDER}{image_id}_{width or 0}_{height or 0}')


def storage_key(image_id: ImageId, width: Optional[int], height: Optional[int]) -> S3Key:
  if width is None and height is None:
    return original_key(image_id)
  return derived_key(image_id, width, height)


class BlobStore:

  def __init__(self, log: Logger, s3: S3Client, bucket: str):
    self.log = log
    self.s3 = s3
    self.bucket = bucket

  @classmethod
  def from_config(cls, log: Logger, config: Config) -> 'BlobStore':
    try:
      sess = boto3.Session(profile_name=config.profile, region_name=config.region)
      s3 = sess.client('s3', endpoint_url=config.endpoint_url)
    except BotoCoreError as e:
      raise ConfigError(f'failed to create s3 client: {e}') from e

    return cls(log=log, s3=s3, bucket=config.bucket)

  def log_read_failure(self, key: S3Key, e: Exception) -> None:
    self.log.warning({
        'message': 'failed to read object',
        'key': key,
        'reason': str(e),
    })

  def put(
      self,
      image_id: ImageId,
      data: bytes,
      width: Optional[int] = None,
      height: Optional[int] = None,
  ) -> None:
    key = storage_key(image_id, width, height)
    try:
      res = self.s3.put_object(Bucket=self.bucket, Key=key, Body=data)
    except (ClientError, BotoCoreError) as e:
      raise StorageWriteFailure(f'failed to upload image to bucket: {key}: {e}') from e

    status = res['ResponseMetadata']['HTTPStatusCode']
    if not 200 <= status < 300:
      raise StorageWriteFailure(f'failed to upload image to bucket: {key}: status {status}')

    self.log.debug({
        'message': 'stored',
        'key': key,
        'size': len(data),
    })

  def get(
      self,
      image_id: ImageId,
      width: Optional[int] = None,
      height: Optional[int] = None,
  ) -> Optional[bytes]:
    key = storage_key(image_id, width, height)
    try:
      res = self.s3.get_object(Bucket=self.bucket, Key=key)
      return res['Body'].read()
    except ClientError as e:
      if not is_not_found_client_error(e):
        self.log_read_failure(key, e)
      return None
    except BotoCoreError as e:
      self.log_read_failure(key, e)
      return None

  def list(self) -> list[ImageId]:
    pages: Any = self.s3.get_paginator('list_objects_v2').paginate(
        Bucket=self.bucket, Prefix=IMAGE_FOLDER, Delimiter='/')

    try:
      keys = [obj['Key'] for page in pages for obj in page.get('Contents', [])]
    except (ClientError, BotoCoreError) as e:
      raise StorageReadFailure(f'failed to list bucket: {e}') from e

    names = [key.removeprefix(IMAGE_FOLDER) for key in keys]
    return [ImageId(name) for name in names if name != '']
