import dataclasses
import time
import uuid
from logging import Logger
from typing import Any, Optional

from imgcache.imageservice import codec
from imgcache.imageservice.formats import (
    content_type,
    resolve_encode_format,
    resolve_format
)
from imgcache.imageservice.size import Size, resolve_size
from imgcache.imageservice.storage import (
    BlobStore,
    Config,
    StorageWriteFailure
)
from imgcache.typing import ImageId


LogContext = dict[str, Any]


class UploadFailure(Exception):
  pass


@dataclasses.dataclass(frozen=True)
class FetchResult:
  body: bytes
  content_type: str
  reason: str


def log_context(image_id: str, width: Optional[int], height: Optional[int]) -> LogContext:
  return {'image_id': image_id, 'width': width, 'height': height}


def new_image_id(declared_content_type: str) -> ImageId:
  subtype = declared_content_type.split('/')[-1]
  return ImageId(f'{uuid.uuid4()}.{subtype}')


class ImageService:
  instances: dict[Config, 'ImageService'] = {}

  def __init__(self, log: Logger, store: BlobStore):
    self.log = log
    self.store = store

  @classmethod
  def from_config(cls, log: Logger, config: Config) -> 'ImageService':
    if config not in cls.instances:
      cls.instances[config] = cls(log=log, store=BlobStore.from_config(log, config))

    return cls.instances[config]

  @classmethod
  def from_env(cls, log: Logger) -> 'ImageService':
    return cls.from_config(log, Config.from_env())

  def log_warning(self, message: str, context: LogContext, dict: dict[str, Any]) -> None:
    self.log.warning({
        'message': message,
        **context,
        **dict,
    })

  def log_debug(self, message: str, context: LogContext, dict: dict[str, Any]) -> None:
    self.log.debug({
        'message': message,
        **context,
        **dict,
    })

  def upload(self, data: bytes, declared_content_type: str) -> ImageId:
    image_id = new_image_id(declared_content_type)
    context = log_context(image_id, None, None)

    try:
      self.store.put(image_id, data)
    except StorageWriteFailure as e:
      self.log_warning('failed to upload', context, {'reason': str(e)})
      raise UploadFailure('failed to upload image') from e

    self.log_debug('uploaded', context, {
        'content_type': declared_content_type,
        'img_size': len(data),
    })
    return image_id

  def materialize(self, image_id: ImageId, width: Optional[int],
                  height: Optional[int]) -> Optional[bytes]:
    context = log_context(image_id, width, height)

    original = self.store.get(image_id)
    if original is None:
      return None

    read_format = resolve_format(image_id)
    if read_format is None:
      self.log_debug('unsupported format', context, {})
      return None

    start_ns = time.time_ns()

    image = codec.decode(original, read_format)

    write_format = resolve_encode_format(image_id)
    if write_format is None:
      return None

    natural = Size.from_image(image)
    target = resolve_size(width, height, natural)
    resized = codec.encode(codec.resize(image, target), write_format)

    vips_us = (time.time_ns() - start_ns) // 1000

    try:
      self.store.put(image_id, resized, width, height)
    except StorageWriteFailure as e:
      self.log_warning('failed to populate cache', context, {'reason': str(e)})

    self.log_debug(
        'resized', context, {
            'original': natural,
            'target': target,
            'img_size': len(resized),
            'vips_us': vips_us,
        })

    return resized

  def fetch(
      self,
      image_id: ImageId,
      width: Optional[int] = None,
      height: Optional[int] = None,
  ) -> Optional[FetchResult]:
    header = content_type(resolve_format(image_id))

    cached = self.store.get(image_id, width, height)
    if cached is not None:
      return FetchResult(body=cached, content_type=header, reason='found')

    if width is None and height is None:
      return None

    resized = self.materialize(image_id, width, height)
    if resized is None:
      return None

    return FetchResult(body=resized, content_type=header, reason='resized')

  def list(self) -> list[ImageId]:
    return self.store.list()
