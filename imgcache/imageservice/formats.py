import dataclasses
from enum import Enum
from typing import Optional

JPEG_QUALITY = 75
DEFAULT_CONTENT_TYPE = 'image/jpeg'


class ImageFormat(Enum):
  JPEG = 0
  PNG = 1
  ICO = 2
  GIF = 3


@dataclasses.dataclass(eq=True, frozen=True)
class EncodeFormat:
  format: ImageFormat
  quality: Optional[int] = None


extension_formats = {
    'jpeg': ImageFormat.JPEG,
    'jpg': ImageFormat.JPEG,
    'png': ImageFormat.PNG,
    'ico': ImageFormat.ICO,
    'gif': ImageFormat.GIF,
}

content_types = {
    ImageFormat.JPEG: 'image/jpeg',
    ImageFormat.PNG: 'image/png',
    ImageFormat.ICO: 'image/ico',
    ImageFormat.GIF: 'image/gif',
}


def get_extension(image_id: str) -> Optional[str]:
  parts = image_id.split('.')
  if len(parts) != 2:
    return None
  return parts[1]


def resolve_format(image_id: str) -> Optional[ImageFormat]:
  ext = get_extension(image_id)
  if ext is None:
    return None
  return extension_formats.get(ext)


def resolve_encode_format(image_id: str) -> Optional[EncodeFormat]:
  match resolve_format(image_id):
    case None:
      return None
    case ImageFormat.JPEG:
      return EncodeFormat(ImageFormat.JPEG, quality=JPEG_QUALITY)
    case ImageFormat() as fmt:
      return EncodeFormat(fmt)
    case _:
      raise Exception('system error')


def content_type(fmt: Optional[ImageFormat]) -> str:
  if not isinstance(fmt, ImageFormat):
    return DEFAULT_CONTENT_TYPE
  return content_types.get(fmt, DEFAULT_CONTENT_TYPE)
