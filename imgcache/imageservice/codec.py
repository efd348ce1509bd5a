import io

import pyvips  # type: ignore
from PIL import Image as PILImage
from pyvips import Image, Kernel  # type: ignore

from imgcache.imageservice.formats import EncodeFormat, ImageFormat
from imgcache.imageservice.size import Size

# Largest edge the ICO directory entry can describe.
ICO_MAX_SIZE = 256


class DecodeFailure(Exception):
  pass


class EncodeFailure(Exception):
  pass


suffixes = {
    ImageFormat.JPEG: '.jpg',
    ImageFormat.PNG: '.png',
    ImageFormat.GIF: '.gif',
}


def load_vips(data: bytes, fmt: ImageFormat) -> Image:
  match fmt:
    case ImageFormat.JPEG:
      return Image.jpegload_buffer(data)
    case ImageFormat.PNG:
      return Image.pngload_buffer(data)
    case ImageFormat.GIF:
      return Image.gifload_buffer(data)
    case _:
      raise Exception('system error')


def to_rgba(image: Image) -> Image:
  if image.bands < 3:
    image = image.colourspace('srgb')
  if image.format != 'uchar':
    image = image.cast('uchar')
  if image.bands == 3:
    image = image.bandjoin(255)
  return image


# libvips has no ICO support without ImageMagick; Pillow handles that format.
def load_ico(data: bytes) -> Image:
  with PILImage.open(io.BytesIO(data), formats=['ICO']) as ico:
    rgba = ico.convert('RGBA')
  return Image.new_from_memory(rgba.tobytes(), rgba.width, rgba.height, 4, 'uchar')


def save_ico(image: Image) -> bytes:
  size = Size.from_image(image)
  if ICO_MAX_SIZE < size.width or ICO_MAX_SIZE < size.height:
    raise EncodeFailure(f'ICO cannot hold {size.width}x{size.height}')

  rgba = PILImage.frombytes('RGBA', (size.width, size.height), to_rgba(image).write_to_memory())
  buf = io.BytesIO()
  rgba.save(buf, format='ICO', sizes=[(size.width, size.height)])
  return buf.getvalue()


def decode(data: bytes, fmt: ImageFormat) -> Image:
  if fmt == ImageFormat.ICO:
    try:
      return load_ico(data)
    except (OSError, ValueError, SyntaxError) as e:
      raise DecodeFailure(f'failed to decode {fmt.name}: {e}') from e

  try:
    # Loading is lazy; copy_memory() forces the pixels through the decoder.
    return load_vips(data, fmt).copy_memory()
  except pyvips.Error as e:
    raise DecodeFailure(f'failed to decode {fmt.name}: {e.message}') from e


def resize(image: Image, target: Size) -> Image:
  original = Size.from_image(image)
  if original == target:
    return image
  return image.resize(
      target.width / original.width,
      vscale=target.height / original.height,
      kernel=Kernel.NEAREST)


def encode(image: Image, encode_format: EncodeFormat) -> bytes:
  try:
    if encode_format.format == ImageFormat.ICO:
      return save_ico(image)

    suffix = suffixes[encode_format.format]
    if encode_format.quality is None:
      return image.write_to_buffer(suffix)
    return image.write_to_buffer(suffix, Q=encode_format.quality)
  except pyvips.Error as e:
    raise EncodeFailure(f'failed to encode {encode_format.format.name}: {e.message}') from e
  except (OSError, ValueError) as e:
    raise EncodeFailure(f'failed to encode {encode_format.format.name}: {e}') from e
