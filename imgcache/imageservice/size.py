import dataclasses
from typing import Optional

from pyvips import Image  # type: ignore


@dataclasses.dataclass(eq=True, frozen=True)
class Size:
  width: int
  height: int

  @classmethod
  def from_image(cls, image: Image) -> 'Size':
    return cls(image.get('width'), image.get('height'))


def scale_axis(natural_other: int, requested: int, natural_same: int) -> int:
  # Integer division truncates toward zero for positive operands.
  return max(1, natural_other * requested // natural_same)


def resolve_size(width: Optional[int], height: Optional[int], natural: Size) -> Size:
  match (width, height):
    case (int(), int()):
      return Size(width, height)
    case (int(), None):
      return Size(width, scale_axis(natural.height, width, natural.width))
    case (None, int()):
      return Size(scale_axis(natural.width, height, natural.height), height)
    case (None, None):
      raise ValueError('either width or height is required')
    case _:
      raise Exception('system error')
