from typing import Any, Optional

import pytest

from .formats import (
    EncodeFormat,
    ImageFormat,
    content_type,
    resolve_encode_format,
    resolve_format
)


@pytest.mark.parametrize(
    'image_id,expected', [
        ('3f0e9a.jpeg', ImageFormat.JPEG),
        ('3f0e9a.jpg', ImageFormat.JPEG),
        ('3f0e9a.png', ImageFormat.PNG),
        ('3f0e9a.ico', ImageFormat.ICO),
        ('3f0e9a.gif', ImageFormat.GIF),
        ('3f0e9a', None),
        ('3f0e9a.min.png', None),
        ('3f0e9a.png.', None),
        ('3f0e9a.JPG', None),
        ('3f0e9a.webp', None),
        ('3f0e9a.', None),
    ],
    ids=[
        'jpeg',
        'jpg',
        'png',
        'ico',
        'gif',
        'no_dot',
        'two_dots',
        'trailing_dot',
        'upper_case',
        'unknown',
        'empty_extension',
    ])
def test_resolve_format(image_id: str, expected: Optional[ImageFormat]) -> None:
  assert resolve_format(image_id) == expected


@pytest.mark.parametrize(
    'image_id,expected', [
        ('3f0e9a.jpeg', EncodeFormat(ImageFormat.JPEG, 75)),
        ('3f0e9a.jpg', EncodeFormat(ImageFormat.JPEG, 75)),
        ('3f0e9a.png', EncodeFormat(ImageFormat.PNG)),
        ('3f0e9a.ico', EncodeFormat(ImageFormat.ICO)),
        ('3f0e9a.gif', EncodeFormat(ImageFormat.GIF)),
        ('a.b.gif', None),
        ('3f0e9a.bmp', None),
    ])
def test_resolve_encode_format(image_id: str, expected: Optional[EncodeFormat]) -> None:
  assert resolve_encode_format(image_id) == expected


@pytest.mark.parametrize(
    'fmt,expected', [
        (ImageFormat.JPEG, 'image/jpeg'),
        (ImageFormat.PNG, 'image/png'),
        (ImageFormat.ICO, 'image/ico'),
        (ImageFormat.GIF, 'image/gif'),
        (None, 'image/jpeg'),
        ('webp', 'image/jpeg'),
        (4, 'image/jpeg'),
    ])
def test_content_type(fmt: Any, expected: str) -> None:
  assert content_type(fmt) == expected
