from typing import NewType, NotRequired, TypedDict

ImageId = NewType('ImageId', str)
S3Key = NewType('S3Key', str)


class ListResponse(TypedDict):
  files: list[ImageId]


class UploadResponse(TypedDict):
  id: ImageId


class ProxyResponse(TypedDict):
  statusCode: int
  body: str
  isBase64Encoded: bool
  headers: NotRequired[dict[str, str]]
  multiValueHeaders: NotRequired[dict[str, list[str]]]
