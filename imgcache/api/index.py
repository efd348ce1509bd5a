import base64
from typing import Any, Optional
from urllib import parse

from aws_lambda_powertools.event_handler import (
    APIGatewayRestResolver,
    Response
)
from aws_lambda_powertools.event_handler.exceptions import (
    BadRequestError,
    InternalServerError,
    NotFoundError
)
from aws_lambda_powertools.utilities.typing import LambdaContext

from imgcache.imageservice.codec import DecodeFailure, EncodeFailure
from imgcache.imageservice.index import ImageService, UploadFailure, log_context
from imgcache.imageservice.storage import ConfigError, StorageReadFailure
from imgcache.log import init_logging
from imgcache.typing import (
    ImageId,
    ListResponse,
    ProxyResponse,
    UploadResponse
)

SERVICE = 'service'

logger = init_logging(__name__)

app = APIGatewayRestResolver()


def get_header(headers: Optional[dict[str, str]], name: str, default: str = '') -> str:
  for key, value in (headers or {}).items():
    if key.lower() == name and value != '':
      return value
  return default


def get_dimension(params: Optional[dict[str, str]], name: str) -> Optional[int]:
  if params is None or name not in params:
    return None

  try:
    value = int(params[name])
  except ValueError as e:
    raise BadRequestError(f'invalid {name}: {params[name]}') from e

  if value <= 0:
    raise BadRequestError(f'invalid {name}: {params[name]}')

  return value


def get_body(event: Any) -> bytes:
  body: Optional[str] = event.body
  if body is None:
    return b''
  if event.is_base64_encoded:
    return base64.b64decode(body)
  return body.encode()


def current_service() -> ImageService:
  return app.context[SERVICE]


@app.get('/_list')
def handle_image_list() -> ListResponse:
  try:
    files = current_service().list()
  except StorageReadFailure as e:
    logger.error({'message': 'failed to list images', 'reason': str(e)})
    raise InternalServerError('failed to list images') from e

  return {'files': files}


@app.post('/upload')
def handle_image_upload() -> UploadResponse:
  event = app.current_event
  content_type = get_header(event.headers, 'content-type')
  if content_type == '':
    raise BadRequestError('no content type')

  try:
    image_id = current_service().upload(get_body(event), content_type)
  except UploadFailure as e:
    raise BadRequestError('failed to upload image') from e

  return {'id': image_id}


@app.get('/<image_id>')
def handle_image_get(image_id: str) -> Response:
  params = app.current_event.query_string_parameters
  width = get_dimension(params, 'w')
  height = get_dimension(params, 'h')

  service = current_service()
  name = ImageId(parse.unquote(image_id))
  context = log_context(name, width, height)
  try:
    image = service.fetch(name, width, height)
  except (DecodeFailure, EncodeFailure) as e:
    service.log_warning('failed to resize', context, {'reason': str(e)})
    raise InternalServerError('failed to process image') from e

  if image is None:
    raise NotFoundError('no image found')

  service.log_debug(
      'responded', context, {
          'content_type': image.content_type,
          'img_size': len(image.body),
          'reason': image.reason,
      })

  return Response(status_code=200, content_type=image.content_type, body=image.body)


def lambda_main(
    event: dict[str, Any],
    context: LambdaContext,
    service: Optional[ImageService] = None,
) -> ProxyResponse:
  if service is None:
    try:
      service = ImageService.from_env(logger)
    except ConfigError as e:
      logger.error({'message': 'failed to initialize image service', 'reason': str(e)})
      return {
          'statusCode': 500,
          'body': '{"statusCode":500,"message":"service unavailable"}',
          'isBase64Encoded': False,
          'headers': {
              'Content-Type': 'application/json',
          },
      }

  app.append_context(**{SERVICE: service})
  return app.resolve(event, context)
