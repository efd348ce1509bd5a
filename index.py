from typing import Any

from aws_lambda_powertools.utilities.typing import LambdaContext

from imgcache.api import index as api
from imgcache.typing import ProxyResponse


def api_lambda_handler(
    event: dict[str, Any],
    context: LambdaContext,
) -> ProxyResponse:
  # # For debugging
  # print('event:')
  # print(json.dumps(event))

  ret = api.lambda_main(event, context)

  # # For debugging
  # print('return:')
  # print(json.dumps({k: v for k, v in ret.items() if k != 'body'}))

  return ret
