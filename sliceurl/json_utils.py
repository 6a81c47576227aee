import orjson
from typing import Any, Optional
from fastapi.responses import Response

def dumps(obj: Any, **kwargs) -> str:
    """Сериализует объект в JSON-строку с поддержкой datetime."""
    options = 0
    if kwargs.get('indent'):
        options |= orjson.OPT_INDENT_2
    return orjson.dumps(obj, option=options).decode('utf-8')

def envelope(success: bool, status_code: int, message: str, data: Optional[Any] = None, **extra) -> dict:
    """Конверт ответа API: {success, statusCode, message, data?}"""
    body = {
        "success": success,
        "statusCode": status_code,
        "message": message
    }
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body

def api_response(status_code: int, message: str, data: Optional[Any] = None, headers: Optional[dict] = None) -> Response:
    """Успешный ответ в конверте"""
    return Response(
        content=dumps(envelope(True, status_code, message, data)),
        status_code=status_code,
        media_type="application/json",
        headers=headers
    )

def api_error(status_code: int, message: str, headers: Optional[dict] = None, **extra) -> Response:
    """Ответ с ошибкой в конверте"""
    return Response(
        content=dumps(envelope(False, status_code, message, **extra)),
        status_code=status_code,
        media_type="application/json",
        headers=headers
    )
