import json
from typing import Any


class RequestError(Exception):
    def __init__(self, code: int, message: str, request_id: int | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.request_id = request_id


def _encode(data: dict[str, Any]) -> bytes:
    return (json.dumps(data, separators=(",", ":")) + "\r\n").encode()


def parse_request_line(line: bytes) -> dict[str, Any]:
    try:
        decoded = line.decode().strip()
        if not decoded:
            raise RequestError(-1, "empty request")
        data = json.loads(decoded)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RequestError(-1, f"invalid command: {exc}") from exc

    if not isinstance(data, dict):
        raise RequestError(-1, "request must be a JSON object")
    request_id = data.get("id")
    if not isinstance(request_id, int) or isinstance(request_id, bool):
        raise RequestError(-1, "request missing integer 'id'")
    if not isinstance(data.get("method"), str):
        raise RequestError(-1, "request missing 'method'", request_id)
    params = data.get("params", [])
    if not isinstance(params, list):
        raise RequestError(-1, "'params' must be a list", request_id)
    data["params"] = params
    return data


def result_message(request_id: int, result: list[str]) -> bytes:
    return _encode({"id": request_id, "result": [str(item) for item in result]})


def error_message(code: int, message: str, request_id: int | None = None) -> bytes:
    data: dict[str, Any] = {"error": {"code": code, "message": message}}
    if request_id is not None:
        data = {"id": request_id, **data}
    return _encode(data)


def props_notification(changes: dict[str, Any]) -> bytes:
    return _encode({"method": "props", "params": changes})
