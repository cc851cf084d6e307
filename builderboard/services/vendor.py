import httpx


def json_payload(r: httpx.Response, expected: type = dict):
    """
    JSON ответа вендора с проверкой типа. HTML от шлюза или не тот тип
    превращаем в httpx.DecodingError, чтобы вызывающий ловил одно httpx.HTTPError.
    """
    try:
        payload = r.json()
    except ValueError as e:
        raise httpx.DecodingError(f"non-JSON response from {r.request.url}", request=r.request) from e
    if not isinstance(payload, expected):
        raise httpx.DecodingError(
            f"expected {expected.__name__}, got {type(payload).__name__} from {r.request.url}",
            request=r.request,
        )
    return payload
