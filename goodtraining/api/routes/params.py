from goodtraining.core.errors import NotFoundError

MSG_PAGE_NOT_FOUND = "페이지를 찾을 수 없습니다."


def parse_id(value: str) -> int:
    """Numeric path id. Anything else is a missing page rather than a 422."""
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        raise NotFoundError(MSG_PAGE_NOT_FOUND, details={"id": value})
    return int(value)
