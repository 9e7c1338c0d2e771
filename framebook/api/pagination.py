from typing import Annotated

from fastapi import HTTPException, Query, status

from framebook.domain.numbers import safe_int

LimitParam = Annotated[int, Query(ge=1, le=50)]
CursorParam = Annotated[str | None, Query(description="Id of the last item on the previous page")]
MAX_CURSOR = 2**63 - 1


def parse_cursor(raw: str | None) -> int | None:
    if raw is None:
        return None
    value = safe_int(raw)
    if not isinstance(value, int) or value < 1 or value > MAX_CURSOR:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid cursor")
    return value
