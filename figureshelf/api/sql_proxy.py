"""External SQL proxy endpoint."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from figureshelf.api.dependencies import require_admin
from figureshelf.services.sql_proxy import SqlParam, SqlProxy, get_sql_proxy

router = APIRouter(prefix="/sql", tags=["sql"])


class SqlQueryRequest(BaseModel):
    query: str | None = Field(default=None, examples=["SELECT * FROM figures WHERE id = %s"])
    params: list[SqlParam] = Field(default_factory=list)


class SqlQueryResponse(BaseModel):
    success: bool
    rows: list[dict[str, Any]] = Field(default_factory=list)
    affected_rows: int | None = None
    last_insert_id: int | None = None
    error: str | None = None


@router.post(
    "/query",
    response_model=SqlQueryResponse,
    dependencies=[Depends(require_admin)],
)
async def run_query(
    request: SqlQueryRequest,
    response: Response,
    proxy: Annotated[SqlProxy, Depends(get_sql_proxy)],
) -> SqlQueryResponse:
    """
    Forward a query to the external database. Administrators only.

    Returns 200 with the rows or affected-row count on success. A missing
    query, missing configuration, or database error returns 500 with
    `success=false` and the error message.
    """
    result = await proxy.execute(request.query, request.params)
    if not result.success:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return SqlQueryResponse(
        success=result.success,
        rows=result.rows,
        affected_rows=result.affected_rows,
        last_insert_id=result.last_insert_id,
        error=result.error,
    )
