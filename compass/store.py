"""
Entity store backed by the hosted Supabase database.

Talks to the PostgREST endpoint over httpx. Reads retry on transient
network errors; deletes and updates are sent once and every failure is
reported per id or per batch, never retried automatically.

Usage:
    with SupabaseStore.from_settings() as store:
        rows = store.list_entities({"image_url": "is.null"})
"""

from collections.abc import Iterable, Iterator, Sequence
from typing import Any, Optional

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from compass.config import DESTINATION_COLUMNS, settings
from compass.errors import (
    BatchError,
    BatchResult,
    ConfigurationError,
    NotFoundError,
    PermissionDeniedError,
    StoreError,
)
from compass.models import Entity

# PostgreSQL "insufficient_privilege", returned for RLS rejections
PERMISSION_CODES = {"42501"}

# Tie-breaker appended to every paginated listing
PAGE_ORDER = "id.asc"


def chunked(items: Sequence[Any], size: int) -> Iterator[list[Any]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size <= 0:
        raise ValueError("batch size must be positive")
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


def _in_filter(ids: Iterable[str]) -> str:
    quoted = ",".join('"' + str(i).replace('"', '\\"') + '"' for i in ids)
    return f"in.({quoted})"


class SupabaseStore:
    """
    Read/delete/update access to one table through PostgREST.

    Provides:
    - Paginated listing with PostgREST filters
    - Batched deletes with verification of rows left behind
    - Per-id updates with failures collected, not raised
    """

    def __init__(
        self,
        url: str,
        key: str,
        table: str = "destinations",
        timeout: float = 30.0,
        page_size: int = 1000,
        http_client: httpx.Client | None = None,
    ):
        """
        Initialize the store.

        Args:
            url: PostgREST base URL (".../rest/v1")
            key: API key (service role key for maintenance work)
            table: Table holding the entities
            timeout: Request timeout in seconds
            page_size: Rows per page when listing
            http_client: Optional shared HTTP client
        """
        if not url or not key:
            raise ConfigurationError("Supabase URL and key are required")

        self.base_url = url.rstrip("/")
        self.table = table
        self.page_size = page_size
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Accept": "application/json",
            "User-Agent": "CompassLK-Maintenance/1.0",
        }

        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, table: Optional[str] = None) -> "SupabaseStore":
        """Build a store from environment settings."""
        sb = settings.supabase
        if not sb.rest_url or not sb.api_key:
            raise ConfigurationError(
                "Missing Supabase credentials. Set SUPABASE_URL and "
                "SUPABASE_SERVICE_ROLE_KEY (recommended) or VITE_SUPABASE_* variables."
            )
        return cls(
            url=sb.rest_url,
            key=sb.api_key,
            table=table or sb.table,
            timeout=settings.maintenance.http_timeout,
            page_size=settings.maintenance.page_size,
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    @property
    def table_url(self) -> str:
        return f"{self.base_url}/{self.table}"

    # =========================================================================
    # Requests
    # =========================================================================

    def _raise_for_status(self, response: httpx.Response, operation: str, ids: Sequence[str] = ()) -> None:
        if response.status_code < 400:
            return

        code = None
        message = response.text[:200]
        try:
            body = response.json()
            if isinstance(body, dict):
                code = body.get("code")
                message = body.get("message") or message
        except ValueError:
            pass

        text = f"HTTP {response.status_code} on {operation}: {message}"
        if response.status_code in (401, 403) or code in PERMISSION_CODES:
            raise PermissionDeniedError(
                f"{text} (check the key and row-level security policies)",
                operation=operation,
                ids=list(ids),
                status_code=response.status_code,
            )
        raise StoreError(text, operation=operation, ids=list(ids), status_code=response.status_code)

    @retry(
        stop=stop_after_attempt(settings.maintenance.http_max_retries),
        wait=wait_exponential(multiplier=settings.maintenance.http_retry_delay, min=1, max=30),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        reraise=True,
    )
    def _get(self, params: dict[str, Any], operation: str) -> list[dict]:
        logger.debug(f"GET {self.table} {params}")
        response = self._client.get(self.table_url, params=params, headers=self.headers)
        self._raise_for_status(response, operation)
        return response.json()

    # =========================================================================
    # Entity source
    # =========================================================================

    def list_rows(
        self,
        filters: Optional[dict[str, str]] = None,
        columns: str = DESTINATION_COLUMNS,
        order: Optional[str] = None,
    ) -> list[dict]:
        """
        Fetch all rows matching PostgREST ``filters``, page by page.

        Pages are always ordered with ``id`` as the last sort key so offsets
        stay stable between requests. A row returned twice is kept once.

        Args:
            filters: e.g. {"image_url": "is.null"}
            columns: select clause
            order: e.g. "name.asc"
        """
        order = f"{order},{PAGE_ORDER}" if order else PAGE_ORDER

        rows: list[dict] = []
        seen: set[str] = set()
        offset = 0
        while True:
            params: dict[str, Any] = {"select": columns, **(filters or {})}
            params["order"] = order
            params["limit"] = self.page_size
            params["offset"] = offset

            page = self._get(params, operation=f"list {self.table}")
            for row in page:
                row_id = str(row.get("id"))
                if row_id in seen:
                    logger.warning(f"Row id={row_id} returned twice while paging {self.table}; ignoring repeat")
                    continue
                seen.add(row_id)
                rows.append(row)
            if len(page) < self.page_size:
                break
            offset += self.page_size

        logger.debug(f"Fetched {len(rows)} rows from {self.table}")
        return rows

    def list_entities(
        self,
        filters: Optional[dict[str, str]] = None,
        columns: str = DESTINATION_COLUMNS,
        order: Optional[str] = None,
    ) -> list[Entity]:
        return [Entity.from_row(r) for r in self.list_rows(filters, columns, order)]

    def get_entity(self, entity_id: str, columns: str = DESTINATION_COLUMNS) -> Entity:
        """Fetch one entity; raises NotFoundError when absent."""
        rows = self._get(
            {"select": columns, "id": f"eq.{entity_id}", "limit": 1},
            operation=f"get {self.table}",
        )
        if not rows:
            raise NotFoundError(
                f"No row in {self.table} with id={entity_id}",
                operation="get",
                ids=[entity_id],
            )
        return Entity.from_row(rows[0])

    def exists(self, ids: Sequence[str], batch_size: int = 100) -> set[str]:
        """Subset of ``ids`` still present in the table."""
        present: set[str] = set()
        for batch in chunked(list(ids), batch_size):
            rows = self._get(
                {"select": "id", "id": _in_filter(batch)},
                operation=f"verify {self.table}",
            )
            present.update(str(r["id"]) for r in rows)
        return present

    # =========================================================================
    # Deletion sink
    # =========================================================================

    def _delete_batch(self, ids: list[str]) -> set[str]:
        response = self._client.delete(
            self.table_url,
            params={"id": _in_filter(ids)},
            headers={**self.headers, "Prefer": "return=representation"},
        )
        self._raise_for_status(response, f"delete {self.table}", ids)
        return {str(r["id"]) for r in response.json()}

    def delete_entities(
        self,
        ids: Sequence[str],
        batch_size: Optional[int] = None,
        stop_on_error: bool = True,
    ) -> BatchResult:
        """
        Delete rows by id in fixed-size batches.

        Ids the backend did not report as deleted are re-queried; any still
        present are recorded as verification failures (usually a policy
        block). With ``stop_on_error`` the ids of batches not attempted after
        a failure are recorded as skipped.

        Returns:
            BatchResult with deleted ids and one BatchError per failure
        """
        batch_size = batch_size or settings.maintenance.delete_batch_size
        result = BatchResult()
        batches = list(chunked(list(ids), batch_size))

        for n, batch in enumerate(batches, start=1):
            try:
                deleted = self._delete_batch(batch)
            except PermissionDeniedError as e:
                logger.error(f"Delete batch {n} rejected by policy: {e}")
                result.errors.append(BatchError(batch, str(e), kind="permission"))
            except StoreError as e:
                logger.error(f"Delete batch {n} failed: {e}")
                result.errors.append(BatchError(batch, str(e)))
            except httpx.HTTPError as e:
                logger.error(f"Delete batch {n} failed: {e}")
                result.errors.append(BatchError(batch, f"{type(e).__name__}: {e}", kind="transport"))
            else:
                result.succeeded.extend(i for i in batch if i in deleted)
                missing = [i for i in batch if i not in deleted]
                if missing:
                    self._verify_missing(missing, result)
                logger.info(f"Deleted batch {n}/{len(batches)}: {len(batch)} rows requested")
                continue

            if stop_on_error:
                remaining = [i for b in batches[n:] for i in b]
                if remaining:
                    result.errors.append(
                        BatchError(remaining, "not attempted after earlier failure", kind="skipped")
                    )
                break

        return result

    def _verify_missing(self, ids: list[str], result: BatchResult) -> None:
        try:
            still_present = self.exists(ids)
        except (StoreError, httpx.HTTPError) as e:
            result.errors.append(
                BatchError(ids, f"delete not confirmed, verification query failed: {e}", kind="verification")
            )
            return

        gone = [i for i in ids if i not in still_present]
        kept = [i for i in ids if i in still_present]
        result.succeeded.extend(gone)
        if kept:
            logger.error(f"{len(kept)} rows still present after delete")
            result.errors.append(
                BatchError(
                    kept,
                    "still present after delete; likely blocked by row-level security",
                    kind="verification",
                )
            )

    # =========================================================================
    # Update sink
    # =========================================================================

    def update_entity(self, entity_id: str, fields: dict[str, Any]) -> dict:
        """
        Update one row; returns the updated row.

        Raises:
            NotFoundError: No row was updated (missing, or hidden by policy)
            PermissionDeniedError: Rejected by the backend
            StoreError: Any other request failure
        """
        response = self._client.patch(
            self.table_url,
            params={"id": f"eq.{entity_id}"},
            json=fields,
            headers={**self.headers, "Prefer": "return=representation"},
        )
        self._raise_for_status(response, f"update {self.table}", [entity_id])
        rows = response.json()
        if not rows:
            raise NotFoundError(
                f"No row in {self.table} updated for id={entity_id}",
                operation="update",
                ids=[entity_id],
            )
        return rows[0]

    def update_entities(
        self,
        updates: Sequence[tuple[str, dict[str, Any]]],
        batch_size: Optional[int] = None,
    ) -> BatchResult:
        """Apply (id, fields) updates in batches, collecting failures per id."""
        batch_size = batch_size or settings.maintenance.update_batch_size
        result = BatchResult()
        batches = list(chunked(list(updates), batch_size))

        for n, batch in enumerate(batches, start=1):
            for entity_id, fields in batch:
                try:
                    self.update_entity(entity_id, fields)
                except NotFoundError as e:
                    result.errors.append(BatchError([entity_id], str(e), kind="not_found"))
                except PermissionDeniedError as e:
                    result.errors.append(BatchError([entity_id], str(e), kind="permission"))
                except StoreError as e:
                    result.errors.append(BatchError([entity_id], str(e)))
                except httpx.HTTPError as e:
                    result.errors.append(BatchError([entity_id], f"{type(e).__name__}: {e}", kind="transport"))
                else:
                    result.succeeded.append(entity_id)
            logger.info(f"Updated batch {n}/{len(batches)}: {len(batch)} rows")

        return result
