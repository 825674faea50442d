"""
Elasticsearch sink.

Synchronous client for the ``_bulk`` endpoint. Every failure is fatal:
a transport error or an error status aborts the run, and with strict
item checking so does any single rejected document.
"""

import json
from typing import Any

from elasticsearch import ApiError, Elasticsearch, TransportError

from location_seed.core.errors import ConfigError, SinkError, StartupError
from location_seed.core.models import BulkResult
from location_seed.observability.logger import get_logger

from .base import IndexSink

logger = get_logger(__name__)

# Failed items listed in an error message before truncating
MAX_REPORTED_FAILURES = 5


def create_client(
    url: str,
    request_timeout: float = 30.0,
    username: str | None = None,
    password: str | None = None,
    api_key: str | None = None,
    verify_certs: bool = True,
) -> Elasticsearch:
    """
    Build an Elasticsearch client for a single address.

    Args:
        url: Cluster address, e.g. http://localhost:9200
        request_timeout: Per-request timeout in seconds
        username: Basic auth user
        password: Basic auth password
        api_key: API key, used instead of basic auth when set
        verify_certs: Verify TLS certificates for https addresses

    Returns:
        Elasticsearch client
    """
    options: dict[str, Any] = {"request_timeout": request_timeout}
    if api_key:
        options["api_key"] = api_key
    elif username:
        options["basic_auth"] = (username, password or "")
    if url.startswith("https"):
        options["verify_certs"] = verify_certs

    try:
        return Elasticsearch(hosts=[url], **options)
    except ValueError as e:
        raise ConfigError(f"Invalid Elasticsearch address: {e}", es_url=url) from e


class ElasticsearchSink(IndexSink):
    """
    Bulk writer for one Elasticsearch cluster.
    """

    def __init__(self, client: Elasticsearch, strict_item_errors: bool = True):
        """
        Initialize sink.

        Args:
            client: Elasticsearch client
            strict_item_errors: Treat any failed item in a bulk response as
                fatal. When False only the HTTP status is checked and failed
                items are logged.
        """
        self.client = client
        self.strict_item_errors = strict_item_errors

    @classmethod
    def from_config(cls, config) -> "ElasticsearchSink":
        client = create_client(
            config.es_url,
            request_timeout=config.request_timeout,
            username=config.es_username,
            password=config.es_password,
            api_key=config.es_api_key,
            verify_certs=config.verify_certs,
        )
        return cls(client, strict_item_errors=config.strict_item_errors)

    def health_check(self) -> None:
        """
        Ping the cluster once.

        Raises:
            StartupError: If the cluster is unreachable or answers with an error
        """
        try:
            response = self.client.info()
        except ApiError as e:
            raise StartupError(
                f"Elasticsearch returned an error: {e.message}",
                status=e.status_code,
            ) from e
        except TransportError as e:
            raise StartupError(f"Error pinging Elasticsearch: {e}") from e

        info = response.body if isinstance(response.body, dict) else {}
        logger.info(
            "Connected to Elasticsearch",
            extra={
                "cluster_name": info.get("cluster_name"),
                "version": (info.get("version") or {}).get("number"),
            },
        )

    def bulk_write(self, payload: bytes) -> BulkResult:
        """
        Send a bulk payload.

        Args:
            payload: Alternating action/document NDJSON lines

        Returns:
            BulkResult

        Raises:
            SinkError: On transport failure, error status, or (strict mode)
                any failed item
        """
        try:
            response = self.client.bulk(operations=payload)
        except ApiError as e:
            raise SinkError(
                f"Error response from Elasticsearch: {e.message}",
                status=e.status_code,
                body=e.body,
            ) from e
        except TransportError as e:
            raise SinkError(f"Error executing bulk request: {e}") from e

        body = response.body if isinstance(response.body, dict) else {}
        logger.debug(f"Bulk request response: {json.dumps(body, default=str)}")

        result = BulkResult.from_response(response.meta.status, body)
        logger.info(
            "Bulk request completed",
            extra={
                "status": result.status,
                "took_ms": result.took_ms,
                "items": result.item_count,
                "failed_items": len(result.failed_items),
            },
        )

        if result.succeeded:
            return result

        failed_ids = [item.doc_id for item in result.failed_items[:MAX_REPORTED_FAILURES]]
        if self.strict_item_errors:
            first = result.failed_items[0] if result.failed_items else None
            raise SinkError(
                f"Bulk request rejected {len(result.failed_items)} of {result.item_count} documents",
                failed_ids=failed_ids,
                first_error=first.reason if first else None,
            )

        for item in result.failed_items:
            logger.warning(
                f"Document {item.doc_id} was not indexed: {item.reason}",
                extra={"doc_id": item.doc_id, "status": item.status, "error_type": item.error_type},
            )
        return result

    def close(self) -> None:
        self.client.close()
