"""
Bulk object removal for the web root bucket.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from cloudfront_spa.configs.error_handler import RemovalError

logger = logging.getLogger(__name__)


async def empty_bucket(provider: Any, bucket_name: str) -> int:
    """
    Delete every object in a bucket, one listing page at a time.

    Each page returned by ``list_objects_v2`` is deleted with a single
    ``delete_objects`` call before the next page is requested. The loop ends
    when a page carries no continuation token or reports it is not truncated.
    Nothing is rolled back if a call fails part way.

    Args:
        provider: Object exposing ``async request(service, method, params)``
        bucket_name: Bucket to empty

    Returns:
        Number of objects deleted

    Raises:
        RemovalError: If S3 reports keys it could not delete
    """
    deleted = 0
    token: Optional[str] = None
    while True:
        params: Dict[str, Any] = {"Bucket": bucket_name}
        if token:
            params["ContinuationToken"] = token
        page = await provider.request("s3", "list_objects_v2", params)

        keys = [{"Key": obj["Key"]} for obj in page.get("Contents") or []]
        if keys:
            result = await provider.request(
                "s3",
                "delete_objects",
                {"Bucket": bucket_name, "Delete": {"Objects": keys, "Quiet": True}},
            )
            errors = (result or {}).get("Errors") or []
            if errors:
                failed = ", ".join(f"{e.get('Key')} ({e.get('Code')})" for e in errors)
                raise RemovalError(f"Could not delete from {bucket_name}: {failed}")
            deleted += len(keys)
            logger.debug("Deleted %d objects from %s", len(keys), bucket_name)

        token = page.get("NextContinuationToken")
        if not token or page.get("IsTruncated") is False:
            return deleted
