"""
Artifact Service
Finds s3:// URLs in a job's environment and command, and makes them downloadable.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from botocore.exceptions import ClientError

from batchi.utils.error_utils import is_not_found

logger = logging.getLogger(__name__)

# Captures bucket and key/prefix
S3_URL_RE = re.compile(r"s3://([A-Za-z0-9.\-]{3,63})/(\S+)")

MAX_LISTED_KEYS = 1000


@dataclass(frozen=True)
class S3Reference:
    source: str  # "env" or "cmd"
    bucket: str
    key: str
    name: Optional[str] = None

    @property
    def url(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


@dataclass
class ArtifactStatus:
    exists: bool
    is_prefix: bool = False
    presigned_url: Optional[str] = None
    size: Optional[int] = None
    content_type: Optional[str] = None


def extract_s3_urls(
    environment: Dict[str, Optional[str]],
    command: Optional[Iterable[str]] = None,
) -> List[S3Reference]:
    """
    Collect s3:// references from env values and command args.

    Deduplicated by bucket/key; the first occurrence wins (env before cmd).
    """
    found: List[S3Reference] = []
    for name, value in (environment or {}).items():
        if not value:
            continue
        for match in S3_URL_RE.finditer(value):
            found.append(S3Reference("env", match.group(1), match.group(2), name))
    for arg in command or []:
        for match in S3_URL_RE.finditer(arg):
            found.append(S3Reference("cmd", match.group(1), match.group(2)))

    unique: Dict[str, S3Reference] = {}
    for ref in found:
        unique.setdefault(f"{ref.bucket}/{ref.key}", ref)
    return list(unique.values())


class ArtifactService:
    """Read-only S3 lookups for job artifacts."""

    def __init__(self, s3_client: Any):
        self.s3 = s3_client

    def inspect(self, ref: S3Reference, expires_in: int = 3600) -> ArtifactStatus:
        """
        Head the object and presign it; failing that, check whether it is a prefix.

        Args:
            ref: Reference to check
            expires_in: Presigned URL lifetime in seconds (minimum 60)
        """
        expires_in = max(60, int(expires_in))
        try:
            head = self.s3.head_object(Bucket=ref.bucket, Key=ref.key)
            url = self.s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": ref.bucket, "Key": ref.key},
                ExpiresIn=expires_in,
            )
            return ArtifactStatus(
                exists=True,
                presigned_url=url,
                size=int(head.get("ContentLength") or 0),
                content_type=head.get("ContentType"),
            )
        except ClientError as e:
            if not is_not_found(e):
                logger.debug(f"[ArtifactService] head_object failed for {ref.url}: {e}")

        try:
            listing = self.s3.list_objects_v2(Bucket=ref.bucket, Prefix=ref.key, MaxKeys=1)
            if listing.get("Contents"):
                return ArtifactStatus(exists=True, is_prefix=True)
        except ClientError as e:
            logger.debug(f"[ArtifactService] list_objects_v2 failed for {ref.url}: {e}")
        return ArtifactStatus(exists=False)

    def list_keys(self, bucket: str, prefix: str, max_total: int = MAX_LISTED_KEYS) -> List[str]:
        keys: List[str] = []
        params: Dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        while len(keys) < max_total:
            params["MaxKeys"] = min(1000, max_total - len(keys))
            response = self.s3.list_objects_v2(**params)
            for obj in response.get("Contents") or []:
                if obj.get("Key"):
                    keys.append(obj["Key"])
                if len(keys) >= max_total:
                    break
            if not response.get("IsTruncated") or not response.get("NextContinuationToken"):
                break
            params["ContinuationToken"] = response["NextContinuationToken"]
        return keys
