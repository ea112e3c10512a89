"""AWS Console URL construction for resolved resources."""

from typing import Optional
from urllib.parse import quote

from batchi.utils.arn_utils import cluster_name_from_cluster_arn, resource_id_from_arn


def aws_console_url(region: str, path: str, fragment: Optional[str] = None) -> str:
    """
    Build a regional console link.

    Args:
        region: AWS region
        path: Path after the console host, e.g. "ecs/v2/clusters/x/tasks/y"
        fragment: Client-side route for consoles that use one (EC2, CloudWatch)
    """
    url = f"https://{region}.console.aws.amazon.com/{path}?region={region}"
    if fragment:
        url = f"{url}#{fragment}"
    return url


def build_task_url(region: str, cluster_arn: Optional[str], task_arn: str) -> str:
    cluster = cluster_name_from_cluster_arn(cluster_arn) or ""
    task_id = resource_id_from_arn(task_arn) or task_arn
    return aws_console_url(region, f"ecs/v2/clusters/{quote(cluster, safe='')}/tasks/{quote(task_id, safe='')}")


def build_instance_url(region: str, instance_id: str) -> str:
    return aws_console_url(region, "ec2/home", f"InstanceDetails:instanceId={instance_id}")


def build_vpc_url(region: str, vpc_id: str) -> str:
    return aws_console_url(region, "vpcconsole/home", f"VpcDetails:VpcId={vpc_id}")


def build_job_url(region: str, job_id: str) -> str:
    return aws_console_url(region, "batch/home", f"jobs/detail/{job_id}")


def build_log_stream_url(region: str, log_group_name: str, log_stream_name: str) -> str:
    # The CloudWatch console escapes "%" as "$25" inside its route
    group = quote(log_group_name, safe="").replace("%", "$25")
    stream = quote(log_stream_name, safe="").replace("%", "$25")
    return aws_console_url(region, "cloudwatch/home", f"logsV2:log-groups/log-group/{group}/log-events/{stream}")


def build_s3_url(region: str, bucket: str, key: Optional[str], is_prefix: bool = False) -> str:
    """S3 console link; prefixes open the bucket browser, objects the object view."""
    if not key or key.endswith("/"):
        is_prefix = True
    if is_prefix:
        return (
            f"https://s3.console.aws.amazon.com/s3/buckets/{quote(bucket, safe='')}"
            f"?region={region}&prefix={quote(key or '', safe='')}&showversions=false"
        )
    return (
        f"https://s3.console.aws.amazon.com/s3/object/{quote(bucket, safe='')}"
        f"?region={region}&prefix={quote(key, safe='')}"
    )
