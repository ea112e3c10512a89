"""
Unit tests for ECS ARN parsing and console link building.
"""

import pytest

from batchi.utils import console_urls
from batchi.utils.arn_utils import (
    EcsArn,
    cluster_arn_from_container_instance_arn,
    cluster_arn_from_task_arn,
    cluster_name_from_cluster_arn,
    cluster_name_from_task_arn,
    parse_ecs_arn,
    resource_id_from_arn,
)

TASK_ARN = "arn:aws:ecs:us-west-2:111122223333:task/my-cluster/abcd"


# ============================================================================
# ARN parsing
# ============================================================================

def test_parse_new_format_task_arn():
    assert parse_ecs_arn(TASK_ARN) == EcsArn("aws", "us-west-2", "111122223333", "task", "my-cluster", "abcd")


def test_parse_old_format_has_no_cluster():
    parsed = parse_ecs_arn("arn:aws:ecs:us-east-1:111122223333:task/abcd")
    assert parsed.cluster is None
    assert parsed.resource_id == "abcd"
    assert cluster_name_from_task_arn("arn:aws:ecs:us-east-1:111122223333:task/abcd") is None
    assert cluster_arn_from_task_arn("arn:aws:ecs:us-east-1:111122223333:task/abcd") is None


@pytest.mark.parametrize("value", [
    None,
    "",
    "abcd",
    "arn:aws:s3:::bucket/key",
    "arn:aws:ecs:us-west-2:111122223333:task",
])
def test_parse_rejects_non_ecs_values(value):
    assert parse_ecs_arn(value) is None


def test_cluster_from_task_arn():
    assert cluster_name_from_task_arn(TASK_ARN) == "my-cluster"
    assert cluster_arn_from_task_arn(TASK_ARN) == "arn:aws:ecs:us-west-2:111122223333:cluster/my-cluster"


def test_cluster_arn_keeps_partition():
    task_arn = "arn:aws-cn:ecs:cn-north-1:111122223333:task/prod/abcd"
    assert cluster_arn_from_task_arn(task_arn) == "arn:aws-cn:ecs:cn-north-1:111122223333:cluster/prod"


def test_cluster_from_container_instance_arn():
    arn = "arn:aws:ecs:us-west-2:111122223333:container-instance/my-cluster/ci-1"
    assert cluster_arn_from_container_instance_arn(arn) == "arn:aws:ecs:us-west-2:111122223333:cluster/my-cluster"
    # Kinds are not interchangeable
    assert cluster_arn_from_task_arn(arn) is None


def test_cluster_name_and_resource_id():
    assert cluster_name_from_cluster_arn("arn:aws:ecs:us-west-2:111122223333:cluster/my-cluster") == "my-cluster"
    assert cluster_name_from_cluster_arn("my-cluster") == "my-cluster"
    assert cluster_name_from_cluster_arn(None) is None
    assert resource_id_from_arn(TASK_ARN) == "abcd"
    assert resource_id_from_arn("abcd") == "abcd"


# ============================================================================
# Console links
# ============================================================================

def test_task_url():
    url = console_urls.build_task_url(
        "us-west-2", "arn:aws:ecs:us-west-2:111122223333:cluster/my-cluster", TASK_ARN
    )
    assert url == "https://us-west-2.console.aws.amazon.com/ecs/v2/clusters/my-cluster/tasks/abcd?region=us-west-2"


def test_fragment_follows_query():
    url = console_urls.build_instance_url("eu-west-1", "i-0abc")
    assert url == (
        "https://eu-west-1.console.aws.amazon.com/ec2/home?region=eu-west-1"
        "#InstanceDetails:instanceId=i-0abc"
    )


def test_log_stream_url_double_escapes():
    url = console_urls.build_log_stream_url("us-west-2", "/aws/batch/job", "def/default/abcd")
    assert url.endswith("#logsV2:log-groups/log-group/$252Faws$252Fbatch$252Fjob/log-events/def$252Fdefault$252Fabcd")


def test_s3_urls():
    assert console_urls.build_s3_url("us-west-2", "bucket", "out/", False).startswith(
        "https://s3.console.aws.amazon.com/s3/buckets/bucket?region=us-west-2&prefix=out%2F"
    )
    assert console_urls.build_s3_url("us-west-2", "bucket", "out/a.csv") == (
        "https://s3.console.aws.amazon.com/s3/object/bucket?region=us-west-2&prefix=out%2Fa.csv"
    )
