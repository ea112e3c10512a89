"""
Pytest configuration for batchi tests.

Provides dummy AWS credentials and MagicMock doubles for every service
client, each preloaded with empty responses so unconfigured calls behave
like an empty account rather than returning truthy mocks.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

# Make the package importable without installation
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from batchi.core.aws_clients import AwsClients  # noqa: E402
from batchi.core.diagnostics import Diagnostics  # noqa: E402


@pytest.fixture(autouse=True)
def mock_settings_env_vars(monkeypatch):
    """
    Automatically set dummy AWS environment variables for all tests.
    """
    monkeypatch.setenv("AWS_REGION", "us-west-2")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")

    from batchi.core.config import settings
    monkeypatch.setattr(settings, "AWS_REGION", "us-west-2")
    monkeypatch.setattr(settings, "BATCHI_DEBUG", False)


@pytest.fixture
def client_error():
    """Factory for botocore ClientError instances."""
    def make(code: str, message: str = "", operation: str = "DescribeTasks") -> ClientError:
        return ClientError({"Error": {"Code": code, "Message": message}}, operation)
    return make


@pytest.fixture
def batch():
    client = MagicMock(name="batch")
    client.describe_jobs.return_value = {"jobs": []}
    client.describe_job_queues.return_value = {"jobQueues": []}
    client.describe_compute_environments.return_value = {"computeEnvironments": []}
    return client


@pytest.fixture
def ecs():
    client = MagicMock(name="ecs")
    client.describe_tasks.return_value = {"tasks": [], "failures": []}
    client.list_clusters.return_value = {"clusterArns": []}
    client.list_tasks.return_value = {"taskArns": []}
    client.describe_container_instances.return_value = {"containerInstances": []}
    return client


@pytest.fixture
def ec2():
    client = MagicMock(name="ec2")
    client.describe_instances.return_value = {"Reservations": []}
    client.describe_network_interfaces.return_value = {"NetworkInterfaces": []}
    client.describe_subnets.return_value = {"Subnets": []}
    client.describe_vpcs.return_value = {"Vpcs": []}
    return client


@pytest.fixture
def logs():
    client = MagicMock(name="logs")
    client.get_log_events.return_value = {
        "events": [],
        "nextForwardToken": "f/0",
        "nextBackwardToken": "b/0",
    }
    return client


@pytest.fixture
def clients(batch, ecs, ec2, logs):
    return AwsClients(region="us-west-2", batch=batch, ecs=ecs, ec2=ec2, logs=logs, s3=MagicMock(name="s3"))


@pytest.fixture
def diagnostics():
    return Diagnostics(debug=True)


TASK_ARN = "arn:aws:ecs:us-west-2:111122223333:task/my-cluster/abcd"
CLUSTER_ARN = "arn:aws:ecs:us-west-2:111122223333:cluster/my-cluster"


@pytest.fixture
def task_arn():
    return TASK_ARN


@pytest.fixture
def cluster_arn():
    return CLUSTER_ARN


@pytest.fixture
def ecs_task():
    return {
        "taskArn": TASK_ARN,
        "clusterArn": CLUSTER_ARN,
        "containerInstanceArn": "arn:aws:ecs:us-west-2:111122223333:container-instance/my-cluster/ci-1",
        "launchType": "EC2",
        "lastStatus": "STOPPED",
    }
