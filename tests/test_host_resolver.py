"""
Tests for EC2 host resolution.
"""

from batchi.core.diagnostics import Diagnostics
from batchi.services.host_resolver import (
    PATH_CONTAINER_INSTANCE,
    PATH_NETWORK_INTERFACE,
    HostResolution,
    HostResolutionEngine,
)

CONTAINER_INSTANCE_ARN = "arn:aws:ecs:us-west-2:111122223333:container-instance/my-cluster/ci-1"
INSTANCE = {"InstanceId": "i-0abc", "VpcId": "vpc-1", "InstanceType": "m5.large"}


def _with_instance(ec2):
    ec2.describe_instances.return_value = {"Reservations": [{"Instances": [INSTANCE]}]}


def test_fargate_skips_every_lookup(ecs, ec2, ecs_task, cluster_arn):
    """Fargate tasks never touch describe_container_instances, even with an ARN present."""
    task = dict(ecs_task, launchType="FARGATE", containerInstanceArn=CONTAINER_INSTANCE_ARN)
    diagnostics = Diagnostics(debug=True)

    result = HostResolutionEngine(ecs, ec2, diagnostics).resolve(task, None, cluster_arn, fargate=True)

    assert result == HostResolution()
    ecs.describe_container_instances.assert_not_called()
    ec2.describe_network_interfaces.assert_not_called()
    ec2.describe_instances.assert_not_called()
    assert diagnostics.events[0].message.startswith("Fargate")


def test_container_instance_path(ecs, ec2, ecs_task, cluster_arn):
    ecs.describe_container_instances.return_value = {
        "containerInstances": [{"containerInstanceArn": CONTAINER_INSTANCE_ARN, "ec2InstanceId": "i-0abc"}]
    }
    _with_instance(ec2)

    result = HostResolutionEngine(ecs, ec2).resolve(ecs_task, None, cluster_arn)

    assert result.path == PATH_CONTAINER_INSTANCE
    assert result.instance_id == "i-0abc"
    assert result.instance == INSTANCE
    ecs.describe_container_instances.assert_called_once_with(
        containerInstances=[CONTAINER_INSTANCE_ARN], cluster=cluster_arn
    )
    ec2.describe_instances.assert_called_once_with(InstanceIds=["i-0abc"])
    ec2.describe_network_interfaces.assert_not_called()


def test_container_instance_cluster_rebuilt_from_arn(ecs, ec2, ecs_task, cluster_arn):
    """Without a resolved cluster the container-instance ARN supplies it."""
    HostResolutionEngine(ecs, ec2).resolve(ecs_task, None, None)

    assert ecs.describe_container_instances.call_args.kwargs["cluster"] == cluster_arn


def test_network_interface_path(ecs, ec2, ecs_task, cluster_arn):
    """No container instance: the task's ENI attachment names the instance."""
    task = dict(ecs_task, containerInstanceArn=None, attachments=[{
        "type": "ElasticNetworkInterface",
        "details": [{"name": "networkInterfaceId", "value": "eni-123"}],
    }])
    ec2.describe_network_interfaces.return_value = {
        "NetworkInterfaces": [{"NetworkInterfaceId": "eni-123", "Attachment": {"InstanceId": "i-0abc"}}]
    }
    _with_instance(ec2)

    result = HostResolutionEngine(ecs, ec2).resolve(task, None, cluster_arn)

    assert result.path == PATH_NETWORK_INTERFACE
    assert result.instance_id == "i-0abc"
    assert result.network_interface["NetworkInterfaceId"] == "eni-123"
    ecs.describe_container_instances.assert_not_called()
    ec2.describe_network_interfaces.assert_called_once_with(NetworkInterfaceIds=["eni-123"])


def test_container_instance_without_host_falls_through_to_interface(ecs, ec2, ecs_task, cluster_arn):
    container = {"networkInterfaces": [{"attachmentId": "eni-attach-9", "privateIpv4Address": "10.0.0.5"}]}
    ec2.describe_network_interfaces.return_value = {
        "NetworkInterfaces": [{"Attachment": {"InstanceId": "i-0abc"}}]
    }
    _with_instance(ec2)

    result = HostResolutionEngine(ecs, ec2).resolve(ecs_task, container, cluster_arn)

    assert result.path == PATH_NETWORK_INTERFACE
    ec2.describe_network_interfaces.assert_called_once_with(
        Filters=[{"Name": "attachment.attachment-id", "Values": ["eni-attach-9"]}]
    )


def test_instance_not_found_is_traced(ecs, ec2, ecs_task, cluster_arn):
    diagnostics = Diagnostics(debug=True)

    result = HostResolutionEngine(ecs, ec2, diagnostics).resolve(ecs_task, None, cluster_arn)

    assert result.instance_id is None
    assert result.instance is None
    ec2.describe_instances.assert_not_called()
    assert "ECS task resolved, but EC2 instance not found" in [e.message for e in diagnostics.events]


def test_lookup_failures_are_absorbed(ecs, ec2, ecs_task, cluster_arn, client_error):
    ecs.describe_container_instances.side_effect = client_error("AccessDeniedException", "denied")
    diagnostics = Diagnostics(debug=True)

    result = HostResolutionEngine(ecs, ec2, diagnostics).resolve(ecs_task, None, cluster_arn)

    assert result.instance_id is None
    assert result.container_instance_arn == CONTAINER_INSTANCE_ARN
    failures = [e for e in diagnostics.events if e.error_type]
    assert failures[0].fields["operation"] == "describe_container_instances"
