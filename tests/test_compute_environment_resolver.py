"""
Tests for compute environment selection.
"""

from batchi.core.diagnostics import Diagnostics
from batchi.services.batch_service import BatchService
from batchi.services.compute_environment_resolver import (
    ComputeEnvironmentResolver,
    queue_compute_environments,
)

CE_A = "arn:aws:batch:us-west-2:111122223333:compute-environment/ce-a"
CE_B = "arn:aws:batch:us-west-2:111122223333:compute-environment/ce-b"
CLUSTER_A = "arn:aws:ecs:us-west-2:111122223333:cluster/ce-a-cluster"
CLUSTER_B = "arn:aws:ecs:us-west-2:111122223333:cluster/ce-b-cluster"

JOB = {"jobId": "job-123", "jobQueue": "arn:aws:batch:us-west-2:111122223333:job-queue/q"}


def _queue_with_two(batch):
    batch.describe_job_queues.return_value = {"jobQueues": [{
        # Deliberately out of order; selection follows the order field
        "computeEnvironmentOrder": [
            {"order": 2, "computeEnvironment": CE_B},
            {"order": 1, "computeEnvironment": CE_A},
        ],
    }]}
    batch.describe_compute_environments.return_value = {"computeEnvironments": [
        {"computeEnvironmentArn": CE_B, "computeEnvironmentName": "ce-b", "ecsClusterArn": CLUSTER_B},
        {"computeEnvironmentArn": CE_A, "computeEnvironmentName": "ce-a", "ecsClusterArn": CLUSTER_A},
    ]}


def test_queue_order_is_sorted():
    queue = {"computeEnvironmentOrder": [
        {"order": 3, "computeEnvironment": "c"},
        {"order": 1, "computeEnvironment": "a"},
        {"order": 2},
    ]}
    assert queue_compute_environments(queue) == ["a", "c"]
    assert queue_compute_environments({}) == []


def test_cluster_match_wins_over_queue_order(batch):
    _queue_with_two(batch)
    resolver = ComputeEnvironmentResolver(BatchService(batch))

    selected = resolver.resolve(JOB, CLUSTER_B)

    assert selected["computeEnvironmentName"] == "ce-b"
    # All queue environments described in one batched call
    batch.describe_compute_environments.assert_called_once_with(computeEnvironments=[CE_A, CE_B])


def test_first_in_queue_order_without_match(batch):
    _queue_with_two(batch)
    diagnostics = Diagnostics(debug=True)
    resolver = ComputeEnvironmentResolver(BatchService(batch), diagnostics)

    assert resolver.resolve(JOB, "arn:aws:ecs:us-west-2:111122223333:cluster/elsewhere")["computeEnvironmentName"] == "ce-a"
    assert resolver.resolve(JOB)["computeEnvironmentName"] == "ce-a"
    assert any("No cluster match" in e.message for e in diagnostics.events)


def test_direct_reference_skips_the_queue(batch):
    batch.describe_compute_environments.return_value = {"computeEnvironments": [
        {"computeEnvironmentArn": CE_A, "ecsClusterArn": CLUSTER_A},
    ]}
    resolver = ComputeEnvironmentResolver(BatchService(batch))

    candidates = resolver.candidates(dict(JOB, computeEnvironment=CE_A))

    assert resolver.cluster_hint(candidates) == CLUSTER_A
    assert resolver.select(candidates) is candidates[0]
    batch.describe_job_queues.assert_not_called()


def test_queue_candidates_hint_then_select_without_more_calls(batch):
    _queue_with_two(batch)
    resolver = ComputeEnvironmentResolver(BatchService(batch))

    candidates = resolver.candidates(JOB)

    assert [env["computeEnvironmentName"] for env in candidates] == ["ce-a", "ce-b"]
    assert resolver.cluster_hint(candidates) == CLUSTER_A
    assert resolver.select(candidates, CLUSTER_B)["computeEnvironmentName"] == "ce-b"
    assert batch.describe_job_queues.call_count == 1
    assert batch.describe_compute_environments.call_count == 1


def test_failure_is_absorbed(batch, client_error):
    batch.describe_job_queues.side_effect = client_error("AccessDeniedException", "denied", "DescribeJobQueues")
    diagnostics = Diagnostics(debug=True)
    resolver = ComputeEnvironmentResolver(BatchService(batch), diagnostics)

    assert resolver.candidates(JOB) == []
    assert resolver.resolve(JOB) is None
    assert diagnostics.events[0].fields["job_queue"] == JOB["jobQueue"]


def test_cluster_hint_empty_without_environment():
    resolver = ComputeEnvironmentResolver(BatchService(None))
    assert resolver.cluster_hint([]) is None
    assert resolver.cluster_hint([{"ecsClusterArn": ""}]) is None
    assert resolver.select([], CLUSTER_A) is None
