"""
Helpers for reading a Batch job record.

The job's declared container is authoritative for image, command and
environment. The latest attempt is authoritative for runtime facts
(task, container instance, log stream, exit code, network interfaces).
"""

from typing import Any, Dict, List, Optional

LAUNCH_EC2 = "EC2"
LAUNCH_FARGATE = "FARGATE"
LAUNCH_EKS = "EKS"


def latest(items: Optional[List[Any]]) -> Optional[Any]:
    return items[-1] if items else None


def first(items: Optional[List[Any]]) -> Optional[Any]:
    return items[0] if items else None


def declared_container(job: Dict[str, Any]) -> Dict[str, Any]:
    """
    The container spec the job was submitted with.

    Multi-container ECS jobs keep it under ecsProperties; the first
    container there stands in for the job.
    """
    if job.get("container"):
        return job["container"]
    task_props = first(job.get("ecsProperties", {}).get("taskProperties"))
    if task_props:
        containers = task_props.get("containers") or []
        if containers:
            return containers[0]
    return {}


def runtime_container(job: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    The runtime container record of the latest attempt.

    Falls back to the job-level container when there are no attempts yet
    (e.g. RUNNING jobs expose taskArn and logStreamName there).
    """
    attempt = latest(job.get("attempts"))
    if attempt:
        if attempt.get("container"):
            return attempt["container"]
        task_props = first(attempt.get("taskProperties"))
        if task_props:
            return _merge_task_properties(task_props)
    if job.get("container"):
        return job["container"]
    task_props = first(job.get("ecsProperties", {}).get("taskProperties"))
    if task_props:
        return _merge_task_properties(task_props)
    return None


def _merge_task_properties(task_props: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(first(task_props.get("containers")) or {})
    for key in ("taskArn", "containerInstanceArn"):
        if task_props.get(key):
            merged[key] = task_props[key]
    return merged


def runtime_value(job: Dict[str, Any], key: str) -> Optional[Any]:
    """Read a runtime field from the latest attempt, falling back to the job container."""
    runtime = runtime_container(job) or {}
    value = runtime.get(key)
    if value is None:
        value = declared_container(job).get(key)
    return value


def environment_map(container: Dict[str, Any]) -> Dict[str, Optional[str]]:
    env: Dict[str, Optional[str]] = {}
    for pair in container.get("environment") or []:
        name = pair.get("name") if isinstance(pair, dict) else None
        if name:
            env[name] = pair.get("value")
    return env


def is_eks_job(job: Dict[str, Any]) -> bool:
    return (
        LAUNCH_EKS in (job.get("platformCapabilities") or [])
        or bool(job.get("eksProperties"))
        or bool(job.get("eksAttempts"))
    )


def job_launch_type(job: Dict[str, Any], task: Optional[Dict[str, Any]] = None) -> Optional[str]:
    """
    Launch type of the job. A resolved ECS task's launchType wins over
    the job's declared platform capability.
    """
    if is_eks_job(job):
        return LAUNCH_EKS
    if task and task.get("launchType"):
        return task["launchType"]
    capabilities = job.get("platformCapabilities") or []
    if LAUNCH_FARGATE in capabilities:
        return LAUNCH_FARGATE
    if LAUNCH_EC2 in capabilities:
        return LAUNCH_EC2
    return None


def is_fargate(job: Dict[str, Any], task: Optional[Dict[str, Any]] = None) -> bool:
    if task and task.get("launchType") == LAUNCH_FARGATE:
        return True
    return LAUNCH_FARGATE in (job.get("platformCapabilities") or [])


def eks_pod(job: Dict[str, Any]) -> Dict[str, Optional[str]]:
    attempt = latest(job.get("eksAttempts")) or {}
    return {
        "pod_name": attempt.get("podName"),
        "node_name": attempt.get("nodeName"),
    }
