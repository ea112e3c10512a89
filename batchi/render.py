"""
Terminal output for batchi commands.

Renders a finished JobChain; nothing here talks to AWS.
"""

import os
import sys
from typing import Any, Callable, Dict, List, Optional

from batchi.services.doctor_service import DoctorReport
from batchi.services.job_chain_resolver import JobChain
from batchi.utils import console_urls
from batchi.utils.time_utils import format_timestamp

DIVIDER = "─" * 71
LABEL_WIDTH = 14
MAX_ENV_SHOWN = 10


def _color_enabled() -> bool:
    return sys.stdout.isatty() and not os.environ.get("NO_COLOR")


def _wrap(code: str) -> Callable[[str], str]:
    def style(text: str) -> str:
        if not _color_enabled():
            return text
        return f"\x1b[{code}m{text}\x1b[0m"
    return style


bold = _wrap("1")
dim = _wrap("2")
red = _wrap("31")
green = _wrap("32")
yellow = _wrap("33")
gray = _wrap("90")
cyan = _wrap("96")


def print_section(title: str):
    """
    Print a formatted section header.

    Args:
        title: Section title
    """
    print("")
    print(yellow(bold(title)))


def kv(label: str, value: Any, style: Callable[[str], str] = cyan):
    """Print one aligned key/value line; empty values are skipped."""
    if value is None or value == "":
        return
    print(f"{style(label.ljust(LABEL_WIDTH))}  {value}")


def print_log_lines(lines: List[str]):
    if not lines:
        print(gray("No log events found."))
        return
    print(gray(f"─── Logs (last {len(lines)}) BEGIN ─────────────────────────────────"))
    for line in lines:
        print(dim(f"  {line}"))
    print(gray("─── Logs END ───────────────────────────────────────────────────────"))


def status_label(chain: JobChain) -> str:
    if chain.failed:
        return red(bold("[Failed]"))
    if chain.status == "SUCCEEDED":
        return green(bold("[Success]"))
    return yellow(bold(f"[{chain.status}]"))


def render_job(chain: JobChain, region: str):
    job = chain.job
    print(gray(DIVIDER))
    print_section("Job Details")
    kv("Id", f"{job.get('jobName')} ({job.get('jobId')})")
    kv("Status", status_label(chain))
    if chain.exit_code is not None:
        kv("Exit Code", chain.exit_code)
    if chain.reason:
        kv("Reason", red(chain.reason) if chain.failed else yellow(chain.reason))
    kv("Attempts", len(job.get("attempts") or []))
    kv("Created", format_timestamp(job.get("createdAt")))
    if job.get("stoppedAt"):
        kv("Stopped", format_timestamp(job.get("stoppedAt")))
    kv("Queue", job.get("jobQueue"))
    kv("Launch Type", chain.launch_type)
    kv("Image", chain.image)
    if chain.command:
        kv("Cmd", " ".join(chain.command))
    if chain.job_id:
        kv("Console", console_urls.build_job_url(region, chain.job_id))


def render_compute_environment(compute_environment: Optional[Dict[str, Any]]):
    if not compute_environment:
        return
    print_section("Compute Environment")
    kv("Name", compute_environment.get("computeEnvironmentName"))
    kv("Type", compute_environment.get("type"))
    kv("State", compute_environment.get("state"))
    kv("Cluster", compute_environment.get("ecsClusterArn"))
    resources = compute_environment.get("computeResources") or {}
    if resources.get("instanceTypes"):
        kv("Instances", ", ".join(resources["instanceTypes"]))
    kv("Allocation", resources.get("allocationStrategy"))


def render_task(chain: JobChain, region: str):
    print_section("ECS Task")
    if not chain.task:
        if chain.eks_pod_name:
            kv("Pod", chain.eks_pod_name)
            kv("Node", chain.eks_node_name)
        else:
            print(gray("No ECS task resolved."))
        return
    kv("ARN", chain.task.get("taskArn"))
    kv("Cluster", chain.cluster_arn)
    kv("Status", chain.task.get("lastStatus"))
    kv("Console", console_urls.build_task_url(region, chain.cluster_arn, chain.task.get("taskArn", "")))


def render_host(chain: JobChain, region: str):
    if chain.launch_type in ("FARGATE", "EKS"):
        return
    print_section("Host (EC2)")
    instance = chain.ec2_instance
    if not instance:
        if chain.task:
            print(gray("ECS task resolved, but EC2 instance not found."))
        else:
            print(gray("No EC2 instance found."))
        return
    groups = ", ".join(
        f"{g.get('GroupName')}({g.get('GroupId')})" for g in instance.get("SecurityGroups") or []
    )
    kv("Instance", instance.get("InstanceId"))
    kv("Type", instance.get("InstanceType"))
    kv("Private IP", instance.get("PrivateIpAddress"))
    kv("Public IP", instance.get("PublicIpAddress") or "-")
    kv("Subnet", instance.get("SubnetId"))
    kv("SGs", groups)
    kv("Console", console_urls.build_instance_url(region, instance.get("InstanceId", "")))


def render_vpc(chain: JobChain, region: str):
    print_section("Network")
    vpc = chain.vpc
    if not vpc:
        print(gray("No VPC details available."))
        return
    kv("VPC", f"{vpc.get('name') or '-'} ({vpc.get('vpc_id')})")
    kv("CIDR", vpc.get("cidr_block"))
    kv("IPv6 CIDR", vpc.get("ipv6_cidr_block"))
    kv("State", vpc.get("state"))
    kv("DHCP Options", vpc.get("dhcp_options_id"))
    kv("Console", console_urls.build_vpc_url(region, vpc.get("vpc_id", "")))


def render_log_header(region: str, log_group_name: str, log_stream_name: Optional[str]):
    print_section("Logs")
    kv("Group", log_group_name)
    kv("Stream", log_stream_name or "-")
    if log_stream_name:
        kv("Console", console_urls.build_log_stream_url(region, log_group_name, log_stream_name))


def render_environment(environment: Dict[str, Optional[str]]):
    if not environment:
        return
    print_section(f"Env ({len(environment)})")
    for name, value in list(environment.items())[:MAX_ENV_SHOWN]:
        print(f"  {name}={value or ''}")
    if len(environment) > MAX_ENV_SHOWN:
        print("  ...")


def render_chain(chain: JobChain, region: str):
    render_job(chain, region)
    render_compute_environment(chain.compute_environment)
    render_task(chain, region)
    render_host(chain, region)
    render_vpc(chain, region)
    render_log_header(region, chain.log_group_name, chain.log_stream_name)
    if chain.log_stream_name:
        print("")
        print_log_lines(chain.log_lines or [])
    else:
        print(gray("No logs available."))
    render_environment(chain.environment)


def render_doctor(report: DoctorReport):
    ok = green("✓")
    bad = red("✗")
    print(gray(DIVIDER))
    print_section("Doctor")
    kv("Region", report.region)
    if report.identity.passed:
        print(f"{ok} {cyan('AWS credentials resolved')} {dim(report.identity_arn or '')}")
    else:
        print(f"{bad} {red('AWS credentials not configured or invalid')}")
        if report.identity.message:
            print(dim(f"  {report.identity.message}"))

    print_section("Command Permissions")
    for command, results in report.commands.items():
        print(f"{ok if report.command_passed(command) else bad} {command}")
        for result in results:
            if not result.passed and result.message:
                print(dim(f"  {result.name}: {result.message}"))

    print("")
    if report.passed:
        print(green(bold("You're good to go!")))
    else:
        print(red(bold("Some checks failed. Please review errors above.")))
