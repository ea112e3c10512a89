#!/usr/bin/env python3
"""
Batch Inspector (batchi) - AWS Batch job debugging CLI.

Commands:
    inspect    Job summary: status, task, host, network, compute environment, last logs
    logs       Fetch or follow the job's CloudWatch log stream
    artifacts  Find s3:// inputs/outputs in env/cmd and presign them
    doctor     Check credentials and read permissions
"""

import argparse
import json
import sys
import threading
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

from batchi import __version__, render
from batchi.core.aws_clients import AwsClients, make_aws_clients
from batchi.core.config import settings
from batchi.core.diagnostics import Diagnostics
from batchi.core.errors import BatchiError
from batchi.core.logger import default_json_serializer, setup_logging
from batchi.services.artifact_service import ArtifactService, extract_s3_urls
from batchi.services.doctor_service import DoctorService
from batchi.services.job_chain_resolver import JobChain, JobChainResolver, ResolveOptions
from batchi.services.log_tail_service import LogTailService
from batchi.utils import console_urls
from batchi.utils.time_utils import minutes_to_timedelta


def _resolve(args: argparse.Namespace, clients: AwsClients, fetch_logs: bool = True) -> JobChain:
    options = ResolveOptions.from_settings(
        log_group_name=getattr(args, "log_group", None),
        log_line_count=getattr(args, "log_lines", None),
        fetch_logs=fetch_logs,
    )
    diagnostics = Diagnostics(debug=args.debug or settings.BATCHI_DEBUG)
    return JobChainResolver(clients, options, diagnostics).resolve(args.job_id)


def cmd_inspect(args: argparse.Namespace) -> int:
    clients = make_aws_clients(args.region)
    chain = _resolve(args, clients)
    if args.json:
        print(json.dumps(chain.to_dict(), indent=2, default=default_json_serializer))
    else:
        render.render_chain(chain, clients.region)
    return 0


def cmd_logs(args: argparse.Namespace) -> int:
    if not args.job_id and not args.stream:
        print("[error] a job id or --stream is required", file=sys.stderr)
        return 2

    clients = make_aws_clients(args.region)
    group = args.log_group or settings.BATCHI_LOG_GROUP
    line_count = max(1, args.log_lines or settings.BATCHI_LOG_LINES)

    stream = args.stream
    if not stream:
        stream = _resolve(args, clients, fetch_logs=False).log_stream_name

    print(render.gray(render.DIVIDER))
    render.render_log_header(clients.region, group, stream)
    print("")
    if not stream:
        print(render.gray("No logs available."))
        return 0

    service = LogTailService(clients.logs, group)
    since = minutes_to_timedelta(args.since)

    if not args.follow:
        render.print_log_lines(service.fetch_tail(stream, line_count, since=since))
        return 0

    print(render.gray("─── Streaming (Ctrl+C to stop) ───────────────────────────────────────"))
    stop = threading.Event()
    try:
        for batch in service.follow(stream, from_start=args.from_start, since=since, stop_event=stop):
            for line in batch.lines:
                print(render.dim(f"  {line}"), flush=True)
    except KeyboardInterrupt:
        stop.set()
    return 0


def cmd_artifacts(args: argparse.Namespace) -> int:
    clients = make_aws_clients(args.region)
    chain = _resolve(args, clients, fetch_logs=False)
    found = extract_s3_urls(chain.environment, chain.command)
    expires = max(60, args.expires or settings.BATCHI_PRESIGN_EXPIRES)

    print(render.gray(render.DIVIDER))
    render.print_section("Artifacts")
    if not found:
        print(render.gray("No s3:// URLs found in env or command."))
        return 0

    service = ArtifactService(clients.s3)
    for ref in found:
        render.kv("Source", ref.name or ref.source)
        render.kv("S3", ref.url)
        status = service.inspect(ref, expires_in=expires)
        if not status.exists:
            render.kv("Status", render.red("Not Found"))
        elif status.is_prefix:
            render.kv("Type", "Prefix")
            if args.console:
                render.kv("Console", console_urls.build_s3_url(clients.region, ref.bucket, ref.key, True))
            if args.list:
                keys = service.list_keys(ref.bucket, ref.key)
                if keys:
                    suffix = "+" if len(keys) >= 1000 else ""
                    render.print_section(f"Objects ({len(keys)}{suffix})")
                    for key in keys:
                        print(render.dim(f"  {key}"))
                else:
                    render.kv("List", "No objects under prefix")
        else:
            render.kv("Type", status.content_type or "Object")
            if status.size is not None:
                render.kv("Size", f"{status.size} bytes")
            render.kv("Presigned", status.presigned_url)
            if args.console:
                render.kv("Console", console_urls.build_s3_url(clients.region, ref.bucket, ref.key, False))
        print("")
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    report = DoctorService(make_aws_clients(args.region)).run()
    render.render_doctor(report)
    return 0 if report.passed else 1


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-r", "--region", help="AWS region (default: AWS_REGION, AWS_DEFAULT_REGION or us-west-2)")
    common.add_argument("--debug", action="store_true", help="Show diagnostics for skipped lookups")

    parser = argparse.ArgumentParser(prog="batchi", description="Batch Inspector CLI")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    inspect = sub.add_parser(
        "inspect",
        parents=[common],
        help="Show job summary: status, links, image, env, host, last logs",
    )
    inspect.add_argument("job_id", help="AWS Batch Job ID")
    inspect.add_argument("--log-group", help="CloudWatch Logs group name (default: /aws/batch/job)")
    inspect.add_argument("--log-lines", type=int, help="Number of last log lines to include (default: 50)")
    inspect.add_argument("--json", action="store_true", help="Print the resolved chain as JSON")
    inspect.set_defaults(handler=cmd_inspect)

    logs = sub.add_parser("logs", parents=[common], help="Fetch or stream CloudWatch logs for the job's log stream")
    logs.add_argument("job_id", nargs="?", help="AWS Batch Job ID")
    logs.add_argument("--log-group", help="CloudWatch Logs group name (default: /aws/batch/job)")
    logs.add_argument("--log-lines", type=int, help="Number of last log lines to show (default: 50)")
    logs.add_argument("--stream", help="Override log stream name (skip job resolution)")
    logs.add_argument("-f", "--follow", action="store_true", help="Stream logs until interrupted")
    logs.add_argument("--from-start", action="store_true", help="When following, start from beginning of stream")
    logs.add_argument("--since", type=float, help="Only show events since N minutes ago")
    logs.set_defaults(handler=cmd_logs)

    artifacts = sub.add_parser(
        "artifacts",
        parents=[common],
        help="Detect s3:// inputs/outputs from env/cmd and presign for quick download",
    )
    artifacts.add_argument("job_id", help="AWS Batch Job ID")
    artifacts.add_argument("--expires", type=int, help="Presign expiry in seconds (default: 3600)")
    artifacts.add_argument("--log-group", help="CloudWatch Logs group name (for resolution)")
    artifacts.add_argument("--console", action="store_true", help="Print AWS Console links for each S3 URL")
    artifacts.add_argument("--list", action="store_true", help="List object names for detected S3 prefixes")
    artifacts.set_defaults(handler=cmd_artifacts)

    doctor = sub.add_parser("doctor", parents=[common], help="Check AWS configuration and required permissions")
    doctor.set_defaults(handler=cmd_doctor)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    debug = args.debug or settings.BATCHI_DEBUG
    setup_logging("INFO" if debug else settings.LOG_LEVEL, settings.LOG_FORMAT)

    try:
        return args.handler(args)
    except (BatchiError, ClientError, BotoCoreError) as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
