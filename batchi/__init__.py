"""
Batch Inspector.

Resolves an AWS Batch job id into its full execution context: ECS task,
cluster, container instance, EC2 host, VPC, compute environment and log tail.
"""

__version__ = "0.1.0"
