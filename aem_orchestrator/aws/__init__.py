"""AWS integration.

API:
    - CloudResourceGateway: EC2, ELB and Auto Scaling operations
    - create_clients: boto3 client construction
"""

from .clients import AwsClients, create_clients
from .gateway import CloudResourceGateway

__all__ = ["AwsClients", "create_clients", "CloudResourceGateway"]
