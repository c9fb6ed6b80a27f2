import os
from dataclasses import dataclass
from typing import Optional

from aws_cdk import Environment
from constructs import Node


DEFAULT_TABLE_NAME = 'Todos-CDK-demo'
DEFAULT_API_NAME = 'Todo-CDK-API'


def _context(node: Node, key: str, default=None):
    value = node.try_get_context(key)
    if value is None:
        return default
    if isinstance(value, str) and not value.strip():
        raise ValueError(f'context value {key!r} must not be empty')
    return value


@dataclass(frozen=True)
class TodoSettings:
    """Deployment settings, read from CDK context (cdk.json or ``-c key=value``)."""

    table_name: str = DEFAULT_TABLE_NAME
    api_name: str = DEFAULT_API_NAME
    account: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def from_node(cls, node: Node) -> 'TodoSettings':
        return cls(
            table_name=_context(node, 'tableName', DEFAULT_TABLE_NAME),
            api_name=_context(node, 'apiName', DEFAULT_API_NAME),
            account=_context(node, 'account', os.environ.get('CDK_DEFAULT_ACCOUNT')),
            region=_context(node, 'region', os.environ.get('CDK_DEFAULT_REGION')),
        )

    def environment(self) -> Environment:
        return Environment(account=self.account, region=self.region)
