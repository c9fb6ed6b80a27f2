"""
tests/conftest.py
~~~~~~~~~~~~~~~~~
Shared pytest fixtures.

Stack tests synthesize with asset bundling switched off, so no Docker is
needed. Handler tests use moto to mock DynamoDB in-process.
"""

# Set environment variables at MODULE IMPORT TIME (before boto3 is used)
import os

os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ["TODO_TABLE_NAME"] = "todos-test"

import aws_cdk as cdk
import pytest
from aws_cdk.assertions import Template

from todo_crud.functions.todo import handler
from todo_crud.settings import TodoSettings
from todo_crud.todo_crud_stack import TodoCrudStack

NO_BUNDLING = {"aws:cdk:bundling-stacks": []}


def synth_template(context=None, settings=None):
    app = cdk.App(context={**NO_BUNDLING, **(context or {})})
    stack = TodoCrudStack(app, "TodoCrudStack", settings=settings)
    return stack, Template.from_stack(stack)


@pytest.fixture
def stack_and_template():
    return synth_template(settings=TodoSettings())


@pytest.fixture
def template(stack_and_template):
    return stack_and_template[1]


# ──────────────────────────────────────────────────────────── moto DynamoDB

@pytest.fixture
def todo_table(monkeypatch):
    """
    Spin up an in-process mocked DynamoDB table via moto.
    Each test gets a clean slate and a fresh handler table resource.
    """
    from moto import mock_aws
    import boto3

    with mock_aws():
        table = boto3.resource("dynamodb").create_table(
            TableName=os.environ["TODO_TABLE_NAME"],
            KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        monkeypatch.setattr(handler, "_TABLE", None)
        yield table


class FakeContext:
    aws_request_id = "req-1234"


@pytest.fixture
def context():
    return FakeContext()
