"""Lambda entry points for the Todo CRUD routes.

Every function of the stack is built from this module; each route's function
points at a different entry symbol. Events are API Gateway HTTP API payload
version 2.0 events.
"""

import base64
import functools
import json
import logging
import os
import uuid
from decimal import Decimal, DecimalException

import boto3
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

TABLE_NAME_ENV = 'TODO_TABLE_NAME'
JSON_HEADERS = {'Content-Type': 'application/json'}

_TABLE = None
_SERIALIZER = TypeSerializer()


logger = logging.getLogger()
logger.setLevel(logging.INFO)


class BadRequest(Exception):
    pass


def get_table():
    """Returns the todo table resource. Created on first use so tests can mock it."""
    global _TABLE
    if _TABLE is None:
        _TABLE = boto3.resource('dynamodb').Table(os.environ[TABLE_NAME_ENV])
    return _TABLE


def _json_default(value):
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    raise TypeError(f'{value.__class__.__name__} is not JSON serializable')


def response(status_code, body=None):
    return {
        'statusCode': status_code,
        'headers': JSON_HEADERS,
        'body': json.dumps(body, default=_json_default) if body is not None else '',
    }


def error(status_code, message, request_id=None):
    return response(status_code, {'error': message, 'ref': request_id})


def _request_id(context):
    return getattr(context, 'aws_request_id', None)


def _todo_id(event):
    todo_id = (event.get('pathParameters') or {}).get('id')
    if not todo_id:
        raise BadRequest('missing todo id')
    return todo_id


def _reject_constant(name):
    raise ValueError(f'{name} is not a valid number')


def _json_body(event):
    body = event.get('body')
    if not body:
        raise BadRequest('missing request body')
    try:
        if event.get('isBase64Encoded'):
            body = base64.b64decode(body).decode('utf-8')
        data = json.loads(body, parse_float=Decimal, parse_constant=_reject_constant)
    except ValueError:
        raise BadRequest('request body is not valid JSON')
    if not isinstance(data, dict):
        raise BadRequest('request body must be a JSON object')
    try:
        _SERIALIZER.serialize(data)
    except (TypeError, DecimalException):
        raise BadRequest('request body has values DynamoDB cannot store')
    return data


def _handle(operation):
    # Maps request and store failures to HTTP responses
    def decorator(fun):
        @functools.wraps(fun)
        def wrapper(event, context):
            request_id = _request_id(context)
            try:
                return fun(event or {}, request_id)
            except BadRequest as e:
                logger.info(f"{request_id} {operation} rejected: {e}")
                return error(400, str(e), request_id)
            except ClientError as e:
                logger.error(f"{request_id} {operation} failed: {e}")
                return error(500, 'internal error', request_id)
        return wrapper
    return decorator


@_handle('create')
def create_todo(event, request_id):
    """POST /todo"""
    item = _json_body(event)
    item['id'] = str(uuid.uuid4())
    get_table().put_item(Item=item)
    logger.info(f"{request_id} created todo {item['id']}")
    return response(201, item)


@_handle('list')
def get_todos(event, request_id):
    """GET /todo"""
    table = get_table()
    result = table.scan()
    items = result['Items']
    while 'LastEvaluatedKey' in result:
        result = table.scan(ExclusiveStartKey=result['LastEvaluatedKey'])
        items.extend(result['Items'])
    logger.info(f"{request_id} listed {len(items)} todos")
    return response(200, items)


@_handle('get')
def get_todo_by_id(event, request_id):
    """GET /todo/{id}"""
    todo_id = _todo_id(event)
    result = get_table().get_item(Key={'id': todo_id})
    if 'Item' not in result:
        logger.info(f"{request_id} todo not found: {todo_id}")
        return error(404, 'todo not found', request_id)
    return response(200, result['Item'])


@_handle('update')
def update_todo(event, request_id):
    """PUT /todo/{id}

    Sets every attribute of the body on an existing todo. The id is immutable.
    """
    todo_id = _todo_id(event)
    changes = {k: v for k, v in _json_body(event).items() if k != 'id'}
    if not changes:
        raise BadRequest('nothing to update')

    names = {f'#a{i}': key for i, key in enumerate(changes)}
    names['#id'] = 'id'
    values = {f':v{i}': value for i, value in enumerate(changes.values())}
    expression = 'SET ' + ', '.join(f'#a{i} = :v{i}' for i in range(len(changes)))
    try:
        result = get_table().update_item(
            Key={'id': todo_id},
            UpdateExpression=expression,
            ConditionExpression='attribute_exists(#id)',
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=values,
            ReturnValues='ALL_NEW',
        )
    except ClientError as e:
        if e.response['Error']['Code'] != 'ConditionalCheckFailedException':
            raise
        logger.info(f"{request_id} todo not found: {todo_id}")
        return error(404, 'todo not found', request_id)

    logger.info(f"{request_id} updated todo {todo_id}")
    return response(200, result['Attributes'])


@_handle('delete')
def delete_todo(event, request_id):
    """DELETE /todo/{id}"""
    todo_id = _todo_id(event)
    result = get_table().delete_item(Key={'id': todo_id}, ReturnValues='ALL_OLD')

    # Todo id likely not found
    if 'Attributes' not in result:
        logger.info(f"{request_id} todo not found: {todo_id}")
        return error(404, 'todo not found', request_id)

    logger.info(f"{request_id} deleted todo {todo_id}")
    return response(200, result['Attributes'])
