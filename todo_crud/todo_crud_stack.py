from typing import Optional

from aws_cdk import (
    CfnOutput, RemovalPolicy, Stack, aws_apigatewayv2, aws_apigatewayv2_integrations,
    aws_dynamodb, aws_lambda,
)
from constructs import Construct

from todo_crud.bundling import FunctionBundling
from todo_crud.settings import TodoSettings


RUNTIME = aws_lambda.Runtime.PYTHON_3_12
HANDLER_MODULE = 'handler'
TABLE_NAME_ENV = 'TODO_TABLE_NAME'

# construct id -> entry symbol in the shared handler module
FUNCTIONS = {
    'createTodo': 'create_todo',
    'getTodos': 'get_todos',
    'getTodoById': 'get_todo_by_id',
    'updateTodo': 'update_todo',
    'deleteTodo': 'delete_todo',
}

ROUTES = (
    ('POST', '/todo', 'createTodo'),
    ('GET', '/todo', 'getTodos'),
    ('GET', '/todo/{id}', 'getTodoById'),
    ('PUT', '/todo/{id}', 'updateTodo'),
    ('DELETE', '/todo/{id}', 'deleteTodo'),
)

CORS_HEADERS = [
    'Content-Type',
    'X-Amz-Date',
    'Authorization',
    'X-Api-Key',
    'X-Amz-Security-Token',
    'X-Amz-User-Agent',
]
CORS_METHODS = [
    aws_apigatewayv2.CorsHttpMethod.GET,
    aws_apigatewayv2.CorsHttpMethod.POST,
    aws_apigatewayv2.CorsHttpMethod.PUT,
    aws_apigatewayv2.CorsHttpMethod.DELETE,
]


class TodoCrudStack(Stack):

    def __init__(self, scope: Construct, construct_id: str,
                 settings: Optional[TodoSettings] = None,
                 bundling: Optional[FunctionBundling] = None, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)
        settings = settings or TodoSettings()
        bundling = bundling or FunctionBundling()

        self.table = aws_dynamodb.Table(
            self, 'TodosTable-CDK', partition_key=aws_dynamodb.Attribute(
                name='id',
                type=aws_dynamodb.AttributeType.STRING
            ),
            table_name=settings.table_name,
            billing_mode=aws_dynamodb.BillingMode.PAY_PER_REQUEST,
            removal_policy=RemovalPolicy.RETAIN,
        )

        code = bundling.code(RUNTIME)
        self.functions = {}
        self.grants = {}
        for name, entry in FUNCTIONS.items():
            fun = aws_lambda.Function(
                self, name, runtime=RUNTIME, code=code,
                handler=f'{HANDLER_MODULE}.{entry}',
                environment={TABLE_NAME_ENV: self.table.table_name},
            )
            self.grants[name] = self.table.grant_read_write_data(fun)
            self.functions[name] = fun

        self.api = aws_apigatewayv2.HttpApi(
            self, 'TodoCDKAPI', api_name=settings.api_name,
            cors_preflight=aws_apigatewayv2.CorsPreflightOptions(
                allow_headers=CORS_HEADERS,
                allow_methods=CORS_METHODS,
                allow_origins=['*'],
            ),
        )

        self.routes = {}
        for method, path, name in ROUTES:
            routes = self.api.add_routes(
                path=path, methods=[aws_apigatewayv2.HttpMethod(method)],
                integration=aws_apigatewayv2_integrations.HttpLambdaIntegration(
                    f'{name}Integration', self.functions[name]
                ),
            )
            self.grants[name].apply_before(*routes)
            self.routes[(method, path)] = routes[0]

        CfnOutput(self, 'apiUrl', value=self.api.url)
