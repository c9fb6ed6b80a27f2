#!/usr/bin/env python3
import aws_cdk as cdk

from todo_crud.settings import TodoSettings
from todo_crud.todo_crud_stack import TodoCrudStack


app = cdk.App()
settings = TodoSettings.from_node(app.node)
TodoCrudStack(app, 'TodoCrudStack', settings=settings, env=settings.environment())
app.synth()
