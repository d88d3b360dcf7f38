from pytest_bdd import when, parsers, scenarios
from common_steps import *

scenarios("../features/delete.feature")


@when("I cancel that order")
def step_cancel(client, scenario_data):
    scenario_data["response"] = client.delete(f"/orders/{scenario_data['order_id']}")


@when(parsers.parse("I cancel the order with ID {order_id:d}"))
def step_cancel_by_id(client, scenario_data, order_id):
    scenario_data["response"] = client.delete(f"/orders/{order_id}")
