from decimal import Decimal

from pytest_bdd import when, then, parsers, scenarios

from storefront.core.database import session_scope
from storefront.models.inventory_models import InventoryItem
from common_steps import *

scenarios("../features/create.feature")


@when("I order nothing")
def step_order_nothing(client, scenario_data):
    scenario_data["response"] = client.post("/orders/", json={"items": []})


@when(parsers.re(r"I ask for a quote of (?P<lines>.+)"))
def step_quote(client, scenario_data, lines):
    scenario_data["response"] = client.post("/orders/quote", json={"items": order_lines(scenario_data, lines)})


@when(parsers.parse('the price of "{name}" changes to {price}'))
def step_price_change(scenario_data, name, price):
    with session_scope() as db:
        item = db.get(InventoryItem, scenario_data["products"][name])
        item.price = Decimal(price)
        db.commit()


@then(parsers.parse('the order should belong to customer "{customer_id}"'))
def step_order_owner(scenario_data, customer_id):
    assert scenario_data["response"].json()["customer_id"] == customer_id


@then(parsers.parse('the quote should be for "{tier}" shipping'))
def step_quote_tier(scenario_data, tier):
    body = scenario_data["response"].json()
    assert body["shipping_tier"] == tier
    assert "id" not in body
