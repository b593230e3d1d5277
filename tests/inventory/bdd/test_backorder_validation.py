"""BDD tests for backorder-aware order validation."""

from pytest_bdd import parsers, scenarios, then, when

from inventory.stock.history import ChangeReason
from inventory.stock.records import OrderItem

scenarios("features/backorder_validation.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse('an order for {quantity:d} units of "{product_id}" is validated'),
    target_fixture="order",
)
def _(service, quantity, product_id):
    items = [OrderItem(product_id=product_id, quantity=quantity)]
    return {"items": items, "validation": service.validate_order_inventory(items)}


@when(parsers.parse('the validated order "{order_id}" is processed'), target_fixture="order_result")
def _(service, order, order_id):
    assert order["validation"].valid
    return service.process_order_inventory(order["items"], user_id="user-1", order_id=order_id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.parse("the order is {outcome}"))
def _(order, outcome):
    assert order["validation"].valid is (outcome == "valid")


@then(parsers.cfparse("{backordered:d} units are backordered"))
def _(order, backordered):
    assert sum(item.backordered for item in order["validation"].backordered_items) == backordered


@then("the order result is successful")
def _(order_result):
    assert order_result.all_succeeded


@then(parsers.cfparse('the sale of order "{order_id}" recorded a change of {change:d} with a shortfall of {shortfall:d}'))
def _(service, order_result, order_id, change, shortfall):
    (mutation,) = order_result.mutations
    assert mutation.shortfall == shortfall

    (entry,) = [e for e in service.get_inventory_history(mutation.record.product_id) if e.order_id == order_id]
    assert entry.change_reason is ChangeReason.SALE
    assert entry.change == change
    assert entry.shortfall == shortfall


@then(parsers.cfparse('product "{product_id}" can still be backordered up to {limit:d} units'))
def _(service, product_id, limit):
    assert service.is_in_stock(product_id, quantity=limit)
    assert not service.is_in_stock(product_id, quantity=limit + 1)
