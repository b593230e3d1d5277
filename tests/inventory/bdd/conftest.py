"""Shared BDD fixtures and step definitions for the Inventory domain."""

from pytest_bdd import given, parsers, then

from inventory.stock.history import ChangeReason


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.re(r'a product "(?P<product_id>[^"]+)" with (?P<stock>\d+) units? in stock'), converters={"stock": int})
def _(make_product, product_id, stock):
    make_product(product_id, stock=stock)


@given(
    parsers.re(r'a product "(?P<product_id>[^"]+)" with (?P<stock>\d+) units? and backorders limited to (?P<limit>\d+)'),
    converters={"stock": int, "limit": int},
)
def _(make_product, product_id, stock, limit):
    make_product(product_id, stock=stock, backorder_enabled=True, backorder_limit=limit)


@given(parsers.parse('product "{product_id}" was deleted'))
def _(delete_product, product_id):
    delete_product(product_id)


# ---------------------------------------------------------------------------
# Then steps: shared assertions
# ---------------------------------------------------------------------------
@then(parsers.re(r'product "(?P<product_id>[^"]+)" has (?P<stock>\d+) units? in stock'), converters={"stock": int})
def _(service, product_id, stock):
    assert service.get_product(product_id).stock == stock


@then(
    parsers.re(
        r'product "(?P<product_id>[^"]+)" has (?P<count>\d+) "(?P<reason>\w+)" ledger entr(?:y|ies)'
        r' for order "(?P<order_id>[^"]+)"'
    ),
    converters={"count": int},
)
def _(service, product_id, count, reason, order_id):
    entries = [
        entry
        for entry in service.get_inventory_history(product_id)
        if entry.order_id == order_id and entry.change_reason is ChangeReason(reason)
    ]
    assert len(entries) == count
