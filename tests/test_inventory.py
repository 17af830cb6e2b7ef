from murmur.inventory import Inventory


def test_add_item_is_idempotent_and_notifies_once() -> None:
    inventory = Inventory()
    events = []
    inventory.subscribe(lambda event, item_id: events.append((event, item_id)))

    inventory.add_item("journal")
    inventory.add_item("journal")
    inventory.add_item("")

    assert inventory.items == ["journal"]
    assert events == [("added", "journal")]


def test_remove_and_clear() -> None:
    inventory = Inventory(["journal", "lantern", "journal"])
    events = []
    inventory.subscribe(lambda event, item_id: events.append((event, item_id)))

    assert len(inventory) == 2
    inventory.remove_item("lantern")
    inventory.remove_item("lantern")
    assert not inventory.has_item("lantern")

    inventory.clear()
    assert inventory.items == []
    assert events == [("removed", "lantern"), ("removed", "journal")]
