"""Tests for the order status lifecycle table."""

import pytest

from storefront.domain.order_status import OrderStatus, Role, can_transition, is_admin, is_terminal


@pytest.mark.parametrize(
    "current,new",
    [
        (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
        (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
        (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
    ],
)
def test_forward_transitions_allowed(current, new):
    assert can_transition(current, new)


@pytest.mark.parametrize(
    "current,new",
    [
        (OrderStatus.PROCESSING, OrderStatus.DELIVERED),
        (OrderStatus.SHIPPED, OrderStatus.PROCESSING),
        (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
        (OrderStatus.DELIVERED, OrderStatus.SHIPPED),
        (OrderStatus.CANCELLED, OrderStatus.PROCESSING),
    ],
)
def test_other_transitions_rejected(current, new):
    assert not can_transition(current, new)


def test_terminal_states():
    assert is_terminal(OrderStatus.DELIVERED)
    assert is_terminal(OrderStatus.CANCELLED)
    assert not is_terminal(OrderStatus.PROCESSING)
    assert not is_terminal(OrderStatus.SHIPPED)


def test_is_admin_accepts_enum_and_string():
    assert is_admin(Role.ADMIN)
    assert is_admin("admin")
    assert not is_admin("user")
    assert not is_admin(None)
