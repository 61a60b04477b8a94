# tests/test_access_control.py
import pytest

from salesplan.brand_performance.access_control import AccessControl


@pytest.mark.parametrize("role,level", [
    ('director', 'edit'),
    ('sales_manager', 'view'),
    ('admin', 'none'),
    (None, 'none'),
])
def test_access_level(role, level):
    assert AccessControl(role).get_access_level() == level


def test_director_rights():
    access = AccessControl('director', 'dir-1')

    assert access.can_access_page()
    assert access.can_edit()
    assert access.can_manage_users()
    assert access.can_close_quarters()
    assert access.default_manager_id() is None


def test_sales_manager_is_read_only():
    access = AccessControl('sales_manager', 'mgr-a')

    assert access.can_access_page()
    assert not access.can_edit()
    assert not access.can_manage_users()
    assert not access.can_close_quarters()


def test_sales_manager_starts_on_own_brands():
    assert AccessControl('sales_manager', 'mgr-a').default_manager_id() == 'mgr-a'


def test_unknown_role_is_denied():
    access = AccessControl('viewer', 'u-9')

    assert not access.can_access_page()
    assert 'viewer' in access.get_denied_message()
    assert 'director' in access.get_denied_message()


def test_labels_and_repr():
    assert AccessControl('sales_manager').role_label() == 'Sales Manager'
    assert AccessControl(None).role_label() == 'Unknown'
    assert repr(AccessControl('director')) == 'AccessControl(role=director, level=edit)'
