from rest_framework import permissions

from .models import Profile


# Permission constants
class Permissions:
    VIEW_DASHBOARD = 'view_dashboard'

    # Orders
    MANAGE_ORDERS = 'manage_orders'
    DELETE_ORDERS = 'delete_orders'
    VOID_ORDERS = 'void_orders'

    # Sales & reports
    VIEW_SALES = 'view_sales'
    VIEW_REPORTS = 'view_reports'
    EXPORT_REPORTS = 'export_reports'

    # Catalog
    MANAGE_MENU = 'manage_menu'
    MANAGE_INVENTORY = 'manage_inventory'

    # Staff
    VIEW_STAFF = 'view_staff'
    MANAGE_STAFF = 'manage_staff'
    CHANGE_ROLES = 'change_roles'


# Default permissions for each role
DEFAULT_PERMISSIONS = {
    Profile.ADMIN: ['all'],
    Profile.OWNER: ['all'],
    Profile.MANAGER: [
        Permissions.VIEW_DASHBOARD,
        Permissions.MANAGE_ORDERS,
        Permissions.VIEW_SALES, Permissions.VIEW_REPORTS, Permissions.EXPORT_REPORTS,
        Permissions.MANAGE_MENU, Permissions.MANAGE_INVENTORY,
        Permissions.VIEW_STAFF,
    ],
    Profile.CASHIER: [
        Permissions.VIEW_DASHBOARD,
        Permissions.MANAGE_ORDERS,
        Permissions.VIEW_SALES,
    ],
    Profile.STAFF: [
        Permissions.VIEW_DASHBOARD,
        Permissions.MANAGE_ORDERS,
    ],
}

# Screen name -> permission needed to open it
SCREENS = [
    ('Dashboard', Permissions.VIEW_DASHBOARD),
    ('Order Management', Permissions.MANAGE_ORDERS),
    ('Sales', Permissions.VIEW_SALES),
    ('Reports', Permissions.VIEW_REPORTS),
    ('Menu Management', Permissions.MANAGE_MENU),
    ('Inventory', Permissions.MANAGE_INVENTORY),
    ('Staff Management', Permissions.MANAGE_STAFF),
]


def role_has_permission(role, permission):
    granted = DEFAULT_PERMISSIONS.get(role, [])
    return 'all' in granted or permission in granted


def permissions_for_role(role):
    granted = DEFAULT_PERMISSIONS.get(role, [])
    if 'all' in granted:
        return [value for name, value in vars(Permissions).items() if name.isupper()]
    return list(granted)


def accessible_screens(role):
    return [screen for screen, permission in SCREENS if role_has_permission(role, permission)]


def user_role(user):
    if not user or not user.is_authenticated:
        return None
    return user.role


def user_has_permission(user, permission):
    return role_has_permission(user_role(user), permission)


class HasPermission(permissions.BasePermission):
    """
    Permission to check a role-based permission, e.g. HasPermission(Permissions.MANAGE_MENU)
    """
    message = 'Your role does not allow this action.'

    def __init__(self, required_permission):
        self.required_permission = required_permission

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return user_has_permission(request.user, self.required_permission)


def require_permission(permission_name):
    """
    Build a permission class bound to one permission, for use in permission_classes
    """
    return type(
        f"Requires_{permission_name}",
        (HasPermission,),
        {'__init__': lambda self: HasPermission.__init__(self, permission_name)},
    )
