from enum import Enum


class Role(str, Enum):
    admin = "admin"
    branch_manager = "branch_manager"
    supervisor = "supervisor"
    cashier = "cashier"


ADMIN_ROLES = {Role.admin}
MANAGER_ROLES = {Role.admin, Role.branch_manager}
REVIEWER_ROLES = {Role.admin, Role.branch_manager, Role.supervisor}
