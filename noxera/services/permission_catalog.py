"""
Permission Catalog

Fixed set of assignable permissions and the system role templates seeded
into every tenant.
"""

WILDCARD_PERMISSION = "*"

PERMISSION_CATALOG: tuple[str, ...] = (
    "branches.manage",
    "users.manage",
    "roles.manage",
    "members.manage",
    "members.view",
    "services.manage",
    "services.view",
    "attendance.manage",
    "attendance.view",
    "giving.manage",
    "giving.view",
    "events.manage",
    "events.view",
    "groups.manage",
    "groups.view",
    "website.manage",
    "reports.view",
)

SYSTEM_ROLE_TEMPLATES: dict[str, list[str]] = {
    "Owner": [
        "branches.manage",
        "users.manage",
        "roles.manage",
        "members.manage",
        "services.manage",
        "attendance.manage",
        "giving.manage",
        "events.manage",
        "groups.manage",
        "website.manage",
        "reports.view",
    ],
    "Admin": [
        "branches.manage",
        "users.manage",
        "members.manage",
        "services.manage",
        "attendance.manage",
        "giving.manage",
        "events.manage",
        "groups.manage",
        "website.manage",
        "reports.view",
    ],
    "Staff": [
        "members.manage",
        "services.manage",
        "attendance.manage",
        "giving.manage",
        "events.manage",
        "groups.manage",
        "website.manage",
        "reports.view",
    ],
    "Viewer": [
        "members.view",
        "services.view",
        "attendance.view",
        "giving.view",
        "events.view",
        "groups.view",
        "reports.view",
    ],
}
