from ubos.platform.tenancy.context import OrgContext, TenantContextError
from ubos.platform.tenancy.repository import ScopedRepository

__all__ = ["OrgContext", "ScopedRepository", "TenantContextError"]
