from typing import List

from pydantic import BaseModel

from storefront.schemas.order import OrderRead
from storefront.schemas.user import UserRead


class DashboardRead(BaseModel):
    latest_users: List[UserRead]
    latest_orders: List[OrderRead]
