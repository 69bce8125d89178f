"""rename camelCase columns to snake_case

Revision ID: 20250415_0001
Revises: 20250414_0003
Create Date: 2025-04-15 08:47:19.920466

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from utils.schema_inspect import column_names


# revision identifiers, used by Alembic.
revision: str = '20250415_0001'
down_revision: Union[str, Sequence[str], None] = '20250414_0003'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TIMESTAMPS = {"createdAt": "created_at", "updatedAt": "updated_at"}

RENAMES = {
    "Materials": dict(TIMESTAMPS),
    "Customers": dict(TIMESTAMPS),
    "Vendors": dict(TIMESTAMPS),
    "CrusherRuns": {
        "materialId": "material_id",
        "producedQty": "produced_qty",
        "dispatchedQty": "dispatched_qty",
        "runDate": "run_date",
        **TIMESTAMPS,
    },
    "SalesOrders": {
        "customerId": "customer_id",
        "materialId": "material_id",
        "vehicleNo": "vehicle_no",
        "orderDate": "order_date",
        **TIMESTAMPS,
    },
    "PurchaseOrders": {
        "vendorId": "vendor_id",
        "materialId": "material_id",
        "orderDate": "order_date",
        **TIMESTAMPS,
    },
}


def upgrade():
    bind = op.get_bind()
    # DB ที่สร้างจาก schema ใหม่มี snake_case อยู่แล้ว: ไม่มีอะไรให้ทำ
    for table, mapping in RENAMES.items():
        existing = set(column_names(bind, table))
        todo = [(old, new) for old, new in mapping.items() if old in existing and new not in existing]
        if not todo:
            continue
        with op.batch_alter_table(table) as batch:
            for old, new in todo:
                batch.alter_column(old, new_column_name=new)


def downgrade():
    # ไม่รู้ว่า DB ไหนเคยเป็น camelCase; ชื่อ snake_case คงไว้
    pass
