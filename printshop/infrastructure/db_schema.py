from sqlalchemy import Table, Column, String, Integer, Boolean, Enum, DateTime, JSON, Numeric, Text, MetaData, Index
from sqlalchemy.sql import func

from printshop.domain.lifecycle import OrderStatus

metadata = MetaData()


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", String, primary_key=True),
    Column("order_number", String, unique=True, nullable=False),
    Column("customer_id", String, nullable=False, index=True),
    Column("customer_name", String, nullable=True),
    Column("store_id", String, nullable=False),
    Column("store_name", String, nullable=True),
    Column("document_name", String, nullable=False),
    Column("files", JSON, nullable=False),
    Column(
        "status",
        Enum(OrderStatus, name="order_status", values_callable=lambda e: [s.value for s in e]),
        nullable=False,
        default=OrderStatus.PENDING,
    ),
    Column("total_price", Numeric(12, 2), nullable=False, default=0),
    Column("copies", Integer, nullable=False, default=1),
    Column("double_sided", Boolean, nullable=False, default=False),
    Column("color_type", String, nullable=False, default="blackAndWhite"),
    Column("details", Text, nullable=True),
    Column("payment_status", String, nullable=True),
    Column("version", Integer, nullable=False, default=1),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now()),
    Index("ix_orders_store_status", "store_id", "status"),
)
