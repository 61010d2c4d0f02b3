"""create_fleet_tables

Revision ID: 3c1e9a7b52d4
Revises:
Create Date: 2026-10-19 09:12:41.518204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c1e9a7b52d4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False
        ),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "fleet_vehicles",
        sa.Column("make", sa.String(), nullable=False),
        sa.Column("model", sa.String(), nullable=False),
        sa.Column("license_plate", sa.String(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "AVAILABLE",
                "IN_USE",
                "MAINTENANCE",
                "OUT_OF_SERVICE",
                "RETIRED",
                name="vehiclestatus",
            ),
            nullable=False,
        ),
        sa.Column("current_odometer", sa.Integer(), nullable=False),
        sa.Column("registration_expiry", sa.Date(), nullable=True),
        sa.Column("insurance_expiry", sa.Date(), nullable=True),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_fleet_vehicles_tenant_id"), "fleet_vehicles", ["tenant_id"]
    )

    op.create_table(
        "fleet_drivers",
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("last_name", sa.String(), nullable=False),
        sa.Column("license_number", sa.String(), nullable=False),
        sa.Column("license_expiry", sa.Date(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "ACTIVE", "INACTIVE", "ON_LEAVE", "TERMINATED", name="driverstatus"
            ),
            nullable=False,
        ),
        *_base_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_fleet_drivers_tenant_id"), "fleet_drivers", ["tenant_id"])

    op.create_table(
        "fleet_trips",
        sa.Column("vehicle_id", sa.Uuid(), nullable=False),
        sa.Column("driver_id", sa.Uuid(), nullable=False),
        sa.Column("origin", sa.String(), nullable=False),
        sa.Column("destination", sa.String(), nullable=False),
        sa.Column("purpose", sa.Text(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=True),
        sa.Column("start_odometer", sa.Integer(), nullable=False),
        sa.Column("end_odometer", sa.Integer(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "SCHEDULED", "IN_PROGRESS", "COMPLETED", "CANCELLED", name="tripstatus"
            ),
            nullable=False,
        ),
        *_base_columns(),
        sa.ForeignKeyConstraint(["driver_id"], ["fleet_drivers.id"]),
        sa.ForeignKeyConstraint(["vehicle_id"], ["fleet_vehicles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_fleet_trips_tenant_id"), "fleet_trips", ["tenant_id"])
    op.create_index(
        "ix_fleet_trips_vehicle_start", "fleet_trips", ["vehicle_id", "start_time"]
    )

    op.create_table(
        "fleet_maintenance",
        sa.Column("vehicle_id", sa.Uuid(), nullable=False),
        sa.Column(
            "service_type",
            sa.Enum(
                "OIL_CHANGE",
                "TIRE_ROTATION",
                "BRAKE_SERVICE",
                "INSPECTION",
                "REPAIR",
                "OTHER",
                name="servicetype",
            ),
            nullable=False,
        ),
        sa.Column("service_date", sa.Date(), nullable=False),
        sa.Column("odometer", sa.Integer(), nullable=False),
        sa.Column("cost", sa.Float(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("next_service_due", sa.Date(), nullable=True),
        sa.Column("next_service_odometer", sa.Integer(), nullable=True),
        *_base_columns(),
        sa.ForeignKeyConstraint(["vehicle_id"], ["fleet_vehicles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_fleet_maintenance_tenant_id"), "fleet_maintenance", ["tenant_id"]
    )
    op.create_index(
        op.f("ix_fleet_maintenance_vehicle_id"), "fleet_maintenance", ["vehicle_id"]
    )

    op.create_table(
        "fleet_fuel_entries",
        sa.Column("vehicle_id", sa.Uuid(), nullable=False),
        sa.Column("driver_id", sa.Uuid(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("cost", sa.Float(), nullable=False),
        sa.Column("odometer", sa.Integer(), nullable=False),
        sa.Column(
            "fuel_type",
            sa.Enum(
                "GASOLINE", "DIESEL", "ELECTRIC", "HYBRID", "CNG", name="fueltype"
            ),
            nullable=False,
        ),
        *_base_columns(),
        sa.ForeignKeyConstraint(["driver_id"], ["fleet_drivers.id"]),
        sa.ForeignKeyConstraint(["vehicle_id"], ["fleet_vehicles.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_fleet_fuel_entries_tenant_id"), "fleet_fuel_entries", ["tenant_id"]
    )
    op.create_index(
        op.f("ix_fleet_fuel_entries_vehicle_id"), "fleet_fuel_entries", ["vehicle_id"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("fleet_fuel_entries")
    op.drop_table("fleet_maintenance")
    op.drop_table("fleet_trips")
    op.drop_table("fleet_drivers")
    op.drop_table("fleet_vehicles")
    for name in ("fueltype", "servicetype", "tripstatus", "driverstatus", "vehiclestatus"):
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
