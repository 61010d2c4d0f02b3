from __future__ import annotations

from datetime import date

from fleet.domain.entities import Driver, FuelEntry, MaintenanceRecord, Vehicle
from fleet.errors import InvariantViolation
from fleet.events import Notification, NotificationType


def license_expiry(driver: Driver, days: int) -> Notification:
    return Notification(
        tenant_id=driver.tenant_id,
        type=NotificationType.LICENSE_EXPIRY,
        title="Driver License Expiring Soon",
        message=(
            f"Driver {driver.full_name}'s license (number: {driver.license_number}) "
            f"expires on {driver.license_expiry.isoformat()}"
        ),
        data={
            "driver_id": str(driver.id),
            "driver_name": driver.full_name,
            "license_number": driver.license_number,
            "expiry_date": driver.license_expiry.isoformat(),
            "warning_days": days,
        },
    )


def _vehicle_expiry(
    vehicle: Vehicle,
    kind: NotificationType,
    label: str,
    expiry: date | None,
    days: int,
) -> Notification:
    if expiry is None:
        raise InvariantViolation(f"vehicle {vehicle.id} has no {label} expiry date")
    return Notification(
        tenant_id=vehicle.tenant_id,
        type=kind,
        title=f"Vehicle {label.capitalize()} Expiring Soon",
        message=(
            f"Vehicle {vehicle.display_name} (plate: {vehicle.license_plate}) "
            f"{label} expires on {expiry.isoformat()}"
        ),
        data={
            "vehicle_id": str(vehicle.id),
            "vehicle_name": vehicle.display_name,
            "license_plate": vehicle.license_plate,
            "expiry_date": expiry.isoformat(),
            "warning_days": days,
        },
    )


def registration_expiry(vehicle: Vehicle, days: int) -> Notification:
    return _vehicle_expiry(
        vehicle,
        NotificationType.REGISTRATION_EXPIRY,
        "registration",
        vehicle.registration_expiry,
        days,
    )


def insurance_expiry(vehicle: Vehicle, days: int) -> Notification:
    return _vehicle_expiry(
        vehicle,
        NotificationType.INSURANCE_EXPIRY,
        "insurance",
        vehicle.insurance_expiry,
        days,
    )


def maintenance_due(record: MaintenanceRecord) -> Notification:
    if record.next_service_due is not None:
        due_info = f"due on {record.next_service_due.isoformat()}"
    elif record.next_service_odometer is not None:
        due_info = f"due at {record.next_service_odometer} km"
    else:
        due_info = "due now"

    return Notification(
        tenant_id=record.tenant_id,
        type=NotificationType.MAINTENANCE_DUE,
        title="Vehicle Maintenance Due",
        message=(
            f"Maintenance for vehicle {record.vehicle_id} is {due_info}. "
            f"Service type: {record.service_type}"
        ),
        data={
            "maintenance_id": str(record.id),
            "vehicle_id": str(record.vehicle_id),
            "service_type": str(record.service_type),
            "next_service_due": (
                record.next_service_due.isoformat()
                if record.next_service_due
                else None
            ),
            "next_service_odometer": record.next_service_odometer,
        },
    )


def fuel_anomaly(entry: FuelEntry) -> Notification:
    return Notification(
        tenant_id=entry.tenant_id,
        type=NotificationType.FUEL_ANOMALY,
        title="Fuel Efficiency Anomaly Detected",
        message=(
            f"Unusual fuel efficiency detected for vehicle {entry.vehicle_id}. "
            f"Fuel entry on {entry.date.isoformat()} shows significant deviation "
            "from average."
        ),
        data={
            "fuel_entry_id": str(entry.id),
            "vehicle_id": str(entry.vehicle_id),
            "date": entry.date.isoformat(),
            "quantity": entry.quantity,
            "cost": entry.cost,
            "odometer": entry.odometer,
        },
    )
