# app/repositories/appointment_repository.py
from datetime import datetime

from app.models.appointment import Appointment, AppointmentStatus
from app.repositories.base import SortOptions, SqlAlchemyRepository


class AppointmentRepository(SqlAlchemyRepository[Appointment]):
    model = Appointment
    resource_name = "Appointment"
    search_fields = ("title", "location", "description")
    default_sort_field = "appointment_date"
    default_sort_direction = "asc"
    relation_sorts = {
        "customerName": ("customer", "name"),
        "customer.name": ("customer", "name"),
    }

    def find_by_customer(self, customer_id: int) -> list[Appointment]:
        return self.find_by_criteria({"customer_id": customer_id})

    def find_by_date_range(self, start: datetime, end: datetime) -> list[Appointment]:
        return self.find_by_criteria({"appointment_date": {"gte": start, "lte": end}})

    def find_upcoming(self, now: datetime, *, limit: int = 5) -> list[Appointment]:
        return self.find_by_criteria(
            {
                "appointment_date": {"gte": now},
                "status": {"notIn": [AppointmentStatus.CANCELLED.value, AppointmentStatus.COMPLETED.value]},
            },
            sort=SortOptions("appointment_date", "asc"),
            limit=limit,
            relations=["customer"],
        )
