# app/repositories/customer_repository.py
from app.models.customer import Customer
from app.repositories.base import SqlAlchemyRepository


class CustomerRepository(SqlAlchemyRepository[Customer]):
    model = Customer
    resource_name = "Customer"
    search_fields = ("name", "company", "email", "phone", "city")
    default_sort_field = "name"
    default_sort_direction = "asc"

    def find_by_email(self, email: str) -> Customer | None:
        return self.find_one_by_criteria({"email": email})
