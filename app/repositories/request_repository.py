# app/repositories/request_repository.py
from app.models.request import ServiceRequest
from app.repositories.base import SqlAlchemyRepository


class RequestRepository(SqlAlchemyRepository[ServiceRequest]):
    model = ServiceRequest
    resource_name = "Request"
    search_fields = ("name", "email", "phone", "service", "message")
    relation_sorts = {
        "customerName": ("customer", "name"),
        "processorName": ("processor", "name"),
    }
