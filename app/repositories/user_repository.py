# app/repositories/user_repository.py
from app.models.user import User
from app.repositories.base import SqlAlchemyRepository


class UserRepository(SqlAlchemyRepository[User]):
    model = User
    resource_name = "User"
    search_fields = ("name", "email")
    default_sort_field = "name"
    default_sort_direction = "asc"

    def find_by_email(self, email: str) -> User | None:
        return self.find_one_by_criteria({"email": email.strip().lower()})
