from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base for wire models: camelCase JSON keys, snake_case accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class ApiResponse(MessageResponse, Generic[DataT]):
    data: Optional[DataT] = None


class TaskPagination(CamelModel):
    current_page: int
    total_pages: int
    total_tasks: int
    has_next: bool
    has_prev: bool


class UserPagination(CamelModel):
    current_page: int
    total_pages: int
    total_users: int
    has_next: bool
    has_prev: bool


class TaskListResponse(MessageResponse, Generic[DataT]):
    data: List[DataT]
    pagination: TaskPagination


class UserListResponse(MessageResponse, Generic[DataT]):
    data: List[DataT]
    pagination: UserPagination
