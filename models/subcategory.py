from dataclasses import dataclass


@dataclass(frozen=True)
class Subcategory:
    id: int
    name: str
    category_id: int
    user_id: int
