# sifsync/schemas/common.py
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict


class DocumentModel(BaseModel):
    """Base for every document stored remotely or in the offline cache.

    Wire form is camelCase (``profileSettings``); Python code uses the
    snake_case field names. Both are accepted when decoding.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, data: Dict[str, Any]):
        return cls.model_validate(data)
