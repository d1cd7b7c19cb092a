from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ImportRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    data_type: Optional[str] = Field(default=None, alias="dataType")
    data: Optional[str] = None
    dry_run: bool = Field(default=True, alias="dryRun")
    skip_duplicates: bool = Field(default=True, alias="skipDuplicates")


class ImportResultOut(BaseModel):
    message: str
    records: int
    errors: List[str] = []
