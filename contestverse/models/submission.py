from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional


class SubmissionCreate(BaseModel):
    """
    Schema for entering a contest.
    Required fields are checked by the service so a missing value answers
    with the workflow's own message.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    contest_id: Optional[str] = None
    contest_name: Optional[str] = None
    submission_text: Optional[str] = None
