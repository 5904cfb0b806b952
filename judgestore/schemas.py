"""Value objects exchanged with clients and the judging worker."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

STATUS_PENDING = "pending"


class Language(BaseModel):
    """How a submission is compiled and run. Opaque to the store."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(..., description="Language name")
    source_file_name: str = Field("", alias="sourceFileName")
    compile_cmd: str = Field("", alias="compileCmd")
    executables: str = Field("", description="Files produced by compilation")
    run_cmd: str = Field("", alias="runCmd")

    def to_document(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True)


class Result(BaseModel):
    """Outcome of one test case, as reported by the judging worker."""
    model_config = ConfigDict(frozen=True)

    time: int = Field(0, ge=0)
    memory: int = Field(0, ge=0)
    stdin: str = ""
    stdout: str = ""
    stderr: str = ""
    log: str = ""

    def to_document(self) -> Dict[str, Any]:
        # empty fields are omitted from the stored document
        return self.model_dump(exclude_defaults=True)


class SubmissionDraft(BaseModel):
    """A submission before the store has assigned it an identity."""
    language: Language
    source: str
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: str = STATUS_PENDING


class Submission(BaseModel):
    """A stored submission; always carries its identity."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Store-assigned identity token")
    language: Language
    source: str
    date: datetime
    status: str = STATUS_PENDING
    total_time: Optional[int] = Field(None, ge=0, alias="totalTime")
    max_memory: Optional[int] = Field(None, ge=0, alias="maxMemory")
    results: List[Result] = Field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        document = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        document["results"] = [r.to_document() for r in self.results]
        return document


class JudgeUpdate(BaseModel):
    """Payload a judging worker sends once a submission has been judged."""
    id: str = Field(..., description="Identity of the judged submission")
    type: str = ""
    status: str
    date: Optional[datetime] = None
    language: str = ""
    results: List[Result] = Field(default_factory=list)


class UpdateReceipt(BaseModel):
    """Confirmation of an applied status/results update."""
    id: str
    status: str
    results: List[Result] = Field(default_factory=list)
    matched: bool = Field(..., description="Whether a stored submission had this identity")
