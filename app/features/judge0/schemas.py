from pydantic import BaseModel
from typing import Optional

# Judge0 status ids (subset used for terminality and normalisation)
STATUS_IN_QUEUE = 1
STATUS_PROCESSING = 2
STATUS_ACCEPTED = 3
STATUS_TIME_LIMIT_EXCEEDED = 5
STATUS_COMPILATION_ERROR = 6
STATUS_RUNTIME_ERROR_NZEC = 11


class Judge0SubmissionRequest(BaseModel):
    """Body of ``POST /submissions``; built per judge call and never persisted."""

    source_code: str
    language_id: int
    stdin: Optional[str] = None
    cpu_time_limit: Optional[float] = None
    memory_limit: Optional[int] = None  # KB


class Judge0SubmissionResponse(BaseModel):
    token: str


class Judge0Status(BaseModel):
    id: int
    description: str = ""


class Judge0ExecutionResult(BaseModel):
    token: Optional[str] = None
    status: Judge0Status
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    compile_output: Optional[str] = None
    message: Optional[str] = None
    time: Optional[str] = None
    memory: Optional[int] = None
    exit_code: Optional[int] = None
    exit_signal: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        # 1 = In Queue, 2 = Processing; everything else means the run finished
        return self.status.id > STATUS_PROCESSING
