import pytest

from judgestore.core.config import Settings
from judgestore.core.context import OperationContext
from judgestore.schemas import Language
from judgestore.services.submissions import SubmissionStore


@pytest.fixture
def settings():
    return Settings(
        judge_env="test",
        judge_database_url="sqlite://",
        judge_create_schema=True,
        judge_operation_timeout=5.0,
    )


@pytest.fixture
def store(settings):
    store = SubmissionStore.open(settings)
    yield store
    store.close()


@pytest.fixture
def ctx():
    return OperationContext.with_timeout(5.0)


@pytest.fixture
def cpp():
    return Language(
        name="c++",
        sourceFileName="a.cc",
        compileCmd="g++ -o a a.cc",
        executables="a",
        runCmd="a",
    )
