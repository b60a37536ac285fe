from unittest.mock import AsyncMock

import pytest

from course_rag.answers import prompts
from course_rag.answers.assembler import (
    AnswerAssembler,
    OUTCOME_ANSWERED,
    OUTCOME_NO_CORPUS,
    OUTCOME_NOT_FOUND,
    build_context,
    strip_model_sources,
)
from course_rag.config import Settings
from course_rag.corpus.service import DocumentInput
from course_rag.index.retrieval import RetrievalEngine
from course_rag.llm.client import LLMClient


@pytest.fixture
def syllabus(tmp_path):
    path = tmp_path / "syllabus.md"
    path.write_text("Office hours: Tuesdays.", encoding="utf-8")
    return path


@pytest.fixture
def config(syllabus):
    return Settings(
        openai_api_key="sk-test",
        syllabus_path=str(syllabus),
        syllabus_link="",
        strict_rag=True,
        rag_min_score=0.25,
        rag_top_k=3,
    )


@pytest.fixture
def llm():
    mock = AsyncMock(spec=LLMClient)
    mock.complete.return_value = "Merge sort is O(n log n).\nSources: made up"
    return mock


@pytest.fixture
def assembler(cache, embedder, llm, config):
    return AnswerAssembler(cache, RetrievalEngine(cache), embedder, llm, config)


async def test_no_corpus_answer_skips_embedding(assembler, embedder, llm):
    answer = await assembler.answer("What is merge sort?")

    assert answer.outcome == OUTCOME_NO_CORPUS
    assert answer.text.startswith(prompts.NO_CORPUS_MESSAGE)
    assert answer.sources == []
    assert embedder.calls == []
    llm.complete.assert_not_called()


async def test_strict_miss_does_not_call_model(assembler, corpus, llm):
    await corpus.ingest([DocumentInput(id="L1", title="Sorting", text="aaaa")])

    # Letter vector of the question is orthogonal to "aaaa"
    answer = await assembler.answer("bdd")

    assert answer.outcome == OUTCOME_NOT_FOUND
    assert answer.text.startswith(prompts.NOT_FOUND_MESSAGE)
    assert answer.text != prompts.NO_CORPUS_MESSAGE + assembler.footer()
    llm.complete.assert_not_called()


async def test_answer_uses_exact_sources(assembler, corpus, llm):
    await corpus.ingest([
        DocumentInput(id="L1", title="Sorting", text="aaaa"),
        DocumentInput(id="L2", title="Graphs", text="cccc"),
    ])

    answer = await assembler.answer("aa")

    assert answer.outcome == OUTCOME_ANSWERED
    assert answer.sources == ["Sorting"]
    assert "made up" not in answer.text
    assert answer.text.startswith("Merge sort is O(n log n).\n\nSources: Sorting")
    assert answer.text.endswith(prompts.FOOTER_DEFAULT)

    messages = llm.complete.await_args.args[0]
    assert messages[0]["content"] == prompts.STRICT_SYSTEM_PROMPT
    assert "Office hours: Tuesdays." in messages[1]["content"]
    assert messages[2]["content"] == "QUESTION:\naa\n\nCONTEXT:\n(1) Sorting\naaaa"


async def test_lenient_mode_answers_below_threshold(cache, embedder, llm, config, corpus):
    config.strict_rag = False
    assembler = AnswerAssembler(cache, RetrievalEngine(cache), embedder, llm, config)
    await corpus.ingest([DocumentInput(id="L1", title="Sorting", text="aaaa")])

    answer = await assembler.answer("bdd")

    assert answer.outcome == OUTCOME_ANSWERED
    assert answer.sources == ["Sorting"]
    messages = llm.complete.await_args.args[0]
    assert messages[0]["content"] == prompts.LENIENT_SYSTEM_PROMPT


async def test_strict_zero_top_k_is_not_found(cache, embedder, llm, config, corpus):
    config.rag_top_k = 0
    assembler = AnswerAssembler(cache, RetrievalEngine(cache), embedder, llm, config)
    await corpus.ingest([DocumentInput(id="L1", title="Sorting", text="aaaa")])

    answer = await assembler.answer("aa")

    assert answer.outcome == OUTCOME_NOT_FOUND
    assert answer.sources == []
    llm.complete.assert_not_called()


async def test_lenient_zero_top_k_has_no_sources_line(cache, embedder, llm, config, corpus):
    config.rag_top_k = 0
    config.strict_rag = False
    assembler = AnswerAssembler(cache, RetrievalEngine(cache), embedder, llm, config)
    await corpus.ingest([DocumentInput(id="L1", title="Sorting", text="aaaa")])

    answer = await assembler.answer("aa")

    assert answer.outcome == OUTCOME_ANSWERED
    assert answer.sources == []
    assert "Sources:" not in answer.text
    llm.complete.assert_awaited_once()


def test_footer_with_link(cache, embedder, llm, config):
    config.syllabus_link = "https://example.edu/course"
    assembler = AnswerAssembler(cache, RetrievalEngine(cache), embedder, llm, config)
    assert assembler.footer().endswith("course web page: https://example.edu/course")


def test_missing_syllabus_falls_back(assembler, config, tmp_path):
    config.syllabus_path = str(tmp_path / "missing.md")
    assert assembler.load_syllabus() == prompts.SYLLABUS_UNAVAILABLE


def test_strip_model_sources():
    text = "Answer line.\nsources: A; B\n  Sources: C\nMore."
    assert strip_model_sources(text) == "Answer line.\n\n\nMore."


def test_build_context_numbers_chunks():
    class C:
        def __init__(self, title, text):
            self.title, self.text = title, text

    context = build_context([C("A", "one"), C("B", "two")])
    assert context == "(1) A\none\n\n---\n\n(2) B\ntwo"
