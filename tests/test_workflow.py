# tests/test_workflow.py
import json

import pytest

from docbrief.llm.multi_model_client import LLMGenerationError
from docbrief.prompts.prompt_builder import build_brief_prompt, build_chat_prompt
from docbrief.prompts.system_prompts import FALLBACK_BRIEF_SECTIONS, NO_CONTEXT_ANSWER
from docbrief.workflow.brief_generator import generate_brief, parse_brief_sections
from docbrief.workflow.document_qa import answer_question, build_sources


def _chunk(content, document_id="doc_a", page=1):
    return {
        "document_id": document_id,
        "content": content,
        "metadata": {"page": page, "chunk_size": len(content)},
    }


class TestPromptBuilding:

    def test_chat_prompt_layout(self):
        prompt = build_chat_prompt("What is the budget?", [_chunk("one"), _chunk("two")])

        assert prompt == "Context from documents:\none\n\ntwo\n\nQuestion: What is the budget?"

    def test_chat_context_is_truncated(self):
        prompt = build_chat_prompt("Q?", [_chunk("x" * 50)], max_characters=10)

        assert "x" * 10 in prompt
        assert "x" * 11 not in prompt

    def test_brief_prompt_contains_inputs(self):
        prompt = build_brief_prompt(
            title="Launch",
            brief_type="executive",
            document_names="plan.docx, notes.txt",
            chunks=[_chunk("budget approved")],
        )

        assert "Launch" in prompt
        assert "executive" in prompt
        assert "plan.docx, notes.txt" in prompt
        assert "budget approved" in prompt


class TestBuildSources:

    def test_sources_use_filename_and_page(self):
        chunks = [_chunk("a", page=1), _chunk("b", page=2), _chunk("c", page=1)]

        sources = build_sources(chunks, {"doc_a": "plan.pdf"})

        assert sources == ["plan.pdf - Page 1", "plan.pdf - Page 2"]

    def test_unknown_document_falls_back_to_id(self):
        sources = build_sources([_chunk("a", document_id="doc_x")], {})

        assert sources == ["doc_x - Page 1"]


class TestAnswerQuestion:

    def test_no_chunks_skips_llm(self, fake_llm):
        llm = fake_llm

        result = answer_question(
            question="Anything?",
            document_ids=["doc_a"],
            retrieve_fn=lambda q: ([], False),
            llm_client=llm,
            filenames={"doc_a": "notes.txt"},
        )

        assert result["answer"] == NO_CONTEXT_ANSWER
        assert result["sources"] == []
        assert result["chunks_used"] == 0
        assert llm.calls == []

    def test_answer_with_sources(self, fake_llm):
        llm = fake_llm
        llm.response = "The budget is 40k."

        result = answer_question(
            question="What is the budget?",
            document_ids=["doc_a"],
            retrieve_fn=lambda q: ([_chunk("Budget 40k", page=2)], False),
            llm_client=llm,
            filenames={"doc_a": "plan.pdf"},
        )

        assert result["answer"] == "The budget is 40k."
        assert result["sources"] == ["plan.pdf - Page 2"]
        assert result["chunks_used"] == 1
        assert result["provider"] == "fake"
        assert "Budget 40k" in llm.calls[0]["prompt"]
        assert llm.calls[0]["max_tokens"] == 800

    def test_fallback_flag_is_reported(self, fake_llm):
        result = answer_question(
            question="Q?",
            document_ids=["doc_a"],
            retrieve_fn=lambda q: ([_chunk("text")], True),
            llm_client=fake_llm,
            filenames={},
        )

        assert result["used_fallback"] is True

    def test_llm_errors_propagate(self, fake_llm):
        llm = fake_llm
        llm.error = LLMGenerationError("all failed")

        with pytest.raises(LLMGenerationError):
            answer_question(
                question="Q?",
                document_ids=["doc_a"],
                retrieve_fn=lambda q: ([_chunk("text")], False),
                llm_client=llm,
                filenames={},
            )


class TestParseBriefSections:

    def test_plain_json_array(self, sample_cards):
        cards, used_template = parse_brief_sections(json.dumps(sample_cards))

        assert used_template is False
        assert cards == sample_cards

    def test_fenced_json_with_chatter(self, sample_cards):
        text = "Here is your brief:\n```json\n" + json.dumps(sample_cards) + "\n```\nEnjoy!"

        cards, used_template = parse_brief_sections(text)

        assert used_template is False
        assert [c["id"] for c in cards] == [c["id"] for c in sample_cards]

    def test_extra_fields_are_dropped(self):
        text = json.dumps([{
            "id": "summary-1", "type": "summary", "title": "S",
            "content": "C", "confidence": 0.9,
        }])

        cards, _ = parse_brief_sections(text)

        assert cards == [{"id": "summary-1", "type": "summary", "title": "S", "content": "C"}]

    @pytest.mark.parametrize("text", [
        "",
        "no json here",
        "[not valid json]",
        "[]",
        '[{"id": "x", "type": "unknown", "title": "t", "content": "c"}]',
        '[{"title": "missing id"}]',
    ])
    def test_bad_output_uses_template(self, text):
        cards, used_template = parse_brief_sections(text)

        assert used_template is True
        assert cards == FALLBACK_BRIEF_SECTIONS

    def test_template_is_a_copy(self):
        cards, _ = parse_brief_sections("nothing")
        cards[0]["content"] = "edited"

        assert FALLBACK_BRIEF_SECTIONS[0]["content"] != "edited"


class TestGenerateBrief:

    def test_generate_from_llm_output(self, fake_llm, sample_cards):
        llm = fake_llm
        llm.response = json.dumps(sample_cards)

        result = generate_brief(
            title="Launch",
            brief_type="executive",
            chunks=[_chunk("budget approved"), _chunk("launch in march")],
            document_names=["plan.pdf", "notes.txt"],
            llm_client=llm,
        )

        assert result["brief"] == sample_cards
        assert result["source_documents"] == "plan.pdf, notes.txt"
        assert result["total_chunks"] == 2
        assert result["provider"] == "fake"
        assert result["used_template"] is False
        assert llm.calls[0]["max_tokens"] == 2048

    def test_unparseable_output_uses_template(self, fake_llm):
        fake_llm.response = "Sorry, I cannot help."

        result = generate_brief(
            title="Launch",
            brief_type="executive",
            chunks=[_chunk("text")],
            document_names=[],
            llm_client=fake_llm,
        )

        assert result["used_template"] is True
        assert len(result["brief"]) == 4
        assert result["source_documents"] == "Selected documents"

    def test_context_is_capped(self, fake_llm):
        llm = fake_llm
        llm.response = "[]"

        generate_brief(
            title="T",
            brief_type="executive",
            chunks=[_chunk("y" * 20000)],
            document_names=["big.txt"],
            llm_client=llm,
        )

        prompt = llm.calls[0]["prompt"]
        assert "y" * 15000 in prompt
        assert "y" * 15001 not in prompt
