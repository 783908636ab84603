"""
Centralized prompts.

Workflow modules and the LLM client import prompt text from here;
nothing else hardcodes instructions to the model.
"""


DOCUMENT_CHAT_SYSTEM_PROMPT = """
You are a helpful assistant that answers questions based on provided document content.
Use only the information from the provided context to answer questions.
If you can't answer based on the context, say so clearly.
Be concise and accurate.
""".strip()


NO_CONTEXT_ANSWER = (
    "I couldn't find relevant information in the selected documents "
    "to answer your question."
)


BRIEF_SYSTEM_PROMPT = """
You are an analyst who turns business documents into short, structured briefs.
Use only the document content you are given. Return only JSON.
""".strip()


BRIEF_PROMPT_TEMPLATE = """Analyze the following document content and create a structured brief.

Document Title: {title}
Brief Type: {brief_type}
Source Documents: {document_names}

Document Content:
{content}

Create a JSON array with exactly 4 sections:
1. Executive Summary (type: "summary") - 2-3 sentences overview
2. Key Points (type: "keypoints") - 4-5 bullet points using •
3. Action Items (type: "actions") - 3-4 actionable tasks using •
4. Key Decisions (type: "decisions") - 2-3 decisions or conclusions using •

Return ONLY valid JSON in this exact format:
[
  {{"id": "summary-1", "type": "summary", "title": "Executive Summary", "content": "..."}},
  {{"id": "keypoints-1", "type": "keypoints", "title": "Key Points", "content": "• Point 1\\n• Point 2"}},
  {{"id": "actions-1", "type": "actions", "title": "Action Items", "content": "• Action 1\\n• Action 2"}},
  {{"id": "decisions-1", "type": "decisions", "title": "Key Decisions", "content": "• Decision 1\\n• Decision 2"}}
]"""


# Used when the model's output cannot be parsed into cards
FALLBACK_BRIEF_SECTIONS = [
    {
        "id": "summary-1",
        "type": "summary",
        "title": "Executive Summary",
        "content": "Brief generated from your documents. Please review and edit.",
    },
    {
        "id": "keypoints-1",
        "type": "keypoints",
        "title": "Key Points",
        "content": "• Key insight from documents\n• Important finding\n• Notable detail",
    },
    {
        "id": "actions-1",
        "type": "actions",
        "title": "Action Items",
        "content": "• Review generated content\n• Edit sections as needed\n• Share with team",
    },
    {
        "id": "decisions-1",
        "type": "decisions",
        "title": "Key Decisions",
        "content": "• Decision based on document analysis\n• Recommended next steps",
    },
]


QUICK_PROMPTS = [
    ("Summarize key points", "Summarize the key points from the selected documents"),
    ("Extract action items", "Extract all action items and tasks from the selected documents"),
    ("Highlight insights", "Highlight the most important insights and recommendations"),
]
